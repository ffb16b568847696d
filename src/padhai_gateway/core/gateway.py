"""
Gateway facade: route, execute, normalize.
"""

import logging
from typing import Dict, List, Optional

import httpx

from ..models.request import Mode, RequestEnvelope
from ..models.response import CanonicalResponse
from .config import GatewayConfig
from .errors import ModeUnsupportedError
from .executor import CancelCheck, FallbackExecutor
from .messages import messages_for
from .normalizer import ResponseNormalizer
from .registry import AdapterRegistry, CandidateTable, default_registry
from .router import ModeRouter

logger = logging.getLogger(__name__)


class Gateway:
    """
    Serves one normalized request per call.

    Holds only read-only configuration; concurrent calls share nothing
    mutable.
    """

    def __init__(
        self,
        candidates: CandidateTable,
        client: httpx.AsyncClient,
        attempt_timeout: float,
        normalizer: Optional[ResponseNormalizer] = None,
    ):
        self._candidates = candidates
        self._router = ModeRouter(candidates)
        self._executor = FallbackExecutor(client, attempt_timeout=attempt_timeout)
        self._normalizer = normalizer or ResponseNormalizer()

    @classmethod
    def from_config(
        cls,
        config: GatewayConfig,
        client: httpx.AsyncClient,
        registry: Optional[AdapterRegistry] = None,
    ) -> "Gateway":
        """
        Build a gateway from configuration.

        Raises:
            ConfigurationError: If no provider is usable
        """
        registry = registry or default_registry()
        return cls(
            candidates=registry.build_candidates(config),
            client=client,
            attempt_timeout=config.attempt_timeout,
            normalizer=ResponseNormalizer(messages_for(config.locale)),
        )

    async def handle(
        self,
        envelope: RequestEnvelope,
        is_cancelled: Optional[CancelCheck] = None,
    ) -> CanonicalResponse:
        """
        Answer a request in its canonical shape.

        Raises:
            InvalidRequestError: The request cannot be served as given
        """
        try:
            route = self._router.route(envelope)
        except ModeUnsupportedError as e:
            logger.warning(e.message)
            return self._normalizer.mode_unsupported()

        if route.downgraded:
            logger.info(f"Routing {route.mode.value} through {route.chain.value} candidates")

        result = await self._executor.execute(
            route.envelope,
            route.candidates,
            route.mode,
            is_cancelled=is_cancelled,
        )

        for failure in result.failures:
            logger.debug(f"Recorded failure {failure.candidate.label}: {failure.failure_reason}")

        return self._normalizer.normalize(result, route.mode)

    def describe(self) -> Dict[str, List[str]]:
        """Configured candidate labels per mode."""
        return {
            mode.value: [c.label for c in self._candidates.get(mode, ())]
            for mode in Mode
        }
