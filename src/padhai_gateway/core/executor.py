"""
Sequential fallback execution over a candidate chain.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

import httpx
from opentelemetry import trace

from ..models.request import Mode, RequestEnvelope
from ..models.response import AdapterAnswer, AttemptOutcome, ExecutionResult
from .config import DEFAULT_ATTEMPT_TIMEOUT
from .errors import AttemptTimeoutError, GatewayError, UpstreamTransientError
from .interface import Candidate, ProviderCapability

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CancelCheck = Callable[[], Awaitable[bool]]


class FallbackExecutor:
    """
    Tries candidates one at a time until one succeeds.

    Attempts are strictly sequential: the first success short-circuits the
    rest of the chain. Every failure is recorded on the result and never
    raised past this class.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT,
    ):
        """
        Initialize executor.

        Args:
            client: Shared HTTP client for upstream calls
            attempt_timeout: Ceiling in seconds for a single candidate attempt
        """
        self._client = client
        self._attempt_timeout = attempt_timeout

    async def execute(
        self,
        envelope: RequestEnvelope,
        candidates: Sequence[Candidate],
        mode: Mode,
        is_cancelled: Optional[CancelCheck] = None,
    ) -> ExecutionResult:
        """
        Run the fallback chain.

        Args:
            envelope: Translated request
            candidates: Ordered candidates for the mode
            mode: Requested mode
            is_cancelled: Checked before each attempt; when it returns True no
                further candidate is scheduled

        Returns:
            Result holding the winning outcome (if any) and all attempts
        """
        result = ExecutionResult()

        with tracer.start_as_current_span("fallback_execute") as span:
            span.set_attribute("mode", mode.value)
            span.set_attribute("candidate_count", len(candidates))

            for candidate in candidates:
                if is_cancelled is not None and await is_cancelled():
                    logger.info("Caller disconnected; not trying further candidates")
                    result.cancelled = True
                    break

                ineligible = self._ineligibility(envelope, candidate, mode)
                if ineligible:
                    logger.warning(f"Skipping {candidate.label}: {ineligible}")
                    result.attempts.append(
                        AttemptOutcome.failure(candidate, ineligible, skipped=True)
                    )
                    continue

                outcome = await self._attempt(envelope, candidate, mode)
                result.attempts.append(outcome)

                if outcome.succeeded:
                    result.winner = outcome
                    break

            span.set_attribute("attempts", len(result.attempts))
            span.set_attribute("succeeded", result.succeeded)
            if result.winner:
                span.set_attribute("selected_candidate", result.winner.candidate.label)

        if result.exhausted and not result.cancelled:
            logger.error(f"All {len(candidates)} candidates failed for mode {mode.value}")

        return result

    def _ineligibility(
        self,
        envelope: RequestEnvelope,
        candidate: Candidate,
        mode: Mode,
    ) -> Optional[str]:
        """Reason a candidate must not be offered this request, if any."""
        produces_image = candidate.supports(ProviderCapability.IMAGE_OUTPUT)
        if mode == Mode.IMAGE and not produces_image:
            return "image request offered to a text-only candidate"
        if mode != Mode.IMAGE and produces_image:
            return "text request offered to an image-generation candidate"
        if envelope.has_image and not candidate.supports(ProviderCapability.IMAGE_INPUT):
            return "request carries an image the candidate cannot read"
        return None

    async def _attempt(
        self,
        envelope: RequestEnvelope,
        candidate: Candidate,
        mode: Mode,
    ) -> AttemptOutcome:
        """Try one candidate, folding every failure into the outcome."""
        logger.info(f"Trying {candidate.label}")

        with tracer.start_as_current_span("candidate_attempt") as span:
            span.set_attribute("provider", candidate.provider_id)
            span.set_attribute("model", candidate.model_id)

            try:
                answer = await self._invoke(envelope, candidate)
            except UpstreamTransientError as e:
                return self._failed(span, candidate, e.message, transient=True)
            except GatewayError as e:
                return self._failed(span, candidate, e.message)
            except httpx.HTTPError as e:
                return self._failed(span, candidate, f"network error: {e.__class__.__name__}: {e}")
            except Exception as e:
                logger.error(f"Unexpected error from {candidate.label}: {e}", exc_info=True)
                return self._failed(span, candidate, f"unexpected error: {e.__class__.__name__}: {e}")

            if mode == Mode.IMAGE and not answer.image_bytes:
                return self._failed(span, candidate, "no image in answer")
            if mode != Mode.IMAGE and not answer.text:
                return self._failed(span, candidate, "no text in answer")

            span.set_attribute("succeeded", True)
            logger.info(f"Success with {candidate.label}")
            return AttemptOutcome.success(candidate, answer)

    def attempt_timeout(self, candidate: Candidate) -> float:
        """Ceiling for one attempt: the provider's own timeout, else the gateway default."""
        return candidate.adapter.timeout or self._attempt_timeout

    async def _invoke(self, envelope: RequestEnvelope, candidate: Candidate) -> AdapterAnswer:
        request = candidate.build_request(envelope)
        timeout = self.attempt_timeout(candidate)
        try:
            return await asyncio.wait_for(
                candidate.adapter.invoke(self._client, request),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise AttemptTimeoutError(
                f"timed out after {timeout}s",
                provider=candidate.provider_id,
            )

    def _failed(
        self,
        span: trace.Span,
        candidate: Candidate,
        reason: str,
        transient: bool = False,
    ) -> AttemptOutcome:
        span.set_attribute("succeeded", False)
        span.set_attribute("transient", transient)
        level = logging.INFO if transient else logging.WARNING
        logger.log(level, f"Failed {candidate.label}: {reason[:100]}")
        return AttemptOutcome.failure(candidate, reason, transient=transient)
