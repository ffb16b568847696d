"""
Abstract provider adapter interface.

Defines the contract that every upstream provider adapter implements, and
the immutable candidate pairing of one adapter with one model.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

import httpx

from ..models.request import RequestEnvelope
from ..models.response import AdapterAnswer
from .errors import ExtractionFailedError, UpstreamError, UpstreamTransientError

logger = logging.getLogger(__name__)

# Status codes that mean "try again shortly" rather than "broken".
TRANSIENT_STATUS_CODES = {429, 503}


class ProviderCapability(str, Enum):
    """Capabilities a candidate model may support."""
    SYSTEM_INSTRUCTION = "system_instruction"
    IMAGE_INPUT = "image_input"
    IMAGE_OUTPUT = "image_output"


@dataclass(frozen=True)
class UpstreamRequest:
    """Provider-specific request descriptor produced by an adapter."""
    url: str
    json: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)


class AbstractProviderAdapter(ABC):
    """
    Abstract base class for upstream provider adapters.

    An adapter knows how to address one provider, how to translate a
    request envelope into that provider's body, and how to pull a plain
    answer back out of its response. It holds no per-request state.
    """

    provider_type: str = ""

    def __init__(
        self,
        name: str,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs,
    ):
        """
        Initialize adapter.

        Args:
            name: Unique provider name used in candidate configuration
            base_url: Provider API base URL
            api_key: Credential, already stripped of whitespace
            timeout: Per-attempt ceiling in seconds; None uses the gateway default
        """
        self._name = name
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._extra = kwargs

    @property
    def name(self) -> str:
        return self._name

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    @abstractmethod
    def endpoint(self, model_id: str) -> str:
        """
        Full URL for a model on this provider.

        Args:
            model_id: Provider model identifier

        Returns:
            Absolute URL
        """
        pass

    @abstractmethod
    def build_request(self, envelope: RequestEnvelope, model_id: str) -> UpstreamRequest:
        """
        Translate an envelope into a provider request.

        Must not raise for a well-formed envelope.
        """
        pass

    @abstractmethod
    def extract_answer(self, response: httpx.Response) -> AdapterAnswer:
        """
        Pull the answer out of a successful response.

        Raises:
            ExtractionFailedError: If the body holds no usable answer
        """
        pass

    def headers(self) -> Dict[str, str]:
        """Request headers including authentication."""
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def check_status(self, response: httpx.Response) -> None:
        """
        Raise for a non-success response.

        Raises:
            UpstreamTransientError: Provider is warming up or rate limiting
            UpstreamError: Any other non-2xx status
        """
        if response.is_success:
            return

        snippet = response.text[:100]
        if response.status_code in TRANSIENT_STATUS_CODES:
            raise UpstreamTransientError(
                f"HTTP {response.status_code}: {snippet}",
                provider=self._name,
                status_code=response.status_code,
                retry_after=_retry_after(response),
            )
        raise UpstreamError(
            f"HTTP {response.status_code}: {snippet}",
            provider=self._name,
            status_code=response.status_code,
        )

    async def invoke(self, client: httpx.AsyncClient, request: UpstreamRequest) -> AdapterAnswer:
        """
        Send a built request and extract its answer.

        Network errors surface as httpx exceptions; the executor folds them
        into the attempt outcome.
        """
        response = await client.post(
            request.url,
            json=request.json,
            headers=request.headers,
            timeout=self._timeout or httpx.USE_CLIENT_DEFAULT,
        )
        self.check_status(response)
        return self.extract_answer(response)

    def _json(self, response: httpx.Response) -> Any:
        """Decode a JSON body or report an extraction failure."""
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
            raise ExtractionFailedError("Response body is not JSON", provider=self._name)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, type={self.provider_type!r})"


@dataclass(frozen=True)
class Candidate:
    """One (provider, model) pairing eligible to serve a mode."""
    provider_id: str
    model_id: str
    capabilities: FrozenSet[ProviderCapability]
    adapter: AbstractProviderAdapter = field(compare=False, repr=False)

    def supports(self, capability: ProviderCapability) -> bool:
        return capability in self.capabilities

    def endpoint(self) -> str:
        return self.adapter.endpoint(self.model_id)

    def build_request(self, envelope: RequestEnvelope) -> UpstreamRequest:
        """
        Build the upstream request, dropping what this model cannot take.
        """
        if envelope.system_instruction and not self.supports(ProviderCapability.SYSTEM_INSTRUCTION):
            logger.debug(f"Dropping system instruction for {self.label}")
            envelope = envelope.without_system_instruction()
        return self.adapter.build_request(envelope, self.model_id)

    def extract_answer(self, response: httpx.Response) -> AdapterAnswer:
        return self.adapter.extract_answer(response)

    @property
    def label(self) -> str:
        return f"{self.provider_id}/{self.model_id}"


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("retry-after")
    if value:
        try:
            return float(value)
        except ValueError:
            return None

    # Hugging Face reports warm-up time in the body.
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("estimated_time"), (int, float)):
        return float(data["estimated_time"])
    return None
