"""
Shared test doubles for the gateway tests.
"""

import asyncio
from typing import Iterable, List, Optional, Union

import httpx
import pytest

from padhai_gateway.core.interface import (
    AbstractProviderAdapter,
    Candidate,
    ProviderCapability,
    UpstreamRequest,
)
from padhai_gateway.models.request import RequestEnvelope
from padhai_gateway.models.response import AdapterAnswer


class StubAdapter(AbstractProviderAdapter):
    """
    Adapter double that returns (or raises) a scripted result.

    Records every built request and every invocation so tests can assert
    on call counts.
    """

    provider_type = "stub"

    def __init__(
        self,
        name: str,
        result: Union[AdapterAnswer, Exception],
        delay: float = 0.0,
        timeout: Optional[float] = None,
    ):
        super().__init__(name=name, base_url="http://stub.local", api_key="stub-key", timeout=timeout)
        self.result = result
        self.delay = delay
        self.built: List[UpstreamRequest] = []
        self.calls: List[UpstreamRequest] = []

    def endpoint(self, model_id: str) -> str:
        return f"http://stub.local/{model_id}"

    def build_request(self, envelope: RequestEnvelope, model_id: str) -> UpstreamRequest:
        payload = {"model": model_id, "messages": [e.text for e in envelope.conversation()]}
        if envelope.system_instruction:
            payload["system"] = envelope.system_instruction
        request = UpstreamRequest(url=self.endpoint(model_id), json=payload)
        self.built.append(request)
        return request

    def extract_answer(self, response: httpx.Response) -> AdapterAnswer:
        return AdapterAnswer(text=response.text)

    async def invoke(self, client: httpx.AsyncClient, request: UpstreamRequest) -> AdapterAnswer:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def make_candidate(
    name: str,
    result: Union[AdapterAnswer, Exception],
    capabilities: Iterable[ProviderCapability] = (ProviderCapability.SYSTEM_INSTRUCTION,),
    delay: float = 0.0,
    timeout: Optional[float] = None,
) -> Candidate:
    """Candidate backed by a StubAdapter."""
    return Candidate(
        provider_id=name,
        model_id=f"{name}-model",
        capabilities=frozenset(capabilities),
        adapter=StubAdapter(name, result, delay=delay, timeout=timeout),
    )


def text_answer(text: str) -> AdapterAnswer:
    return AdapterAnswer(text=text)


@pytest.fixture
def http_client():
    """Async client that must never reach the network."""
    def refuse(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"Unexpected upstream call to {request.url}")

    return httpx.AsyncClient(transport=httpx.MockTransport(refuse))


@pytest.fixture
def provider_env():
    """Environment with every provider credential set (with stray whitespace)."""
    return {
        "SILICONFLOW_KEY": "  sf-test-key\n",
        "HF_TOKEN": "hf-test-token ",
        "GEMINI_API_KEY": "\tgemini-test-key",
    }
