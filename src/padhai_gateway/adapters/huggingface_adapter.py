"""
Hugging Face Inference API adapters.

Text models take a single prompt string; image models return raw image
bytes. A model that is still loading answers 503 with an
``estimated_time``, which is treated as a transient state.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.errors import ExtractionFailedError, UpstreamTransientError
from ..core.interface import AbstractProviderAdapter, UpstreamRequest
from ..models.request import RequestEnvelope
from ..models.response import AdapterAnswer

logger = logging.getLogger(__name__)

HF_BASE_URL = "https://api-inference.huggingface.co"

ROLE_LABELS = {
    "system": "System",
    "user": "User",
    "assistant": "Assistant",
}


class HuggingFaceAdapter(AbstractProviderAdapter):
    """Hugging Face text-generation adapter."""

    provider_type = "huggingface"

    def __init__(
        self,
        name: str,
        base_url: str = HF_BASE_URL,
        api_key: str = None,
        timeout: Optional[float] = None,
        **kwargs,
    ):
        super().__init__(name=name, base_url=base_url, api_key=api_key, timeout=timeout, **kwargs)

    def endpoint(self, model_id: str) -> str:
        return f"{self._base_url}/models/{model_id}"

    def build_prompt(self, envelope: RequestEnvelope) -> str:
        """Flatten the conversation into one prompt string."""
        lines: List[str] = []
        if envelope.system_instruction:
            lines.append(f"System: {envelope.system_instruction}")
        for entry in envelope.conversation():
            lines.append(f"{ROLE_LABELS[entry.role]}: {entry.text}")
        lines.append("Assistant:")
        return "\n".join(lines)

    def build_request(self, envelope: RequestEnvelope, model_id: str) -> UpstreamRequest:
        parameters: Dict[str, Any] = {"return_full_text": False}
        options = envelope.generation_options
        if options.temperature is not None:
            parameters["temperature"] = options.temperature
        if options.max_output_tokens is not None:
            parameters["max_new_tokens"] = options.max_output_tokens
        if options.top_p is not None:
            parameters["top_p"] = options.top_p

        payload = {
            "inputs": self.build_prompt(envelope),
            "parameters": parameters,
            "options": {"wait_for_model": False},
        }
        return UpstreamRequest(url=self.endpoint(model_id), json=payload, headers=self.headers())

    def extract_answer(self, response: httpx.Response) -> AdapterAnswer:
        data = self._json(response)

        if isinstance(data, dict) and data.get("error"):
            self._raise_error(data)

        if isinstance(data, list) and data and isinstance(data[0], dict):
            data = data[0]

        text = data.get("generated_text") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise ExtractionFailedError("No generated_text in response", provider=self._name)

        return AdapterAnswer(text=text.strip())

    def _raise_error(self, data: Dict[str, Any]) -> None:
        message = str(data["error"])
        if "loading" in message.lower():
            raise UpstreamTransientError(
                message,
                provider=self._name,
                retry_after=data.get("estimated_time"),
            )
        raise ExtractionFailedError(message[:100], provider=self._name)


class HuggingFaceImageAdapter(HuggingFaceAdapter):
    """Hugging Face text-to-image adapter."""

    provider_type = "huggingface_image"

    def build_request(self, envelope: RequestEnvelope, model_id: str) -> UpstreamRequest:
        payload = {
            "inputs": envelope.image_prompt(),
            "options": {"wait_for_model": False},
        }
        return UpstreamRequest(url=self.endpoint(model_id), json=payload, headers=self.headers())

    def extract_answer(self, response: httpx.Response) -> AdapterAnswer:
        content_type = response.headers.get("content-type", "")
        if content_type.startswith("image/"):
            if not response.content:
                raise ExtractionFailedError("Empty image body", provider=self._name)
            return AdapterAnswer(image_bytes=response.content)

        data = self._json(response)
        if isinstance(data, dict) and data.get("error"):
            self._raise_error(data)
        raise ExtractionFailedError(
            f"Expected image content, got {content_type or 'unknown'}", provider=self._name
        )
