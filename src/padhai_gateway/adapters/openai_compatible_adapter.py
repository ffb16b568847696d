"""
OpenAI-compatible chat adapter.

Used for SiliconFlow, whose chat endpoint follows the OpenAI
``/chat/completions`` shape, including multimodal ``image_url`` parts for
vision models.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from ..core.errors import ExtractionFailedError
from ..core.interface import AbstractProviderAdapter, UpstreamRequest
from ..models.request import RequestEnvelope, HistoryEntry
from ..models.response import AdapterAnswer

logger = logging.getLogger(__name__)

THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)


class OpenAICompatibleAdapter(AbstractProviderAdapter):
    """
    Adapter for OpenAI-compatible chat completion APIs.

    Messages are sent as a role-tagged list; a system instruction becomes a
    leading ``system`` message.
    """

    provider_type = "openai_compatible"

    def __init__(
        self,
        name: str,
        base_url: str = "https://api.siliconflow.cn/v1",
        api_key: str = None,
        timeout: Optional[float] = None,
        chat_endpoint: str = "/chat/completions",
        **kwargs,
    ):
        super().__init__(name=name, base_url=base_url, api_key=api_key, timeout=timeout, **kwargs)
        self._chat_endpoint = chat_endpoint

    def endpoint(self, model_id: str) -> str:
        return f"{self._base_url}{self._chat_endpoint}"

    def build_request(self, envelope: RequestEnvelope, model_id: str) -> UpstreamRequest:
        messages: List[Dict[str, Any]] = []
        if envelope.system_instruction:
            messages.append({"role": "system", "content": envelope.system_instruction})

        for entry in envelope.conversation():
            messages.append(self._message(entry))

        payload: Dict[str, Any] = {
            "model": model_id,
            "messages": messages,
            "stream": False,
        }

        options = envelope.generation_options
        if options.temperature is not None:
            payload["temperature"] = options.temperature
        if options.max_output_tokens is not None:
            payload["max_tokens"] = options.max_output_tokens
        if options.top_p is not None:
            payload["top_p"] = options.top_p

        return UpstreamRequest(url=self.endpoint(model_id), json=payload, headers=self.headers())

    def _message(self, entry: HistoryEntry) -> Dict[str, Any]:
        if not entry.image_ref:
            return {"role": entry.role, "content": entry.text}

        parts: List[Dict[str, Any]] = [
            {"type": "image_url", "image_url": {"url": _image_url(entry.image_ref)}},
        ]
        if entry.text:
            parts.append({"type": "text", "text": entry.text})
        return {"role": entry.role, "content": parts}

    def extract_answer(self, response: httpx.Response) -> AdapterAnswer:
        data = self._json(response)

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise ExtractionFailedError("No choices in response", provider=self._name)

        message = choices[0].get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if isinstance(content, list):
            content = "".join(
                p["text"] for p in content if isinstance(p, dict) and isinstance(p.get("text"), str)
            )
        if not isinstance(content, str):
            content = ""

        text = THINK_BLOCK.sub("", content).strip()
        if not text:
            raise ExtractionFailedError("Empty answer in response", provider=self._name)

        return AdapterAnswer(text=text)


def _image_url(image_ref: str) -> str:
    """Image reference as a URL the API accepts."""
    if image_ref.startswith(("http://", "https://", "data:")):
        return image_ref
    return f"data:image/jpeg;base64,{image_ref}"
