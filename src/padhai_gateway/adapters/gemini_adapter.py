"""
Google Gemini API adapters.

Provides chat through ``generateContent`` (text and inline images) and
image generation through Imagen ``predict``.
"""

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.errors import ExtractionFailedError
from ..core.interface import AbstractProviderAdapter, UpstreamRequest
from ..models.request import RequestEnvelope, HistoryEntry
from ..models.response import AdapterAnswer

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiAdapter(AbstractProviderAdapter):
    """
    Gemini ``generateContent`` adapter.

    Supports:
    - Gemini 1.5 Flash, Pro (system instruction, inline images)
    - Gemini 1.0 Pro (legacy, no system instruction)
    """

    provider_type = "gemini"

    def __init__(
        self,
        name: str,
        base_url: str = GEMINI_BASE_URL,
        api_key: str = None,
        timeout: Optional[float] = None,
        **kwargs,
    ):
        super().__init__(name=name, base_url=base_url, api_key=api_key, timeout=timeout, **kwargs)

    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["x-goog-api-key"] = self._api_key
        return headers

    def endpoint(self, model_id: str) -> str:
        return f"{self._base_url}/models/{model_id}:generateContent"

    def build_request(self, envelope: RequestEnvelope, model_id: str) -> UpstreamRequest:
        contents = [self._content(entry) for entry in envelope.conversation()]

        generation_config: Dict[str, Any] = {}
        options = envelope.generation_options
        if options.temperature is not None:
            generation_config["temperature"] = options.temperature
        if options.max_output_tokens is not None:
            generation_config["maxOutputTokens"] = options.max_output_tokens
        if options.top_p is not None:
            generation_config["topP"] = options.top_p

        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if envelope.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": envelope.system_instruction}]}

        return UpstreamRequest(url=self.endpoint(model_id), json=payload, headers=self.headers())

    def _content(self, entry: HistoryEntry) -> Dict[str, Any]:
        # Gemini has no system role inside contents.
        role = "model" if entry.role == "assistant" else "user"
        parts: List[Dict[str, Any]] = []
        if entry.text:
            parts.append({"text": entry.text})

        if entry.image_ref:
            inline = _inline_data(entry.image_ref)
            if inline:
                parts.append({"inline_data": inline})
            else:
                parts.append({"text": f"[image: {entry.image_ref}]"})

        if not parts:
            parts.append({"text": ""})
        return {"role": role, "parts": parts}

    def extract_answer(self, response: httpx.Response) -> AdapterAnswer:
        data = self._json(response)
        if not isinstance(data, dict):
            raise ExtractionFailedError("Unexpected response shape", provider=self._name)

        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            feedback = data.get("promptFeedback")
            block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            reason = f"Prompt blocked: {block_reason}" if block_reason else "No candidates in response"
            raise ExtractionFailedError(reason, provider=self._name)

        first = candidates[0] if isinstance(candidates[0], dict) else {}
        content = first.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            parts = []

        text = "".join(
            p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)
        ).strip()
        if not text:
            finish_reason = first.get("finishReason", "unknown")
            raise ExtractionFailedError(
                f"Empty answer (finishReason={finish_reason})", provider=self._name
            )

        return AdapterAnswer(text=text)


class GeminiImagenAdapter(GeminiAdapter):
    """Imagen image-generation adapter on the Gemini API."""

    provider_type = "gemini_imagen"

    def __init__(
        self,
        name: str,
        base_url: str = GEMINI_BASE_URL,
        api_key: str = None,
        timeout: Optional[float] = None,
        aspect_ratio: str = "1:1",
        **kwargs,
    ):
        super().__init__(name=name, base_url=base_url, api_key=api_key, timeout=timeout, **kwargs)
        self._aspect_ratio = aspect_ratio

    def endpoint(self, model_id: str) -> str:
        return f"{self._base_url}/models/{model_id}:predict"

    def build_request(self, envelope: RequestEnvelope, model_id: str) -> UpstreamRequest:
        payload = {
            "instances": [{"prompt": envelope.image_prompt()}],
            "parameters": {"sampleCount": 1, "aspectRatio": self._aspect_ratio},
        }
        return UpstreamRequest(url=self.endpoint(model_id), json=payload, headers=self.headers())

    def extract_answer(self, response: httpx.Response) -> AdapterAnswer:
        data = self._json(response)
        predictions = data.get("predictions") if isinstance(data, dict) else None
        if not isinstance(predictions, list) or not predictions or not isinstance(predictions[0], dict):
            raise ExtractionFailedError("No predictions in response", provider=self._name)

        encoded = predictions[0].get("bytesBase64Encoded")
        if not isinstance(encoded, str) or not encoded:
            raise ExtractionFailedError("Prediction has no image bytes", provider=self._name)

        try:
            image_bytes = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            raise ExtractionFailedError("Prediction image is not valid base64", provider=self._name)

        return AdapterAnswer(image_bytes=image_bytes)


def _inline_data(image_ref: str) -> Optional[Dict[str, str]]:
    """Split a data URL or bare base64 string into Gemini inline data."""
    if image_ref.startswith(("http://", "https://")):
        return None

    if image_ref.startswith("data:"):
        header, _, data = image_ref.partition(",")
        mime_type = header[len("data:"):].split(";")[0] or "image/jpeg"
        return {"mime_type": mime_type, "data": data}

    return {"mime_type": "image/jpeg", "data": image_ref}
