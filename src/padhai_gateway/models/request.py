"""
Unified request models for the gateway.

The inbound body may use the canonical field names (``messageHistory``,
``freeTextPrompt``, ``generationOptions``) or the legacy Gemini-style shape
(``contents``, ``prompt``, ``generationConfig``) sent by older clients.
"""

from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator


class Mode(str, Enum):
    """Client-declared intent for a request."""
    TEXT = "text"
    REASONING = "reasoning"
    VISION = "vision"
    IMAGE = "image"
    TITLE = "title"


DEFAULT_TEMPERATURE = 0.7


class HistoryEntry(BaseModel):
    """One conversation turn supplied by the caller."""
    role: str = "user"
    text: str = ""
    image_ref: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("imageRef", "image_ref", "image"),
    )

    class Config:
        populate_by_name = True

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> str:
        role = str(value or "user").lower()
        if role == "model":
            return "assistant"
        if role not in ("user", "assistant", "system"):
            raise ValueError(f"unknown role: {value!r}")
        return role

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class GenerationOptions(BaseModel):
    """Sampling options forwarded to the provider."""
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    max_output_tokens: Optional[int] = Field(
        default=None,
        ge=1,
        validation_alias=AliasChoices("maxOutputTokens", "max_output_tokens", "max_tokens"),
    )
    top_p: Optional[float] = Field(
        default=None,
        ge=0,
        le=1,
        validation_alias=AliasChoices("topP", "top_p"),
    )

    class Config:
        populate_by_name = True
        extra = "allow"


class RequestEnvelope(BaseModel):
    """
    Normalized gateway request.

    ``mode`` is kept as a plain string so that an unknown value reaches the
    mode router (and its goodwill reply) instead of failing validation.
    """
    mode: str
    message_history: List[HistoryEntry] = Field(
        default_factory=list,
        validation_alias=AliasChoices("messageHistory", "message_history", "messages"),
    )
    free_text_prompt: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("freeTextPrompt", "free_text_prompt", "prompt"),
    )
    system_instruction: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("systemInstruction", "system_instruction"),
    )
    generation_options: GenerationOptions = Field(
        default_factory=lambda: GenerationOptions(temperature=DEFAULT_TEMPERATURE),
        validation_alias=AliasChoices("generationOptions", "generation_options", "generationConfig"),
    )

    class Config:
        populate_by_name = True

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = {k: v for k, v in data.items() if v is not None}
        if "contents" in data and not any(
            k in data for k in ("messageHistory", "message_history", "messages")
        ):
            data["messageHistory"] = _history_from_contents(data.pop("contents"))

        instruction = data.get("systemInstruction")
        if isinstance(instruction, dict):
            data["systemInstruction"] = _text_from_parts(instruction.get("parts", []))

        return data

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("mode must be a non-empty string")
        return value.strip().lower()

    @property
    def has_image(self) -> bool:
        """True if any history entry carries an image reference."""
        return any(entry.image_ref for entry in self.message_history)

    def last_text(self) -> str:
        """Text of the most recent history entry, or an empty string."""
        if self.message_history:
            return self.message_history[-1].text.strip()
        return ""

    def image_prompt(self) -> str:
        """Prompt used for image generation."""
        if self.free_text_prompt and self.free_text_prompt.strip():
            return self.free_text_prompt.strip()
        return self.last_text()

    def conversation(self) -> List[HistoryEntry]:
        """
        History as sent upstream.

        A flat ``freeTextPrompt`` with no history becomes a single user turn.
        """
        if self.message_history:
            return list(self.message_history)
        if self.free_text_prompt and self.free_text_prompt.strip():
            return [HistoryEntry(role="user", text=self.free_text_prompt.strip())]
        return []

    def without_system_instruction(self) -> "RequestEnvelope":
        """Copy of this envelope with the system instruction removed."""
        return self.model_copy(update={"system_instruction": None})


def _text_from_parts(parts: List[Dict[str, Any]]) -> str:
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


def _history_from_contents(contents: Any) -> List[Dict[str, Any]]:
    """Translate Gemini ``contents`` into history entries."""
    history = []
    for item in contents or []:
        if not isinstance(item, dict):
            continue

        parts = item.get("parts", [])
        entry: Dict[str, Any] = {
            "role": item.get("role", "user"),
            "text": _text_from_parts(parts),
        }

        for part in parts:
            if not isinstance(part, dict):
                continue
            inline = part.get("inline_data") or part.get("inlineData")
            if inline and inline.get("data"):
                mime_type = inline.get("mime_type") or inline.get("mimeType") or "image/jpeg"
                entry["imageRef"] = f"data:{mime_type};base64,{inline['data']}"
                break

        history.append(entry)
    return history
