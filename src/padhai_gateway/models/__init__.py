"""
Gateway data models.
"""

from .request import Mode, HistoryEntry, GenerationOptions, RequestEnvelope
from .response import (
    AdapterAnswer,
    AttemptOutcome,
    ExecutionResult,
    TextAnswer,
    ImageAnswer,
    TitleAnswer,
    CanonicalResponse,
    to_payload,
)

__all__ = [
    "Mode",
    "HistoryEntry",
    "GenerationOptions",
    "RequestEnvelope",
    "AdapterAnswer",
    "AttemptOutcome",
    "ExecutionResult",
    "TextAnswer",
    "ImageAnswer",
    "TitleAnswer",
    "CanonicalResponse",
    "to_payload",
]
