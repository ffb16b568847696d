"""
Provider adapters.
"""

from .openai_compatible_adapter import OpenAICompatibleAdapter
from .gemini_adapter import GeminiAdapter, GeminiImagenAdapter
from .huggingface_adapter import HuggingFaceAdapter, HuggingFaceImageAdapter

__all__ = [
    "OpenAICompatibleAdapter",
    "GeminiAdapter",
    "GeminiImagenAdapter",
    "HuggingFaceAdapter",
    "HuggingFaceImageAdapter",
]
