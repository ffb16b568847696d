"""
PadhaiSetu LLM Gateway

A single endpoint in front of several LLM and image providers:
- Mode-based routing (text, reasoning, vision, image, title)
- Ordered fallback across providers and models
- One canonical response shape regardless of which provider answered
"""

from .core.gateway import Gateway
from .core.config import GatewayConfig, load_config
from .core.interface import AbstractProviderAdapter, Candidate, ProviderCapability
from .core.registry import AdapterRegistry
from .models.request import Mode, RequestEnvelope, HistoryEntry
from .models.response import TextAnswer, ImageAnswer, TitleAnswer

__all__ = [
    "Gateway",
    "GatewayConfig",
    "load_config",
    "AbstractProviderAdapter",
    "Candidate",
    "ProviderCapability",
    "AdapterRegistry",
    "Mode",
    "RequestEnvelope",
    "HistoryEntry",
    "TextAnswer",
    "ImageAnswer",
    "TitleAnswer",
]
