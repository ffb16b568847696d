"""
Core gateway components.
"""

from .interface import AbstractProviderAdapter, Candidate, ProviderCapability, UpstreamRequest
from .registry import AdapterRegistry, default_registry
from .config import GatewayConfig, load_config, parse_config
from .router import ModeRouter, Route
from .executor import FallbackExecutor
from .normalizer import ResponseNormalizer, clean_title
from .gateway import Gateway
from .errors import (
    GatewayError,
    InvalidRequestError,
    ConfigurationError,
    ModeUnsupportedError,
    UpstreamError,
    UpstreamTransientError,
    ExtractionFailedError,
)

__all__ = [
    "AbstractProviderAdapter",
    "Candidate",
    "ProviderCapability",
    "UpstreamRequest",
    "AdapterRegistry",
    "default_registry",
    "GatewayConfig",
    "load_config",
    "parse_config",
    "ModeRouter",
    "Route",
    "FallbackExecutor",
    "ResponseNormalizer",
    "clean_title",
    "Gateway",
    "GatewayError",
    "InvalidRequestError",
    "ConfigurationError",
    "ModeUnsupportedError",
    "UpstreamError",
    "UpstreamTransientError",
    "ExtractionFailedError",
]
