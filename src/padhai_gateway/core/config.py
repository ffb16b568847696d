"""
Configuration loading for the gateway.

The configuration is built once at startup and passed by reference into the
registry, router and executor. Provider secrets come from the environment
and are trimmed of stray whitespace (keys pasted from a phone often carry a
trailing space or newline).
"""

import os
import logging
from typing import Dict, List, Any, Optional, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPT_TIMEOUT = 25.0


@dataclass
class ProviderConfig:
    """Configuration for a single upstream provider."""
    type: str
    name: str
    base_url: Optional[str] = None
    api_key_env: Optional[str] = None
    api_key: Optional[str] = None
    timeout: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CandidateConfig:
    """One (provider, model) entry in a mode's fallback chain."""
    provider: str
    model: str
    capabilities: List[str] = field(default_factory=list)


@dataclass
class GatewayConfig:
    """Complete gateway configuration."""
    providers: List[ProviderConfig] = field(default_factory=list)
    modes: Dict[str, List[CandidateConfig]] = field(default_factory=dict)
    attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT
    locale: str = "en"

    def provider(self, name: str) -> Optional[ProviderConfig]:
        for p in self.providers:
            if p.name == name:
                return p
        return None


DEFAULT_CONFIG: Dict[str, Any] = {
    "attempt_timeout": DEFAULT_ATTEMPT_TIMEOUT,
    "locale": "en",
    "providers": [
        {
            "name": "siliconflow",
            "type": "openai_compatible",
            "base_url": "https://api.siliconflow.cn/v1",
            "api_key_env": "SILICONFLOW_KEY",
        },
        {
            "name": "huggingface",
            "type": "huggingface",
            "base_url": "https://api-inference.huggingface.co",
            "api_key_env": "HF_TOKEN",
        },
        {
            "name": "huggingface-image",
            "type": "huggingface_image",
            "base_url": "https://api-inference.huggingface.co",
            "api_key_env": "HF_TOKEN",
        },
        {
            "name": "gemini",
            "type": "gemini",
            "base_url": "https://generativelanguage.googleapis.com/v1beta",
            "api_key_env": "GEMINI_API_KEY",
        },
        {
            "name": "gemini-imagen",
            "type": "gemini_imagen",
            "base_url": "https://generativelanguage.googleapis.com/v1beta",
            "api_key_env": "GEMINI_API_KEY",
        },
    ],
    # Cheap and fast first, capable but slower later, legacy last.
    "modes": {
        "text": [
            {"provider": "siliconflow", "model": "Qwen/Qwen2.5-7B-Instruct",
             "capabilities": ["system_instruction"]},
            {"provider": "gemini", "model": "gemini-1.5-flash",
             "capabilities": ["system_instruction", "image_input"]},
            {"provider": "gemini", "model": "gemini-1.5-pro",
             "capabilities": ["system_instruction", "image_input"]},
            {"provider": "huggingface", "model": "mistralai/Mistral-7B-Instruct-v0.3",
             "capabilities": ["system_instruction"]},
            {"provider": "gemini", "model": "gemini-pro", "capabilities": []},
        ],
        "reasoning": [
            {"provider": "siliconflow", "model": "deepseek-ai/DeepSeek-R1-Distill-Qwen-7B",
             "capabilities": ["system_instruction"]},
            {"provider": "siliconflow", "model": "deepseek-ai/DeepSeek-R1",
             "capabilities": ["system_instruction"]},
            {"provider": "gemini", "model": "gemini-1.5-pro",
             "capabilities": ["system_instruction", "image_input"]},
        ],
        "vision": [
            {"provider": "siliconflow", "model": "Qwen/Qwen2-VL-72B-Instruct",
             "capabilities": ["system_instruction", "image_input"]},
            {"provider": "gemini", "model": "gemini-1.5-flash",
             "capabilities": ["system_instruction", "image_input"]},
            {"provider": "gemini", "model": "gemini-1.5-pro",
             "capabilities": ["system_instruction", "image_input"]},
        ],
        "image": [
            {"provider": "gemini-imagen", "model": "imagen-3.0-generate-001",
             "capabilities": ["image_output"]},
        ],
        "title": [
            {"provider": "siliconflow", "model": "Qwen/Qwen2.5-7B-Instruct",
             "capabilities": ["system_instruction"]},
            {"provider": "gemini", "model": "gemini-1.5-flash",
             "capabilities": ["system_instruction", "image_input"]},
            {"provider": "gemini", "model": "gemini-pro", "capabilities": []},
        ],
    },
}


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> GatewayConfig:
    """
    Load gateway configuration from a YAML file.

    Args:
        config_path: Path to config file. If None, uses ``GATEWAY_CONFIG`` or
            a default location.
        environ: Environment to read secrets from. Defaults to ``os.environ``.

    Returns:
        Loaded configuration with provider secrets resolved
    """
    environ = os.environ if environ is None else environ
    config_path = config_path or environ.get("GATEWAY_CONFIG")

    if config_path is None:
        # Try common locations
        paths = [
            Path("config/gateway.yaml"),
            Path("/etc/padhai-gateway/gateway.yaml"),
        ]
        for p in paths:
            if p.exists():
                config_path = str(p)
                break

    if config_path is None or not Path(config_path).exists():
        logger.info("No gateway config file found, using built-in defaults")
        return parse_config(DEFAULT_CONFIG, environ)

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        return parse_config(DEFAULT_CONFIG, environ)

    logger.info(f"Loaded gateway config from {config_path}")
    return parse_config(data, environ)


def parse_config(
    data: Dict[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> GatewayConfig:
    """Parse a configuration dictionary."""
    environ = os.environ if environ is None else environ
    providers = []

    for p_data in data.get("providers", []):
        providers.append(ProviderConfig(
            type=p_data.get("type", ""),
            name=p_data.get("name", ""),
            base_url=p_data.get("base_url"),
            api_key_env=p_data.get("api_key_env"),
            api_key=_resolve_secret(p_data, environ),
            timeout=p_data.get("timeout"),
            extra=p_data.get("extra", {}),
        ))

    modes = {}
    for mode, chain in (data.get("modes") or {}).items():
        modes[str(mode).lower()] = [
            CandidateConfig(
                provider=c.get("provider", ""),
                model=c.get("model", ""),
                capabilities=list(c.get("capabilities") or []),
            )
            for c in chain or []
        ]

    return GatewayConfig(
        providers=providers,
        modes=modes,
        attempt_timeout=float(data.get("attempt_timeout", DEFAULT_ATTEMPT_TIMEOUT)),
        locale=data.get("locale", "en"),
    )


def _resolve_secret(p_data: Dict[str, Any], environ: Mapping[str, str]) -> Optional[str]:
    """Resolve a provider credential, trimmed of whitespace."""
    api_key = p_data.get("api_key") or ""

    # Expand environment variables in api_key
    if api_key.startswith("${") and api_key.endswith("}"):
        api_key = environ.get(api_key[2:-1], "")

    if not api_key and p_data.get("api_key_env"):
        api_key = environ.get(p_data["api_key_env"], "")

    api_key = api_key.strip()
    return api_key or None
