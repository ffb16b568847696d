"""
Adapter registry and candidate construction.

New providers are added by registering an adapter class for a provider
``type``; the fallback loop never changes.
"""

import logging
from typing import Dict, List, Tuple, Type, Any, Mapping

from ..models.request import Mode
from .config import GatewayConfig, ProviderConfig
from .errors import ConfigurationError
from .interface import AbstractProviderAdapter, Candidate, ProviderCapability

logger = logging.getLogger(__name__)

CandidateTable = Mapping[Mode, Tuple[Candidate, ...]]


class AdapterRegistry:
    """
    Registry for provider adapter classes.

    Turns a GatewayConfig into an immutable table of ordered candidates
    per mode.
    """

    def __init__(self):
        """Initialize the registry."""
        self._adapters: Dict[str, Type[AbstractProviderAdapter]] = {}

    def register_adapter(
        self,
        provider_type: str,
        adapter_class: Type[AbstractProviderAdapter]
    ) -> None:
        """
        Register a provider adapter class.

        Args:
            provider_type: Type identifier (e.g., "gemini", "huggingface")
            adapter_class: Adapter class to register
        """
        self._adapters[provider_type] = adapter_class
        logger.debug(f"Registered provider adapter: {provider_type}")

    @property
    def provider_types(self) -> List[str]:
        return sorted(self._adapters)

    def create_adapter(
        self,
        provider: ProviderConfig,
    ) -> AbstractProviderAdapter:
        """
        Create an adapter instance for a configured provider.

        Raises:
            ConfigurationError: If the provider type is not registered
        """
        if provider.type not in self._adapters:
            raise ConfigurationError(f"Unknown provider type: {provider.type}", provider=provider.name)

        kwargs: Dict[str, Any] = dict(provider.extra)
        if provider.base_url:
            kwargs["base_url"] = provider.base_url

        adapter_class = self._adapters[provider.type]
        return adapter_class(
            name=provider.name,
            api_key=provider.api_key,
            timeout=provider.timeout,
            **kwargs,
        )

    def build_candidates(self, config: GatewayConfig) -> Dict[Mode, Tuple[Candidate, ...]]:
        """
        Build the ordered candidate chain for every mode.

        Candidates whose provider has no credential are dropped with a
        warning.

        Raises:
            ConfigurationError: If no candidate is usable at all
        """
        adapters: Dict[str, AbstractProviderAdapter] = {}
        missing: List[str] = []

        for provider in config.providers:
            if not provider.api_key:
                env_name = provider.api_key_env or provider.name
                logger.warning(f"No credential for provider {provider.name} ({env_name}); skipping it")
                missing.append(env_name)
                continue
            adapters[provider.name] = self.create_adapter(provider)

        table: Dict[Mode, Tuple[Candidate, ...]] = {}
        for mode_name, chain in config.modes.items():
            try:
                mode = Mode(mode_name)
            except ValueError:
                logger.warning(f"Ignoring unknown mode in config: {mode_name}")
                continue

            candidates = []
            for entry in chain:
                adapter = adapters.get(entry.provider)
                if adapter is None:
                    if config.provider(entry.provider) is None:
                        logger.warning(f"Mode {mode_name} references unknown provider {entry.provider}")
                    continue
                candidates.append(Candidate(
                    provider_id=entry.provider,
                    model_id=entry.model,
                    capabilities=_parse_capabilities(entry.capabilities),
                    adapter=adapter,
                ))

            table[mode] = tuple(candidates)
            if not candidates:
                logger.warning(f"Mode {mode_name} has no usable candidates")

        if not any(table.values()):
            wanted = ", ".join(sorted(set(missing))) or "provider credentials"
            raise ConfigurationError(f"No usable provider configured; set {wanted}")

        for mode, candidates in table.items():
            logger.info(f"Mode {mode.value}: {[c.label for c in candidates]}")

        return table


def _parse_capabilities(values: List[str]) -> frozenset:
    capabilities = set()
    for value in values:
        try:
            capabilities.add(ProviderCapability(value))
        except ValueError:
            logger.warning(f"Unknown capability: {value}")
    return frozenset(capabilities)


def default_registry() -> AdapterRegistry:
    """Registry with the built-in provider adapters."""
    from ..adapters import (
        OpenAICompatibleAdapter,
        GeminiAdapter,
        GeminiImagenAdapter,
        HuggingFaceAdapter,
        HuggingFaceImageAdapter,
    )

    registry = AdapterRegistry()
    for adapter_class in (
        OpenAICompatibleAdapter,
        GeminiAdapter,
        GeminiImagenAdapter,
        HuggingFaceAdapter,
        HuggingFaceImageAdapter,
    ):
        registry.register_adapter(adapter_class.provider_type, adapter_class)
    return registry
