"""Provider registry for centralized adapter management

The registry maps the closed ``Provider`` enum to one adapter instance per
provider. It is populated once and then frozen; after that it is read-only and
lookups need no locking.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Dict, Optional, Set, Tuple, Union

from ..core.base_adapter import BaseAdapter
from ..core.exceptions import RegistryFrozenError, UnsupportedProviderError
from ..types.provider import Provider

if TYPE_CHECKING:
    from ..converters.pipeline import ConversionPipeline
    from ..streaming.buffer import StreamingConfig

logger = logging.getLogger(__name__)

ProviderLike = Union[Provider, str]


class ProviderRegistry:
    """Central registry for all provider adapters"""

    def __init__(self) -> None:
        self._adapters: Dict[Provider, BaseAdapter] = {}
        self._frozen = False

    def register(self, adapter: BaseAdapter) -> None:
        """Register an adapter instance under its provider

        Raises:
            TypeError: If ``adapter`` is not a BaseAdapter
            RegistryFrozenError: If the registry was already frozen
        """
        if not isinstance(adapter, BaseAdapter):
            raise TypeError(f"Adapter must be a BaseAdapter instance, got {adapter!r}")
        if self._frozen:
            raise RegistryFrozenError(adapter.provider_name)

        if adapter.provider in self._adapters:
            logger.debug("Replacing adapter for provider %s", adapter.provider_name)
        self._adapters[adapter.provider] = adapter

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get_adapter(self, provider: ProviderLike) -> BaseAdapter:
        """Get the adapter for a provider

        Raises:
            UnsupportedProviderError: If provider is unknown or not registered
        """
        key = self._resolve(provider)
        if key is None or key not in self._adapters:
            raise UnsupportedProviderError(
                provider.value if isinstance(provider, Provider) else str(provider),
                self.list_supported_providers(),
            )
        return self._adapters[key]

    def is_supported(self, provider: ProviderLike) -> bool:
        key = self._resolve(provider)
        return key is not None and key in self._adapters

    def list_supported_providers(self) -> list[str]:
        return [provider.value for provider in self._adapters]

    def can_convert(self, source: ProviderLike, target: ProviderLike) -> bool:
        """Every registered pair converts through the IR, including source == target"""
        return self.is_supported(source) and self.is_supported(target)

    def possible_targets(self, source: ProviderLike) -> Set[Provider]:
        if not self.is_supported(source):
            return set()
        return set(self._adapters)

    def possible_sources(self, target: ProviderLike) -> Set[Provider]:
        if not self.is_supported(target):
            return set()
        return set(self._adapters)

    def all_conversion_pairs(self) -> Set[Tuple[Provider, Provider]]:
        return {(source, target) for source in self._adapters for target in self._adapters}

    def create_pipeline(
        self,
        source: ProviderLike,
        target: ProviderLike,
        config: Optional["StreamingConfig"] = None,
    ) -> "ConversionPipeline":
        from ..converters.pipeline import ConversionPipeline

        return ConversionPipeline(self.get_adapter(source), self.get_adapter(target), config)

    @staticmethod
    def _resolve(provider: ProviderLike) -> Optional[Provider]:
        try:
            return Provider.coerce(provider)
        except ValueError:
            return None


_default_registry = ProviderRegistry()
_init_lock = threading.Lock()


def initialize_providers() -> ProviderRegistry:
    """Register the built-in adapters and freeze the default registry, once"""
    if _default_registry.frozen:
        return _default_registry

    with _init_lock:
        if not _default_registry.frozen:
            from ..adapters import AnthropicAdapter, NativeAdapter, OpenAIAdapter

            for adapter in (OpenAIAdapter(), AnthropicAdapter(), NativeAdapter()):
                _default_registry.register(adapter)
            _default_registry.freeze()
            logger.debug(
                "Registered providers: %s",
                ", ".join(_default_registry.list_supported_providers()),
            )
    return _default_registry


# Convenience functions
def get_registry() -> ProviderRegistry:
    """Get the default registry, initializing it on first use"""
    return initialize_providers()


def get_adapter(provider: ProviderLike) -> BaseAdapter:
    """Get an adapter instance for a provider"""
    return get_registry().get_adapter(provider)


def list_providers() -> list[str]:
    """List all supported providers"""
    return get_registry().list_supported_providers()


def is_provider_supported(provider: ProviderLike) -> bool:
    """Check if a provider is supported"""
    return get_registry().is_supported(provider)
