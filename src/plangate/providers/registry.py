"""Registry mapping resource kinds to provider adapters."""

from typing import Any, Dict, Optional
from .base import ProviderAdapter
from .http import HttpProvider
from .null import NullProvider
from ..utils.errors import ConfigError, ProviderError
from ..utils.logging import get_logger

logger = get_logger("providers.registry")

SUPPORTED_PROVIDERS = {
    "null": {
        "description": "No side effects, generates identifiers",
        "options": ["prefix"],
    },
    "http": {
        "description": "JSON REST collection endpoint",
        "options": ["endpoint", "timeout", "headers", "validate"],
    },
}


class ProviderRegistry:
    """One adapter per resource kind, plus an optional fallback."""
    
    def __init__(self, default: Optional[ProviderAdapter] = None):
        self._adapters: Dict[str, ProviderAdapter] = {}
        self.default = default
    
    def register(self, resource_type: str, adapter: ProviderAdapter) -> None:
        self._adapters[resource_type] = adapter
        logger.debug(f"Registered {type(adapter).__name__} for {resource_type}")
    
    def get(self, resource_type: str) -> ProviderAdapter:
        """
        Adapter for *resource_type*.
        
        Raises:
            ProviderError: If neither a specific nor a default adapter exists
        """
        adapter = self._adapters.get(resource_type, self.default)
        if adapter is None:
            raise ProviderError(f"No provider registered for resource type '{resource_type}'")
        return adapter
    
    def __contains__(self, resource_type: str) -> bool:
        return resource_type in self._adapters or self.default is not None


def create_provider(provider_config: Dict[str, Any]) -> ProviderAdapter:
    """
    Build one adapter from a settings entry such as ``{"kind": "http", "endpoint": ...}``.
    
    Raises:
        ConfigError: If the kind is unknown or required options are missing
    """
    kind = provider_config.get("kind") or "null"
    if kind not in SUPPORTED_PROVIDERS:
        raise ConfigError(f"Unsupported provider kind: {kind}. Supported: {', '.join(SUPPORTED_PROVIDERS)}")
    
    if kind == "http":
        endpoint = provider_config.get("endpoint")
        if not endpoint:
            raise ConfigError("http provider requires an 'endpoint'")
        return HttpProvider(
            endpoint=endpoint,
            timeout=float(provider_config.get("timeout", 30)),
            headers=provider_config.get("headers") or {},
            validate_remotely=bool(provider_config.get("validate", False)),
        )
    
    return NullProvider(prefix=provider_config.get("prefix", "null"))


def build_registry(providers: Dict[str, Dict[str, Any]], default_provider: Optional[Dict[str, Any]] = None) -> ProviderRegistry:
    """Build a registry from the ``providers`` and ``default_provider`` settings."""
    registry = ProviderRegistry(default=create_provider(default_provider) if default_provider else None)
    for resource_type, provider_config in providers.items():
        registry.register(resource_type, create_provider(provider_config or {}))
    return registry
