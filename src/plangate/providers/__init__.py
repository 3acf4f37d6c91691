"""Provider adapters - the only code that touches external systems."""

from .base import ProviderAdapter
from .http import HttpProvider
from .null import NullProvider
from .registry import ProviderRegistry, build_registry, create_provider

__all__ = [
    "ProviderAdapter",
    "HttpProvider",
    "NullProvider",
    "ProviderRegistry",
    "build_registry",
    "create_provider",
]
