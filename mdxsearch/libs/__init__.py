"""Provider interfaces, registry, and built-in providers."""
from .registry import (
    ProviderAlreadyRegisteredError,
    ProviderNotFoundError,
    ProviderRegistry,
    ProviderRegistryError,
)

__all__ = [
    "ProviderRegistry",
    "ProviderRegistryError",
    "ProviderAlreadyRegisteredError",
    "ProviderNotFoundError",
]
