from __future__ import annotations

from typing import Any, Callable


class ProviderRegistryError(RuntimeError):
    pass


class ProviderAlreadyRegisteredError(ProviderRegistryError):
    pass


class ProviderNotFoundError(ProviderRegistryError):
    pass


class ProviderRegistry:
    """Maps `(kind, provider_id)` to a constructor, e.g. `("embedder", "embedder.fake")`."""

    def __init__(self) -> None:
        self._ctors: dict[tuple[str, str], Callable[..., Any]] = {}

    def register(self, kind: str, provider_id: str, ctor: Callable[..., Any]) -> None:
        if not isinstance(kind, str) or not kind:
            raise ValueError("kind must be a non-empty string")
        if not isinstance(provider_id, str) or not provider_id:
            raise ValueError("provider_id must be a non-empty string")
        if not callable(ctor):
            raise TypeError("ctor must be callable")
        if (kind, provider_id) in self._ctors:
            raise ProviderAlreadyRegisteredError(f"{kind}:{provider_id} already registered")
        self._ctors[(kind, provider_id)] = ctor

    def has(self, kind: str, provider_id: str) -> bool:
        return (kind, provider_id) in self._ctors

    def provider_ids(self, kind: str) -> list[str]:
        return sorted(pid for k, pid in self._ctors if k == kind)

    def create(self, kind: str, provider_id: str, **kwargs: Any) -> Any:
        try:
            ctor = self._ctors[(kind, provider_id)]
        except KeyError as exc:
            raise ProviderNotFoundError(f"{kind}:{provider_id} not found") from exc
        return ctor(**kwargs)
