from __future__ import annotations

from ..registry import ProviderRegistry
from .embedding.fake_embedder import FakeEmbedder
from .embedding.openai_embedder import OpenAIEmbedder


def register_builtin_providers(registry: ProviderRegistry) -> None:
    """Register the embedding providers selectable from strategy configs."""

    registry.register("embedder", "embedder.fake", FakeEmbedder)
    registry.register("embedder", "embedder.openai", OpenAIEmbedder)
