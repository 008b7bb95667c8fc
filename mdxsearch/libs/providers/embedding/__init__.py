from .fake_embedder import FakeEmbedder
from .openai_embedder import OpenAIEmbedder

__all__ = ["FakeEmbedder", "OpenAIEmbedder"]
