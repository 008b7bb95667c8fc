"""Interfaces of the external collaborators (embedding provider, page sink)."""
from .embedding import Embedder, Embedding
from .sink import PageSink

__all__ = ["Embedder", "Embedding", "PageSink"]
