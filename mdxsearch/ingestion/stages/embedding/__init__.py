from .embedding import EmbeddedSection, EmbeddingStage, embedding_text

__all__ = ["EmbeddedSection", "EmbeddingStage", "embedding_text"]
