"""Per-document ingestion pipeline and its stages."""
from .pipeline import IngestionPipeline, StageSpec, DEFAULT_STAGE_ORDER
from .models import IngestResult, StageContext
from .errors import EmbeddingProviderError, IngestionError, StageExecutionError

__all__ = [
    "IngestionPipeline",
    "StageSpec",
    "DEFAULT_STAGE_ORDER",
    "IngestResult",
    "StageContext",
    "IngestionError",
    "StageExecutionError",
    "EmbeddingProviderError",
]
