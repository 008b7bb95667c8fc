"""Ingestion stages (1 stage = 1 file)."""

from ..pipeline import DEFAULT_STAGE_ORDER, StageSpec
from .receive.dedup import DedupDecision, DedupStage
from .receive.discover import DEFAULT_EXTENSIONS, filter_documents, page_path, walk
from .receive.document import SourceDocument, read_document
from .sectioning.processor import ProcessedMdx, compute_checksum, process_mdx_for_search
from .embedding.embedding import EmbeddedSection, EmbeddingStage
from .storage.sqlite import SqliteStore
from .storage.upsert import UpsertResult, UpsertStage

__all__ = [
    "StageSpec",
    "DEFAULT_STAGE_ORDER",
    "DEFAULT_EXTENSIONS",
    "walk",
    "filter_documents",
    "page_path",
    "SourceDocument",
    "read_document",
    "ProcessedMdx",
    "compute_checksum",
    "process_mdx_for_search",
    "DedupStage",
    "DedupDecision",
    "EmbeddingStage",
    "EmbeddedSection",
    "SqliteStore",
    "UpsertStage",
    "UpsertResult",
]
