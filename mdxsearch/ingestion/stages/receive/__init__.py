from .dedup import DedupDecision, DedupStage
from .discover import DEFAULT_EXTENSIONS, filter_documents, page_path, walk
from .document import SourceDocument, read_document

__all__ = [
    "DEFAULT_EXTENSIONS",
    "DedupDecision",
    "DedupStage",
    "SourceDocument",
    "filter_documents",
    "page_path",
    "read_document",
    "walk",
]
