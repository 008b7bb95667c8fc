from .ingest import DocumentOutcome, IngestReport, IngestRunner, IngestState, build_ingestion_pipeline, build_runner

__all__ = [
    "DocumentOutcome",
    "IngestReport",
    "IngestRunner",
    "IngestState",
    "build_ingestion_pipeline",
    "build_runner",
]
