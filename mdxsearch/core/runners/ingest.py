from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ...ingestion import IngestionPipeline, StageSpec
from ...ingestion.models import IngestResult, ProgressCallback
from ...ingestion.stages.embedding.embedding import EmbeddedSection, EmbeddingStage
from ...ingestion.stages.receive.dedup import DedupDecision, DedupStage
from ...ingestion.stages.receive.discover import filter_documents, page_path, walk
from ...ingestion.stages.receive.document import SourceDocument, read_document
from ...ingestion.stages.sectioning.processor import ProcessedMdx, process_mdx_for_search
from ...ingestion.stages.storage.sqlite import SqliteStore
from ...ingestion.stages.storage.upsert import UpsertResult, UpsertStage
from ...libs.interfaces.embedding import Embedder
from ...libs.interfaces.sink import PageSink
from ...libs.providers import register_builtin_providers
from ...libs.registry import ProviderRegistry
from ...observability.obs import api as obs
from ...observability.trace.context import TraceContext
from ..strategy import StrategyLoader, load_settings


@dataclass
class IngestState:
    file_path: Path
    data_dir: Path
    policy: str

    document: SourceDocument | None = None
    processed: ProcessedMdx | None = None
    dedup: DedupDecision | None = None
    embedded: list[EmbeddedSection] | None = None
    upsert: UpsertResult | None = None

    @property
    def skipped(self) -> bool:
        return self.dedup is not None and self.dedup.skipped

    @property
    def page_path(self) -> str:
        assert self.document is not None
        return self.document.page_path


@dataclass
class DocumentOutcome:
    page_path: str
    status: str  # ok|skipped|error
    sections: int = 0
    trace_id: str = ""
    error: str | None = None


@dataclass
class IngestReport:
    discovered: int = 0
    outcomes: list[DocumentOutcome] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def failed(self) -> list[DocumentOutcome]:
        return [o for o in self.outcomes if o.status == "error"]

    def summary(self) -> dict[str, Any]:
        return {
            "discovered": self.discovered,
            "ok": self.count("ok"),
            "skipped": self.count("skipped"),
            "error": self.count("error"),
            "sections": sum(o.sections for o in self.outcomes),
        }


def build_ingestion_pipeline(*, embedder: Embedder, sink: PageSink, embedder_id: str = "embedder.unknown") -> IngestionPipeline:
    """Wire the per-document stages around an embedder and a page sink."""
    dedup = DedupStage(sink=sink)
    embedding = EmbeddingStage(embedder=embedder, embedder_id=embedder_id)
    upsert = UpsertStage(sink=sink)

    def st_read(state: IngestState, ctx) -> IngestState:
        state.document = read_document(state.file_path, data_dir=state.data_dir)
        return state

    def st_process(state: IngestState, ctx) -> IngestState:
        assert state.document is not None
        state.processed = process_mdx_for_search(state.document.content)
        obs.event("ingest.sections", {"document": state.page_path, "count": len(state.processed.sections)})
        return state

    def st_dedup(state: IngestState, ctx) -> IngestState:
        assert state.processed is not None
        state.dedup = dedup.run(state.page_path, state.processed.checksum, policy=state.policy)  # type: ignore[arg-type]
        return state

    def st_page_upsert(state: IngestState, ctx) -> IngestState:
        if state.skipped:
            return state
        # The checksum stays NULL until every section has been stored.
        state.upsert = upsert.begin(state.page_path)
        return state

    def st_embedding(state: IngestState, ctx) -> IngestState:
        if state.skipped:
            return state
        assert state.processed is not None
        state.embedded = embedding.run(state.processed.sections, document=state.page_path)
        return state

    def st_section_insert(state: IngestState, ctx) -> IngestState:
        if state.skipped:
            return state
        assert state.upsert is not None and state.embedded is not None
        upsert.write_sections(state.upsert, state.embedded)
        return state

    def st_checksum_commit(state: IngestState, ctx) -> IngestState:
        if state.skipped:
            return state
        assert state.upsert is not None and state.processed is not None
        upsert.commit(state.upsert, state.processed.checksum)
        return state

    return IngestionPipeline(
        [
            StageSpec(name="read", fn=st_read),
            StageSpec(name="process", fn=st_process),
            StageSpec(name="dedup", fn=st_dedup),
            StageSpec(name="page_upsert", fn=st_page_upsert),
            StageSpec(name="embedding", fn=st_embedding),
            StageSpec(name="section_insert", fn=st_section_insert),
            StageSpec(name="checksum_commit", fn=st_checksum_commit),
        ]
    )


@dataclass
class IngestRunner:
    """Process every document under a data directory.

    Documents are handled one at a time and independently: a failure is
    recorded on the report and leaves that page with a NULL checksum, and
    the run moves on to the next document.
    """

    pipeline: IngestionPipeline
    strategy_config_id: str = "local.default"
    extensions: tuple[str, ...] = (".md", ".mdx")
    policy: str = "skip"

    def run(self, data_dir: str | Path, *, on_progress: ProgressCallback | None = None) -> IngestReport:
        root = Path(data_dir).expanduser().resolve()
        if not root.is_dir():
            raise FileNotFoundError(f"data dir not found: {root}")

        files = filter_documents(walk(root), self.extensions)
        report = IngestReport(discovered=len(files))
        _emit_discovered(root, len(files), self.strategy_config_id)

        for file_path in files:
            state = IngestState(file_path=file_path, data_dir=root, policy=self.policy)
            result = self.pipeline.run(
                state,
                strategy_config_id=self.strategy_config_id,
                document=page_path(file_path, root),
                on_progress=on_progress,
            )
            report.outcomes.append(_outcome(result))
        return report


def build_runner(settings_path: str | Path, *, strategy_config_id: str | None = None) -> tuple[IngestRunner, Path]:
    """Build a runner from `config/settings.yaml`; returns it with the data dir."""
    settings_path = Path(settings_path)
    settings = load_settings(settings_path)
    strategy_id = strategy_config_id or settings.defaults.strategy_config_id
    strategy = StrategyLoader(root=settings_path.resolve().parent.parent).load(strategy_id)

    registry = ProviderRegistry()
    register_builtin_providers(registry)
    embedder_id, embedder_params = strategy.resolve_provider("embedder")
    embedder = registry.create("embedder", embedder_id, **embedder_params)

    sink = SqliteStore(db_path=settings.paths.sqlite_dir / "pages.sqlite")
    pipeline = build_ingestion_pipeline(embedder=embedder, sink=sink, embedder_id=embedder_id)
    runner = IngestRunner(
        pipeline=pipeline,
        strategy_config_id=strategy.strategy_config_id,
        extensions=tuple(settings.ingest.extensions),
        policy=settings.ingest.policy,
    )
    return runner, settings.paths.data_dir


def _emit_discovered(root: Path, count: int, strategy_config_id: str) -> None:
    ctx = TraceContext.new(trace_type="ingestion", strategy_config_id=strategy_config_id)
    with TraceContext.activate(ctx):
        obs.event("ingest.discovered", {"data_dir": str(root), "count": count})
        ctx.finish()


def _outcome(result: IngestResult) -> DocumentOutcome:
    if not result.ok:
        return DocumentOutcome(
            page_path=result.document,
            status="error",
            trace_id=result.trace_id,
            error=str(result.error) if result.error is not None else "unknown",
        )

    state: IngestState = result.output
    assert state.processed is not None
    if state.skipped:
        return DocumentOutcome(page_path=result.document, status="skipped", trace_id=result.trace_id)
    return DocumentOutcome(
        page_path=result.document,
        status="ok",
        sections=len(state.processed.sections),
        trace_id=result.trace_id,
    )
