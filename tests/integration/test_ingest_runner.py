from __future__ import annotations

from pathlib import Path

import pytest

from mdxsearch.core.runners import IngestRunner, build_ingestion_pipeline, build_runner
from mdxsearch.ingestion.errors import EmbeddingProviderError
from mdxsearch.ingestion.stages.storage.sqlite import SqliteStore
from mdxsearch.libs.interfaces.embedding import Embedding
from mdxsearch.libs.providers.embedding import FakeEmbedder
from mdxsearch.observability.obs import api as obs
from mdxsearch.observability.sinks.jsonl import JsonlSink


class FlakyEmbedder(FakeEmbedder):
    """Fails on any section containing `fail_on`."""

    def __init__(self, fail_on: str) -> None:
        super().__init__(dim=4)
        self.fail_on = fail_on

    def embed(self, texts: list[str]) -> list[Embedding]:
        if any(self.fail_on in t for t in texts):
            raise EmbeddingProviderError(f"refused: {self.fail_on}")
        return super().embed(texts)


def _runner(store: SqliteStore, embedder=None, policy: str = "skip") -> IngestRunner:
    pipeline = build_ingestion_pipeline(embedder=embedder or FakeEmbedder(dim=4), sink=store, embedder_id="embedder.fake")
    return IngestRunner(pipeline=pipeline, policy=policy)


@pytest.mark.integration
def test_ingest_runner_stores_sections(tmp_path: Path, data_dir: Path) -> None:
    store = SqliteStore(db_path=tmp_path / "pages.sqlite")
    report = _runner(store).run(data_dir)

    assert report.discovered == 3
    assert report.summary() == {"discovered": 3, "ok": 3, "skipped": 0, "error": 0, "sections": 3}
    assert [p.path for p in store.list_pages()] == ["/docs/components", "/docs/guides/setup", "/docs/index"]

    index = store.find_page("/docs/index")
    assert index is not None and index.checksum is not None
    contents = [s.content for s in store.fetch_sections(index.id)]
    assert contents == ["# Welcome\n\nIntro paragraph.", "## Install\n\nRun the installer."]

    # A page with nothing but components is stored with zero sections.
    components = store.find_page("/docs/components")
    assert components is not None and components.checksum is not None
    assert store.count_sections(components.id) == 0


@pytest.mark.integration
def test_unchanged_pages_are_skipped(tmp_path: Path, data_dir: Path) -> None:
    store = SqliteStore(db_path=tmp_path / "pages.sqlite")
    _runner(store).run(data_dir)

    (data_dir / "docs" / "guides" / "setup.md").write_text("# Setup\n\nChanged.\n", encoding="utf-8")
    report = _runner(store).run(data_dir)

    assert report.count("skipped") == 2
    assert [o.page_path for o in report.outcomes if o.status == "ok"] == ["/docs/guides/setup"]
    page = store.find_page("/docs/guides/setup")
    assert page is not None
    assert [s.content for s in store.fetch_sections(page.id)] == ["# Setup\n\nChanged."]


@pytest.mark.integration
def test_force_policy_rewrites_without_duplicates(tmp_path: Path, data_dir: Path) -> None:
    store = SqliteStore(db_path=tmp_path / "pages.sqlite")
    _runner(store).run(data_dir)
    before = store.count_sections()

    report = _runner(store, policy="force").run(data_dir)

    assert report.count("skipped") == 0
    assert store.count_sections() == before


@pytest.mark.integration
def test_failure_is_isolated_and_leaves_checksum_null(tmp_path: Path, data_dir: Path) -> None:
    store = SqliteStore(db_path=tmp_path / "pages.sqlite")
    report = _runner(store, embedder=FlakyEmbedder("Install")).run(data_dir)

    assert report.count("error") == 1
    (failed,) = report.failed
    assert failed.page_path == "/docs/index"
    assert "embedding" in (failed.error or "")
    assert report.count("ok") == 2

    page = store.find_page("/docs/index")
    assert page is not None
    assert page.checksum is None
    assert [p.path for p in store.list_pages(pending_only=True)] == ["/docs/index"]

    # The next run retries the page and leaves one copy of each section.
    retry = _runner(store).run(data_dir)
    assert [o.page_path for o in retry.outcomes if o.status == "ok"] == ["/docs/index"]
    assert store.count_sections(page.id) == 2
    assert store.get_checksum("/docs/index") is not None


@pytest.mark.integration
def test_ingest_runner_missing_data_dir(tmp_path: Path) -> None:
    store = SqliteStore(db_path=tmp_path / "pages.sqlite")
    with pytest.raises(FileNotFoundError):
        _runner(store).run(tmp_path / "nope")


@pytest.mark.integration
def test_traces_written_per_document(tmp_path: Path, data_dir: Path) -> None:
    sink = JsonlSink(tmp_path / "logs")
    obs.set_sink(sink)

    store = SqliteStore(db_path=tmp_path / "pages.sqlite")
    report = _runner(store).run(data_dir)

    records = list(sink.iter_records())
    # One trace for discovery, then one per document.
    assert len(records) == 1 + report.discovered
    assert records[0]["events"][0]["kind"] == "ingest.discovered"
    doc_traces = records[1:]
    assert all(r["status"] == "ok" for r in doc_traces)
    assert [s["name"] for s in doc_traces[0]["spans"]] == [
        "stage.read",
        "stage.process",
        "stage.dedup",
        "stage.page_upsert",
        "stage.embedding",
        "stage.section_insert",
        "stage.checksum_commit",
    ]


@pytest.mark.integration
def test_build_runner_from_settings(tmp_path: Path, data_dir: Path) -> None:
    (tmp_path / "config" / "strategies").mkdir(parents=True)
    (tmp_path / "config" / "settings.yaml").write_text(
        "paths:\n  data_dir: data\n  sqlite_dir: state\n  logs_dir: logs\n",
        encoding="utf-8",
    )
    (tmp_path / "config" / "strategies" / "local.default.yaml").write_text(
        "providers:\n  embedder:\n    provider_id: embedder.fake\n    params:\n      dim: 3\n",
        encoding="utf-8",
    )

    runner, resolved = build_runner(tmp_path / "config" / "settings.yaml")
    assert resolved == data_dir.resolve()

    report = runner.run(resolved)
    assert report.count("ok") == 3
    store = SqliteStore(db_path=tmp_path / "state" / "pages.sqlite")
    page = store.find_page("/docs/guides/setup")
    assert page is not None
    assert len(store.fetch_sections(page.id)[0].embedding) == 3
