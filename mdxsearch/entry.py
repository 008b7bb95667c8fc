from __future__ import annotations

import os
import sys
from pathlib import Path

from .core.runners import IngestReport, build_runner
from .core.strategy import load_settings
from .observability.obs import api as obs
from .observability.sinks.jsonl import JsonlSink


def build_observability(settings_path: str | Path) -> JsonlSink:
    settings = load_settings(settings_path)
    sink = JsonlSink(settings.paths.logs_dir)
    obs.set_sink(sink)
    return sink


def ingest(settings_path: str | Path, *, strategy_config_id: str | None = None) -> IngestReport:
    """Run one ingestion pass over the configured data dir."""
    _ = build_observability(settings_path)
    runner, data_dir = build_runner(settings_path, strategy_config_id=strategy_config_id)
    return runner.run(data_dir)


def main() -> None:
    settings_path = os.environ.get("MDXSEARCH_SETTINGS_PATH", "config/settings.yaml")
    strategy_config_id = os.environ.get("MDXSEARCH_STRATEGY") or None

    report = ingest(settings_path, strategy_config_id=strategy_config_id)
    summary = report.summary()
    print(
        "discovered={discovered} ok={ok} skipped={skipped} error={error} sections={sections}".format(**summary)
    )
    for outcome in report.failed:
        print(f"failed: {outcome.page_path}: {outcome.error}", file=sys.stderr)
    if report.failed:
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
