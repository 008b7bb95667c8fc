from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator

from ..trace.envelope import TraceEnvelope


class JsonlSink:
    """Append one JSON line per finished trace (one trace per document).

    `path_or_dir` may name the `.jsonl` file or the directory to hold
    `traces.jsonl`.
    """

    def __init__(self, path_or_dir: str | Path) -> None:
        p = Path(path_or_dir)
        self.path = p if p.suffix == ".jsonl" else p / "traces.jsonl"
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, envelope: TraceEnvelope) -> None:
        line = json.dumps(envelope.to_dict(), ensure_ascii=True, default=str)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def iter_records(self) -> Iterator[dict[str, Any]]:
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    yield json.loads(line)

    # ObsSink: only finished envelopes are persisted.
    def on_event(self, record: dict[str, Any]) -> None:
        return

    def on_span_end(self, record: dict[str, Any]) -> None:
        return

    def on_trace_end(self, envelope: TraceEnvelope) -> None:
        self.write(envelope)
