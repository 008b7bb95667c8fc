from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable


JsonDict = dict[str, Any]

TRACE_SCHEMA_VERSION = "trace.v1"
STAGE_PREFIX = "stage."

# Finite set of event kinds emitted by the ingestion pipeline.
ALLOWED_EVENT_KINDS: set[str] = {
    "stage.start",
    "stage.end",
    "stage.error",
    "ingest.discovered",
    "ingest.sections",
    "ingest.skipped",
    "ingest.page_upserted",
    "ingest.section_failed",
    "ingest.page_failed",
    "ingest.checksum_committed",
    "metric",
    "error",
    "warn.span_leak",
}


def _check_event_kind(kind: str) -> None:
    if kind not in ALLOWED_EVENT_KINDS:
        raise ValueError(f"invalid event.kind: {kind!r}")


def _check_span_name(name: str) -> None:
    if not name.startswith(STAGE_PREFIX):
        raise ValueError(f"invalid span.name (must start with {STAGE_PREFIX!r}): {name!r}")


@dataclass(frozen=True)
class EventRecord:
    ts: float
    kind: str
    attrs: JsonDict = field(default_factory=dict)

    def to_dict(self) -> JsonDict:
        return {"ts": self.ts, "kind": self.kind, "attrs": self.attrs}


@dataclass
class SpanRecord:
    span_id: str
    name: str
    parent_span_id: str | None
    start_ts: float
    end_ts: float | None = None
    status: str = "ok"  # ok|error
    attrs: JsonDict = field(default_factory=dict)
    events: list[EventRecord] = field(default_factory=list)

    @property
    def duration_ms(self) -> float | None:
        if self.end_ts is None:
            return None
        return round((self.end_ts - self.start_ts) * 1000.0, 3)

    def to_dict(self) -> JsonDict:
        return {
            "span_id": self.span_id,
            "name": self.name,
            "parent_span_id": self.parent_span_id,
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
            "status": self.status,
            "attrs": self.attrs,
            "events": [e.to_dict() for e in self.events],
        }


@dataclass
class TraceEnvelope:
    """One finished trace: a single document's trip through the pipeline."""

    trace_id: str
    start_ts: float
    end_ts: float
    trace_type: str = "unknown"  # ingestion|unknown
    status: str = "ok"  # ok|error
    strategy_config_id: str = "unknown"
    document: str = ""  # page path; empty for run-level traces
    spans: list[SpanRecord] = field(default_factory=list)
    events: list[EventRecord] = field(default_factory=list)  # trace-level events
    aggregates: JsonDict = field(default_factory=dict)
    schema_version: str = TRACE_SCHEMA_VERSION

    def to_dict(self) -> JsonDict:
        return {
            "schema_version": self.schema_version,
            "trace_id": self.trace_id,
            "trace_type": self.trace_type,
            "status": self.status,
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
            "strategy_config_id": self.strategy_config_id,
            "document": self.document,
            "spans": [s.to_dict() for s in self.spans],
            "events": [e.to_dict() for e in self.events],
            "aggregates": self.aggregates,
        }

    def validate(self) -> None:
        """Raise ValueError on an unknown event kind or a non-stage span name."""
        if not self.trace_id:
            raise ValueError("trace_id missing")
        for span in self.spans:
            _check_span_name(span.name)
        for kind in self.iter_event_kinds():
            _check_event_kind(kind)

    def iter_event_kinds(self) -> Iterable[str]:
        for s in self.spans:
            for ev in s.events:
                yield ev.kind
        for ev in self.events:
            yield ev.kind


def compute_aggregates(envelope: TraceEnvelope) -> JsonDict:
    stage_ms: dict[str, float] = {}
    for s in envelope.spans:
        if not s.name.startswith(STAGE_PREFIX) or s.duration_ms is None:
            continue
        stage = s.name[len(STAGE_PREFIX) :]
        stage_ms[stage] = round(stage_ms.get(stage, 0.0) + s.duration_ms, 3)

    return {
        "total_ms": round((envelope.end_ts - envelope.start_ts) * 1000.0, 3),
        "stage_ms": stage_ms,
        "span_count": len(envelope.spans),
        "error_spans": sum(1 for s in envelope.spans if s.status == "error"),
        "event_counts": dict(Counter(envelope.iter_event_kinds())),
    }
