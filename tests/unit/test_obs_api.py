from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from mdxsearch.observability.obs import api as obs
from mdxsearch.observability.trace.context import TraceContext
from mdxsearch.observability.trace.envelope import TraceEnvelope


@dataclass
class FakeSink:
    events: list[dict] = field(default_factory=list)
    span_ends: list[dict] = field(default_factory=list)
    trace_ends: list[TraceEnvelope] = field(default_factory=list)

    def on_event(self, record: dict) -> None:
        self.events.append(record)

    def on_span_end(self, record: dict) -> None:
        self.span_ends.append(record)

    def on_trace_end(self, envelope: TraceEnvelope) -> None:
        self.trace_ends.append(envelope)


def test_obs_api_outside_trace_is_noop() -> None:
    with obs.span("stage.x") as s:
        obs.event("ingest.sections", {"count": 1})
        obs.metric("embedding_tokens", 3)
    assert s is None


def test_obs_api_no_sink_no_crash() -> None:
    ctx = TraceContext.new("t-obs-1")
    with TraceContext.activate(ctx):
        with obs.span("stage.test"):
            obs.event("ingest.sections", {"count": 2})
            obs.metric("embedding_tokens", 12, {"embedder_id": "embedder.fake"})
        env = ctx.finish()

    (span,) = env.spans
    assert [e.kind for e in span.events] == ["ingest.sections", "metric"]
    assert span.events[1].attrs == {"name": "embedding_tokens", "value": 12, "embedder_id": "embedder.fake"}


def test_obs_api_with_sink_captures_records() -> None:
    sink = FakeSink()
    obs.set_sink(sink)

    ctx = TraceContext.new("t-obs-2")
    with TraceContext.activate(ctx):
        with obs.span("stage.test", {"p": "v"}):
            obs.event("ingest.skipped", {"document": "/a"})
        env = ctx.finish()

    assert sink.span_ends[0]["name"] == "stage.test"
    assert sink.span_ends[0]["trace_id"] == "t-obs-2"
    assert sink.events[0]["kind"] == "ingest.skipped"
    assert sink.events[0]["span_id"] == env.spans[0].span_id
    # finish() hands the envelope to the sink exactly once.
    assert sink.trace_ends == [env]


def test_with_stage_emits_start_end() -> None:
    ctx = TraceContext.new("t-stage-1")
    with TraceContext.activate(ctx):
        with obs.with_stage("stage.read", {"document": "/a"}):
            pass
        env = ctx.finish()

    (span,) = env.spans
    assert span.name == "stage.read"
    assert span.attrs == {"stage": "read", "document": "/a"}
    assert [e.kind for e in span.events] == ["stage.start", "stage.end"]


def test_with_stage_error_event() -> None:
    ctx = TraceContext.new("t-stage-2")
    with TraceContext.activate(ctx):
        with pytest.raises(RuntimeError):
            with obs.with_stage("embedding"):
                raise RuntimeError("provider down")
        env = ctx.finish()

    (span,) = env.spans
    assert span.status == "error"
    kinds = [e.kind for e in span.events]
    assert kinds[0] == "stage.start"
    assert "stage.error" in kinds
    assert "stage.end" in kinds
    err = next(e for e in span.events if e.kind == "stage.error")
    assert err.attrs["exc_type"] == "RuntimeError"
