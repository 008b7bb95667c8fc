from __future__ import annotations

import contextvars
import time
import traceback
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator

from .envelope import EventRecord, SpanRecord, TraceEnvelope, compute_aggregates


_ACTIVE: contextvars.ContextVar["TraceContext | None"] = contextvars.ContextVar("mdxsearch_trace", default=None)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


@dataclass
class TraceContext:
    """Collects the spans and events of one trace.

    The pipeline opens one trace per document; the runner opens one more
    for discovery. `finish()` seals the trace into a `TraceEnvelope` and
    hands it to the installed obs sink.
    """

    trace_id: str
    start_ts: float
    trace_type: str = "unknown"
    strategy_config_id: str = "unknown"
    document: str = ""
    # Insertion order is span start order.
    _spans: dict[str, SpanRecord] = field(default_factory=dict)
    _open: list[str] = field(default_factory=list)
    _events: list[EventRecord] = field(default_factory=list)

    @classmethod
    def new(
        cls,
        trace_id: str | None = None,
        *,
        trace_type: str = "unknown",
        strategy_config_id: str = "unknown",
        document: str = "",
    ) -> "TraceContext":
        return cls(
            trace_id=trace_id or _new_id("trace"),
            start_ts=time.time(),
            trace_type=trace_type,
            strategy_config_id=strategy_config_id,
            document=document,
        )

    @classmethod
    def current(cls) -> "TraceContext | None":
        return _ACTIVE.get()

    @classmethod
    @contextmanager
    def activate(cls, ctx: "TraceContext") -> Iterator["TraceContext"]:
        token = _ACTIVE.set(ctx)
        try:
            yield ctx
        finally:
            _ACTIVE.reset(token)

    def current_span(self) -> SpanRecord | None:
        return self._spans[self._open[-1]] if self._open else None

    @contextmanager
    def start_span(self, name: str, attrs: dict[str, Any] | None = None) -> Iterator[SpanRecord]:
        parent = self.current_span()
        span = SpanRecord(
            span_id=_new_id("span"),
            name=name,
            parent_span_id=parent.span_id if parent else None,
            start_ts=time.time(),
            attrs=dict(attrs or {}),
        )
        self._spans[span.span_id] = span
        self._open.append(span.span_id)
        try:
            yield span
        except Exception as e:
            span.status = "error"
            self.add_event(
                "error",
                {"exc_type": type(e).__name__, "message": str(e), "traceback": traceback.format_exc(limit=5)},
            )
            raise
        finally:
            if self._open and self._open[-1] == span.span_id:
                self._open.pop()
            span.end_ts = time.time()

    def add_event(self, kind: str, attrs: dict[str, Any] | None = None) -> EventRecord:
        ev = EventRecord(ts=time.time(), kind=kind, attrs=dict(attrs or {}))
        span = self.current_span()
        (span.events if span is not None else self._events).append(ev)
        return ev

    def finish(self) -> TraceEnvelope:
        if self._open:
            self._events.append(EventRecord(ts=time.time(), kind="warn.span_leak", attrs={"open_span_count": len(self._open)}))
            while self._open:
                leaked = self._spans[self._open.pop()]
                leaked.status = "error"
                leaked.end_ts = time.time()

        spans = list(self._spans.values())
        envelope = TraceEnvelope(
            trace_id=self.trace_id,
            start_ts=self.start_ts,
            end_ts=time.time(),
            trace_type=self.trace_type,
            status="error" if any(s.status == "error" for s in spans) else "ok",
            strategy_config_id=self.strategy_config_id,
            document=self.document,
            spans=spans,
            events=list(self._events),
        )
        envelope.aggregates = compute_aggregates(envelope)

        from ..obs import api as obs

        sink = obs.get_sink()
        if sink is not None:
            sink.on_trace_end(envelope)
        return envelope
