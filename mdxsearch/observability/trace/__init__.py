from .context import TraceContext
from .envelope import EventRecord, SpanRecord, TraceEnvelope, compute_aggregates

__all__ = ["TraceContext", "TraceEnvelope", "SpanRecord", "EventRecord", "compute_aggregates"]
