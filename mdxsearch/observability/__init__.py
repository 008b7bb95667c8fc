"""Tracing for the ingestion pipeline: trace context, obs helpers, sinks."""
