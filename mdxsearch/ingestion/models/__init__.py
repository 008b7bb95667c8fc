from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from ..errors import IngestionError
from ...observability.trace.envelope import TraceEnvelope


@dataclass
class StageContext:
    strategy_config_id: str
    trace_id: str
    stage: str
    document: str = ""


# (stage, percent, "start"|"end", payload)
ProgressCallback = Callable[[str, float, str, dict[str, Any] | None], None]


@dataclass
class IngestResult:
    """Outcome of one document's trip through the pipeline."""

    trace_id: str
    status: str  # ok|error
    document: str = ""
    output: Any | None = None
    error: IngestionError | None = None
    trace: TraceEnvelope | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"
