from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable

from .errors import StageExecutionError
from .models import IngestResult, ProgressCallback, StageContext
from ..observability.obs import api as obs
from ..observability.trace.context import TraceContext


@dataclass
class StageSpec:
    name: str
    fn: Callable[[Any, StageContext], Any]


DEFAULT_STAGE_ORDER: list[str] = [
    "read",
    "process",
    "dedup",
    "page_upsert",
    "embedding",
    "section_insert",
    "checksum_commit",
]


class IngestionPipeline:
    """Runs the stages for a single document inside its own trace.

    The first failing stage stops the run; the error is reported on the
    result instead of propagating, so callers can move on to the next
    document.
    """

    def __init__(self, stages: Iterable[StageSpec]) -> None:
        self._stages = list(stages)

    @property
    def stage_names(self) -> list[str]:
        return [s.name for s in self._stages]

    def run(
        self,
        input_data: Any,
        strategy_config_id: str,
        *,
        document: str = "",
        on_progress: ProgressCallback | None = None,
    ) -> IngestResult:
        ctx = TraceContext.new(trace_type="ingestion", strategy_config_id=strategy_config_id, document=document)
        with TraceContext.activate(ctx):
            data = input_data
            total = len(self._stages) or 1

            for idx, stage in enumerate(self._stages):
                try:
                    data = self._run_stage(
                        stage,
                        data,
                        StageContext(
                            strategy_config_id=strategy_config_id,
                            trace_id=ctx.trace_id,
                            stage=stage.name,
                            document=document,
                        ),
                        on_progress=on_progress,
                        index=idx,
                        total=total,
                    )
                except StageExecutionError as e:
                    obs.event("ingest.page_failed", {"document": document, "stage": e.stage, "message": e.message})
                    return IngestResult(
                        trace_id=ctx.trace_id,
                        status="error",
                        document=document,
                        error=e,
                        trace=ctx.finish(),
                    )

            return IngestResult(
                trace_id=ctx.trace_id,
                status="ok",
                document=document,
                output=data,
                trace=ctx.finish(),
            )

    def _run_stage(
        self,
        stage: StageSpec,
        data: Any,
        stage_ctx: StageContext,
        *,
        on_progress: ProgressCallback | None,
        index: int,
        total: int,
    ) -> Any:
        payload = {"index": index, "total": total}
        if on_progress is not None:
            on_progress(stage.name, _percent(index, total), "start", payload)

        try:
            with obs.with_stage(stage.name, {"document": stage_ctx.document}):
                return stage.fn(data, stage_ctx)
        except Exception as e:
            raise StageExecutionError(stage.name, str(e)) from e
        finally:
            if on_progress is not None:
                on_progress(stage.name, _percent(index + 1, total), "end", payload)


def _percent(index: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round((index / total) * 100.0, 2)
