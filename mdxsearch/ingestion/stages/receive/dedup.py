from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ....libs.interfaces.sink import PageSink
from ....observability.obs import api as obs


Policy = Literal["skip", "force"]
Decision = Literal["skip", "continue"]


@dataclass
class DedupDecision:
    decision: Decision
    page_path: str
    checksum: str
    stored_checksum: str | None

    @property
    def skipped(self) -> bool:
        return self.decision == "skip"


@dataclass
class DedupStage:
    """Skip pages whose stored checksum matches the freshly computed one."""

    sink: PageSink

    def run(self, page_path: str, checksum: str, policy: Policy = "skip") -> DedupDecision:
        if policy not in ("skip", "force"):
            raise ValueError(f"unknown dedup policy: {policy}")

        stored = self.sink.get_checksum(page_path)
        decision: Decision = "skip" if policy == "skip" and stored == checksum else "continue"

        if decision == "skip":
            obs.event("ingest.skipped", {"document": page_path, "checksum": checksum})
        return DedupDecision(
            decision=decision,
            page_path=page_path,
            checksum=checksum,
            stored_checksum=stored,
        )
