from __future__ import annotations

from dataclasses import dataclass

from ....libs.interfaces.sink import PageSink
from ....observability.obs import api as obs
from ..embedding.embedding import EmbeddedSection


@dataclass
class UpsertResult:
    page_id: int
    sections_cleared: int = 0
    sections_written: int = 0
    committed: bool = False


@dataclass
class UpsertStage:
    """Writes one page in three steps: begin, write sections, commit.

    `begin` clears the page checksum and drops the sections of any previous
    run; `commit` stores the checksum and must only follow a complete
    `write_sections`.
    """

    sink: PageSink

    def begin(self, page_path: str) -> UpsertResult:
        page_id = self.sink.upsert_page(page_path)
        cleared = self.sink.clear_sections(page_id)
        obs.event("ingest.page_upserted", {"document": page_path, "page_id": page_id, "sections_cleared": cleared})
        return UpsertResult(page_id=page_id, sections_cleared=cleared)

    def write_sections(self, result: UpsertResult, sections: list[EmbeddedSection]) -> UpsertResult:
        for s in sections:
            self.sink.insert_section(
                result.page_id,
                ordinal=s.ordinal,
                content=s.content,
                token_count=s.token_count,
                embedding=s.embedding,
            )
            result.sections_written += 1
        return result

    def commit(self, result: UpsertResult, checksum: str) -> UpsertResult:
        self.sink.commit_checksum(result.page_id, checksum)
        result.committed = True
        obs.event("ingest.checksum_committed", {"page_id": result.page_id, "checksum": checksum})
        return result
