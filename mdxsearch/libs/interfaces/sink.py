from __future__ import annotations

from typing import Protocol


class PageSink(Protocol):
    """Destination for processed pages and their sections.

    Pages are keyed by path. `upsert_page` always clears the stored checksum;
    `commit_checksum` is called only once every section has been stored, so
    a page left with no checksum still needs processing.
    """

    def get_checksum(self, path: str) -> str | None:
        ...

    def upsert_page(self, path: str) -> int:
        ...

    def clear_sections(self, page_id: int) -> int:
        ...

    def insert_section(
        self,
        page_id: int,
        *,
        ordinal: int,
        content: str,
        token_count: int,
        embedding: list[float],
    ) -> int:
        ...

    def commit_checksum(self, page_id: int, checksum: str) -> None:
        ...
