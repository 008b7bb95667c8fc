from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .discover import page_path


@dataclass(frozen=True)
class SourceDocument:
    file_path: Path
    page_path: str
    content: str


def read_document(file_path: str | Path, *, data_dir: str | Path) -> SourceDocument:
    p = Path(file_path)
    return SourceDocument(
        file_path=p,
        page_path=page_path(p, data_dir),
        content=p.read_text(encoding="utf-8"),
    )
