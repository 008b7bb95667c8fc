from __future__ import annotations

from pathlib import Path
from typing import Iterable


DEFAULT_EXTENSIONS: tuple[str, ...] = (".md", ".mdx")


def walk(root: str | Path) -> list[Path]:
    """List every file below `root`, depth-first.

    Entries are visited in name order so the result is stable across runs.
    Directories are descended; anything that is neither a file nor a
    directory (sockets, broken links) is skipped.
    """
    out: list[Path] = []
    for entry in sorted(Path(root).iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            out.extend(walk(entry))
        elif entry.is_file():
            out.append(entry)
    return out


def filter_documents(paths: Iterable[Path], extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> list[Path]:
    exts = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions}
    return [p for p in paths if p.suffix.lower() in exts]


def page_path(file_path: str | Path, data_dir: str | Path) -> str:
    """Derive the page key of a document: `data/docs/a.mdx` -> `/docs/a`."""
    p = Path(file_path)
    try:
        rel = p.resolve().relative_to(Path(data_dir).resolve())
    except ValueError:
        rel = Path(p.name)
    return "/" + rel.with_suffix("").as_posix()
