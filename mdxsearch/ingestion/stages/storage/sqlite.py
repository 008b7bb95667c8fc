from __future__ import annotations

import json
import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class PageRow:
    id: int
    path: str
    checksum: str | None


@dataclass(frozen=True)
class PageSectionRow:
    id: int
    page_id: int
    ordinal: int
    content: str
    token_count: int
    embedding: list[float]


@dataclass
class SqliteStore:
    """`PageSink` backed by a local SQLite file.

    Pages are unique by path; a NULL checksum marks a page whose sections
    were not (completely) stored.
    """

    db_path: Path

    def __post_init__(self) -> None:
        self.db_path = Path(self.db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS page (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    path TEXT NOT NULL UNIQUE,
                    checksum TEXT,
                    created_at REAL,
                    updated_at REAL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS page_section (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    page_id INTEGER NOT NULL,
                    ordinal INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    token_count INTEGER,
                    embedding TEXT,
                    created_at REAL,
                    FOREIGN KEY(page_id) REFERENCES page(id) ON DELETE CASCADE
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_page_section_page
                ON page_section(page_id, ordinal)
                """
            )

    # -- PageSink ----------------------------------------------------------

    def get_checksum(self, path: str) -> str | None:
        page = self.find_page(path)
        return page.checksum if page is not None else None

    def upsert_page(self, path: str) -> int:
        ts = time.time()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO page(path, checksum, created_at, updated_at)
                VALUES(?, NULL, ?, ?)
                ON CONFLICT(path) DO UPDATE SET checksum=NULL, updated_at=excluded.updated_at
                """,
                (path, ts, ts),
            )
            row = conn.execute("SELECT id FROM page WHERE path=?", (path,)).fetchone()
        return int(row["id"])

    def clear_sections(self, page_id: int) -> int:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM page_section WHERE page_id=?", (page_id,))
        return int(cur.rowcount or 0)

    def insert_section(
        self,
        page_id: int,
        *,
        ordinal: int,
        content: str,
        token_count: int,
        embedding: list[float],
    ) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO page_section(page_id, ordinal, content, token_count, embedding, created_at)
                VALUES(?, ?, ?, ?, ?, ?)
                """,
                (page_id, ordinal, content, token_count, json.dumps(embedding), time.time()),
            )
        return int(cur.lastrowid)

    def commit_checksum(self, page_id: int, checksum: str) -> None:
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE page SET checksum=?, updated_at=? WHERE id=?",
                (checksum, time.time(), page_id),
            )
            if cur.rowcount == 0:
                raise KeyError(f"page not found: id={page_id}")

    # -- reads -------------------------------------------------------------

    def find_page(self, path: str) -> PageRow | None:
        with self._connect() as conn:
            row = conn.execute("SELECT id, path, checksum FROM page WHERE path=?", (path,)).fetchone()
        if row is None:
            return None
        return PageRow(id=int(row["id"]), path=str(row["path"]), checksum=row["checksum"])

    def list_pages(self, *, pending_only: bool = False) -> list[PageRow]:
        sql = "SELECT id, path, checksum FROM page"
        if pending_only:
            sql += " WHERE checksum IS NULL"
        sql += " ORDER BY path"
        with self._connect() as conn:
            rows = conn.execute(sql).fetchall()
        return [PageRow(id=int(r["id"]), path=str(r["path"]), checksum=r["checksum"]) for r in rows]

    def fetch_sections(self, page_id: int) -> list[PageSectionRow]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, page_id, ordinal, content, token_count, embedding
                FROM page_section
                WHERE page_id=?
                ORDER BY ordinal, id
                """,
                (page_id,),
            ).fetchall()

        out: list[PageSectionRow] = []
        for r in rows:
            out.append(
                PageSectionRow(
                    id=int(r["id"]),
                    page_id=int(r["page_id"]),
                    ordinal=int(r["ordinal"]),
                    content=str(r["content"]),
                    token_count=int(r["token_count"] or 0),
                    embedding=_load_vector(r["embedding"]),
                )
            )
        return out

    def count_sections(self, page_id: int | None = None) -> int:
        with self._connect() as conn:
            if page_id is None:
                row = conn.execute("SELECT COUNT(*) AS c FROM page_section").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) AS c FROM page_section WHERE page_id=?", (page_id,)
                ).fetchone()
        return int(row["c"] if row else 0)


def _load_vector(raw: Any) -> list[float]:
    if not raw:
        return []
    return [float(v) for v in json.loads(raw)]
