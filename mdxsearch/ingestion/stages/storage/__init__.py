from .sqlite import PageRow, PageSectionRow, SqliteStore
from .upsert import UpsertResult, UpsertStage

__all__ = ["PageRow", "PageSectionRow", "SqliteStore", "UpsertResult", "UpsertStage"]
