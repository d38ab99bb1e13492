"""SQLite database layer: connection management and the record repository."""

from records.db.connection import Database
from records.db.record_repository import SqliteRecordRepository

__all__ = [
    "Database",
    "SqliteRecordRepository",
]
