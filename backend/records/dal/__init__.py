"""Data access layer: the record repository interface and its errors."""

from records.dal.record_repository import RecordNotFoundError, RecordRepository, VersionConflictError

__all__ = [
    "RecordNotFoundError",
    "RecordRepository",
    "VersionConflictError",
]
