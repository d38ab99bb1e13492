"""SQLite-backed game record repository."""

from __future__ import annotations

import asyncio
import json
import secrets
import sqlite3
import string
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from naval.logic.record import GameRecord
from naval.logic.turn import merge_changes, new_record
from records.dal.record_repository import RecordNotFoundError, RecordRepository, VersionConflictError

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Mapping

    from naval.logic.enums import GameStatus
    from records.db.connection import Database

logger = structlog.get_logger()

GAME_ID_LENGTH = 6
_GAME_ID_ALPHABET = string.ascii_uppercase + string.digits
_MAX_ID_ATTEMPTS = 10


def generate_game_id() -> str:
    """Return a random six-character upper-case join code."""
    return "".join(secrets.choice(_GAME_ID_ALPHABET) for _ in range(GAME_ID_LENGTH))


class SqliteRecordRepository(RecordRepository):
    """
    SQLite implementation of RecordRepository.

    Stores each record as one JSON document with indexed status and version
    columns. Writes are serialized by a lock and updates are conditional on
    the version column, so at most one of two racing updates can succeed.
    """

    def __init__(self, db: Database, id_factory: Callable[[], str] = generate_game_id) -> None:
        self._db = db
        self._id_factory = id_factory
        self._lock = asyncio.Lock()

    async def list_records(self, statuses: Collection[GameStatus] | None = None, limit: int = 50) -> list[GameRecord]:
        """Retrieve records, newest first, optionally filtered by status."""
        if statuses is not None and not statuses:
            return []
        query = "SELECT data FROM game_records"
        params: list[Any] = []
        if statuses is not None:
            query += f" WHERE status IN ({', '.join('?' for _ in statuses)})"
            params.extend(str(status) for status in statuses)
        query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(limit)
        rows = self._db.connection.execute(query, params).fetchall()
        return [GameRecord.model_validate(json.loads(row[0])) for row in rows]

    async def create_record(self, changes: Mapping[str, Any]) -> GameRecord:
        """
        Store the first version of a new record under a fresh game id.

        Raises:
            InvalidActionError: If changes carry store-owned fields or a non-waiting status
            pydantic.ValidationError: If the record breaks a record invariant
            RuntimeError: If no unused game id was found

        """
        async with self._lock:
            for _ in range(_MAX_ID_ATTEMPTS):
                record = new_record(self._id_factory(), changes)
                now = datetime.now(tz=UTC).isoformat()
                try:
                    self._db.connection.execute(
                        "INSERT INTO game_records (id, status, version, created_at, updated_at, data) "
                        "VALUES (?, ?, ?, ?, ?, ?)",
                        (record.game_id, record.status.value, record.version, now, now, record.model_dump_json(by_alias=True)),
                    )
                    self._db.connection.commit()
                except sqlite3.IntegrityError:
                    self._db.connection.rollback()
                    logger.info("game id collision, retrying", game_id=record.game_id)
                    continue
                logger.info("game record created", game_id=record.game_id, player1=record.player1)
                return record
        raise RuntimeError(f"No unused game id after {_MAX_ID_ATTEMPTS} attempts")

    async def get_record(self, game_id: str) -> GameRecord | None:
        """Retrieve a single record by its game id."""
        row = self._db.connection.execute(
            "SELECT data FROM game_records WHERE id = ?",
            (game_id,),
        ).fetchone()
        if row is None:
            return None
        return GameRecord.model_validate(json.loads(row[0]))

    async def update_record(self, game_id: str, changes: Mapping[str, Any], expected_version: int) -> GameRecord:
        """
        Merge changes into the stored record if it is still at expected_version.

        Raises:
            RecordNotFoundError: If no record has this game id
            VersionConflictError: If the stored version differs from expected_version
            InvalidActionError: If the record is finished or changes touch fixed fields
            InvalidTransitionError: If the status change is not in the transition table
            pydantic.ValidationError: If the merged record breaks a record invariant

        """
        async with self._lock:
            current = await self.get_record(game_id)
            if current is None:
                raise RecordNotFoundError(game_id)
            if current.version != expected_version:
                raise VersionConflictError(game_id, current.version)

            merged = merge_changes(current, changes).model_copy(update={"version": current.version + 1})
            cursor = self._db.connection.execute(
                "UPDATE game_records SET status = ?, version = ?, updated_at = ?, data = ? WHERE id = ? AND version = ?",
                (
                    merged.status.value,
                    merged.version,
                    datetime.now(tz=UTC).isoformat(),
                    merged.model_dump_json(by_alias=True),
                    game_id,
                    expected_version,
                ),
            )
            self._db.connection.commit()
            if cursor.rowcount == 0:
                raise VersionConflictError(game_id, current.version)

        logger.info(
            "game record updated",
            game_id=game_id,
            version=merged.version,
            status=merged.status,
            fields=sorted(changes),
        )
        return merged
