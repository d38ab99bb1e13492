"""Abstract interface for shared game record persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from naval.logic.enums import GameStatus
    from naval.logic.record import GameRecord


class RecordNotFoundError(Exception):
    """No record is stored under the requested game id."""

    def __init__(self, game_id: str) -> None:
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")


class VersionConflictError(Exception):
    """A conditional update named a version other than the stored one."""

    def __init__(self, game_id: str, current_version: int) -> None:
        self.game_id = game_id
        self.current_version = current_version
        super().__init__(f"Game {game_id} is at version {current_version}")


class RecordRepository(ABC):
    """
    Abstract interface for game record persistence.

    Changes are given in wire (camelCase) keys. Implementations validate every
    record they write, so a stored record always satisfies the record
    invariants and the status transition table.
    """

    @abstractmethod
    async def list_records(self, statuses: Collection[GameStatus] | None = None, limit: int = 50) -> list[GameRecord]: ...

    @abstractmethod
    async def create_record(self, changes: Mapping[str, Any]) -> GameRecord: ...

    @abstractmethod
    async def get_record(self, game_id: str) -> GameRecord | None: ...

    @abstractmethod
    async def update_record(self, game_id: str, changes: Mapping[str, Any], expected_version: int) -> GameRecord: ...
