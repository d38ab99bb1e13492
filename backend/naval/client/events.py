"""Events the client reports to its UI while reconciling with the shared record."""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from naval.logic.board import Coord


class SyncEventType(StrEnum):
    """Types of sync events."""

    GAME_STARTED = "game_started"
    TURN_CHANGED = "turn_changed"
    OPPONENT_SHOT = "opponent_shot"
    GAME_FINISHED = "game_finished"


class SyncEvent(BaseModel):
    """Base class for all sync events."""

    model_config = ConfigDict(frozen=True)

    type: SyncEventType
    game_id: str


class GameStartedEvent(SyncEvent):
    """Both fleets are placed and the game entered playing."""

    type: Literal[SyncEventType.GAME_STARTED] = SyncEventType.GAME_STARTED
    my_turn: bool


class TurnChangedEvent(SyncEvent):
    """The turn moved between players while playing."""

    type: Literal[SyncEventType.TURN_CHANGED] = SyncEventType.TURN_CHANGED
    my_turn: bool


class OpponentShotEvent(SyncEvent):
    """An opponent attack landed on the local player's board for the first time."""

    type: Literal[SyncEventType.OPPONENT_SHOT] = SyncEventType.OPPONENT_SHOT
    coord: Coord
    hit: bool


class GameFinishedEvent(SyncEvent):
    """The game finished; reported once per game."""

    type: Literal[SyncEventType.GAME_FINISHED] = SyncEventType.GAME_FINISHED
    winner: str
    won: bool
