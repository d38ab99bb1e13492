"""
Enum definitions for naval battle game concepts.
"""

from enum import IntEnum, StrEnum


class CellState(IntEnum):
    """State of a single grid cell in a local board view."""

    EMPTY = 0
    SHIP = 1
    HIT = 2
    MISS = 3


class Orientation(StrEnum):
    """Direction a ship extends from its starting cell."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class GameStatus(StrEnum):
    """Lifecycle status of a shared game record."""

    WAITING = "waiting"
    SETUP = "setup"
    PLAYING = "playing"
    FINISHED = "finished"


# statuses a second player may still discover in the open games list
OPEN_STATUSES: tuple[GameStatus, ...] = (GameStatus.WAITING, GameStatus.SETUP)

PLAYER_NUMBERS: tuple[int, int] = (1, 2)


def opponent_of(player_number: int) -> int:
    """Return the other player's number."""
    if player_number not in PLAYER_NUMBERS:
        raise ValueError(f"Invalid player number {player_number}, expected 1 or 2")
    return 2 if player_number == 1 else 1
