from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from naval.client.settings import ClientSettings
from naval.client.state import LocalGameView
from naval.logic.enums import GameStatus, Orientation
from naval.logic.record import Fleet, GameRecord, Ship
from naval.logic.settings import GameRules, ShipKind
from naval.tests.mocks.record_store import InMemoryRecordStore

if TYPE_CHECKING:
    from collections.abc import Sequence

    from naval.logic.board import Coord


# ============================================================================
# Rules and record builders
# ============================================================================

# one two-cell ship per player on a 5x5 board: two hits win
DUEL_RULES = GameRules(board_size=5, ships=(ShipKind(name="Destroyer", length=2),))

# two ships per player on a 6x6 board
SKIRMISH_RULES = GameRules(
    board_size=6,
    ships=(ShipKind(name="Cruiser", length=3), ShipKind(name="Destroyer", length=2)),
)


def create_ship(
    name: str,
    start: Coord,
    length: int,
    orientation: Orientation = Orientation.HORIZONTAL,
    *,
    hits: int = 0,
) -> Ship:
    """Create a ship whose first cell is start."""
    row, col = start
    if orientation is Orientation.HORIZONTAL:
        positions = tuple((row, col + i) for i in range(length))
    else:
        positions = tuple((row + i, col) for i in range(length))
    return Ship(name=name, positions=positions, hits=hits)


def create_fleet(*ships: Ship) -> Fleet:
    return Fleet(ships=ships)


def create_record(
    *,
    game_id: str = "ABC123",
    version: int = 1,
    rules: GameRules = DUEL_RULES,
    player1: str = "Alice",
    player2: str | None = "Bob",
    status: GameStatus = GameStatus.SETUP,
    current_player: int | None = None,
    player1_board: Fleet | None = None,
    player2_board: Fleet | None = None,
    player1_attacks: Sequence[Coord] = (),
    player2_attacks: Sequence[Coord] = (),
    winner: str | None = None,
) -> GameRecord:
    """Create a GameRecord with sensible defaults for testing (a game in setup)."""
    return GameRecord(
        game_id=game_id,
        version=version,
        rules=rules,
        player1=player1,
        player2=player2,
        status=status,
        current_player=current_player,
        player1_board=player1_board or Fleet(),
        player2_board=player2_board or Fleet(),
        player1_attacks=tuple(player1_attacks),
        player2_attacks=tuple(player2_attacks),
        winner=winner,
    )


def create_playing_record(current_player: int = 1, **overrides: Any) -> GameRecord:  # noqa: ANN401
    """
    Create a duel in progress.

    Alice's Destroyer sits on (0,0)-(0,1) and Bob's on (2,2)-(2,3).
    """
    defaults: dict[str, Any] = {
        "status": GameStatus.PLAYING,
        "current_player": current_player,
        "player1_board": create_fleet(create_ship("Destroyer", (0, 0), 2)),
        "player2_board": create_fleet(create_ship("Destroyer", (2, 2), 2)),
    }
    defaults.update(overrides)
    return create_record(**defaults)


def create_view(record: GameRecord, player_number: int) -> LocalGameView:
    return LocalGameView.for_record(record, player_number)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def client_settings() -> ClientSettings:
    # long interval: tests drive reconciliation through tick() themselves
    return ClientSettings(poll_interval_seconds=3600, max_write_retries=2)
