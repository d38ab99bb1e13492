"""
Game lifecycle state machine and the record changes each player action produces.

The status of a game only moves forward through an explicit transition table:

    waiting -> setup -> playing -> finished
                        playing -> playing   (attack without a win)

Every function here is pure. Action builders validate the action against the
current record and return a RecordChanges for the caller to submit as one
conditional update; merge_changes is the store-side counterpart that applies a
partial update and rejects anything the table or the record invariants forbid.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from naval.logic.attack import AttackResolution, resolve_attack
from naval.logic.board import Coord, in_bounds
from naval.logic.catalog import is_fleet_complete, next_ship_kind
from naval.logic.enums import GameStatus, Orientation, opponent_of
from naval.logic.exceptions import (
    InvalidActionError,
    InvalidTransitionError,
    OutOfTurnError,
    RepeatAttackError,
    StateInconsistencyError,
)
from naval.logic.placement import build_ship, fleet_board
from naval.logic.record import MUTABLE_WIRE_FIELDS, GameRecord, RecordChanges
from naval.logic.settings import GameRules

if TYPE_CHECKING:
    from collections.abc import Mapping

    from naval.logic.record import Ship

TRANSITIONS: dict[GameStatus, frozenset[GameStatus]] = {
    GameStatus.WAITING: frozenset({GameStatus.SETUP}),
    GameStatus.SETUP: frozenset({GameStatus.PLAYING}),
    GameStatus.PLAYING: frozenset({GameStatus.PLAYING, GameStatus.FINISHED}),
    GameStatus.FINISHED: frozenset(),
}

# fixed at creation; later updates may not touch them
_CREATION_ONLY_FIELDS = frozenset({"rules", "player1"})


def ensure_transition(current: GameStatus, target: GameStatus) -> None:
    """
    Reject a status change that is not in the transition table.

    An update that leaves the status unchanged is allowed in every status
    except finished, which accepts no updates at all.

    Raises:
        InvalidTransitionError: If current -> target is not allowed

    """
    if target is current and current is not GameStatus.FINISHED:
        return
    if target not in TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)


def _require_name(player_name: str) -> str:
    name = player_name.strip()
    if not name:
        raise InvalidActionError("Please enter your name")
    return name


def creation_changes(player_name: str, rules: GameRules | None = None) -> RecordChanges:
    """Return the initial fields of a new game created by player_name."""
    return RecordChanges(
        rules=rules or GameRules(),
        player1=_require_name(player_name),
        status=GameStatus.WAITING,
    )


def join_changes(record: GameRecord, player_name: str) -> RecordChanges:
    """
    Return the changes for player_name joining as the second player.

    Raises:
        InvalidActionError: If the name is empty, already used by the creator,
            or the game already has a second player

    """
    name = _require_name(player_name)
    if record.status is not GameStatus.WAITING or record.player2 is not None:
        raise InvalidActionError(f"Game {record.game_id} is no longer open for joining")
    if name == record.player1:
        raise InvalidActionError(f"Name {name!r} is already taken in this game")
    ensure_transition(record.status, GameStatus.SETUP)
    return RecordChanges(player2=name, status=GameStatus.SETUP)


def can_act(record: GameRecord, player_number: int) -> bool:
    """
    Check whether a player may act now.

    In setup a player acts while their own fleet is incomplete; while playing,
    only the player holding the turn acts. No one acts in any other status.
    """
    if record.status is GameStatus.SETUP:
        return not is_fleet_complete(record.rules, record.fleet(player_number))
    if record.status is GameStatus.PLAYING:
        return record.current_player == player_number
    return False


def placement_changes(
    record: GameRecord,
    player_number: int,
    row: int,
    col: int,
    orientation: Orientation,
) -> tuple[Ship, RecordChanges]:
    """
    Place the player's next catalog ship with its first cell at (row, col).

    When this placement completes the player's fleet and the opponent's fleet
    is already complete, the game moves to playing and player 1 takes the
    first turn, whichever player finished placing first.

    Returns:
        The placed ship and the record changes to submit

    Raises:
        InvalidActionError: If the game is not in setup or the fleet is already complete
        InvalidPlacementError: If the ship leaves the board or overlaps another ship

    """
    if record.status is not GameStatus.SETUP:
        raise InvalidActionError("Ships can only be placed during setup")
    fleet = record.fleet(player_number)
    kind = next_ship_kind(record.rules, fleet)
    if kind is None:
        raise InvalidActionError("All ships are already placed")

    ship = build_ship(fleet_board(fleet, record.rules.board_size), kind, row, col, orientation)
    new_fleet = fleet.with_ship(ship)
    updates: dict[str, Any] = {f"player{player_number}_board": new_fleet}

    opponent_fleet = record.fleet(opponent_of(player_number))
    if is_fleet_complete(record.rules, new_fleet) and is_fleet_complete(record.rules, opponent_fleet):
        ensure_transition(record.status, GameStatus.PLAYING)
        updates["status"] = GameStatus.PLAYING
        updates["current_player"] = 1
    return ship, RecordChanges(**updates)


def attack_changes(record: GameRecord, player_number: int, coord: Coord) -> tuple[AttackResolution, RecordChanges]:
    """
    Resolve an attack by player_number and build the resulting record changes.

    Without a win the turn passes to the opponent. When the attack sinks the
    opponent's last ship the game finishes on this same update: currentPlayer
    is cleared and the attacker becomes the winner.

    Raises:
        InvalidActionError: If the game is not being played or coord is off the board
        OutOfTurnError: If the opponent holds the turn
        RepeatAttackError: If the player already attacked coord
        StateInconsistencyError: If the opponent's fleet is missing

    """
    if record.status is GameStatus.FINISHED:
        raise InvalidActionError("Game is over")
    if record.status is not GameStatus.PLAYING:
        raise InvalidActionError("Game has not started yet")
    if record.current_player != player_number:
        raise OutOfTurnError("Not your turn")
    if not in_bounds(record.rules.board_size, coord):
        raise InvalidActionError(f"({coord[0]}, {coord[1]}) is outside the board")

    opponent = opponent_of(player_number)
    defender_fleet = record.fleet(opponent)
    if not defender_fleet.ships:
        raise StateInconsistencyError(f"fleet of player {opponent} is missing in game {record.game_id}")

    resolution = resolve_attack(record.attacks(player_number), coord, defender_fleet)
    if resolution.already_attacked:
        raise RepeatAttackError("Already attacked this position")

    updates: dict[str, Any] = {
        f"player{player_number}_attacks": resolution.attacks,
        f"player{opponent}_board": resolution.fleet,
    }
    if resolution.all_sunk:
        ensure_transition(record.status, GameStatus.FINISHED)
        updates.update(status=GameStatus.FINISHED, current_player=None, winner=record.player_name(player_number))
    else:
        ensure_transition(record.status, GameStatus.PLAYING)
        updates.update(status=GameStatus.PLAYING, current_player=opponent)
    return resolution, RecordChanges(**updates)


def new_record(game_id: str, changes: Mapping[str, Any]) -> GameRecord:
    """
    Build the first version of a record from creation changes in wire keys.

    Raises:
        InvalidActionError: If changes carry store-owned fields or the game
            does not start out waiting for a second player
        pydantic.ValidationError: If the record breaks a record invariant

    """
    forbidden = set(changes) - MUTABLE_WIRE_FIELDS
    if forbidden:
        raise InvalidActionError(f"Fields cannot be set on creation: {sorted(forbidden)}")
    record = GameRecord.model_validate({**changes, "gameId": game_id, "version": 1})
    if record.status is not GameStatus.WAITING:
        raise InvalidActionError("A new game must start waiting for a second player")
    return record


def merge_changes(record: GameRecord, changes: Mapping[str, Any]) -> GameRecord:
    """
    Apply a partial update given in wire (camelCase) keys to a stored record.

    The version is left untouched; the store bumps it when it writes.

    Raises:
        InvalidActionError: If the record is finished or changes touch fields
            that cannot be updated
        InvalidTransitionError: If the status change is not in the table
        pydantic.ValidationError: If the merged record breaks a record invariant

    """
    if record.status is GameStatus.FINISHED:
        raise InvalidActionError(f"Game {record.game_id} is finished and can no longer change")
    forbidden = set(changes) - (MUTABLE_WIRE_FIELDS - _CREATION_ONLY_FIELDS)
    if forbidden:
        raise InvalidActionError(f"Fields cannot be updated: {sorted(forbidden)}")
    if record.player2 is not None and changes.get("player2", record.player2) != record.player2:
        raise InvalidActionError("The second player cannot be replaced")

    data = record.to_wire()
    data.update(changes)
    merged = GameRecord.model_validate(data)
    ensure_transition(record.status, merged.status)
    return merged
