"""
Pydantic models for the shared game record.

The GameRecord is the single source of truth both players reconcile against.
It is stored by the records service and exchanged as camelCase JSON; every
model here is frozen, and a record that breaks one of the invariants checked
in GameRecord validation can neither be stored nor accepted by a client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from naval.logic.board import Coord, in_bounds
from naval.logic.catalog import is_fleet_complete
from naval.logic.enums import PLAYER_NUMBERS, GameStatus, opponent_of
from naval.logic.settings import GameRules


class _RecordModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


def _is_contiguous(positions: tuple[Coord, ...]) -> bool:
    rows = {row for row, _ in positions}
    cols = {col for _, col in positions}
    if len(rows) == 1:
        expected = [(positions[0][0], positions[0][1] + i) for i in range(len(positions))]
    elif len(cols) == 1:
        expected = [(positions[0][0] + i, positions[0][1]) for i in range(len(positions))]
    else:
        return False
    return list(positions) == expected


class Ship(_RecordModel):
    """A placed ship with its ordered cells and hit counter."""

    name: str = Field(min_length=1)
    positions: tuple[Coord, ...] = Field(min_length=1)
    hits: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_ship(self) -> Ship:
        if self.hits > len(self.positions):
            raise ValueError(f"{self.name} has {self.hits} hits but only {len(self.positions)} cells")
        if not _is_contiguous(self.positions):
            raise ValueError(f"{self.name} positions are not a contiguous run: {list(self.positions)}")
        return self

    @property
    def is_sunk(self) -> bool:
        return self.hits == len(self.positions)

    def occupies(self, coord: Coord) -> bool:
        return coord in self.positions


class Fleet(_RecordModel):
    """One player's placed ships (the record's player board)."""

    ships: tuple[Ship, ...] = ()

    @model_validator(mode="after")
    def _check_no_overlap(self) -> Fleet:
        seen: set[Coord] = set()
        for ship in self.ships:
            overlap = seen.intersection(ship.positions)
            if overlap:
                raise ValueError(f"{ship.name} overlaps another ship at {sorted(overlap)}")
            seen.update(ship.positions)
        return self

    @property
    def cells(self) -> frozenset[Coord]:
        return frozenset(coord for ship in self.ships for coord in ship.positions)

    @property
    def all_sunk(self) -> bool:
        """Win condition: a non-empty fleet whose every ship is sunk."""
        return bool(self.ships) and all(ship.is_sunk for ship in self.ships)

    def with_ship(self, ship: Ship) -> Fleet:
        return Fleet(ships=(*self.ships, ship))


class GameRecord(_RecordModel):
    """
    Authoritative shared state of one game.

    gameId and version are assigned by the store; version increases by one
    on every accepted update and backs conditional writes.
    """

    game_id: str = Field(min_length=1)
    version: int = Field(default=1, ge=1)
    rules: GameRules = Field(default_factory=GameRules)
    player1: str = Field(min_length=1)
    player2: str | None = None
    status: GameStatus = GameStatus.WAITING
    current_player: int | None = None
    player1_board: Fleet = Field(default_factory=Fleet)
    player2_board: Fleet = Field(default_factory=Fleet)
    player1_attacks: tuple[Coord, ...] = ()
    player2_attacks: tuple[Coord, ...] = ()
    winner: str | None = None

    @model_validator(mode="after")
    def _check_invariants(self) -> GameRecord:
        self._check_players()
        self._check_turn_fields()
        for player_number in PLAYER_NUMBERS:
            self._check_fleet(player_number)
            self._check_attacks(player_number)
        self._check_hit_counters()
        return self

    def _check_players(self) -> None:
        if self.player2 is not None and self.player2 == self.player1:
            raise ValueError("player names must differ")
        if self.status is GameStatus.WAITING and self.player2 is not None:
            raise ValueError("a waiting game has no second player")
        if self.status is not GameStatus.WAITING and self.player2 is None:
            raise ValueError(f"status {self.status.value} requires a second player")

    def _check_turn_fields(self) -> None:
        if self.status is GameStatus.PLAYING:
            if self.current_player not in PLAYER_NUMBERS:
                raise ValueError(f"currentPlayer must be 1 or 2 while playing, got {self.current_player}")
        elif self.current_player is not None:
            raise ValueError(f"currentPlayer must be empty while {self.status.value}")

        if self.status is GameStatus.FINISHED:
            if self.winner is None:
                raise ValueError("a finished game must have a winner")
            winner_number = self.player_number_of(self.winner)
            if winner_number is None:
                raise ValueError(f"winner {self.winner!r} is not a player of this game")
            if not self.fleet(opponent_of(winner_number)).all_sunk:
                raise ValueError("winner declared while the losing fleet still floats")
        elif self.winner is not None:
            raise ValueError(f"winner must be empty while {self.status.value}")

        if self.status in {GameStatus.PLAYING, GameStatus.FINISHED}:
            for player_number in PLAYER_NUMBERS:
                if not is_fleet_complete(self.rules, self.fleet(player_number)):
                    raise ValueError(f"status {self.status.value} requires both fleets to be complete")
        elif self.player1_attacks or self.player2_attacks:
            raise ValueError(f"attacks are not allowed while {self.status.value}")

    def _check_fleet(self, player_number: int) -> None:
        placed: dict[str, int] = {}
        for ship in self.fleet(player_number).ships:
            kind = self.rules.kind(ship.name)
            if kind is None:
                raise ValueError(f"{ship.name} is not in the ship catalog")
            if len(ship.positions) != kind.length:
                raise ValueError(f"{ship.name} must have {kind.length} cells, got {len(ship.positions)}")
            if not all(in_bounds(self.rules.board_size, coord) for coord in ship.positions):
                raise ValueError(f"{ship.name} lies outside the {self.rules.board_size}x{self.rules.board_size} board")
            placed[ship.name] = placed.get(ship.name, 0) + 1
            if placed[ship.name] > kind.count:
                raise ValueError(f"fleet of player {player_number} holds too many {ship.name} ships")

    def _check_attacks(self, player_number: int) -> None:
        attacks = self.attacks(player_number)
        if len(set(attacks)) != len(attacks):
            raise ValueError(f"attack list of player {player_number} contains duplicates")
        if not all(in_bounds(self.rules.board_size, coord) for coord in attacks):
            raise ValueError(f"attack list of player {player_number} leaves the board")

    def _check_hit_counters(self) -> None:
        """Every ship's hits equals the opponent's distinct attacks on its cells."""
        for player_number in PLAYER_NUMBERS:
            incoming = set(self.attacks(opponent_of(player_number)))
            for ship in self.fleet(player_number).ships:
                landed = len(incoming.intersection(ship.positions))
                if ship.hits != landed:
                    raise ValueError(f"{ship.name} of player {player_number} records {ship.hits} hits, expected {landed}")

    def fleet(self, player_number: int) -> Fleet:
        return self.player1_board if player_number == 1 else self.player2_board

    def attacks(self, player_number: int) -> tuple[Coord, ...]:
        return self.player1_attacks if player_number == 1 else self.player2_attacks

    def player_name(self, player_number: int) -> str | None:
        return self.player1 if player_number == 1 else self.player2

    def player_number_of(self, name: str) -> int | None:
        """Return the player number that belongs to name, or None."""
        if name == self.player1:
            return 1
        if self.player2 is not None and name == self.player2:
            return 2
        return None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class RecordChanges(_RecordModel):
    """
    Partial update of a GameRecord.

    Only fields set explicitly (including fields set to None to clear them)
    are sent to the store; to_wire() drops the top-level fields left unset
    and sends nested ships and rules in full.
    """

    rules: GameRules | None = None
    player1: str | None = None
    player2: str | None = None
    status: GameStatus | None = None
    current_player: int | None = None
    player1_board: Fleet | None = None
    player2_board: Fleet | None = None
    player1_attacks: tuple[Coord, ...] | None = None
    player2_attacks: tuple[Coord, ...] | None = None
    winner: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, include=set(self.model_fields_set))


# wire keys a partial update may carry; gameId and version belong to the store
MUTABLE_WIRE_FIELDS: frozenset[str] = frozenset(
    field.alias or name for name, field in RecordChanges.model_fields.items()
)
