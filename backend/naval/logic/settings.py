"""Game rules for a naval battle: board size and ship catalog."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_BOARD_SIZE = 10
MAX_BOARD_SIZE = 26


class ShipKind(BaseModel):
    """A kind of ship in the catalog."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    length: int = Field(ge=1)
    count: int = Field(default=1, ge=1)  # how many ships of this kind each fleet places


CLASSIC_FLEET: tuple[ShipKind, ...] = (
    ShipKind(name="Carrier", length=5),
    ShipKind(name="Battleship", length=4),
    ShipKind(name="Cruiser", length=3),
    ShipKind(name="Submarine", length=3),
    ShipKind(name="Destroyer", length=2),
)


class GameRules(BaseModel):
    """
    Board size and ship catalog a game is played with.

    Stored on the game record at creation so both players place and attack
    against the same grid and fleet composition. Defaults to the classic
    10x10 board with five ships.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    board_size: int = Field(default=DEFAULT_BOARD_SIZE, ge=2, le=MAX_BOARD_SIZE)
    ships: tuple[ShipKind, ...] = CLASSIC_FLEET

    @model_validator(mode="after")
    def _check_catalog(self) -> GameRules:
        if not self.ships:
            raise ValueError("ship catalog must not be empty")
        names = [kind.name for kind in self.ships]
        if len(set(names)) != len(names):
            raise ValueError(f"ship names must be unique, got {names}")
        too_long = [kind.name for kind in self.ships if kind.length > self.board_size]
        if too_long:
            raise ValueError(f"ships longer than board size {self.board_size}: {too_long}")
        if self.fleet_cells > self.board_size * self.board_size:
            raise ValueError("fleet does not fit on the board")
        return self

    @property
    def fleet_size(self) -> int:
        """Number of ships a complete fleet holds."""
        return sum(kind.count for kind in self.ships)

    @property
    def fleet_cells(self) -> int:
        """Number of cells a complete fleet occupies."""
        return sum(kind.length * kind.count for kind in self.ships)

    def kind(self, name: str) -> ShipKind | None:
        """Look up a catalog entry by ship name."""
        for kind in self.ships:
            if kind.name == name:
                return kind
        return None
