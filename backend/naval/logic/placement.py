"""
Ship placement validation.

can_place answers whether a ship fits without raising, so a UI can use it for
hover feedback; build_ship is the checked entry point that raises
InvalidPlacementError for the caller to surface.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from naval.logic.board import Coord, Grid, create_empty, occupy
from naval.logic.enums import CellState, Orientation
from naval.logic.exceptions import InvalidPlacementError
from naval.logic.record import Fleet, Ship

if TYPE_CHECKING:
    from naval.logic.settings import ShipKind


def ship_cells(row: int, col: int, length: int, orientation: Orientation) -> tuple[Coord, ...]:
    """Return the cells a ship of length covers when its first cell is (row, col)."""
    if orientation is Orientation.HORIZONTAL:
        return tuple((row, col + i) for i in range(length))
    return tuple((row + i, col) for i in range(length))


def can_place(board: Grid, row: int, col: int, length: int, orientation: Orientation) -> bool:
    """
    Check whether a ship fits at (row, col) on board.

    Rejects spans that run past the board edge in the chosen orientation,
    starts outside the board, and any span touching a non-empty cell.
    """
    size = len(board)
    if length < 1 or not (0 <= row < size and 0 <= col < size):
        return False
    if orientation is Orientation.HORIZONTAL:
        if col + length > size:
            return False
    elif row + length > size:
        return False
    return all(board[r][c] == CellState.EMPTY for r, c in ship_cells(row, col, length, orientation))


def build_ship(board: Grid, kind: ShipKind, row: int, col: int, orientation: Orientation) -> Ship:
    """
    Build a new unhit ship of the given kind at (row, col).

    Raises:
        InvalidPlacementError: If the ship would leave the board or overlap another ship

    """
    if not can_place(board, row, col, kind.length, orientation):
        raise InvalidPlacementError(f"Cannot place {kind.name} (size {kind.length}) {orientation.value} at ({row}, {col})")
    return Ship(name=kind.name, positions=ship_cells(row, col, kind.length, orientation))


def fleet_board(fleet: Fleet, size: int) -> Grid:
    """Return a fresh grid with every cell of the fleet marked as ship."""
    grid = create_empty(size)
    occupy(grid, fleet.cells)
    return grid
