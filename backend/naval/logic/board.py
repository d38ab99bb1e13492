"""
Grid operations for local board views.

A grid is a list of rows of CellState values. These functions mutate only the
grid passed in and never allocate a replacement; callers that need the old
grid keep a copy (copy_grid) before calling them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from naval.logic.enums import CellState
from naval.logic.settings import DEFAULT_BOARD_SIZE

if TYPE_CHECKING:
    from collections.abc import Iterable

Coord = tuple[int, int]
Grid = list[list[CellState]]


def create_empty(size: int = DEFAULT_BOARD_SIZE) -> Grid:
    """Return a size x size grid with every cell empty."""
    return [[CellState.EMPTY] * size for _ in range(size)]


def copy_grid(grid: Grid) -> Grid:
    return [list(row) for row in grid]


def in_bounds(size: int, coord: Coord) -> bool:
    row, col = coord
    return 0 <= row < size and 0 <= col < size


def occupy(grid: Grid, cells: Iterable[Coord]) -> None:
    """Mark every cell in cells as holding a ship."""
    for row, col in cells:
        grid[row][col] = CellState.SHIP


def mark_result(grid: Grid, coord: Coord, *, hit: bool) -> None:
    """Mark an attacked cell as hit or miss."""
    row, col = coord
    grid[row][col] = CellState.HIT if hit else CellState.MISS


def replay_attacks(grid: Grid, attacks: Iterable[Coord]) -> list[tuple[Coord, bool]]:
    """
    Replay a list of incoming attacks against a grid that shows ship cells.

    Ship cells become hits, empty cells become misses, and cells that already
    carry a result are left alone, so replaying the same list again is a no-op.

    Returns:
        The cells newly marked by this call, each with whether it was a hit.

    """
    marked: list[tuple[Coord, bool]] = []
    for coord in attacks:
        row, col = coord
        cell = grid[row][col]
        if cell == CellState.SHIP:
            grid[row][col] = CellState.HIT
            marked.append((coord, True))
        elif cell == CellState.EMPTY:
            grid[row][col] = CellState.MISS
            marked.append((coord, False))
    return marked
