"""Player views derived from the shared record."""

from __future__ import annotations

from typing import TYPE_CHECKING

from naval.logic.board import Grid, create_empty, mark_result, replay_attacks
from naval.logic.enums import opponent_of
from naval.logic.placement import fleet_board

if TYPE_CHECKING:
    from naval.logic.record import GameRecord


def own_board(record: GameRecord, player_number: int) -> Grid:
    """Return the player's own fleet with the opponent's attacks replayed on it."""
    grid = fleet_board(record.fleet(player_number), record.rules.board_size)
    replay_attacks(grid, record.attacks(opponent_of(player_number)))
    return grid


def enemy_board(record: GameRecord, player_number: int) -> Grid:
    """
    Return the player's view of the opponent's board.

    Only the results of the player's own attacks are shown; opponent ship
    cells that were never hit stay empty.
    """
    grid = create_empty(record.rules.board_size)
    opponent_cells = record.fleet(opponent_of(player_number)).cells
    for coord in record.attacks(player_number):
        mark_result(grid, coord, hit=coord in opponent_cells)
    return grid
