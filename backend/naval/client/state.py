"""Local, per-client view of the game being played."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from naval.logic.board import create_empty
from naval.logic.enums import GameStatus, opponent_of

if TYPE_CHECKING:
    from naval.logic.board import Grid
    from naval.logic.record import GameRecord
    from naval.logic.settings import GameRules


@dataclass
class LocalGameView:
    """
    Transient client state derived from the shared record.

    Never persisted. my_board shows the player's ships and the opponent's
    attack results; enemy_board shows only the results of the player's own
    attacks. status lags the record until the reconciler applies it, which is
    how status advances are detected exactly once.
    """

    game_id: str
    player_number: int
    record: GameRecord
    my_board: Grid
    enemy_board: Grid
    status: GameStatus = GameStatus.WAITING
    my_turn: bool = False
    finish_reported: bool = False

    @classmethod
    def for_record(cls, record: GameRecord, player_number: int) -> LocalGameView:
        size = record.rules.board_size
        return cls(
            game_id=record.game_id,
            player_number=player_number,
            record=record,
            my_board=create_empty(size),
            enemy_board=create_empty(size),
        )

    @property
    def rules(self) -> GameRules:
        return self.record.rules

    @property
    def opponent_number(self) -> int:
        return opponent_of(self.player_number)

    @property
    def player_name(self) -> str | None:
        return self.record.player_name(self.player_number)
