"""
Periodic reconciliation of the local view with the shared record.

Each client polls the store on a fixed interval and merges the facts only the
opponent can create (attacks against the local board, turn hand-over, game
end) into its LocalGameView. Reconciliation only reads: the player's own
placements and attacks are written by PlayerSession, which feeds the record
returned by its write through the same apply_record merge.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

from naval.client.events import (
    GameFinishedEvent,
    GameStartedEvent,
    OpponentShotEvent,
    SyncEvent,
    TurnChangedEvent,
)
from naval.client.settings import DEFAULT_POLL_INTERVAL_SECONDS
from naval.logic.board import occupy, replay_attacks
from naval.logic.enums import CellState, GameStatus
from naval.logic.exceptions import StateInconsistencyError, SyncError
from naval.logic.views import enemy_board

if TYPE_CHECKING:
    from naval.client.state import LocalGameView
    from naval.client.store import RecordStore
    from naval.logic.record import GameRecord

logger = structlog.get_logger()

EventCallback = Callable[[SyncEvent], Awaitable[None]]

_STATUS_ORDER: dict[GameStatus, int] = {status: index for index, status in enumerate(GameStatus)}


class SyncReconciler:
    """
    Poll the store for one game and keep a LocalGameView in step with it.

    The poll loop runs as a single asyncio task. It ends by itself once the
    game's end has been reported, and stop() cancels it whenever the player
    leaves the game, so no poll survives the game it belongs to.
    """

    def __init__(
        self,
        store: RecordStore,
        view: LocalGameView,
        *,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        on_event: EventCallback | None = None,
    ) -> None:
        self._store = store
        self._view = view
        self._interval_seconds = interval_seconds
        self._on_event = on_event
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start polling; a no-op while the loop is already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Cancel the poll loop and wait for it to exit."""
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def tick(self) -> list[SyncEvent]:
        """
        Fetch the record once, merge it, and publish the resulting events.

        A failed or malformed fetch leaves the local view untouched; the next
        tick simply tries again.
        """
        try:
            record = await self._store.get_record(self._view.game_id)
        except StateInconsistencyError as e:
            logger.warning("ignoring inconsistent record", game_id=self._view.game_id, error=str(e))
            return []
        except SyncError as e:
            logger.warning("poll failed, retrying next tick", game_id=self._view.game_id, error=str(e))
            return []
        events = self.apply_record(record)
        await self.publish(events)
        return events

    def apply_record(self, record: GameRecord) -> list[SyncEvent]:
        """
        Merge a fetched record into the local view and return what changed.

        Replaying the same record twice yields no events the second time.
        Records older than the view (by version or status) are ignored.
        """
        view = self._view
        if record.game_id != view.game_id:
            logger.warning("ignoring record of another game", game_id=view.game_id, received=record.game_id)
            return []
        if record.version < view.record.version or _STATUS_ORDER[record.status] < _STATUS_ORDER[view.status]:
            logger.debug("ignoring stale record", game_id=view.game_id, version=record.version)
            return []

        previous_status = view.status
        view.record = record
        view.status = record.status
        events: list[SyncEvent] = []

        own_cells = [(r, c) for r, c in record.fleet(view.player_number).cells if view.my_board[r][c] == CellState.EMPTY]
        occupy(view.my_board, own_cells)
        for coord, hit in replay_attacks(view.my_board, record.attacks(view.opponent_number)):
            events.append(OpponentShotEvent(game_id=view.game_id, coord=coord, hit=hit))
        view.enemy_board = enemy_board(record, view.player_number)

        if record.status is GameStatus.PLAYING:
            my_turn = record.current_player == view.player_number
            if previous_status is not GameStatus.PLAYING:
                logger.info("game started", game_id=view.game_id, my_turn=my_turn)
                events.append(GameStartedEvent(game_id=view.game_id, my_turn=my_turn))
            elif my_turn != view.my_turn:
                events.append(TurnChangedEvent(game_id=view.game_id, my_turn=my_turn))
            view.my_turn = my_turn
        else:
            view.my_turn = False

        if record.status is GameStatus.FINISHED and not view.finish_reported and record.winner is not None:
            won = record.winner == view.player_name
            logger.info("game finished", game_id=view.game_id, winner=record.winner, won=won)
            events.append(GameFinishedEvent(game_id=view.game_id, winner=record.winner, won=won))
            view.finish_reported = True

        return events

    async def publish(self, events: list[SyncEvent]) -> None:
        """Hand events to the UI callback; a failing callback never stops the loop."""
        if self._on_event is None:
            return
        for event in events:
            try:
                await self._on_event(event)
            except Exception:
                logger.exception("event callback failed", event_type=event.type)

    async def _poll_loop(self) -> None:
        while not self._view.finish_reported:
            await asyncio.sleep(self._interval_seconds)
            await self.tick()
        logger.debug("poll loop finished", game_id=self._view.game_id)
