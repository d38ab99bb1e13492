"""
One player's session against the shared record store.

PlayerSession owns the player's LocalGameView and its SyncReconciler while a
game is active. Every action is validated against the latest known record
before anything is written, and every write is conditional on the record
version it was computed from. A lost write is re-fetched, re-validated and
retried, so two racing clients always end with exactly one winning update.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from naval.client.reconciler import SyncReconciler
from naval.client.settings import ClientSettings
from naval.client.state import LocalGameView
from naval.client.store import HttpRecordStore
from naval.logic.catalog import next_ship_kind
from naval.logic.enums import OPEN_STATUSES, GameStatus, Orientation
from naval.logic.exceptions import InvalidActionError, SyncError, WriteConflictError
from naval.logic.turn import attack_changes, creation_changes, join_changes, placement_changes
from shared.logging import bind_game_context, clear_game_context, setup_logging

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from naval.client.events import SyncEvent
    from naval.client.reconciler import EventCallback
    from naval.client.store import RecordStore
    from naval.logic.attack import AttackResolution
    from naval.logic.record import GameRecord, RecordChanges, Ship
    from naval.logic.settings import GameRules, ShipKind

logger = structlog.get_logger()


class PlayerSession:
    """Client-side operations of a single player."""

    def __init__(
        self,
        store: RecordStore,
        settings: ClientSettings | None = None,
        *,
        on_event: EventCallback | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or ClientSettings()
        self._on_event = on_event
        self._view: LocalGameView | None = None
        self._reconciler: SyncReconciler | None = None

    @property
    def view(self) -> LocalGameView | None:
        return self._view

    @property
    def in_game(self) -> bool:
        return self._view is not None

    @property
    def my_turn(self) -> bool:
        return self._view is not None and self._view.my_turn

    @property
    def next_ship(self) -> ShipKind | None:
        """Catalog kind the player places next, or None outside placement."""
        view = self._view
        if view is None or view.status is not GameStatus.SETUP:
            return None
        return next_ship_kind(view.rules, view.record.fleet(view.player_number))

    @property
    def is_placing(self) -> bool:
        return self.next_ship is not None

    async def list_open_games(self) -> list[GameRecord]:
        """Games that are waiting for a second player or still in setup."""
        return await self._store.list_records(OPEN_STATUSES)

    async def create_game(self, player_name: str, rules: GameRules | None = None) -> GameRecord:
        """
        Create a game as player 1 and start polling it.

        Raises:
            InvalidActionError: If the name is empty
            SyncError: If the store rejects the new record; the current game is kept

        """
        changes = creation_changes(player_name, rules)
        record = await self._store.create_record(changes)
        await self.leave()
        logger.info("game created", game_id=record.game_id, player=record.player1)
        await self._enter(record, 1)
        return record

    async def join_game(self, game_id: str, player_name: str) -> GameRecord:
        """
        Join a waiting game as player 2 and start polling it.

        Raises:
            InvalidActionError: If the code is malformed, the name is empty or
                taken, or the game is no longer open
            SyncError: If the game does not exist or the store is unreachable

        """
        game_id = game_id.strip().upper()
        if not game_id:
            raise InvalidActionError("Please enter a game code")
        if not (game_id.isascii() and game_id.isalnum()):
            raise InvalidActionError(f"Invalid game code {game_id!r}")
        record = await self._store.get_record(game_id)
        _, stored = await self._write_with_retry(record, lambda current: (None, join_changes(current, player_name)))
        await self.leave()
        logger.info("game joined", game_id=stored.game_id, player=stored.player2)
        await self._enter(stored, 2)
        return stored

    async def place_ship(self, row: int, col: int, orientation: Orientation = Orientation.HORIZONTAL) -> Ship:
        """
        Place the next catalog ship with its first cell at (row, col).

        Raises:
            InvalidActionError: If there is no active game, the game is not in
                setup, or every ship is already placed
            InvalidPlacementError: If the ship leaves the board or overlaps another ship
            SyncError: If the write fails or keeps losing against the opponent

        """
        view = self._require_view()
        orientation = Orientation(orientation)
        ship, stored = await self._write_with_retry(
            view.record,
            lambda current: placement_changes(current, view.player_number, row, col, orientation),
        )
        logger.info("ship placed", ship=ship.name, positions=ship.positions)
        await self._apply(stored)
        return ship

    async def attack(self, row: int, col: int) -> AttackResolution:
        """
        Attack the opponent's board at (row, col).

        Raises:
            InvalidActionError: If there is no active game or it is not being played
            OutOfTurnError: If the opponent holds the turn
            RepeatAttackError: If the cell was already attacked
            SyncError: If the write fails or keeps losing against the opponent

        """
        view = self._require_view()
        resolution, stored = await self._write_with_retry(
            view.record,
            lambda current: attack_changes(current, view.player_number, (row, col)),
        )
        logger.info(
            "attack resolved",
            coord=resolution.coord,
            hit=resolution.hit,
            sunk=resolution.sunk_ship_name,
            all_sunk=resolution.all_sunk,
        )
        await self._apply(stored)
        return resolution

    async def refresh(self) -> list[SyncEvent]:
        """Poll the current game once right away instead of waiting for the next tick."""
        if self._reconciler is None:
            raise InvalidActionError("No active game")
        return await self._reconciler.tick()

    async def leave(self) -> None:
        """Stop polling and forget the current game; a no-op outside a game."""
        if self._reconciler is not None:
            await self._reconciler.stop()
        if self._view is not None:
            logger.info("left game", game_id=self._view.game_id)
            clear_game_context()
        self._reconciler = None
        self._view = None

    def _require_view(self) -> LocalGameView:
        if self._view is None:
            raise InvalidActionError("No active game")
        return self._view

    async def _enter(self, record: GameRecord, player_number: int) -> None:
        view = LocalGameView.for_record(record, player_number)
        self._view = view
        self._reconciler = SyncReconciler(
            self._store,
            view,
            interval_seconds=self._settings.poll_interval_seconds,
            on_event=self._on_event,
        )
        bind_game_context(record.game_id, player_number)
        await self._apply(record)
        if not view.finish_reported:
            self._reconciler.start()

    async def _apply(self, record: GameRecord) -> None:
        if self._reconciler is None or self._view is None or record.game_id != self._view.game_id:
            return
        events = self._reconciler.apply_record(record)
        await self._reconciler.publish(events)

    async def _write_with_retry[T](
        self,
        record: GameRecord,
        build: Callable[[GameRecord], tuple[T, RecordChanges]],
    ) -> tuple[T, GameRecord]:
        """
        Submit the changes build() computes from record as a conditional update.

        build() runs again on a freshly fetched record after every lost write,
        so rule errors raised by the re-check surface unchanged.
        """
        retries = self._settings.max_write_retries
        for attempt in range(retries + 1):
            result, changes = build(record)
            try:
                stored = await self._store.update_record(record.game_id, changes, expected_version=record.version)
            except WriteConflictError as e:
                if attempt == retries:
                    raise SyncError(f"Game {record.game_id} kept changing, please try again") from e
                logger.info("write conflict, refetching", attempt=attempt + 1, stored_version=e.current_version)
                record = await self._store.get_record(record.game_id)
                await self._apply(record)
            else:
                return result, stored
        raise AssertionError("write retry loop exited without a result")  # pragma: no cover


def create_http_session(
    settings: ClientSettings | None = None,
    *,
    on_event: EventCallback | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    configure_logging: bool = False,
) -> PlayerSession:
    """
    Build a PlayerSession talking to the records service named in settings.

    With configure_logging, logging is set up for a standalone client and
    written to settings.log_dir when one is configured.
    """
    settings = settings or ClientSettings()
    if configure_logging:  # pragma: no cover
        setup_logging(log_dir=settings.log_dir, prefix="client")
    return PlayerSession(HttpRecordStore.from_settings(settings, transport=transport), settings, on_event=on_event)
