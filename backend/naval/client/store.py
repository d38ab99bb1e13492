"""
Client side of the shared record store.

RecordStore is the protocol the session and reconciler depend on;
HttpRecordStore talks to the records service over HTTP. Every failure is
mapped to a sync exception so callers never see transport types:

- httpx.RequestError, 404 and other error statuses -> SyncError
- 409 from a conditional update -> WriteConflictError
- a body that is not a valid GameRecord -> StateInconsistencyError
"""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Protocol
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from naval.logic.exceptions import StateInconsistencyError, SyncError, WriteConflictError
from naval.logic.record import GameRecord

if TYPE_CHECKING:
    from collections.abc import Iterable

    from naval.client.settings import ClientSettings
    from naval.logic.enums import GameStatus
    from naval.logic.record import RecordChanges

logger = structlog.get_logger()


class RecordStore(Protocol):
    """Protocol for reading and writing shared game records."""

    async def list_records(self, statuses: Iterable[GameStatus] | None = None) -> list[GameRecord]: ...

    async def create_record(self, changes: RecordChanges) -> GameRecord: ...

    async def get_record(self, game_id: str) -> GameRecord: ...

    async def update_record(self, game_id: str, changes: RecordChanges, *, expected_version: int) -> GameRecord: ...


class HttpRecordStore:
    """RecordStore backed by the records service HTTP API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: ClientSettings, transport: httpx.AsyncBaseTransport | None = None) -> HttpRecordStore:
        return cls(settings.store_url, timeout=settings.request_timeout_seconds, transport=transport)

    async def list_records(self, statuses: Iterable[GameStatus] | None = None) -> list[GameRecord]:
        """Fetch records, optionally only those whose status is in statuses."""
        params = [("status", status.value) for status in statuses] if statuses is not None else None
        payload = await self._request("GET", "/games", params=params)
        games = payload.get("games")
        if not isinstance(games, list):
            raise StateInconsistencyError("record list response has no games array")
        return [_parse_record(item) for item in games]

    async def create_record(self, changes: RecordChanges) -> GameRecord:
        payload = await self._request("POST", "/games", json=changes.to_wire())
        return _parse_record(payload)

    async def get_record(self, game_id: str) -> GameRecord:
        payload = await self._request("GET", _game_path(game_id), game_id=game_id)
        return _parse_record(payload)

    async def update_record(self, game_id: str, changes: RecordChanges, *, expected_version: int) -> GameRecord:
        """Apply changes only if the stored record is still at expected_version."""
        body = {"expectedVersion": expected_version, "changes": changes.to_wire()}
        payload = await self._request("PATCH", _game_path(game_id), game_id=game_id, json=body)
        return _parse_record(payload)

    async def _request(self, method: str, path: str, *, game_id: str | None = None, **kwargs: Any) -> dict[str, Any]:  # noqa: ANN401
        try:
            async with httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout, transport=self._transport) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            raise SyncError(f"{method} {path} failed: {e}") from e

        if response.status_code == HTTPStatus.CONFLICT:
            current_version = _json_or_empty(response).get("currentVersion")
            raise WriteConflictError(game_id or path, current_version=current_version)
        if response.status_code == HTTPStatus.NOT_FOUND:
            raise SyncError(f"Game {game_id} not found" if game_id else f"{path} not found")
        if response.status_code >= HTTPStatus.BAD_REQUEST:
            error = _json_or_empty(response).get("error", response.text)
            raise SyncError(f"{method} {path} returned {response.status_code}: {error}")

        try:
            payload = response.json()
        except ValueError as e:
            raise StateInconsistencyError(f"{method} {path} returned a non-JSON body") from e
        if not isinstance(payload, dict):
            raise StateInconsistencyError(f"{method} {path} returned {type(payload).__name__}, expected an object")
        return payload


def _game_path(game_id: str) -> str:
    return "/games/" + quote(game_id, safe="")


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _parse_record(payload: object) -> GameRecord:
    try:
        return GameRecord.model_validate(payload)
    except ValidationError as e:
        logger.warning("received invalid game record", errors=e.error_count())
        raise StateInconsistencyError(f"invalid game record: {e}") from e
