from __future__ import annotations

import contextlib
import json
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from naval.logic.enums import GameStatus
from naval.logic.exceptions import GameRuleError
from records.dal.record_repository import RecordNotFoundError, VersionConflictError
from records.db import Database, SqliteRecordRepository
from records.server.settings import RecordServerSettings
from records.server.types import UpdateRecordRequest
from shared.build_info import APP_VERSION, GIT_COMMIT
from shared.logging import setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from records.dal.record_repository import RecordRepository

logger = structlog.get_logger()

_MAX_REQUEST_BODY_SIZE = 16384


class _BadRequestError(Exception):
    def __init__(self, message: str, status_code: int = 400) -> None:
        self.status_code = status_code
        super().__init__(message)


def _error(message: str, status_code: int, **extra: Any) -> JSONResponse:  # noqa: ANN401
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def _invalid_record(e: GameRuleError | ValidationError) -> JSONResponse:
    if isinstance(e, ValidationError):
        details = [err["msg"] for err in e.errors(include_url=False)]
        return _error("Invalid game record", 422, details=details)
    return _error(str(e), 422)


async def _read_json_object(request: Request) -> dict[str, Any]:
    raw_body = await request.body()
    if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
        raise _BadRequestError("Request body too large", 413)
    try:
        body = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise _BadRequestError("Invalid request body") from e
    if not isinstance(body, dict):
        raise _BadRequestError("Request body must be a JSON object")
    return body


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": APP_VERSION, "commit": GIT_COMMIT})


async def list_games(request: Request) -> JSONResponse:
    repository: RecordRepository = request.app.state.repository
    settings: RecordServerSettings = request.app.state.settings

    raw_statuses = request.query_params.getlist("status")
    try:
        statuses = [GameStatus(value) for value in raw_statuses] if raw_statuses else None
    except ValueError:
        return _error(f"Unknown status filter: {', '.join(raw_statuses)}", 400)

    records = await repository.list_records(statuses, limit=settings.list_limit)
    return JSONResponse({"games": [record.to_wire() for record in records]})


async def create_game(request: Request) -> JSONResponse:
    repository: RecordRepository = request.app.state.repository
    try:
        body = await _read_json_object(request)
    except _BadRequestError as e:
        return _error(str(e), e.status_code)

    try:
        record = await repository.create_record(body)
    except (GameRuleError, ValidationError) as e:
        return _invalid_record(e)
    return JSONResponse(record.to_wire(), status_code=201)


async def get_game(request: Request) -> JSONResponse:
    repository: RecordRepository = request.app.state.repository
    game_id = request.path_params["game_id"]
    record = await repository.get_record(game_id)
    if record is None:
        return _error(f"Game {game_id} not found", 404)
    return JSONResponse(record.to_wire())


async def update_game(request: Request) -> JSONResponse:
    repository: RecordRepository = request.app.state.repository
    game_id = request.path_params["game_id"]
    try:
        update = UpdateRecordRequest.model_validate(await _read_json_object(request))
    except _BadRequestError as e:
        return _error(str(e), e.status_code)
    except ValidationError:
        return _error("Invalid request body", 400)

    try:
        record = await repository.update_record(game_id, update.changes, update.expected_version)
    except RecordNotFoundError as e:
        return _error(str(e), 404)
    except VersionConflictError as e:
        logger.info("rejected stale update", game_id=game_id, expected=update.expected_version, current=e.current_version)
        return _error("Game was changed by another player", 409, currentVersion=e.current_version)
    except (GameRuleError, ValidationError) as e:
        logger.warning("rejected invalid update", game_id=game_id, fields=sorted(update.changes), error=str(e))
        return _invalid_record(e)
    return JSONResponse(record.to_wire())


def create_app(
    settings: RecordServerSettings | None = None,
    repository: RecordRepository | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = RecordServerSettings()

    # When the app creates its own repository, it owns the DB lifecycle.
    owned_db: Database | None = None
    if repository is None:
        owned_db = Database(settings.database_path)
        owned_db.connect()
        repository = SqliteRecordRepository(owned_db)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/games", list_games, methods=["GET"]),
        Route("/games", create_game, methods=["POST"]),
        Route("/games/{game_id}", get_game, methods=["GET"]),
        Route("/games/{game_id}", update_game, methods=["PATCH"]),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        yield
        if owned_db is not None:
            owned_db.close()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PATCH"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.repository = repository

    logger.info("records service ready", database=settings.database_path)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (uvicorn --factory records.server.app:get_app)."""
    settings = RecordServerSettings()
    setup_logging(log_dir=settings.log_dir, prefix="records")
    return create_app(settings=settings)
