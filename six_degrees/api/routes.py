"""HTTP routes. Thin: every route builds a request model and hands it to the ConnectionService."""

from typing import Any, AsyncContextManager, Callable, Optional
from uuid import UUID

from fastapi import APIRouter, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from six_degrees.api.models import (
    AddEntityRequest,
    AddEntityResponse,
    BoardSnapshotResponse,
    EndSessionRequest,
    GameRecordResponse,
    GetGameRecordRequest,
    GetSessionRequest,
    LeaderboardRequest,
    LeaderboardResponse,
    ResetSessionRequest,
    SessionStatusResponse,
    StartSessionRequest,
)
from six_degrees.core.exceptions import (
    InvalidEntityError,
    InvalidRequestError,
    InvalidSeedError,
    ProviderError,
    RecordNotFoundError,
    RepositoryError,
    SessionNotFoundError,
    SessionStateError,
    SixDegreesError,
)
from six_degrees.core.shared_types import EntityKind
from six_degrees.services.connection_service import ConnectionService

# most specific first: the first matching class decides the status code
ERROR_STATUS: list[tuple[type[SixDegreesError], int]] = [
    (SessionNotFoundError, 404),
    (RecordNotFoundError, 404),
    (SessionStateError, 409),
    (InvalidRequestError, 422),
    (InvalidSeedError, 422),
    (InvalidEntityError, 422),
    (ProviderError, 502),
    (RepositoryError, 503),
]


class EntityBody(BaseModel):
    kind: EntityKind
    external_id: int


class ResetBody(BaseModel):
    seed_a_id: int | None = None
    seed_b_id: int | None = None


def create_router(service: ConnectionService, leaderboard_limit: int = 10) -> APIRouter:
    router = APIRouter()

    @router.post("/sessions", response_model=SessionStatusResponse)
    def start_session(body: StartSessionRequest) -> SessionStatusResponse:
        return service.start_session(body)

    @router.post("/sessions/{session_id}/entities", response_model=AddEntityResponse)
    def add_entity(session_id: UUID, body: EntityBody) -> AddEntityResponse:
        request = AddEntityRequest(
            session_id=session_id, kind=body.kind, external_id=body.external_id
        )
        return service.add_entity(request)

    @router.post("/sessions/{session_id}/reset", response_model=SessionStatusResponse)
    def reset_session(session_id: UUID, body: ResetBody | None = None) -> SessionStatusResponse:
        body = body or ResetBody()
        request = ResetSessionRequest(
            session_id=session_id, seed_a_id=body.seed_a_id, seed_b_id=body.seed_b_id
        )
        return service.reset_session(request)

    @router.get("/sessions/{session_id}/board", response_model=BoardSnapshotResponse)
    def get_board(session_id: UUID) -> BoardSnapshotResponse:
        return service.get_board(GetSessionRequest(session_id=session_id))

    @router.get("/sessions/{session_id}", response_model=SessionStatusResponse)
    def get_status(session_id: UUID) -> SessionStatusResponse:
        return service.get_status(GetSessionRequest(session_id=session_id))

    @router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
    def end_session(session_id: UUID) -> None:
        service.end_session(EndSessionRequest(session_id=session_id))

    @router.get("/leaderboard", response_model=LeaderboardResponse)
    def leaderboard(
        limit: int = Query(default=leaderboard_limit, ge=1, le=100),
    ) -> LeaderboardResponse:
        return service.leaderboard(LeaderboardRequest(limit=limit))

    @router.get("/games/{record_id}", response_model=GameRecordResponse)
    def get_game_record(record_id: UUID) -> GameRecordResponse:
        return service.get_game_record(GetGameRecordRequest(record_id=record_id))

    return router


def create_app(
    service: ConnectionService,
    leaderboard_limit: int = 10,
    lifespan: Optional[Callable[[FastAPI], AsyncContextManager[Any]]] = None,
) -> FastAPI:
    app = FastAPI(title="Six Degrees", lifespan=lifespan)
    app.include_router(create_router(service, leaderboard_limit))

    @app.exception_handler(SixDegreesError)
    async def handle_domain_error(request: Request, exc: SixDegreesError) -> JSONResponse:
        code = next(
            (code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)),
            500,
        )
        return JSONResponse(status_code=code, content={"detail": str(exc)})

    return app
