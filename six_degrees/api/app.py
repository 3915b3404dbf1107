"""Wire the layers together: settings -> logging, database -> repository, provider -> service -> FastAPI app."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from six_degrees.api.routes import create_app
from six_degrees.core.config import Settings, get_settings
from six_degrees.core.logging import configure_logging
from six_degrees.db.database import session_factory
from six_degrees.db.sql_repository import SQLGameRecordRepository
from six_degrees.provider.metadata import EntityMetadataProvider
from six_degrees.services.connection_service import ConnectionService


def build_app(provider: EntityMetadataProvider, settings: Settings | None = None) -> FastAPI:
    """The metadata provider is supplied by the caller (e.g. a TMDB client); everything else comes from the settings."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_json)

    db = session_factory(settings)()
    service = ConnectionService(
        provider=provider,
        repository=SQLGameRecordRepository(db),
        scoring=settings.scoring,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            db.close()

    return create_app(service, leaderboard_limit=settings.leaderboard_limit, lifespan=lifespan)
