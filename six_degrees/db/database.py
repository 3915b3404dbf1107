"""Generate database session"""

from functools import lru_cache
from typing import Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from six_degrees.core.config import Settings, get_settings
from six_degrees.db.schema import Base


@lru_cache
def get_engine(database_url: str, echo: bool = False) -> Engine:
    """One engine per database URL. Ensures all tables are created."""
    # the service shares one Session between request threads
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, echo=echo, connect_args=connect_args)
    Base.metadata.create_all(bind=engine)
    return engine


def session_factory(settings: Optional[Settings] = None) -> sessionmaker[Session]:
    settings = settings or get_settings()
    return sessionmaker(bind=get_engine(settings.database_url, settings.database_echo))

