"""Database tables / schema"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGameRecord(Base):
    """A completed game. Written once, when the two seed actors first got connected."""

    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    session_id: Mapped[str] = mapped_column(default="")
    seed_a: Mapped[str]
    seed_b: Mapped[str]
    bridge: Mapped[str] = mapped_column(default="")
    full_path: Mapped[list[str]] = mapped_column(JSON, default=list)
    path_length: Mapped[int]
    board_size: Mapped[int]
    elapsed_seconds: Mapped[int]
    score: Mapped[int] = mapped_column(index=True)
    scoring: Mapped[str]
    challenge: Mapped[str] = mapped_column(default="classic")
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
