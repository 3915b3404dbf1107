"""Protocol repository (implemented with SQLAlchemy, mocked with a dict in the tests)"""

from typing import Protocol
from uuid import UUID

from six_degrees.core.models import GameRecordModel


class GameRecordRepository(Protocol):
    """Persistence layer orchestration. Implementations raise RepositoryError when storage fails."""

    def get_record(self, record_id: UUID) -> GameRecordModel | None:
        """Get a completed game by ID, if record exists."""
        ...

    def create_record(self, record: GameRecordModel) -> tuple[GameRecordModel, UUID]:
        """Store a completed game and return the stored data + newly created record ID."""
        ...

    def top_records(self, limit: int) -> list[GameRecordModel]:
        """Leaderboard: records ordered from best to worst score."""
        ...
