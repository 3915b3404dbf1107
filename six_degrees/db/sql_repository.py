"""Implementation of (GameRecord)Repository using SQLAlchemy"""

from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from six_degrees.core.exceptions import RepositoryError
from six_degrees.core.models import GameRecordModel
from six_degrees.core.shared_types import ScoringConvention
from six_degrees.db.schema import DBGameRecord


class SQLGameRecordRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_record(self, record_id: UUID) -> GameRecordModel | None:
        """Get a completed game by ID, if record exists."""
        try:
            record_db = self._fetch_record(record_id)
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Could not read record {record_id}.") from exc
        if record_db:
            return self._to_model(record_db)
        return None

    def create_record(self, record: GameRecordModel) -> tuple[GameRecordModel, UUID]:
        """Store a completed game and return the stored data + newly created record ID."""

        new_id = uuid4()
        record_db = DBGameRecord(
            id=new_id,
            session_id=record.session_id,
            seed_a=record.seed_a,
            seed_b=record.seed_b,
            bridge=record.bridge,
            full_path=record.full_path,
            path_length=record.path_length,
            board_size=record.board_size,
            elapsed_seconds=record.elapsed_seconds,
            score=record.score,
            scoring=record.scoring,
            challenge=record.challenge,
        )
        try:
            self.db.add(record_db)
            self.db.commit()
            self.db.refresh(record_db)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise RepositoryError("Could not store the completed game.") from exc
        return self._to_model(record_db), new_id

    def top_records(self, limit: int) -> list[GameRecordModel]:
        """
        Leaderboard: records ordered from best to worst score.

        NOTE the two scoring conventions point in opposite directions, so they are ranked separately:
        efficiency scores first (highest on top), then elapsed-times-length scores (lowest on top).
        """
        efficiency = select(DBGameRecord).where(
            DBGameRecord.scoring == str(ScoringConvention.EFFICIENCY)
        ).order_by(DBGameRecord.score.desc(), DBGameRecord.created_at)
        elapsed = select(DBGameRecord).where(
            DBGameRecord.scoring == str(ScoringConvention.ELAPSED_TIMES_LENGTH)
        ).order_by(DBGameRecord.score.asc(), DBGameRecord.created_at)

        try:
            records = list(self.db.scalars(efficiency.limit(limit)))
            remaining = limit - len(records)
            if remaining > 0:
                records.extend(self.db.scalars(elapsed.limit(remaining)))
        except SQLAlchemyError as exc:
            raise RepositoryError("Could not read the leaderboard.") from exc
        return [self._to_model(record) for record in records]

    def _fetch_record(self, record_id: UUID) -> DBGameRecord | None:
        query = select(DBGameRecord).where(DBGameRecord.id == record_id)
        return self.db.scalar(query)

    def _to_model(self, record_db: DBGameRecord) -> GameRecordModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameRecordModel(
            seed_a=record_db.seed_a,
            seed_b=record_db.seed_b,
            full_path=list(record_db.full_path),
            path_length=record_db.path_length,
            board_size=record_db.board_size,
            elapsed_seconds=record_db.elapsed_seconds,
            score=record_db.score,
            scoring=record_db.scoring,
            challenge=record_db.challenge,
            session_id=record_db.session_id,
            bridge=record_db.bridge,
            record_id=str(record_db.id),
        )
