"""Unit tests for six_degrees/services/connection_service.py"""

from typing import Generator
from uuid import UUID, uuid4

import pytest

from six_degrees.api.models import (
    AddEntityRequest,
    EndSessionRequest,
    GetGameRecordRequest,
    GetSessionRequest,
    LeaderboardRequest,
    ResetSessionRequest,
    StartSessionRequest,
)
from six_degrees.core.exceptions import (
    InvalidRequestError,
    ProviderError,
    RecordNotFoundError,
    RepositoryError,
    SessionNotFoundError,
)
from six_degrees.core.models import GameRecordModel
from six_degrees.core.shared_types import EntityKind, RejectionReason, ScoringConvention, SessionState
from six_degrees.services.connection_service import ConnectionService


# --- MOCK DEPENDENCIES ----
class MockRepository:
    """Mock the GameRecordRepository using a dictionary of game records."""

    def __init__(self) -> None:
        self._records: dict[UUID, GameRecordModel] = {}
        self.unavailable = False

    def create_record(self, record: GameRecordModel) -> tuple[GameRecordModel, UUID]:
        """Store a completed game and return the stored data + newly created record ID."""
        if self.unavailable:
            raise RepositoryError("database is locked")
        record_id = uuid4()
        record.record_id = str(record_id)
        self._records[record_id] = record
        return record, record_id

    def get_record(self, record_id: UUID) -> GameRecordModel | None:
        return self._records.get(record_id)

    def top_records(self, limit: int) -> list[GameRecordModel]:
        return sorted(self._records.values(), key=lambda record: -record.score)[:limit]

    def clear(self) -> None:
        """Clear the repository (useful in between tests)"""
        self._records.clear()
        self.unavailable = False


@pytest.fixture
def mock_repository() -> Generator[MockRepository, None, None]:
    """Ensures to clear the repository between tests"""
    repo = MockRepository()
    try:
        yield repo
    finally:
        repo.clear()


@pytest.fixture
def service(mock_provider, mock_repository: MockRepository, clock) -> ConnectionService:
    # movie-50 stars both seed actors: a shortcut for keep-playing tests
    mock_provider.movies[50] = [{"person_id": 1}, {"person_id": 2}]
    return ConnectionService(mock_provider, mock_repository, clock=clock)


@pytest.fixture
def session_id(service: ConnectionService) -> UUID:
    return service.start_session(StartSessionRequest(seed_a_id=1, seed_b_id=2)).session_id


def add(service: ConnectionService, session_id: UUID, key: str):
    kind, _, external_id = key.partition("-")
    return service.add_entity(
        AddEntityRequest(session_id=session_id, kind=EntityKind(kind), external_id=int(external_id))
    )


# --- SERVICE - START SESSION ----
def test_start_session(service: ConnectionService) -> None:
    response = service.start_session(StartSessionRequest(seed_a_id=1, seed_b_id=2))

    assert response.seed_a == "person-1"
    assert response.seed_b == "person-2"
    assert response.state == SessionState.IN_PROGRESS
    assert response.shortest_path_length is None
    assert response.shortest_path == []
    assert response.score is None


def test_start_session_with_unknown_actor(service: ConnectionService) -> None:
    with pytest.raises(ProviderError):
        service.start_session(StartSessionRequest(seed_a_id=1, seed_b_id=777))


# --- SERVICE - ADD ENTITY ----
def test_add_entity(service: ConnectionService, session_id: UUID) -> None:
    response = add(service, session_id, "movie-10")

    assert response.accepted
    assert response.node == "movie-10"
    assert (response.reachable_from_a, response.reachable_from_b) == (True, False)
    assert response.bridge is None
    assert response.state == SessionState.IN_PROGRESS


def test_rejected_entity(service: ConnectionService, session_id: UUID) -> None:
    response = add(service, session_id, "movie-99")

    assert not response.accepted
    assert response.rejection == RejectionReason.NOT_CONNECTABLE
    assert (response.reachable_from_a, response.reachable_from_b) == (False, False)


def test_duplicate_is_rejected_without_fetching(
    service: ConnectionService, session_id: UUID, mock_provider
) -> None:
    add(service, session_id, "movie-10")
    mock_provider.calls.clear()

    response = add(service, session_id, "movie-10")
    assert response.rejection == RejectionReason.DUPLICATE_NODE
    assert mock_provider.calls == []


def test_concurrent_duplicate_is_caught_under_the_lock(
    service: ConnectionService, session_id: UUID, mock_provider, monkeypatch
) -> None:
    """A second request for movie-10 completes while the first one is still waiting on the provider."""
    fetch_cast = mock_provider.get_movie_cast
    interleaved = []

    def slow_get_movie_cast(movie_id: int):
        if not interleaved:
            interleaved.append(None)
            interleaved[0] = add(service, session_id, "movie-10")
        return fetch_cast(movie_id)

    monkeypatch.setattr(mock_provider, "get_movie_cast", slow_get_movie_cast)
    first = add(service, session_id, "movie-10")
    second = interleaved[0]

    assert second.accepted
    assert first.rejection == RejectionReason.DUPLICATE_NODE
    board = service.get_board(GetSessionRequest(session_id=session_id))
    assert [node.id for node in board.nodes].count("movie-10") == 1
    assert len(board.edges) == 1


def test_unknown_session(service: ConnectionService) -> None:
    with pytest.raises(SessionNotFoundError):
        add(service, uuid4(), "movie-10")


def test_full_game_is_recorded_once(
    service: ConnectionService, session_id: UUID, mock_repository: MockRepository, clock
) -> None:
    clock.advance(40)
    add(service, session_id, "movie-10")
    add(service, session_id, "person-3")
    response = add(service, session_id, "show-20")

    assert response.state == SessionState.COMPLETED
    assert response.bridge is not None
    assert response.bridge.bridge_node == "show-20"
    assert response.bridge.path_length == 4
    assert response.bridge.full_path == ["person-1", "movie-10", "person-3", "show-20", "person-2"]
    assert (response.reachable_from_a, response.reachable_from_b) == (True, True)

    records = mock_repository.top_records(10)
    assert len(records) == 1
    assert records[0].score == 3333
    assert records[0].session_id == str(session_id)

    # keep playing: a shorter path is reported, but the game is not recorded a second time
    response = add(service, session_id, "movie-50")
    assert response.bridge is not None and response.bridge.path_length == 2
    assert len(mock_repository.top_records(10)) == 1

    status = service.get_status(GetSessionRequest(session_id=session_id))
    assert status.shortest_path_length == 2
    assert status.shortest_path == ["person-1", "movie-50", "person-2"]
    assert status.score == 3333


# --- SERVICE - RESET / BOARD / END ----
def test_reset_session(
    service: ConnectionService, session_id: UUID, mock_repository: MockRepository
) -> None:
    add(service, session_id, "movie-50")
    assert len(mock_repository.top_records(10)) == 1

    response = service.reset_session(ResetSessionRequest(session_id=session_id))
    assert response.state == SessionState.IN_PROGRESS
    assert response.shortest_path_length is None

    board = service.get_board(GetSessionRequest(session_id=session_id))
    assert [node.id for node in board.nodes] == ["person-1", "person-2"]

    # a second completion after a reset is a new game
    add(service, session_id, "movie-50")
    assert len(mock_repository.top_records(10)) == 2


def test_reset_with_new_seeds(service: ConnectionService, session_id: UUID) -> None:
    response = service.reset_session(
        ResetSessionRequest(session_id=session_id, seed_a_id=4, seed_b_id=2)
    )
    assert (response.seed_a, response.seed_b) == ("person-4", "person-2")
    assert add(service, session_id, "show-30").accepted


def test_get_board(service: ConnectionService, session_id: UUID) -> None:
    service.reset_session(ResetSessionRequest(session_id=session_id, seed_a_id=4, seed_b_id=2))
    add(service, session_id, "show-30")

    board = service.get_board(GetSessionRequest(session_id=session_id))
    assert [(node.id, node.is_seed) for node in board.nodes] == [
        ("person-4", True),
        ("person-2", True),
        ("show-30", False),
    ]
    assert len(board.edges) == 1
    assert board.edges[0].is_guest_appearance


def test_end_session(service: ConnectionService, session_id: UUID) -> None:
    service.end_session(EndSessionRequest(session_id=session_id))

    with pytest.raises(SessionNotFoundError):
        service.get_status(GetSessionRequest(session_id=session_id))
    with pytest.raises(SessionNotFoundError):
        service.end_session(EndSessionRequest(session_id=session_id))


# --- SERVICE - LEADERBOARD ----
def test_leaderboard(mock_provider, mock_repository: MockRepository, clock) -> None:
    mock_provider.movies[50] = [{"person_id": 1}, {"person_id": 2}]
    service = ConnectionService(
        mock_provider, mock_repository, scoring=ScoringConvention.ELAPSED_TIMES_LENGTH, clock=clock
    )
    session_id = service.start_session(StartSessionRequest(seed_a_id=1, seed_b_id=2)).session_id
    clock.advance(30)
    add(service, session_id, "movie-50")

    leaderboard = service.leaderboard(LeaderboardRequest(limit=5))
    assert len(leaderboard.records) == 1
    record = leaderboard.records[0]
    assert record.scoring == "elapsed times length"
    assert record.score == 60
    assert record.full_path == ["person-1", "movie-50", "person-2"]


def test_get_game_record(service: ConnectionService, session_id: UUID) -> None:
    add(service, session_id, "movie-50")
    status = service.get_status(GetSessionRequest(session_id=session_id))
    assert status.record_id is not None

    record = service.get_game_record(GetGameRecordRequest(record_id=status.record_id))
    assert record.record_id == status.record_id
    assert record.full_path == ["person-1", "movie-50", "person-2"]
    assert record.challenge == "classic"

    with pytest.raises(RecordNotFoundError):
        service.get_game_record(GetGameRecordRequest(record_id=uuid4()))


# --- SERVICE - STORAGE FAILURES ----
def test_failed_recording_does_not_fail_the_addition(
    service: ConnectionService, session_id: UUID, mock_repository: MockRepository
) -> None:
    mock_repository.unavailable = True
    response = add(service, session_id, "movie-50")

    assert response.accepted
    assert response.state == SessionState.COMPLETED
    assert mock_repository.top_records(10) == []
    assert service.get_status(GetSessionRequest(session_id=session_id)).record_id is None

    # the next addition that keeps the seeds connected stores the game
    mock_repository.unavailable = False
    assert add(service, session_id, "movie-10").bridge is not None
    records = mock_repository.top_records(10)
    assert len(records) == 1
    assert records[0].full_path == ["person-1", "movie-50", "person-2"]
    assert service.get_status(GetSessionRequest(session_id=session_id)).record_id == UUID(
        records[0].record_id
    )


# --- SERVICE - CHALLENGES ----
def test_start_session_with_challenge(service: ConnectionService) -> None:
    response = service.start_session(
        StartSessionRequest(seed_a_id=1, seed_b_id=2, challenge="no-marvel", blocked_movie_ids=[10])
    )
    assert response.challenge == "no-marvel"


def test_blocked_entity_is_rejected_without_fetching(service: ConnectionService, mock_provider) -> None:
    session_id = service.start_session(
        StartSessionRequest(seed_a_id=1, seed_b_id=2, challenge="tv-only")
    ).session_id
    mock_provider.calls.clear()

    response = add(service, session_id, "movie-50")
    assert response.rejection == RejectionReason.NOT_CONNECTABLE
    assert mock_provider.calls == []
    assert add(service, session_id, "show-20").accepted


def test_challenge_is_recorded(
    service: ConnectionService, mock_repository: MockRepository
) -> None:
    session_id = service.start_session(
        StartSessionRequest(seed_a_id=1, seed_b_id=2, challenge="movies-only")
    ).session_id
    add(service, session_id, "movie-50")
    assert mock_repository.top_records(10)[0].challenge == "movies-only"


def test_classic_challenge_takes_no_blacklist(service: ConnectionService) -> None:
    with pytest.raises(InvalidRequestError):
        service.start_session(
            StartSessionRequest(seed_a_id=1, seed_b_id=2, challenge="classic", blocked_show_ids=[20])
        )
