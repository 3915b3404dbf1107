"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Any, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from six_degrees.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


# --- A tiny movie universe ----
# person 1 (seed A)  -- movie 10 -- person 3 -- show 20 -- person 2 (seed B)
# person 4 is a guest star on show 30, but show 30's cast list does not mention them
# person 5 and movie 99 are unrelated to everything else
PERSON_CREDITS: dict[int, dict[str, Any]] = {
    1: {"movies": [{"id": 10}], "shows": [{"id": 30}]},
    2: {"movies": [], "shows": [{"id": 20, "is_guest_appearance": False}]},
    3: {"movies": [{"id": 10}], "shows": [{"id": 20}]},
    4: {"movies": [], "shows": [{"id": 30, "is_guest_appearance": True}]},
    5: {"movies": [{"id": 99}], "shows": []},
}
MOVIE_CAST: dict[int, list[dict[str, Any]]] = {
    10: [{"person_id": 1}, {"person_id": 3}],
    99: [{"person_id": 5}],
}
SHOW_CAST: dict[int, list[dict[str, Any]]] = {
    20: [{"person_id": 2}, {"person_id": 3}],
    30: [{"person_id": 1}],
}


class MockMetadataProvider:
    """Mock the EntityMetadataProvider using dictionaries. Records every lookup."""

    def __init__(self) -> None:
        self.persons = {key: dict(value) for key, value in PERSON_CREDITS.items()}
        self.movies = {key: list(value) for key, value in MOVIE_CAST.items()}
        self.shows = {key: list(value) for key, value in SHOW_CAST.items()}
        self.calls: list[tuple[str, int]] = []

    def get_person_credits(self, person_id: int) -> dict[str, Any]:
        self.calls.append(("person", person_id))
        return self.persons[person_id]

    def get_movie_cast(self, movie_id: int) -> list[dict[str, Any]]:
        self.calls.append(("movie", movie_id))
        return self.movies[movie_id]

    def get_show_cast(self, show_id: int) -> list[dict[str, Any]]:
        self.calls.append(("show", show_id))
        return self.shows[show_id]


@pytest.fixture
def mock_provider() -> MockMetadataProvider:
    return MockMetadataProvider()


class FakeClock:
    """Deterministic replacement for time.monotonic"""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
