from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from six_degrees.api.models import (
    AddEntityRequest,
    LeaderboardRequest,
    ResetSessionRequest,
    StartSessionRequest,
)
from six_degrees.core.exceptions import InvalidRequestError
from six_degrees.core.shared_types import EntityKind


@pytest.fixture
def mock_id() -> UUID:
    return uuid4()


# -- Validation - StartSessionRequest --
def test_start_with_two_actors() -> None:
    request = StartSessionRequest(seed_a_id=31, seed_b_id=1245)
    assert (request.seed_a_id, request.seed_b_id) == (31, 1245)


def test_start_with_same_actor_twice() -> None:
    with pytest.raises(InvalidRequestError):
        StartSessionRequest(seed_a_id=31, seed_b_id=31)


# -- Validation - AddEntityRequest --
@pytest.mark.parametrize("kind", ["person", "movie", "show"])
def test_valid_entity(mock_id: UUID, kind: str) -> None:
    request = AddEntityRequest(session_id=mock_id, kind=kind, external_id=603)
    assert request.kind == EntityKind(kind)


@pytest.mark.parametrize("external_id", [0, -12])
def test_entity_ids_are_positive(mock_id: UUID, external_id: int) -> None:
    with pytest.raises(InvalidRequestError):
        AddEntityRequest(session_id=mock_id, kind=EntityKind.MOVIE, external_id=external_id)


def test_unknown_entity_kind(mock_id: UUID) -> None:
    """Structurally invalid input is left to pydantic."""
    with pytest.raises(ValidationError):
        AddEntityRequest(session_id=mock_id, kind="tv", external_id=12)


# -- Validation - ResetSessionRequest --
def test_reset_keeping_seeds(mock_id: UUID) -> None:
    request = ResetSessionRequest(session_id=mock_id)
    assert request.seed_a_id is None and request.seed_b_id is None


def test_reset_with_new_seeds(mock_id: UUID) -> None:
    request = ResetSessionRequest(session_id=mock_id, seed_a_id=4, seed_b_id=2)
    assert (request.seed_a_id, request.seed_b_id) == (4, 2)


@pytest.mark.parametrize(
    "seed_a_id, seed_b_id",
    [
        (4, None),  # half a pair
        (None, 2),
        (4, 4),  # same actor twice
    ],
)
def test_reset_with_invalid_seeds(mock_id: UUID, seed_a_id: int | None, seed_b_id: int | None) -> None:
    with pytest.raises(InvalidRequestError):
        ResetSessionRequest(session_id=mock_id, seed_a_id=seed_a_id, seed_b_id=seed_b_id)


# -- Validation - LeaderboardRequest --
@pytest.mark.parametrize("limit", [0, 101])
def test_leaderboard_limit_out_of_range(limit: int) -> None:
    with pytest.raises(ValidationError):
        LeaderboardRequest(limit=limit)
