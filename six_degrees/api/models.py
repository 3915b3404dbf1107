"""Requests and Response models"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from six_degrees.core.exceptions import InvalidRequestError
from six_degrees.core.shared_types import EntityKind, RejectionReason, SessionState

NodeKey = str


# --- REQUEST MODELS ---
class StartSessionRequest(BaseModel):
    seed_a_id: int
    seed_b_id: int
    challenge: Optional[str] = None
    blocked_movie_ids: list[int] = Field(default_factory=list)
    blocked_show_ids: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_distinct_seeds(self) -> "StartSessionRequest":
        if self.seed_a_id == self.seed_b_id:
            raise InvalidRequestError(
                "Cannot start with duplicate actors. Please select two different actors."
            )
        return self


class AddEntityRequest(BaseModel):
    session_id: UUID
    kind: EntityKind
    external_id: int

    @field_validator("external_id")
    @classmethod
    def validate_external_id(cls, value: int) -> int:
        if value <= 0:
            raise InvalidRequestError(f"Entity ids are positive integers, got {value}.")
        return value


class ResetSessionRequest(BaseModel):
    session_id: UUID
    seed_a_id: Optional[int] = None
    seed_b_id: Optional[int] = None

    @model_validator(mode="after")
    def validate_seed_pair(self) -> "ResetSessionRequest":
        """Either keep the current seeds (no ids) or supply a complete, new pair."""
        given = [seed for seed in (self.seed_a_id, self.seed_b_id) if seed is not None]
        if len(given) == 1:
            raise InvalidRequestError("Supply both seed actors to reset with a new pair.")
        if len(given) == 2 and self.seed_a_id == self.seed_b_id:
            raise InvalidRequestError(
                "Cannot start with duplicate actors. Please select two different actors."
            )
        return self


class GetSessionRequest(BaseModel):
    session_id: UUID


class EndSessionRequest(BaseModel):
    session_id: UUID


class LeaderboardRequest(BaseModel):
    limit: int = Field(default=10, ge=1, le=100)


class GetGameRecordRequest(BaseModel):
    record_id: UUID


# --- RESPONSE MODELS ---
class BridgeResponse(BaseModel):
    bridge_node: NodeKey
    path_length: int
    full_path: list[NodeKey]


class AddEntityResponse(BaseModel):
    session_id: UUID
    node: NodeKey
    accepted: bool
    rejection: Optional[RejectionReason] = None
    reachable_from_a: bool = False
    reachable_from_b: bool = False
    bridge: Optional[BridgeResponse] = None
    state: SessionState


class SessionStatusResponse(BaseModel):
    session_id: UUID
    seed_a: NodeKey
    seed_b: NodeKey
    state: SessionState
    shortest_path_length: Optional[int]
    shortest_path: list[NodeKey]
    score: Optional[int]
    challenge: str = "classic"
    record_id: Optional[UUID] = None


class NodeResponse(BaseModel):
    id: NodeKey
    kind: EntityKind
    external_id: int
    is_seed: bool


class EdgeResponse(BaseModel):
    source: NodeKey
    target: NodeKey
    is_guest_appearance: bool


class BoardSnapshotResponse(BaseModel):
    session_id: UUID
    nodes: list[NodeResponse]
    edges: list[EdgeResponse]


class GameRecordResponse(BaseModel):
    record_id: Optional[UUID] = None
    seed_a: NodeKey
    seed_b: NodeKey
    full_path: list[NodeKey]
    path_length: int
    board_size: int
    elapsed_seconds: int
    score: int
    scoring: str
    challenge: str = "classic"


class LeaderboardResponse(BaseModel):
    records: list[GameRecordResponse]
