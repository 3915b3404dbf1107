"""Orchestration of communication from API router to the game engine, the metadata provider and persistence (and the reverse direction)."""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional
from uuid import UUID, uuid4

from six_degrees.api.models import (
    AddEntityRequest,
    AddEntityResponse,
    BoardSnapshotResponse,
    BridgeResponse,
    EdgeResponse,
    EndSessionRequest,
    GameRecordResponse,
    GetGameRecordRequest,
    GetSessionRequest,
    LeaderboardRequest,
    LeaderboardResponse,
    NodeResponse,
    ResetSessionRequest,
    SessionStatusResponse,
    StartSessionRequest,
)
from six_degrees.core.exceptions import RecordNotFoundError, RepositoryError, SessionNotFoundError
from six_degrees.core.logging import get_logger
from six_degrees.core.shared_types import EntityKind, ScoringConvention, SessionState
from six_degrees.core.models import GameRecordModel
from six_degrees.db.repository import GameRecordRepository
from six_degrees.graph.challenge import Challenge
from six_degrees.graph.entities import NodeId
from six_degrees.graph.session import AddEntityOutcome, GameSession
from six_degrees.graph.tracker import Bridge, NoBridge
from six_degrees.provider.metadata import EntityMetadataProvider, resolve_entity

log = get_logger(__name__)


@dataclass
class _SessionSlot:
    """A running session plus the lock that serializes every mutation of it."""

    session: GameSession
    lock: threading.Lock = field(default_factory=threading.Lock)
    recorded: bool = False
    record_id: Optional[UUID] = None


class ConnectionService:
    """Orchestration of layers for the connection game."""

    def __init__(
        self,
        provider: EntityMetadataProvider,
        repository: GameRecordRepository,
        scoring: ScoringConvention = ScoringConvention.EFFICIENCY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.provider = provider
        self.repo = repository
        self.scoring = scoring
        self.clock = clock
        self._sessions: dict[UUID, _SessionSlot] = {}
        self._registry_lock = threading.Lock()
        self._repo_lock = threading.Lock()

    # -- API routes logic ---
    def start_session(self, request: StartSessionRequest) -> SessionStatusResponse:
        """Player picked two actors: resolve them and put them on a fresh board."""
        challenge = Challenge.named(
            request.challenge, request.blocked_movie_ids, request.blocked_show_ids
        )
        seed_a = resolve_entity(self.provider, EntityKind.PERSON, request.seed_a_id)
        seed_b = resolve_entity(self.provider, EntityKind.PERSON, request.seed_b_id)
        session = GameSession.start(
            seed_a, seed_b, clock=self.clock, scoring=self.scoring, challenge=challenge
        )

        session_id = uuid4()
        slot = _SessionSlot(session)
        with self._registry_lock:
            self._sessions[session_id] = slot
        return self._create_status_response(session_id, slot)

    def add_entity(self, request: AddEntityRequest) -> AddEntityResponse:
        """
        Place a candidate on the board.
        ----

        The duplicate and challenge checks run before the (slow) metadata fetch. The duplicate check runs once
        more under the session lock, so a second request for the same entity gets rejected as soon as the first
        one is on the board.
        """
        slot = self._fetch_slot(request.session_id)
        node_id = NodeId(request.kind, request.external_id)

        with slot.lock:
            rejection = slot.session.quick_check(node_id)
            if rejection:
                outcome = AddEntityOutcome(node_id=node_id, rejection=rejection)
                return self._create_add_response(request.session_id, slot.session, outcome)

        # Fetch outside the lock: it is the only part that waits on the outside world
        candidate = resolve_entity(self.provider, request.kind, request.external_id)

        with slot.lock:
            outcome = slot.session.add_entity(candidate)
            if outcome.bridge and not slot.recorded:
                self._record_completed_game(request.session_id, slot)
            return self._create_add_response(request.session_id, slot.session, outcome)

    def reset_session(self, request: ResetSessionRequest) -> SessionStatusResponse:
        """Start over. Holds the session lock, so no entity can be added while the board is replaced."""
        slot = self._fetch_slot(request.session_id)

        seed_a = seed_b = None
        if request.seed_a_id is not None and request.seed_b_id is not None:
            seed_a = resolve_entity(self.provider, EntityKind.PERSON, request.seed_a_id)
            seed_b = resolve_entity(self.provider, EntityKind.PERSON, request.seed_b_id)

        with slot.lock:
            slot.session.reset(seed_a, seed_b)
            slot.recorded = False
            slot.record_id = None
            return self._create_status_response(request.session_id, slot)

    def get_board(self, request: GetSessionRequest) -> BoardSnapshotResponse:
        """Read-only view of the board, for rendering."""
        slot = self._fetch_slot(request.session_id)
        with slot.lock:
            snapshot = slot.session.snapshot()
            seeds = slot.session.seeds

        return BoardSnapshotResponse(
            session_id=request.session_id,
            nodes=[
                NodeResponse(
                    id=node.key,
                    kind=node.kind,
                    external_id=node.id.external_id,
                    is_seed=node.id in seeds,
                )
                for node in snapshot.nodes
            ],
            edges=[
                EdgeResponse(
                    source=edge.a.to_key(),
                    target=edge.b.to_key(),
                    is_guest_appearance=edge.is_guest_appearance,
                )
                for edge in snapshot.edges
            ],
        )

    def get_status(self, request: GetSessionRequest) -> SessionStatusResponse:
        """
        Retrieve current session state.
        ----
        Polled by the frontend to show the shortest path found so far and the score.
        """
        slot = self._fetch_slot(request.session_id)
        with slot.lock:
            return self._create_status_response(request.session_id, slot)

    def end_session(self, request: EndSessionRequest) -> None:
        """Forget a session (its completed game record, if any, stays in the repository)."""
        with self._registry_lock:
            if self._sessions.pop(request.session_id, None) is None:
                raise SessionNotFoundError(f"Session with {request.session_id=} not found.")
        log.info("session_ended", session_id=str(request.session_id))

    def leaderboard(self, request: LeaderboardRequest) -> LeaderboardResponse:
        with self._repo_lock:
            records = self.repo.top_records(request.limit)
        return LeaderboardResponse(records=[self._create_record_response(record) for record in records])

    def get_game_record(self, request: GetGameRecordRequest) -> GameRecordResponse:
        """Look up one completed game, e.g. to share a result."""
        with self._repo_lock:
            record = self.repo.get_record(request.record_id)
        if record is None:
            raise RecordNotFoundError(f"Game record with {request.record_id=} not found.")
        return self._create_record_response(record)

    # -- Internal helpers --
    def _record_completed_game(self, session_id: UUID, slot: _SessionSlot) -> None:
        """
        Persist the game the first time it gets completed (keep playing does not create a second record).

        A storage failure does not fail the addition that completed the game: it is logged, and the next
        addition that keeps the seeds connected tries again.
        """
        if slot.session.state != SessionState.COMPLETED:
            return
        record = slot.session.to_record()
        record.session_id = str(session_id)
        try:
            with self._repo_lock:
                _, record_id = self.repo.create_record(record)
        except RepositoryError as exc:
            log.error("game_record_failed", session_id=str(session_id), error=str(exc))
            return
        slot.recorded = True
        slot.record_id = record_id
        log.info("game_recorded", session_id=str(session_id), record_id=str(record_id))

    def _create_record_response(self, record: GameRecordModel) -> GameRecordResponse:
        """Convert a stored GameRecordModel into a GameRecordResponse."""
        return GameRecordResponse(
            record_id=UUID(record.record_id) if record.record_id else None,
            seed_a=record.seed_a,
            seed_b=record.seed_b,
            full_path=record.full_path,
            path_length=record.path_length,
            board_size=record.board_size,
            elapsed_seconds=record.elapsed_seconds,
            score=record.score,
            scoring=record.scoring,
            challenge=record.challenge,
        )

    def _create_add_response(
        self, session_id: UUID, session: GameSession, outcome: AddEntityOutcome
    ) -> AddEntityResponse:
        """Convert the outcome of an addition into an AddEntityResponse."""
        reachable_a, reachable_b = session.tracker.is_reachable(outcome.node_id)
        bridge = None
        if isinstance(outcome.connectivity, Bridge):
            bridge = BridgeResponse(
                bridge_node=outcome.connectivity.bridge_node_id.to_key(),
                path_length=outcome.connectivity.path_length,
                full_path=[node_id.to_key() for node_id in outcome.connectivity.full_path],
            )
        elif isinstance(outcome.connectivity, NoBridge):
            reachable_a = outcome.connectivity.reachable_from_a
            reachable_b = outcome.connectivity.reachable_from_b

        return AddEntityResponse(
            session_id=session_id,
            node=outcome.node_id.to_key(),
            accepted=outcome.accepted,
            rejection=outcome.rejection,
            reachable_from_a=reachable_a,
            reachable_from_b=reachable_b,
            bridge=bridge,
            state=session.state,
        )

    def _create_status_response(self, session_id: UUID, slot: _SessionSlot) -> SessionStatusResponse:
        """Convert the status of a GameSession into a SessionStatusResponse."""
        session = slot.session
        status = session.status()
        return SessionStatusResponse(
            session_id=session_id,
            seed_a=session.seed_a.key,
            seed_b=session.seed_b.key,
            state=status.state,
            shortest_path_length=status.shortest_path_length,
            shortest_path=[node_id.to_key() for node_id in status.shortest_path],
            score=status.score,
            challenge=session.challenge.name,
            record_id=slot.record_id,
        )

    def _fetch_slot(self, session_id: UUID) -> _SessionSlot:
        """Attempt to find the session and raise error if it fails."""
        with self._registry_lock:
            slot = self._sessions.get(session_id)
        if slot is None:
            raise SessionNotFoundError(f"Session with {session_id=} not found.")
        return slot
