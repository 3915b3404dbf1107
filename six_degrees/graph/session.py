"""
The GameSession is the entrypoint into the domain layer for the service layer.
It owns the board, the connectivity trees and the game status, and all mutation goes through
`add_entity` and `reset`. The service layer only passes it fully resolved nodes.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, Self

from six_degrees.core.exceptions import (
    DuplicateNodeError,
    InvalidSeedError,
    InvariantViolationError,
    SessionStateError,
)
from six_degrees.core.logging import get_logger
from six_degrees.core.models import GameRecordModel
from six_degrees.core.shared_types import (
    EntityKind,
    RejectionReason,
    ScoringConvention,
    SessionState,
)
from six_degrees.graph.challenge import Challenge
from six_degrees.graph.connectability import check_candidate
from six_degrees.graph.entities import Node, NodeId
from six_degrees.graph.scoring import completion_score
from six_degrees.graph.store import BoardGraph, BoardSnapshot
from six_degrees.graph.tracker import Bridge, ConnectivityResult, ConnectivityTracker

log = get_logger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class AddEntityOutcome:
    """Either the candidate was placed (with its connectivity result) or it was rejected (with a reason)."""

    node_id: NodeId
    connectivity: Optional[ConnectivityResult] = None
    rejection: Optional[RejectionReason] = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None

    @property
    def bridge(self) -> Optional[Bridge]:
        return self.connectivity if isinstance(self.connectivity, Bridge) else None


@dataclass(frozen=True)
class SessionStatus:
    state: SessionState
    shortest_path_length: Optional[int]
    score: Optional[int]
    shortest_path: tuple[NodeId, ...] = ()
    elapsed_seconds: Optional[int] = None


@dataclass
class GameSession:
    seed_a: Node
    seed_b: Node
    board: BoardGraph
    tracker: ConnectivityTracker
    state: SessionState
    started_at: float
    clock: Clock = time.monotonic
    scoring: ScoringConvention = ScoringConvention.EFFICIENCY
    challenge: Challenge = Challenge()
    shortest_bridge: Optional[Bridge] = None
    score: Optional[int] = None
    completion_seconds: Optional[int] = None

    @classmethod
    def start(
        cls,
        seed_a: Node,
        seed_b: Node,
        clock: Clock = time.monotonic,
        scoring: ScoringConvention = ScoringConvention.EFFICIENCY,
        challenge: Optional[Challenge] = None,
    ) -> Self:
        """Put the two seed actors on an otherwise empty board."""
        _validate_seeds(seed_a, seed_b)
        session = cls(
            seed_a=seed_a,
            seed_b=seed_b,
            board=BoardGraph.with_seeds(seed_a, seed_b),
            tracker=ConnectivityTracker(seed_a.id, seed_b.id),
            state=SessionState.IN_PROGRESS,
            started_at=clock(),
            clock=clock,
            scoring=scoring,
            challenge=challenge or Challenge(),
        )
        log.info(
            "session_started",
            seed_a=seed_a.key,
            seed_b=seed_b.key,
            challenge=session.challenge.name,
        )
        return session

    @property
    def seeds(self) -> tuple[NodeId, NodeId]:
        return (self.seed_a.id, self.seed_b.id)

    @property
    def shortest_path_length(self) -> Optional[int]:
        return self.shortest_bridge.path_length if self.shortest_bridge else None

    def add_entity(self, candidate: Node) -> AddEntityOutcome:
        """
        Attempt to place a candidate on the board
        -----

        1. check the candidate may join (duplicate / challenge / connectability)
        2. discover its edges and commit node + edges
        3. update the connectivity trees
        4. bridge found? --> update shortest path, complete the game the first time around

        An invariant violation in step 3 rolls the commit back and is raised to the caller.
        """
        if self.state == SessionState.NOT_STARTED:
            raise SessionStateError("Session has not been started (or is being reset).")

        rejection = self.quick_check(candidate.id) or check_candidate(
            candidate, self.board.nodes, self.seeds
        )
        if rejection is not None:
            return self._reject(candidate, rejection)

        edges = self.board.discover_edges(candidate)
        if not edges:
            # bootstrap co-star rule can accept a person that still has nothing to attach to
            return self._reject(candidate, RejectionReason.NOT_CONNECTABLE)

        try:
            self.board.commit(candidate, edges)
        except DuplicateNodeError:
            return self._reject(candidate, RejectionReason.DUPLICATE_NODE)

        try:
            result = self.tracker.add_entity(candidate.id, edges, self.board)
        except InvariantViolationError as exc:
            self.tracker.rollback()
            self.board.rollback(candidate.id)
            log.error("invariant_violation", node=candidate.key, error=str(exc))
            raise

        log.info(
            "entity_added",
            node=candidate.key,
            edges=len(edges),
            guest_edges=sum(edge.is_guest_appearance for edge in edges),
        )
        if isinstance(result, Bridge):
            self._register_bridge(result)
        return AddEntityOutcome(node_id=candidate.id, connectivity=result)

    def quick_check(self, node_id: NodeId) -> Optional[RejectionReason]:
        """The checks that only need the id: already on the board, or blocked by the challenge."""
        if node_id in self.board:
            return RejectionReason.DUPLICATE_NODE
        if not self.challenge.allows(node_id):
            return RejectionReason.NOT_CONNECTABLE
        return None

    def reset(self, seed_a: Optional[Node] = None, seed_b: Optional[Node] = None) -> None:
        """Throw away board and trees, and start over from the (possibly new) seed pair."""
        seed_a = seed_a or self.seed_a
        seed_b = seed_b or self.seed_b
        _validate_seeds(seed_a, seed_b)

        self._change_state(SessionState.NOT_STARTED)
        self.seed_a = seed_a
        self.seed_b = seed_b
        self.board = BoardGraph.with_seeds(seed_a, seed_b)
        self.tracker = ConnectivityTracker(seed_a.id, seed_b.id)
        self.shortest_bridge = None
        self.score = None
        self.completion_seconds = None
        self.started_at = self.clock()
        self._change_state(SessionState.IN_PROGRESS)
        log.info("session_reset", seed_a=seed_a.key, seed_b=seed_b.key)

    def snapshot(self) -> BoardSnapshot:
        return self.board.snapshot()

    def status(self) -> SessionStatus:
        return SessionStatus(
            state=self.state,
            shortest_path_length=self.shortest_path_length,
            score=self.score,
            shortest_path=self.shortest_bridge.full_path if self.shortest_bridge else (),
            elapsed_seconds=self.completion_seconds,
        )

    def to_record(self) -> GameRecordModel:
        """Encode a completed game into the format the persistence layer stores."""
        if self.state != SessionState.COMPLETED or self.shortest_bridge is None:
            raise SessionStateError(f"Only completed games can be recorded. state: {self.state}")
        assert self.score is not None and self.completion_seconds is not None

        return GameRecordModel(
            seed_a=self.seed_a.key,
            seed_b=self.seed_b.key,
            full_path=[node_id.to_key() for node_id in self.shortest_bridge.full_path],
            path_length=self.shortest_bridge.path_length,
            board_size=self.board.unique_node_count(self.seeds),
            elapsed_seconds=self.completion_seconds,
            score=self.score,
            scoring=str(self.scoring),
            challenge=self.challenge.name,
            bridge=self.shortest_bridge.bridge_node_id.to_key(),
        )

    # -- PRIVATE HELPERS ---
    def _reject(self, candidate: Node, reason: RejectionReason) -> AddEntityOutcome:
        log.debug("entity_rejected", node=candidate.key, reason=str(reason))
        return AddEntityOutcome(node_id=candidate.id, rejection=reason)

    def _register_bridge(self, bridge: Bridge) -> None:
        """
        Keep the shortest bridge seen so far.
        ---

        NOTE the score is only computed on the first connection. Keep playing after that only improves the path.
        """
        if self.shortest_bridge is None or bridge.path_length <= self.shortest_bridge.path_length:
            self.shortest_bridge = bridge

        if self.state == SessionState.IN_PROGRESS:
            elapsed = max(1, int(self.clock() - self.started_at))
            self.completion_seconds = elapsed
            self.score = completion_score(
                path_length=bridge.path_length,
                total_unique_board_nodes=self.board.unique_node_count(self.seeds),
                elapsed_seconds=elapsed,
                convention=self.scoring,
            )
            self._change_state(SessionState.COMPLETED)
            log.info(
                "game_completed",
                path_length=bridge.path_length,
                score=self.score,
                elapsed_seconds=elapsed,
            )

    def _change_state(self, new_state: SessionState) -> None:
        self.state = new_state


def _validate_seeds(seed_a: Node, seed_b: Node) -> None:
    if seed_a.kind != EntityKind.PERSON or seed_b.kind != EntityKind.PERSON:
        raise InvalidSeedError(f"Seeds must be actors, got {seed_a.key} and {seed_b.key}.")
    if seed_a.id == seed_b.id:
        raise InvalidSeedError(
            f"Cannot start with duplicate actors ({seed_a.key}). Pick two different actors."
        )
