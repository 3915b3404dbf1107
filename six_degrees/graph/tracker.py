"""
Incremental connectivity tracking.

Every seed actor roots a tree of the board nodes reachable from it: node -> (parent in tree, depth).
Adding a node only touches the new node's edges and the nodes whose depth actually improves,
so the board is never searched from scratch.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol, Union

from six_degrees.core.exceptions import InvariantViolationError
from six_degrees.core.logging import get_logger
from six_degrees.graph.entities import Edge, NodeId

log = get_logger(__name__)


class Neighbourhood(Protocol):
    """What the tracker needs to know about the board: who is adjacent to whom, and how many nodes there are."""

    def neighbours(self, node_id: NodeId) -> set[NodeId]: ...

    def __len__(self) -> int: ...


@dataclass(frozen=True)
class Reach:
    parent: Optional[NodeId]
    depth: int


@dataclass(frozen=True)
class NoBridge:
    reachable_from_a: bool
    reachable_from_b: bool


@dataclass(frozen=True)
class Bridge:
    bridge_node_id: NodeId
    path_length: int
    full_path: tuple[NodeId, ...]


ConnectivityResult = Union[NoBridge, Bridge]


@dataclass
class ReachableSet:
    """All board nodes reachable from one seed actor, as a shortest-path tree."""

    root: NodeId
    entries: dict[NodeId, Reach] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.entries.setdefault(self.root, Reach(parent=None, depth=0))

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, node_id: NodeId) -> Optional[Reach]:
        return self.entries.get(node_id)

    def depth(self, node_id: NodeId) -> int:
        return self.entries[node_id].depth

    def path_to_root(self, node_id: NodeId, max_steps: int) -> list[NodeId]:
        """
        Walk the parent pointers: [node, parent, ..., root].
        ---

        A healthy tree reaches the root in at most `max_steps` hops, with the depth dropping by one per hop.
        Anything else means the bookkeeping is broken.
        """
        path = [node_id]
        current = self.entries.get(node_id)
        if current is None:
            raise InvariantViolationError(f"{node_id} is not reachable from {self.root}.")

        while current.parent is not None:
            if len(path) > max_steps:
                raise InvariantViolationError(
                    f"Parent chain of {node_id} does not reach {self.root} within {max_steps} steps."
                )
            parent = self.entries.get(current.parent)
            if parent is None or parent.depth != current.depth - 1:
                raise InvariantViolationError(
                    f"Broken parent link {path[-1]} -> {current.parent} in tree of {self.root}."
                )
            path.append(current.parent)
            current = parent

        if path[-1] != self.root:
            raise InvariantViolationError(
                f"Parent chain of {node_id} ends at {path[-1]}, not at {self.root}."
            )
        return path


# (tree, node, entry before the write) -- replayed backwards on rollback
JournalEntry = tuple[ReachableSet, NodeId, Optional[Reach]]


class ConnectivityTracker:
    """Keeps one reachable set per seed actor up to date while nodes are added."""

    def __init__(self, seed_a: NodeId, seed_b: NodeId) -> None:
        self.seed_a = seed_a
        self.seed_b = seed_b
        self.tree_a = ReachableSet(seed_a)
        self.tree_b = ReachableSet(seed_b)
        self.best_bridge: Optional[Bridge] = None
        self._order: dict[NodeId, int] = {seed_a: 0, seed_b: 1}
        self._journal: list[JournalEntry] = []
        self._previous_best: Optional[Bridge] = None
        self._last_added: Optional[NodeId] = None

    @property
    def seeds(self) -> tuple[NodeId, NodeId]:
        return (self.seed_a, self.seed_b)

    def is_reachable(self, node_id: NodeId) -> tuple[bool, bool]:
        return node_id in self.tree_a, node_id in self.tree_b

    def add_entity(
        self, node_id: NodeId, edges: Iterable[Edge], board: Neighbourhood
    ) -> ConnectivityResult:
        """
        Update both trees for a node that was just committed to the board.
        ---

        1. Attach the node to every tree one of its edge partners belongs to (shallowest partner becomes the parent).
        2. Relax: the node may offer a shorter route to nodes already in the tree, or bring in the other seed's side.
        3. Node in both trees? --> bridge. Pick the candidate with the shortest combined path.
        """
        self._journal = []
        self._previous_best = self.best_bridge
        self._last_added = node_id
        self._order[node_id] = len(self._order)

        partners = [edge.other(node_id) for edge in edges]
        improved: set[NodeId] = set()
        for tree in (self.tree_a, self.tree_b):
            improved |= self._attach(tree, node_id, partners, board)

        in_a, in_b = self.is_reachable(node_id)
        if not (in_a and in_b):
            if not (in_a or in_b):
                log.warning("entity_unreachable", node=str(node_id))
            return NoBridge(reachable_from_a=in_a, reachable_from_b=in_b)

        candidates = {node_id} | {
            other
            for other in improved
            if other in self.tree_a and other in self.tree_b
        }
        if self.best_bridge is not None:
            candidates.add(self.best_bridge.bridge_node_id)
        candidates -= set(self.seeds)

        bridge_id = min(candidates, key=self._bridge_rank)
        bridge = self.reconstruct(bridge_id, board)
        self.best_bridge = bridge
        log.info(
            "bridge_found",
            node=str(node_id),
            bridge=str(bridge.bridge_node_id),
            path_length=bridge.path_length,
        )
        return bridge

    def reconstruct(self, bridge_id: NodeId, board: Neighbourhood) -> Bridge:
        """Full path seed A ... bridge ... seed B, following the parent pointers of both trees."""
        max_steps = len(board)
        from_a = self.tree_a.path_to_root(bridge_id, max_steps)
        from_b = self.tree_b.path_to_root(bridge_id, max_steps)
        full_path = tuple(reversed(from_a)) + tuple(from_b[1:])

        path_length = len(full_path) - 1
        expected = self.tree_a.depth(bridge_id) + self.tree_b.depth(bridge_id)
        if path_length < 0 or path_length != expected:
            raise InvariantViolationError(
                f"Path through {bridge_id} has {path_length} edges, depths say {expected}."
            )
        if len(set(full_path)) != len(full_path):
            raise InvariantViolationError(f"Path through {bridge_id} visits a node twice: {full_path}.")
        return Bridge(bridge_node_id=bridge_id, path_length=path_length, full_path=full_path)

    def rollback(self) -> None:
        """Undo every write made by the last `add_entity` call."""
        for tree, node_id, before in reversed(self._journal):
            if before is None:
                tree.entries.pop(node_id, None)
            else:
                tree.entries[node_id] = before
        self._journal = []
        self.best_bridge = self._previous_best
        if self._last_added is not None:
            self._order.pop(self._last_added, None)
            self._last_added = None

    # -- PRIVATE HELPERS ---
    def _attach(
        self,
        tree: ReachableSet,
        node_id: NodeId,
        partners: list[NodeId],
        board: Neighbourhood,
    ) -> set[NodeId]:
        """Add the node to the tree (if any partner is in it) and relax its neighbourhood. Returns every node written."""
        in_tree = [partner for partner in partners if partner in tree]
        if not in_tree:
            return set()

        parent = min(in_tree, key=lambda partner: (tree.depth(partner), -self._order[partner]))
        self._write(tree, node_id, Reach(parent, tree.depth(parent) + 1))
        return {node_id} | self._relax_from(tree, node_id, board)

    def _relax_from(self, tree: ReachableSet, start: NodeId, board: Neighbourhood) -> set[NodeId]:
        """
        Breadth-first relaxation starting at a freshly (re)placed node.
        ---

        A neighbour is only visited when the route via the current node is strictly shorter than what it has.
        Because of unit edge weights, the first improvement found for a node is already its final depth.
        """
        improved: set[NodeId] = set()
        queue = deque([start])
        while queue:
            current = queue.popleft()
            next_depth = tree.depth(current) + 1
            for neighbour in sorted(board.neighbours(current)):
                known = tree.get(neighbour)
                if known is not None and known.depth <= next_depth:
                    continue
                self._write(tree, neighbour, Reach(current, next_depth))
                improved.add(neighbour)
                queue.append(neighbour)
        return improved

    def _write(self, tree: ReachableSet, node_id: NodeId, reach: Reach) -> None:
        self._journal.append((tree, node_id, tree.get(node_id)))
        tree.entries[node_id] = reach

    def _bridge_rank(self, node_id: NodeId) -> tuple[int, int]:
        """Shortest combined path first, most recently added node on ties."""
        combined = self.tree_a.depth(node_id) + self.tree_b.depth(node_id)
        return combined, -self._order.get(node_id, -1)
