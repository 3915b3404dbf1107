"""The board graph: every node placed so far and the shared-credit edges between them."""

from dataclasses import dataclass, field
from typing import Iterator, Self

from six_degrees.core.exceptions import DuplicateNodeError, GraphIntegrityError
from six_degrees.core.shared_types import EntityKind
from six_degrees.graph.connectability import relation
from six_degrees.graph.entities import Edge, Node, NodeId


@dataclass(frozen=True)
class BoardSnapshot:
    """Read-only copy of the board (for rendering). Nodes and edges in insertion order."""

    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]


@dataclass
class BoardGraph:
    nodes: dict[NodeId, Node] = field(default_factory=dict)
    edges: dict[frozenset[NodeId], Edge] = field(default_factory=dict)
    adjacency: dict[NodeId, set[NodeId]] = field(default_factory=dict)
    # show id -> persons backfilled onto it, per committing node (needed to roll a commit back)
    _backfills: dict[NodeId, list[tuple[NodeId, NodeId]]] = field(default_factory=dict)

    @classmethod
    def with_seeds(cls, seed_a: Node, seed_b: Node) -> Self:
        """The seeds are the only nodes allowed on the board without an edge."""
        board = cls()
        for seed in (seed_a, seed_b):
            board.nodes[seed.id] = seed
            board.adjacency[seed.id] = set()
        return board

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes.values())

    def node(self, node_id: NodeId) -> Node:
        return self.nodes[node_id]

    def neighbours(self, node_id: NodeId) -> set[NodeId]:
        return self.adjacency.get(node_id, set())

    def edge(self, first: NodeId, second: NodeId) -> Edge | None:
        return self.edges.get(frozenset((first, second)))

    def discover_edges(self, node: Node) -> list[Edge]:
        """
        Find all edges the (not yet placed) node would get.
        ---

        One edge per related board node, tagged as guest appearance when no regular credit links the two.
        """
        discovered: list[Edge] = []
        for existing in self.nodes.values():
            if existing.id == node.id:
                continue
            is_guest = relation(node, existing)
            if is_guest is not None:
                discovered.append(Edge.between(node.id, existing.id, is_guest))
        return discovered

    def commit(self, node: Node, edges: list[Edge]) -> Node:
        """
        Place the node and its edges.
        ---

        Everything is validated before anything is written, so a failed commit leaves the board untouched.
        """
        if node.id in self.nodes:
            raise DuplicateNodeError(f"{node.key} is already on the board.")

        pairs: set[frozenset[NodeId]] = set()
        for edge in edges:
            if not edge.touches(node.id):
                raise GraphIntegrityError(
                    f"Edge {edge.a}-{edge.b} does not touch the committed node {node.key}."
                )
            other = edge.other(node.id)
            if other not in self.nodes:
                raise GraphIntegrityError(f"Edge to {other}, which is not on the board.")
            if edge.pair in pairs:
                raise GraphIntegrityError(f"Duplicate edge {edge.a}-{edge.b}.")
            pairs.add(edge.pair)

        self.nodes[node.id] = node
        self.adjacency[node.id] = set()
        for edge in edges:
            other = edge.other(node.id)
            self.edges[edge.pair] = edge
            self.adjacency[node.id].add(other)
            self.adjacency[other].add(node.id)
            if edge.is_guest_appearance:
                self._backfill(node.id, self.nodes[other])
        return node

    def rollback(self, node_id: NodeId) -> None:
        """Remove a node committed last, together with its edges and any guest backfills it caused."""
        node = self.nodes.pop(node_id)
        for other in self.adjacency.pop(node_id, set()):
            self.adjacency[other].discard(node_id)
            self.edges.pop(frozenset((node_id, other)), None)
        for show_id, person_id in self._backfills.pop(node_id, []):
            show = node if show_id == node_id else self.nodes[show_id]
            show.remove_backfill(person_id)

    def snapshot(self) -> BoardSnapshot:
        return BoardSnapshot(
            nodes=tuple(self.nodes.values()),
            edges=tuple(self.edges.values()),
        )

    def unique_node_count(self, seeds: tuple[NodeId, NodeId]) -> int:
        """Nodes placed by the player (the two seed actors do not count)."""
        return sum(1 for node_id in self.nodes if node_id not in seeds)

    def _backfill(self, committed: NodeId, other: Node) -> None:
        """The guest relation is known from the actor's side only: record it on the show as well."""
        new_node = self.nodes[committed]
        show, person = (
            (new_node, other) if new_node.kind == EntityKind.SHOW else (other, new_node)
        )
        if show.kind != EntityKind.SHOW:
            return
        if show.backfill_guest_appearance(person.id):
            self._backfills.setdefault(committed, []).append((show.id, person.id))
