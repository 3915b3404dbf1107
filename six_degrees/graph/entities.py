"""
The things that can be placed on the board (actors, movies, shows) and the edges between them.

(placed in its own module as every other part of the engine needs to import it)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from six_degrees.core.exceptions import InvalidEntityError
from six_degrees.core.shared_types import EntityKind

MEDIA_KINDS = frozenset({EntityKind.MOVIE, EntityKind.SHOW})


@dataclass(frozen=True, order=True)
class NodeId:
    kind: EntityKind
    external_id: int

    @classmethod
    def from_key(cls, key: str) -> NodeId:
        """Key notation: 'person-31' gets converted to (PERSON, 31)"""
        kind, _, external_id = key.partition("-")
        try:
            return cls(EntityKind(kind), int(external_id))
        except ValueError as exc:
            raise InvalidEntityError(f"Cannot interpret {key!r} as a node key.") from exc

    def to_key(self) -> str:
        return f"{self.kind}-{self.external_id}"

    def __str__(self) -> str:
        return self.to_key()


@dataclass(frozen=True)
class Credit:
    """One known relation of an entity: an actor's movie/show credit, or a cast member of a movie/show."""

    target: NodeId
    is_guest_appearance: bool = False


@dataclass
class Node:
    id: NodeId
    credits: dict[NodeId, Credit] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for credit in self.credits.values():
            self._validate_credit(credit)

    @classmethod
    def person(
        cls,
        external_id: int,
        movies: Iterable[int] = (),
        shows: Iterable[tuple[int, bool]] = (),
    ) -> Node:
        """An actor with their movie credits and (show id, is guest appearance) tv credits."""
        credits = [Credit(NodeId(EntityKind.MOVIE, movie_id)) for movie_id in movies]
        credits.extend(
            Credit(NodeId(EntityKind.SHOW, show_id), is_guest)
            for show_id, is_guest in shows
        )
        return cls(NodeId(EntityKind.PERSON, external_id), _merge_credits(credits))

    @classmethod
    def movie(cls, external_id: int, cast: Iterable[int] = ()) -> Node:
        credits = [Credit(NodeId(EntityKind.PERSON, person_id)) for person_id in cast]
        return cls(NodeId(EntityKind.MOVIE, external_id), _merge_credits(credits))

    @classmethod
    def show(cls, external_id: int, cast: Iterable[tuple[int, bool]] = ()) -> Node:
        """A TV show with its (aggregate) cast as (person id, is guest appearance) pairs."""
        credits = [
            Credit(NodeId(EntityKind.PERSON, person_id), is_guest)
            for person_id, is_guest in cast
        ]
        return cls(NodeId(EntityKind.SHOW, external_id), _merge_credits(credits))

    @property
    def kind(self) -> EntityKind:
        return self.id.kind

    @property
    def key(self) -> str:
        return self.id.to_key()

    def credit_for(self, other: NodeId) -> Optional[Credit]:
        return self.credits.get(other)

    def credited(self, kind: EntityKind) -> set[NodeId]:
        """All credited ids of the given kind."""
        return {target for target in self.credits if target.kind == kind}

    def backfill_guest_appearance(self, person: NodeId) -> bool:
        """
        The only mutation a placed node allows.
        ---

        Guest stars are often missing from a show's own cast list but present on the actor's record.
        Once such a relation is discovered, record it on the show too. Returns True if something was added.
        """
        if self.kind != EntityKind.SHOW:
            raise InvalidEntityError(
                f"Only shows take guest appearance backfills, not {self.key}."
            )
        if person in self.credits:
            return False
        credit = Credit(person, is_guest_appearance=True)
        self._validate_credit(credit)
        self.credits[person] = credit
        return True

    def remove_backfill(self, person: NodeId) -> None:
        """Undo `backfill_guest_appearance` (used when the commit that caused it is rolled back)."""
        self.credits.pop(person, None)

    def _validate_credit(self, credit: Credit) -> None:
        target_kind = credit.target.kind
        if self.kind == EntityKind.PERSON and target_kind not in MEDIA_KINDS:
            raise InvalidEntityError(
                f"{self.key} can only be credited for movies and shows, got {credit.target}."
            )
        if self.kind in MEDIA_KINDS and target_kind != EntityKind.PERSON:
            raise InvalidEntityError(
                f"The cast of {self.key} can only contain persons, got {credit.target}."
            )
        if credit.is_guest_appearance and EntityKind.SHOW not in (
            self.kind,
            target_kind,
        ):
            raise InvalidEntityError(
                f"Guest appearances only exist for shows ({self.key} -> {credit.target})."
            )


@dataclass(frozen=True)
class Edge:
    """Undirected shared-credit relation. Endpoints are stored in sorted order, so (a, b) == (b, a)."""

    a: NodeId
    b: NodeId
    is_guest_appearance: bool = False

    @classmethod
    def between(cls, first: NodeId, second: NodeId, is_guest_appearance: bool = False) -> Edge:
        if first == second:
            raise InvalidEntityError(f"An edge needs two different nodes, got {first} twice.")
        a, b = sorted((first, second))
        return cls(a, b, is_guest_appearance)

    @property
    def pair(self) -> frozenset[NodeId]:
        return frozenset((self.a, self.b))

    def touches(self, node_id: NodeId) -> bool:
        return node_id in (self.a, self.b)

    def other(self, node_id: NodeId) -> NodeId:
        if node_id == self.a:
            return self.b
        if node_id == self.b:
            return self.a
        raise InvalidEntityError(f"{node_id} is not an endpoint of {self.a}-{self.b}.")


def _merge_credits(credits: Iterable[Credit]) -> dict[NodeId, Credit]:
    """Providers list the same show once per role. A single regular role wins over any number of guest roles."""
    merged: dict[NodeId, Credit] = {}
    for credit in credits:
        known = merged.get(credit.target)
        if known is None or (known.is_guest_appearance and not credit.is_guest_appearance):
            merged[credit.target] = credit
    return merged
