"""
Challenge modes: restrictions on which movies and shows may be placed.

`classic` and `for-fun` place no restriction. `movies-only` and `tv-only` block a whole kind.
Blacklist challenges (`no-marvel`, `no-dc`, ...) block individual ids, supplied by the caller.
Actors are never blocked.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Self

from six_degrees.core.exceptions import InvalidRequestError
from six_degrees.core.shared_types import EntityKind
from six_degrees.graph.entities import NodeId

CLASSIC = "classic"
UNRESTRICTED = frozenset({CLASSIC, "for-fun"})
MOVIES_ONLY = "movies-only"
TV_ONLY = "tv-only"


@dataclass(frozen=True)
class Challenge:
    name: str = CLASSIC
    blocked_movies: frozenset[int] = frozenset()
    blocked_shows: frozenset[int] = frozenset()
    all_movies_blocked: bool = False
    all_shows_blocked: bool = False

    @classmethod
    def named(
        cls,
        name: Optional[str] = None,
        blocked_movies: Iterable[int] = (),
        blocked_shows: Iterable[int] = (),
    ) -> Self:
        """
        Build a challenge from its name
        ---

        * classic / for-fun: no blacklist allowed
        * movies-only / tv-only: the other kind is blocked entirely, plus any extra ids
        * anything else: a blacklist challenge, blocking exactly the given ids
        """
        name = CLASSIC if name is None else name.strip()
        if not name:
            raise InvalidRequestError("Challenge name cannot be blank.")

        movies = frozenset(blocked_movies)
        shows = frozenset(blocked_shows)
        if name in UNRESTRICTED and (movies or shows):
            raise InvalidRequestError(f"The {name!r} challenge does not take a blacklist.")

        return cls(
            name=name,
            blocked_movies=movies,
            blocked_shows=shows,
            all_movies_blocked=name == TV_ONLY,
            all_shows_blocked=name == MOVIES_ONLY,
        )

    def allows(self, node_id: NodeId) -> bool:
        if node_id.kind == EntityKind.MOVIE:
            return not (self.all_movies_blocked or node_id.external_id in self.blocked_movies)
        if node_id.kind == EntityKind.SHOW:
            return not (self.all_shows_blocked or node_id.external_id in self.blocked_shows)
        return True
