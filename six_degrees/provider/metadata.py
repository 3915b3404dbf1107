"""
Boundary to the entity metadata provider (an external collaborator, e.g. a TMDB client with its own caching).

The provider may hand back loosely typed payloads. They are validated here, once, and turned into Nodes,
so the engine never sees a partially fetched or malformed entity.
"""

from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from six_degrees.core.exceptions import ProviderError
from six_degrees.core.logging import get_logger
from six_degrees.core.shared_types import EntityKind
from six_degrees.graph.entities import Node

log = get_logger(__name__)


# --- PAYLOAD MODELS ---
class _Payload(BaseModel):
    """Accepts snake_case and camelCase keys (`is_guest_appearance` or `isGuestAppearance`)."""

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)


class MovieCredit(_Payload):
    id: int


class ShowCredit(_Payload):
    id: int
    is_guest_appearance: bool = False


class PersonCredits(_Payload):
    movies: list[MovieCredit] = Field(default_factory=list)
    shows: list[ShowCredit] = Field(default_factory=list)


class MovieCastMember(_Payload):
    person_id: int


class ShowCastMember(_Payload):
    person_id: int
    is_guest_appearance: bool = False


_MOVIE_CAST = TypeAdapter(list[MovieCastMember])
_SHOW_CAST = TypeAdapter(list[ShowCastMember])


class EntityMetadataProvider(Protocol):
    """Anything that can look up credits. Return values may be the models above or plain dicts/lists."""

    def get_person_credits(self, person_id: int) -> PersonCredits | dict[str, Any]:
        """Movie and tv credits (including guest appearances) of an actor."""
        ...

    def get_movie_cast(self, movie_id: int) -> list[MovieCastMember] | list[dict[str, Any]]:
        """Cast list of a movie."""
        ...

    def get_show_cast(self, show_id: int) -> list[ShowCastMember] | list[dict[str, Any]]:
        """Aggregate cast list of a show."""
        ...


def resolve_entity(provider: EntityMetadataProvider, kind: EntityKind, external_id: int) -> Node:
    """Fetch and validate the credits of one entity, then build its Node."""
    try:
        if kind == EntityKind.PERSON:
            credits = PersonCredits.model_validate(
                _as_data(provider.get_person_credits(external_id))
            )
            return Node.person(
                external_id,
                movies=[movie.id for movie in credits.movies],
                shows=[(show.id, show.is_guest_appearance) for show in credits.shows],
            )
        if kind == EntityKind.MOVIE:
            cast = _MOVIE_CAST.validate_python(_as_data(provider.get_movie_cast(external_id)))
            return Node.movie(external_id, cast=[member.person_id for member in cast])
        if kind == EntityKind.SHOW:
            cast = _SHOW_CAST.validate_python(_as_data(provider.get_show_cast(external_id)))
            return Node.show(
                external_id,
                cast=[(member.person_id, member.is_guest_appearance) for member in cast],
            )
    except ValidationError as exc:
        log.warning("provider_payload_invalid", kind=str(kind), external_id=external_id)
        raise ProviderError(f"Invalid metadata for {kind}-{external_id}: {exc}") from exc
    except ProviderError:
        raise
    except Exception as exc:
        log.warning(
            "provider_fetch_failed", kind=str(kind), external_id=external_id, error=str(exc)
        )
        raise ProviderError(f"Could not fetch metadata for {kind}-{external_id}.") from exc

    raise ProviderError(f"Unknown entity kind: {kind!r}")


def _as_data(payload: Any) -> Any:
    """Pydantic models from the provider are re-validated through their dict form."""
    if isinstance(payload, BaseModel):
        return payload.model_dump()
    if isinstance(payload, list):
        return [_as_data(item) for item in payload]
    return payload
