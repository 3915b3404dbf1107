"""Custom exceptions. Every layer raises a subclass of SixDegreesError, so callers can catch one top-level type."""


class SixDegreesError(Exception):
    """Top-level exception for anything going wrong in the game backend."""


# --- request / input validation ---
class InvalidRequestError(SixDegreesError):
    """Raised inside request model validators (not a ValueError, so pydantic lets it propagate as is)."""


class InvalidEntityError(SixDegreesError):
    """An entity was built with credits that cannot exist (e.g. a movie crediting another movie)."""


class InvalidSeedError(SixDegreesError):
    """The seed pair must be two different actors."""


# --- board / graph ---
class DuplicateNodeError(SixDegreesError):
    """A node with the same id is already on the board."""


class GraphIntegrityError(SixDegreesError):
    """An edge was supplied that does not belong to the node being committed."""


class InvariantViolationError(SixDegreesError):
    """Bookkeeping of the connectivity tracker is inconsistent. Always a bug, never user input."""


# --- session / service ---
class SessionStateError(SixDegreesError):
    """Operation not allowed in the current session state."""


class SessionNotFoundError(SixDegreesError):
    """No running session with the requested id."""


class RepositoryError(SixDegreesError):
    """Persistence layer could not store or read a record."""


class RecordNotFoundError(RepositoryError):
    """No stored game with the requested id."""


class ProviderError(SixDegreesError):
    """The metadata provider failed or returned something that does not validate."""
