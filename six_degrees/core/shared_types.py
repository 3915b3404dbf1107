"""
Type definitions used across layers
"""

from enum import StrEnum


class EntityKind(StrEnum):
    PERSON = "person"
    MOVIE = "movie"
    SHOW = "show"


class SessionState(StrEnum):
    NOT_STARTED = "not started"
    IN_PROGRESS = "in progress"
    COMPLETED = "completed"


class RejectionReason(StrEnum):
    DUPLICATE_NODE = "duplicate node"
    NOT_CONNECTABLE = "not connectable"


class ScoringConvention(StrEnum):
    """The two ways a completed game has been scored.

    EFFICIENCY rewards a short path relative to the board size and a fast finish (higher is better).
    ELAPSED_TIMES_LENGTH multiplies elapsed seconds by the path length (lower is better).
    """

    EFFICIENCY = "efficiency"
    ELAPSED_TIMES_LENGTH = "elapsed times length"
