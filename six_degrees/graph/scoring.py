"""Score of a completed game"""

from six_degrees.core.exceptions import InvariantViolationError
from six_degrees.core.shared_types import ScoringConvention

# Numerator of the time bonus: a one second finish earns 100000 / 1
TIME_BONUS = 100_000
MIN_ELAPSED_SECONDS = 1


def completion_score(
    path_length: int,
    total_unique_board_nodes: int,
    elapsed_seconds: float,
    convention: ScoringConvention = ScoringConvention.EFFICIENCY,
) -> int:
    """
    Score the game at the moment the two seed actors got connected.
    ---

    EFFICIENCY (higher is better): round((path_length / board nodes) * (100000 / seconds))
    ELAPSED_TIMES_LENGTH (lower is better): round(seconds * path_length)

    NOTE total_unique_board_nodes does not count the two seed actors. An empty board scores 0.
    """
    if path_length < 0:
        raise InvariantViolationError(f"Cannot score a negative path length: {path_length}")

    elapsed = max(elapsed_seconds, MIN_ELAPSED_SECONDS)
    if convention == ScoringConvention.ELAPSED_TIMES_LENGTH:
        return round(elapsed * path_length)

    if total_unique_board_nodes <= 0:
        return 0
    ratio = path_length / total_unique_board_nodes
    time_bonus = TIME_BONUS / elapsed
    return round(ratio * time_bonus)
