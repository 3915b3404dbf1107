"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
The domain layer produces them when a game completes, the DB layer stores them, the API layer shows them on the leaderboard.
"""

from dataclasses import dataclass

# Type aliases to make GameRecordModel easier to read
NodeKey = str  # "person-31", "movie-603", ...


@dataclass
class GameRecordModel:
    """Transport-safe representation of a completed game."""

    seed_a: NodeKey
    seed_b: NodeKey
    full_path: list[NodeKey]
    path_length: int
    board_size: int
    elapsed_seconds: int
    score: int
    scoring: str
    challenge: str = "classic"
    session_id: str = ""
    bridge: NodeKey = ""
    record_id: str = ""  # set once stored
