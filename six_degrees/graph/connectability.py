"""
Rules deciding whether a candidate entity may join the board.

All functions here are queries: nothing on the board is changed.
"""

from typing import Iterable, Mapping, Optional

from six_degrees.core.shared_types import EntityKind, RejectionReason
from six_degrees.graph.entities import MEDIA_KINDS, Node, NodeId

Seeds = tuple[NodeId, NodeId]


def relation(first: Node, second: Node) -> Optional[bool]:
    """
    The shared-credit relation between two nodes.
    ---

    Returns None when the two are unrelated, otherwise whether the relation is a guest appearance only.
    Checked in both directions: a guest star may be missing from the show's cast but present on the actor's record.
    Only person <-> movie/show pairs can be related.
    """
    kinds = {first.kind, second.kind}
    if EntityKind.PERSON not in kinds or not kinds & MEDIA_KINDS:
        return None

    found = [
        credit
        for credit in (first.credit_for(second.id), second.credit_for(first.id))
        if credit is not None
    ]
    if not found:
        return None
    return all(credit.is_guest_appearance for credit in found)


def is_related(first: Node, second: Node) -> bool:
    return relation(first, second) is not None


def check_candidate(
    candidate: Node, board: Mapping[NodeId, Node], seeds: Seeds
) -> Optional[RejectionReason]:
    """
    Why the candidate cannot join the board (None if it can).
    ---

    1. Already on the board (which includes being one of the seed actors)? --> duplicate
    2. Board holds only the seeds? --> bootstrap rules
    3. Otherwise --> general rules against every node on the board
    """
    if candidate.id in board or candidate.id in seeds:
        return RejectionReason.DUPLICATE_NODE

    if _is_bootstrap(board, seeds):
        connectable = is_connectable_to_seeds(candidate, board[seeds[0]], board[seeds[1]])
    else:
        connectable = is_connectable_to_board(candidate, board.values())

    return None if connectable else RejectionReason.NOT_CONNECTABLE


def is_connectable_to_seeds(candidate: Node, seed_a: Node, seed_b: Node) -> bool:
    """
    Bootstrap phase: only the two seed actors are on the board.
    ---

    * Movie / Show: either seed is in its cast, or (show) lists it among their tv credits / guest appearances
    * Person: shares any movie or show credit with either seed actor
    """
    seeds = (seed_a, seed_b)
    if candidate.id in (seed_a.id, seed_b.id):
        return False

    if candidate.kind in MEDIA_KINDS:
        return any(is_related(candidate, seed) for seed in seeds)

    candidate_media = candidate.credited(EntityKind.MOVIE) | candidate.credited(EntityKind.SHOW)
    return any(
        candidate_media & (seed.credited(EntityKind.MOVIE) | seed.credited(EntityKind.SHOW))
        for seed in seeds
    )


def is_connectable_to_board(candidate: Node, board_nodes: Iterable[Node]) -> bool:
    """
    General phase.
    ---

    * Movie: a person on the board is in its cast
    * Show: a person on the board is in its cast, OR the person's own credits list the show (regular or guest)
    * Person: they share a credit with a movie or show on the board
    """
    return any(is_related(candidate, node) for node in board_nodes)


def _is_bootstrap(board: Mapping[NodeId, Node], seeds: Seeds) -> bool:
    return len(board) <= 2 and all(seed in board for seed in seeds)
