from typing import List

from .models import ScoredCandidate

PROVIDERS_PER_ROOM_MAX = 2


def rank(scored: List[ScoredCandidate], capacity: int) -> List[ScoredCandidate]:
    """
    Order candidates by score, highest first, and keep at most two per room.

    sorted() is stable, so equal scores keep sign-up order.
    """
    limit = max(capacity, 0) * PROVIDERS_PER_ROOM_MAX
    ordered = sorted(scored, key=lambda sc: sc.score, reverse=True)
    return ordered[:limit]
