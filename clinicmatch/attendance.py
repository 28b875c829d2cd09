"""
Monthly attendance check over the match history.

Finds roster members with no clinic match in a given month, for the
secretary's reminder e-mails.
"""

from datetime import date
from typing import Iterable, List, Optional

from .database import Candidate
from .directory import CandidateDirectory
from .identity import Tier


def previous_month(today: date) -> tuple:
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


def attended_in(candidate: Candidate, year: int, month: int) -> bool:
    return any(d.year == year and d.month == month for d in candidate.match_dates)


def find_absent(
    directory: CandidateDirectory,
    year: int,
    month: int,
    tiers: Optional[Iterable[Tier]] = None,
) -> List[Candidate]:
    """Roster entries without a match dated in year/month, optionally limited to some tiers."""
    wanted = {t.value for t in tiers} if tiers else None
    absent = []
    for candidate in directory.all_candidates():
        if wanted is not None and candidate.tier not in wanted:
            continue
        if not attended_in(candidate, year, month):
            absent.append(candidate)
    return absent
