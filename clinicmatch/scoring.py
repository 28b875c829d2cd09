"""
Score engine: priority score for one signed-up candidate.

Responsibilities:
- Combine participation history with this sign-up's answers.

Non-Responsibilities:
- No database writes.
- No ranking or truncation.

Invariant:
Given identical inputs and the same "today", the score is identical.
Missing or non-numeric history values count as zero.
"""

from datetime import date
from typing import Iterable, List, Optional

from .config import ScoringWeights
from .directory import as_number
from .errors import InvalidIdentity
from .identity import Tier
from .models import PoolEntry, ScoredCandidate


class ScoreEngine:
    def __init__(self, weights: ScoringWeights, today: Optional[date] = None):
        self.weights = weights
        self.today = today or date.today()

    def score(self, entry: PoolEntry) -> float:
        w = self.weights
        candidate = entry.candidate
        attrs = entry.attributes
        try:
            tier: Optional[Tier] = Tier.parse(candidate.tier)
        except InvalidIdentity:
            tier = None

        score = float(as_number(candidate.sign_up_count) - as_number(candidate.match_count))

        if attrs.flag(w.special_position_attribute) and tier in w.junior_tiers:
            score *= w.special_multiplier
        if attrs.flag(w.elective_attribute) and tier == w.senior_most_tier:
            score += w.elective_bonus
        if attrs.flag(w.language_attribute):
            score += w.language_bonus

        score += w.seniority_for(tier)

        last = candidate.last_match_date
        if not isinstance(last, date):
            score += w.never_matched_bonus
        else:
            score += (self.today - last).days / 365

        score -= self.penalty(entry)
        return score

    def penalty(self, entry: PoolEntry) -> float:
        w = self.weights
        c = entry.candidate
        return (
            as_number(c.no_show_count) * w.no_show_penalty
            + as_number(c.late_cancel_count) * w.late_cancel_penalty
            + as_number(c.early_cancel_count) * w.early_cancel_penalty
        )

    def score_all(self, entries: Iterable[PoolEntry]) -> List[ScoredCandidate]:
        return [
            ScoredCandidate(entry.candidate, entry.attributes, self.score(entry))
            for entry in entries
        ]
