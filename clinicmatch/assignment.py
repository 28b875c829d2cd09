"""
Slot assigner: places ranked candidates into clinic rooms.

Primary pass: walk the ranked pool once, taking the first eligible
candidate for each room and deferring ineligible ones to a rollover list.
Secondary pass: rollover followed by whatever the primary pass did not
reach fills the second seat of the rooms that have a primary.
Reserved entries are appended after the rooms and never drawn from the pool.
"""

from dataclasses import dataclass, field
from typing import List

from .config import ClinicConfig
from .identity import CandidateIdentity
from .models import Assignment, ReservedSlot, ScoredCandidate


@dataclass
class AssignmentPlan:
    assignments: List[Assignment] = field(default_factory=list)
    reserved: List[ReservedSlot] = field(default_factory=list)
    rollover: List[ScoredCandidate] = field(default_factory=list)
    unplaced: List[ScoredCandidate] = field(default_factory=list)

    @property
    def matched_identities(self) -> List[CandidateIdentity]:
        primaries = [a.primary for a in self.assignments if a.primary is not None]
        secondaries = [a.secondary for a in self.assignments if a.secondary is not None]
        return primaries + secondaries


class SlotAssigner:
    def __init__(self, config: ClinicConfig):
        self.config = config

    def effective_capacity(self, capacity: int) -> int:
        return max(capacity - self.config.reserved_rooms, 0)

    def is_primary_eligible(self, candidate: ScoredCandidate) -> bool:
        attribute = self.config.eligibility_attribute
        if attribute is None:
            return True
        return candidate.attributes.flag(attribute)

    def assign(self, ranked: List[ScoredCandidate], capacity: int) -> AssignmentPlan:
        rooms = self.effective_capacity(capacity)
        plan = AssignmentPlan()

        primaries: List[ScoredCandidate] = []
        consumed = 0
        for candidate in ranked:
            if len(primaries) >= rooms:
                break
            consumed += 1
            if self.is_primary_eligible(candidate):
                primaries.append(candidate)
            else:
                plan.rollover.append(candidate)

        # Pool ran out first: only the rooms that got a primary exist
        filled = len(primaries)
        plan.assignments = [
            Assignment(room_index=i, primary=sc.identity)
            for i, sc in enumerate(primaries)
        ]

        combined = plan.rollover + list(ranked[consumed:])
        if self.config.providers_per_room > 1:
            seconds = combined[:filled]
            for assignment, sc in zip(plan.assignments, seconds):
                assignment.secondary = sc.identity
            plan.unplaced = combined[len(seconds):]
        else:
            plan.unplaced = combined

        plan.reserved = [ReservedSlot(label) for label in self.config.reserved_labels]
        return plan
