"""
In-memory values passed between the stages of a match run.

Nothing here is persisted; each value lives for one compute_and_apply call.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from .config import ClinicType
from .database import Candidate
from .identity import CandidateIdentity

YES_VALUES = {"yes", "y", "true", "1", "x"}


class SignUpAttributes:
    """Sign-up form answers, keyed by attribute name."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = {
            str(k).strip().lower(): v for k, v in (values or {}).items()
        }

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name.strip().lower(), default)

    def flag(self, name: Optional[str]) -> bool:
        """Boolean answer; missing or unrecognised values are False."""
        if not name:
            return False
        value = self.get(name)
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            return value.strip().lower() in YES_VALUES
        return False

    def text(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            return ""
        if isinstance(value, bool):
            return "Yes" if value else "No"
        return str(value).strip()

    @property
    def notes(self) -> str:
        return self.text("comments")

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def __eq__(self, other) -> bool:
        return isinstance(other, SignUpAttributes) and self._values == other._values

    def __repr__(self) -> str:
        return f"SignUpAttributes({self._values!r})"


@dataclass
class PoolEntry:
    candidate: Candidate
    attributes: SignUpAttributes

    @property
    def identity(self) -> CandidateIdentity:
        return self.candidate.identity


@dataclass
class ScoredCandidate:
    candidate: Candidate
    attributes: SignUpAttributes
    score: float

    @property
    def identity(self) -> CandidateIdentity:
        return self.candidate.identity


@dataclass
class Assignment:
    room_index: int
    primary: Optional[CandidateIdentity] = None
    secondary: Optional[CandidateIdentity] = None

    @property
    def room_number(self) -> int:
        return self.room_index + 1


@dataclass(frozen=True)
class ReservedSlot:
    label: str


@dataclass
class MatchResult:
    clinic_date: date
    variant: str
    assignments: List[Assignment] = field(default_factory=list)
    reserved: List[ReservedSlot] = field(default_factory=list)
    matched_identities: List[CandidateIdentity] = field(default_factory=list)
    attributes: Dict[CandidateIdentity, SignUpAttributes] = field(default_factory=dict)
    ranked: List[ScoredCandidate] = field(default_factory=list)
    dry_run: bool = False
    clinic_type: Optional[ClinicType] = None

    @property
    def assigned_count(self) -> int:
        return len(self.assignments)

    def notes_for(self, identity: CandidateIdentity) -> str:
        attrs = self.attributes.get(identity)
        return attrs.notes if attrs else ""
