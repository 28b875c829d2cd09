"""
Candidate directory: lookup and field access over the roster table.

Every mutation stays in the session until commit(); a failed commit is
rolled back and surfaced as DirectoryWriteFailure.
"""

import math
from datetime import date
from typing import List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from .database import Candidate, ProcessedClinic
from .errors import DirectoryWriteFailure, InvalidIdentity, UnresolvedIdentity
from .identity import CandidateIdentity, format_identity, normalize_text, parse_identity
from .logger import StructuredLogger, get_logger

COUNTER_FIELDS = (
    "sign_up_count",
    "match_count",
    "no_show_count",
    "late_cancel_count",
    "early_cancel_count",
)
DATE_FIELDS = ("last_match_date",)
TRACKED_FIELDS = COUNTER_FIELDS + DATE_FIELDS


def as_number(value) -> float:
    """Read a tracker value as a number; blanks and garbage are 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


class CandidateDirectory:
    def __init__(self, session, logger: Optional[StructuredLogger] = None):
        self.session = session
        self.logger = logger or get_logger()

    def lookup(self, identity: Union[CandidateIdentity, str]) -> Optional[Candidate]:
        """Find the roster entry for an identity, or None."""
        if isinstance(identity, str):
            try:
                identity, _ = parse_identity(identity)
            except InvalidIdentity:
                return None
        return (
            self.session.query(Candidate)
            .filter_by(
                last_name=identity.last_name,
                first_name=identity.first_name,
                tier=identity.tier.value,
            )
            .first()
        )

    def resolve(self, identity: Union[CandidateIdentity, str]) -> Candidate:
        candidate = self.lookup(identity)
        if candidate is None:
            raise UnresolvedIdentity(str(identity))
        return candidate

    def read(self, candidate: Candidate, field: str):
        if field not in TRACKED_FIELDS:
            raise KeyError(f"Not a tracked field: {field}")
        value = getattr(candidate, field)
        if field in COUNTER_FIELDS:
            return as_number(value)
        return value if isinstance(value, date) else None

    def write(self, candidate: Candidate, field: str, value) -> None:
        if field not in TRACKED_FIELDS:
            raise KeyError(f"Not a tracked field: {field}")
        setattr(candidate, field, value)

    def increment(self, candidate: Candidate, field: str, by: int = 1) -> int:
        new_value = int(self.read(candidate, field)) + by
        self.write(candidate, field, new_value)
        return new_value

    def append_match_date(self, candidate: Candidate, clinic_date: date) -> None:
        history = (candidate.match_history or "").strip()
        stamp = clinic_date.isoformat()
        candidate.match_history = f"{history},{stamp}" if history else stamp

    def add(self, identity: CandidateIdentity, **fields) -> Candidate:
        """Create a roster entry (roster import only)."""
        candidate = Candidate(
            last_name=normalize_text(identity.last_name),
            first_name=normalize_text(identity.first_name),
            tier=identity.tier.value,
            **fields,
        )
        self.session.add(candidate)
        return candidate

    def all_candidates(self) -> List[Candidate]:
        return self.session.query(Candidate).order_by(Candidate.id).all()

    def name_list(self) -> List[str]:
        """Sorted identity strings for the sign-up form's name choices."""
        names = []
        seen = set()
        for candidate in self.all_candidates():
            if not candidate.last_name:
                continue
            try:
                name = format_identity(candidate.identity)
            except InvalidIdentity:
                self.logger.warning("Roster entry has unknown tier", candidate=repr(candidate))
                continue
            if name in seen:
                self.logger.warning("Duplicate roster name", name=name)
                continue
            seen.add(name)
            names.append(name)
        return sorted(names)

    # Processed clinic dates

    def is_processed(self, variant: str, clinic_date: date) -> bool:
        return (
            self.session.query(ProcessedClinic)
            .filter_by(variant=variant, clinic_date=clinic_date)
            .first()
            is not None
        )

    def mark_processed(self, variant: str, clinic_date: date, matched_count: int) -> None:
        self.session.add(ProcessedClinic(
            variant=variant,
            clinic_date=clinic_date,
            matched_count=matched_count,
        ))

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            self.logger.error("Directory write failed", error=str(e))
            raise DirectoryWriteFailure(f"Could not save candidate directory: {e}") from e

    def rollback(self) -> None:
        self.session.rollback()
