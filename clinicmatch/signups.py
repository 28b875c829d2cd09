"""
Signup store: the sign-up form responses, one row per submission.

record() is the form-submit handler (rejects resubmissions, bumps the
candidate's sign-up counter) and toggle_cancellation() is the modification
form handler (adds or removes the CXL marker on an existing response).
"""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from .database import SignUp
from .directory import CandidateDirectory
from .identity import parse_identity, strip_marker, toggle_marker
from .logger import StructuredLogger, get_logger
from .models import SignUpAttributes
from .schema import parse_date, validate_signup


class SignupStore:
    def __init__(self, session, logger: Optional[StructuredLogger] = None):
        self.session = session
        self.logger = logger or get_logger()

    def _query(self, clinic_date: date, variant: Optional[str] = None):
        q = self.session.query(SignUp).filter(SignUp.clinic_date == clinic_date)
        if variant:
            q = q.filter(SignUp.variant == variant)
        return q.order_by(SignUp.submitted_at, SignUp.id)

    def for_date(self, clinic_date: date, variant: Optional[str] = None) -> List[Tuple[str, SignUpAttributes]]:
        """Raw (identity, attributes) pairs for one clinic date, in submission order."""
        return [
            (row.identity, SignUpAttributes(row.attributes))
            for row in self._query(clinic_date, variant).all()
        ]

    def find(self, identity: str, clinic_date: date, variant: Optional[str] = None) -> Optional[SignUp]:
        """Existing response for this person and date, with or without the marker."""
        base = strip_marker(identity)
        for row in self._query(clinic_date, variant).all():
            if strip_marker(row.identity) == base:
                return row
        return None

    def record(
        self,
        identity: str,
        clinic_date: Any,
        variant: str,
        attributes: Optional[Dict[str, Any]],
        directory: CandidateDirectory,
        dry_run: bool = False,
    ) -> Dict[str, Any]:
        """
        Store a sign-up submission and count it on the candidate's record.

        Returns:
            Outcome dict with "status" in new, duplicate, validation_error, unresolved
        """
        errors = validate_signup({
            "identity": identity,
            "clinic_date": clinic_date,
            "attributes": attributes,
        })
        if errors:
            self.logger.warning("Rejected sign-up", identity=identity, errors=errors)
            return {"status": "validation_error", "errors": errors}

        clinic_date = parse_date(clinic_date)
        parsed, _ = parse_identity(identity)
        name = str(parsed)

        if self.find(name, clinic_date, variant) is not None:
            self.logger.info("Form resubmission ignored", identity=name, clinic_date=clinic_date.isoformat())
            return {"status": "duplicate", "identity": name}

        candidate = directory.lookup(parsed)
        if candidate is None:
            self.logger.warning("Sign-up for unknown candidate", identity=name)
            return {"status": "unresolved", "identity": name}

        self.session.add(SignUp(
            identity=name,
            clinic_date=clinic_date,
            variant=variant,
            attributes=dict(attributes or {}),
        ))

        if dry_run:
            self.logger.info(
                "DRY RUN: would increment sign_up_count",
                identity=name,
                new_value=int(directory.read(candidate, "sign_up_count")) + 1,
            )
            self.logger.record_dry_run_write()
        else:
            directory.increment(candidate, "sign_up_count")

        directory.commit()
        return {"status": "new", "identity": name}

    def toggle_cancellation(self, identity: str, clinic_date: Any, variant: Optional[str] = None) -> Optional[str]:
        """Flip the cancellation marker on an existing response; returns the new identity."""
        clinic_date = parse_date(clinic_date)
        row = self.find(identity, clinic_date, variant)
        if row is None:
            self.logger.warning("No sign-up to modify", identity=identity, clinic_date=clinic_date.isoformat())
            return None
        row.identity = toggle_marker(row.identity)
        self.session.commit()
        self.logger.info("Sign-up modified", identity=row.identity, clinic_date=clinic_date.isoformat())
        return row.identity

    def delete_for_date(self, clinic_date: date, variant: Optional[str] = None) -> int:
        removed = 0
        for row in self._query(clinic_date, variant).all():
            self.session.delete(row)
            removed += 1
        self.session.commit()
        return removed

    def delete_before(self, cutoff: date, variant: Optional[str] = None) -> int:
        query = self.session.query(SignUp).filter(SignUp.clinic_date < cutoff)
        if variant is not None:
            query = query.filter(SignUp.variant == variant)
        rows = query.all()
        for row in rows:
            self.session.delete(row)
        self.session.commit()
        return len(rows)

    def count(self) -> int:
        return self.session.query(SignUp).count()
