from datetime import date, datetime
from typing import Any, Dict, List

from .errors import InvalidIdentity
from .identity import Tier, parse_identity

ROSTER_COUNTER_FIELDS = [
    "sign_up_count",
    "match_count",
    "no_show_count",
    "late_cancel_count",
    "early_cancel_count",
]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def parse_date(value: Any) -> date:
    """Accept a date, a datetime or an ISO / MM/DD/YYYY string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        for fmt in ("%Y-%m-%d", "%m/%d/%Y"):
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
    raise ValueError(f"Bad date: {value!r}")


def validate_signup(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Expects keys: identity, clinic_date, and optionally attributes (a dict).
    """
    errors: List[str] = []

    identity = data.get("identity")
    if not _is_non_empty_str(identity):
        errors.append("Field 'identity' must be a non-empty string")
    else:
        try:
            parse_identity(identity)
        except InvalidIdentity as e:
            errors.append(str(e))

    if "clinic_date" not in data:
        errors.append("Missing required field: clinic_date")
    else:
        try:
            parse_date(data["clinic_date"])
        except ValueError as e:
            errors.append(str(e))

    attributes = data.get("attributes")
    if attributes is not None and not isinstance(attributes, dict):
        errors.append("Field 'attributes' must be an object if provided")

    return errors


def validate_roster_row(data: Dict[str, Any]) -> List[str]:
    """Validate one roster entry for import."""
    errors: List[str] = []

    for f in ("last_name", "first_name", "tier"):
        if f not in data:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    if _is_non_empty_str(data.get("tier")):
        try:
            Tier.parse(data["tier"])
        except InvalidIdentity as e:
            errors.append(str(e))

    for f in ROSTER_COUNTER_FIELDS:
        v = data.get(f)
        if v is not None and v != "" and not isinstance(v, int):
            errors.append(f"Field '{f}' must be an integer if provided")

    last = data.get("last_match_date")
    if last:
        try:
            parse_date(last)
        except ValueError as e:
            errors.append(str(e))

    history = data.get("match_history")
    if isinstance(history, str):
        history = [h for h in history.split(",") if h.strip()]
    if history and not isinstance(history, list):
        errors.append("Field 'match_history' must be a list or comma-separated string if provided")
    elif history:
        for h in history:
            try:
                parse_date(h)
            except ValueError as e:
                errors.append(f"match_history: {e}")

    return errors
