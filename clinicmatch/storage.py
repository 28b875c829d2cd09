import json
from pathlib import Path
from typing import Any, Dict, List

from .database import Candidate
from .directory import CandidateDirectory
from .identity import CandidateIdentity, Tier, normalize_text
from .logger import get_logger
from .models import MatchResult
from .schema import ROSTER_COUNTER_FIELDS, parse_date, validate_roster_row
from .signups import SignupStore


def load_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
            if not content:
                return default
            return json.loads(content)
    except (json.JSONDecodeError, IOError):
        return default


def save_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=str)


def diff_dict(old: Dict[str, Any], new: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    changed = {}
    keys = set(old.keys()) | set(new.keys())
    for k in keys:
        ov = old.get(k)
        nv = new.get(k)
        if ov != nv:
            changed[k] = {"old": ov, "new": nv}
    return changed


def _roster_fields(row: Dict[str, Any]) -> Dict[str, Any]:
    fields: Dict[str, Any] = {f: int(row.get(f) or 0) for f in ROSTER_COUNTER_FIELDS}
    last = row.get("last_match_date")
    fields["last_match_date"] = parse_date(last) if last else None
    history = row.get("match_history") or []
    if isinstance(history, str):
        history = [h for h in history.split(",") if h.strip()]
    fields["match_history"] = ",".join(parse_date(h).isoformat() for h in history)
    return fields


def _current_fields(candidate: Candidate) -> Dict[str, Any]:
    fields: Dict[str, Any] = {f: getattr(candidate, f) or 0 for f in ROSTER_COUNTER_FIELDS}
    fields["last_match_date"] = candidate.last_match_date
    fields["match_history"] = candidate.match_history or ""
    return fields


def update_candidate(directory: CandidateDirectory, row: Dict[str, Any]) -> Dict[str, Any]:
    identity = CandidateIdentity(
        last_name=normalize_text(row["last_name"]),
        first_name=normalize_text(row["first_name"]),
        tier=Tier.parse(row["tier"]),
    )
    fields = _roster_fields(row)
    candidate = directory.lookup(identity)
    if candidate is None:
        directory.add(identity, **fields)
        return {"status": "new", "identity": str(identity)}

    changed = diff_dict(_current_fields(candidate), fields)
    if changed:
        for name, change in changed.items():
            setattr(candidate, name, change["new"])
        return {"status": "updated", "identity": str(identity), "changed": sorted(changed)}
    return {"status": "no-change", "identity": str(identity)}


def import_roster(path: Path, directory: CandidateDirectory, dry_run: bool = False) -> Dict[str, int]:
    """
    Load a roster JSON file ({"candidates": [...]}) into the directory.

    Existing entries are updated in place; invalid rows are skipped.

    Returns:
        Counts by outcome: new, updated, no-change, skipped
    """
    logger = get_logger()
    data = load_json(path, {"candidates": []})
    rows = data.get("candidates", []) if isinstance(data, dict) else data
    counts = {"new": 0, "updated": 0, "no-change": 0, "skipped": 0}

    for row in rows:
        errors = validate_roster_row(row) if isinstance(row, dict) else ["Row must be an object"]
        if errors:
            logger.warning("Skipping roster row", row=row, errors=errors)
            counts["skipped"] += 1
            continue
        outcome = update_candidate(directory, row)
        counts[outcome["status"]] += 1
        logger.debug("Roster row imported", **outcome)

    if dry_run:
        logger.info("DRY RUN: roster import not saved", **counts)
        directory.rollback()
    else:
        directory.commit()
        logger.info("Roster import complete", **counts)
    return counts


def import_signups(
    path: Path,
    store: SignupStore,
    directory: CandidateDirectory,
    variant: str,
    dry_run: bool = False,
) -> List[Dict[str, Any]]:
    """Replay exported form responses ({"signups": [...]}) through the sign-up handler."""
    data = load_json(path, {"signups": []})
    rows = data.get("signups", []) if isinstance(data, dict) else data
    outcomes = []
    for row in rows:
        outcome = store.record(
            identity=row.get("identity", ""),
            clinic_date=row.get("clinic_date"),
            variant=row.get("variant", variant),
            attributes=row.get("attributes"),
            directory=directory,
            dry_run=dry_run,
        )
        outcomes.append(outcome)
    return outcomes


def result_to_dict(result: MatchResult) -> Dict[str, Any]:
    return {
        "clinic_date": result.clinic_date.isoformat(),
        "variant": result.variant,
        "clinic_type": result.clinic_type.code if result.clinic_type else None,
        "dry_run": result.dry_run,
        "rooms": [
            {
                "room": a.room_number,
                "primary": str(a.primary) if a.primary else None,
                "secondary": str(a.secondary) if a.secondary else None,
            }
            for a in result.assignments
        ],
        "reserved": [slot.label for slot in result.reserved],
        "matched": [str(i) for i in result.matched_identities],
        "ranked": [
            {"identity": str(sc.identity), "score": round(sc.score, 3)}
            for sc in result.ranked
        ],
    }


def export_result(path: Path, result: MatchResult) -> None:
    save_json(path, result_to_dict(result))
