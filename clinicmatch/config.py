"""
Per-variant clinic configuration.

Each clinic program (SOC, ROC, Street Medicine) differs only in its room
count, reserved entries, scoring weights and the sign-up attribute that gates
primary placement. A variant may also run several clinic types (sites or
sessions) that set the title and room count for one date. Components receive
one ClinicConfig at construction.
"""

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from datetime import date
from typing import Dict, FrozenSet, Optional, Tuple

from .errors import ConfigError, InvalidIdentity
from .identity import Tier

DEFAULT_SENIORITY = ((Tier.MS2, 50.0), (Tier.MS3, 500.0), (Tier.MS4, 1000.0))
UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ScoringWeights:
    junior_tiers: FrozenSet[Tier] = frozenset({Tier.MS1, Tier.MS2})
    special_multiplier: float = 2.0
    senior_most_tier: Tier = Tier.MS4
    elective_bonus: float = 0.0
    language_bonus: float = 0.0
    # (tier, bonus) pairs; a mapping is accepted and frozen on construction
    seniority_bonus: Tuple[Tuple[Tier, float], ...] = DEFAULT_SENIORITY
    never_matched_bonus: float = 25.0
    no_show_penalty: float = 3.0
    late_cancel_penalty: float = 2.0
    early_cancel_penalty: float = 1.0
    special_position_attribute: str = "soc_position"
    elective_attribute: str = "elective"
    language_attribute: str = "spanish"

    def __post_init__(self):
        pairs = [(Tier.parse(t), float(v)) for t, v in dict(self.seniority_bonus).items()]
        pairs.sort(key=lambda p: p[0].order)
        object.__setattr__(self, "seniority_bonus", tuple(pairs))

    def seniority_for(self, tier: Optional[Tier]) -> float:
        return dict(self.seniority_bonus).get(tier, 0.0)


@dataclass(frozen=True)
class SignupSchedule:
    """Days before the clinic at which each sign-up phase starts."""
    lead_days: int = 5    # open sign-up
    manage_days: int = 3  # preliminary list to managers
    close_days: int = 2   # close sign-up and match


@dataclass(frozen=True)
class ClinicType:
    """A site or session kind within a variant, chosen per clinic date."""
    code: str
    title: str
    rooms: Optional[int] = None  # None keeps the variant's room_capacity
    address: str = ""
    manager: str = ""


@dataclass(frozen=True)
class ClinicConfig:
    name: str
    title: str
    room_capacity: int = 10
    reserved_rooms: int = 0
    reserved_labels: Tuple[str, ...] = ()
    providers_per_room: int = 2
    eligibility_attribute: Optional[str] = "pts_alone"
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    note_fields: Tuple[str, ...] = ("comments",)
    schedule: SignupSchedule = field(default_factory=SignupSchedule)
    clinic_types: Tuple[ClinicType, ...] = ()
    # (weekday, hours) pairs, Monday is 0
    clinic_times: Tuple[Tuple[int, str], ...] = ()

    @property
    def room_label(self) -> str:
        return "Room" if self.providers_per_room > 1 else "Student"

    def clinic_type(self, code: Optional[str]) -> Optional[ClinicType]:
        if code is None:
            return None
        key = code.strip().upper()
        for clinic_type in self.clinic_types:
            if clinic_type.code == key:
                return clinic_type
        known = ", ".join(t.code for t in self.clinic_types) or "none"
        raise ConfigError(f"Unknown clinic type {code!r} for {self.name}. Known: {known}")

    def capacity_for(self, clinic_type: Optional[ClinicType]) -> int:
        if clinic_type is not None and clinic_type.rooms is not None:
            return clinic_type.rooms
        return self.room_capacity

    def clinic_time(self, clinic_date: date) -> str:
        return dict(self.clinic_times).get(clinic_date.weekday(), UNKNOWN)


VARIANTS: Dict[str, ClinicConfig] = {
    "soc": ClinicConfig(
        name="soc",
        title="Student Outreach Clinic",
        room_capacity=10,
        reserved_labels=("DIME Managers", "DIME Providers", "Lay Counselors"),
        weights=ScoringWeights(elective_bonus=500.0),
        note_fields=("diet", "comments"),
        clinic_types=(
            ClinicType("W", "Women's Clinic", manager="WomenManager"),
            ClinicType("GP", "General & Pediatric Clinic", manager="GenPedManager"),
            ClinicType("GD", "Geriatrics & Dermatology Clinic", manager="GeriDermManager"),
        ),
        clinic_times=((1, "6PM - 10PM"), (5, "8AM - 12PM")),
    ),
    "roc": ClinicConfig(
        name="roc",
        title="Rural Outreach Clinic",
        room_capacity=6,
        reserved_rooms=1,
        reserved_labels=("DIME Providers",),
        weights=ScoringWeights(language_bonus=35.0),
        note_fields=("spanish", "follow", "carpool", "comments"),
        schedule=SignupSchedule(lead_days=7),
        clinic_types=(
            ClinicType("Y", "Yerington", rooms=6,
                       address="South Lyon Physicians Clinic, 213 S Whitacre St., Yerington, NV"),
            ClinicType("SS", "Silver Springs", rooms=5,
                       address="3595 Hwy 50, Suite 3 (In Lahontan Medical Complex), Silver Springs, NV"),
            ClinicType("F", "Fallon", rooms=3, address="485 West B St Suite 101, Fallon, NV"),
        ),
        clinic_times=((5, "9am - 1pm"), (6, "9am - 3pm")),
    ),
    "sm": ClinicConfig(
        name="sm",
        title="Street Medicine",
        room_capacity=10,
        providers_per_room=1,
        eligibility_attribute=None,
        weights=ScoringWeights(
            seniority_bonus={Tier.MS1: 5000.0, Tier.MS2: 50.0, Tier.MS3: 500.0, Tier.MS4: 1000.0},
        ),
        note_fields=("transport", "comments"),
    ),
}


def get_variant(name: str) -> ClinicConfig:
    try:
        return VARIANTS[name.strip().lower()]
    except KeyError:
        raise ConfigError(f"Unknown clinic variant: {name!r}. Known: {', '.join(sorted(VARIANTS))}")


def _parse_weights(base: ScoringWeights, data: dict) -> ScoringWeights:
    overrides = dict(data)
    try:
        if "junior_tiers" in overrides:
            overrides["junior_tiers"] = frozenset(Tier.parse(t) for t in overrides["junior_tiers"])
        if "senior_most_tier" in overrides:
            overrides["senior_most_tier"] = Tier.parse(overrides["senior_most_tier"])
        if "seniority_bonus" in overrides:
            overrides["seniority_bonus"] = {
                Tier.parse(k): float(v) for k, v in overrides["seniority_bonus"].items()
            }
        return replace(base, **overrides)
    except (TypeError, ValueError, InvalidIdentity) as e:
        raise ConfigError(f"Invalid scoring weights: {e}")


def load_variant_file(path: Path) -> ClinicConfig:
    """
    Load a variant from JSON.

    The file names a built-in variant under "base" and overrides any of its
    fields; "weights" and "schedule" may be partial objects. "clinic_types" is
    a list of {code, title, rooms, address, manager} objects and "clinic_times"
    maps a weekday number (Monday is 0) to the clinic hours.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read variant file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Variant file {path} must contain an object")

    base = get_variant(data.pop("base", "soc"))
    weights = _parse_weights(base.weights, data.pop("weights", {}))
    try:
        schedule = replace(base.schedule, **data.pop("schedule", {}))
        for key in ("reserved_labels", "note_fields"):
            if key in data:
                data[key] = tuple(data[key])
        if "clinic_types" in data:
            data["clinic_types"] = tuple(
                ClinicType(**dict(t, code=str(t["code"]).strip().upper())) for t in data["clinic_types"]
            )
        if "clinic_times" in data:
            data["clinic_times"] = tuple((int(k), str(v)) for k, v in data["clinic_times"].items())
        return replace(base, weights=weights, schedule=schedule, **data)
    except (TypeError, ValueError, KeyError, AttributeError) as e:
        raise ConfigError(f"Invalid variant field in {path}: {e}")
