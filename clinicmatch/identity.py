import re
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .errors import InvalidIdentity

CANCEL_MARKER = "CXL"

IDENTITY_RE = re.compile(r"^(?P<last>[^,]+),\s*(?P<first>.+?)\s*\((?P<tier>[^()]+)\)$")


class Tier(Enum):
    """Program-year tiers, in roster order."""
    MS1 = "MS1"
    MS2 = "MS2"
    MS3 = "MS3"
    MS4 = "MS4"
    PA1 = "PA1"
    PA2 = "PA2"

    @classmethod
    def parse(cls, text: str) -> "Tier":
        if isinstance(text, Tier):
            return text
        if not isinstance(text, str):
            raise InvalidIdentity(f"Unknown tier: {text!r}")
        try:
            return cls(text.strip().upper())
        except ValueError:
            raise InvalidIdentity(f"Unknown tier: {text!r}")

    @property
    def order(self) -> int:
        return list(Tier).index(self)


def normalize_text(s: str) -> str:
    return " ".join(s.strip().split())


@dataclass(frozen=True)
class CandidateIdentity:
    """Identity key of a roster entry: last name, first name and tier."""
    last_name: str
    first_name: str
    tier: Tier

    def __str__(self) -> str:
        return format_identity(self)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}, {self.tier.value}"


def is_cancelled(raw: str) -> bool:
    return raw.strip().endswith(CANCEL_MARKER)


def strip_marker(raw: str) -> str:
    raw = raw.strip()
    if raw.endswith(CANCEL_MARKER):
        return raw[: -len(CANCEL_MARKER)].rstrip()
    return raw


def add_marker(raw: str) -> str:
    raw = raw.strip()
    return raw if raw.endswith(CANCEL_MARKER) else raw + CANCEL_MARKER


def toggle_marker(raw: str) -> str:
    return strip_marker(raw) if is_cancelled(raw) else add_marker(raw)


def parse_identity(raw: str) -> Tuple[CandidateIdentity, bool]:
    """
    Parse "Last, First (Tier)" with an optional trailing cancellation marker.

    Returns the identity and whether the marker was present.
    Raises InvalidIdentity when the text does not have that shape.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidIdentity(f"Empty identity: {raw!r}")
    cancelled = is_cancelled(raw)
    base = normalize_text(strip_marker(raw))
    m = IDENTITY_RE.match(base)
    if not m:
        raise InvalidIdentity(f"Malformed identity: {raw!r}")
    identity = CandidateIdentity(
        last_name=normalize_text(m.group("last")),
        first_name=normalize_text(m.group("first")),
        tier=Tier.parse(m.group("tier")),
    )
    return identity, cancelled


def format_identity(identity: CandidateIdentity, cancelled: bool = False) -> str:
    text = f"{identity.last_name}, {identity.first_name} ({identity.tier.value})"
    return text + CANCEL_MARKER if cancelled else text
