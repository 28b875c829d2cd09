"""
Presentation helpers for a MatchResult: the printable room sheet and the
notes body sent to clinic managers. Neither sends or exports anything.
"""

from typing import List, NamedTuple

from .config import UNKNOWN, ClinicConfig
from .models import MatchResult

SIGNATURE_LINES = "\n".join(["_" * 45] * 3)
NO_NOTES = "No comments or dietary restrictions noted by matched students."
NOTE_LABELS = {"diet": "Dietary restrictions"}


class SheetRow(NamedTuple):
    label: str
    providers: str
    signature: str


def render_room_sheet(result: MatchResult, config: ClinicConfig) -> List[SheetRow]:
    """One row per filled room, then one per reserved entry."""
    rows: List[SheetRow] = []
    for assignment in result.assignments:
        lines = [assignment.primary.display_name]
        if assignment.secondary is not None:
            lines.append(assignment.secondary.display_name)
        if config.providers_per_room > 1:
            lines.append("Volunteer: ")
        rows.append(SheetRow(
            label=f"{config.room_label} {assignment.room_number}",
            providers="\n".join(lines),
            signature=SIGNATURE_LINES,
        ))

    for slot in result.reserved:
        rows.append(SheetRow(label=slot.label, providers="", signature=SIGNATURE_LINES))
    return rows


def format_room_sheet(result: MatchResult, config: ClinicConfig) -> str:
    site = result.clinic_type
    header = [f"{config.title}: {site.title}" if site else config.title]
    header.append(result.clinic_date.strftime("%A, %B %d, %Y"))
    hours = config.clinic_time(result.clinic_date)
    if hours != UNKNOWN:
        header.append(hours)
    if site and site.address:
        header.append(site.address)
    header.append("")
    body = []
    for row in render_room_sheet(result, config):
        body.append(row.label)
        for line in row.providers.splitlines():
            body.append(f"  {line}")
        body.append("")
    return "\n".join(header + body).rstrip() + "\n"


def compose_manager_notes(result: MatchResult, config: ClinicConfig) -> str:
    """
    Notes body for the preliminary match e-mail.

    Lists each matched student whose sign-up carries a non-empty value for
    one of the variant's note fields. "None" answers count as empty.
    """
    lines = []
    for identity in result.matched_identities:
        attrs = result.attributes.get(identity)
        if attrs is None:
            continue
        parts = []
        for name in config.note_fields:
            value = attrs.text(name)
            if value and value.lower() != "none":
                label = NOTE_LABELS.get(name, name.replace("_", " ").capitalize())
                parts.append(f"{label}: {value}")
        if parts:
            lines.append(f"{identity} -- " + "; ".join(parts))

    return "\n".join(lines) if lines else NO_NOTES
