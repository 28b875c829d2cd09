"""
Tests for the room sheet and manager notes.
"""

from datetime import date

from clinicmatch.config import get_variant
from clinicmatch.identity import CandidateIdentity, Tier
from clinicmatch.models import Assignment, MatchResult, ReservedSlot, SignUpAttributes
from clinicmatch.report import NO_NOTES, compose_manager_notes, format_room_sheet, render_room_sheet

JANE = CandidateIdentity("Doe", "Jane", Tier.MS2)
AL = CandidateIdentity("Lee", "Al", Tier.MS4)
BEA = CandidateIdentity("Moss", "Bea", Tier.MS1)


def make_result(**kwargs) -> MatchResult:
    defaults = dict(
        clinic_date=date(2024, 3, 9),
        variant="soc",
        assignments=[Assignment(0, primary=AL, secondary=JANE), Assignment(1, primary=BEA)],
        reserved=[ReservedSlot("DIME Managers")],
        matched_identities=[AL, BEA, JANE],
        attributes={
            AL: SignUpAttributes({"diet": "None", "comments": "Leaving at noon"}),
            BEA: SignUpAttributes({"diet": "vegan"}),
            JANE: SignUpAttributes({}),
        },
    )
    defaults.update(kwargs)
    return MatchResult(**defaults)


class TestRoomSheet:
    """Printable room sheet rows."""

    def test_rows_for_rooms_then_reserved(self):
        rows = render_room_sheet(make_result(), get_variant("soc"))
        assert [r.label for r in rows] == ["Room 1", "Room 2", "DIME Managers"]
        assert rows[0].providers == "Al Lee, MS4\nJane Doe, MS2\nVolunteer: "
        assert rows[1].providers == "Bea Moss, MS1\nVolunteer: "
        assert rows[2].providers == ""

    def test_single_provider_variant(self):
        result = make_result(assignments=[Assignment(0, primary=BEA)], reserved=[])
        rows = render_room_sheet(result, get_variant("sm"))
        assert len(rows) == 1
        assert rows[0].label == "Student 1"
        assert rows[0].providers == "Bea Moss, MS1"

    def test_formatted_sheet_has_title_and_date(self):
        text = format_room_sheet(make_result(), get_variant("soc"))
        assert text.startswith("Student Outreach Clinic\nSaturday, March 09, 2024\n")
        assert "  Al Lee, MS4" in text
        assert "8AM - 12PM" in text

    def test_header_names_clinic_type(self):
        roc = get_variant("roc")
        result = make_result(variant="roc", clinic_type=roc.clinic_type("SS"), clinic_date=date(2024, 3, 10))
        lines = format_room_sheet(result, roc).splitlines()
        assert lines[:4] == [
            "Rural Outreach Clinic: Silver Springs",
            "Sunday, March 10, 2024",
            "9am - 3pm",
            "3595 Hwy 50, Suite 3 (In Lahontan Medical Complex), Silver Springs, NV",
        ]

    def test_header_skips_unknown_hours(self):
        soc = get_variant("soc")
        result = make_result(clinic_type=soc.clinic_type("GD"), clinic_date=date(2024, 3, 6))
        lines = format_room_sheet(result, soc).splitlines()
        assert lines[:3] == ["Student Outreach Clinic: Geriatrics & Dermatology Clinic", "Wednesday, March 06, 2024", ""]


class TestManagerNotes:
    """Notes body for the preliminary list."""

    def test_lists_only_non_empty_notes(self):
        notes = compose_manager_notes(make_result(), get_variant("soc"))
        assert notes.splitlines() == [
            "Lee, Al (MS4) -- Comments: Leaving at noon",
            "Moss, Bea (MS1) -- Dietary restrictions: vegan",
        ]

    def test_diet_label_reads_dietary_restrictions(self):
        result = make_result(matched_identities=[BEA])
        assert compose_manager_notes(result, get_variant("soc")) == "Moss, Bea (MS1) -- Dietary restrictions: vegan"
        assert "Diet:" not in compose_manager_notes(result, get_variant("soc"))

    def test_no_notes(self):
        result = make_result(attributes={})
        assert compose_manager_notes(result, get_variant("soc")) == NO_NOTES

    def test_notes_for(self):
        assert make_result().notes_for(AL) == "Leaving at noon"
        assert make_result().notes_for(JANE) == ""
