"""
Tests for identity parsing and the cancellation marker.
"""

import pytest

from clinicmatch.errors import InvalidIdentity
from clinicmatch.identity import (
    CandidateIdentity,
    Tier,
    format_identity,
    is_cancelled,
    parse_identity,
    strip_marker,
    toggle_marker,
)


class TestTier:
    """Test tier parsing."""

    def test_parse_is_case_insensitive(self):
        assert Tier.parse("ms3") == Tier.MS3
        assert Tier.parse(" PA1 ") == Tier.PA1

    def test_parse_passes_tier_through(self):
        assert Tier.parse(Tier.MS4) is Tier.MS4

    def test_unknown_tier_raises(self):
        with pytest.raises(InvalidIdentity):
            Tier.parse("MS9")

    def test_none_raises(self):
        with pytest.raises(InvalidIdentity):
            Tier.parse(None)

    def test_order_follows_roster(self):
        assert Tier.MS1.order < Tier.MS4.order < Tier.PA2.order


class TestParseIdentity:
    """Test "Last, First (Tier)" parsing."""

    def test_plain_identity(self):
        identity, cancelled = parse_identity("Doe, Jane (MS2)")
        assert identity == CandidateIdentity("Doe", "Jane", Tier.MS2)
        assert cancelled is False

    def test_cancelled_identity(self):
        identity, cancelled = parse_identity("Doe, Jane (MS2)CXL")
        assert identity == CandidateIdentity("Doe", "Jane", Tier.MS2)
        assert cancelled is True

    def test_extra_whitespace_is_collapsed(self):
        identity, _ = parse_identity("  Van  Buren,   Mary Ann   (ms1) ")
        assert identity.last_name == "Van Buren"
        assert identity.first_name == "Mary Ann"
        assert identity.tier == Tier.MS1

    def test_malformed_identity_raises(self):
        for raw in ["Jane Doe", "Doe, Jane", "Doe Jane (MS2)", "", "   "]:
            with pytest.raises(InvalidIdentity):
                parse_identity(raw)

    def test_unknown_tier_raises(self):
        with pytest.raises(InvalidIdentity):
            parse_identity("Doe, Jane (RN)")


class TestMarker:
    """Test the CXL suffix helpers."""

    def test_format_round_trip(self):
        identity = CandidateIdentity("Doe", "Jane", Tier.MS2)
        assert format_identity(identity) == "Doe, Jane (MS2)"
        assert format_identity(identity, cancelled=True) == "Doe, Jane (MS2)CXL"
        assert str(identity) == "Doe, Jane (MS2)"

    def test_display_name(self):
        assert CandidateIdentity("Doe", "Jane", Tier.MS2).display_name == "Jane Doe, MS2"

    def test_strip_marker(self):
        assert strip_marker("Doe, Jane (MS2)CXL") == "Doe, Jane (MS2)"
        assert strip_marker("Doe, Jane (MS2)") == "Doe, Jane (MS2)"

    def test_toggle_marker(self):
        raw = "Doe, Jane (MS2)"
        once = toggle_marker(raw)
        assert is_cancelled(once)
        assert toggle_marker(once) == raw
