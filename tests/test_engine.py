"""
Tests for a full match run.
"""

from dataclasses import replace

import pytest

from clinicmatch.config import ClinicConfig, get_variant
from clinicmatch.database import ProcessedClinic, SignUp
from clinicmatch.engine import MatchEngine
from clinicmatch.errors import ClinicAlreadyProcessed, ConfigError

from conftest import CLINIC_DATE, TODAY


def add_signup(session, identity, variant="soc", **attrs):
    session.add(SignUp(identity=identity, clinic_date=CLINIC_DATE, variant=variant, attributes=attrs))
    session.commit()


@pytest.fixture
def soc_engine(directory, store, logger):
    return MatchEngine(get_variant("soc"), directory, store, logger=logger, today=TODAY)


class TestMatchRun:
    """compute_and_apply end to end against SQLite."""

    def test_zero_signups(self, directory, store, logger, session):
        config = ClinicConfig(name="roc", title="Rural", room_capacity=3, reserved_labels=("DIME Providers",))
        engine = MatchEngine(config, directory, store, logger=logger, today=TODAY)
        result = engine.compute_and_apply(CLINIC_DATE, capacity=3)

        assert result.assignments == []
        assert [slot.label for slot in result.reserved] == ["DIME Providers"]
        assert result.matched_identities == []
        assert session.query(ProcessedClinic).count() == 1

    def test_rooms_and_stats(self, soc_engine, seeded, session):
        add_signup(session, "Adams, Ann (MS1)", pts_alone="No", diet="vegan")
        add_signup(session, "Baker, Bo (MS2)", pts_alone="Yes")
        add_signup(session, "Chen, Cy (MS3)", pts_alone="Yes")
        add_signup(session, "Diaz, Di (MS4)CXL", pts_alone="Yes")

        result = soc_engine.compute_and_apply(CLINIC_DATE, capacity=1)

        # Cy (MS3, never matched) outranks Bo; capacity 1 keeps the top two
        assert [sc.candidate.last_name for sc in result.ranked] == ["Chen", "Baker"]
        assert result.assignments[0].primary == seeded["cy"].identity
        assert result.assignments[0].secondary == seeded["bo"].identity
        assert seeded["cy"].match_count == 1
        assert seeded["cy"].last_match_date == CLINIC_DATE
        assert seeded["bo"].match_count == 3
        assert seeded["ann"].match_count == 1
        assert seeded["di"].early_cancel_count == 1
        assert seeded["di"].match_count == 3

    def test_second_run_is_refused(self, soc_engine, seeded, session):
        add_signup(session, "Chen, Cy (MS3)", pts_alone="Yes")
        soc_engine.compute_and_apply(CLINIC_DATE)
        with pytest.raises(ClinicAlreadyProcessed):
            soc_engine.compute_and_apply(CLINIC_DATE)
        assert seeded["cy"].match_count == 1

    def test_other_variant_same_date_is_separate(self, directory, store, logger, seeded, session):
        add_signup(session, "Chen, Cy (MS3)", variant="soc", pts_alone="Yes")
        add_signup(session, "Chen, Cy (MS3)", variant="sm")
        MatchEngine(get_variant("soc"), directory, store, logger=logger, today=TODAY).compute_and_apply(CLINIC_DATE)
        MatchEngine(get_variant("sm"), directory, store, logger=logger, today=TODAY).compute_and_apply(CLINIC_DATE)
        assert seeded["cy"].match_count == 2

    def test_dry_run_leaves_directory_untouched(self, directory, store, logger, seeded, session):
        add_signup(session, "Chen, Cy (MS3)", pts_alone="Yes")
        add_signup(session, "Diaz, Di (MS4)CXL")
        engine = MatchEngine(get_variant("soc"), directory, store, logger=logger, dry_run=True, today=TODAY)

        result = engine.compute_and_apply(CLINIC_DATE)
        again = engine.compute_and_apply(CLINIC_DATE)

        assert result.dry_run
        assert result.matched_identities == again.matched_identities == [seeded["cy"].identity]
        assert seeded["cy"].match_count == 0
        assert seeded["di"].early_cancel_count == 0
        assert session.query(ProcessedClinic).count() == 0
        assert logger.metrics["dry_run_writes"] == 4

    def test_default_capacity_comes_from_variant(self, directory, store, logger, seeded, session):
        config = replace(get_variant("sm"), room_capacity=2)
        for name in ("Adams, Ann (MS1)", "Baker, Bo (MS2)", "Chen, Cy (MS3)"):
            add_signup(session, name, variant="sm")
        result = MatchEngine(config, directory, store, logger=logger, today=TODAY).compute_and_apply(CLINIC_DATE)
        assert result.assigned_count == 2
        # Street Medicine's first-year bonus puts Ann first
        assert result.assignments[0].primary == seeded["ann"].identity

    def test_metrics_recorded(self, soc_engine, seeded, session, logger):
        add_signup(session, "Chen, Cy (MS3)", pts_alone="Yes")
        add_signup(session, "Ghost, Gus (MS2)")
        soc_engine.compute_and_apply(CLINIC_DATE)
        metrics = logger.get_metrics()
        assert metrics["signups_seen"] == 2
        assert metrics["matched"] == 1
        assert metrics["runs_completed"] == 1
        assert metrics["exclusions_by_reason"] == {"unresolved": 1}


class TestClinicTypeRun:
    """Clinic type chosen for the date."""

    def add_roc_signups(self, session):
        for name in ("Adams, Ann (MS1)", "Baker, Bo (MS2)", "Chen, Cy (MS3)", "Diaz, Di (MS4)"):
            add_signup(session, name, variant="roc", pts_alone="Yes")

    def test_default_capacity_follows_type(self, directory, store, logger, seeded, session):
        self.add_roc_signups(session)
        engine = MatchEngine(get_variant("roc"), directory, store, logger=logger, dry_run=True, today=TODAY)

        # Fallon has 3 rooms, one held for DIME providers
        fallon = engine.compute_and_apply(CLINIC_DATE, clinic_type="F")
        assert fallon.clinic_type.title == "Fallon"
        assert fallon.assigned_count == 2
        assert all(a.secondary is not None for a in fallon.assignments)

        # Yerington has 6 rooms: everyone is a primary
        yerington = engine.compute_and_apply(CLINIC_DATE, clinic_type="y")
        assert yerington.assigned_count == 4
        assert yerington.clinic_type.code == "Y"

    def test_explicit_capacity_wins(self, directory, store, logger, seeded, session):
        self.add_roc_signups(session)
        engine = MatchEngine(get_variant("roc"), directory, store, logger=logger, dry_run=True, today=TODAY)
        result = engine.compute_and_apply(CLINIC_DATE, capacity=2, clinic_type="Y")
        assert result.assigned_count == 1

    def test_unknown_type_is_refused_before_any_write(self, directory, store, logger, seeded, session):
        self.add_roc_signups(session)
        engine = MatchEngine(get_variant("roc"), directory, store, logger=logger, today=TODAY)
        with pytest.raises(ConfigError):
            engine.compute_and_apply(CLINIC_DATE, clinic_type="GP")
        assert session.query(ProcessedClinic).count() == 0
        assert seeded["cy"].match_count == 0
