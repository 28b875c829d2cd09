"""
Pytest configuration and shared fixtures.
"""

import pytest
import json
from datetime import date
from pathlib import Path
from typing import Dict, Any

from clinicmatch.database import Candidate, init_database, get_session
from clinicmatch.directory import CandidateDirectory
from clinicmatch.logger import StructuredLogger, get_logger, reset_logger
from clinicmatch.models import PoolEntry, ScoredCandidate, SignUpAttributes
from clinicmatch.signups import SignupStore

TODAY = date(2024, 3, 1)
CLINIC_DATE = date(2024, 3, 9)


@pytest.fixture(autouse=True)
def quiet_global_logger(tmp_path):
    """Keep module-level get_logger() calls out of the working directory."""
    reset_logger()
    get_logger(log_dir=tmp_path / "logs", enable_console=False)
    yield
    reset_logger()


@pytest.fixture
def logger(tmp_path) -> StructuredLogger:
    return StructuredLogger(name="clinicmatch-test", log_dir=tmp_path / "logs", enable_console=False)


@pytest.fixture
def db_path(tmp_path) -> Path:
    path = tmp_path / "clinicmatch.db"
    init_database(path)
    return path


@pytest.fixture
def session(db_path):
    s = get_session(db_path)
    yield s
    s.close()


@pytest.fixture
def directory(session, logger) -> CandidateDirectory:
    return CandidateDirectory(session, logger)


@pytest.fixture
def store(session, logger) -> SignupStore:
    return SignupStore(session, logger)


@pytest.fixture
def seeded(session) -> Dict[str, Candidate]:
    """A small roster covering every tier used in tests."""
    rows = {
        "ann": Candidate(last_name="Adams", first_name="Ann", tier="MS1", sign_up_count=4, match_count=1),
        "bo": Candidate(last_name="Baker", first_name="Bo", tier="MS2", sign_up_count=6, match_count=2,
                        last_match_date=date(2023, 3, 1), match_history="2023-03-01"),
        "cy": Candidate(last_name="Chen", first_name="Cy", tier="MS3", sign_up_count=2, match_count=0),
        "di": Candidate(last_name="Diaz", first_name="Di", tier="MS4", sign_up_count=3, match_count=3,
                        no_show_count=1, last_match_date=date(2024, 2, 1), match_history="2024-02-01"),
    }
    for c in rows.values():
        session.add(c)
    session.commit()
    return rows


def make_candidate(last="Doe", first="Jane", tier="MS2", **fields) -> Candidate:
    """Unsaved candidate row for pure scoring and assignment tests."""
    fields.setdefault("sign_up_count", 0)
    fields.setdefault("match_count", 0)
    return Candidate(last_name=last, first_name=first, tier=tier, **fields)


def make_scored(name: str, score: float, tier="MS2", **attrs) -> ScoredCandidate:
    return ScoredCandidate(make_candidate(last=name, first="X", tier=tier), SignUpAttributes(attrs), score)


def make_entry(candidate: Candidate, **attrs) -> PoolEntry:
    return PoolEntry(candidate, SignUpAttributes(attrs))


@pytest.fixture
def roster_file(tmp_path) -> Path:
    """Roster export with one invalid row."""
    path = tmp_path / "roster.json"
    data = {
        "candidates": [
            {"last_name": "Adams", "first_name": "Ann", "tier": "MS1", "sign_up_count": 4, "match_count": 1},
            {"last_name": "Baker", "first_name": "Bo", "tier": "MS2", "last_match_date": "2023-03-01",
             "match_history": ["2023-03-01"]},
            {"last_name": "Nobody", "tier": "MS9"},
        ]
    }
    path.write_text(json.dumps(data, indent=2))
    return path
