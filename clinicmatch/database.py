"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for the candidate roster (match tracker),
the sign-up responses and the record of processed clinic dates.
"""

from datetime import date, datetime
from pathlib import Path
from typing import List

from sqlalchemy import (
    create_engine, Column, Date, DateTime, Integer, JSON, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, sessionmaker

from .identity import CandidateIdentity, Tier

Base = declarative_base()


class Candidate(Base):
    """Roster entry with participation history."""

    __tablename__ = "candidates"
    __table_args__ = (UniqueConstraint("last_name", "first_name", "tier", name="uq_candidate_identity"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    last_name = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    tier = Column(String, nullable=False)  # MS1..MS4, PA1, PA2
    # Counters are nullable; a blank tracker cell reads as 0
    sign_up_count = Column(Integer, default=0)
    match_count = Column(Integer, default=0)
    no_show_count = Column(Integer, default=0)
    late_cancel_count = Column(Integer, default=0)
    early_cancel_count = Column(Integer, default=0)
    last_match_date = Column(Date, nullable=True)
    match_history = Column(Text, nullable=False, default="")  # comma-separated ISO dates
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    @property
    def identity(self) -> CandidateIdentity:
        return CandidateIdentity(self.last_name, self.first_name, Tier.parse(self.tier))

    @property
    def match_dates(self) -> List[date]:
        dates = []
        for part in (self.match_history or "").split(","):
            part = part.strip()
            if part:
                dates.append(date.fromisoformat(part))
        return dates

    def __repr__(self) -> str:
        return f"<Candidate {self.last_name}, {self.first_name} ({self.tier})>"


class SignUp(Base):
    """One sign-up form response for a clinic date."""

    __tablename__ = "signups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    identity = Column(String, nullable=False)  # "Last, First (Tier)", optionally suffixed CXL
    clinic_date = Column(Date, nullable=False, index=True)
    variant = Column(String, nullable=False)
    attributes = Column(JSON, nullable=False, default=dict)
    submitted_at = Column(DateTime, nullable=False, default=datetime.now)


class ProcessedClinic(Base):
    """Clinic dates whose match stats have been applied."""

    __tablename__ = "processed_clinics"

    variant = Column(String, primary_key=True)
    clinic_date = Column(Date, primary_key=True)
    matched_count = Column(Integer, nullable=False, default=0)
    processed_at = Column(DateTime, nullable=False, default=datetime.now)


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()
