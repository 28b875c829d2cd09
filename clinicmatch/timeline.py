"""
Sign-up lifecycle around a clinic date.

The daily trigger compares each upcoming clinic date with today: sign-ups
open lead_days before, the preliminary list goes to managers manage_days
before, and sign-ups close (and the match runs) close_days before.
"""

from datetime import date
from typing import Iterable, List, Optional, Tuple

from .config import SignupSchedule

OPEN = "open"
MANAGE = "manage"
CLOSE = "close"


def phase_for(clinic_date: date, today: date, schedule: SignupSchedule) -> Optional[str]:
    days_out = (clinic_date - today).days
    if days_out == schedule.lead_days:
        return OPEN
    if days_out == schedule.manage_days:
        return MANAGE
    if days_out == schedule.close_days:
        return CLOSE
    return None


def due_phases(
    clinic_dates: Iterable[date],
    today: date,
    schedule: SignupSchedule,
) -> List[Tuple[date, str]]:
    """(clinic date, phase) pairs that fire today, in date order."""
    due = []
    for d in sorted(clinic_dates):
        phase = phase_for(d, today, schedule)
        if phase:
            due.append((d, phase))
    return due
