"""
Cleanup module for clearing processed sign-up responses.

After a clinic has been matched its form responses are no longer needed;
this keeps the signup store from accumulating old clinic dates.
"""

from datetime import date, timedelta
from pathlib import Path
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from .database import get_session
from .logger import get_logger
from .signups import SignupStore


def purge_signups(
    db_path: Path,
    clinic_date: Optional[date] = None,
    days: Optional[int] = None,
    variant: Optional[str] = None,
) -> Tuple[int, int]:
    """
    Remove sign-up responses for one clinic date, or for every clinic date
    more than `days` days in the past.

    Args:
        db_path: Path to SQLite database file
        clinic_date: Remove responses for this clinic only
        days: Remove responses for clinics older than this many days
        variant: Restrict removal to one clinic variant

    Returns:
        Tuple of (total_signups_before, total_signups_after)
    """
    if clinic_date is None and days is None:
        raise ValueError("Pass clinic_date or days")

    logger = get_logger()
    session = get_session(db_path)
    store = SignupStore(session, logger)
    try:
        before = store.count()
        if clinic_date is not None:
            store.delete_for_date(clinic_date, variant)
        else:
            cutoff = date.today() - timedelta(days=days)
            store.delete_before(cutoff, variant)
        after = store.count()

        logger.info(
            f"Cleanup complete: {before - after} removed, {after} remaining",
            signups_before=before,
            signups_removed=before - after,
            signups_after=after,
            clinic_date=clinic_date.isoformat() if clinic_date else None,
            days_threshold=days,
            variant=variant,
        )
        return (before, after)

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Cleanup failed: {e}", error=str(e), days=days)
        return (0, 0)
    finally:
        session.close()
