"""
Stats updater: writes match outcomes back to the candidate directory.

Not idempotent on its own. Calling apply() twice for the same date counts
the match twice; MatchEngine guards against that with the processed-clinic
record.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from .directory import CandidateDirectory
from .errors import UnresolvedIdentity
from .identity import CandidateIdentity
from .logger import StructuredLogger, get_logger


@dataclass(frozen=True)
class StatDelta:
    identity: CandidateIdentity
    match_count: int
    last_match_date: date


class StatsUpdater:
    def __init__(
        self,
        directory: CandidateDirectory,
        logger: Optional[StructuredLogger] = None,
        dry_run: bool = False,
    ):
        self.directory = directory
        self.logger = logger or get_logger()
        self.dry_run = dry_run

    def apply(self, matched: Iterable[CandidateIdentity], clinic_date: date) -> List[StatDelta]:
        """
        Count one match for each identity on clinic_date.

        Changes are left pending in the session; the caller commits.

        Raises:
            UnresolvedIdentity: a matched identity vanished from the directory
        """
        deltas: List[StatDelta] = []
        for identity in matched:
            candidate = self.directory.lookup(identity)
            if candidate is None:
                raise UnresolvedIdentity(str(identity))

            delta = StatDelta(
                identity=identity,
                match_count=int(self.directory.read(candidate, "match_count")) + 1,
                last_match_date=clinic_date,
            )
            deltas.append(delta)

            if self.dry_run:
                self.logger.info(
                    "DRY RUN: would update match stats",
                    identity=str(identity),
                    match_count=delta.match_count,
                    last_match_date=clinic_date.isoformat(),
                )
                self.logger.record_dry_run_write()
                continue

            self.directory.write(candidate, "match_count", delta.match_count)
            self.directory.write(candidate, "last_match_date", clinic_date)
            self.directory.append_match_date(candidate, clinic_date)
            self.logger.debug("Match stats updated", identity=str(identity), match_count=delta.match_count)

        return deltas
