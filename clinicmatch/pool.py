"""
Pool builder: turns raw sign-ups for one clinic date into directory-backed
candidates.

A sign-up that cannot be resolved never aborts the run; it is logged and
left out of the pool. The only directory write here is the early
cancellation counter, and it is skipped under dry-run.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Tuple

from .directory import CandidateDirectory
from .errors import InvalidIdentity, UnresolvedCancellation, UnresolvedIdentity
from .identity import format_identity, parse_identity
from .logger import StructuredLogger, get_logger
from .models import PoolEntry, SignUpAttributes


@dataclass
class PoolBuildResult:
    entries: List[PoolEntry] = field(default_factory=list)
    excluded: List[Tuple[str, str]] = field(default_factory=list)  # (raw identity, reason)


class PoolBuilder:
    def __init__(
        self,
        directory: CandidateDirectory,
        logger: Optional[StructuredLogger] = None,
        dry_run: bool = False,
    ):
        self.directory = directory
        self.logger = logger or get_logger()
        self.dry_run = dry_run

    def build(self, clinic_date: date, signups: Iterable[Tuple[str, SignUpAttributes]]) -> PoolBuildResult:
        result = PoolBuildResult()
        seen = set()

        for raw, attributes in signups:
            self.logger.record_signup()
            try:
                entry = self._resolve(raw, attributes, clinic_date)
            except UnresolvedCancellation:
                self.logger.warning("Cancellation for unknown candidate", identity=raw)
                self._exclude(result, raw, "unresolved_cancellation")
                continue
            except (UnresolvedIdentity, InvalidIdentity) as e:
                self.logger.warning("Name error, sign-up skipped", identity=raw, error=str(e))
                self._exclude(result, raw, "unresolved")
                continue

            if entry is None:
                self._exclude(result, raw, "cancelled")
                continue

            key = entry.candidate.id
            if key in seen:
                self.logger.warning("Duplicate sign-up skipped", identity=raw)
                self._exclude(result, raw, "duplicate")
                continue
            seen.add(key)

            self.logger.record_resolved()
            result.entries.append(entry)

        if not result.entries:
            self.logger.warning("No eligible sign-ups", clinic_date=clinic_date.isoformat())
        return result

    def _exclude(self, result: PoolBuildResult, raw: str, reason: str) -> None:
        result.excluded.append((raw, reason))
        self.logger.record_exclusion(reason)

    def _resolve(self, raw: str, attributes: SignUpAttributes, clinic_date: date) -> Optional[PoolEntry]:
        """Return the pool entry, or None for a counted cancellation."""
        identity, cancelled = parse_identity(raw)
        if not cancelled:
            return PoolEntry(self.directory.resolve(identity), attributes)

        candidate = self.directory.lookup(identity)
        if candidate is None:
            raise UnresolvedCancellation(format_identity(identity))

        new_value = int(self.directory.read(candidate, "early_cancel_count")) + 1
        if self.dry_run:
            self.logger.info(
                "DRY RUN: would increment early_cancel_count",
                identity=format_identity(identity),
                new_value=new_value,
                clinic_date=clinic_date.isoformat(),
            )
            self.logger.record_dry_run_write()
        else:
            self.directory.write(candidate, "early_cancel_count", new_value)
            self.logger.info("Early cancellation counted", identity=format_identity(identity), new_value=new_value)
        return None
