"""
Match engine: one synchronous run per clinic date.

sign-ups -> pool builder -> score engine -> ranker -> slot assigner -> stats updater

All directory changes of a run (cancellation counters, match stats and the
processed-clinic record) are committed together at the end. Callers must not
run the engine concurrently against the same database.
"""

from datetime import date
from typing import Optional

from .assignment import SlotAssigner
from .config import ClinicConfig
from .directory import CandidateDirectory
from .errors import ClinicAlreadyProcessed
from .logger import StructuredLogger, get_logger
from .models import MatchResult
from .pool import PoolBuilder
from .ranking import rank
from .scoring import ScoreEngine
from .signups import SignupStore
from .stats import StatsUpdater


class MatchEngine:
    def __init__(
        self,
        config: ClinicConfig,
        directory: CandidateDirectory,
        signups: SignupStore,
        logger: Optional[StructuredLogger] = None,
        dry_run: bool = False,
        today: Optional[date] = None,
    ):
        self.config = config
        self.directory = directory
        self.signups = signups
        self.logger = logger or get_logger()
        self.dry_run = dry_run
        self.pool_builder = PoolBuilder(directory, self.logger, dry_run)
        self.score_engine = ScoreEngine(config.weights, today)
        self.assigner = SlotAssigner(config)
        self.stats = StatsUpdater(directory, self.logger, dry_run)

    def compute_and_apply(
        self,
        clinic_date: date,
        capacity: Optional[int] = None,
        clinic_type: Optional[str] = None,
    ) -> MatchResult:
        """
        Rank the sign-ups for clinic_date, assign rooms and record the matches.

        Args:
            clinic_date: Clinic day whose sign-ups are matched
            capacity: Rooms available (default: the clinic type's rooms, else the
                variant's room capacity)
            clinic_type: Code of the site or session held on clinic_date

        Returns:
            MatchResult with room assignments and matched identities

        Raises:
            ConfigError: clinic_type is not one of the variant's types
            ClinicAlreadyProcessed: stats for this date were already applied
            DirectoryWriteFailure: the directory could not be saved
        """
        site = self.config.clinic_type(clinic_type)
        if capacity is None:
            capacity = self.config.capacity_for(site)
        variant = self.config.name

        if not self.dry_run and self.directory.is_processed(variant, clinic_date):
            self.logger.error("Clinic already processed", variant=variant, clinic_date=clinic_date.isoformat())
            raise ClinicAlreadyProcessed(variant, clinic_date)

        self.logger.info(
            "Starting match run",
            variant=variant,
            clinic_date=clinic_date.isoformat(),
            clinic_type=site.code if site else None,
            capacity=capacity,
            dry_run=self.dry_run,
        )

        raw = self.signups.for_date(clinic_date, variant)
        pool = self.pool_builder.build(clinic_date, raw)

        scored = self.score_engine.score_all(pool.entries)
        self.logger.debug(
            "Match scores",
            scores={str(sc.identity): round(sc.score, 3) for sc in scored},
        )

        ranked = rank(scored, capacity)
        self.logger.info("Ranked pool", size=len(ranked), names=[str(sc.identity) for sc in ranked])

        plan = self.assigner.assign(ranked, capacity)
        if plan.rollover:
            self.logger.info("Roll over providers", names=[str(sc.identity) for sc in plan.rollover])
            self.logger.record_rollover(len(plan.rollover))

        matched = plan.matched_identities
        self.stats.apply(matched, clinic_date)

        if not self.dry_run:
            self.directory.mark_processed(variant, clinic_date, len(matched))
            self.directory.commit()

        self.logger.record_match(len(matched))
        self.logger.record_run()
        self.logger.info(
            "Match run complete",
            variant=variant,
            clinic_date=clinic_date.isoformat(),
            rooms=len(plan.assignments),
            matched=len(matched),
        )

        return MatchResult(
            clinic_date=clinic_date,
            variant=variant,
            clinic_type=site,
            assignments=plan.assignments,
            reserved=plan.reserved,
            matched_identities=matched,
            attributes={sc.identity: sc.attributes for sc in ranked},
            ranked=ranked,
            dry_run=self.dry_run,
        )
