"""
Recurring fare transition job.

Each run scans the whole fare set and brings stored status in line with
effective dates:

1. Activation: per organization, the newest due INACTIVE fare is activated
   when nothing newer is already in force, then its siblings are swept.
2. Deactivation: among ACTIVE fares already in force, only the latest per
   organization stays ACTIVE. Undated fares are never candidates here.

Runs are idempotent over the full data set, so a failed run is simply
repaired by the next one.
"""
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set
from zoneinfo import ZoneInfo

from distribution_service.core.config import settings
from distribution_service.core.cron import should_run
from distribution_service.core.tasks import safe_create_task
from distribution_service.core.timezone import now_utc
from distribution_service.repositories.fare import Fare, FareStatus
from .lifecycle import FareLifecycleEngine

logger = logging.getLogger(__name__)


@dataclass
class TransitionReport:
    """Outcome of one scheduler run."""
    now: datetime
    activated: List[str] = field(default_factory=list)
    deactivated: List[str] = field(default_factory=list)
    failures: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.activated or self.deactivated)


class FareTransitionScheduler:
    """
    Background scheduler owned by the application lifespan.

    Usage:
        scheduler = FareTransitionScheduler(engine)
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        engine: FareLifecycleEngine,
        schedule: str = settings.FARE_TRANSITION_SCHEDULE,
        timezone_name: str = settings.SCHEDULER_TIMEZONE,
        clock: Callable[[], datetime] = now_utc,
        tick_seconds: float = 1.0,
    ):
        self.engine = engine
        self.store = engine.store
        self.schedule = schedule
        self.tz = ZoneInfo(timezone_name)
        self.clock = clock
        self.tick_seconds = tick_seconds
        self._loop_task: Optional[asyncio.Task] = None
        self._runs: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        if self.running:
            return
        self._loop_task = asyncio.create_task(self._run_loop(), name="fare_transition_scheduler")

    async def stop(self) -> None:
        """Cancel the timer loop and any run still in flight."""
        tasks = [t for t in [self._loop_task, *self._runs] if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._runs.clear()
        logger.info("Fare transition scheduler stopped")

    async def _run_loop(self) -> None:
        logger.info(f"Fare transition scheduler started (schedule: {self.schedule}, tz: {self.tz.key})")
        last_minute = None

        while True:
            try:
                local_now = self.clock().astimezone(self.tz)
                minute = local_now.replace(second=0, microsecond=0)

                if minute != last_minute:
                    last_minute = minute
                    if should_run(self.schedule, local_now):
                        logger.info(f"Trigger: fare transitions (schedule: {self.schedule})")
                        self._launch_run()

                await asyncio.sleep(self.tick_seconds)
            except Exception as e:
                logger.error(f"Error in fare transition scheduler loop: {e}", exc_info=True)
                await asyncio.sleep(10)

    def _launch_run(self) -> asyncio.Task:
        # One task per firing; runs do not wait on each other
        task = safe_create_task(self.process_fare_transitions(), name="fare_transitions")
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)
        return task

    async def process_fare_transitions(self, now: Optional[datetime] = None) -> Optional[TransitionReport]:
        """
        Run one reconciliation pass over every fare.

        Never raises: failures are logged and the next run starts over.

        Returns:
            TransitionReport, or None when the run aborted
        """
        now = now or self.clock()
        report = TransitionReport(now=now)
        logger.info("Processing fare transitions...")

        try:
            await self._activate_due_fares(now, report)
            await self._deactivate_superseded_fares(now, report)
        except Exception as e:
            logger.error(f"Error processing fare transitions: {e}", exc_info=True)
            return None

        logger.info(
            f"Fare transition processing completed: {len(report.activated)} activated, "
            f"{len(report.deactivated)} deactivated, {report.failures} failures"
        )
        return report

    async def _activate_due_fares(self, now: datetime, report: TransitionReport) -> None:
        active = await self.store.find_by_status(FareStatus.ACTIVE)
        inactive = await self.store.find_by_status(FareStatus.INACTIVE)

        in_force: Dict[str, tuple] = {}
        for fare in active:
            if fare.is_due(now):
                key = fare.recency_key()
                if fare.organization_id not in in_force or key > in_force[fare.organization_id]:
                    in_force[fare.organization_id] = key

        newest_due: Dict[str, Fare] = {}
        for fare in inactive:
            if not fare.is_due(now):
                continue
            org = fare.organization_id
            # Superseded fares stay inactive
            if org in in_force and fare.recency_key() <= in_force[org]:
                continue
            if org not in newest_due or fare.recency_key() > newest_due[org].recency_key():
                newest_due[org] = fare

        await self._fan_out(
            [self._activate(fare, report) for fare in newest_due.values()],
            list(newest_due.values()),
            report,
            "activate",
        )

    async def _activate(self, fare: Fare, report: TransitionReport) -> None:
        logger.info(
            f"Activating fare {fare.fare_code} for organization {fare.organization_id} "
            f"as of {fare.effective_date.isoformat()}"
        )
        saved = await self.store.save(fare.copy(status=FareStatus.ACTIVE))
        report.activated.append(saved.id)
        swept, failed = await self.engine.sweep_organization(saved.organization_id, keep_fare_id=saved.id)
        report.deactivated.extend(f.id for f in swept)
        report.failures += len(failed)

    async def _deactivate_superseded_fares(self, now: datetime, report: TransitionReport) -> None:
        active = await self.store.find_by_status(FareStatus.ACTIVE)

        groups: Dict[str, List[Fare]] = defaultdict(list)
        for fare in active:
            if fare.is_due(now):
                groups[fare.organization_id].append(fare)

        # Groups are complete here; only now pick the survivor per organization
        superseded: List[Fare] = []
        for fares in groups.values():
            latest = max(fares, key=Fare.recency_key)
            superseded.extend(f for f in fares if f.id != latest.id)

        await self._fan_out(
            [self._deactivate(fare, report) for fare in superseded],
            superseded,
            report,
            "deactivate",
        )

    async def _deactivate(self, fare: Fare, report: TransitionReport) -> None:
        await self.store.save(fare.copy(status=FareStatus.INACTIVE))
        logger.info(f"Deactivating fare {fare.fare_code} for organization {fare.organization_id}")
        report.deactivated.append(fare.id)

    async def _fan_out(self, coros: list, fares: List[Fare], report: TransitionReport, action: str) -> None:
        results = await asyncio.gather(*coros, return_exceptions=True)
        for fare, result in zip(fares, results):
            if isinstance(result, Exception):
                report.failures += 1
                logger.error(f"Failed to {action} fare {fare.fare_code}: {result}")
