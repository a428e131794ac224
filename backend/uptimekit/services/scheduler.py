"""Scheduler service - runs a check of every active monitor once per tick.

Each tick loads the monitor set, skips paused monitors and monitors whose
previous probe is still running, and checks the rest concurrently. Every
monitor is an independent unit of work: a failed probe or store write is
logged and discarded, and the next tick is the retry.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import settings
from ..exceptions import StoreError
from .checker import CheckerService, create_checker
from .classifier import classify
from .history import HistoryStore

logger = logging.getLogger(__name__)

TICK_JOB_ID = "run_checks"


@dataclass
class TickReport:
    """Which monitors a tick checked, failed to record, or skipped."""
    checked: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)


class SchedulerService:
    """Fixed-cadence tick driver, started and stopped by the host process."""

    def __init__(
        self,
        store: Optional[HistoryStore] = None,
        checker: Optional[CheckerService] = None,
        interval_seconds: Optional[int] = None,
        max_concurrent: Optional[int] = None,
    ):
        self.store = store or HistoryStore()
        self.checker = checker or create_checker()
        self.interval_seconds = interval_seconds or settings.check_interval_seconds
        self.max_concurrent = max_concurrent or settings.max_concurrent_checks
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False
        self._in_flight: Set[int] = set()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> Set[int]:
        """Ids of monitors with a probe currently running."""
        return set(self._in_flight)

    def start(self):
        """Start the periodic tick."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.run_tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=TICK_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.interval_seconds,
        )
        self.scheduler.start()
        self._running = True
        logger.info(
            f"Scheduler started (interval={self.interval_seconds}s, "
            f"max_concurrent={self.max_concurrent})"
        )

    def stop(self):
        """Stop the periodic tick. Probes already running are left to settle."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    async def run_tick(self) -> TickReport:
        """Check every active monitor once and wait for all checks to settle."""
        report = TickReport()
        try:
            monitors = await self.store.list_monitors()
        except StoreError as e:
            logger.error(f"Error loading monitors: {e}")
            return report

        due = []
        for monitor in monitors:
            if monitor.paused:
                continue
            if monitor.id in self._in_flight:
                logger.warning(f"Monitor {monitor.id} is still being checked, skipping this tick")
                report.skipped.append(monitor.id)
                continue
            # Claimed before any task runs so an overlapping tick sees it
            self._in_flight.add(monitor.id)
            due.append((monitor.id, monitor.type, monitor.target))

        if not due:
            return report

        logger.debug(f"Checking {len(due)} of {len(monitors)} monitors")

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def check_with_limit(monitor_id: int, monitor_type: str, target: str) -> bool:
            try:
                async with semaphore:
                    return await self.check_monitor(monitor_id, monitor_type, target)
            finally:
                self._in_flight.discard(monitor_id)

        try:
            results = await asyncio.gather(
                *[check_with_limit(*item) for item in due],
                return_exceptions=True,
            )
        finally:
            # Tasks cancelled before they start never reach their own release
            for monitor_id, _, _ in due:
                self._in_flight.discard(monitor_id)

        for (monitor_id, _, _), result in zip(due, results):
            if result is True:
                report.checked.append(monitor_id)
            else:
                if isinstance(result, BaseException):
                    logger.error(f"Error checking monitor {monitor_id}: {result}")
                report.failed.append(monitor_id)
        return report

    async def check_monitor(self, monitor_id: int, monitor_type: Optional[str], target: str) -> bool:
        """Probe one monitor, classify the outcome and record it.

        Returns False when the result could not be recorded.
        """
        outcome = await self.checker.probe(monitor_type, target)
        status = classify(outcome.success, outcome.elapsed_ms)

        try:
            await self.store.write_check_result(
                monitor_id,
                status.value,
                outcome.elapsed_ms,
                outcome.error,
            )
        except StoreError as e:
            logger.error(f"Error recording check for monitor {monitor_id}: {e}")
            return False

        logger.debug(f"Monitor {monitor_id} ({target}): {status.value} in {outcome.elapsed_ms}ms")
        return True
