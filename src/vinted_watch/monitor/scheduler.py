"""APScheduler-driven sweep over all active watches."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..store.subscriptions import SubscriptionStore
from .checker import WatchChecker

logger = logging.getLogger(__name__)


@dataclass
class SweepSummary:
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None
    checked: int = 0
    new_count: int = 0
    errors: int = 0
    crashed: int = 0
    interrupted: bool = False

    def as_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "checked": self.checked,
            "new_count": self.new_count,
            "errors": self.errors,
            "crashed": self.crashed,
            "interrupted": self.interrupted,
        }


class WatchScheduler:
    """Runs sweeps on a fixed cadence, one at a time, checks strictly in sequence.

    A tick that fires while a sweep is still running is skipped. stop()
    lets the check in flight finish; the sweep then exits before the next
    subscription.
    """

    def __init__(
        self,
        checker: WatchChecker,
        subscriptions: SubscriptionStore,
        *,
        interval_seconds: int = 300,
        check_delay_seconds: float = 2.0,
    ) -> None:
        self.checker = checker
        self.subscriptions = subscriptions
        self.interval_seconds = interval_seconds
        self.check_delay_seconds = check_delay_seconds
        self._scheduler = AsyncIOScheduler()
        self._sweep_task: asyncio.Task | None = None
        self._sweep_lock = asyncio.Lock()
        self._stopping = False
        self._started = False
        self.running = False
        self.last_sweep: SweepSummary | None = None

    @property
    def sweeping(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start(self) -> None:
        if self._started:
            return
        self._scheduler.add_job(
            self._tick,
            "interval",
            seconds=self.interval_seconds,
            id="watch_sweep",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )
        self._scheduler.start()
        self._started = True
        self.running = True
        logger.info(
            "Watch scheduler started (interval=%ds, delay=%.1fs)",
            self.interval_seconds, self.check_delay_seconds,
        )

    def pause(self) -> None:
        if not self._scheduler.running:
            return
        self._scheduler.pause()
        self.running = False
        logger.info("Watch scheduler paused")

    def resume(self) -> None:
        if not self._scheduler.running:
            return
        self._scheduler.resume()
        self.running = True
        logger.info("Watch scheduler resumed")

    def stop(self) -> None:
        """Stop ticking. Safe to call more than once."""
        if self._stopping:
            return
        self._stopping = True
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Watch scheduler stopping")

    async def wait_idle(self, timeout: float | None = None) -> None:
        """Wait for an in-flight sweep to wind down."""
        if self.sweeping:
            await asyncio.wait({self._sweep_task}, timeout=timeout)

    def trigger(self) -> bool:
        """Start a sweep now. False if one is already running or the scheduler is stopping."""
        if self._stopping or self.sweeping:
            return False
        self._sweep_task = asyncio.create_task(self.run_sweep())
        return True

    async def _tick(self) -> None:
        if self.sweeping:
            logger.info("Previous sweep still running; skipping this tick")
            return
        self.trigger()

    async def run_sweep(self) -> SweepSummary | None:
        """Check every active subscription once.

        Returns None if another sweep holds the lock or the subscription
        list could not be read; the next tick retries.
        """
        if self._sweep_lock.locked():
            logger.info("Sweep already in progress; not starting another")
            return None
        async with self._sweep_lock:
            return await self._sweep()

    async def _sweep(self) -> SweepSummary | None:
        try:
            subs = self.subscriptions.list_active()
        except Exception as e:
            logger.exception("Could not list active subscriptions; sweep aborted: %s", e)
            return None

        summary = SweepSummary()
        if subs:
            logger.info("Sweep: %d active subscriptions to check", len(subs))

        for i, sub in enumerate(subs):
            if self._stopping:
                summary.interrupted = True
                break
            if i > 0 and self.check_delay_seconds > 0:
                await asyncio.sleep(self.check_delay_seconds)
                if self._stopping:
                    summary.interrupted = True
                    break
            try:
                result = await self.checker.check(sub)
            except Exception as e:
                logger.exception("Check crashed for subscription %d: %s", sub.id, e)
                summary.crashed += 1
                continue
            summary.checked += 1
            summary.new_count += result.new_count
            if result.errors:
                summary.errors += 1

        summary.finished_at = datetime.now(timezone.utc)
        self.last_sweep = summary
        if subs:
            logger.info(
                "Sweep done: %d checked, %d new, %d with errors, %d crashed",
                summary.checked, summary.new_count, summary.errors, summary.crashed,
            )
        return summary
