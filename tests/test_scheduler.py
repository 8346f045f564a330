"""Tests for the sweep scheduler: ordering, isolation, overlap and shutdown."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vinted_watch.monitor.checker import CheckResult, WatchChecker
from vinted_watch.monitor.scheduler import WatchScheduler
from vinted_watch.scraper import ListingFetchError

from conftest import FakeSource, make_snapshot


class FakeChecker:
    def __init__(self, crash_ids=(), error_ids=(), new_per_check=0):
        self.checked: list[int] = []
        self.crash_ids = set(crash_ids)
        self.error_ids = set(error_ids)
        self.new_per_check = new_per_check
        self.gate: asyncio.Event | None = None
        self.on_check = None

    async def check(self, sub):
        self.checked.append(sub.id)
        if self.on_check:
            self.on_check(sub)
        if self.gate is not None:
            await self.gate.wait()
        if sub.id in self.crash_ids:
            raise RuntimeError("database is locked")
        result = CheckResult(subscription_id=sub.id, new_count=self.new_per_check)
        if sub.id in self.error_ids:
            result.errors.append("fetch: ListingFetchError: HTTP 503")
        return result


def make_scheduler(sub_ids, checker=None, delay=0.0):
    subs = MagicMock()
    subs.list_active.return_value = [SimpleNamespace(id=i) for i in sub_ids]
    checker = checker or FakeChecker()
    return WatchScheduler(checker, subs, interval_seconds=60, check_delay_seconds=delay), checker, subs


class TestSweep:
    @pytest.mark.asyncio
    async def test_checks_every_subscription_in_order(self):
        scheduler, checker, _ = make_scheduler([3, 1, 2], FakeChecker(new_per_check=2))

        summary = await scheduler.run_sweep()

        assert checker.checked == [3, 1, 2]
        assert summary.checked == 3
        assert summary.new_count == 6
        assert summary.finished_at is not None
        assert scheduler.last_sweep is summary

    @pytest.mark.asyncio
    async def test_delay_between_checks_only(self):
        scheduler, _, _ = make_scheduler([1, 2, 3], delay=2.0)

        with patch("vinted_watch.monitor.scheduler.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await scheduler.run_sweep()

        assert [c.args[0] for c in sleep.call_args_list] == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_crashed_check_does_not_stop_sweep(self):
        scheduler, checker, _ = make_scheduler([1, 2, 3], FakeChecker(crash_ids={2}, error_ids={3}))

        summary = await scheduler.run_sweep()

        assert checker.checked == [1, 2, 3]
        assert summary.checked == 2
        assert summary.crashed == 1
        assert summary.errors == 1

    @pytest.mark.asyncio
    async def test_list_failure_aborts_sweep(self):
        scheduler, checker, subs = make_scheduler([])
        subs.list_active.side_effect = RuntimeError("no such table: subscriptions")

        assert await scheduler.run_sweep() is None
        assert checker.checked == []
        assert scheduler.last_sweep is None

    @pytest.mark.asyncio
    async def test_empty_sweep(self):
        scheduler, _, _ = make_scheduler([])
        summary = await scheduler.run_sweep()
        assert summary.checked == 0
        assert summary.interrupted is False


class TestStop:
    @pytest.mark.asyncio
    async def test_stop_finishes_current_check_then_exits(self):
        scheduler, checker, _ = make_scheduler([1, 2, 3])
        checker.on_check = lambda sub: scheduler.stop()

        summary = await scheduler.run_sweep()

        assert checker.checked == [1]
        assert summary.checked == 1
        assert summary.interrupted is True

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        scheduler, _, _ = make_scheduler([])
        scheduler.stop()
        scheduler.stop()
        assert scheduler.running is False
        assert scheduler.trigger() is False

    @pytest.mark.asyncio
    async def test_wait_idle_without_sweep(self):
        scheduler, _, _ = make_scheduler([])
        await scheduler.wait_idle(timeout=0.1)
        assert scheduler.sweeping is False

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        scheduler, _, _ = make_scheduler([])
        scheduler.start()
        assert scheduler.running is True
        scheduler.pause()
        assert scheduler.running is False
        scheduler.resume()
        assert scheduler.running is True
        scheduler.stop()
        await scheduler.wait_idle(timeout=1)
        assert scheduler.running is False


class TestOverlap:
    @pytest.mark.asyncio
    async def test_no_second_sweep_while_one_runs(self):
        scheduler, checker, _ = make_scheduler([1])
        checker.gate = asyncio.Event()

        assert scheduler.trigger() is True
        await asyncio.sleep(0)
        task = scheduler._sweep_task

        assert scheduler.sweeping is True
        assert scheduler.trigger() is False
        await scheduler._tick()
        assert scheduler._sweep_task is task
        assert await scheduler.run_sweep() is None

        checker.gate.set()
        await scheduler.wait_idle(timeout=1)

        assert scheduler.sweeping is False
        assert checker.checked == [1]
        assert scheduler.last_sweep.checked == 1

    @pytest.mark.asyncio
    async def test_tick_starts_sweep_when_idle(self):
        scheduler, checker, _ = make_scheduler([1, 2])

        await scheduler._tick()
        await scheduler.wait_idle(timeout=1)

        assert checker.checked == [1, 2]

    @pytest.mark.asyncio
    async def test_wait_idle_lets_inflight_check_finish_after_stop(self):
        scheduler, checker, _ = make_scheduler([1, 2])
        checker.gate = asyncio.Event()

        scheduler.trigger()
        await asyncio.sleep(0)
        scheduler.stop()
        checker.gate.set()
        await scheduler.wait_idle(timeout=1)

        assert checker.checked == [1]
        assert scheduler.last_sweep.interrupted is True


class QueryRoutedSource(FakeSource):
    """Fails every fetch for the query text in ``broken``; others get one listing."""

    def __init__(self, broken):
        super().__init__()
        self.broken = broken

    async def fetch(self, query, limit):
        self.calls.append((query, limit))
        if query.text == self.broken:
            raise ListingFetchError("HTTP 503", 503)
        return [make_snapshot(f"{query.text}-1")]


class TestSweepWithStores:
    @pytest.mark.asyncio
    async def test_failing_fetch_does_not_starve_others(self, notifier, listings, subscriptions, ledger, make_subscription):
        source = QueryRoutedSource(broken="kapot")
        checker = WatchChecker(source, notifier, listings, subscriptions, ledger)
        scheduler = WatchScheduler(checker, subscriptions, interval_seconds=60, check_delay_seconds=0)
        broken = make_subscription(text="kapot", owner="u1")
        healthy = make_subscription(text="jas", owner="u2")

        first = await scheduler.run_sweep()
        broken_after_first = subscriptions.get(broken.id).last_checked_at

        assert [q.text for q, _ in source.calls] == ["kapot", "jas"]
        assert first.checked == 2
        assert first.errors == 1
        assert broken_after_first is not None
        assert notifier.sent == [(healthy.id, "jas-1")]

        # a never-checked watch now goes ahead of the failing one
        newcomer = make_subscription(text="laarzen", owner="u3")
        assert [s.id for s in subscriptions.list_active()] == [newcomer.id, broken.id, healthy.id]

        source.calls.clear()
        second = await scheduler.run_sweep()

        assert [q.text for q, _ in source.calls] == ["laarzen", "kapot", "jas"]
        assert second.checked == 3
        assert second.errors == 1
        assert subscriptions.get(broken.id).last_checked_at > broken_after_first
        assert (newcomer.id, "laarzen-1") in notifier.sent
        assert ledger.count_for(healthy.id) == 1
