"""Tests for the tick driver."""
import asyncio

import pytest

from uptimekit.exceptions import StoreError
from uptimekit.services.checker import Outcome
from uptimekit.services.history import HistoryStore
from uptimekit.services.scheduler import SchedulerService


class FlakyStore(HistoryStore):
    """History store whose writes fail for selected monitors."""

    def __init__(self, session_factory, failing_ids):
        super().__init__(session_factory)
        self.failing_ids = set(failing_ids)

    async def write_check_result(self, monitor_id, *args, **kwargs):
        if monitor_id in self.failing_ids:
            raise StoreError("disk I/O error")
        return await super().write_check_result(monitor_id, *args, **kwargs)


class BrokenStore(HistoryStore):
    async def list_monitors(self):
        raise StoreError("database is unavailable")


async def test_tick_checks_active_monitors(store, add_monitor, make_checker):
    up = await add_monitor(target="https://up.example.com")
    slow = await add_monitor(target="slow.example.com", type="dns")
    down = await add_monitor(target="10.0.0.1", type="icmp")
    checker = make_checker({
        "https://up.example.com": Outcome.ok(120),
        "slow.example.com": Outcome.ok(2500),
        "10.0.0.1": Outcome.failed(2010, "10.0.0.1 did not reply"),
    })
    scheduler = SchedulerService(store=store, checker=checker)

    report = await scheduler.run_tick()

    assert sorted(report.checked) == sorted([up.id, slow.id, down.id])
    assert report.failed == []
    monitors = {m.id: m for m in await store.list_monitors()}
    assert monitors[up.id].status == "up"
    assert monitors[slow.id].status == "slow"
    assert monitors[down.id].status == "down"
    assert monitors[down.id].response_time_ms == 2010

    history = await store.query_history(down.id)
    assert history[0].error_message == "10.0.0.1 did not reply"
    assert ("icmp", "10.0.0.1") in checker.calls


async def test_paused_monitors_are_skipped(store, add_monitor, make_checker):
    active = await add_monitor(target="https://a.example.com")
    paused = await add_monitor(target="https://b.example.com", paused=True)
    checker = make_checker()
    scheduler = SchedulerService(store=store, checker=checker)

    report = await scheduler.run_tick()

    assert report.checked == [active.id]
    assert checker.calls == [("http", "https://a.example.com")]
    assert await store.query_history(paused.id) == []


async def test_probe_exception_does_not_affect_other_monitors(store, add_monitor, make_checker):
    broken = await add_monitor(target="https://broken.example.com")
    healthy = await add_monitor(target="https://ok.example.com")

    async def times_out():
        await asyncio.sleep(0.05)
        raise asyncio.TimeoutError()

    checker = make_checker({
        "https://broken.example.com": RuntimeError("driver crashed"),
        "https://ok.example.com": Outcome.ok(80),
    })
    scheduler = SchedulerService(store=store, checker=checker)

    report = await scheduler.run_tick()

    assert report.failed == [broken.id]
    assert report.checked == [healthy.id]
    assert len(await store.query_history(healthy.id)) == 1
    assert await store.query_history(broken.id) == []
    assert scheduler.in_flight == set()

    checker.outcomes["https://broken.example.com"] = times_out
    report = await scheduler.run_tick()
    assert report.failed == [broken.id]
    assert len(await store.query_history(healthy.id)) == 2


async def test_store_failure_is_isolated(session_factory, add_monitor, make_checker):
    failing = await add_monitor(target="https://a.example.com")
    healthy = await add_monitor(target="https://b.example.com")
    store = FlakyStore(session_factory, failing_ids=[failing.id])
    scheduler = SchedulerService(store=store, checker=make_checker())

    report = await scheduler.run_tick()

    assert report.failed == [failing.id]
    assert report.checked == [healthy.id]
    monitors = {m.id: m for m in await store.list_monitors()}
    assert monitors[failing.id].status == "unknown"
    assert monitors[healthy.id].status == "up"


async def test_unloadable_monitor_set_ends_tick_quietly(session_factory, make_checker):
    scheduler = SchedulerService(store=BrokenStore(session_factory), checker=make_checker())
    report = await scheduler.run_tick()
    assert (report.checked, report.failed, report.skipped) == ([], [], [])


async def test_monitor_still_in_flight_is_not_checked_again(store, add_monitor, make_checker):
    monitor = await add_monitor(target="https://hanging.example.com")
    release = asyncio.Event()

    async def hangs():
        await release.wait()
        return Outcome.ok(50)

    checker = make_checker({"https://hanging.example.com": hangs})
    scheduler = SchedulerService(store=store, checker=checker)

    first_tick = asyncio.create_task(scheduler.run_tick())
    for _ in range(200):
        if scheduler.in_flight:
            break
        await asyncio.sleep(0.01)
    assert scheduler.in_flight == {monitor.id}

    second = await scheduler.run_tick()
    assert second.skipped == [monitor.id]
    assert second.checked == []

    release.set()
    first = await first_tick
    assert first.checked == [monitor.id]
    assert scheduler.in_flight == set()
    assert len(await store.query_history(monitor.id)) == 1


async def test_cancelled_tick_releases_claimed_monitors(store, add_monitor, make_checker):
    monitor = await add_monitor(target="https://hanging.example.com")
    release = asyncio.Event()

    async def hangs():
        await release.wait()
        return Outcome.ok(50)

    checker = make_checker({"https://hanging.example.com": hangs})
    scheduler = SchedulerService(store=store, checker=checker)

    tick = asyncio.create_task(scheduler.run_tick())
    for _ in range(200):
        if scheduler.in_flight:
            break
        await asyncio.sleep(0)
    assert scheduler.in_flight == {monitor.id}

    tick.cancel()
    with pytest.raises(asyncio.CancelledError):
        await tick
    assert scheduler.in_flight == set()

    checker.outcomes["https://hanging.example.com"] = Outcome.ok(50)
    report = await scheduler.run_tick()
    assert report.checked == [monitor.id]
    assert report.skipped == []


async def test_concurrency_limit(store, add_monitor, make_checker):
    running = 0
    peak = 0

    async def tracked():
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.02)
        running -= 1
        return Outcome.ok(20)

    targets = [f"https://{i}.example.com" for i in range(6)]
    for target in targets:
        await add_monitor(target=target)
    checker = make_checker({target: tracked for target in targets})
    scheduler = SchedulerService(store=store, checker=checker, max_concurrent=2)

    report = await scheduler.run_tick()

    assert len(report.checked) == 6
    assert peak == 2


async def test_start_and_stop(store, make_checker):
    scheduler = SchedulerService(store=store, checker=make_checker(), interval_seconds=60)
    scheduler.start()
    try:
        assert scheduler.running
        job = scheduler.scheduler.get_job("run_checks")
        assert job is not None
        assert job.max_instances == 1
    finally:
        scheduler.stop()
    assert not scheduler.running
