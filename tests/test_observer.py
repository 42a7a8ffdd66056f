"""Tests for recompute scheduling."""
from __future__ import annotations

import asyncio

from orgchart_mcp.observer import AsyncioScheduler, ManualScheduler, PositionObserver


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


class TestManualScheduler:
    def test_fires_in_time_order(self):
        scheduler = ManualScheduler()
        fired = []
        scheduler.call_later(0.3, lambda: fired.append("late"))
        scheduler.call_later(0.1, lambda: fired.append("early"))

        assert scheduler.advance(0.2) == 1
        assert fired == ["early"]
        assert scheduler.run_all() == 1
        assert fired == ["early", "late"]

    def test_cancelled_callbacks_never_fire(self):
        scheduler = ManualScheduler()
        fired = []
        handle = scheduler.call_later(0.1, lambda: fired.append("x"))
        handle.cancel()

        assert scheduler.pending() == 0
        assert scheduler.run_all() == 0
        assert fired == []


class TestPositionObserver:
    def test_mount_recomputes_now_and_schedules_settling(self):
        scheduler = ManualScheduler()
        recompute = Counter()
        observer = PositionObserver(recompute, scheduler)
        observer.mount()

        assert recompute.calls == 1
        assert scheduler.pending() == 4

        scheduler.advance(0)
        assert recompute.calls == 2
        scheduler.advance(0.05)
        assert recompute.calls == 3
        scheduler.run_all()
        assert recompute.calls == 5

    def test_events_recompute_while_mounted(self):
        recompute = Counter()
        observer = PositionObserver(recompute, ManualScheduler(), settle_delays=())
        observer.mount()
        observer.notify_node_resize("a")
        observer.notify_viewport_resize()
        observer.notify_scroll()

        assert recompute.calls == 4

    def test_nothing_fires_after_unmount(self):
        scheduler = ManualScheduler()
        recompute = Counter()
        observer = PositionObserver(recompute, scheduler)
        observer.mount()
        observer.unmount()

        observer.notify_scroll()
        observer.notify_node_resize("a")
        observer.layout_stable()
        scheduler.run_all()

        assert recompute.calls == 1
        assert not observer.mounted

    def test_layout_stable_drops_remaining_settle_timers(self):
        scheduler = ManualScheduler()
        recompute = Counter()
        observer = PositionObserver(recompute, scheduler)
        observer.mount()
        observer.layout_stable()

        assert recompute.calls == 2
        assert scheduler.pending() == 0
        scheduler.run_all()
        assert recompute.calls == 2

    def test_double_mount_is_ignored(self):
        scheduler = ManualScheduler()
        recompute = Counter()
        observer = PositionObserver(recompute, scheduler)
        observer.mount()
        observer.mount()

        assert recompute.calls == 1
        assert scheduler.pending() == 4


class TestAsyncioScheduler:
    def test_settle_timers_run_on_the_event_loop(self):
        recompute = Counter()

        async def main():
            observer = PositionObserver(recompute, AsyncioScheduler(), settle_delays=(0.01,))
            observer.mount()
            await asyncio.sleep(0.05)
            observer.unmount()

        asyncio.run(main())
        assert recompute.calls == 3

    def test_unmount_cancels_loop_timers(self):
        recompute = Counter()

        async def main():
            observer = PositionObserver(recompute, AsyncioScheduler(), settle_delays=(0.05,))
            observer.mount()
            observer.unmount()
            await asyncio.sleep(0.1)

        asyncio.run(main())
        assert recompute.calls == 1
