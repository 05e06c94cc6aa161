"""Tests for typeforge.core.scheduling – cancelable frame and interval tasks."""

from __future__ import annotations

import pytest

from typeforge.core.scheduling import ManualScheduler, ScheduledTask


class TestScheduledTask:
    def test_active_until_cancelled(self):
        task = ScheduledTask()
        assert task.active
        task.cancel()
        assert not task.active

    def test_cancel_hook_runs_once(self):
        calls = []
        task = ScheduledTask(on_cancel=lambda: calls.append(1))
        task.cancel()
        task.cancel()
        assert calls == [1]


class TestManualSchedulerFrames:
    def test_frame_callbacks_receive_step(self):
        sched = ManualScheduler()
        deltas: list[float] = []
        sched.every_frame(deltas.append)
        sched.advance(0.05, frame_interval=0.02)
        assert deltas == pytest.approx([0.02, 0.02, 0.01])
        assert sched.now() == pytest.approx(0.05)

    def test_cancelled_frame_task_stops(self):
        sched = ManualScheduler()
        deltas: list[float] = []
        task = sched.every_frame(deltas.append)
        sched.advance(0.1, frame_interval=0.05)
        task.cancel()
        sched.advance(1.0)
        assert len(deltas) == 2
        assert sched.active_tasks == 0

    def test_invalid_frame_interval(self):
        with pytest.raises(ValueError):
            ManualScheduler().advance(1.0, frame_interval=0)


class TestManualSchedulerIntervals:
    def test_fires_once_per_interval(self):
        sched = ManualScheduler()
        ticks: list[float] = []
        sched.every(1.0, lambda: ticks.append(sched.now()))
        sched.advance(3.5)
        assert len(ticks) == 3

    def test_fires_at_boundary(self):
        sched = ManualScheduler()
        ticks = []
        sched.every(1.0, lambda: ticks.append(1))
        sched.advance(1.0)
        assert ticks == [1]

    def test_large_frame_catches_up(self):
        sched = ManualScheduler()
        ticks = []
        sched.every(1.0, lambda: ticks.append(1))
        sched.advance(3.0, frame_interval=3.0)
        assert len(ticks) == 3

    def test_start_offset(self):
        sched = ManualScheduler(start=100.0)
        assert sched.now() == 100.0
        ticks = []
        sched.every(1.0, lambda: ticks.append(sched.now()))
        sched.advance(1.0)
        assert ticks == [pytest.approx(101.0)]

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            ManualScheduler().every(0, lambda: None)

    def test_task_cancelled_by_another_callback_does_not_fire(self):
        sched = ManualScheduler()
        fired = []
        victim = sched.every(1.0, lambda: fired.append("victim"))
        sched.every_frame(lambda dt: victim.cancel() if sched.now() > 0.5 else None)
        sched.advance(2.0)
        assert fired == []

    def test_cancel_all(self):
        sched = ManualScheduler()
        sched.every(1.0, lambda: None)
        sched.every_frame(lambda dt: None)
        assert sched.active_tasks == 2
        sched.cancel_all()
        assert sched.active_tasks == 0
