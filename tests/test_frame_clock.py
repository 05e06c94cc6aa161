"""Tests for typeforge.ui.frame_clock – the QTimer-backed scheduler."""

from __future__ import annotations

import pytest

QtCore = pytest.importorskip("PySide6.QtCore")

from typeforge.core.pacing import PacingConfig, SessionStatus  # noqa: E402
from typeforge.core.session import SessionOptions, TypingSession  # noqa: E402
from typeforge.ui.frame_clock import QtScheduler  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])


def _spin(ms: int) -> None:
    loop = QtCore.QEventLoop()
    QtCore.QTimer.singleShot(ms, loop.quit)
    loop.exec()


class TestQtScheduler:
    def test_frame_deltas_are_real_time(self, qapp):
        sched = QtScheduler()
        deltas: list[float] = []
        sched.every_frame(deltas.append)
        _spin(200)
        sched.shutdown()
        assert deltas
        assert all(d > 0 for d in deltas)
        assert sum(deltas) < 1.0

    def test_interval_task_fires(self, qapp):
        sched = QtScheduler()
        ticks = []
        sched.every(0.05, lambda: ticks.append(1))
        _spin(300)
        sched.shutdown()
        assert len(ticks) >= 1

    def test_cancel_stops_callbacks(self, qapp):
        sched = QtScheduler()
        calls = []

        def _once(dt: float) -> None:
            calls.append(dt)
            task.cancel()

        task = sched.every_frame(_once)
        _spin(150)
        assert len(calls) == 1
        assert sched.active_tasks == 0

    def test_shutdown_cancels_everything(self, qapp):
        sched = QtScheduler()
        calls = []
        sched.every_frame(lambda dt: calls.append(dt))
        sched.every(0.01, lambda: calls.append(0))
        assert sched.active_tasks == 2
        sched.shutdown()
        _spin(100)
        assert calls == []
        assert sched.active_tasks == 0

    def test_cancelled_tasks_are_dropped(self, qapp):
        sched = QtScheduler()
        for _ in range(50):
            sched.every_frame(lambda dt: None).cancel()
            sched.every(1.0, lambda: None).cancel()
        sched.every(1.0, lambda: None)
        assert len(sched._tasks) == 1
        sched.shutdown()

    def test_rejects_non_positive_interval(self, qapp):
        with pytest.raises(ValueError):
            QtScheduler().every(0, lambda: None)

    def test_drives_a_session(self, qapp):
        sched = QtScheduler()
        session = TypingSession(
            "javascript",
            options=SessionOptions(pacing=PacingConfig(speed=40.0)),
            scheduler=sched,
        )
        session.load("let total = 0;")
        session.type("l")
        _spin(200)
        assert session.cursor_position > 0
        session.dispose()
        sched.shutdown()
        assert session.status is SessionStatus.RUNNING
