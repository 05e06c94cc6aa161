"""Qt-backed scheduler for running typing sessions inside an event loop."""

from __future__ import annotations

import logging
from typing import List, Optional

from PySide6.QtCore import QElapsedTimer, QObject, QTimer

from typeforge.core.scheduling import FrameCallback, IntervalCallback, ScheduledTask, Scheduler

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16


class QtScheduler(Scheduler):
    """Frame and interval tasks on top of ``QTimer``.

    Frame tasks tick every ``frame_interval_ms`` and report the real time
    since the previous tick, measured with ``QElapsedTimer``, so pacing stays
    correct when frames are late or dropped. Interval tasks use their own
    timer at the fixed interval.
    """

    def __init__(self, parent: Optional[QObject] = None, frame_interval_ms: int = FRAME_INTERVAL_MS) -> None:
        self._parent = parent
        self._frame_interval_ms = frame_interval_ms
        self._tasks: List[ScheduledTask] = []

    def every_frame(self, callback: FrameCallback) -> ScheduledTask:
        timer = QTimer(self._parent)
        timer.setInterval(self._frame_interval_ms)
        elapsed = QElapsedTimer()

        def _on_timeout() -> None:
            # nsecsElapsed keeps sub-millisecond precision between frames
            delta = elapsed.nsecsElapsed() / 1e9
            elapsed.restart()
            callback(delta)

        timer.timeout.connect(_on_timeout)
        task = self._track(ScheduledTask(on_cancel=lambda: _stop(timer)))
        elapsed.start()
        timer.start()
        return task

    def every(self, interval_seconds: float, callback: IntervalCallback) -> ScheduledTask:
        if interval_seconds <= 0:
            raise ValueError(f"interval must be positive, got {interval_seconds}")
        timer = QTimer(self._parent)
        timer.setInterval(int(round(interval_seconds * 1000)))
        timer.timeout.connect(callback)
        task = self._track(ScheduledTask(on_cancel=lambda: _stop(timer)))
        timer.start()
        return task

    @property
    def active_tasks(self) -> int:
        self._prune()
        return len(self._tasks)

    def shutdown(self) -> None:
        """Cancel every task this scheduler has created."""
        for task in self._tasks:
            task.cancel()
        self._tasks = []
        logger.debug("Qt scheduler shut down")

    def _track(self, task: ScheduledTask) -> ScheduledTask:
        self._prune()
        self._tasks.append(task)
        return task

    def _prune(self) -> None:
        self._tasks = [t for t in self._tasks if t.active]


def _stop(timer: QTimer) -> None:
    timer.stop()
    timer.deleteLater()
