"""Cancelable scheduled callbacks owned by a typing session.

A session runs two timing domains: a per-frame callback that receives the
real elapsed time since the previous frame, and a fixed-interval callback.
Both are created through a :class:`Scheduler` and stopped through the
returned :class:`ScheduledTask`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, Optional


FrameCallback = Callable[[float], None]
IntervalCallback = Callable[[], None]


class ScheduledTask:
    """Handle to a scheduled callback."""

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None) -> None:
        self._active = True
        self._on_cancel = on_cancel

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Stop the callback. Safe to call more than once."""
        if not self._active:
            return
        self._active = False
        if self._on_cancel is not None:
            on_cancel, self._on_cancel = self._on_cancel, None
            on_cancel()


class Scheduler(ABC):
    @abstractmethod
    def every_frame(self, callback: FrameCallback) -> ScheduledTask:
        """Call ``callback(delta_seconds)`` on every display frame."""

    @abstractmethod
    def every(self, interval_seconds: float, callback: IntervalCallback) -> ScheduledTask:
        """Call ``callback()`` once per ``interval_seconds``."""


class _FrameTask(ScheduledTask):
    def __init__(self, callback: FrameCallback) -> None:
        super().__init__()
        self.callback = callback


class _IntervalTask(ScheduledTask):
    def __init__(self, interval: float, callback: IntervalCallback, due: float) -> None:
        super().__init__()
        self.interval = interval
        self.callback = callback
        self.due = due


class ManualScheduler(Scheduler):
    """Scheduler driven by explicit calls to :meth:`advance`.

    Used by headless hosts and tests. ``now()`` is the scheduler's virtual
    clock and can be handed to a session as its time source.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._frames: List[_FrameTask] = []
        self._intervals: List[_IntervalTask] = []

    def now(self) -> float:
        return self._now

    @property
    def active_tasks(self) -> int:
        return sum(1 for t in self._frames if t.active) + sum(1 for t in self._intervals if t.active)

    def every_frame(self, callback: FrameCallback) -> ScheduledTask:
        task = _FrameTask(callback)
        self._frames.append(task)
        return task

    def every(self, interval_seconds: float, callback: IntervalCallback) -> ScheduledTask:
        if interval_seconds <= 0:
            raise ValueError(f"interval must be positive, got {interval_seconds}")
        task = _IntervalTask(interval_seconds, callback, self._now + interval_seconds)
        self._intervals.append(task)
        return task

    def advance(self, seconds: float, frame_interval: float = 1 / 60) -> None:
        """Move virtual time forward by ``seconds`` in frame-sized steps."""
        if frame_interval <= 0:
            raise ValueError(f"frame_interval must be positive, got {frame_interval}")
        remaining = float(seconds)
        while remaining > 1e-12:
            step = min(frame_interval, remaining)
            remaining -= step
            self._now += step
            for task in list(self._frames):
                if task.active:
                    task.callback(step)
            for task in list(self._intervals):
                while task.active and task.due <= self._now + 1e-9:
                    task.due += task.interval
                    task.callback()
            self._prune()

    def cancel_all(self) -> None:
        for task in self._frames + self._intervals:
            task.cancel()
        self._prune()

    def _prune(self) -> None:
        self._frames = [t for t in self._frames if t.active]
        self._intervals = [t for t in self._intervals if t.active]
