from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional, Tuple

from typeforge.core.pacing import FaultReason, PacingConfig, PacingController, SessionStatus
from typeforge.core.scheduling import ScheduledTask, Scheduler
from typeforge.core.scoring import (
    ErrorTracker,
    accuracy_percent,
    count_correct,
    error_heatmap,
    words_per_minute,
)
from typeforge.core.tokenizer import LanguageFamily, Token, family_for_language, tokenize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionOptions:
    """Rules for one typing attempt.

    ``time_limit_seconds`` is measured from the first keystroke; ``None``
    means the attempt only ends when the whole text has been typed or the
    pacing cursor faults. ``heatmap_buckets`` turns on the challenge error
    heatmap.
    """

    pacing: PacingConfig = field(default_factory=PacingConfig)
    time_limit_seconds: Optional[float] = None
    heatmap_buckets: Optional[int] = None
    tab_width: int = 2
    sample_interval: float = 1.0


@dataclass(frozen=True)
class SessionMetrics:
    accuracy: int
    wpm: int
    status: SessionStatus
    cursor_position: float
    error_indices: FrozenSet[int]
    correct_characters: int
    errors: int
    typed_length: int
    elapsed_seconds: float
    fault: Optional[FaultReason] = None


@dataclass(frozen=True)
class SessionResult:
    """Final numbers of a finished attempt."""

    status: SessionStatus
    fault: Optional[FaultReason]
    accuracy: int
    wpm: int
    errors: int
    characters_typed: int
    elapsed_seconds: float
    cursor_position: float
    accuracy_history: Tuple[int, ...]
    error_heatmap: Tuple[int, ...]


class TypingSession:
    """One typing attempt over a target text, with an optional pace-setter.

    Lifecycle: ``idle`` until the first character is typed, then ``running``
    until the typist diverges from the pacing cursor (``failed``), types the
    whole text or runs out of time (``completed``). Terminal states freeze
    the cursor and the metrics; :meth:`reset` or :meth:`load` start a fresh
    attempt.

    While running, the session owns two scheduled tasks: a frame task that
    advances the pacing cursor and a fixed-interval task that samples
    accuracy. Both are cancelled when the session ends, resets or is
    disposed.
    """

    def __init__(
        self,
        family: LanguageFamily,
        options: Optional[SessionOptions] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
        on_finish: Optional[Callable[[SessionResult], None]] = None,
    ) -> None:
        self._family = family_for_language(family)
        self._options = options or SessionOptions()
        self._scheduler = scheduler
        self._clock = clock
        self._on_finish = on_finish

        self._pacing = PacingController(self._options.pacing)
        self._errors = ErrorTracker()
        self._tasks: List[ScheduledTask] = []
        self._disposed = False

        self._target = ""
        self._tokens: List[Token] = []
        self._clear_attempt()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def family(self) -> LanguageFamily:
        return self._family

    @property
    def options(self) -> SessionOptions:
        return self._options

    @property
    def target_text(self) -> str:
        return self._target

    @property
    def typed_text(self) -> str:
        return self._typed

    @property
    def tokens(self) -> List[Token]:
        """Highlight tokens of the target text."""
        return list(self._tokens)

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def fault(self) -> Optional[FaultReason]:
        return self._fault

    @property
    def cursor_position(self) -> float:
        return self._pacing.cursor_position

    @property
    def started_at(self) -> Optional[float]:
        return self._started_at

    @property
    def ended_at(self) -> Optional[float]:
        return self._ended_at

    @property
    def error_indices(self) -> FrozenSet[int]:
        return self._errors.error_indices

    @property
    def accuracy_history(self) -> List[int]:
        return list(self._history)

    @property
    def result(self) -> Optional[SessionResult]:
        return self._result

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def scheduled_tasks(self) -> int:
        """Number of scheduled callbacks the session still holds."""
        return sum(1 for task in self._tasks if task.active)

    def elapsed_seconds(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._ended_at if self._ended_at is not None else self._clock()
        return max(0.0, end - self._started_at)

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def load(self, target_text: str) -> None:
        """Start over with a new target text."""
        if self._disposed:
            return
        self._cancel_tasks()
        self._target = target_text or ""
        self._tokens = tokenize(self._target, self._family)
        self._clear_attempt()
        logger.debug("Loaded %d-character target (%s)", len(self._target), self._family.value)

    def reset(self) -> None:
        """Start over with the same target text."""
        if self._disposed:
            return
        self._cancel_tasks()
        self._clear_attempt()

    def type(self, delta: str) -> None:
        """Append typed characters. Tabs are expanded to spaces."""
        if self._disposed or self._status.is_terminal or not delta or not self._target:
            return
        if "\t" in delta:
            delta = delta.replace("\t", " " * self._options.tab_width)
        if self._status is SessionStatus.IDLE:
            self._start()
        elif self._check_fault():
            # outrun while idle at the keyboard
            return

        first = len(self._typed)
        self._typed += delta
        self._errors.update(self._target, self._typed, range(first, len(self._typed)))
        self._after_keystroke()

    def backspace(self) -> None:
        if self._disposed or self._status is not SessionStatus.RUNNING or not self._typed:
            return
        self._typed = self._typed[:-1]
        self._errors.update(self._target, self._typed, (len(self._typed) - 1,))
        self._after_keystroke()

    def tick(self, delta_seconds: float) -> None:
        """Frame driver: advance the pacing cursor by ``delta_seconds``."""
        if self._disposed or self._status is not SessionStatus.RUNNING:
            return
        self._pacing.advance(delta_seconds, len(self._target))
        if self._time_is_up():
            self._finish(SessionStatus.COMPLETED)

    def sample_accuracy(self) -> None:
        """Record the current accuracy; called once per sample interval."""
        if self._disposed or self._status is not SessionStatus.RUNNING:
            return
        self._history.append(accuracy_percent(self._target, self._typed))

    def metrics(self) -> SessionMetrics:
        correct = count_correct(self._target, self._typed)
        elapsed = self.elapsed_seconds()
        return SessionMetrics(
            accuracy=accuracy_percent(self._target, self._typed),
            wpm=words_per_minute(correct, elapsed) if self._started_at is not None else 0,
            status=self._status,
            cursor_position=self._pacing.cursor_position,
            error_indices=self._errors.error_indices,
            correct_characters=correct,
            errors=len(self._typed) - correct,
            typed_length=len(self._typed),
            elapsed_seconds=elapsed,
            fault=self._fault,
        )

    def error_heatmap(self) -> List[int]:
        buckets = self._options.heatmap_buckets
        if not buckets:
            return []
        return error_heatmap(self._errors.error_indices, len(self._target), buckets)

    def dispose(self) -> None:
        """Cancel every scheduled callback and ignore all further input."""
        if self._disposed:
            return
        self._cancel_tasks()
        self._disposed = True

    cancel = dispose

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clear_attempt(self) -> None:
        self._typed = ""
        self._status = SessionStatus.IDLE
        self._fault: Optional[FaultReason] = None
        self._started_at: Optional[float] = None
        self._ended_at: Optional[float] = None
        self._history: List[int] = []
        self._result: Optional[SessionResult] = None
        self._errors.clear()
        self._pacing.reset()

    def _start(self) -> None:
        self._status = SessionStatus.RUNNING
        self._started_at = self._clock()
        if self._scheduler is not None:
            self._tasks = [
                self._scheduler.every_frame(self.tick),
                self._scheduler.every(self._options.sample_interval, self.sample_accuracy),
            ]
        logger.info(
            "Session started: %d characters, pace %.1f chars/s",
            len(self._target),
            self._options.pacing.speed,
        )

    def _check_fault(self) -> bool:
        fault = self._pacing.check(len(self._typed))
        if fault is None:
            return False
        self._fault = fault
        self._finish(SessionStatus.FAILED)
        return True

    def _after_keystroke(self) -> None:
        if self._check_fault():
            return
        if len(self._typed) >= len(self._target) or self._time_is_up():
            self._finish(SessionStatus.COMPLETED)

    def _time_is_up(self) -> bool:
        limit = self._options.time_limit_seconds
        return limit is not None and self.elapsed_seconds() >= limit

    def _finish(self, status: SessionStatus) -> None:
        self._ended_at = self._clock()
        self._status = status
        self._pacing.freeze()
        self._cancel_tasks()
        m = self.metrics()
        self._result = SessionResult(
            status=status,
            fault=self._fault,
            accuracy=m.accuracy,
            wpm=m.wpm,
            errors=m.errors,
            characters_typed=m.typed_length,
            elapsed_seconds=m.elapsed_seconds,
            cursor_position=m.cursor_position,
            accuracy_history=tuple(self._history),
            error_heatmap=tuple(self.error_heatmap()),
        )
        if status is SessionStatus.FAILED:
            logger.info("Session failed (%s) after %.1fs", self._fault.value, m.elapsed_seconds)
        else:
            logger.info("Session completed: %d WPM, %d%% accuracy", m.wpm, m.accuracy)
        if self._on_finish is not None:
            self._on_finish(self._result)

    def _cancel_tasks(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks = []
