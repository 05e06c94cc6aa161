from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SessionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FAILED = "failed"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.FAILED, SessionStatus.COMPLETED)


class FaultReason(str, Enum):
    LAGGING = "lagging"
    LEADING = "leading"


_FAULT_MESSAGES = {
    FaultReason.LAGGING: "Cursor overtook you. Stay in sync!",
    FaultReason.LEADING: "Too far ahead. Match the cursor rhythm.",
}


def fault_message(reason: FaultReason) -> str:
    return _FAULT_MESSAGES[reason]


@dataclass(frozen=True)
class PacingConfig:
    """Pace-setter tuning for one difficulty.

    ``speed`` is in characters per second; ``0`` turns the pacing cursor off.
    """

    speed: float = 0.0
    lag_threshold: float = 12.0
    lead_threshold: float = 8.0

    @property
    def enabled(self) -> bool:
        return self.speed > 0


class PacingController:
    """Virtual pace-setter cursor that the typist has to stay close to.

    The cursor moves in real time (see :meth:`advance`) and is only compared
    with the typed length when :meth:`check` is called after a keystroke.
    Falling behind by more than ``lag_threshold`` or racing ahead by more than
    ``lead_threshold`` characters are both faults.
    """

    def __init__(self, config: PacingConfig) -> None:
        self._config = config
        self._cursor = 0.0
        self._frozen = False

    @property
    def config(self) -> PacingConfig:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def cursor_position(self) -> float:
        return self._cursor

    @property
    def frozen(self) -> bool:
        return self._frozen

    def advance(self, delta_seconds: float, limit: float) -> float:
        """Integrate the cursor over ``delta_seconds``, clamped to ``[0, limit]``."""
        if self._frozen or not self.enabled or delta_seconds <= 0:
            return self._cursor
        moved = self._cursor + self._config.speed * delta_seconds
        self._cursor = max(0.0, min(float(limit), moved))
        return self._cursor

    def check(self, typed_length: int) -> Optional[FaultReason]:
        """Return the divergence fault for ``typed_length``, if any."""
        if not self.enabled or typed_length <= 0:
            return None
        if self._cursor - typed_length > self._config.lag_threshold:
            return FaultReason.LAGGING
        if typed_length - self._cursor > self._config.lead_threshold:
            return FaultReason.LEADING
        return None

    def freeze(self) -> None:
        self._frozen = True

    def reset(self) -> None:
        self._cursor = 0.0
        self._frozen = False
