from __future__ import annotations

import logging
from typing import List, Optional, Set

from typeforge.core.config import Track
from typeforge.core.pacing import SessionStatus
from typeforge.core.session import SessionResult

logger = logging.getLogger(__name__)


class DifficultyLadder:
    """Unlock state of one track's difficulties.

    The first difficulty starts unlocked; completing a session on a
    difficulty unlocks the one after it. Lives only as long as the host
    keeps it around.
    """

    def __init__(self, track: Track) -> None:
        self._track = track
        self._order = track.keys()
        self._unlocked: Set[str] = set(self._order[:1])

    @property
    def track(self) -> Track:
        return self._track

    def unlocked(self) -> List[str]:
        """Unlocked difficulty keys, in ladder order."""
        return [key for key in self._order if key in self._unlocked]

    def is_unlocked(self, key: str) -> bool:
        return key in self._unlocked

    def record(self, difficulty_key: str, result: SessionResult) -> Optional[str]:
        """Apply a finished session; return the newly unlocked key, if any."""
        if result.status is not SessionStatus.COMPLETED:
            return None
        if difficulty_key not in self._order:
            raise KeyError(f"Unknown difficulty {difficulty_key!r} for track {self._track.key!r}")
        idx = self._order.index(difficulty_key)
        if idx >= len(self._order) - 1:
            return None
        nxt = self._order[idx + 1]
        if nxt in self._unlocked:
            return None
        self._unlocked.add(nxt)
        logger.info("Unlocked %s/%s", self._track.key, nxt)
        return nxt

    def reset(self) -> None:
        self._unlocked = set(self._order[:1])
