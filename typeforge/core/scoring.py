"""Live typing metrics.

Comparison is position-locked: ``typed[i]`` is only ever compared with
``target[i]``. An inserted character therefore makes every following
position wrong until the typist backspaces over it.

* **Accuracy** – correct positions / typed characters, as a rounded percent.
  An empty input counts as 100%.
* **WPM** – (correct characters / 5) / elapsed minutes, rounded.
"""

from __future__ import annotations

import math
from typing import FrozenSet, Iterable, List, Set

CHARS_PER_WORD = 5
HEATMAP_BUCKETS = 20


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def count_correct(target: str, typed: str) -> int:
    """Number of positions where ``typed`` matches ``target``."""
    return sum(1 for a, b in zip(typed, target) if a == b)


def accuracy_percent(target: str, typed: str) -> int:
    if not typed:
        return 100
    return _round_half_up(100.0 * count_correct(target, typed) / len(typed))


def words_per_minute(correct_characters: int, elapsed_seconds: float) -> int:
    if elapsed_seconds <= 0:
        return 0
    minutes = elapsed_seconds / 60.0
    return _round_half_up((correct_characters / CHARS_PER_WORD) / minutes)


def error_heatmap(error_indices: Iterable[int], target_length: int, buckets: int = HEATMAP_BUCKETS) -> List[int]:
    """Count error positions per equal-width segment of the target text."""
    if target_length <= 0 or buckets <= 0:
        return []
    width = max(1, math.ceil(target_length / buckets))
    counts = [0] * buckets
    for index in error_indices:
        if 0 <= index < target_length:
            counts[min(buckets - 1, index // width)] += 1
    return counts


class ErrorTracker:
    """Target indices whose most recent comparison was a mismatch.

    Only the indices passed to :meth:`update` are re-evaluated, so an index
    stays in the set until a later keystroke makes that position correct.
    """

    def __init__(self) -> None:
        self._indices: Set[int] = set()

    @property
    def error_indices(self) -> FrozenSet[int]:
        return frozenset(self._indices)

    def __len__(self) -> int:
        return len(self._indices)

    def __contains__(self, index: object) -> bool:
        return index in self._indices

    def update(self, target: str, typed: str, changed: Iterable[int]) -> None:
        for i in changed:
            if i < 0 or i >= len(target) or i >= len(typed):
                continue
            if typed[i] != target[i]:
                self._indices.add(i)
            else:
                self._indices.discard(i)

    def clear(self) -> None:
        self._indices.clear()
