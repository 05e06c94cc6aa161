from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from typeforge.core.pacing import PacingConfig
from typeforge.core.session import SessionOptions

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "data" / "engine.yaml"


@dataclass(frozen=True)
class Difficulty:
    key: str
    label: str
    speed: float
    max_length: Optional[int] = None
    passage_length: Optional[str] = None


@dataclass(frozen=True)
class Track:
    key: str
    title: str
    difficulties: Tuple[Difficulty, ...]

    def get(self, key: str) -> Difficulty:
        for difficulty in self.difficulties:
            if difficulty.key == key:
                return difficulty
        raise KeyError(f"Unknown difficulty {key!r} for track {self.key!r}")

    def keys(self) -> List[str]:
        return [d.key for d in self.difficulties]


@dataclass(frozen=True)
class EngineConfig:
    """Difficulty ladders, timer presets and pacing thresholds."""

    tracks: Dict[str, Track]
    lag_threshold: float = 12.0
    lead_threshold: float = 8.0
    timer_presets: Tuple[int, ...] = (1, 3, 5, 10)
    default_timer: int = 5
    heatmap_buckets: int = 20
    tab_width: int = 2

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "EngineConfig":
        config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
        if not config_path.exists():
            raise FileNotFoundError(f"Engine config not found: {config_path}")
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        config = cls.from_dict(raw, source=config_path.name)
        logger.info("Loaded engine config %s (%d tracks)", config_path, len(config.tracks))
        return config

    @classmethod
    def from_dict(cls, raw: Any, source: str = "<config>") -> "EngineConfig":
        if not raw or not isinstance(raw, dict):
            raise ValueError(f"{source}: expected a YAML mapping")

        pacing = raw.get("pacing") or {}
        if not isinstance(pacing, dict):
            raise ValueError(f"{source}: 'pacing' must be a mapping")

        raw_tracks = raw.get("tracks")
        if not raw_tracks or not isinstance(raw_tracks, dict):
            raise ValueError(f"{source}: missing or invalid 'tracks'")
        tracks = {key: _parse_track(key, value, source) for key, value in raw_tracks.items()}

        presets = raw.get("timer_presets", [1, 3, 5, 10])
        if not isinstance(presets, list) or not presets:
            raise ValueError(f"{source}: 'timer_presets' must be a non-empty list")
        try:
            timer_presets = tuple(int(m) for m in presets)
        except (TypeError, ValueError):
            raise ValueError(f"{source}: 'timer_presets' must hold whole minutes") from None
        if any(m <= 0 for m in timer_presets):
            raise ValueError(f"{source}: 'timer_presets' must be positive")

        default_timer = int(raw.get("default_timer", timer_presets[0]))
        if default_timer not in timer_presets:
            raise ValueError(f"{source}: 'default_timer' {default_timer} is not one of {list(timer_presets)}")

        heatmap_buckets = int(raw.get("heatmap_buckets", 20))
        if heatmap_buckets <= 0:
            raise ValueError(f"{source}: 'heatmap_buckets' must be positive")

        return cls(
            tracks=tracks,
            lag_threshold=float(pacing.get("lag_threshold", 12)),
            lead_threshold=float(pacing.get("lead_threshold", 8)),
            timer_presets=timer_presets,
            default_timer=default_timer,
            heatmap_buckets=heatmap_buckets,
            tab_width=int(raw.get("tab_width", 2)),
        )

    def track(self, key: str) -> Track:
        try:
            return self.tracks[key]
        except KeyError:
            raise KeyError(f"Unknown track {key!r}") from None

    def difficulty(self, track: str, key: str) -> Difficulty:
        return self.track(track).get(key)

    def pacing_for(self, difficulty: Difficulty) -> PacingConfig:
        return PacingConfig(
            speed=difficulty.speed,
            lag_threshold=self.lag_threshold,
            lead_threshold=self.lead_threshold,
        )

    def session_options(self, track: str, difficulty: str, timer_minutes: Optional[int] = None) -> SessionOptions:
        """Options for a paced practice run that ends when the timer runs out."""
        minutes = self.default_timer if timer_minutes is None else timer_minutes
        if minutes not in self.timer_presets:
            raise ValueError(f"Timer {minutes} min is not one of {list(self.timer_presets)}")
        return SessionOptions(
            pacing=self.pacing_for(self.difficulty(track, difficulty)),
            time_limit_seconds=minutes * 60.0,
            tab_width=self.tab_width,
        )

    def challenge_options(self) -> SessionOptions:
        """Options for the pacing-free challenge: finish the text, get a heatmap."""
        return SessionOptions(
            pacing=PacingConfig(speed=0.0, lag_threshold=self.lag_threshold, lead_threshold=self.lead_threshold),
            heatmap_buckets=self.heatmap_buckets,
            tab_width=self.tab_width,
        )


def _parse_track(key: str, raw: Any, source: str) -> Track:
    if not isinstance(raw, dict):
        raise ValueError(f"{source}: track {key!r} must be a mapping")
    title = raw.get("title") or key.title()
    entries = raw.get("difficulties")
    if not entries or not isinstance(entries, list):
        raise ValueError(f"{source}: track {key!r} has no 'difficulties'")

    difficulties: List[Difficulty] = []
    seen = set()
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("key"):
            raise ValueError(f"{source}: track {key!r} has a difficulty without 'key'")
        dkey = str(entry["key"])
        if dkey in seen:
            raise ValueError(f"{source}: track {key!r} repeats difficulty {dkey!r}")
        seen.add(dkey)
        speed = float(entry.get("speed", 0))
        if speed < 0:
            raise ValueError(f"{source}: difficulty {dkey!r} has negative speed")
        max_length = entry.get("max_length")
        difficulties.append(
            Difficulty(
                key=dkey,
                label=str(entry.get("label") or dkey.title()),
                speed=speed,
                max_length=int(max_length) if max_length is not None else None,
                passage_length=entry.get("passage_length"),
            )
        )
    return Track(key=key, title=str(title), difficulties=tuple(difficulties))
