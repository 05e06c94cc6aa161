"""Tests for typeforge.app – session factories, console host and logging setup."""

from __future__ import annotations

import logging
import os
import random

import pytest
from PySide6.QtCore import QCoreApplication, QTimer

from typeforge.app import create_challenge_session, create_session, parse_args, run
from typeforge.core.config import EngineConfig
from typeforge.core.pacing import SessionStatus
from typeforge.core.scheduling import ManualScheduler
from typeforge.core.snippets import SnippetRepository
from typeforge.core.tokenizer import LanguageFamily


@pytest.fixture(scope="module")
def config() -> EngineConfig:
    return EngineConfig.load()


@pytest.fixture(scope="module")
def repository() -> SnippetRepository:
    return SnippetRepository()


@pytest.fixture()
def sched() -> ManualScheduler:
    return ManualScheduler()


class TestCreateSession:
    def test_code_session_is_paced_and_capped(self, config, repository, sched):
        session = create_session(
            "javascript", "code", "slow", 3,
            scheduler=sched, config=config, repository=repository,
            rng=random.Random(3), clock=sched.now,
        )
        assert session.status is SessionStatus.IDLE
        assert session.family is LanguageFamily.C_LIKE
        assert 0 < len(session.target_text) <= 280
        assert session.options.pacing.speed == 1.2
        assert session.options.time_limit_seconds == 180.0
        assert session.tokens

    def test_markup_language(self, config, repository, sched):
        session = create_session(
            "html", "code", "fast",
            scheduler=sched, config=config, repository=repository, rng=random.Random(0),
        )
        assert session.family is LanguageFamily.MARKUP
        assert session.options.time_limit_seconds == 300.0

    def test_spells_track_uses_passages(self, config, repository, sched):
        session = create_session(
            "javascript", "spells", "noob",
            scheduler=sched, config=config, repository=repository, rng=random.Random(1),
        )
        assert session.target_text in repository.passages("short")
        assert session.options.pacing.speed == 0.8

    def test_same_seed_same_text(self, config, repository):
        texts = {
            create_session(
                "python", "code", "moderate",
                config=config, repository=repository, rng=random.Random(42),
            ).target_text
            for _ in range(3)
        }
        assert len(texts) == 1

    def test_unknown_difficulty(self, config, repository):
        with pytest.raises(KeyError):
            create_session("javascript", "code", "turbo", config=config, repository=repository)

    def test_timer_not_a_preset(self, config, repository):
        with pytest.raises(ValueError):
            create_session("javascript", "code", "slow", 2, config=config, repository=repository)

    def test_session_runs_on_scheduler(self, config, repository, sched):
        results = []
        session = create_session(
            "sql", "code", "test",
            scheduler=sched, config=config, repository=repository,
            rng=random.Random(5), clock=sched.now, on_finish=results.append,
        )
        session.type(session.target_text)
        assert session.status is SessionStatus.COMPLETED
        assert results[0].accuracy == 100


class TestCreateChallengeSession:
    def test_full_snippet_without_pacing(self, config, repository, sched):
        session = create_challenge_session(
            "typescript", scheduler=sched, config=config, repository=repository, rng=random.Random(2),
        )
        assert session.target_text in repository.snippets("typescript")
        assert not session.options.pacing.enabled
        assert session.options.time_limit_seconds is None
        assert session.options.heatmap_buckets == 20

    def test_result_has_heatmap(self, config, repository, sched):
        session = create_challenge_session(
            "javascript", scheduler=sched, config=config, repository=repository,
            rng=random.Random(4), clock=sched.now,
        )
        session.type("#" + session.target_text[1:])
        result = session.result
        assert result is not None
        assert len(result.error_heatmap) == 20
        assert result.error_heatmap[0] == 1
        assert result.errors == 1


class TestConfigureLogging:
    def test_sets_level_and_format(self, monkeypatch):
        from typeforge import app

        calls = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))
        app.configure_logging(logging.DEBUG)
        assert calls["level"] == logging.DEBUG
        assert calls["format"] == "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ---------------------------------------------------------------------------
# Console host
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def qapp():
    return QCoreApplication.instance() or QCoreApplication([])


def _run_with_input(argv, data: bytes) -> int:
    read_fd, write_fd = os.pipe()
    os.write(write_fd, data)
    os.close(write_fd)
    guard = QTimer()
    guard.setSingleShot(True)
    guard.timeout.connect(QCoreApplication.quit)
    guard.start(5000)
    try:
        with os.fdopen(read_fd, "rb") as stream:
            return run(argv, stream=stream)
    finally:
        guard.stop()


class TestRun:
    def test_parse_args_defaults(self):
        args = parse_args([])
        assert args.language == "javascript"
        assert args.track == "code"
        assert args.difficulty == "slow"
        assert args.timer is None
        assert not args.challenge

    def test_parse_args(self):
        args = parse_args(["sql", "--difficulty", "fast", "--timer", "3", "--challenge", "--seed", "9"])
        assert (args.language, args.difficulty, args.timer, args.challenge, args.seed) == ("sql", "fast", 3, True, 9)

    def test_completed_challenge_exits_zero(self, qapp, config, repository, capsys):
        target = create_challenge_session(
            "python", config=config, repository=repository, rng=random.Random(11)
        ).target_text
        code = _run_with_input(["python", "--challenge", "--seed", "11"], target.encode("utf-8"))
        out = capsys.readouterr().out
        assert code == 0
        assert target in out
        assert "accuracy 100%" in out
        assert "Error heatmap:" in out

    def test_input_closed_early_exits_one(self, qapp, capsys):
        code = _run_with_input(["sql", "--difficulty", "test", "--seed", "1"], b"x\n")
        out = capsys.readouterr().out
        assert code == 1
        assert "ended before the text was finished" in out
