"""Application entry point and session wiring for the TypeForge engine."""

import argparse
import codecs
import logging
import os
import random
import sys
import time
from typing import BinaryIO, Callable, List, Optional

from PySide6.QtCore import QCoreApplication, QSocketNotifier

from typeforge.core.config import EngineConfig
from typeforge.core.pacing import SessionStatus, fault_message
from typeforge.core.scheduling import Scheduler
from typeforge.core.session import SessionResult, TypingSession
from typeforge.core.snippets import SnippetRepository
from typeforge.core.tokenizer import LanguageFamily, family_for_language
from typeforge.ui.frame_clock import QtScheduler

logger = logging.getLogger(__name__)

SPELLS_TRACK = "spells"


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_session(
    language: str,
    track: str,
    difficulty: str,
    timer_minutes: Optional[int] = None,
    *,
    scheduler: Optional[Scheduler] = None,
    config: Optional[EngineConfig] = None,
    repository: Optional[SnippetRepository] = None,
    rng: Optional[random.Random] = None,
    clock: Callable[[], float] = time.monotonic,
    on_finish: Optional[Callable[[SessionResult], None]] = None,
) -> TypingSession:
    """Build a paced session loaded with text for ``track``/``difficulty``.

    The spells track types prose passages; every other track types a
    snippet in ``language``.
    """
    config = config or EngineConfig.load()
    repository = repository or SnippetRepository()
    level = config.difficulty(track, difficulty)
    options = config.session_options(track, difficulty, timer_minutes)

    if track == SPELLS_TRACK:
        text = repository.random_passage(level.passage_length or "short", rng)
        family = LanguageFamily.C_LIKE
    else:
        text = repository.snippet_for_difficulty(language, level, rng)
        family = family_for_language(language)

    session = TypingSession(family, options=options, scheduler=scheduler, clock=clock, on_finish=on_finish)
    session.load(text)
    logger.info("Created %s/%s session (%s, %d chars)", track, difficulty, language, len(text))
    return session


def create_challenge_session(
    language: str,
    *,
    scheduler: Optional[Scheduler] = None,
    config: Optional[EngineConfig] = None,
    repository: Optional[SnippetRepository] = None,
    rng: Optional[random.Random] = None,
    clock: Callable[[], float] = time.monotonic,
    on_finish: Optional[Callable[[SessionResult], None]] = None,
) -> TypingSession:
    """Pacing-free session over a full snippet, scored with an error heatmap."""
    config = config or EngineConfig.load()
    repository = repository or SnippetRepository()
    text = repository.random_snippet(language, rng)
    session = TypingSession(
        family_for_language(language),
        options=config.challenge_options(),
        scheduler=scheduler,
        clock=clock,
        on_finish=on_finish,
    )
    session.load(text)
    logger.info("Created challenge session (%s, %d chars)", language, len(text))
    return session


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="typeforge", description="Paced code-typing practice in the terminal")
    p.add_argument("language", nargs="?", default="javascript", help="Snippet language (default: javascript)")
    p.add_argument("--track", default="code", help="Difficulty track: code or spells")
    p.add_argument("--difficulty", default="slow", help="Difficulty key within the track")
    p.add_argument("--timer", type=int, default=None, help="Time limit in minutes, one of the configured presets")
    p.add_argument("--challenge", action="store_true", help="Pacing-free challenge scored with an error heatmap")
    p.add_argument("--seed", type=int, default=None, help="Seed for snippet selection")
    return p.parse_args(argv)


def _report(result: SessionResult) -> None:
    if result.status is SessionStatus.FAILED and result.fault is not None:
        print(fault_message(result.fault))
    print(f"{result.wpm} WPM, accuracy {result.accuracy}%, {result.errors} errors in {result.elapsed_seconds:.1f}s")
    if result.error_heatmap:
        print("Error heatmap: " + " ".join(str(n) for n in result.error_heatmap))


def run(argv: Optional[List[str]] = None, stream: Optional[BinaryIO] = None) -> int:
    """Run one session on the Qt event loop, reading typed text from ``stream``.

    Input arrives as it is flushed by the terminal (usually line by line).
    Returns 0 when the text was completed and 1 otherwise.
    """
    args = parse_args(argv)
    configure_logging()
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    scheduler = QtScheduler(app)
    rng = random.Random(args.seed)

    def _on_finish(result: SessionResult) -> None:
        _report(result)
        app.quit()

    if args.challenge:
        session = create_challenge_session(args.language, scheduler=scheduler, rng=rng, on_finish=_on_finish)
    else:
        session = create_session(
            args.language,
            args.track,
            args.difficulty,
            args.timer,
            scheduler=scheduler,
            rng=rng,
            on_finish=_on_finish,
        )
    print(session.target_text)
    sys.stdout.flush()

    fd = (stream if stream is not None else sys.stdin.buffer).fileno()
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    notifier = QSocketNotifier(fd, QSocketNotifier.Type.Read)

    def _on_input(*_args) -> None:
        chunk = os.read(fd, 4096)
        if not chunk:
            notifier.setEnabled(False)
            app.quit()
            return
        session.type(decoder.decode(chunk))

    notifier.activated.connect(_on_input)
    app.exec()

    notifier.setEnabled(False)
    completed = session.status is SessionStatus.COMPLETED
    if not session.status.is_terminal:
        print("Session ended before the text was finished.")
    session.dispose()
    scheduler.shutdown()
    return 0 if completed else 1


def main() -> None:
    sys.exit(run())
