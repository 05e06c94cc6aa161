from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from typeforge.core.config import Difficulty
from typeforge.core.tokenizer import LanguageFamily, family_for_language

logger = logging.getLogger(__name__)

PASSAGE_LENGTHS = ("short", "medium", "long")


@dataclass(frozen=True)
class SnippetSet:
    language: str
    title: str
    snippets: List[str]

    @property
    def family(self) -> LanguageFamily:
        return family_for_language(self.language)


class SnippetRepository:
    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else Path(__file__).resolve().parent.parent / "data"
        self._sets = self._load_snippets()
        self._passages = self._load_passages()

    def languages(self) -> List[str]:
        return sorted(self._sets)

    def get(self, language: str) -> SnippetSet:
        try:
            return self._sets[language.lower()]
        except KeyError:
            raise KeyError(f"No snippets for language {language!r}") from None

    def snippets(self, language: str) -> List[str]:
        return list(self.get(language).snippets)

    def passages(self, length: str) -> List[str]:
        try:
            return list(self._passages[length])
        except KeyError:
            raise KeyError(f"Unknown passage length {length!r}") from None

    def random_snippet(self, language: str, rng: Optional[random.Random] = None) -> str:
        return (rng or random).choice(self.get(language).snippets)

    def random_passage(self, length: str, rng: Optional[random.Random] = None) -> str:
        return (rng or random).choice(self.passages(length))

    def snippet_for_difficulty(
        self,
        language: str,
        difficulty: Difficulty,
        rng: Optional[random.Random] = None,
    ) -> str:
        """Pick a snippet and cut it down to the difficulty's length cap."""
        text = self.random_snippet(language, rng)
        if difficulty.max_length is not None and len(text) > difficulty.max_length:
            logger.debug("Truncating %s snippet from %d to %d chars", language, len(text), difficulty.max_length)
            text = text[: difficulty.max_length]
        return text

    def _load_snippets(self) -> Dict[str, SnippetSet]:
        snippets_dir = self._base_dir / "snippets"
        if not snippets_dir.exists():
            raise FileNotFoundError(f"Snippets directory not found: {snippets_dir}")

        sets: Dict[str, SnippetSet] = {}
        for path in sorted(snippets_dir.glob("*.yaml")):
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
            if not raw or not isinstance(raw, dict):
                raise ValueError(f"{path.name}: expected YAML with 'title' and 'snippets'")
            language = str(raw.get("language") or path.stem).strip().lower()
            title = raw.get("title")
            if not title or not isinstance(title, str):
                raise ValueError(f"{path.name}: missing or invalid 'title'")
            content = raw.get("snippets")
            if not isinstance(content, list):
                raise ValueError(f"{path.name}: 'snippets' must be a list")
            # trailing newlines come from YAML block scalars, not from the snippet
            items = [str(item).rstrip() for item in content if str(item).strip()]
            if not items:
                raise ValueError(f"{path.name}: 'snippets' has no entries")
            if language in sets:
                logger.warning("%s: language %r already loaded, replacing it", path.name, language)
            sets[language] = SnippetSet(language=language, title=title.strip(), snippets=items)

        if not sets:
            raise ValueError(f"No snippet files (*.yaml) found in {snippets_dir}")
        return sets

    def _load_passages(self) -> Dict[str, List[str]]:
        path = self._base_dir / "passages.yaml"
        if not path.exists():
            raise FileNotFoundError(f"Passages file not found: {path}")
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not raw or not isinstance(raw, dict):
            raise ValueError(f"{path.name}: expected a mapping of passage lengths")

        passages: Dict[str, List[str]] = {}
        for length in PASSAGE_LENGTHS:
            content = raw.get(length)
            if not isinstance(content, list):
                raise ValueError(f"{path.name}: missing '{length}' passages")
            items = [" ".join(str(item).split()) for item in content if str(item).strip()]
            if not items:
                raise ValueError(f"{path.name}: '{length}' has no passages")
            passages[length] = items
        return passages
