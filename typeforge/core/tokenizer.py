"""Character-level syntax tokenizer used for highlighting practice snippets.

The tokenizer is permissive: it never validates and never raises. Every
character of the input ends up in exactly one token, so the concatenated
token values always reproduce the source text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Tuple, Union


class TokenKind(str, Enum):
    KEYWORD = "keyword"
    STRING = "string"
    COMMENT = "comment"
    NUMBER = "number"
    OPERATOR = "operator"
    DEFAULT = "default"


class LanguageFamily(str, Enum):
    C_LIKE = "c-like"
    MARKUP = "markup"


@dataclass(frozen=True)
class Token:
    """A classified span ``text[start:end]``.

    The classification lives in ``kind`` rather than ``type`` so the field
    does not shadow the builtin.
    """

    kind: TokenKind
    start: int
    end: int
    value: str


KEYWORDS = frozenset(
    {
        "const", "let", "var", "function", "return", "if", "else", "for", "while",
        "class", "extends", "constructor", "async", "await", "new", "this", "true", "false",
        "null", "undefined", "in", "of", "try", "catch", "finally", "import", "export", "default",
    }
)

_DIGITS = frozenset("0123456789")
_NUMBER_CHARS = _DIGITS | {"."}
_IDENT_START = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_$")
_IDENT_CHARS = _IDENT_START | _DIGITS
_OPERATORS = frozenset("+-*/%=<>!&|.,;:?{}()[]\\")
_TAG_NAME_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-")

_MARKUP_LANGUAGES = frozenset({"html", "xml", "svg", "markup"})


def family_for_language(language: Union[str, LanguageFamily]) -> LanguageFamily:
    """Resolve a snippet language name to the tokenizer family that lexes it."""
    if isinstance(language, LanguageFamily):
        return language
    name = str(language).strip().lower()
    if name in _MARKUP_LANGUAGES:
        return LanguageFamily.MARKUP
    return LanguageFamily.C_LIKE


def _make(kind: TokenKind, text: str, start: int, end: int) -> Tuple[Token, int]:
    end = min(end, len(text))
    return Token(kind=kind, start=start, end=end, value=text[start:end]), end


def _quoted_end(text: str, start: int, quote: str) -> int:
    """Index just past the closing quote; a backslash skips the next char."""
    n = len(text)
    end = start + 1
    while end < n:
        ch = text[end]
        if ch == "\\":
            end += 2
        elif ch == quote:
            return end + 1
        else:
            end += 1
    return n


def _run_end(text: str, start: int, allowed: frozenset) -> int:
    end = start
    n = len(text)
    while end < n and text[end] in allowed:
        end += 1
    return end


def _scan_c_like(text: str, i: int) -> Tuple[Token, int]:
    n = len(text)
    c = text[i]
    nxt = text[i + 1] if i + 1 < n else ""

    if c == "/" and nxt == "/":
        end = text.find("\n", i + 2)
        return _make(TokenKind.COMMENT, text, i, n if end == -1 else end)

    if c == "/" and nxt == "*":
        close = text.find("*/", i + 2)
        return _make(TokenKind.COMMENT, text, i, n if close == -1 else close + 2)

    if c in ('"', "'", "`"):
        return _make(TokenKind.STRING, text, i, _quoted_end(text, i, c))

    if c in _DIGITS:
        return _make(TokenKind.NUMBER, text, i, _run_end(text, i, _NUMBER_CHARS))

    if c in _IDENT_START:
        end = _run_end(text, i, _IDENT_CHARS)
        kind = TokenKind.KEYWORD if text[i:end] in KEYWORDS else TokenKind.DEFAULT
        return _make(kind, text, i, end)

    if c in _OPERATORS:
        return _make(TokenKind.OPERATOR, text, i, i + 1)

    return _make(TokenKind.DEFAULT, text, i, i + 1)


def _scan_markup(text: str, i: int) -> Tuple[Token, int]:
    c = text[i]

    if c == "<":
        end = i + 1
        if end < len(text) and text[end] == "/":
            end += 1
        return _make(TokenKind.KEYWORD, text, i, _run_end(text, end, _TAG_NAME_CHARS))

    if c in ('"', "'"):
        close = text.find(c, i + 1)
        return _make(TokenKind.STRING, text, i, len(text) if close == -1 else close + 1)

    return _make(TokenKind.DEFAULT, text, i, i + 1)


_SCANNERS = {
    LanguageFamily.C_LIKE: _scan_c_like,
    LanguageFamily.MARKUP: _scan_markup,
}


def scan_token(text: str, index: int, family: LanguageFamily) -> Tuple[Token, int]:
    """Scan the single token that starts at ``index``.

    Returns the token and the index where the next token starts. ``index``
    must be a valid position in ``text``.
    """
    if not 0 <= index < len(text):
        raise IndexError(f"scan index {index} out of range for text of length {len(text)}")
    return _SCANNERS[family_for_language(family)](text, index)


def iter_tokens(text: str, family: LanguageFamily) -> Iterator[Token]:
    """Lazily yield the tokens of ``text`` in order."""
    scan = _SCANNERS[family_for_language(family)]
    index = 0
    n = len(text)
    while index < n:
        token, index = scan(text, index)
        yield token


def tokenize(text: str, family: LanguageFamily) -> List[Token]:
    return list(iter_tokens(text, family))


def syntax_kinds(text: str, family: LanguageFamily) -> List[TokenKind]:
    """Per-character token kind, one entry for each character of ``text``."""
    kinds: List[TokenKind] = []
    for token in iter_tokens(text, family):
        kinds.extend([token.kind] * (token.end - token.start))
    return kinds


def token_kind_at(text: str, index: int, family: LanguageFamily) -> TokenKind:
    if not 0 <= index < len(text):
        return TokenKind.DEFAULT
    for token in iter_tokens(text, family):
        if token.start <= index < token.end:
            return token.kind
    return TokenKind.DEFAULT
