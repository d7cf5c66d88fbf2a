"""Minimal s-expression reader for Project.ede files.

Reads data only: strings, integers, symbols, quoted forms, lists and dotted
pairs. Reader macros (``#...``) are rejected instead of evaluated.
"""

from __future__ import annotations

import re

from z_flag_resolver.exceptions import ProjectFileError

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+|;[^\n]*)
  | (?P<open>\()
  | (?P<close>\))
  | (?P<quote>')
  | (?P<string>"(?:[^"\\]|\\.)*")
  | (?P<hash>\#)
  | (?P<atom>[^\s()'";]+)
    """,
    re.VERBOSE | re.DOTALL,
)

_INT_RE = re.compile(r"[+-]?\d+")
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


class Symbol(str):
    """A bare symbol or keyword (``:name``), distinct from a string literal."""

    @property
    def is_keyword(self) -> bool:
        return self.startswith(":")


_DOT = Symbol(".")


def _tokenize(text: str) -> list[tuple[str, str]]:
    tokens = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m:
            raise ProjectFileError(f"Unreadable input at offset {pos}: {text[pos:pos + 20]!r}")
        kind = m.lastgroup
        if kind == "hash":
            raise ProjectFileError(f"Reader macro at offset {pos} is not supported")
        if kind != "ws":
            tokens.append((kind, m.group()))
        pos = m.end()
    return tokens


def _atom(token: str) -> object:
    if _INT_RE.fullmatch(token):
        return int(token)
    if token == "nil":
        return None
    if token == "t":
        return True
    return Symbol(token)


def read_all(text: str) -> list[object]:
    """Read every top-level form in ``text``."""
    tokens = _tokenize(text)
    forms = []
    pos = 0
    while pos < len(tokens):
        form, pos = _read(tokens, pos)
        forms.append(form)
    return forms


def _read(tokens: list[tuple[str, str]], pos: int) -> tuple[object, int]:
    kind, value = tokens[pos]
    if kind == "quote":
        if pos + 1 >= len(tokens):
            raise ProjectFileError("Quote at end of input")
        return _read(tokens, pos + 1)
    if kind == "string":
        return _ESCAPE_RE.sub(r"\1", value[1:-1]), pos + 1
    if kind == "atom":
        return _atom(value), pos + 1
    if kind == "close":
        raise ProjectFileError("Unbalanced ')'")

    items: list[object] = []
    pos += 1
    while True:
        if pos >= len(tokens):
            raise ProjectFileError("Unterminated list")
        if tokens[pos][0] == "close":
            break
        item, pos = _read(tokens, pos)
        items.append(item)
    pos += 1

    if len(items) == 3 and items[1] == _DOT and isinstance(items[1], Symbol):
        return (items[0], items[2]), pos
    return items, pos


def plist(items: list[object]) -> dict[str, object]:
    """Turn ``[:key value :key value ...]`` into a dict keyed without the colon."""
    result: dict[str, object] = {}
    i = 0
    while i < len(items):
        key = items[i]
        if isinstance(key, Symbol) and key.is_keyword and i + 1 < len(items):
            result[key[1:]] = items[i + 1]
            i += 2
        else:
            i += 1
    return result
