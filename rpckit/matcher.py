"""Case-insensitive glob matching used for host and origin whitelists."""

from __future__ import annotations

import logging
import re

__all__ = ["Matcher", "ascii_casefold"]

_log = logging.getLogger(__name__)

_ASCII_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)
_CLASS_SPECIAL = set("\\]^[-")


def ascii_casefold(text: str) -> str:
    """Lower-case only the ASCII letters of ``text``."""
    return text.translate(_ASCII_LOWER)


class _GlobError(ValueError):
    """Raised for a glob pattern that cannot be compiled."""


def _escape_class_char(ch: str) -> str:
    return "\\" + ch if ch in _CLASS_SPECIAL else ch


def _char_class(body: str, negate: bool) -> str:
    parts = []
    k = 0
    while k < len(body):
        ch = body[k]
        if k + 2 < len(body) and body[k + 1] == "-":
            end = body[k + 2]
            if ch > end:
                raise _GlobError(f"invalid range {ch}-{end}")
            parts.append(f"{_escape_class_char(ch)}-{_escape_class_char(end)}")
            k += 3
        else:
            parts.append(_escape_class_char(ch))
            k += 1
    return "[" + ("^" if negate else "") + "".join(parts) + "]"


def _translate(pattern: str) -> str:
    out: list[str] = []
    in_alternates = False
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        i += 1
        if c == "*":
            while i < n and pattern[i] == "*":
                i += 1
            out.append(".*")
        elif c == "?":
            out.append(".")
        elif c == "[":
            j = i
            negate = j < n and pattern[j] in "!^"
            if negate:
                j += 1
            start = j
            if j < n and pattern[j] == "]":
                j += 1
            close = pattern.find("]", j)
            if close < 0:
                raise _GlobError("unclosed character class")
            out.append(_char_class(pattern[start:close], negate))
            i = close + 1
        elif c == "{":
            if in_alternates:
                raise _GlobError("nested alternate groups are not allowed")
            in_alternates = True
            out.append("(?:")
        elif c == "," and in_alternates:
            out.append("|")
        elif c == "}" and in_alternates:
            in_alternates = False
            out.append(")")
        elif c == "\\":
            if i >= n:
                raise _GlobError("dangling escape")
            out.append(re.escape(pattern[i]))
            i += 1
        else:
            out.append(re.escape(c))
    if in_alternates:
        raise _GlobError("unclosed alternate group")
    return "(?s:" + "".join(out) + ")"


class Matcher:
    """A glob pattern matched without regard to case.

    A pattern that is not a valid glob falls back to plain
    ASCII case-insensitive comparison.
    """

    __slots__ = ("pattern", "_regex")

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        try:
            self._regex: re.Pattern[str] | None = re.compile(
                _translate(pattern), re.IGNORECASE
            )
        except (_GlobError, re.error) as exc:
            _log.warning("Invalid glob pattern for %s: %s", pattern, exc)
            self._regex = None

    @property
    def is_glob(self) -> bool:
        """Whether the pattern compiled as a glob."""
        return self._regex is not None

    def matches(self, other: str) -> bool:
        """Return True if ``other`` matches the pattern."""
        if self._regex is not None:
            return self._regex.fullmatch(other) is not None
        return ascii_casefold(self.pattern) == ascii_casefold(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matcher):
            return NotImplemented
        return self.pattern == other.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    def __repr__(self) -> str:
        return f"{self.pattern!r} ({self.is_glob})"