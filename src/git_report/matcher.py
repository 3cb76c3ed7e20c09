"""Glob-style path matching for component patterns.

Paths are ``/``-separated and compared case-sensitively. Two wildcard forms
are supported:

    ``**``  crosses directory boundaries. The pattern is split at the first
            ``**`` into a prefix and a suffix (one adjacent ``/`` stripped
            from each) and the path is checked with plain string tests.
    ``*``   matches within a single path segment, shell style. ``?`` and
            ``[...]`` classes are honoured when the pattern contains ``*``;
            neither ever matches ``/``.

Anything else only matches by exact equality. Matching never raises: a
malformed pattern simply matches nothing beyond equality.

Example:
    >>> matches("src/api/users.go", "src/api/**")
    True
    >>> matches("a/x.ts", "*.ts")
    False
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache
from typing import Optional

_DOUBLE_STAR = "**"

# Characters that must be escaped inside a regex character class.
_CLASS_SPECIALS = frozenset("\\^[]&~|")


def matches(path: str, pattern: str) -> bool:
    """Return True if ``path`` matches the glob ``pattern``."""
    if path == pattern:
        return True
    if _DOUBLE_STAR in pattern:
        return _match_double_star(path, pattern)
    if "*" in pattern:
        regex = _compile_segment_glob(pattern)
        return regex is not None and regex.fullmatch(path) is not None
    return False


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    """Return True as soon as one of ``patterns`` matches ``path``."""
    for pattern in patterns:
        if matches(path, pattern):
            return True
    return False


def split_double_star(pattern: str) -> tuple[str, str]:
    """Split ``pattern`` at its first ``**`` into (prefix, suffix).

    One ``/`` directly adjacent to the wildcard is dropped from each side.
    Later ``**`` occurrences stay in the suffix as literal text.
    """
    prefix, _, suffix = pattern.partition(_DOUBLE_STAR)
    if prefix.endswith("/"):
        prefix = prefix[:-1]
    if suffix.startswith("/"):
        suffix = suffix[1:]
    return prefix, suffix


def _match_double_star(path: str, pattern: str) -> bool:
    prefix, suffix = split_double_star(pattern)

    if not prefix and not suffix:
        return True
    if not prefix:
        # endswith(suffix) already covers "…/" + suffix
        return path.endswith(suffix)
    if not suffix:
        return path == prefix or path.startswith(prefix + "/")
    return path.startswith(prefix) and path.endswith(suffix)


@lru_cache(maxsize=1024)
def _compile_segment_glob(pattern: str) -> Optional[re.Pattern[str]]:
    """Translate a single-star glob to a compiled regex, or None if malformed."""
    parts: list[str] = []
    i, n = 0, len(pattern)

    while i < n:
        c = pattern[i]
        i += 1
        if c == "*":
            parts.append("[^/]*")
        elif c == "?":
            parts.append("[^/]")
        elif c == "\\":
            if i >= n:
                return None  # dangling escape
            parts.append(re.escape(pattern[i]))
            i += 1
        elif c == "[":
            j = i
            if j < n and pattern[j] in "!^":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                return None  # unterminated class
            body = pattern[i:j]
            i = j + 1
            negate = body[:1] in ("!", "^")
            if negate:
                body = body[1:]
            escaped = "".join("\\" + ch if ch in _CLASS_SPECIALS else ch for ch in body)
            # a class never matches "/", negated or not
            parts.append(f"[^/{escaped}]" if negate else f"(?!/)[{escaped}]")
        else:
            parts.append(re.escape(c))

    try:
        return re.compile("".join(parts), re.DOTALL)
    except re.error:
        # e.g. reversed range like [z-a]
        return None
