"""Path glob matching with ``**`` segments and ``{a,b}`` alternatives.

Each path segment is matched with :func:`fnmatch.fnmatchcase`, so ``*``,
``?`` and ``[...]`` never cross a ``/``.  A ``**`` segment matches zero or
more whole segments.

Set negation is written ``[!...]``; in ``[^...]`` the caret is a literal
character.  Names starting with a dot get no special treatment: ``*`` and
``**`` match them like any other name.
"""

from __future__ import annotations

import fnmatch
import re
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

_BRACE_RE = re.compile(r"\{([^{}]*,[^{}]*)\}")


@lru_cache(maxsize=512)
def expand_braces(pattern: str) -> tuple[str, ...]:
    """Expand ``{a,b}`` groups into separate patterns (innermost first)."""
    match = _BRACE_RE.search(pattern)
    if match is None:
        return (pattern,)
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option + tail))
    return tuple(expanded)


def _match_segments(path: tuple[str, ...], pattern: tuple[str, ...]) -> bool:
    if not pattern:
        return not path
    head = pattern[0]
    if head == "**":
        rest = pattern[1:]
        # Collapse consecutive globstars.
        while rest and rest[0] == "**":
            rest = rest[1:]
        return any(_match_segments(path[i:], rest) for i in range(len(path) + 1))
    if not path:
        return False
    if not fnmatch.fnmatchcase(path[0], head):
        return False
    return _match_segments(path[1:], pattern[1:])


def glob_match(path: str, pattern: str) -> bool:
    """Return True if *path* matches the glob *pattern*.

    Backslashes in *path* are treated as separators so Windows paths match
    POSIX-style patterns.  A malformed pattern simply never matches.
    """
    normalized = path.replace("\\", "/")
    segments = tuple(normalized.split("/"))
    for alternative in expand_braces(pattern):
        if _match_segments(segments, tuple(alternative.split("/"))):
            return True
    return False


def glob_match_any(path: str, patterns: Iterable[str]) -> bool:
    """Return True if *path* matches at least one of *patterns*."""
    return any(glob_match(path, p) for p in patterns)
