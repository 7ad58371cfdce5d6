"""Index-directory lookup: find the nearest ancestor publishing an index file."""

from __future__ import annotations

import logging
import os
import threading

logger = logging.getLogger(__name__)

# Entry-point filenames that turn a directory into a module boundary.
INDEX_FILENAMES: tuple[str, ...] = (
    "index.ts",
    "index.tsx",
    "index.js",
    "index.jsx",
    "index.mts",
    "index.cts",
    "index.mjs",
    "index.cjs",
)


def is_directory(path: str) -> bool:
    """Return True if *path* is an existing directory; probe errors mean False."""
    try:
        return os.path.isdir(path)
    except (OSError, ValueError):
        return False


def has_index_file(directory: str) -> bool:
    """Return True if *directory* directly contains one of :data:`INDEX_FILENAMES`."""
    for name in INDEX_FILENAMES:
        try:
            if os.path.isfile(os.path.join(directory, name)):
                return True
        except (OSError, ValueError):
            logger.debug("Index probe failed in %s", directory, exc_info=True)
            return False
    return False


class IndexDirectoryCache:
    """Memoises :func:`has_index_file` per directory.

    Entries never expire on their own; hosts call :meth:`invalidate` when
    they see a filesystem change, or :meth:`clear` to start over.
    """

    def __init__(self) -> None:
        self._store: dict[str, bool] = {}
        self._lock = threading.Lock()

    def has_index(self, directory: str) -> bool:
        with self._lock:
            cached = self._store.get(directory)
        if cached is not None:
            return cached
        found = has_index_file(directory)
        with self._lock:
            self._store[directory] = found
        return found

    def invalidate(self, path: str) -> None:
        """Drop the entry for *path* and every cached directory below it.

        Passing a file path invalidates its containing directory, since a
        created or deleted index file changes the answer for its parent.
        """
        target = os.path.normpath(path)
        parent = os.path.dirname(target)
        below = target.rstrip(os.sep) + os.sep
        with self._lock:
            stale = [d for d in self._store if d in (target, parent) or d.startswith(below)]
            for d in stale:
                del self._store[d]

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def stats(self) -> dict[str, int]:
        """Return cache statistics."""
        with self._lock:
            return {"entries": len(self._store)}


def locate_index_directory(path: str, cache: IndexDirectoryCache | None = None) -> str | None:
    """Return the closest directory at or above *path* that contains an index file.

    The walk starts at *path* itself when it is a directory, otherwise at its
    containing directory, and stops below the filesystem root.  Returns
    ``None`` when no ancestor publishes an index file.
    """
    probe = cache.has_index if cache is not None else has_index_file
    current = path if is_directory(path) else os.path.dirname(path)

    while current != os.path.dirname(current):
        if probe(current):
            return current
        current = os.path.dirname(current)

    return None
