"""Rule evaluator: decide whether one restriction allows one import edge."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from modfence.policy.globs import glob_match_any
from modfence.policy.index_locator import is_directory, locate_index_directory
from modfence.policy.restrictions import RuleKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from modfence.policy.index_locator import IndexDirectoryCache
    from modfence.policy.restrictions import Restriction

INDEX_BASENAME = "index"


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def strip_extension(path: str) -> str:
    """Return the base name of *path* without its final extension.

    Only the last extension goes: ``Button.private.utils.ts`` becomes
    ``Button.private.utils``.
    """
    return os.path.splitext(os.path.basename(path))[0]


def _first_segment(basename: str) -> str:
    return basename.split(".")[0]


def _is_within(path: str, directory: str) -> bool:
    """Return True if *path* is *directory* itself or lies below it."""
    return path == directory or path.startswith(directory.rstrip(os.sep) + os.sep)


class _Edge:
    """Derived facts about an (imported, importer) pair."""

    __slots__ = (
        "imported",
        "imported_dir",
        "imported_name",
        "importer",
        "importer_dir",
        "importer_name",
    )

    def __init__(self, imported: str, importer: str) -> None:
        self.imported = imported
        self.importer = importer
        self.imported_dir = os.path.dirname(imported)
        self.importer_dir = os.path.dirname(importer)
        self.imported_name = strip_extension(imported)
        self.importer_name = strip_extension(importer)


# ---------------------------------------------------------------------------
# Per-kind checks
# ---------------------------------------------------------------------------


def _same_directory(edge: _Edge) -> bool:
    return edge.imported_dir == edge.importer_dir


def _shared_module(edge: _Edge) -> bool:
    # "Button" admits Button, Button.utils and ButtonGroup.
    return edge.importer_name.startswith(_first_segment(edge.imported_name))


def _private_module(edge: _Edge) -> bool:
    return _first_segment(edge.imported_name) == _first_segment(edge.importer_name)


def _internal_directory(edge: _Edge) -> bool:
    imported_parts = edge.imported.split(os.sep)
    marker_index = next(
        (i for i, part in enumerate(imported_parts) if part.startswith("_") and len(part) > 1),
        None,
    )
    if marker_index is None:
        return True

    marker_dir = os.sep.join(imported_parts[: marker_index + 1])
    importer_parts = edge.importer.split(os.sep)

    same_level = importer_parts[:marker_index] == imported_parts[:marker_index]
    inside_marker = edge.importer.startswith(marker_dir + os.sep)
    return same_level or inside_marker


def _no_deep_import(edge: _Edge, cache: IndexDirectoryCache | None) -> bool:
    if edge.importer_name == INDEX_BASENAME:
        return True

    # A directory import is an implicit reference to its index file.
    if is_directory(edge.imported):
        return True

    index_dir = locate_index_directory(edge.imported, cache)
    if index_dir is None:
        return True

    if edge.imported_dir == edge.importer_dir:
        return True

    if _is_within(edge.importer, index_dir) and _is_within(edge.imported, index_dir):
        return True

    return edge.imported_dir == index_dir and edge.imported_name == INDEX_BASENAME


def _avoid_circular_dependency(edge: _Edge, cache: IndexDirectoryCache | None) -> bool:
    if edge.importer_name == INDEX_BASENAME:
        return True

    index_dir = locate_index_directory(edge.imported, cache)
    if index_dir is None:
        return True

    imports_index = edge.imported_name == INDEX_BASENAME or is_directory(edge.imported)
    same_level = edge.imported_dir == edge.importer_dir
    same_module = _is_within(edge.importer, index_dir) and _is_within(edge.imported, index_dir)

    if same_level or same_module:
        return not imports_index
    return True


def _custom(restriction: Restriction, edge: _Edge) -> bool:
    if restriction.allowed_importers is None:
        return True
    return glob_match_any(edge.importer, restriction.allowed_importers)


_SIMPLE_CHECKS: dict[RuleKind, Callable[[_Edge], bool]] = {
    RuleKind.SAME_DIRECTORY: _same_directory,
    RuleKind.SHARED_MODULE: _shared_module,
    RuleKind.PRIVATE_MODULE: _private_module,
    RuleKind.INTERNAL_DIRECTORY: _internal_directory,
}

_INDEX_CHECKS: dict[RuleKind, Callable[[_Edge, IndexDirectoryCache | None], bool]] = {
    RuleKind.NO_DEEP_IMPORT: _no_deep_import,
    RuleKind.AVOID_CIRCULAR_DEPENDENCY: _avoid_circular_dependency,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def evaluate(
    restriction: Restriction,
    imported_path: str,
    importer_path: str,
    *,
    cache: IndexDirectoryCache | None = None,
) -> bool:
    """Return True if *restriction* allows *importer_path* to import *imported_path*.

    Both paths must already be absolute and resolved.  Only the
    ``no-deep-import`` and ``avoid-circular-dependency`` kinds touch the
    filesystem; *cache* memoises their index-file probes.  Unrecognized
    kinds always allow.
    """
    edge = _Edge(imported_path, importer_path)
    rule = restriction.rule

    simple = _SIMPLE_CHECKS.get(rule)
    if simple is not None:
        return simple(edge)

    index_check = _INDEX_CHECKS.get(rule)
    if index_check is not None:
        return index_check(edge, cache)

    if rule is RuleKind.CUSTOM:
        return _custom(restriction, edge)

    return True
