"""Import validation: resolve a reference, match restrictions, collect violations."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from modfence.policy.evaluator import evaluate
from modfence.policy.globs import glob_match_any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from modfence.policy.index_locator import IndexDirectoryCache
    from modfence.policy.restrictions import Restriction

    # (reference, importer_path) -> absolute path, or None when unresolvable.
    Resolver = Callable[[str, str], str | None]

logger = logging.getLogger(__name__)

# Extensions tried, in order, when a relative reference omits one.
SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".mts",
    ".cts",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """A restriction that matched the imported path and rejected the importer."""

    restriction: Restriction
    message: str


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one import edge."""

    violations: tuple[Violation, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def first_violation(self) -> Violation | None:
        """Return the violation a single-diagnostic host should report."""
        return self.violations[0] if self.violations else None


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------


def resolve_reference(reference: str, importer_path: str) -> str | None:
    """Resolve *reference* against the importer's directory to an absolute path.

    No filesystem access: the join is normalised and anchored at the current
    working directory when *importer_path* is relative.
    """
    if not reference:
        return None
    base = os.path.dirname(importer_path)
    return os.path.abspath(os.path.join(base, reference))


def resolve_source_reference(reference: str, importer_path: str) -> str | None:
    """Resolve a relative or absolute module specifier to a file on disk.

    Bare package specifiers (``react``, ``@scope/pkg``) are not local files
    and resolve to ``None``.  When the joined path does not exist, each of
    :data:`SOURCE_EXTENSIONS` is tried in turn; if none exists the joined
    path is returned unchanged.
    """
    if not reference.startswith((".", "/")):
        return None
    resolved = resolve_reference(reference, importer_path)
    if resolved is None or os.path.exists(resolved):
        return resolved
    for ext in SOURCE_EXTENSIONS:
        candidate = resolved + ext
        if os.path.isfile(candidate):
            return candidate
    return resolved


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def match_restrictions(
    resolved_path: str, restrictions: Iterable[Restriction]
) -> list[Restriction]:
    """Return the restrictions whose pattern matches *resolved_path*, in input order."""
    return [r for r in restrictions if glob_match_any(resolved_path, r.patterns)]


def _allows(
    restriction: Restriction,
    resolved_path: str,
    importer_path: str,
    cache: IndexDirectoryCache | None,
) -> bool:
    try:
        return evaluate(restriction, resolved_path, importer_path, cache=cache)
    except Exception:  # noqa: BLE001
        logger.debug(
            "Rule %s failed on %s -> %s; allowing",
            restriction.rule.value,
            importer_path,
            resolved_path,
            exc_info=True,
        )
        return True


def validate_import(
    reference: str,
    importer_path: str,
    restrictions: Iterable[Restriction],
    *,
    resolver: Resolver | None = None,
    cache: IndexDirectoryCache | None = None,
) -> ValidationResult:
    """Validate one import of *reference* from *importer_path*.

    Every restriction whose pattern matches the resolved path is evaluated;
    each one that rejects the importer contributes a :class:`Violation`, in
    the order of *restrictions*.  An unresolvable reference, or any failure
    while matching, yields a valid result rather than an exception.
    """
    resolve = resolver or resolve_reference
    try:
        importer_path = os.path.abspath(importer_path)
        resolved_path = resolve(reference, importer_path)
        if resolved_path is not None:
            resolved_path = os.path.abspath(resolved_path)
    except Exception:  # noqa: BLE001
        logger.debug("Cannot resolve %r from %s", reference, importer_path, exc_info=True)
        return ValidationResult()
    if resolved_path is None:
        return ValidationResult()

    try:
        matched = match_restrictions(resolved_path, restrictions)
    except Exception:  # noqa: BLE001
        logger.debug("Pattern matching failed for %s", resolved_path, exc_info=True)
        return ValidationResult()

    violations = tuple(
        Violation(restriction=r, message=r.display_message)
        for r in matched
        if not _allows(r, resolved_path, importer_path, cache)
    )
    return ValidationResult(violations=violations)


def should_include_in_completions(
    module_name: str,
    importer_path: str,
    restrictions: Iterable[Restriction],
    *,
    resolver: Resolver | None = None,
    cache: IndexDirectoryCache | None = None,
) -> bool:
    """Return True if completing *module_name* in *importer_path* would be allowed."""
    result = validate_import(
        module_name, importer_path, restrictions, resolver=resolver, cache=cache
    )
    return result.is_valid
