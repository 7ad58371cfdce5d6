"""Restriction merging: caller overrides applied on top of a preset."""

from __future__ import annotations

from typing import TYPE_CHECKING

from modfence.policy.restrictions import RuleKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from modfence.policy.restrictions import Restriction


def merge_restrictions(
    defaults: Iterable[Restriction], overrides: Iterable[Restriction]
) -> tuple[Restriction, ...]:
    """Return *defaults* with *overrides* applied.

    A ``custom`` override is appended; custom restrictions accumulate.  Any
    other override replaces every entry of the same kind in the working set
    and is dropped when no entry of that kind exists.
    """
    merged = list(defaults)
    for override in overrides:
        if override.rule is RuleKind.CUSTOM:
            merged.append(override)
            continue
        merged = [override if entry.rule is override.rule else entry for entry in merged]
    return tuple(merged)
