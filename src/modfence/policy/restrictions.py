"""Restriction model: rule kinds, restriction entries, and built-in presets."""

from __future__ import annotations

import enum
from dataclasses import dataclass

DEFAULT_MESSAGE = "Import not allowed"

# ---------------------------------------------------------------------------
# Rule kinds
# ---------------------------------------------------------------------------


class RuleKind(str, enum.Enum):
    """Adjacency/ownership policy enforced by a restriction.

    Unknown values never raise: ``RuleKind("whatever")`` yields
    :attr:`UNRECOGNIZED`, which the evaluator always allows.
    """

    SAME_DIRECTORY = "same-directory"
    SHARED_MODULE = "shared-module"
    PRIVATE_MODULE = "private-module"
    INTERNAL_DIRECTORY = "internal-directory"
    NO_DEEP_IMPORT = "no-deep-import"
    AVOID_CIRCULAR_DEPENDENCY = "avoid-circular-dependency"
    CUSTOM = "custom"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def _missing_(cls, value: object) -> RuleKind:
        alias = _RULE_ALIASES.get(str(value))
        if alias is not None:
            return alias
        return cls.UNRECOGNIZED


# Rule names from the older three-kind configuration schema.
_RULE_ALIASES: dict[str, RuleKind] = {
    "parent-prefix": RuleKind.SHARED_MODULE,
    "same-file-prefix": RuleKind.PRIVATE_MODULE,
}

KNOWN_RULE_KINDS: frozenset[RuleKind] = frozenset(RuleKind) - {RuleKind.UNRECOGNIZED}


# ---------------------------------------------------------------------------
# Restriction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Restriction:
    """One policy entry: a glob (or alternative globs) bound to a rule kind.

    ``allowed_importers`` only matters for :attr:`RuleKind.CUSTOM`; ``None``
    means any importer is allowed.
    """

    pattern: str | tuple[str, ...]
    rule: RuleKind
    message: str | None = None
    allowed_importers: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.rule, RuleKind):
            object.__setattr__(self, "rule", RuleKind(self.rule))
        if isinstance(self.pattern, list):
            object.__setattr__(self, "pattern", tuple(self.pattern))
        if isinstance(self.allowed_importers, list):
            object.__setattr__(self, "allowed_importers", tuple(self.allowed_importers))

    @property
    def patterns(self) -> tuple[str, ...]:
        """Return the glob alternatives, even for a single-glob pattern."""
        if isinstance(self.pattern, str):
            return (self.pattern,)
        return self.pattern

    @property
    def display_message(self) -> str:
        return self.message or DEFAULT_MESSAGE


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

PRIVATE_MODULE_RESTRICTION = Restriction(
    pattern=("**/*.private.*", "**/*.p.*"),
    rule=RuleKind.PRIVATE_MODULE,
    message="Private modules can only be imported by files with same parent name",
)

SHARED_MODULE_RESTRICTION = Restriction(
    pattern=("**/*.shared.*", "**/*.s.*"),
    rule=RuleKind.SHARED_MODULE,
    message="Shared modules can only be imported by files with matching parent prefix",
)

INTERNAL_MODULE_RESTRICTION = Restriction(
    pattern="**/*.internal.*",
    rule=RuleKind.SAME_DIRECTORY,
    message="Internal modules can only be imported within the same directory",
)

INTERNAL_DIRECTORY_RESTRICTION = Restriction(
    pattern="**/_*/**/*",
    rule=RuleKind.INTERNAL_DIRECTORY,
    message=(
        "Files in underscore-prefixed directories can only be imported "
        "from the same level or within the directory"
    ),
)

NO_DEEP_IMPORT_RESTRICTION = Restriction(
    pattern="**/*",
    rule=RuleKind.NO_DEEP_IMPORT,
    message=(
        "When an index file exists, modules within a directory can only be "
        "accessed through its index file"
    ),
)

AVOID_CIRCULAR_DEPENDENCY_RESTRICTION = Restriction(
    pattern="**/*",
    rule=RuleKind.AVOID_CIRCULAR_DEPENDENCY,
    message=(
        "Avoid importing through index file within the same module "
        "to prevent circular dependencies"
    ),
)

FILENAME_RESTRICTIONS: tuple[Restriction, ...] = (
    PRIVATE_MODULE_RESTRICTION,
    SHARED_MODULE_RESTRICTION,
)

STRICT_INDEX_RESTRICTIONS: tuple[Restriction, ...] = (
    NO_DEEP_IMPORT_RESTRICTION,
    AVOID_CIRCULAR_DEPENDENCY_RESTRICTION,
)

LEGACY_RESTRICTIONS: tuple[Restriction, ...] = (
    INTERNAL_MODULE_RESTRICTION,
    Restriction(
        pattern="**/*.shared.*",
        rule=RuleKind.SHARED_MODULE,
        message=SHARED_MODULE_RESTRICTION.message,
    ),
    Restriction(
        pattern="**/*.private.*",
        rule=RuleKind.PRIVATE_MODULE,
        message=PRIVATE_MODULE_RESTRICTION.message,
    ),
    INTERNAL_DIRECTORY_RESTRICTION,
)

DEFAULT_RESTRICTIONS: tuple[Restriction, ...] = (
    INTERNAL_MODULE_RESTRICTION,
    PRIVATE_MODULE_RESTRICTION,
    SHARED_MODULE_RESTRICTION,
    INTERNAL_DIRECTORY_RESTRICTION,
    NO_DEEP_IMPORT_RESTRICTION,
    AVOID_CIRCULAR_DEPENDENCY_RESTRICTION,
)

PRESETS: dict[str, tuple[Restriction, ...]] = {
    "default": DEFAULT_RESTRICTIONS,
    "filename": FILENAME_RESTRICTIONS,
    "strict-index": STRICT_INDEX_RESTRICTIONS,
    "legacy": LEGACY_RESTRICTIONS,
}
