"""Policy core: restriction model, rule evaluation, validation, and merging."""

from modfence.policy.evaluator import evaluate, strip_extension
from modfence.policy.globs import glob_match, glob_match_any
from modfence.policy.index_locator import (
    INDEX_FILENAMES,
    IndexDirectoryCache,
    locate_index_directory,
)
from modfence.policy.merge import merge_restrictions
from modfence.policy.restrictions import (
    DEFAULT_RESTRICTIONS,
    FILENAME_RESTRICTIONS,
    KNOWN_RULE_KINDS,
    LEGACY_RESTRICTIONS,
    PRESETS,
    STRICT_INDEX_RESTRICTIONS,
    Restriction,
    RuleKind,
)
from modfence.policy.validator import (
    SOURCE_EXTENSIONS,
    ValidationResult,
    Violation,
    match_restrictions,
    resolve_reference,
    resolve_source_reference,
    should_include_in_completions,
    validate_import,
)

__all__ = [
    "DEFAULT_RESTRICTIONS",
    "FILENAME_RESTRICTIONS",
    "INDEX_FILENAMES",
    "KNOWN_RULE_KINDS",
    "LEGACY_RESTRICTIONS",
    "PRESETS",
    "SOURCE_EXTENSIONS",
    "STRICT_INDEX_RESTRICTIONS",
    "IndexDirectoryCache",
    "Restriction",
    "RuleKind",
    "ValidationResult",
    "Violation",
    "evaluate",
    "glob_match",
    "glob_match_any",
    "locate_index_directory",
    "match_restrictions",
    "merge_restrictions",
    "resolve_reference",
    "resolve_source_reference",
    "should_include_in_completions",
    "strip_extension",
    "validate_import",
]
