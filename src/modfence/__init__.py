"""Modfence - import restriction policies for TypeScript/JavaScript projects."""

from modfence.policy import (
    DEFAULT_RESTRICTIONS,
    Restriction,
    RuleKind,
    ValidationResult,
    Violation,
    evaluate,
    locate_index_directory,
    merge_restrictions,
    validate_import,
)

__version__ = "0.3.0"

__all__ = [
    "DEFAULT_RESTRICTIONS",
    "Restriction",
    "RuleKind",
    "ValidationResult",
    "Violation",
    "__version__",
    "evaluate",
    "locate_index_directory",
    "merge_restrictions",
    "validate_import",
]
