"""Host adapters: lint runner and language-service wrapper."""

from modfence.hosts.language_service import (
    CompletionEntry,
    CompletionInfo,
    ImportSite,
    LanguageService,
    RestrictedLanguageService,
    ServiceDiagnostic,
)
from modfence.hosts.lint import (
    Diagnostic,
    ImportStatement,
    LintError,
    LintResult,
    extract_imports,
    format_json,
    format_porcelain,
    format_rich,
    lint,
    lint_file,
)

__all__ = [
    "CompletionEntry",
    "CompletionInfo",
    "Diagnostic",
    "ImportSite",
    "ImportStatement",
    "LanguageService",
    "LintError",
    "LintResult",
    "RestrictedLanguageService",
    "ServiceDiagnostic",
    "extract_imports",
    "format_json",
    "format_porcelain",
    "format_rich",
    "lint",
    "lint_file",
]
