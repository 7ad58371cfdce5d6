"""Lint adapter: extract imports via tree-sitter and report restricted ones."""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

from modfence.policy.globs import glob_match_any
from modfence.policy.index_locator import IndexDirectoryCache
from modfence.policy.validator import resolve_source_reference, validate_import

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from tree_sitter import Node as TSNode

    from modfence.config import ModfenceConfig
    from modfence.policy.restrictions import Restriction

logger = logging.getLogger(__name__)

# Directories never descended into while collecting sources.
_SKIP_DIRS: frozenset[str] = frozenset({"node_modules", ".git", ".hg", ".svn"})


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LintError(Exception):
    """Raised when lint encounters a configuration error."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportStatement:
    """A single import/re-export statement extracted from source code."""

    file_path: str  # absolute path to the importing file
    line_number: int  # 1-based line number
    specifier: str  # raw module specifier, e.g. "./Button.private"


@dataclass(frozen=True)
class Diagnostic:
    """The first violation reported for one import statement."""

    file_path: str
    line_number: int
    specifier: str
    rule: str  # RuleKind value
    message: str


@dataclass
class LintResult:
    """Result of a lint run."""

    diagnostics: list[Diagnostic] = field(default_factory=list)
    files_scanned: int = 0
    imports_checked: int = 0
    elapsed_ms: float = 0.0


# ---------------------------------------------------------------------------
# Grammar loading (lazy, handle ImportError)
# ---------------------------------------------------------------------------


def _load_typescript() -> Language:
    import tree_sitter_typescript as tstypescript

    return Language(tstypescript.language_typescript())


def _load_tsx() -> Language:
    import tree_sitter_typescript as tstypescript

    return Language(tstypescript.language_tsx())


_EXTENSION_LOADERS: dict[str, Callable[[], Language]] = {
    ".ts": _load_typescript,
    ".mts": _load_typescript,
    ".cts": _load_typescript,
    ".js": _load_typescript,
    ".mjs": _load_typescript,
    ".cjs": _load_typescript,
    ".tsx": _load_tsx,
    ".jsx": _load_tsx,
}

# Cache for loaded grammars (None means "tried and failed / unsupported").
_LANG_CACHE: dict[str, Language | None] = {}


def get_language(extension: str) -> Language | None:
    """Get the grammar for a file extension, or ``None`` if unsupported/unavailable."""
    if extension in _LANG_CACHE:
        return _LANG_CACHE[extension]

    loader = _EXTENSION_LOADERS.get(extension)
    if loader is None:
        _LANG_CACHE[extension] = None
        return None

    try:
        language = loader()
    except ImportError:
        logger.warning("tree-sitter-typescript is not installed; skipping %s files", extension)
        _LANG_CACHE[extension] = None
        return None

    _LANG_CACHE[extension] = language
    return language


def supported_extensions() -> frozenset[str]:
    """Return the set of file extensions with available grammars."""
    return frozenset(ext for ext in _EXTENSION_LOADERS if get_language(ext) is not None)


# ---------------------------------------------------------------------------
# Import extraction
# ---------------------------------------------------------------------------


def _get_source_string(node: TSNode) -> str | None:
    """Extract the module specifier from an import/export statement's source."""
    for child in node.children:
        if child.type == "string":
            # The string node contains quote chars and a string_fragment
            for sub in child.children:
                if sub.type == "string_fragment":
                    return sub.text.decode("utf-8") if sub.text else None
    return None


def extract_imports_from_source(
    content: str, file_path: str, extension: str
) -> list[ImportStatement]:
    """Extract top-level import and re-export statements from *content*."""
    language = get_language(extension)
    if language is None or not content.strip():
        return []

    parser = Parser(language)
    tree = parser.parse(content.encode("utf-8"))

    results: list[ImportStatement] = []
    for child in tree.root_node.children:
        if child.type not in ("import_statement", "export_statement"):
            continue

        specifier = _get_source_string(child)
        if specifier is None:
            continue

        results.append(
            ImportStatement(
                file_path=file_path,
                line_number=child.start_point.row + 1,
                specifier=specifier,
            )
        )

    return results


def extract_imports(file_path: Path) -> list[ImportStatement]:
    """Extract import statements from a source file.

    Returns an empty list if the language is unsupported, the grammar is not
    installed, or the file cannot be read.
    """
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.debug("Cannot read %s", file_path)
        return []

    return extract_imports_from_source(content, os.path.abspath(file_path), file_path.suffix)


# ---------------------------------------------------------------------------
# Checking
# ---------------------------------------------------------------------------


def format_message(message: str, specifier: str, importer_path: str) -> str:
    """Render the per-statement diagnostic text."""
    importer_name = os.path.basename(importer_path)
    return f'{message}: "{specifier}" cannot be imported from "{importer_name}"'


def check_imports(
    imports: Iterable[ImportStatement],
    restrictions: Iterable[Restriction],
    *,
    cache: IndexDirectoryCache | None = None,
) -> list[Diagnostic]:
    """Validate each import statement, keeping only its first violation."""
    restriction_list = tuple(restrictions)
    diagnostics: list[Diagnostic] = []

    for imp in imports:
        result = validate_import(
            imp.specifier,
            imp.file_path,
            restriction_list,
            resolver=resolve_source_reference,
            cache=cache,
        )
        violation = result.first_violation
        if violation is None:
            continue

        diagnostics.append(
            Diagnostic(
                file_path=imp.file_path,
                line_number=imp.line_number,
                specifier=imp.specifier,
                rule=violation.restriction.rule.value,
                message=format_message(violation.message, imp.specifier, imp.file_path),
            )
        )

    return diagnostics


def lint_file(
    file_path: Path,
    restrictions: Iterable[Restriction],
    *,
    cache: IndexDirectoryCache | None = None,
) -> list[Diagnostic]:
    """Extract and check the imports of a single file."""
    return check_imports(extract_imports(file_path), restrictions, cache=cache)


def load_project_config(project_root: Path, config_path: Path | None = None) -> ModfenceConfig:
    """Load ``<project_root>/modfence.yml`` (or *config_path*).

    Raises
    ------
    LintError
        When the config file is present but contains invalid configuration.
    """
    from modfence.config import CONFIG_FILENAME, load_config

    if config_path is None:
        config_path = project_root / CONFIG_FILENAME

    try:
        return load_config(config_path)
    except ValueError as exc:
        msg = f"Invalid restrictions configuration: {exc}"
        raise LintError(msg) from exc


def collect_source_files(project_root: Path, config: ModfenceConfig) -> list[Path]:
    """Collect files under *project_root* matching include and not exclude globs."""
    files: list[Path] = []

    for dirpath, dirnames, filenames in os.walk(project_root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        for name in filenames:
            path = Path(dirpath) / name
            rel = path.relative_to(project_root).as_posix()
            if not glob_match_any(rel, config.include):
                continue
            if glob_match_any(rel, config.exclude):
                continue
            files.append(path)

    return sorted(files)


def lint(
    project_root: Path,
    config: ModfenceConfig,
    *,
    cache: IndexDirectoryCache | None = None,
) -> LintResult:
    """Check every source file in the project and return the collected diagnostics.

    Parameters
    ----------
    project_root:
        Root of the project to scan.
    config:
        Effective configuration (restrictions plus include/exclude globs).
    cache:
        Optional index-directory cache shared across runs, e.g. by the
        watcher.  A fresh cache is used when *None*.

    Returns
    -------
    LintResult
        Summary with diagnostics, counts, and timing.
    """
    start = time.monotonic()
    root = Path(os.path.abspath(project_root))
    index_cache = cache if cache is not None else IndexDirectoryCache()

    files = collect_source_files(root, config)
    diagnostics: list[Diagnostic] = []
    imports_checked = 0

    for file_path in files:
        imports = extract_imports(file_path)
        imports_checked += len(imports)
        diagnostics.extend(check_imports(imports, config.restrictions, cache=index_cache))

    elapsed = (time.monotonic() - start) * 1000
    logger.debug("Linted %d files in %.1fms", len(files), elapsed)

    return LintResult(
        diagnostics=diagnostics,
        files_scanned=len(files),
        imports_checked=imports_checked,
        elapsed_ms=elapsed,
    )


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def _relative(path: str, project_root: Path | None) -> str:
    if project_root is None:
        return path
    try:
        return Path(path).relative_to(os.path.abspath(project_root)).as_posix()
    except ValueError:
        return path


def format_rich(result: LintResult, project_root: Path | None = None) -> str:
    """Format a LintResult as human-readable text.

    Example output with violations::

        Files: 25 scanned, 142 imports checked

        x src/pages/Home.ts:3
          [private-module] Private modules can only be imported ...

        1 violation found (0.1s)
    """
    lines: list[str] = []

    lines.append(
        f"Files: {result.files_scanned} scanned, {result.imports_checked} imports checked"
    )
    lines.append("")

    elapsed_str = f"{result.elapsed_ms / 1000:.1f}s"

    if result.diagnostics:
        for d in result.diagnostics:
            lines.append(f"\u2717 {_relative(d.file_path, project_root)}:{d.line_number}")
            lines.append(f"  [{d.rule}] {d.message}")
            lines.append("")

        count = len(result.diagnostics)
        noun = "violation" if count == 1 else "violations"
        lines.append(f"{count} {noun} found ({elapsed_str})")
    else:
        lines.append(f"\u2713 No violations found ({elapsed_str})")

    return "\n".join(lines)


def format_json(result: LintResult, project_root: Path | None = None) -> str:
    """Format a LintResult as structured JSON with ``diagnostics`` and ``summary``."""
    output: dict[str, object] = {
        "diagnostics": [
            {
                "file_path": _relative(d.file_path, project_root),
                "line_number": d.line_number,
                "specifier": d.specifier,
                "rule": d.rule,
                "message": d.message,
            }
            for d in result.diagnostics
        ],
        "summary": {
            "violations_count": len(result.diagnostics),
            "files_scanned": result.files_scanned,
            "imports_checked": result.imports_checked,
            "elapsed_ms": result.elapsed_ms,
        },
    }

    return json.dumps(output, indent=2)


def format_porcelain(result: LintResult, project_root: Path | None = None) -> str:
    """Format one line per diagnostic: ``file_path:line:rule:specifier``.

    Returns empty string when there are no diagnostics.
    """
    return "\n".join(
        f"{_relative(d.file_path, project_root)}:{d.line_number}:{d.rule}:{d.specifier}"
        for d in result.diagnostics
    )
