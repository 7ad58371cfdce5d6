"""File watcher: re-lint on file changes, keeping the index cache current."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from modfence.config import CONFIG_FILENAME
from modfence.policy.index_locator import IndexDirectoryCache

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from modfence.config import ModfenceConfig
    from modfence.hosts.lint import LintResult

DEFAULT_DEBOUNCE_MS = 500

_WATCH_EXTENSIONS = frozenset(
    {
        ".ts",
        ".tsx",
        ".mts",
        ".cts",
        ".js",
        ".jsx",
        ".mjs",
        ".cjs",
        ".yml",  # config
    }
)


def _filter_relevant(
    changes: Iterable[tuple[object, str]],
    project_root: Path,
) -> list[tuple[object, str]]:
    """Keep only changes with watched extensions, ignoring hidden/temp/vendored files."""
    result: list[tuple[object, str]] = []

    for change_type, path_str in changes:
        p = Path(path_str)

        # Ignore temp files (name starts with ~ or ends with .tmp).
        if p.name.startswith("~") or p.name.endswith(".tmp"):
            continue

        # Directory creation/removal has no suffix but can move index boundaries.
        if p.suffix and p.suffix not in _WATCH_EXTENSIONS:
            continue

        try:
            rel = p.relative_to(project_root)
        except ValueError:
            continue

        if any(part.startswith(".") or part == "node_modules" for part in rel.parts[:-1]):
            continue

        result.append((change_type, path_str))

    return result


def _is_config_file(path_str: str, config_file: Path) -> bool:
    return Path(path_str) == config_file


def _format_time() -> str:
    """Return current time as ``HH:MM:SS`` string."""
    return datetime.now(tz=timezone.utc).strftime("%H:%M:%S")


@dataclass(frozen=True)
class WatchEvent:
    """A single watch event after filtering and debounce."""

    files_changed: int
    config_changed: bool
    violations: int


def watch(
    project_root: Path,
    config: ModfenceConfig,
    debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    callback: Callable[[WatchEvent], None] | None = None,
    *,
    config_path: Path | None = None,
) -> None:
    """Watch project files and re-lint on changes.

    Each batch of changes invalidates the touched directories in a shared
    :class:`IndexDirectoryCache`; a change to the config file reloads it.

    Requires ``watchfiles`` (optional dependency).
    """
    from rich.console import Console
    from rich.markup import escape
    from watchfiles import watch as fs_watch

    from modfence.hosts.lint import LintError, lint, load_project_config

    console = Console()
    cache = IndexDirectoryCache()
    config_file = config_path or project_root / CONFIG_FILENAME

    def _report(result: LintResult) -> None:
        count = len(result.diagnostics)
        style = "red" if count else "green"
        timestamp = _format_time()
        console.print(
            f"[dim]{timestamp}[/dim] "
            f"[{style}]{count} violation{'s' if count != 1 else ''}[/{style}] "
            f"({result.files_scanned} files, {result.imports_checked} imports)"
        )
        for d in result.diagnostics:
            console.print(f"  [bold]{d.file_path}:{d.line_number}[/bold] {escape(d.message)}")

    console.print(f"[bold blue]Watching:[/bold blue] {project_root}")
    console.print(f"[dim]Debounce: {debounce_ms}ms  |  Press Ctrl+C to stop[/dim]")
    console.print()

    _report(lint(project_root, config, cache=cache))

    try:
        for batch in fs_watch(project_root, debounce=debounce_ms):
            relevant = _filter_relevant(batch, project_root)
            if not relevant:
                continue

            for _, path_str in relevant:
                cache.invalidate(path_str)

            config_changed = any(_is_config_file(p, config_file) for _, p in relevant)
            if config_changed:
                try:
                    config = load_project_config(project_root, config_path)
                except LintError as exc:
                    console.print(f"[red]{escape(str(exc))}[/red]")
                    continue
                console.print("[yellow]Configuration reloaded[/yellow]")

            result = lint(project_root, config, cache=cache)
            _report(result)

            if callback is not None:
                event = WatchEvent(
                    files_changed=len(relevant),
                    config_changed=config_changed,
                    violations=len(result.diagnostics),
                )
                callback(event)

    except KeyboardInterrupt:
        console.print("\n[yellow]Watch stopped.[/yellow]")
