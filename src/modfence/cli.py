"""Modfence CLI entry point."""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

import click

from modfence import __version__


@click.group()
@click.version_option(version=__version__, prog_name="modfence")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output (debug logging).")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Modfence - import restriction policies for TS/JS projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _project_root(project: Path | None) -> Path:
    return Path(os.path.abspath(project or Path.cwd()))


_PROJECT_OPTION = click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: <project>/modfence.yml).",
)


@main.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich if TTY, porcelain if piped).",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit 1 if violations found.",
)
@_PROJECT_OPTION
@_CONFIG_OPTION
def check(
    *,
    fmt: str | None,
    strict: bool,
    project: Path | None,
    config_path: Path | None,
) -> None:
    """Check every import in the project against the configured restrictions.

    Exit codes: 0 = clean or violations without --strict,
    1 = violations with --strict, 2 = configuration error.
    """
    from modfence.hosts.lint import LintError, format_json, format_porcelain, format_rich
    from modfence.hosts.lint import lint as run_lint
    from modfence.hosts.lint import load_project_config

    project_root = _project_root(project)

    # Resolve output format: explicit flag > TTY detection.
    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        config = load_project_config(project_root, config_path)
    except LintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    result = run_lint(project_root, config)

    formatters = {
        "rich": format_rich,
        "json": format_json,
        "porcelain": format_porcelain,
    }
    output = formatters[fmt](result, project_root)
    if output:
        click.echo(output)

    if strict and result.diagnostics:
        sys.exit(1)


@main.command()
@click.argument("importer", type=click.Path(path_type=Path))
@click.argument("reference")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@_PROJECT_OPTION
@_CONFIG_OPTION
def validate(
    *,
    importer: Path,
    reference: str,
    as_json: bool,
    project: Path | None,
    config_path: Path | None,
) -> None:
    """Validate a single import of REFERENCE from the IMPORTER file.

    A relative IMPORTER is taken relative to the project root.

    Reports every violated restriction, not only the first.  Exits 1 when
    the import is not allowed and 2 on configuration errors.
    """
    from modfence.hosts.lint import LintError, load_project_config
    from modfence.policy.validator import resolve_source_reference, validate_import

    project_root = _project_root(project)
    try:
        config = load_project_config(project_root, config_path)
    except LintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    importer_path = os.path.abspath(project_root / importer)
    result = validate_import(
        reference, importer_path, config.restrictions, resolver=resolve_source_reference
    )

    if as_json:
        payload = {
            "importer": importer_path,
            "reference": reference,
            "is_valid": result.is_valid,
            "violations": [
                {"rule": v.restriction.rule.value, "message": v.message}
                for v in result.violations
            ],
        }
        click.echo(json.dumps(payload, indent=2))
    elif result.is_valid:
        click.echo(f"✓ {reference} may be imported from {importer}")
    else:
        click.echo(f"✗ {reference} may not be imported from {importer}")
        for v in result.violations:
            click.echo(f"  [{v.restriction.rule.value}] {v.message}")

    if not result.is_valid:
        sys.exit(1)


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@_PROJECT_OPTION
@_CONFIG_OPTION
def rules(*, as_json: bool, project: Path | None, config_path: Path | None) -> None:
    """Show the effective restriction set (preset merged with overrides)."""
    from modfence.hosts.lint import LintError, load_project_config

    project_root = _project_root(project)
    try:
        config = load_project_config(project_root, config_path)
    except LintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if as_json:
        payload = [
            {
                "pattern": list(r.patterns),
                "rule": r.rule.value,
                "message": r.message,
                "allowed_importers": (
                    list(r.allowed_importers) if r.allowed_importers is not None else None
                ),
            }
            for r in config.restrictions
        ]
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo(f"Preset: {config.preset}")
    click.echo(f"Restrictions: {len(config.restrictions)}")
    click.echo("")
    for r in config.restrictions:
        click.echo(f"- {r.rule.value}: {', '.join(r.patterns)}")
        click.echo(f"    {r.display_message}")
        if r.allowed_importers is not None:
            click.echo(f"    allowed importers: {', '.join(r.allowed_importers) or '(none)'}")


@main.command("watch")
@click.option("--debounce", default=500, type=int, help="Debounce delay in ms.")
@_PROJECT_OPTION
@_CONFIG_OPTION
def watch_cmd(*, debounce: int, project: Path | None, config_path: Path | None) -> None:
    """Watch source files and re-check imports on changes.

    Requires watchfiles: pip install modfence[watch]
    """
    from modfence.hosts.lint import LintError, load_project_config

    try:
        from modfence.watcher import watch
    except ImportError:
        click.echo(
            "Error: watch requires 'watchfiles'. Install with: pip install modfence[watch]",
            err=True,
        )
        sys.exit(1)

    project_root = _project_root(project)
    try:
        config = load_project_config(project_root, config_path)
    except LintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    try:
        watch(
            project_root,
            config,
            debounce_ms=debounce,
            config_path=Path(os.path.abspath(config_path)) if config_path else None,
        )
    except ImportError:
        click.echo(
            "Error: watch requires 'watchfiles'. Install with: pip install modfence[watch]",
            err=True,
        )
        sys.exit(1)
