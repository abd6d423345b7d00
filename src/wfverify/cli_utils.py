"""Shared plumbing for the wfverify commands.

Exit codes, the stderr error helper, rich logging setup, turning command
flags into a WfverifyConfig, and the Typer options the validation commands
have in common.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

from wfverify.config import WfverifyConfig, load_config, split_rule_ids

# Process exit codes
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # Blocking findings, bad flags or settings
EXIT_SYSTEM_ERROR = 2  # A fixed file could not be written


# -----------------------------------------------------------------------------
# Error Formatting Helpers
# -----------------------------------------------------------------------------


def error(msg: str, *, exit_code: int = EXIT_USER_ERROR) -> NoReturn:
    """Print ``msg`` as an error on stderr and stop the command.

    Raises:
        typer.Exit: Always, with ``exit_code``.
    """
    styled_prefix = typer.style("Error:", fg=typer.colors.RED, bold=True)
    typer.echo(f"{styled_prefix} {msg}", err=True)
    raise typer.Exit(code=exit_code)


# -----------------------------------------------------------------------------
# Path Resolution Helper
# -----------------------------------------------------------------------------


def resolve_path(path: str | Path, base_path: Path | None = None) -> Path:
    """Resolve a path relative to a base path (default: cwd).

    The path does not have to exist; missing inputs are reported as findings.
    """
    p = Path(path)
    base = base_path or Path.cwd()
    return p.resolve() if p.is_absolute() else (base / p).resolve()


# -----------------------------------------------------------------------------
# Logging Setup
# -----------------------------------------------------------------------------


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through rich on stderr.

    stdout stays reserved for reports, so ``--json`` output remains parseable.

    Args:
        verbose: Log at DEBUG level instead of WARNING.
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        show_time=False,
        rich_tracebacks=verbose,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[handler],
        force=True,
    )


# -----------------------------------------------------------------------------
# Config Wiring Helper
# -----------------------------------------------------------------------------


def wire_config(
    strict: bool | None = None,
    skip_workflows: bool | None = None,
    exclude_rules: str | None = None,
    start_dir: Path | None = None,
) -> WfverifyConfig:
    """Resolve settings for a command from its flags.

    Flags left unset fall through to environment variables, rc files and
    defaults. ``--exclude-rules`` extends the configured deny-list instead of
    replacing it.

    Args:
        strict: Override for strict mode.
        skip_workflows: Override for skipping per-file validation.
        exclude_rules: Comma-separated rule ids to exclude.
        start_dir: Directory the rc and pyproject.toml searches start from.

    Returns:
        The merged WfverifyConfig.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    cli_overrides: dict[str, Any] = {}

    if strict:
        cli_overrides["strict"] = True
    if skip_workflows:
        cli_overrides["skip_workflows"] = True

    try:
        config = load_config(cli_overrides=cli_overrides, start_dir=start_dir)
    except ValueError as e:
        error(f"Invalid configuration: {e}", exit_code=EXIT_USER_ERROR)

    for rule_id in split_rule_ids(exclude_rules):
        if rule_id not in config.exclude_rules:
            config.exclude_rules.append(rule_id)
    return config


# -----------------------------------------------------------------------------
# Typer Option Factory Functions
# -----------------------------------------------------------------------------
# Typer consumes Option objects when decorating commands, so every command
# needs fresh instances.


def json_option() -> Any:
    return typer.Option(False, "--json", help="Output as JSON.")


def quiet_option() -> Any:
    return typer.Option(False, "--quiet", "-q", help="Minimal output for CI.")


def verbose_option() -> Any:
    return typer.Option(False, "--verbose", help="Show details and debug logging.")


def strict_option() -> Any:
    return typer.Option(False, "--strict", help="Treat 'should' findings as blocking.")


def fix_option() -> Any:
    return typer.Option(False, "--fix", help="Apply auto-fixes, then re-validate.")


def dry_run_option() -> Any:
    return typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show what would be fixed (no changes).",
    )


def rules_option() -> Any:
    """Allow-list of rule ids; ids are matched case-insensitively."""
    return typer.Option(
        None, "--rules", help="Comma-separated rule ids to run (all others are skipped)."
    )


def exclude_rules_option() -> Any:
    """Deny-list of rule ids, added to the configured exclude_rules."""
    return typer.Option(None, "--exclude-rules", help="Comma-separated rule ids to skip.")
