"""wfverify CLI Tool - Main entry point."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from wfverify import __version__
from wfverify.cli_utils import (
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
    configure_logging,
    dry_run_option,
    exclude_rules_option,
    fix_option,
    json_option,
    quiet_option,
    resolve_path,
    rules_option,
    strict_option,
    verbose_option,
    wire_config,
)
from wfverify.config import split_rule_ids
from wfverify.fixers import FixResult, apply_fixes_to_files, group_findings_by_file
from wfverify.output import (
    fix_results_to_dict,
    render_fix_results,
    render_result,
    render_rules,
    rule_to_dict,
)
from wfverify.validators import ValidationResult, ValidationRunner, get_global_registry

app = typer.Typer(
    name="wfverify",
    help="wfverify - Validate and auto-fix n8n workflows and use-case folders.",
    add_completion=False,
)

# Rich consoles for output
console = Console()
err_console = Console(stderr=True)

RULE_KINDS = ("graph", "workflow", "use-case")


# -----------------------------------------------------------------------------
# Output Helpers
# -----------------------------------------------------------------------------


def _output_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[red]Error:[/red] {message}")


def _output_warning(message: str, quiet: bool = False) -> None:
    """Print a warning message."""
    if not quiet:
        err_console.print(f"[yellow]Warning:[/yellow] {message}")


def _exit_error(message: str, exit_code: int = EXIT_USER_ERROR) -> None:
    """Print error and exit."""
    _output_error(message)
    raise typer.Exit(code=exit_code)


# -----------------------------------------------------------------------------
# Version and Main Callbacks
# -----------------------------------------------------------------------------


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"wfverify version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """wfverify - Validate and auto-fix n8n workflows and use-case folders."""
    pass


# -----------------------------------------------------------------------------
# Shared Validation Flow
# -----------------------------------------------------------------------------


def _parse_rules(value: str | None) -> list[str] | None:
    rule_ids = split_rule_ids(value)
    return rule_ids or None


def _fix_pass(result: ValidationResult, *, dry_run: bool, quiet: bool) -> list[FixResult]:
    """Apply the fixable findings of ``result`` and write changed files back.

    Raises:
        typer.Exit: If a fixed file cannot be written.
    """
    contents: dict[str, str] = {}
    for file_path in group_findings_by_file(result.findings):
        try:
            contents[file_path] = Path(file_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            _output_warning(f"Cannot read {file_path}, skipping its fixes: {e}", quiet)

    fix_results = apply_fixes_to_files(contents, result.findings, dry_run=dry_run)
    if dry_run:
        return fix_results

    for fix_result in fix_results:
        if not fix_result.applied:
            continue
        try:
            Path(fix_result.file_path).write_text(fix_result.content, encoding="utf-8")
        except OSError as e:
            _exit_error(f"Failed to write {fix_result.file_path}: {e}", EXIT_SYSTEM_ERROR)
    return fix_results


def _report(
    result: ValidationResult,
    *,
    title: str,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    fix_results: list[FixResult] | None,
    dry_run: bool,
) -> None:
    """Print the final report and exit non-zero when validation failed."""
    if json_output:
        payload: dict[str, Any] = result.to_dict()
        if fix_results is not None:
            payload["fixes"] = fix_results_to_dict(fix_results, dry_run=dry_run)
        console.print_json(json.dumps(payload))
    else:
        if fix_results is not None and not quiet:
            render_fix_results(console, fix_results, dry_run=dry_run, verbose=verbose)
        render_result(console, result, title=title, quiet=quiet, verbose=verbose)

    if not result.valid:
        raise typer.Exit(code=EXIT_USER_ERROR)


# -----------------------------------------------------------------------------
# Workflow Command
# -----------------------------------------------------------------------------


@app.command()
def workflow(
    path: str = typer.Argument(..., help="Path to the workflow JSON file."),
    json_output: bool = json_option(),
    strict: bool = strict_option(),
    fix: bool = fix_option(),
    dry_run: bool = dry_run_option(),
    rules: str | None = rules_option(),
    exclude_rules: str | None = exclude_rules_option(),
    quiet: bool = quiet_option(),
    verbose: bool = verbose_option(),
) -> None:
    """Validate a single workflow JSON file.

    Runs the graph rules and the workflow scripts. With --fix, applies the
    available auto-fixes, writes the file and validates it again.
    With --dry-run, shows what would be fixed without making changes.

    Exit codes:
      0 - No blocking findings
      1 - Blocking findings remain
      2 - System error (e.g., the fixed file could not be written)
    """
    configure_logging(verbose)
    workflow_path = resolve_path(path)
    config = wire_config(strict=strict, exclude_rules=exclude_rules, start_dir=workflow_path.parent)
    runner = ValidationRunner(config=config)
    rule_ids = _parse_rules(rules)

    result = runner.validate_workflow(workflow_path, rules=rule_ids)

    fix_results: list[FixResult] | None = None
    if fix or dry_run:
        fix_results = _fix_pass(result, dry_run=dry_run, quiet=quiet)
        if any(fix_result.applied for fix_result in fix_results):
            result = runner.validate_workflow(workflow_path, rules=rule_ids)

    _report(
        result,
        title=f"Workflow {workflow_path.name}",
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        fix_results=fix_results,
        dry_run=dry_run,
    )


# -----------------------------------------------------------------------------
# Use-Case Command
# -----------------------------------------------------------------------------


@app.command("use-case")
def use_case(
    path: str = typer.Argument(..., help="Path to the use-case folder."),
    json_output: bool = json_option(),
    strict: bool = strict_option(),
    fix: bool = fix_option(),
    dry_run: bool = dry_run_option(),
    rules: str | None = rules_option(),
    exclude_rules: str | None = exclude_rules_option(),
    skip_workflows: bool = typer.Option(
        False,
        "--skip-workflows",
        help="Only run use-case scripts, skip per-file workflow validation.",
    ),
    quiet: bool = quiet_option(),
    verbose: bool = verbose_option(),
) -> None:
    """Validate a use-case folder.

    Checks config.py against the workflow files (exports, file listing,
    subworkflow references, calledBy, integrations, trigger URLs and types),
    then validates every workflows/*.json file.

    Exit codes:
      0 - No blocking findings
      1 - Blocking findings remain
      2 - System error (e.g., a fixed file could not be written)
    """
    configure_logging(verbose)
    use_case_path = resolve_path(path)
    config = wire_config(
        strict=strict,
        skip_workflows=skip_workflows,
        exclude_rules=exclude_rules,
        start_dir=use_case_path,
    )
    runner = ValidationRunner(config=config)
    rule_ids = _parse_rules(rules)

    result = runner.run_use_case(use_case_path, rules=rule_ids)

    fix_results: list[FixResult] | None = None
    if fix or dry_run:
        fix_results = _fix_pass(result, dry_run=dry_run, quiet=quiet)
        if any(fix_result.applied for fix_result in fix_results):
            result = runner.run_use_case(use_case_path, rules=rule_ids)

    _report(
        result,
        title=f"Use case {use_case_path.name}",
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        fix_results=fix_results,
        dry_run=dry_run,
    )


# -----------------------------------------------------------------------------
# Rules Command
# -----------------------------------------------------------------------------


@app.command("rules")
def list_rules(
    kind: str | None = typer.Option(
        None,
        "--kind",
        "-k",
        help="Only list rules of one kind: graph, workflow or use-case.",
    ),
    json_output: bool = json_option(),
    quiet: bool = quiet_option(),
) -> None:
    """List the validation rules in execution order."""
    if kind is not None and kind not in RULE_KINDS:
        _exit_error(f"Invalid kind '{kind}'. Must be one of: {', '.join(RULE_KINDS)}")

    rules = [rule for rule in get_global_registry() if kind is None or rule.kind == kind]

    if json_output:
        console.print_json(json.dumps({"rules": [rule_to_dict(rule) for rule in rules]}))
        return

    render_rules(console, rules, quiet=quiet)
