"""Rich rendering of validation reports, fix results and rule listings."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from wfverify.fixers.base import FixResult
from wfverify.validators.base import Finding, ValidationResult
from wfverify.validators.registry import Rule

SEVERITY_STYLES = {
    "must": "red",
    "should": "yellow",
    "nit": "blue",
}


def finding_location(finding: Finding) -> str:
    location = finding.path
    if finding.line is not None:
        location += f":{finding.line}"
    if finding.node_id is not None:
        location += f" (node {finding.node_id})"
    return location


def _severity_tag(severity: str) -> str:
    style = SEVERITY_STYLES.get(severity, "white")
    return f"[{style}]{severity}[/{style}]"


def summary_line(result: ValidationResult) -> str:
    summary = result.summary
    line = f"{summary.must} must, {summary.should} should, {summary.nit} nit"
    if summary.fixable:
        line += f" ({summary.fixable} fixable)"
    if result.strict:
        line += " (strict)"
    return line


def render_result(
    console: Console,
    result: ValidationResult,
    *,
    title: str,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Print a validation result.

    Quiet mode prints only the verdict. Verbose mode adds remediation text,
    guide references and fix descriptions under every finding.
    """
    verdict = "[green]PASS[/green]" if result.valid else "[red]FAIL[/red]"
    if quiet:
        console.print(f"{verdict} {escape(title)}: {summary_line(result)}")
        return

    console.print(f"\n[bold]{escape(title)}[/bold]")
    files = len(result.files_validated)
    console.print(f"Validated {files} path(s), found {len(result.findings)} finding(s)\n")

    for finding in result.findings:
        console.print(
            f"  {_severity_tag(finding.severity)} [dim]{finding.rule}[/dim] "
            f"{escape(finding_location(finding))}"
        )
        console.print(f"    {escape(finding.message)}")
        if verbose:
            if finding.raw_details:
                for detail_line in finding.raw_details.splitlines():
                    console.print(f"      [dim]{escape(detail_line)}[/dim]")
            if finding.guide_ref is not None:
                console.print(f"    [cyan]Guide:[/cyan] {escape(finding.guide_ref.describe())}")
            if finding.documentation_url:
                console.print(f"    [cyan]Docs:[/cyan] {finding.documentation_url}")
        if finding.fix is not None:
            console.print(f"    [green]Fix:[/green] {escape(finding.fix.description)}")

    if result.findings:
        console.print()
    console.print(f"{verdict} {summary_line(result)}")


# -----------------------------------------------------------------------------
# Fix Results
# -----------------------------------------------------------------------------


def fix_results_to_dict(fix_results: Iterable[FixResult], *, dry_run: bool) -> list[dict[str, Any]]:
    payload: list[dict[str, Any]] = []
    for fix_result in fix_results:
        entry: dict[str, Any] = {
            "file": fix_result.file_path,
            "applied": fix_result.applied,
            "wouldFix": [
                {"rule": finding.rule, "description": finding.fix.description}
                for finding in fix_result.would_fix
                if finding.fix is not None
            ],
        }
        if not dry_run:
            entry["appliedFixes"] = list(fix_result.applied_fixes)
            entry["failedFixes"] = list(fix_result.failed_fixes)
        payload.append(entry)
    return payload


def render_fix_results(
    console: Console,
    fix_results: list[FixResult],
    *,
    dry_run: bool,
    verbose: bool = False,
) -> None:
    """Print what a fix pass did, or would do in dry-run mode."""
    if not fix_results:
        console.print("No fixable findings.")
        return

    if dry_run:
        console.print("[bold]Would apply the following fixes:[/bold]")
    else:
        console.print("[bold]Fix Results:[/bold]")

    for fix_result in fix_results:
        console.print(f"  [dim]{escape(fix_result.file_path)}[/dim]")
        if dry_run:
            for finding in fix_result.would_fix:
                if finding.fix is not None:
                    console.print(
                        f"    [cyan]WOULD FIX[/cyan] {finding.rule}: "
                        f"{escape(finding.fix.description)}"
                    )
            continue

        for description in fix_result.applied_fixes:
            console.print(f"    [green]FIXED[/green] {escape(description)}")
        for description in fix_result.failed_fixes:
            console.print(f"    [red]FAILED[/red] {escape(description)}")
        if verbose:
            unchanged = len(fix_result.would_fix) - fix_result.applied - len(
                fix_result.failed_fixes
            )
            if unchanged > 0:
                console.print(f"    [dim]{unchanged} fix(es) had nothing to change[/dim]")
    console.print()


# -----------------------------------------------------------------------------
# Rule Listing
# -----------------------------------------------------------------------------


def rule_to_dict(rule: Rule) -> dict[str, Any]:
    data = rule.metadata.to_dict()
    data["kind"] = rule.kind
    return data


def render_rules(console: Console, rules: list[Rule], *, quiet: bool = False) -> None:
    if quiet:
        for rule in rules:
            console.print(rule.id)
        return

    table = Table(title="Validation Rules")
    table.add_column("ID", style="cyan")
    table.add_column("Kind")
    table.add_column("Severity")
    table.add_column("Fixable")
    table.add_column("Category", style="green")
    table.add_column("Description")

    for rule in rules:
        meta = rule.metadata
        table.add_row(
            meta.id,
            rule.kind,
            _severity_tag(meta.severity),
            "yes" if meta.fixable else "-",
            meta.category or "-",
            escape(meta.description),
        )

    console.print(table)
