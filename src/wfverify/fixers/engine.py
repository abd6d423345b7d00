"""Apply the auto-fixes attached to findings.

Fixes are pure ``str -> str`` transforms. They run in finding order, each on
the output of the previous one, and are expected to leave the content alone
when there is nothing left to fix.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from wfverify.fixers.base import FixPreview, FixResult
from wfverify.validators.base import Finding

logger = logging.getLogger(__name__)


def apply_fixes(
    file_path: str,
    content: str,
    findings: Iterable[Finding],
    *,
    dry_run: bool = False,
) -> FixResult:
    """Apply every fixable finding's transform to ``content``.

    Args:
        file_path: Path of the file the content came from.
        content: Raw file content.
        findings: Findings for this file; non-fixable ones are ignored.
        dry_run: Report what would be fixed without transforming anything.

    Returns:
        FixResult with the new content and the number of transforms that
        changed it. A transform that raises is logged and skipped.
    """
    fixable = [finding for finding in findings if finding.fixable and finding.fix is not None]
    result = FixResult(file_path=file_path, applied=0, content=content, would_fix=fixable)
    if dry_run:
        return result

    current = content
    for finding in fixable:
        fix = finding.fix
        if fix is None:
            continue
        try:
            updated = fix.apply(current)
        except Exception as e:
            logger.warning("Fix for %s on %s failed: %s", finding.rule, file_path, e)
            logger.debug("Fix traceback", exc_info=True)
            result.failed_fixes.append(fix.description)
            continue

        if updated != current:
            current = updated
            result.applied += 1
            result.applied_fixes.append(fix.description)
            logger.debug("Applied fix for %s on %s: %s", finding.rule, file_path, fix.description)

    result.content = current
    return result


def group_findings_by_file(findings: Iterable[Finding]) -> dict[str, list[Finding]]:
    """Group fixable findings by the file they target, in first-seen order."""
    grouped: dict[str, list[Finding]] = {}
    for finding in findings:
        if finding.fixable:
            grouped.setdefault(finding.path, []).append(finding)
    return grouped


def apply_fixes_to_files(
    contents: Mapping[str, str],
    findings: Iterable[Finding],
    *,
    dry_run: bool = False,
) -> list[FixResult]:
    """Apply fixes across several files.

    Args:
        contents: File path to current content. Files with fixable findings
            but no content entry are skipped with a warning.
        findings: Findings of a validation run.
        dry_run: Report only.

    Returns:
        One FixResult per file with fixable findings, in first-seen order.
    """
    results: list[FixResult] = []
    for file_path, file_findings in group_findings_by_file(findings).items():
        if file_path not in contents:
            logger.warning("No content for %s, skipping %d fix(es)", file_path, len(file_findings))
            continue
        results.append(
            apply_fixes(file_path, contents[file_path], file_findings, dry_run=dry_run)
        )
    return results


def preview_fixes(content: str, findings: Iterable[Finding]) -> list[FixPreview]:
    """Describe what each fix would do on its own."""
    previews: list[FixPreview] = []
    for finding in findings:
        if not finding.fixable or finding.fix is None:
            continue
        try:
            changed = finding.fix.apply(content) != content
        except Exception as e:
            logger.warning("Fix preview for %s failed: %s", finding.rule, e)
            changed = False
        previews.append(
            FixPreview(rule=finding.rule, description=finding.fix.description, changed=changed)
        )
    return previews
