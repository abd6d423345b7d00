"""Result types for the wfverify fixer.

The fixer works on raw file content only; writing results back to disk is
the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from wfverify.validators.base import Finding


@dataclass
class FixResult:
    """Result of applying fixes to one file.

    Attributes:
        file_path: Path of the file the fixes target.
        applied: Number of transforms that changed the content (0 in dry-run).
        content: Post-fix content, or the input unchanged in dry-run.
        would_fix: Fixable findings considered for this file.
        applied_fixes: Descriptions of the transforms that changed the content.
        failed_fixes: Descriptions of the transforms that raised and were skipped.
    """

    file_path: str
    applied: int
    content: str
    would_fix: list[Finding] = field(default_factory=list)
    applied_fixes: list[str] = field(default_factory=list)
    failed_fixes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FixPreview:
    """What a single fix would do, computed without changing anything.

    Attributes:
        rule: Rule id of the finding carrying the fix.
        description: Description of the fix.
        changed: Whether applying the fix alone would change the content.
    """

    rule: str
    description: str
    changed: bool
