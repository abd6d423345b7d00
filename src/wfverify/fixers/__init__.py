"""Fixer framework for applying auto-fixes to workflow and config content."""

from __future__ import annotations

from wfverify.fixers.base import FixPreview, FixResult
from wfverify.fixers.engine import (
    apply_fixes,
    apply_fixes_to_files,
    group_findings_by_file,
    preview_fixes,
)

__all__ = [
    # Base types
    "FixPreview",
    "FixResult",
    # Engine
    "apply_fixes",
    "apply_fixes_to_files",
    "group_findings_by_file",
    "preview_fixes",
]
