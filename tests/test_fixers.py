"""Tests for wfverify.fixers module."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from wfverify.fixers import (
    FixPreview,
    apply_fixes,
    apply_fixes_to_files,
    group_findings_by_file,
    preview_fixes,
)
from wfverify.validators import Finding, Fix, ValidationRunner


def _finding(
    rule: str,
    apply: Callable[[str], str] | None = None,
    path: str = "wf.json",
    description: str | None = None,
) -> Finding:
    fix = Fix(description=description or f"fix {rule}", apply=apply) if apply else None
    return Finding(
        rule=rule,
        severity="must",
        path=path,
        message=f"{rule} message",
        fixable=fix is not None,
        fix=fix,
    )


def _upper(content: str) -> str:
    return content.upper()


def _append_bang(content: str) -> str:
    return content if content.endswith("!") else content + "!"


def _explode(content: str) -> str:
    raise RuntimeError("cannot fix")


class TestApplyFixes:
    """Tests for apply_fixes."""

    def test_fixes_chain_in_order(self) -> None:
        """Test each fix sees the output of the previous one."""
        result = apply_fixes(
            "wf.json", "abc", [_finding("A-1", _upper), _finding("B-1", _append_bang)]
        )
        assert result.content == "ABC!"
        assert result.applied == 2
        assert result.applied_fixes == ["fix A-1", "fix B-1"]
        assert result.failed_fixes == []

    def test_noop_fix_not_counted(self) -> None:
        """Test transforms that leave the content alone are not counted."""
        result = apply_fixes("wf.json", "done!", [_finding("B-1", _append_bang)])
        assert result.content == "done!"
        assert result.applied == 0
        assert result.applied_fixes == []

    def test_non_fixable_ignored(self) -> None:
        """Test findings without a fix are not part of the result."""
        result = apply_fixes("wf.json", "abc", [_finding("A-1"), _finding("B-1", _upper)])
        assert [finding.rule for finding in result.would_fix] == ["B-1"]
        assert result.applied == 1

    def test_raising_fix_skipped(self) -> None:
        """Test a failing transform is recorded and the others still run."""
        findings = [
            _finding("A-1", _explode, description="explode"),
            _finding("B-1", _upper),
        ]
        result = apply_fixes("wf.json", "abc", findings)
        assert result.content == "ABC"
        assert result.applied == 1
        assert result.failed_fixes == ["explode"]

    def test_dry_run(self) -> None:
        """Test dry-run reports fixable findings and changes nothing."""
        findings = [_finding("A-1", _upper), _finding("B-1"), _finding("C-1", _append_bang)]
        result = apply_fixes("wf.json", "abc", findings, dry_run=True)
        assert result.content == "abc"
        assert result.applied == 0
        assert [finding.rule for finding in result.would_fix] == ["A-1", "C-1"]

    def test_real_findings(self, valid_workflow: dict[str, Any]) -> None:
        """Test fixes produced by the built-in scripts compose."""
        valid_workflow["active"] = False
        valid_workflow["versionId"] = "abc"
        valid_workflow["settings"] = {}
        content = json.dumps(valid_workflow)
        findings = ValidationRunner().check_workflow_content(content, "wf.json").findings

        result = apply_fixes("wf.json", content, findings)
        assert result.applied == 4

        fixed = json.loads(result.content)
        assert "active" not in fixed
        assert "versionId" not in fixed
        assert fixed["settings"]["executionOrder"] == "v1"
        assert ValidationRunner().check_workflow_content(result.content, "wf.json").valid


class TestGroupFindingsByFile:
    """Tests for group_findings_by_file."""

    def test_groups_fixable_in_first_seen_order(self) -> None:
        """Test grouping drops non-fixable findings and keeps file order."""
        findings = [
            _finding("A-1", _upper, path="b.json"),
            _finding("B-1", path="a.json"),
            _finding("C-1", _upper, path="a.json"),
            _finding("D-1", _upper, path="b.json"),
        ]
        grouped = group_findings_by_file(findings)
        assert list(grouped) == ["b.json", "a.json"]
        assert [finding.rule for finding in grouped["b.json"]] == ["A-1", "D-1"]
        assert [finding.rule for finding in grouped["a.json"]] == ["C-1"]

    def test_no_fixable(self) -> None:
        """Test nothing is grouped without fixable findings."""
        assert group_findings_by_file([_finding("A-1")]) == {}


class TestApplyFixesToFiles:
    """Tests for apply_fixes_to_files."""

    def test_per_file_results(self) -> None:
        """Test each file is fixed from its own content."""
        findings = [
            _finding("A-1", _upper, path="one.json"),
            _finding("B-1", _append_bang, path="two.json"),
        ]
        results = apply_fixes_to_files({"one.json": "a", "two.json": "b"}, findings)
        assert [(result.file_path, result.content) for result in results] == [
            ("one.json", "A"),
            ("two.json", "b!"),
        ]

    def test_missing_content_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test files without content are skipped with a warning."""
        findings = [
            _finding("A-1", _upper, path="one.json"),
            _finding("B-1", _upper, path="gone.json"),
        ]
        results = apply_fixes_to_files({"one.json": "a"}, findings)
        assert [result.file_path for result in results] == ["one.json"]
        assert "No content for gone.json" in caplog.text

    def test_dry_run(self) -> None:
        """Test dry-run is passed through to every file."""
        results = apply_fixes_to_files(
            {"one.json": "a"}, [_finding("A-1", _upper, path="one.json")], dry_run=True
        )
        assert results[0].content == "a"
        assert results[0].applied == 0


class TestPreviewFixes:
    """Tests for preview_fixes."""

    def test_each_fix_alone(self) -> None:
        """Test previews run each fix against the original content."""
        findings = [
            _finding("A-1", _append_bang),
            _finding("B-1"),
            _finding("C-1", _explode, description="explode"),
            _finding("D-1", _upper),
        ]
        assert preview_fixes("ok!", findings) == [
            FixPreview(rule="A-1", description="fix A-1", changed=False),
            FixPreview(rule="C-1", description="explode", changed=False),
            FixPreview(rule="D-1", description="fix D-1", changed=True),
        ]
