"""Tests for wfverify.validators.base module."""

from __future__ import annotations

import pytest

from wfverify.validators import (
    Finding,
    FindingSummary,
    Fix,
    GuideRef,
    RuleMetadata,
    ValidationResult,
)


def _finding(severity: str = "must", **kwargs: object) -> Finding:
    return Finding(
        rule="TEST-RULE",
        severity=severity,  # type: ignore[arg-type]
        path="workflows/main.json",
        message="Something is wrong",
        **kwargs,  # type: ignore[arg-type]
    )


def _fix() -> Fix:
    return Fix(description="Uppercase everything", apply=str.upper)


class TestGuideRef:
    """Tests for GuideRef."""

    def test_describe_with_section(self) -> None:
        """Test a reference with a section cites both."""
        ref = GuideRef("specific/sub-workflows.md", "calledBy Array")
        assert ref.describe() == '.guides/specific/sub-workflows.md > "calledBy Array"'

    def test_describe_without_section(self) -> None:
        """Test a reference without a section cites the file only."""
        ref = GuideRef("integrations/anthropic.md")
        assert ref.describe() == ".guides/integrations/anthropic.md"

    def test_to_dict_omits_missing_section(self) -> None:
        """Test the wire form drops an unset section."""
        assert GuideRef("a.md").to_dict() == {"path": "a.md"}
        assert GuideRef("a.md", "S").to_dict() == {"path": "a.md", "section": "S"}


class TestFinding:
    """Tests for the Finding dataclass."""

    def test_create_with_required_fields_only(self) -> None:
        """Test creating a finding with only required fields."""
        finding = _finding()
        assert finding.rule == "TEST-RULE"
        assert finding.fixable is False
        assert finding.fix is None
        assert finding.line is None
        assert finding.node_id is None

    def test_fixable_requires_fix(self) -> None:
        """Test a fixable finding without a fix is rejected."""
        with pytest.raises(ValueError, match="fixable but has no fix"):
            _finding(fixable=True)

    def test_fix_requires_fixable(self) -> None:
        """Test a fix on a non-fixable finding is rejected."""
        with pytest.raises(ValueError, match="not marked fixable"):
            _finding(fix=_fix())

    def test_unknown_severity_rejected(self) -> None:
        """Test severities outside must/should/nit are rejected."""
        with pytest.raises(ValueError, match="Unknown severity"):
            _finding(severity="error")

    def test_to_dict_minimal(self) -> None:
        """Test unset optionals are omitted from the wire form."""
        assert _finding().to_dict() == {
            "rule": "TEST-RULE",
            "severity": "must",
            "path": "workflows/main.json",
            "message": "Something is wrong",
            "fixable": False,
        }

    def test_to_dict_uses_wire_keys(self) -> None:
        """Test optional fields render with their camelCase wire keys."""
        finding = _finding(
            raw_details="Details",
            node_id="n1",
            line=12,
            documentation_url="https://example.com/docs",
            guide_ref=GuideRef("a.md", "S"),
            fixable=True,
            fix=_fix(),
        )
        data = finding.to_dict()
        assert data["raw_details"] == "Details"
        assert data["nodeId"] == "n1"
        assert data["line"] == 12
        assert data["documentationUrl"] == "https://example.com/docs"
        assert data["guideRef"] == {"path": "a.md", "section": "S"}
        assert data["fixable"] is True
        assert data["fix"] == {"description": "Uppercase everything"}


class TestFindingSummary:
    """Tests for FindingSummary."""

    def test_counts_by_severity(self) -> None:
        """Test every severity is counted separately."""
        findings = [
            _finding("must"),
            _finding("should"),
            _finding("should"),
            _finding("nit"),
            _finding("must", fixable=True, fix=_fix()),
        ]
        summary = FindingSummary.from_findings(findings)
        assert summary == FindingSummary(must=2, should=2, nit=1, fixable=1)

    def test_strict_promotes_should(self) -> None:
        """Test strict mode counts should findings as must."""
        findings = [_finding("must"), _finding("should"), _finding("nit")]
        summary = FindingSummary.from_findings(findings, strict=True)
        assert summary.must == 2
        assert summary.should == 0
        assert summary.nit == 1

    def test_strict_leaves_stored_severity_untouched(self) -> None:
        """Test strict counting does not rewrite findings."""
        finding = _finding("should")
        FindingSummary.from_findings([finding], strict=True)
        assert finding.severity == "should"

    def test_empty(self) -> None:
        """Test an empty list yields zero counts."""
        assert FindingSummary.from_findings([]).to_dict() == {
            "must": 0,
            "should": 0,
            "nit": 0,
            "fixable": 0,
        }


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_valid_without_must(self) -> None:
        """Test should and nit findings do not fail a normal run."""
        result = ValidationResult(findings=[_finding("should"), _finding("nit")])
        assert result.valid is True

    def test_invalid_with_must(self) -> None:
        """Test a single must finding fails the run."""
        result = ValidationResult(findings=[_finding("must")])
        assert result.valid is False

    def test_strict_fails_on_should(self) -> None:
        """Test strict mode fails on should findings."""
        result = ValidationResult(findings=[_finding("should")], strict=True)
        assert result.valid is False
        assert result.summary.must == 1

    def test_summary_tracks_findings(self) -> None:
        """Test the summary is recomputed after findings change."""
        result = ValidationResult()
        assert result.valid is True
        result.findings.append(_finding("must"))
        assert result.summary.must == 1
        assert result.valid is False

    def test_fixable_findings(self) -> None:
        """Test only findings carrying a fix are returned."""
        fixable = _finding(fixable=True, fix=_fix())
        result = ValidationResult(findings=[_finding(), fixable])
        assert result.fixable_findings == [fixable]

    def test_to_dict(self) -> None:
        """Test the report shape."""
        result = ValidationResult(findings=[_finding("should")], files_validated=["a.json"])
        data = result.to_dict()
        assert data["valid"] is True
        assert data["filesValidated"] == ["a.json"]
        assert data["summary"] == {"must": 0, "should": 1, "nit": 0, "fixable": 0}
        assert data["findings"][0]["rule"] == "TEST-RULE"


class TestRuleMetadata:
    """Tests for RuleMetadata."""

    def test_to_dict(self) -> None:
        """Test optional metadata is rendered only when set."""
        metadata = RuleMetadata(
            id="X-1",
            name="x_one",
            severity="should",
            description="Desc",
            details="Details",
        )
        data = metadata.to_dict()
        assert data == {
            "id": "X-1",
            "name": "x_one",
            "severity": "should",
            "description": "Desc",
            "details": "Details",
            "fixable": False,
        }

    def test_to_dict_with_category_and_guide(self) -> None:
        """Test category and guide reference are included when set."""
        metadata = RuleMetadata(
            id="X-1",
            name="x_one",
            severity="must",
            description="Desc",
            details="Details",
            fixable=True,
            category="triggers",
            guide_ref=GuideRef("a.md"),
        )
        data = metadata.to_dict()
        assert data["category"] == "triggers"
        assert data["guideRef"] == {"path": "a.md"}
        assert data["fixable"] is True
