"""Core models for the wfverify validation framework.

Provides the finding type shared by every rule and script, the derived
severity summary, the aggregated validation result and rule metadata.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Literal

Severity = Literal["must", "should", "nit"]

SEVERITIES: tuple[Severity, ...] = ("must", "should", "nit")


@dataclass(frozen=True)
class GuideRef:
    """Pointer to the guide section that explains a rule.

    Attributes:
        path: Path relative to the guides folder (e.g., "specific/sub-workflows.md").
        section: Optional section title within the guide.
    """

    path: str
    section: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"path": self.path}
        if self.section:
            data["section"] = self.section
        return data

    def describe(self) -> str:
        """Render the reference the way remediation text cites it."""
        if self.section:
            return f'.guides/{self.path} > "{self.section}"'
        return f".guides/{self.path}"


@dataclass(frozen=True)
class Fix:
    """Auto-fix descriptor attached to a fixable finding.

    Attributes:
        description: Human-readable description of what the fix does.
        apply: Pure transform from the file's raw content to the fixed content.
            Must be deterministic and must return the input unchanged when
            there is nothing left to fix.
    """

    description: str
    apply: Callable[[str], str]


@dataclass
class Finding:
    """A single issue reported by a rule or script.

    Attributes:
        rule: Stable identifier of the rule that produced the finding
            (e.g., "TRIGGERS-REQUIRED").
        severity: "must" (blocking), "should" or "nit".
        path: File or folder the issue belongs to.
        message: One-line summary.
        raw_details: Optional multi-line remediation text.
        node_id: Optional workflow node locator for graph-based findings.
        line: Optional 1-based line locator for text-based findings.
        documentation_url: Optional link to external documentation.
        guide_ref: Optional pointer into the guides folder.
        fixable: True when an auto-fix is attached.
        fix: The auto-fix, present if and only if ``fixable`` is True.

    Raises:
        ValueError: If ``fixable`` and ``fix`` disagree, or the severity is unknown.
    """

    rule: str
    severity: Severity
    path: str
    message: str
    raw_details: str | None = None
    node_id: str | None = None
    line: int | None = None
    documentation_url: str | None = None
    guide_ref: GuideRef | None = None
    fixable: bool = False
    fix: Fix | None = None

    def __post_init__(self) -> None:
        if self.severity not in SEVERITIES:
            raise ValueError(f"Unknown severity '{self.severity}' for rule {self.rule}")
        if self.fixable and self.fix is None:
            raise ValueError(f"Finding for rule {self.rule} is fixable but has no fix")
        if self.fix is not None and not self.fixable:
            raise ValueError(f"Finding for rule {self.rule} has a fix but is not marked fixable")

    def to_dict(self) -> dict[str, Any]:
        """Render the finding in its wire shape, omitting unset optionals."""
        data: dict[str, Any] = {
            "rule": self.rule,
            "severity": self.severity,
            "path": self.path,
            "message": self.message,
        }
        if self.raw_details:
            data["raw_details"] = self.raw_details
        if self.node_id is not None:
            data["nodeId"] = self.node_id
        if self.line is not None:
            data["line"] = self.line
        if self.documentation_url:
            data["documentationUrl"] = self.documentation_url
        if self.guide_ref is not None:
            data["guideRef"] = self.guide_ref.to_dict()
        data["fixable"] = self.fixable
        if self.fix is not None:
            data["fix"] = {"description": self.fix.description}
        return data


@dataclass(frozen=True)
class FindingSummary:
    """Counts derived from a list of findings.

    Attributes:
        must: Number of blocking findings (includes promoted "should" in strict mode).
        should: Number of "should" findings (zero in strict mode).
        nit: Number of "nit" findings.
        fixable: Number of findings carrying an auto-fix.
    """

    must: int = 0
    should: int = 0
    nit: int = 0
    fixable: int = 0

    @classmethod
    def from_findings(cls, findings: Iterable[Finding], strict: bool = False) -> FindingSummary:
        must = should = nit = fixable = 0
        for finding in findings:
            if finding.severity == "must":
                must += 1
            elif finding.severity == "should":
                should += 1
            else:
                nit += 1
            if finding.fixable:
                fixable += 1

        # Strict mode promotes for counting only; stored severities stay untouched.
        if strict:
            must, should = must + should, 0

        return cls(must=must, should=should, nit=nit, fixable=fixable)

    def to_dict(self) -> dict[str, int]:
        return {
            "must": self.must,
            "should": self.should,
            "nit": self.nit,
            "fixable": self.fixable,
        }


@dataclass
class ValidationResult:
    """Aggregated outcome of one validation run.

    The summary and pass/fail verdict are always recomputed from ``findings``
    so they can never drift from the findings list.

    Attributes:
        findings: All findings, in execution order.
        files_validated: Every file or folder the run inspected.
        strict: Whether "should" findings count as blocking.
    """

    findings: list[Finding] = field(default_factory=list)
    files_validated: list[str] = field(default_factory=list)
    strict: bool = False

    @property
    def summary(self) -> FindingSummary:
        return FindingSummary.from_findings(self.findings, strict=self.strict)

    @property
    def valid(self) -> bool:
        return self.summary.must == 0

    @property
    def fixable_findings(self) -> list[Finding]:
        return [finding for finding in self.findings if finding.fixable]

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "findings": [finding.to_dict() for finding in self.findings],
            "summary": self.summary.to_dict(),
            "filesValidated": list(self.files_validated),
        }


@dataclass(frozen=True)
class RuleMetadata:
    """Descriptive metadata for a rule or script.

    Attributes:
        id: Unique rule identifier, shared namespace across all rule kinds.
        name: snake_case name of the rule.
        severity: Default severity of the findings the rule emits.
        description: One-line description.
        details: Remediation guidance shown in rule listings.
        fixable: Whether the rule can attach auto-fixes.
        category: Optional grouping (e.g., "triggers", "placeholder").
        guide_ref: Optional pointer into the guides folder.
    """

    id: str
    name: str
    severity: Severity
    description: str
    details: str
    fixable: bool = False
    category: str | None = None
    guide_ref: GuideRef | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "severity": self.severity,
            "description": self.description,
            "details": self.details,
            "fixable": self.fixable,
        }
        if self.category:
            data["category"] = self.category
        if self.guide_ref is not None:
            data["guideRef"] = self.guide_ref.to_dict()
        return data
