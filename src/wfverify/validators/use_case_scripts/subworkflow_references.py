"""Script SUBWKFL-REFERENCES: SUBWKFL placeholders name declared workflows."""

from __future__ import annotations

from pathlib import Path

from wfverify.use_case_config import load_use_case_config
from wfverify.validators.base import Finding, GuideRef, RuleMetadata
from wfverify.validators.placeholders import SUBWORKFLOW_REFERENCE_PATTERN, line_at
from wfverify.validators.registry import PathScript
from wfverify.validators.use_case_scripts.common import read_workflow_files

metadata = RuleMetadata(
    id="SUBWKFL-REFERENCES",
    name="subworkflow_references",
    severity="must",
    description="SUBWKFL placeholders must reference existing workflow template IDs",
    details="Every {{SUBWKFL_<templateId>_LFKWBUS}} must match a workflowTemplateId in config.py",
    category="references",
    guide_ref=GuideRef("specific/placeholder-patterns.md", "Sub-Workflow References (SUBWKFL)"),
)


def check_subworkflow_references(use_case_path: Path) -> list[Finding]:
    load = load_use_case_config(use_case_path)
    if load.configuration is None:
        return []

    template_ids = load.configuration.template_ids
    available = ", ".join(template_ids) or "(none)"

    findings: list[Finding] = []
    for workflow in read_workflow_files(Path(use_case_path)):
        reported: set[str] = set()
        for match in SUBWORKFLOW_REFERENCE_PATTERN.finditer(workflow.content):
            ref = match.group(1)
            if ref in template_ids or ref in reported:
                continue
            reported.add(ref)
            findings.append(
                Finding(
                    rule=metadata.id,
                    severity=metadata.severity,
                    path=str(workflow.path),
                    message=f'SUBWKFL placeholder references unknown template ID: "{ref}"',
                    raw_details=(
                        f"The placeholder {match.group(0)} references a template ID that "
                        f"doesn't exist in config.py. Available template IDs: {available}"
                    ),
                    line=line_at(workflow.content, match.start()),
                    guide_ref=metadata.guide_ref,
                )
            )
    return findings


script = PathScript(metadata, check_subworkflow_references)
