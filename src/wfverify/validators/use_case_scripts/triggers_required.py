"""Script TRIGGERS-REQUIRED: every workflow declares at least one trigger.

Works on the configuration source text, so it reports even when
``config.py`` cannot be executed.
"""

from __future__ import annotations

from pathlib import Path

from wfverify.use_case_config import CONFIG_FILENAME
from wfverify.validators.base import Finding, GuideRef, RuleMetadata
from wfverify.validators.placeholders import line_at
from wfverify.validators.registry import PathScript
from wfverify.validators.use_case_scripts.blocks import extract_blocks

TRIGGER_TYPES: dict[str, str] = {
    "http": "for webhook-triggered workflows",
    "schedule": "for cron/scheduled workflows",
    "service_event": "for third-party service triggers (Gmail, Google Drive, Slack, etc.)",
    "subworkflow": "for workflows called by other workflows",
}

GUIDE_REF = GuideRef(
    "specific/third-party-triggers.md", "Config for Third-Party Triggered Workflows"
)

metadata = RuleMetadata(
    id="TRIGGERS-REQUIRED",
    name="triggers_required",
    severity="must",
    description="Every workflow must declare at least one trigger",
    details="Add a non-empty triggers list to each workflow in config.py",
    category="triggers",
    guide_ref=GUIDE_REF,
)


def _raw_details(template_id: str, state: str) -> str:
    kinds = "\n".join(f"- type: '{kind}' - {usage}" for kind, usage in TRIGGER_TYPES.items())
    return (
        f'The triggers array for workflow "{template_id}" is {state}.\n\n'
        f"Every workflow must have at least one trigger. Common trigger types:\n{kinds}\n\n"
        f"See documentation:\n- {GUIDE_REF.describe()}"
    )


def check_triggers_required(use_case_path: Path) -> list[Finding]:
    config_path = Path(use_case_path) / CONFIG_FILENAME
    try:
        source = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        # Missing or unreadable config.py is reported by CONFIG-EXPORTS
        return []

    findings: list[Finding] = []
    for block in extract_blocks(source):
        triggers = block.find_list(source, "triggers")
        if triggers.state == "present":
            continue
        findings.append(
            Finding(
                rule=metadata.id,
                severity=metadata.severity,
                path=str(config_path),
                message=(
                    f'Workflow "{block.template_id}" has no triggers defined. '
                    "Every workflow must have at least one trigger."
                ),
                raw_details=_raw_details(
                    block.template_id, "empty" if triggers.state == "empty" else "missing"
                ),
                line=line_at(source, block.start),
                guide_ref=metadata.guide_ref,
            )
        )
    return findings


script = PathScript(metadata, check_triggers_required)
