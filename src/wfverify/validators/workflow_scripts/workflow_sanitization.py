"""Script WORKFLOW-SANITIZATION: no n8n-generated properties under version control."""

from __future__ import annotations

from wfverify.validators.base import Finding, Fix, RuleMetadata
from wfverify.validators.registry import ContentScript
from wfverify.validators.workflow_scripts.common import dump_workflow, load_workflow

# Environment-specific properties n8n adds on save, with the reason to drop each
FORBIDDEN_PROPERTIES: dict[str, str] = {
    "id": "n8n assigns this when the workflow is saved - it varies per environment",
    "versionId": "n8n updates this on every save - it varies per environment",
    "meta": "n8n metadata including instanceId - it varies per environment",
    "active": "n8n activation status - workflows should be activated through deployment",
    "tags": "n8n tags are environment-specific - use config.py for categorization",
    "pinData": "n8n pinned execution data - this is development/debug data only",
}

metadata = RuleMetadata(
    id="WORKFLOW-SANITIZATION",
    name="workflow_sanitization",
    severity="must",
    description=(
        "Workflows must not contain n8n-generated properties "
        "(id, versionId, meta, active, tags, pinData)"
    ),
    details="Remove n8n-generated properties before committing. These are environment-specific.",
    fixable=True,
    category="sanitization",
)


def _remove_property(prop: str) -> Fix:
    def apply(content: str) -> str:
        data = load_workflow(content)
        if data is None or prop not in data:
            return content
        del data[prop]
        return dump_workflow(data)

    return Fix(description=f'Remove "{prop}" property', apply=apply)


def check_workflow_sanitization(content: str, path: str) -> list[Finding]:
    data = load_workflow(content)
    if data is None:
        return []

    return [
        Finding(
            rule=metadata.id,
            severity=metadata.severity,
            path=path,
            message=f'Workflow contains forbidden n8n property: "{prop}"',
            raw_details=f'Remove the "{prop}" property. {explanation}',
            fixable=True,
            fix=_remove_property(prop),
        )
        for prop, explanation in FORBIDDEN_PROPERTIES.items()
        if prop in data
    ]


script = ContentScript(metadata, check_workflow_sanitization)
