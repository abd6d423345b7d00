"""Script WORKFLOW-SETTINGS: workflows carry the platform's required settings.

- ``settings.errorWorkflow`` routes failures to the global error workflow
- ``settings.executionOrder`` pins v1 (depth-first) execution
"""

from __future__ import annotations

from wfverify.validators.base import Finding, Fix, RuleMetadata
from wfverify.validators.placeholders import ERROR_WORKFLOW_PLACEHOLDER
from wfverify.validators.registry import ContentScript
from wfverify.validators.workflow_scripts.common import dump_workflow, load_workflow

REQUIRED_SETTINGS: dict[str, str] = {
    "errorWorkflow": ERROR_WORKFLOW_PLACEHOLDER,
    "executionOrder": "v1",
}

metadata = RuleMetadata(
    id="WORKFLOW-SETTINGS",
    name="workflow_settings",
    severity="must",
    description="Workflows must have required settings (errorWorkflow, executionOrder)",
    details="Add settings.errorWorkflow and settings.executionOrder to your workflow",
    fixable=True,
    category="settings",
)


def _set_setting(key: str, value: str, description: str) -> Fix:
    def apply(content: str) -> str:
        data = load_workflow(content)
        if data is None:
            return content
        settings = data.get("settings")
        if not isinstance(settings, dict):
            settings = data["settings"] = {}
        if settings.get(key) == value:
            return content
        settings[key] = value
        return dump_workflow(data)

    return Fix(description=description, apply=apply)


def check_workflow_settings(content: str, path: str) -> list[Finding]:
    data = load_workflow(content)
    if data is None:
        return []

    settings = data.get("settings")
    if not isinstance(settings, dict):
        settings = {}

    findings: list[Finding] = []
    for key, required in REQUIRED_SETTINGS.items():
        actual = settings.get(key)
        if not actual:
            message = f"Missing required setting: {key}"
            raw_details = f'Add "{key}": "{required}" to the settings object'
            description = f"Add {key} setting"
        elif actual != required:
            message = f'Setting {key} has wrong value: "{actual}"'
            raw_details = f'Change to: "{required}"'
            description = f"Fix {key} setting"
        else:
            continue

        findings.append(
            Finding(
                rule=metadata.id,
                severity=metadata.severity,
                path=path,
                message=message,
                raw_details=raw_details,
                fixable=True,
                fix=_set_setting(key, required, description),
            )
        )
    return findings


script = ContentScript(metadata, check_workflow_settings)
