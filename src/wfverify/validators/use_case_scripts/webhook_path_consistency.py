"""Script WEBHOOK-PATH-CONSISTENCY: trigger URLs match webhook node paths.

HTTP triggers (``url``) and schedule triggers with a ``manualTriggerUrl``
must use ``{{ORGSECRET_N8N_BASE_URL_TERCESORG}}/webhook/<path>``, and
``<path>`` must be the path of a webhook node in
``workflows/<workflowTemplateId>.json``. Mismatches make calls fail at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from wfverify.use_case_config import (
    WORKFLOWS_DIRNAME,
    HttpTrigger,
    ProcessConfiguration,
    ScheduleTrigger,
    load_use_case_config,
)
from wfverify.validators.base import Finding, GuideRef, RuleMetadata
from wfverify.validators.placeholders import BASE_URL_PLACEHOLDER
from wfverify.validators.registry import PathScript
from wfverify.validators.use_case_scripts.common import (
    WEBHOOK_NODE_TYPE,
    json_nodes,
    read_workflow_files,
)

WEBHOOK_PREFIX = "/webhook/"

HTTP_GUIDE_REF = GuideRef("specific/http-triggers.md", "URL Path Pattern")
SCHEDULE_GUIDE_REF = GuideRef("specific/schedule-triggers.md", "Important: Path Must Match")

metadata = RuleMetadata(
    id="WEBHOOK-PATH-CONSISTENCY",
    name="webhook_path_consistency",
    severity="must",
    description="HTTP trigger URLs must have correct structure and match webhook node paths",
    details=(
        f"Config URLs must start with {BASE_URL_PLACEHOLDER}{WEBHOOK_PREFIX} and the path "
        "portion must match the workflow webhook node path"
    ),
    category="references",
    guide_ref=HTTP_GUIDE_REF,
)


@dataclass(frozen=True)
class TriggerUrl:
    """A webhook URL declared by a config trigger."""

    workflow_template_id: str
    trigger_id: str
    url: str
    field: str
    guide_ref: GuideRef


def url_structure_error(url: str) -> str | None:
    """Describe what is wrong with a trigger URL, or None when it is well-formed."""
    if not url.startswith(BASE_URL_PLACEHOLDER):
        return f"URL must start with {BASE_URL_PLACEHOLDER}"
    if not url[len(BASE_URL_PLACEHOLDER) :].startswith(WEBHOOK_PREFIX):
        return f"URL must include {WEBHOOK_PREFIX} after the base URL"
    return None


def _trigger_urls(configuration: ProcessConfiguration) -> list[TriggerUrl]:
    urls: list[TriggerUrl] = []
    for entry in configuration.workflows:
        for trigger in entry.triggers:
            if isinstance(trigger, HttpTrigger) and trigger.url:
                url, field, guide_ref = trigger.url, "url", HTTP_GUIDE_REF
            elif isinstance(trigger, ScheduleTrigger) and trigger.manual_trigger_url:
                url, field, guide_ref = (
                    trigger.manual_trigger_url,
                    "manualTriggerUrl",
                    SCHEDULE_GUIDE_REF,
                )
            else:
                continue
            urls.append(
                TriggerUrl(
                    workflow_template_id=entry.workflow_template_id,
                    trigger_id=trigger.trigger_id or "",
                    url=url,
                    field=field,
                    guide_ref=guide_ref,
                )
            )
    return urls


def _webhook_paths(use_case_path: Path) -> dict[str, list[str] | None]:
    """Map template ids to their webhook node paths (None for unparsable files)."""
    paths: dict[str, list[str] | None] = {}
    for workflow in read_workflow_files(use_case_path):
        data = workflow.load_json()
        if data is None:
            paths[workflow.template_id] = None
            continue
        paths[workflow.template_id] = [
            node["parameters"]["path"]
            for node in json_nodes(data)
            if node.get("type") == WEBHOOK_NODE_TYPE
            and isinstance(node.get("parameters"), dict)
            and isinstance(node["parameters"].get("path"), str)
            and node["parameters"]["path"]
        ]
    return paths


def check_webhook_path_consistency(use_case_path: Path) -> list[Finding]:
    use_case_path = Path(use_case_path)
    load = load_use_case_config(use_case_path)
    if load.configuration is None:
        return []

    trigger_urls = _trigger_urls(load.configuration)
    if not trigger_urls:
        return []

    config_path = str(load.config_path)
    workflows_dir = use_case_path / WORKFLOWS_DIRNAME

    def finding(path: str, message: str, raw_details: str, guide_ref: GuideRef) -> Finding:
        return Finding(
            rule=metadata.id,
            severity=metadata.severity,
            path=path,
            message=message,
            raw_details=raw_details,
            guide_ref=guide_ref,
        )

    if not workflows_dir.is_dir():
        return [
            finding(
                config_path,
                f'Trigger "{trigger.trigger_id}" in workflow "{trigger.workflow_template_id}" '
                "has URL but no workflows folder exists",
                "Create a workflows folder with the corresponding workflow JSON file",
                trigger.guide_ref,
            )
            for trigger in trigger_urls
        ]

    webhook_paths = _webhook_paths(use_case_path)
    findings: list[Finding] = []

    for trigger in trigger_urls:
        see_guide = f"See documentation:\n- {trigger.guide_ref.describe()}"
        workflow_id = trigger.workflow_template_id
        workflow_path = str(workflows_dir / f"{workflow_id}.json")

        structure_error = url_structure_error(trigger.url)
        if structure_error is not None:
            findings.append(
                finding(
                    config_path,
                    f'Invalid {trigger.field} structure in trigger "{trigger.trigger_id}" of '
                    f'workflow "{workflow_id}": {structure_error}',
                    f"The {trigger.field} must follow the pattern: "
                    f"{BASE_URL_PLACEHOLDER}{WEBHOOK_PREFIX}<path>\n\n"
                    f"Current value: {trigger.url}\n\n{see_guide}",
                    trigger.guide_ref,
                )
            )
            continue

        expected_path = trigger.url[len(BASE_URL_PLACEHOLDER) + len(WEBHOOK_PREFIX) :]

        if workflow_id not in webhook_paths:
            findings.append(
                finding(
                    config_path,
                    f'Cannot find workflow file for "{workflow_id}" to validate webhook path',
                    f'The trigger "{trigger.trigger_id}" references workflow "{workflow_id}" '
                    f'but no workflow file "{workflow_id}.json" was found in the workflows folder.',
                    trigger.guide_ref,
                )
            )
            continue

        actual_paths = webhook_paths[workflow_id]
        if actual_paths is None:
            # Invalid JSON is reported by CONFIG-WORKFLOWS
            continue

        if not actual_paths:
            findings.append(
                finding(
                    workflow_path,
                    f'Workflow "{workflow_id}" has no webhook node but trigger '
                    f'"{trigger.trigger_id}" expects one',
                    f'The trigger "{trigger.trigger_id}" has {trigger.field} set but the '
                    "workflow has no webhook node.\n\n"
                    f"Expected webhook path: {expected_path}\n\n"
                    "Add a webhook node with the matching path to the workflow, or remove "
                    f"the trigger URL from config.py.\n\n{see_guide}",
                    trigger.guide_ref,
                )
            )
            continue

        if expected_path not in actual_paths:
            actual = ", ".join(f'"{path}"' for path in actual_paths)
            findings.append(
                finding(
                    workflow_path,
                    f'Webhook path mismatch in "{workflow_id}": config expects '
                    f'"{expected_path}" but workflow has {actual}',
                    f"The path in the config.py trigger {trigger.field} must match the "
                    "webhook node path in the workflow JSON.\n\n"
                    f"Config {trigger.field} path: {expected_path}\n"
                    f"Workflow webhook path(s): {actual}\n\n"
                    f"Either update the {trigger.field} in config.py or the webhook node "
                    f"path in the workflow.\n\n{see_guide}",
                    trigger.guide_ref,
                )
            )

    return findings


script = PathScript(metadata, check_webhook_path_consistency)
