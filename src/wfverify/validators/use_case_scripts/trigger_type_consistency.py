"""Script TRIGGER-TYPE-CONSISTENCY: declared trigger types match the workflow.

The workflow's primary trigger decides which config trigger types fit:

- ``http`` needs a webhook node
- ``schedule`` needs a scheduleTrigger node
- ``subworkflow`` needs an executeWorkflowTrigger node
- ``service_event`` fits any other trigger node (Gmail, Slack, ...)

Non-webhook triggers take precedence when picking the primary trigger, since
a workflow may pair a service trigger with a webhook for manual runs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from wfverify.use_case_config import load_use_case_config
from wfverify.validators.base import Finding, GuideRef, RuleMetadata
from wfverify.validators.registry import PathScript
from wfverify.validators.use_case_scripts.common import (
    WEBHOOK_NODE_TYPE,
    json_nodes,
    read_workflow_files,
)

SCHEDULE_NODE_TYPE = "n8n-nodes-base.scheduleTrigger"

TriggerCategory = Literal["webhook", "schedule", "subworkflow", "service_trigger", "unknown"]

_TRIGGER_PATTERN = re.compile(r"trigger", re.IGNORECASE)

# Config trigger type each node category calls for
SUGGESTED_TYPES: dict[str, str] = {
    "webhook": "http",
    "schedule": "schedule",
    "subworkflow": "subworkflow",
    "service_trigger": "service_event",
}

GUIDE_REF = GuideRef(
    "specific/third-party-triggers.md", "Config for Third-Party Triggered Workflows"
)

metadata = RuleMetadata(
    id="TRIGGER-TYPE-CONSISTENCY",
    name="trigger_type_consistency",
    severity="must",
    description="Config trigger type must match the actual trigger node in the workflow",
    details=(
        "Use type 'http' for webhook nodes, 'schedule' for schedule triggers, 'subworkflow' "
        "for Execute Workflow Triggers and 'service_event' for third-party trigger nodes"
    ),
    category="triggers",
    guide_ref=GUIDE_REF,
)


@dataclass(frozen=True)
class WorkflowTrigger:
    """A trigger node found in a workflow file."""

    node_type: str
    node_name: str
    category: TriggerCategory


def categorize_node_type(node_type: str) -> TriggerCategory:
    if node_type == WEBHOOK_NODE_TYPE:
        return "webhook"
    if node_type == SCHEDULE_NODE_TYPE:
        return "schedule"
    if "executeworkflowtrigger" in node_type.lower():
        return "subworkflow"
    if _TRIGGER_PATTERN.search(node_type):
        return "service_trigger"
    return "unknown"


def primary_trigger(triggers: list[WorkflowTrigger]) -> WorkflowTrigger | None:
    for trigger in triggers:
        if trigger.category not in ("webhook", "unknown"):
            return trigger
    for trigger in triggers:
        if trigger.category == "webhook":
            return trigger
    return triggers[0] if triggers else None


def compatibility_error(config_type: str, primary: WorkflowTrigger) -> str | None:
    """Describe why a config trigger type does not fit the primary trigger.

    Unknown config types are not checked.
    """
    category = primary.category
    if config_type in ("http", "schedule", "subworkflow"):
        compatible = SUGGESTED_TYPES.get(category) == config_type
    elif config_type == "service_event":
        compatible = category not in ("webhook", "schedule", "subworkflow")
    else:
        return None

    if compatible:
        return None
    return (
        f"Config declares type '{config_type}' but the workflow's primary trigger is a "
        f"{category} node ({primary.node_type}). "
        f"Use type: '{SUGGESTED_TYPES.get(category, 'service_event')}' instead."
    )


def _workflow_triggers(use_case_path: Path) -> dict[str, list[WorkflowTrigger]]:
    triggers: dict[str, list[WorkflowTrigger]] = {}
    for workflow in read_workflow_files(use_case_path):
        found: list[WorkflowTrigger] = []
        for node in json_nodes(workflow.load_json()):
            node_type = node.get("type")
            if not isinstance(node_type, str):
                continue
            category = categorize_node_type(node_type)
            if category != "unknown":
                name = node.get("name")
                found.append(
                    WorkflowTrigger(
                        node_type=node_type,
                        node_name=name if isinstance(name, str) and name else node_type,
                        category=category,
                    )
                )
        triggers[workflow.template_id] = found
    return triggers


def check_trigger_type_consistency(use_case_path: Path) -> list[Finding]:
    load = load_use_case_config(use_case_path)
    if load.configuration is None:
        return []

    workflow_triggers = _workflow_triggers(Path(use_case_path))
    findings: list[Finding] = []

    for entry in load.configuration.workflows:
        primary = primary_trigger(workflow_triggers.get(entry.workflow_template_id, []))
        if primary is None:
            # No workflow file or no trigger node; other scripts report it
            continue

        for trigger in entry.triggers:
            error = compatibility_error(trigger.type, primary)
            if error is None:
                continue
            findings.append(
                Finding(
                    rule=metadata.id,
                    severity=metadata.severity,
                    path=str(load.config_path),
                    message=(
                        f'Trigger type mismatch in workflow "{entry.workflow_template_id}": '
                        f"{error}"
                    ),
                    raw_details=(
                        f"The config.py trigger type '{trigger.type}' does not match the "
                        "workflow's actual trigger node.\n\n"
                        f"Workflow trigger node: {primary.node_type} ({primary.node_name})\n"
                        f"Detected category: {primary.category}\n"
                        f"Config trigger type: {trigger.type}\n\n"
                        "Update the trigger type in config.py to match the workflow's trigger "
                        "node.\n\n"
                        f"See documentation:\n- {GUIDE_REF.describe()}"
                    ),
                    guide_ref=metadata.guide_ref,
                )
            )
    return findings


script = PathScript(metadata, check_trigger_type_consistency)
