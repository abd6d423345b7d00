"""Script WEBHOOK-ID: webhook nodes carry a node-level ``webhookId``.

Without it n8n never registers the webhook path in production, even when the
workflow is active, and callers get 404 errors.
"""

from __future__ import annotations

import re

from wfverify.graph import find_node_line
from wfverify.validators.base import Finding, Fix, RuleMetadata
from wfverify.validators.registry import ContentScript
from wfverify.validators.workflow_scripts.common import dump_workflow, load_workflow, workflow_nodes

WEBHOOK_TYPE = "n8n-nodes-base.webhook"

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")

metadata = RuleMetadata(
    id="WEBHOOK-ID",
    name="webhook_id",
    severity="must",
    description="Webhook nodes must have a webhookId property for production registration",
    details=(
        'Add a "webhookId" string property to each webhook node '
        "(sibling to name/type/parameters)"
    ),
    fixable=True,
    category="webhook",
)


def slugify(name: str) -> str:
    """Turn a node name into a webhook id.

    Example:
        >>> slugify("Manual Trigger (Webhook)")
        'manual-trigger-webhook'
    """
    return _NON_SLUG_CHARS.sub("-", name.lower()).strip("-")


def _needs_webhook_id(node: dict) -> bool:
    webhook_id = node.get("webhookId")
    return node.get("type") == WEBHOOK_TYPE and not (isinstance(webhook_id, str) and webhook_id)


def _add_webhook_id(node_name: str | None, generated_id: str) -> Fix:
    def apply(content: str) -> str:
        data = load_workflow(content)
        if data is None:
            return content
        changed = False
        for node in workflow_nodes(data):
            if node.get("name") == node_name and _needs_webhook_id(node):
                node["webhookId"] = slugify(node_name or "webhook")
                changed = True
        return dump_workflow(data) if changed else content

    return Fix(
        description=f'Add webhookId "{generated_id}" to webhook node "{node_name}"',
        apply=apply,
    )


def check_webhook_id(content: str, path: str) -> list[Finding]:
    data = load_workflow(content)
    if data is None:
        return []

    findings: list[Finding] = []
    for node in workflow_nodes(data):
        if not _needs_webhook_id(node):
            continue

        name = node.get("name") if isinstance(node.get("name"), str) else None
        node_id = node.get("id") if isinstance(node.get("id"), str) else None
        generated_id = slugify(name or "webhook")
        findings.append(
            Finding(
                rule=metadata.id,
                severity=metadata.severity,
                path=path,
                message=f'Webhook node "{name}" is missing webhookId property',
                raw_details=(
                    f'Add "webhookId": "{generated_id}" to the node object '
                    "(sibling to name/type/parameters)"
                ),
                node_id=node_id,
                line=find_node_line(content, node_id) if node_id else None,
                fixable=True,
                fix=_add_webhook_id(name, generated_id),
            )
        )
    return findings


script = ContentScript(metadata, check_webhook_id)
