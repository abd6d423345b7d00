"""Rule CODIKA-INIT: parent workflows start with a Codika Init node.

Sub-workflows (started by an Execute Workflow Trigger) are exempt since they
inherit execution tracking from their caller.
"""

from __future__ import annotations

from wfverify.graph import Graph
from wfverify.validators.base import Finding, RuleMetadata
from wfverify.validators.registry import GraphRule, RuleContext
from wfverify.validators.rules.helpers import (
    codika_operation,
    find_trigger_node,
    is_subworkflow_trigger,
    quote_labels,
)

INIT_OPERATIONS = ("initWorkflow", "initDataIngestion")

metadata = RuleMetadata(
    id="CODIKA-INIT",
    name="codika_init_required",
    severity="must",
    description="Parent workflows must have Codika Init as the second node (after trigger)",
    details="Add a Codika Init node immediately after the trigger to enable execution tracking",
    category="codika",
)


def check_codika_init(graph: Graph, ctx: RuleContext) -> list[Finding]:
    trigger = find_trigger_node(graph)
    if trigger is None or is_subworkflow_trigger(trigger):
        return []

    second_nodes = graph.successors(trigger.id)
    if not second_nodes:
        # Dead-end trigger
        return []

    if any(codika_operation(node) in INIT_OPERATIONS for node in second_nodes):
        return []

    return [
        Finding(
            rule=metadata.id,
            severity=metadata.severity,
            path=ctx.path,
            message=(
                "Workflow must have Codika Init as the second node. "
                f"Found: {quote_labels(second_nodes)}"
            ),
            raw_details=(
                "Add a Codika Init node (operation: initWorkflow or initDataIngestion) "
                f'immediately after the trigger "{trigger.label}". This is required for '
                "execution tracking on the Codika platform."
            ),
            node_id=trigger.id,
            line=ctx.node_lines.get(trigger.id),
        )
    ]


rule = GraphRule(metadata, check_codika_init)
