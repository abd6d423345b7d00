"""Rule CODIKA-SUBMIT: parent workflow paths end in a Codika result node."""

from __future__ import annotations

from wfverify.graph import Graph
from wfverify.validators.base import Finding, RuleMetadata
from wfverify.validators.registry import GraphRule, RuleContext
from wfverify.validators.rules.helpers import (
    codika_operation,
    find_trigger_node,
    is_sticky_note,
    is_subworkflow_trigger,
    quote_labels,
)

RESULT_OPERATIONS = ("submitResult", "reportError")

metadata = RuleMetadata(
    id="CODIKA-SUBMIT",
    name="codika_submit_result",
    severity="must",
    description="Parent workflows must end with Codika Submit Result or Report Error",
    details=(
        "Add Codika Submit Result node at the end of success paths, "
        "and Codika Report Error at the end of error paths"
    ),
    category="codika",
)


def check_codika_submit(graph: Graph, ctx: RuleContext) -> list[Finding]:
    trigger = find_trigger_node(graph)
    if trigger is None or is_subworkflow_trigger(trigger):
        return []

    offenders = [
        node
        for node in graph.sinks()
        if node.id != trigger.id
        and not is_sticky_note(node)
        and codika_operation(node) not in RESULT_OPERATIONS
    ]
    if not offenders:
        return []

    first = offenders[0]
    return [
        Finding(
            rule=metadata.id,
            severity=metadata.severity,
            path=ctx.path,
            message=(
                "Workflow paths end without Codika Submit Result or Report Error: "
                f"{quote_labels(offenders)}"
            ),
            raw_details=(
                "Add a Codika Submit Result node (operation: submitResult) at the end of "
                "success paths, and Codika Report Error (operation: reportError) at the end "
                "of error paths. This is required for proper execution tracking on the "
                "Codika platform."
            ),
            node_id=first.id,
            line=ctx.node_lines.get(first.id),
        )
    ]


rule = GraphRule(metadata, check_codika_submit)
