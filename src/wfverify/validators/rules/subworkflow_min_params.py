"""Rule SUBWKFL-MIN-PARAMS: sub-workflows declare at least one input.

n8n enforces ``minRequiredFields: 1`` on the Execute Workflow Trigger node;
a sub-workflow without inputs fails at call time.
"""

from __future__ import annotations

from collections.abc import Mapping

from wfverify.graph import Graph, Node
from wfverify.validators.base import Finding, GuideRef, RuleMetadata
from wfverify.validators.registry import GraphRule, RuleContext
from wfverify.validators.rules.helpers import is_subworkflow_trigger

metadata = RuleMetadata(
    id="SUBWKFL-MIN-PARAMS",
    name="subworkflow_min_params",
    severity="must",
    description="Sub-workflows must have at least 1 input parameter",
    details=(
        "Add at least one input parameter to the Execute Workflow Trigger node. "
        "n8n enforces minRequiredFields: 1."
    ),
    category="subworkflow",
    guide_ref=GuideRef("specific/sub-workflows.md", "Input Parameter Requirements"),
)


def _values_count(container: object) -> int | None:
    if isinstance(container, Mapping) and isinstance(container.get("values"), list):
        return len(container["values"])
    return None


def count_input_params(node: Node) -> int:
    """Count the declared inputs of an Execute Workflow Trigger node."""
    params = node.parameters

    count = _values_count(params.get("workflowInputs"))
    if count is not None:
        return count

    if params.get("inputSource") == "defineBelow":
        count = _values_count(params.get("schema"))
        if count is not None:
            return count

    return 0


def check_subworkflow_min_params(graph: Graph, ctx: RuleContext) -> list[Finding]:
    trigger = next((node for node in graph.nodes if is_subworkflow_trigger(node)), None)
    if trigger is None:
        return []

    count = count_input_params(trigger)
    if count >= 1:
        return []

    return [
        Finding(
            rule=metadata.id,
            severity=metadata.severity,
            path=ctx.path,
            message=f"Sub-workflow must have at least 1 input parameter, found {count}",
            raw_details=(
                "n8n enforces minRequiredFields: 1 on the ExecuteWorkflowTrigger node. "
                "Add at least one input parameter to the workflowInputs.values array. "
                'Without this, the workflow will fail with "At least 1 field is required."'
            ),
            node_id=trigger.id,
            line=ctx.node_lines.get(trigger.id),
            guide_ref=metadata.guide_ref,
        )
    ]


rule = GraphRule(metadata, check_subworkflow_min_params)
