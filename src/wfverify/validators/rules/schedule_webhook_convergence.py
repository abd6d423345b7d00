"""Rule SCHEDULE-WEBHOOK-CONVERGENCE: scheduled workflows can be run by hand.

A schedule trigger needs a webhook node, and the two must feed a common
downstream node so manual runs follow the scheduled path.
"""

from __future__ import annotations

from wfverify.graph import Graph
from wfverify.validators.base import Finding, GuideRef, RuleMetadata
from wfverify.validators.registry import GraphRule, RuleContext

GUIDE_REF = GuideRef("specific/schedule-triggers.md", "Manual Trigger Webhook")

metadata = RuleMetadata(
    id="SCHEDULE-WEBHOOK-CONVERGENCE",
    name="schedule_webhook_convergence",
    severity="must",
    description=(
        "Scheduled workflows must have a webhook node that connects to the same downstream node"
    ),
    details=(
        "Add a webhook node to enable manual triggering, and connect it to the same node "
        "as the schedule trigger output"
    ),
    category="triggers",
    guide_ref=GUIDE_REF,
)

_SEE_GUIDE = f"See documentation: {GUIDE_REF.describe()}"


def check_schedule_webhook_convergence(graph: Graph, ctx: RuleContext) -> list[Finding]:
    schedules = graph.nodes_of_type("scheduletrigger")
    if not schedules:
        return []

    webhooks = graph.nodes_of_type("webhook")
    findings: list[Finding] = []

    if not webhooks:
        for schedule in schedules:
            findings.append(
                Finding(
                    rule=metadata.id,
                    severity=metadata.severity,
                    path=ctx.path,
                    message=(
                        f'Schedule trigger "{schedule.name}" requires a webhook node '
                        "for manual execution"
                    ),
                    raw_details=(
                        "Scheduled workflows must have a webhook node to enable manual "
                        "triggering.\n\nAdd a webhook node and connect it to the same "
                        f"downstream node as the schedule trigger.\n\n{_SEE_GUIDE}"
                    ),
                    node_id=schedule.id,
                    line=ctx.node_lines.get(schedule.id),
                    guide_ref=metadata.guide_ref,
                )
            )
        return findings

    for schedule in schedules:
        schedule_targets = graph.successors(schedule.id)
        if not schedule_targets:
            # Dead-end trigger
            continue

        target_ids = {node.id for node in schedule_targets}
        if any(
            target_ids & {node.id for node in graph.successors(webhook.id)}
            for webhook in webhooks
        ):
            continue

        webhook_info = ", ".join(
            f'"{webhook.name}" -> '
            f"[{', '.join(n.label for n in graph.successors(webhook.id)) or 'no connections'}]"
            for webhook in webhooks
        )
        findings.append(
            Finding(
                rule=metadata.id,
                severity=metadata.severity,
                path=ctx.path,
                message=(
                    f'Schedule trigger "{schedule.name}" and webhook(s) do not connect '
                    "to the same downstream node"
                ),
                raw_details=(
                    "The schedule trigger and webhook must connect to the same node to "
                    "ensure manual execution follows the same flow.\n\n"
                    f'Schedule trigger "{schedule.name}" connects to: '
                    f"[{', '.join(n.label for n in schedule_targets)}]\n"
                    f"Webhook connections: {webhook_info}\n\n"
                    f"Connect both triggers to the same downstream node.\n\n{_SEE_GUIDE}"
                ),
                node_id=schedule.id,
                line=ctx.node_lines.get(schedule.id),
                guide_ref=metadata.guide_ref,
            )
        )

    return findings


rule = GraphRule(metadata, check_schedule_webhook_convergence)
