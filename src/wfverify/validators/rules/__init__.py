"""Graph rules: pure checks over a parsed workflow graph.

Rules execute in the order of ``GRAPH_RULES``.
"""

from wfverify.validators.registry import GraphRule
from wfverify.validators.rules import (
    codika_init,
    codika_submit,
    error_branch_required,
    schedule_webhook_convergence,
    subworkflow_min_params,
)

GRAPH_RULES: list[GraphRule] = [
    codika_init.rule,
    codika_submit.rule,
    subworkflow_min_params.rule,
    schedule_webhook_convergence.rule,
    error_branch_required.rule,
]

__all__ = ["GRAPH_RULES"]
