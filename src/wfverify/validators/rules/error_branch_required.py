"""Rule ERROR-BRANCH-REQUIRED: error-prone nodes handle their failures.

An error branch is either an "error" edge (the node's error output) or any
edge into a recognized error handler node such as Stop And Error. LangChain
sub-nodes run inside their parent chain and cannot have their own branch.
"""

from __future__ import annotations

import re

from wfverify.graph import Graph, Node
from wfverify.validators.base import Finding, RuleMetadata
from wfverify.validators.registry import GraphRule, RuleContext

API_PATTERN = re.compile(r"http|request|google|facebook|ads", re.IGNORECASE)
MUTATION_PATTERN = re.compile(
    r"write|insert|update|delete|post|put|patch|database|mongo|supabase|sheet", re.IGNORECASE
)
EXEC_PATTERN = re.compile(r"execute|workflow|function", re.IGNORECASE)
LANGCHAIN_SUBNODE_PATTERN = re.compile(
    r"langchain\.(lmChat|outputParser|memory|embeddings|document|vectorStore"
    r"|toolCode|toolWorkflow)",
    re.IGNORECASE,
)
ERROR_HANDLER_PATTERN = re.compile(r"stopanderror|errorhandler|raiseerror", re.IGNORECASE)

metadata = RuleMetadata(
    id="ERROR-BRANCH-REQUIRED",
    name="error_branch_required",
    severity="must",
    description="Error-prone nodes must have an error branch (red connector) for failure handling",
    details=(
        'Add onError: "continueErrorOutput" to the node and connect the second output '
        "(index 1) to an error handler node. This prevents silent failures in API calls, "
        "database operations, and external service interactions."
    ),
    category="reliability",
)


def is_error_prone(node: Node) -> bool:
    if LANGCHAIN_SUBNODE_PATTERN.search(node.type):
        return False
    return any(
        pattern.search(node.type) for pattern in (API_PATTERN, MUTATION_PATTERN, EXEC_PATTERN)
    )


def is_error_handler(node: Node) -> bool:
    name = node.name.lower()
    return (
        ERROR_HANDLER_PATTERN.search(node.type) is not None
        or "stop and error" in name
        or "error handler" in name
    )


def has_error_path(graph: Graph, node: Node) -> bool:
    for edge in graph.outgoing(node.id):
        if edge.on == "error":
            return True
        target = graph.get(edge.target)
        if target is not None and is_error_handler(target):
            return True
    return False


def check_error_branch_required(graph: Graph, ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    for node in graph.nodes:
        if not is_error_prone(node) or has_error_path(graph, node):
            continue
        findings.append(
            Finding(
                rule=metadata.id,
                severity=metadata.severity,
                path=ctx.path,
                message=f"Node {node.name} has no error branch (add a red connector to handler)",
                raw_details=(
                    f'Add error handling for "{node.name}" (type: {node.type}).\n\n'
                    'Option 1: Set onError: "continueErrorOutput" on the node and connect the '
                    "second output (index 1) to an error handler.\n"
                    "Option 2: Connect the node to a Stop And Error node.\n\n"
                    "This prevents silent failures when external API calls or database "
                    "operations fail."
                ),
                node_id=node.id,
                line=ctx.node_lines.get(node.id),
            )
        )
    return findings


rule = GraphRule(metadata, check_error_branch_required)
