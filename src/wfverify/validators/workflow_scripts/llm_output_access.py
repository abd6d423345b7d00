"""Script LLM-OUTPUT-ACCESS: structured LLM output is read through ``.output``.

When a chainLlm node runs with a structured output parser, its result is
wrapped in an ``output`` property:

    CORRECT:   $json.output.fieldName
    CORRECT:   $('LLM Node').first().json.output.fieldName
    INCORRECT: $json.fieldName
    INCORRECT: $('LLM Node').first().json.fieldName

Direct ``$json`` access is only checked on nodes wired straight after the
chain; named references are checked everywhere. Expressions that already
fall back defensively (``$json.output?.x || $json.x``) are left alone.
"""

from __future__ import annotations

import json
import re
from typing import Any

from wfverify.graph import find_node_line
from wfverify.validators.base import Finding, Fix, RuleMetadata
from wfverify.validators.registry import ContentScript
from wfverify.validators.workflow_scripts.common import (
    compact_json,
    dump_workflow,
    load_workflow,
    workflow_nodes,
)

CHAIN_LLM_TYPE = "@n8n/n8n-nodes-langchain.chainLlm"
OUTPUT_PARSER_TYPE = "@n8n/n8n-nodes-langchain.outputParserStructured"

DIRECT_ACCESS_PATTERN = re.compile(r"\$json\.(?!output[.?\s])([a-zA-Z_][a-zA-Z0-9_]*)")
DEFENSIVE_DIRECT_PATTERN = re.compile(r"\$json\.output\?\.[a-zA-Z_]+\s*\|\|\s*\$json\.[a-zA-Z_]+")
FALLBACK_CONTEXT_PATTERN = re.compile(r"\.json\.output\?\.\w+\s*\|\|")
DIRECT_FALLBACK_CONTEXT_PATTERN = re.compile(r"\$json\.output\?\.\w+\s*\|\|")

_ACCESSOR = r"(first\(\)|item|all\(\)\[\d+\])"
_CONTEXT_RADIUS = 50

metadata = RuleMetadata(
    id="LLM-OUTPUT-ACCESS",
    name="llm_output_access",
    severity="must",
    description=(
        "LLM chain outputs must be accessed via .output property "
        "when using structured output parser"
    ),
    details=(
        "When chainLlm is used with outputParserStructured, the result is wrapped in an "
        "output property. Use $json.output.fieldName instead of $json.fieldName"
    ),
    fixable=True,
    category="ai-nodes",
)


# ----------------------------------------------------------------------------
# Workflow inspection
# ----------------------------------------------------------------------------


def _chain_names(nodes: list[dict[str, Any]]) -> list[str]:
    return [
        node["name"]
        for node in nodes
        if node.get("type") == CHAIN_LLM_TYPE
        and isinstance(node.get("parameters"), dict)
        and node["parameters"].get("hasOutputParser") is True
        and isinstance(node.get("name"), str)
    ]


def _main_targets(data: dict[str, Any], source_name: str) -> set[str]:
    connections = data.get("connections")
    outputs = connections.get(source_name) if isinstance(connections, dict) else None
    main = outputs.get("main") if isinstance(outputs, dict) else None
    if not isinstance(main, list):
        return set()
    return {
        conn["node"]
        for branch in main
        if isinstance(branch, list)
        for conn in branch
        if isinstance(conn, dict) and conn.get("type", "main") == "main" and "node" in conn
    }


def _is_skipped(node: dict[str, Any]) -> bool:
    node_type = node.get("type")
    if not isinstance(node_type, str):
        return True
    return node_type in (CHAIN_LLM_TYPE, OUTPUT_PARSER_TYPE) or "lmChat" in node_type


def _context(text: str, match: re.Match[str]) -> str:
    start = max(0, match.start() - _CONTEXT_RADIUS)
    return text[start : match.end() + _CONTEXT_RADIUS]


# ----------------------------------------------------------------------------
# Fixes
# ----------------------------------------------------------------------------


def _rewrite_node(
    node_name: str, pattern: re.Pattern[str], replacement: str, description: str
) -> Fix:
    """Fix that rewrites one node's serialized form and writes the workflow back.

    Nodes are matched by name, which n8n keeps unique within a workflow.
    """

    def apply(content: str) -> str:
        data = load_workflow(content)
        if data is None or not isinstance(data.get("nodes"), list):
            return content
        for index, node in enumerate(data["nodes"]):
            if not isinstance(node, dict) or node.get("name") != node_name:
                continue
            node_text = compact_json(node)
            fixed_text = pattern.sub(replacement, node_text)
            if fixed_text == node_text:
                return content
            data["nodes"][index] = json.loads(fixed_text)
            return dump_workflow(data)
        return content

    return Fix(description=description, apply=apply)


# ----------------------------------------------------------------------------
# Checks
# ----------------------------------------------------------------------------


def _check_direct_access(
    content: str, node: dict[str, Any], node_text: str, path: str
) -> list[Finding]:
    if DEFENSIVE_DIRECT_PATTERN.search(node_text):
        return []

    findings: list[Finding] = []
    node_id = node.get("id") if isinstance(node.get("id"), str) else None
    for match in DIRECT_ACCESS_PATTERN.finditer(node_text):
        if DIRECT_FALLBACK_CONTEXT_PATTERN.search(_context(node_text, match)):
            continue
        field_name = match.group(1)
        access = match.group(0)
        fix_pattern = re.compile(rf"\$json\.(?!output[.?\s]){re.escape(field_name)}\b")
        findings.append(
            Finding(
                rule=metadata.id,
                severity=metadata.severity,
                path=path,
                message=(
                    f"LLM chain output accessed without .output prefix: {access} "
                    f"should be $json.output.{field_name}"
                ),
                raw_details=(
                    "When chainLlm is used with outputParserStructured, the output is wrapped "
                    f"in an 'output' property. Change {access} to $json.output.{field_name}"
                ),
                node_id=node_id,
                line=find_node_line(content, node_id) if node_id else None,
                fixable=True,
                fix=_rewrite_node(
                    node["name"],
                    fix_pattern,
                    f"$json.output.{field_name}",
                    f"Change {access} to $json.output.{field_name}",
                ),
            )
        )
    return findings


def _check_named_references(
    content: str, node: dict[str, Any], node_text: str, chain_names: list[str], path: str
) -> list[Finding]:
    findings: list[Finding] = []
    node_id = node.get("id") if isinstance(node.get("id"), str) else None
    for chain_name in chain_names:
        escaped = re.escape(chain_name)
        reference = rf"""\$\(['"]{escaped}['"]\)\.{_ACCESSOR}\.json"""
        defensive = re.compile(rf"""\$\(['"]{escaped}['"]\).*\.json\.output\?\.[a-zA-Z_]+\s*\|\|""")
        if defensive.search(node_text):
            continue

        named_pattern = re.compile(rf"{reference}\.(?!output\b)([a-zA-Z_][a-zA-Z0-9_]*)")
        for match in named_pattern.finditer(node_text):
            if FALLBACK_CONTEXT_PATTERN.search(_context(node_text, match)):
                continue
            accessor, field_name = match.group(1), match.group(2)
            fix_pattern = re.compile(
                rf"({reference})\.(?!output\b){re.escape(field_name)}\b"
            )
            findings.append(
                Finding(
                    rule=metadata.id,
                    severity=metadata.severity,
                    path=path,
                    message=(
                        f"LLM chain '{chain_name}' output accessed without .output prefix: "
                        f"should be $('{chain_name}').{accessor}.json.output.{field_name}"
                    ),
                    raw_details=(
                        "When chainLlm is used with outputParserStructured, the output is "
                        f"wrapped in an 'output' property. Add .output before .{field_name}"
                    ),
                    node_id=node_id,
                    line=find_node_line(content, node_id) if node_id else None,
                    fixable=True,
                    fix=_rewrite_node(
                        node["name"],
                        fix_pattern,
                        rf"\1.output.{field_name}",
                        f"Add .output prefix when accessing {chain_name} output",
                    ),
                )
            )
    return findings


def check_llm_output_access(content: str, path: str) -> list[Finding]:
    data = load_workflow(content)
    if data is None:
        return []

    nodes = workflow_nodes(data)
    chain_names = _chain_names(nodes)
    if not chain_names:
        return []

    direct_targets: set[str] = set()
    for chain_name in chain_names:
        direct_targets |= _main_targets(data, chain_name)

    findings: list[Finding] = []
    for node in nodes:
        if _is_skipped(node) or not isinstance(node.get("name"), str):
            continue
        node_text = compact_json(node)
        if node.get("name") in direct_targets:
            findings.extend(_check_direct_access(content, node, node_text, path))
        findings.extend(_check_named_references(content, node, node_text, chain_names, path))
    return findings


script = ContentScript(metadata, check_llm_output_access)
