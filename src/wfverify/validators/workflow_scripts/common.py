"""JSON helpers shared by the workflow scripts."""

from __future__ import annotations

import json
from typing import Any


def load_workflow(content: str) -> dict[str, Any] | None:
    """Parse workflow text, returning None unless it is a JSON object.

    Scripts skip silently on malformed JSON; the runner reports it once.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def workflow_nodes(data: dict[str, Any]) -> list[dict[str, Any]]:
    nodes = data.get("nodes")
    if not isinstance(nodes, list):
        return []
    return [node for node in nodes if isinstance(node, dict)]


def dump_workflow(data: dict[str, Any]) -> str:
    """Serialize a workflow the way fixes write it back (2-space indent)."""
    return json.dumps(data, indent=2, ensure_ascii=False)


def compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
