"""Node classification helpers shared by the graph rules."""

from __future__ import annotations

from wfverify.graph import Graph, Node

CODIKA_NODE_FRAGMENT = "codika"
SUBWORKFLOW_TRIGGER_FRAGMENT = "executeworkflowtrigger"

_TRIGGER_FRAGMENTS = ("trigger", "webhook", "start")


def is_sticky_note(node: Node) -> bool:
    return node.type_contains("stickynote")


def is_trigger_node(node: Node) -> bool:
    return any(node.type_contains(fragment) for fragment in _TRIGGER_FRAGMENTS)


def is_subworkflow_trigger(node: Node) -> bool:
    return node.type_contains(SUBWORKFLOW_TRIGGER_FRAGMENT)


def codika_operation(node: Node) -> str | None:
    """Get the operation of a Codika node, or None for any other node."""
    if not node.type_contains(CODIKA_NODE_FRAGMENT):
        return None
    operation = node.parameters.get("operation")
    return operation if isinstance(operation, str) else None


def find_trigger_node(graph: Graph) -> Node | None:
    """Find the node that starts the workflow.

    Prefers trigger-typed nodes among those without incoming edges and falls
    back to the first such node that is not a sticky note.
    """
    candidates = graph.sources()
    for node in candidates:
        if is_trigger_node(node):
            return node
    for node in candidates:
        if not is_sticky_note(node):
            return node
    return None


def quote_labels(nodes: list[Node]) -> str:
    return ", ".join(f'"{node.label}"' for node in nodes)
