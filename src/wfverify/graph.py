"""Workflow graph model for n8n-style workflow JSON.

Provides functions for:
- Parsing workflow JSON into typed nodes and directed edges
- Locating node definitions in the raw text (for line locators)
- Graph traversal (direct successors, transitive reachability)

Design decisions:
- Node ids fall back to node names when a workflow omits ids
- The error output of a node set to "continueErrorOutput" becomes an "error" edge
- Traversal is iterative and handles cycles gracefully (no infinite loops)
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

EdgeKind = Literal["success", "error"]

ERROR_OUTPUT_MODE = "continueErrorOutput"


class WorkflowParseError(Exception):
    """Raised when workflow text is not a parseable workflow graph."""


@dataclass(frozen=True)
class Node:
    """A single workflow node.

    Attributes:
        id: Node identifier (the node name when the workflow has no ids).
        name: Display name, also the key used by ``connections``.
        type: Fully qualified node type (e.g., "n8n-nodes-base.webhook").
        type_version: Declared node type version, if any.
        parameters: Raw node parameters.
        credentials: Raw credential references.
        on_error: Error output mode ("continueErrorOutput", ...), if set.
        webhook_id: Node-level webhookId, if set.
    """

    id: str
    name: str
    type: str
    type_version: float | int | None = None
    parameters: Mapping[str, Any] = field(default_factory=dict)
    credentials: Mapping[str, Any] = field(default_factory=dict)
    on_error: str | None = None
    webhook_id: str | None = None

    @property
    def label(self) -> str:
        return self.name or self.type

    def type_contains(self, fragment: str) -> bool:
        """Case-insensitive substring test against the node type."""
        return fragment.lower() in self.type.lower()


@dataclass(frozen=True)
class Edge:
    """A directed connection between two nodes.

    Attributes:
        source: Id of the upstream node.
        target: Id of the downstream node.
        on: "error" for the error output of a node, "success" otherwise.
        kind: Connection type ("main", "ai_languageModel", ...).
        output_index: Index of the upstream output the edge leaves from.
    """

    source: str
    target: str
    on: EdgeKind = "success"
    kind: str = "main"
    output_index: int = 0


@dataclass
class Graph:
    """Parsed workflow graph."""

    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)

    def get(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def outgoing(self, node_id: str) -> list[Edge]:
        return [edge for edge in self.edges if edge.source == node_id]

    def successors(self, node_id: str) -> list[Node]:
        """Get nodes directly downstream of a node, in node order."""
        target_ids = {edge.target for edge in self.outgoing(node_id)}
        return [node for node in self.nodes if node.id in target_ids]

    def sources(self) -> list[Node]:
        """Get nodes without incoming edges, in node order."""
        with_incoming = {edge.target for edge in self.edges}
        return [node for node in self.nodes if node.id not in with_incoming]

    def sinks(self) -> list[Node]:
        """Get nodes without outgoing edges, in node order."""
        with_outgoing = {edge.source for edge in self.edges}
        return [node for node in self.nodes if node.id not in with_outgoing]

    def nodes_of_type(self, fragment: str) -> list[Node]:
        return [node for node in self.nodes if node.type_contains(fragment)]


def _node_from_dict(raw: Mapping[str, Any], index: int) -> Node:
    """Build a Node from one entry of the workflow ``nodes`` array.

    Raises:
        WorkflowParseError: If the entry is not a node object.
    """
    if not isinstance(raw, Mapping):
        raise WorkflowParseError(f"Node at index {index} is not an object")

    node_type = raw.get("type")
    if not isinstance(node_type, str) or not node_type:
        raise WorkflowParseError(f"Node at index {index} has no type")

    name = raw.get("name")
    name = name if isinstance(name, str) else ""
    node_id = raw.get("id")
    node_id = node_id if isinstance(node_id, str) and node_id else name or f"node-{index}"

    parameters = raw.get("parameters")
    parameters = parameters if isinstance(parameters, Mapping) else {}
    credentials = raw.get("credentials")
    credentials = credentials if isinstance(credentials, Mapping) else {}

    # Some exports nest onError inside parameters
    on_error = raw.get("onError", parameters.get("onError"))
    webhook_id = raw.get("webhookId")

    return Node(
        id=node_id,
        name=name,
        type=node_type,
        type_version=raw.get("typeVersion"),
        parameters=parameters,
        credentials=credentials,
        on_error=on_error if isinstance(on_error, str) else None,
        webhook_id=webhook_id if isinstance(webhook_id, str) else None,
    )


def _edges_from_connections(
    connections: Mapping[str, Any],
    nodes_by_name: Mapping[str, Node],
) -> list[Edge]:
    """Flatten the n8n ``connections`` map into edges.

    Connections pointing at unknown node names are ignored.
    """
    edges: list[Edge] = []
    for source_name, outputs_by_kind in connections.items():
        source = nodes_by_name.get(source_name)
        if source is None or not isinstance(outputs_by_kind, Mapping):
            continue

        for kind, outputs in outputs_by_kind.items():
            if not isinstance(outputs, list):
                continue
            error_index = (
                len(outputs) - 1
                if kind == "main" and source.on_error == ERROR_OUTPUT_MODE and len(outputs) > 1
                else None
            )
            for output_index, targets in enumerate(outputs):
                if not isinstance(targets, list):
                    continue
                for target_ref in targets:
                    if not isinstance(target_ref, Mapping):
                        continue
                    target = nodes_by_name.get(target_ref.get("node", ""))
                    if target is None:
                        continue
                    edges.append(
                        Edge(
                            source=source.id,
                            target=target.id,
                            on="error" if output_index == error_index else "success",
                            kind=str(kind),
                            output_index=output_index,
                        )
                    )
    return edges


def parse_workflow(text: str) -> Graph:
    """Parse workflow JSON text into a Graph.

    Args:
        text: Raw workflow JSON.

    Returns:
        Graph of the workflow's nodes and connections.

    Raises:
        WorkflowParseError: If the text is not valid JSON or lacks a nodes array.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise WorkflowParseError(str(e)) from e

    if not isinstance(data, dict):
        raise WorkflowParseError("Workflow JSON must be an object")

    raw_nodes = data.get("nodes")
    if not isinstance(raw_nodes, list):
        raise WorkflowParseError("Workflow JSON must contain a 'nodes' array")

    nodes = [_node_from_dict(raw, index) for index, raw in enumerate(raw_nodes)]
    nodes_by_name = {node.name: node for node in nodes if node.name}

    connections = data.get("connections")
    edges = (
        _edges_from_connections(connections, nodes_by_name)
        if isinstance(connections, Mapping)
        else []
    )

    return Graph(nodes=nodes, edges=edges)


def find_node_line(text: str, node_id: str) -> int | None:
    """Find the 1-based line that declares a node id in workflow text."""
    needle = f'"id": "{node_id}"'
    for number, line in enumerate(text.splitlines(), start=1):
        if needle in line:
            return number
    return None


def locate_node_lines(text: str, graph: Graph) -> dict[str, int]:
    """Map node ids to the line that declares them.

    Nodes whose id cannot be found in the text are omitted.
    """
    lines: dict[str, int] = {}
    for node in graph.nodes:
        line = find_node_line(text, node.id)
        if line is not None:
            lines[node.id] = line
    return lines


def reachable_from(adjacency: Mapping[str, Iterable[str]], start: str) -> set[str]:
    """Get every key transitively reachable from ``start``.

    Uses iterative traversal and handles cycles gracefully.

    Args:
        adjacency: Mapping of key to its direct successors.
        start: Key to start from.

    Returns:
        Set of reachable keys. Does not include ``start`` itself
        unless there's a cycle.
    """
    visited: set[str] = set()
    to_visit: list[str] = list(adjacency.get(start, ()))

    while to_visit:
        current = to_visit.pop()
        if current in visited:
            continue
        visited.add(current)
        for successor in adjacency.get(current, ()):
            if successor not in visited:
                to_visit.append(successor)

    return visited
