"""Tests for wfverify.graph module."""

from __future__ import annotations

import json
from typing import Any

import pytest

from wfverify.graph import (
    WorkflowParseError,
    find_node_line,
    locate_node_lines,
    parse_workflow,
    reachable_from,
)


def _text(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2)


class TestParseWorkflow:
    """Tests for parse_workflow."""

    def test_nodes_and_edges(self, valid_workflow: dict[str, Any]) -> None:
        """Test nodes keep their order and connections become edges."""
        graph = parse_workflow(_text(valid_workflow))
        assert [node.id for node in graph.nodes] == ["n1", "n2", "n3", "n4"]
        assert [(edge.source, edge.target) for edge in graph.edges] == [
            ("n1", "n2"),
            ("n2", "n3"),
            ("n3", "n4"),
        ]
        assert all(edge.on == "success" for edge in graph.edges)

    def test_node_fields(self, valid_workflow: dict[str, Any]) -> None:
        """Test node attributes are read from the JSON."""
        webhook = parse_workflow(_text(valid_workflow)).get("n1")
        assert webhook is not None
        assert webhook.name == "Webhook"
        assert webhook.type == "n8n-nodes-base.webhook"
        assert webhook.type_version == 2
        assert webhook.webhook_id == "webhook"
        assert webhook.parameters["path"] == "main-path"

    def test_ids_fall_back_to_names(self) -> None:
        """Test nodes without ids are keyed by name."""
        text = _text(
            {
                "nodes": [
                    {"name": "A", "type": "n8n-nodes-base.webhook"},
                    {"name": "B", "type": "n8n-nodes-base.set"},
                ],
                "connections": {"A": {"main": [[{"node": "B", "type": "main", "index": 0}]]}},
            }
        )
        graph = parse_workflow(text)
        assert [node.id for node in graph.nodes] == ["A", "B"]
        assert graph.edges[0].source == "A"
        assert graph.edges[0].target == "B"

    def test_error_output_edge(self) -> None:
        """Test the last output of a continueErrorOutput node is an error edge."""
        text = _text(
            {
                "nodes": [
                    {
                        "id": "h",
                        "name": "HTTP",
                        "type": "n8n-nodes-base.httpRequest",
                        "onError": "continueErrorOutput",
                    },
                    {"id": "ok", "name": "OK", "type": "n8n-nodes-base.set"},
                    {"id": "err", "name": "Err", "type": "n8n-nodes-base.set"},
                ],
                "connections": {
                    "HTTP": {
                        "main": [
                            [{"node": "OK", "type": "main", "index": 0}],
                            [{"node": "Err", "type": "main", "index": 0}],
                        ]
                    }
                },
            }
        )
        edges = {edge.target: edge for edge in parse_workflow(text).edges}
        assert edges["ok"].on == "success"
        assert edges["err"].on == "error"
        assert edges["err"].output_index == 1

    def test_second_output_without_error_mode_is_success(self) -> None:
        """Test an IF-style second output is not an error edge."""
        text = _text(
            {
                "nodes": [
                    {"id": "if", "name": "IF", "type": "n8n-nodes-base.if"},
                    {"id": "a", "name": "A", "type": "n8n-nodes-base.set"},
                    {"id": "b", "name": "B", "type": "n8n-nodes-base.set"},
                ],
                "connections": {
                    "IF": {
                        "main": [
                            [{"node": "A", "type": "main", "index": 0}],
                            [{"node": "B", "type": "main", "index": 0}],
                        ]
                    }
                },
            }
        )
        assert all(edge.on == "success" for edge in parse_workflow(text).edges)

    def test_connections_to_unknown_nodes_ignored(self) -> None:
        """Test dangling connections do not become edges."""
        text = _text(
            {
                "nodes": [{"id": "a", "name": "A", "type": "n8n-nodes-base.set"}],
                "connections": {"A": {"main": [[{"node": "Ghost", "type": "main", "index": 0}]]}},
            }
        )
        assert parse_workflow(text).edges == []

    def test_invalid_json(self) -> None:
        """Test malformed JSON raises WorkflowParseError."""
        with pytest.raises(WorkflowParseError):
            parse_workflow("{not json")

    def test_missing_nodes_array(self) -> None:
        """Test a workflow without nodes is rejected."""
        with pytest.raises(WorkflowParseError, match="nodes"):
            parse_workflow('{"connections": {}}')

    def test_node_without_type(self) -> None:
        """Test a node without a type is rejected."""
        with pytest.raises(WorkflowParseError, match="index 0 has no type"):
            parse_workflow('{"nodes": [{"name": "A"}]}')


class TestGraphHelpers:
    """Tests for Graph lookup helpers."""

    def test_sources_and_sinks(self, valid_workflow: dict[str, Any]) -> None:
        """Test the entry and exit nodes of a linear workflow."""
        graph = parse_workflow(_text(valid_workflow))
        assert [node.id for node in graph.sources()] == ["n1"]
        assert [node.id for node in graph.sinks()] == ["n4"]

    def test_successors(self, valid_workflow: dict[str, Any]) -> None:
        """Test direct successors."""
        graph = parse_workflow(_text(valid_workflow))
        assert [node.name for node in graph.successors("n1")] == ["Codika Init"]
        assert graph.successors("n4") == []

    def test_nodes_of_type_is_case_insensitive(self, valid_workflow: dict[str, Any]) -> None:
        """Test type fragment matching ignores case."""
        graph = parse_workflow(_text(valid_workflow))
        assert [node.id for node in graph.nodes_of_type("CODIKA")] == ["n2", "n4"]


class TestLineLocation:
    """Tests for node line lookup."""

    def test_find_node_line(self, valid_workflow: dict[str, Any]) -> None:
        """Test the line of a node id declaration."""
        text = _text(valid_workflow)
        line = find_node_line(text, "n2")
        assert line is not None
        assert '"id": "n2"' in text.splitlines()[line - 1]

    def test_find_node_line_missing(self) -> None:
        """Test unknown ids have no line."""
        assert find_node_line('{"nodes": []}', "nope") is None

    def test_locate_node_lines(self, valid_workflow: dict[str, Any]) -> None:
        """Test every node gets a line, in increasing order."""
        text = _text(valid_workflow)
        lines = locate_node_lines(text, parse_workflow(text))
        assert list(lines) == ["n1", "n2", "n3", "n4"]
        assert lines["n1"] < lines["n2"] < lines["n3"] < lines["n4"]


class TestReachableFrom:
    """Tests for reachable_from."""

    def test_transitive(self) -> None:
        """Test reachability follows chains."""
        adjacency = {"a": ["b"], "b": ["c"], "c": []}
        assert reachable_from(adjacency, "a") == {"b", "c"}

    def test_cycle_terminates(self) -> None:
        """Test cycles are handled and include the start."""
        adjacency = {"a": ["b"], "b": ["a"]}
        assert reachable_from(adjacency, "a") == {"a", "b"}

    def test_unknown_start(self) -> None:
        """Test an unknown start reaches nothing."""
        assert reachable_from({"a": ["b"]}, "z") == set()
