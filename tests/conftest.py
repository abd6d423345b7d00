"""Pytest configuration and fixtures for wfverify tests."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Set a fixed terminal width to prevent line wrapping issues in CI
# This must be set before any Rich imports
os.environ.setdefault("COLUMNS", "200")
os.environ.setdefault("LINES", "50")
# Disable Rich's terminal detection to ensure consistent output
os.environ.setdefault("TERM", "dumb")

ERROR_WORKFLOW = "{{ORGSECRET_ERROR_WORKFLOW_ID_TERCESORG}}"
BASE_URL = "{{ORGSECRET_N8N_BASE_URL_TERCESORG}}"

VALID_CONFIG = """\
PROJECT_ID = "demo-project"
WORKFLOW_FILES = ["workflows/main.json"]


def get_configuration() -> dict:
    return {
        "processId": "demo-project",
        "workflows": [
            {
                "workflowTemplateId": "main",
                "workflowName": "Main",
                "triggers": [
                    {
                        "type": "http",
                        "triggerId": "main-trigger",
                        "url": "{{ORGSECRET_N8N_BASE_URL_TERCESORG}}/webhook/main-path",
                        "method": "POST",
                        "inputSchema": [{"key": "query", "type": "string"}],
                    }
                ],
                "integrationUids": [],
                "outputSchema": [{"key": "answer", "type": "text"}],
            }
        ],
    }
"""


def build_valid_workflow(webhook_path: str = "main-path") -> dict[str, Any]:
    """Webhook -> Codika Init -> Process -> Codika Submit, passing every rule."""
    return {
        "name": "Main",
        "nodes": [
            {
                "id": "n1",
                "name": "Webhook",
                "type": "n8n-nodes-base.webhook",
                "typeVersion": 2,
                "webhookId": "webhook",
                "parameters": {"path": webhook_path, "httpMethod": "POST"},
            },
            {
                "id": "n2",
                "name": "Codika Init",
                "type": "n8n-nodes-codika.codika",
                "parameters": {"operation": "initWorkflow"},
            },
            {
                "id": "n3",
                "name": "Process",
                "type": "n8n-nodes-base.set",
                "parameters": {},
            },
            {
                "id": "n4",
                "name": "Codika Submit",
                "type": "n8n-nodes-codika.codika",
                "parameters": {"operation": "submitResult"},
            },
        ],
        "connections": {
            "Webhook": {"main": [[{"node": "Codika Init", "type": "main", "index": 0}]]},
            "Codika Init": {"main": [[{"node": "Process", "type": "main", "index": 0}]]},
            "Process": {"main": [[{"node": "Codika Submit", "type": "main", "index": 0}]]},
        },
        "settings": {"errorWorkflow": ERROR_WORKFLOW, "executionOrder": "v1"},
    }


def dump(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2)


@pytest.fixture(autouse=True)
def _clean_wfverify_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep WFVERIFY_* variables from the host out of every test."""
    for name in list(os.environ):
        if name.startswith("WFVERIFY_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def valid_config() -> str:
    """Source of a config.py declaring the single "main" workflow."""
    return VALID_CONFIG


@pytest.fixture
def valid_workflow() -> dict[str, Any]:
    """A fresh workflow dict that passes every rule and script."""
    return build_valid_workflow()


@pytest.fixture
def workflow_file(tmp_path: Path, valid_workflow: dict[str, Any]) -> Path:
    """The valid workflow written to disk."""
    path = tmp_path / "main.json"
    path.write_text(dump(valid_workflow), encoding="utf-8")
    return path


@pytest.fixture
def write_use_case(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a use-case folder.

    Usage: ``write_use_case(config_source, {"main": workflow_dict_or_text})``.
    Pass ``config_source=None`` to omit config.py and ``workflows=None`` to
    omit the workflows folder.
    """

    def _write(
        config_source: str | None = VALID_CONFIG,
        workflows: dict[str, dict[str, Any] | str] | None = None,
        name: str = "use-case",
    ) -> Path:
        root = tmp_path / name
        root.mkdir()
        if config_source is not None:
            (root / "config.py").write_text(config_source, encoding="utf-8")
        if workflows is not None:
            workflows_dir = root / "workflows"
            workflows_dir.mkdir()
            for template_id, workflow in workflows.items():
                text = workflow if isinstance(workflow, str) else dump(workflow)
                (workflows_dir / f"{template_id}.json").write_text(text, encoding="utf-8")
        return root

    return _write


@pytest.fixture
def valid_use_case(write_use_case: Callable[..., Path]) -> Path:
    """A use case with one http-triggered workflow that passes every check."""
    return write_use_case(VALID_CONFIG, {"main": build_valid_workflow()})
