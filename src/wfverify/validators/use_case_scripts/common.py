"""File access helpers shared by the use-case scripts."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from wfverify.use_case_config import list_workflow_files

logger = logging.getLogger(__name__)

WEBHOOK_NODE_TYPE = "n8n-nodes-base.webhook"


@dataclass(frozen=True)
class WorkflowFile:
    """A readable workflow file of a use case.

    Attributes:
        template_id: File stem, which is the workflow's template id by convention.
        path: Path of the file.
        content: Raw text.
    """

    template_id: str
    path: Path
    content: str

    def load_json(self) -> dict[str, Any] | None:
        try:
            data = json.loads(self.content)
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None


def read_workflow_files(use_case_path: Path) -> list[WorkflowFile]:
    """Read every ``workflows/*.json`` of a use case, in sorted order.

    Unreadable files are skipped; the runner reports them when validating
    each workflow.
    """
    files: list[WorkflowFile] = []
    for path in list_workflow_files(use_case_path):
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Skipping unreadable workflow %s: %s", path, e)
            continue
        files.append(WorkflowFile(template_id=path.stem, path=path, content=content))
    return files


def json_nodes(data: dict[str, Any] | None) -> list[dict[str, Any]]:
    if data is None or not isinstance(data.get("nodes"), list):
        return []
    return [node for node in data["nodes"] if isinstance(node, dict)]
