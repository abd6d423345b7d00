"""Script CONFIG-WORKFLOWS: ``WORKFLOW_FILES`` and ``workflows/`` agree.

Files are compared by name, so ``WORKFLOW_FILES`` may hold relative paths,
absolute paths or ``Path`` objects.
"""

from __future__ import annotations

import json
from pathlib import Path, PurePath

from wfverify.use_case_config import (
    WORKFLOWS_DIRNAME,
    list_workflow_files,
    load_use_case_config,
)
from wfverify.validators.base import Finding, RuleMetadata
from wfverify.validators.registry import PathScript

metadata = RuleMetadata(
    id="CONFIG-WORKFLOWS",
    name="config_workflows",
    severity="must",
    description="All workflows must be listed in WORKFLOW_FILES and exist on disk",
    details="Keep WORKFLOW_FILES in config.py in sync with the JSON files in workflows/",
    category="structure",
)


def _finding(path: Path, message: str, raw_details: str) -> Finding:
    return Finding(
        rule=metadata.id,
        severity=metadata.severity,
        path=str(path),
        message=message,
        raw_details=raw_details,
    )


def check_config_workflows(use_case_path: Path) -> list[Finding]:
    use_case_path = Path(use_case_path)
    if not (use_case_path / WORKFLOWS_DIRNAME).is_dir():
        return [
            _finding(
                use_case_path,
                "Missing workflows/ folder",
                "Create a workflows/ folder and add your workflow JSON files",
            )
        ]

    findings: list[Finding] = []
    actual = list_workflow_files(use_case_path)
    for workflow_path in actual:
        try:
            json.loads(workflow_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            findings.append(
                _finding(
                    workflow_path,
                    f"Invalid JSON in {workflow_path.name}: {e}",
                    "Fix the JSON syntax errors in this file",
                )
            )
        except (OSError, UnicodeDecodeError) as e:
            findings.append(
                _finding(
                    workflow_path,
                    f"Cannot read {workflow_path.name}: {e}",
                    "Make sure the file is readable UTF-8 text",
                )
            )

    load = load_use_case_config(use_case_path)
    if load.workflow_files is None:
        # Missing or broken WORKFLOW_FILES is reported by CONFIG-EXPORTS
        return findings

    actual_names = {path.name for path in actual}
    declared_names = {PurePath(entry).name for entry in load.workflow_files}

    for entry in load.workflow_files:
        name = PurePath(entry).name
        if name not in actual_names:
            findings.append(
                _finding(
                    load.config_path,
                    f"WORKFLOW_FILES references non-existent file: {entry}",
                    f"Either create {name} in workflows/ or remove it from WORKFLOW_FILES",
                )
            )

    for workflow_path in actual:
        if workflow_path.name not in declared_names:
            findings.append(
                _finding(
                    load.config_path,
                    f"Workflow file not listed in WORKFLOW_FILES: {workflow_path.name}",
                    "Add this file to WORKFLOW_FILES or remove it from workflows/",
                )
            )

    return findings


script = PathScript(metadata, check_config_workflows)
