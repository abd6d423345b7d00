"""Script CONFIG-EXPORTS: ``config.py`` defines the required exports.

This is the only script that reports a missing or broken configuration
module; the others stay silent when the configuration cannot be loaded.
"""

from __future__ import annotations

import re
from pathlib import Path

from wfverify.use_case_config import ConfigLoad, load_use_case_config
from wfverify.validators.base import Finding, RuleMetadata
from wfverify.validators.registry import PathScript

metadata = RuleMetadata(
    id="CONFIG-EXPORTS",
    name="config_exports",
    severity="must",
    description="config.py must define PROJECT_ID, WORKFLOW_FILES, and get_configuration",
    details="Add the missing definitions to config.py",
    category="structure",
)

# How each export looks in source, for modules that cannot be executed
_EXPORT_PATTERNS: dict[str, re.Pattern[str]] = {
    "PROJECT_ID": re.compile(r"^PROJECT_ID\s*(?::[^=\n]*)?=", re.MULTILINE),
    "WORKFLOW_FILES": re.compile(r"^WORKFLOW_FILES\s*(?::[^=\n]*)?=", re.MULTILINE),
    "get_configuration": re.compile(
        r"^(?:def\s+get_configuration\s*\(|get_configuration\s*=)", re.MULTILINE
    ),
}

_EXPORT_HINTS: dict[str, str] = {
    "PROJECT_ID": 'Add: PROJECT_ID = "your-project-id"',
    "WORKFLOW_FILES": 'Add: WORKFLOW_FILES = ["workflows/main.json"]',
    "get_configuration": "Add: def get_configuration() -> dict: ...",
}


def _finding(load: ConfigLoad, message: str, raw_details: str | None = None) -> Finding:
    return Finding(
        rule=metadata.id,
        severity=metadata.severity,
        path=str(load.config_path),
        message=message,
        raw_details=raw_details,
    )


def _missing_export(load: ConfigLoad, name: str) -> Finding:
    return _finding(load, f"Missing export: {name}", _EXPORT_HINTS[name])


def _invalid_exports(load: ConfigLoad) -> list[Finding]:
    findings: list[Finding] = []
    exports = load.exports

    if "PROJECT_ID" not in exports:
        findings.append(_missing_export(load, "PROJECT_ID"))
    elif load.project_id is None:
        findings.append(
            _finding(
                load,
                "Invalid export: PROJECT_ID must be a non-empty string",
                _EXPORT_HINTS["PROJECT_ID"],
            )
        )

    if "WORKFLOW_FILES" not in exports:
        findings.append(_missing_export(load, "WORKFLOW_FILES"))
    elif load.workflow_files is None:
        findings.append(
            _finding(
                load,
                "Invalid export: WORKFLOW_FILES must be a list",
                _EXPORT_HINTS["WORKFLOW_FILES"],
            )
        )

    if "get_configuration" not in exports:
        findings.append(_missing_export(load, "get_configuration"))
    elif not callable(exports["get_configuration"]):
        findings.append(
            _finding(
                load,
                "Invalid export: get_configuration must be callable",
                _EXPORT_HINTS["get_configuration"],
            )
        )

    return findings


def check_config_exports(use_case_path: Path) -> list[Finding]:
    load = load_use_case_config(use_case_path)

    if not load.exists:
        return [
            _finding(
                load,
                f"Missing config.py at {load.config_path}",
                "Create a config.py that defines PROJECT_ID, WORKFLOW_FILES "
                "and get_configuration()",
            )
        ]

    if load.error is not None:
        findings = [
            _finding(
                load,
                f"Cannot parse config.py: {load.error}",
                "Fix the errors in config.py so that it can be imported",
            )
        ]
        for name, pattern in _EXPORT_PATTERNS.items():
            if not pattern.search(load.source):
                findings.append(_missing_export(load, name))
        return findings

    findings = _invalid_exports(load)
    if load.configuration_error is not None:
        findings.append(
            _finding(
                load,
                f"get_configuration() failed: {load.configuration_error}",
                "get_configuration() must return a dict with processId and a workflows list",
            )
        )
    return findings


script = PathScript(metadata, check_config_exports)
