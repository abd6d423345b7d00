"""Script SCHEMA-TYPES: schema fields use supported field types.

Input schemas live on triggers, output schemas on workflow entries. Fields
may nest (object fields, array items, sections), so the walk is recursive.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from wfverify.use_case_config import (
    HttpTrigger,
    ServiceEventTrigger,
    SubworkflowTrigger,
    load_use_case_config,
)
from wfverify.validators.base import Finding, RuleMetadata
from wfverify.validators.placeholders import line_at
from wfverify.validators.registry import PathScript

VALID_FIELD_TYPES = (
    "string",
    "text",
    "number",
    "boolean",
    "date",
    "select",
    "multiselect",
    "radio",
    "file",
    "array",
    "object",
    "objectArray",
    "section",
)

metadata = RuleMetadata(
    id="SCHEMA-TYPES",
    name="schema_types",
    severity="should",
    description="Schema field types must be valid",
    details="Use only supported field types in input and output schemas",
    category="schema",
)


def iter_field_types(schema: Any) -> Iterator[str]:
    """Yield the ``type`` of every field in a schema, depth-first."""
    if isinstance(schema, list):
        for item in schema:
            yield from iter_field_types(item)
    elif isinstance(schema, dict):
        field_type = schema.get("type")
        if isinstance(field_type, str):
            yield field_type
        for key, value in schema.items():
            if key != "type" and isinstance(value, (list, dict)):
                yield from iter_field_types(value)


def _type_line(source: str, field_type: str) -> int | None:
    pattern = re.compile(rf"""["']?type["']?\s*[:=]\s*["']{re.escape(field_type)}["']""")
    match = pattern.search(source)
    return line_at(source, match.start()) if match else None


def check_schema_types(use_case_path: Path) -> list[Finding]:
    load = load_use_case_config(use_case_path)
    if load.configuration is None:
        return []

    schemas: list[Any] = []
    for entry in load.configuration.workflows:
        for trigger in entry.triggers:
            if isinstance(trigger, (HttpTrigger, ServiceEventTrigger, SubworkflowTrigger)):
                schemas.append(trigger.input_schema)
        schemas.append(entry.output_schema)

    findings: list[Finding] = []
    for field_type in iter_field_types(schemas):
        if field_type in VALID_FIELD_TYPES:
            continue
        findings.append(
            Finding(
                rule=metadata.id,
                severity=metadata.severity,
                path=str(load.config_path),
                message=f'Unknown schema field type: "{field_type}"',
                raw_details=f"Valid types are: {', '.join(VALID_FIELD_TYPES)}",
                line=_type_line(load.source, field_type),
            )
        )
    return findings


script = PathScript(metadata, check_schema_types)
