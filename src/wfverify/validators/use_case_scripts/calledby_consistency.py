"""Script CALLEDBY-CONSISTENCY: subworkflows list every caller in ``calledBy``.

When workflow A references subworkflow B through a SUBWKFL placeholder, B's
subworkflow trigger must include A in its ``calledBy`` list. The fix edits
``config.py`` in place, appending to the list or adding the key after the
trigger's ``type``.
"""

from __future__ import annotations

import re
from pathlib import Path

from wfverify.use_case_config import load_use_case_config
from wfverify.validators.base import Finding, Fix, GuideRef, RuleMetadata
from wfverify.validators.placeholders import subworkflow_references
from wfverify.validators.registry import PathScript
from wfverify.validators.use_case_scripts.blocks import (
    append_list_items,
    find_block,
    insert_entry_after,
)
from wfverify.validators.use_case_scripts.common import read_workflow_files

SUBWORKFLOW_TYPE_PATTERN = re.compile(r"""(["']?)\btype\1\s*[:=]\s*["']subworkflow["']""")

metadata = RuleMetadata(
    id="CALLEDBY-CONSISTENCY",
    name="calledby_consistency",
    severity="should",
    description="Subworkflow calledBy arrays must include all actual callers",
    details="When workflow A calls subworkflow B, B's trigger config must list A in calledBy",
    fixable=True,
    category="references",
    guide_ref=GuideRef("specific/sub-workflows.md", "calledBy Array"),
)


def collect_callers(use_case_path: Path) -> dict[str, list[str]]:
    """Map each referenced subworkflow id to the template ids that call it."""
    callers: dict[str, list[str]] = {}
    for workflow in read_workflow_files(use_case_path):
        for subworkflow_id in subworkflow_references(workflow.content):
            callers.setdefault(subworkflow_id, [])
            if workflow.template_id not in callers[subworkflow_id]:
                callers[subworkflow_id].append(workflow.template_id)
    return callers


def add_caller(source: str, subworkflow_id: str, caller_id: str) -> str:
    """Add ``caller_id`` to the calledBy list of a subworkflow in config source.

    Returns the source unchanged when the caller is already listed or the
    subworkflow trigger cannot be located.
    """
    block = find_block(source, subworkflow_id)
    if block is None:
        return source

    called_by = block.find_list(source, "calledBy")
    if called_by.state != "absent":
        if caller_id in called_by.items:
            return source
        return append_list_items(source, called_by, [caller_id], block.value_quote)

    type_match = SUBWORKFLOW_TYPE_PATTERN.search(source, block.start, block.end)
    if type_match is None:
        return source
    return insert_entry_after(
        source, type_match.end(), type_match.start(), block.format_entry("calledBy", [caller_id])
    )


def _add_caller_fix(subworkflow_id: str, caller_id: str, has_field: bool) -> Fix:
    description = (
        f"Add '{caller_id}' to calledBy array for '{subworkflow_id}'"
        if has_field
        else f"Add calledBy field with '{caller_id}' for '{subworkflow_id}'"
    )
    return Fix(
        description=description,
        apply=lambda source: add_caller(source, subworkflow_id, caller_id),
    )


def check_calledby_consistency(use_case_path: Path) -> list[Finding]:
    load = load_use_case_config(use_case_path)
    if load.configuration is None:
        return []

    findings: list[Finding] = []
    for subworkflow_id, callers in collect_callers(Path(use_case_path)).items():
        entry = load.configuration.get_workflow(subworkflow_id)
        trigger = entry.subworkflow_trigger if entry is not None else None
        if trigger is None:
            continue

        has_field = trigger.called_by is not None
        listed = trigger.called_by or []
        for caller_id in callers:
            if caller_id in listed:
                continue

            if has_field:
                current = ", ".join(f"'{c}'" for c in listed)
                message = (
                    f'Subworkflow "{subworkflow_id}" is called by "{caller_id}" but '
                    f'"{caller_id}" is not listed in its calledBy array'
                )
                raw_details = (
                    f"Add '{caller_id}' to the calledBy array for subworkflow "
                    f"'{subworkflow_id}' in config.py. Current calledBy: [{current}]"
                )
            else:
                message = (
                    f'Subworkflow "{subworkflow_id}" is called by "{caller_id}" '
                    "but has no calledBy field"
                )
                raw_details = (
                    f"Add calledBy: ['{caller_id}'] to the trigger configuration for "
                    f"subworkflow '{subworkflow_id}' in config.py"
                )

            findings.append(
                Finding(
                    rule=metadata.id,
                    severity=metadata.severity,
                    path=str(load.config_path),
                    message=message,
                    raw_details=raw_details,
                    guide_ref=metadata.guide_ref,
                    fixable=True,
                    fix=_add_caller_fix(subworkflow_id, caller_id, has_field),
                )
            )
    return findings


script = PathScript(metadata, check_calledby_consistency)
