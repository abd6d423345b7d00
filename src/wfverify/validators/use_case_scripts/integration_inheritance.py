"""Script INTEGRATION-INHERITANCE: workflows declare the integrations they use.

Two checks over ``integrationUids``:

1. A workflow declares every integration its own credential placeholders use.
2. A workflow declares every integration required by the subworkflows it
   can reach, transitively, over call edges. A subworkflow requires what it
   declares in ``integrationUids`` and what its credential placeholders use.
   Call edges come from SUBWKFL placeholders and from ``calledBy`` lists.
   Integrations already reported by check 1 are not repeated.

Fixes edit ``config.py`` and recompute what is missing when applied, so they
can run in any order and more than once.
"""

from __future__ import annotations

from pathlib import Path

from wfverify.graph import reachable_from
from wfverify.use_case_config import ProcessConfiguration, load_use_case_config
from wfverify.validators.base import Finding, Fix, GuideRef, RuleMetadata
from wfverify.validators.placeholders import credential_integrations, subworkflow_references
from wfverify.validators.registry import PathScript
from wfverify.validators.use_case_scripts.blocks import (
    append_list_items,
    find_block,
    insert_entry_after,
)
from wfverify.validators.use_case_scripts.common import read_workflow_files

metadata = RuleMetadata(
    id="INTEGRATION-INHERITANCE",
    name="integration_inheritance",
    severity="should",
    description="Workflows must declare all integrations they use (directly or via subworkflows)",
    details=(
        "List every integration detected from credential placeholders in integrationUids, "
        "including those of called subworkflows"
    ),
    fixable=True,
    category="integrations",
    guide_ref=GuideRef("specific/integrations.md", "Integration Declaration"),
)


def build_call_graph(
    configuration: ProcessConfiguration, references: dict[str, list[str]]
) -> dict[str, list[str]]:
    """Map each workflow to the subworkflows it calls directly.

    Args:
        configuration: Loaded configuration, for ``calledBy`` edges.
        references: Template id -> SUBWKFL ids referenced by its workflow file.
    """
    calls: dict[str, list[str]] = {}

    def add(caller: str, callee: str) -> None:
        callees = calls.setdefault(caller, [])
        if callee not in callees:
            callees.append(callee)

    for caller, callees in references.items():
        for callee in callees:
            add(caller, callee)

    for entry in configuration.workflows:
        trigger = entry.subworkflow_trigger
        for caller in (trigger.called_by or []) if trigger is not None else []:
            add(caller, entry.workflow_template_id)

    return calls


def integration_requirements(
    configuration: ProcessConfiguration, used: dict[str, list[str]]
) -> dict[str, list[str]]:
    """Map each workflow to the integrations a caller must declare for it.

    A workflow requires what it declares in ``integrationUids`` plus what its
    credential placeholders use, in that order.
    """
    required: dict[str, list[str]] = {}

    def add(template_id: str, uids: list[str]) -> None:
        requirements = required.setdefault(template_id, [])
        for uid in uids:
            if uid not in requirements:
                requirements.append(uid)

    for entry in configuration.workflows:
        add(entry.workflow_template_id, entry.integration_uids)
    for template_id, uids in used.items():
        add(template_id, uids)
    return required


def add_integrations(source: str, template_id: str, integrations: list[str]) -> str:
    """Add integrations to a workflow's integrationUids in config source.

    Appends to an existing list, or adds the key after the workflow's
    ``triggers`` list. Integrations already listed are skipped.
    """
    block = find_block(source, template_id)
    if block is None:
        return source

    declared = block.find_list(source, "integrationUids")
    if declared.state != "absent":
        missing = [uid for uid in integrations if uid not in declared.items]
        if not missing:
            return source
        return append_list_items(source, declared, missing, block.value_quote)

    triggers = block.find_list(source, "triggers")
    if triggers.state == "absent":
        return source
    return insert_entry_after(
        source,
        triggers.close_index + 1,
        triggers.key_start,
        block.format_entry("integrationUids", integrations),
    )


def _add_integrations_fix(template_id: str, integrations: list[str], description: str) -> Fix:
    return Fix(
        description=description,
        apply=lambda source: add_integrations(source, template_id, integrations),
    )


def _quoted(values: list[str]) -> str:
    return ", ".join(f"'{value}'" for value in values)


def check_integration_inheritance(use_case_path: Path) -> list[Finding]:
    load = load_use_case_config(use_case_path)
    if load.configuration is None:
        return []

    used: dict[str, list[str]] = {}
    references: dict[str, list[str]] = {}
    for workflow in read_workflow_files(Path(use_case_path)):
        used[workflow.template_id] = credential_integrations(workflow.content)
        references[workflow.template_id] = subworkflow_references(workflow.content)

    calls = build_call_graph(load.configuration, references)
    required = integration_requirements(load.configuration, used)
    config_path = str(load.config_path)
    findings: list[Finding] = []

    for entry in load.configuration.workflows:
        workflow_id = entry.workflow_template_id
        declared = entry.integration_uids
        direct = used.get(workflow_id, [])

        missing_direct = [uid for uid in direct if uid not in declared]
        if missing_direct:
            findings.append(
                Finding(
                    rule=metadata.id,
                    severity=metadata.severity,
                    path=config_path,
                    message=(
                        f'Workflow "{workflow_id}" uses integrations not declared in its '
                        f"integrationUids: {', '.join(missing_direct)}"
                    ),
                    raw_details=(
                        "Add the following integrations to the integrationUids array for "
                        f"workflow '{workflow_id}' in config.py: {_quoted(missing_direct)}. "
                        "These integrations are detected from credential placeholders in the "
                        "workflow JSON."
                    ),
                    guide_ref=metadata.guide_ref,
                    fixable=True,
                    fix=_add_integrations_fix(
                        workflow_id,
                        missing_direct,
                        f"Add missing integrations to '{workflow_id}': {', '.join(missing_direct)}",
                    ),
                )
            )

        subworkflows = sorted(reachable_from(calls, workflow_id) - {workflow_id})
        inherited: list[str] = []
        for subworkflow_id in subworkflows:
            for uid in required.get(subworkflow_id, []):
                if uid not in inherited:
                    inherited.append(uid)

        missing_inherited = [
            uid for uid in inherited if uid not in declared and uid not in direct
        ]
        if missing_inherited:
            findings.append(
                Finding(
                    rule=metadata.id,
                    severity=metadata.severity,
                    path=config_path,
                    message=(
                        f'Workflow "{workflow_id}" calls subworkflows that use integrations '
                        f"not declared in its integrationUids: {', '.join(missing_inherited)}"
                    ),
                    raw_details=(
                        "Add the following integrations to the integrationUids array for "
                        f"workflow '{workflow_id}' in config.py: {_quoted(missing_inherited)}. "
                        "These integrations are required by called subworkflows: "
                        f"{', '.join(subworkflows)}"
                    ),
                    guide_ref=metadata.guide_ref,
                    fixable=True,
                    fix=_add_integrations_fix(
                        workflow_id,
                        missing_inherited,
                        f"Add inherited integrations to '{workflow_id}': "
                        f"{', '.join(missing_inherited)}",
                    ),
                )
            )

    return findings


script = PathScript(metadata, check_integration_inheritance)
