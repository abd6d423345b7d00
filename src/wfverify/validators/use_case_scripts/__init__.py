"""Use-case scripts: cross-file checks over a whole use-case folder.

Scripts execute in the order of ``USE_CASE_SCRIPTS``.
"""

from wfverify.validators.registry import PathScript
from wfverify.validators.use_case_scripts import (
    calledby_consistency,
    config_exports,
    config_workflows,
    integration_inheritance,
    schema_types,
    subworkflow_references,
    trigger_type_consistency,
    triggers_required,
    webhook_path_consistency,
)

USE_CASE_SCRIPTS: list[PathScript] = [
    config_exports.script,
    config_workflows.script,
    schema_types.script,
    subworkflow_references.script,
    calledby_consistency.script,
    integration_inheritance.script,
    webhook_path_consistency.script,
    triggers_required.script,
    trigger_type_consistency.script,
]

__all__ = ["USE_CASE_SCRIPTS"]
