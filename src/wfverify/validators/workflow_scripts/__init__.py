"""Workflow scripts: checks over one workflow file's raw text.

Scripts execute in the order of ``WORKFLOW_SCRIPTS``.
"""

from wfverify.validators.registry import ContentScript
from wfverify.validators.workflow_scripts import (
    credential_placeholders,
    instparm_quoting,
    llm_model_id,
    llm_output_access,
    placeholder_syntax,
    webhook_id,
    workflow_sanitization,
    workflow_settings,
)

WORKFLOW_SCRIPTS: list[ContentScript] = [
    instparm_quoting.script,
    placeholder_syntax.script,
    credential_placeholders.script,
    workflow_settings.script,
    workflow_sanitization.script,
    llm_output_access.script,
    webhook_id.script,
    llm_model_id.script,
]

__all__ = ["WORKFLOW_SCRIPTS"]
