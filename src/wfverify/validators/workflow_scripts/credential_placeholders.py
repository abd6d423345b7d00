"""Script CRED-PLACEHOLDER: credential references use placeholders.

Valid credential placeholders are FLEXCRED (organization first, falling back
to the user), USERCRED and ORGCRED. Anything that looks like an id minted by
n8n is reported.
"""

from __future__ import annotations

import re

from wfverify.graph import find_node_line
from wfverify.validators.base import Finding, RuleMetadata
from wfverify.validators.placeholders import is_credential_placeholder
from wfverify.validators.registry import ContentScript
from wfverify.validators.workflow_scripts.common import load_workflow, workflow_nodes

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
NUMERIC_ID_PATTERN = re.compile(r"^\d+$")
OPAQUE_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{20,}$")

metadata = RuleMetadata(
    id="CRED-PLACEHOLDER",
    name="credential_placeholders",
    severity="should",
    description="Credential references should use proper placeholders",
    details="Replace hardcoded credential IDs with FLEXCRED, USERCRED, or ORGCRED placeholders",
    category="credentials",
)


def looks_hardcoded(value: str) -> bool:
    return any(
        pattern.match(value)
        for pattern in (UUID_PATTERN, NUMERIC_ID_PATTERN, OPAQUE_ID_PATTERN)
    )


def check_credential_placeholders(content: str, path: str) -> list[Finding]:
    data = load_workflow(content)
    if data is None:
        return []

    findings: list[Finding] = []
    for node in workflow_nodes(data):
        credentials = node.get("credentials")
        if not isinstance(credentials, dict):
            continue

        for cred_type, cred in credentials.items():
            cred_id = cred.get("id") if isinstance(cred, dict) else None
            if not isinstance(cred_id, str) or not cred_id:
                continue
            if is_credential_placeholder(cred_id) or not looks_hardcoded(cred_id):
                continue

            node_id = node.get("id")
            findings.append(
                Finding(
                    rule=metadata.id,
                    severity=metadata.severity,
                    path=path,
                    message=(
                        f'Node "{node.get("name") or node_id}" has hardcoded credential ID '
                        f'for "{cred_type}"'
                    ),
                    raw_details=(
                        f'Replace the hardcoded credential ID "{cred_id}" with a placeholder '
                        f"like {{{{FLEXCRED_{cred_type.upper()}_DERCXELF}}}}. Hardcoded IDs "
                        "won't work when the workflow is deployed to different environments."
                    ),
                    node_id=node_id if isinstance(node_id, str) else None,
                    line=find_node_line(content, node_id) if isinstance(node_id, str) else None,
                )
            )
    return findings


script = ContentScript(metadata, check_credential_placeholders)
