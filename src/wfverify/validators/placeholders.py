"""Deployment placeholder vocabulary.

Placeholders look like ``{{PREFIX_NAME_SUFFIX}}`` where the suffix is the
prefix reversed. The platform substitutes them at deploy time.
"""

from __future__ import annotations

import re

PLACEHOLDER_SUFFIXES: dict[str, str] = {
    "ORGSECRET": "TERCESORG",
    "PROCDATA": "ATADCORP",
    "USERDATA": "ATADRESU",
    "MEMSECRT": "TRCESMEM",
    "FLEXCRED": "DERCXELF",
    "USERCRED": "DERCRESU",
    "ORGCRED": "DERCGRO",
    "SUBWKFL": "LFKWBUS",
    "INSTPARM": "MRAPTSNI",
}

PLACEHOLDER_PATTERN = re.compile(
    r"\{\{(" + "|".join(PLACEHOLDER_SUFFIXES) + r")_([A-Z0-9_]+)_([A-Z]+)\}\}"
)

QUOTED_INSTPARM_PATTERN = re.compile(r"""(['"])(\{\{INSTPARM_[A-Z0-9_]+_MRAPTSNI\}\})\1""")

VALID_CREDENTIAL_PATTERNS = (
    re.compile(r"\{\{FLEXCRED_[A-Z0-9_]+_DERCXELF\}\}"),
    re.compile(r"\{\{USERCRED_[A-Z0-9_]+_DERCRESU\}\}"),
    re.compile(r"\{\{ORGCRED_[A-Z0-9_]+_DERCGRO\}\}"),
)

SUBWORKFLOW_REFERENCE_PATTERN = re.compile(r"\{\{SUBWKFL_([a-zA-Z0-9_-]+)_LFKWBUS\}\}")

CREDENTIAL_REFERENCE_PATTERN = re.compile(
    r"\{\{(FLEXCRED|USERCRED|ORGCRED|INSTCRED)_([A-Z0-9_]+)_(ID|NAME)"
    r"_(DERCXELF|DERCRESU|DERCGRO|DERCTSNI)\}\}"
)

BASE_URL_PLACEHOLDER = "{{ORGSECRET_N8N_BASE_URL_TERCESORG}}"
ERROR_WORKFLOW_PLACEHOLDER = "{{ORGSECRET_ERROR_WORKFLOW_ID_TERCESORG}}"


def make_placeholder(prefix: str, name: str) -> str:
    """Build a well-formed placeholder for a known prefix."""
    return f"{{{{{prefix}_{name}_{PLACEHOLDER_SUFFIXES[prefix]}}}}}"


def is_credential_placeholder(value: str) -> bool:
    return any(pattern.search(value) for pattern in VALID_CREDENTIAL_PATTERNS)


def subworkflow_references(content: str) -> list[str]:
    """List the template ids referenced by SUBWKFL placeholders, deduplicated in order."""
    return list(dict.fromkeys(SUBWORKFLOW_REFERENCE_PATTERN.findall(content)))


def credential_integrations(content: str) -> list[str]:
    """List integration ids used by credential placeholders, lowercased and deduplicated."""
    names = (match.group(2).lower() for match in CREDENTIAL_REFERENCE_PATTERN.finditer(content))
    return list(dict.fromkeys(names))


def line_at(content: str, index: int) -> int:
    """Get the 1-based line of a character offset."""
    return content.count("\n", 0, index) + 1
