"""Script INSTPARM-QUOTE: instance parameter placeholders are never quoted.

A quoted placeholder becomes a string literal instead of the substituted value.
"""

from __future__ import annotations

from wfverify.validators.base import Finding, Fix, RuleMetadata
from wfverify.validators.placeholders import QUOTED_INSTPARM_PATTERN, line_at
from wfverify.validators.registry import ContentScript

metadata = RuleMetadata(
    id="INSTPARM-QUOTE",
    name="instparm_quoting",
    severity="must",
    description="INSTPARM placeholders should not be wrapped in quotes",
    details="Remove quotes around INSTPARM placeholders so they are properly replaced at runtime",
    fixable=True,
    category="placeholder",
)


def _unquote(quoted: str, placeholder: str) -> Fix:
    return Fix(
        description=f"Remove quotes around {placeholder}",
        apply=lambda content: content.replace(quoted, placeholder, 1),
    )


def check_instparm_quoting(content: str, path: str) -> list[Finding]:
    findings: list[Finding] = []
    for match in QUOTED_INSTPARM_PATTERN.finditer(content):
        quote, placeholder = match.group(1), match.group(2)
        quoted = match.group(0)
        findings.append(
            Finding(
                rule=metadata.id,
                severity=metadata.severity,
                path=path,
                message=f"INSTPARM placeholder should not be quoted: {quoted}",
                raw_details=(
                    f"Remove the {quote} quotes around {placeholder}. Quoted placeholders "
                    "become string literals instead of being replaced with values."
                ),
                line=line_at(content, match.start()),
                fixable=True,
                fix=_unquote(quoted, placeholder),
            )
        )
    return findings


script = ContentScript(metadata, check_instparm_quoting)
