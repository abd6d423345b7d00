"""Script PLACEHOLDER-SYNTAX: each placeholder prefix carries its own suffix."""

from __future__ import annotations

from wfverify.validators.base import Finding, Fix, RuleMetadata
from wfverify.validators.placeholders import (
    PLACEHOLDER_PATTERN,
    PLACEHOLDER_SUFFIXES,
    line_at,
    make_placeholder,
)
from wfverify.validators.registry import ContentScript

metadata = RuleMetadata(
    id="PLACEHOLDER-SYNTAX",
    name="placeholder_syntax",
    severity="must",
    description="Placeholders must use correct suffix format",
    details=(
        "Each placeholder type has a specific required suffix. "
        "Check the placeholder documentation for correct formats."
    ),
    fixable=True,
    category="placeholder",
)


def _rewrite(wrong: str, correct: str) -> Fix:
    return Fix(
        description=f"Fix suffix: {wrong} -> {correct}",
        apply=lambda content: content.replace(wrong, correct, 1),
    )


def check_placeholder_syntax(content: str, path: str) -> list[Finding]:
    findings: list[Finding] = []
    for match in PLACEHOLDER_PATTERN.finditer(content):
        prefix, name, suffix = match.groups()
        expected = PLACEHOLDER_SUFFIXES[prefix]
        if suffix == expected:
            continue

        wrong = match.group(0)
        correct = make_placeholder(prefix, name)
        findings.append(
            Finding(
                rule=metadata.id,
                severity=metadata.severity,
                path=path,
                message=f"Invalid placeholder suffix: {wrong} should end with _{expected}",
                raw_details=f"Replace {wrong} with {correct}",
                line=line_at(content, match.start()),
                fixable=True,
                fix=_rewrite(wrong, correct),
            )
        )
    return findings


script = ContentScript(metadata, check_placeholder_syntax)
