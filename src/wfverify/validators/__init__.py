"""Validation framework for n8n workflows and use-case folders.

Provides the finding model, the rule registry and the runner that executes
graph rules, workflow scripts and use-case scripts.
"""

from __future__ import annotations

from wfverify.validators.base import (
    SEVERITIES,
    Finding,
    FindingSummary,
    Fix,
    GuideRef,
    RuleMetadata,
    Severity,
    ValidationResult,
)
from wfverify.validators.registry import (
    ContentScript,
    GraphRule,
    PathScript,
    RuleContext,
    RuleRegistry,
    create_default_registry,
    get_global_registry,
)
from wfverify.validators.runner import ValidationRunner

__all__ = [
    # Base types
    "SEVERITIES",
    "Finding",
    "FindingSummary",
    "Fix",
    "GuideRef",
    "RuleMetadata",
    "Severity",
    "ValidationResult",
    # Registry
    "ContentScript",
    "GraphRule",
    "PathScript",
    "RuleContext",
    "RuleRegistry",
    "create_default_registry",
    "get_global_registry",
    # Runner
    "ValidationRunner",
]
