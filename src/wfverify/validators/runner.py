"""Validation runner for orchestrating rules and scripts.

Provides a unified interface to validate a single workflow file or a whole
use-case folder and aggregate the findings into one result.
Supports concurrent per-file validation and selective rule runs.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from wfverify.config import WfverifyConfig
from wfverify.graph import WorkflowParseError, locate_node_lines, parse_workflow
from wfverify.use_case_config import list_workflow_files, shared_config_loads
from wfverify.validators.base import Finding, ValidationResult
from wfverify.validators.registry import (
    ContentScript,
    GraphRule,
    PathScript,
    Rule,
    RuleContext,
    RuleRegistry,
    get_global_registry,
)

logger = logging.getLogger(__name__)

# Ids of findings produced by the runner itself
FILE_NOT_FOUND = "FILE-001"
FILE_UNREADABLE = "FILE-002"
INVALID_JSON = "JSON-001"
FOLDER_NOT_FOUND = "FOLDER-001"


def _runner_finding(rule: str, path: Path | str, message: str) -> Finding:
    return Finding(rule=rule, severity="must", path=str(path), message=message)


class ValidationRunner:
    """Orchestrates running the rule catalogue.

    Supports:
    - Validating one workflow file or in-memory workflow text
    - Validating a use-case folder (use-case scripts plus every workflow file)
    - Allow-list and deny-list filtering by rule id
    - Concurrent per-file validation in worker threads

    Ordering is stable: graph rules before workflow scripts, each group in
    registration order, workflow files in sorted order.
    """

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        config: WfverifyConfig | None = None,
        parallel: bool | None = None,
    ) -> None:
        """Initialize validation runner.

        Args:
            registry: Rules to run. Defaults to the built-in catalogue.
            config: Resolved tool settings, used for defaults.
            parallel: Validate use-case workflow files concurrently.
                Defaults to ``config.parallel`` (True without a config).
        """
        self.registry = registry if registry is not None else get_global_registry()
        self.config = config
        if parallel is None:
            parallel = config.parallel if config is not None else True
        self.parallel = parallel

    # ------------------------------------------------------------------------
    # Settings resolution
    # ------------------------------------------------------------------------

    def _strict(self, strict: bool | None) -> bool:
        if strict is not None:
            return strict
        return self.config.strict if self.config is not None else False

    def _skip_workflows(self, skip_workflows: bool | None) -> bool:
        if skip_workflows is not None:
            return skip_workflows
        return self.config.skip_workflows if self.config is not None else False

    def _excluded(self, exclude_rules: Iterable[str] | None) -> list[str]:
        excluded = list(self.config.exclude_rules) if self.config is not None else []
        excluded.extend(exclude_rules or [])
        return excluded

    # ------------------------------------------------------------------------
    # Rule invocation
    # ------------------------------------------------------------------------

    def _checked(self, rule: Rule, findings: Any) -> list[Finding]:
        if not isinstance(findings, list):
            raise TypeError(f"returned {type(findings).__name__}, expected a list of findings")
        for finding in findings:
            if finding.rule != rule.id:
                logger.warning(
                    "Rule %s emitted a finding tagged %s: %s",
                    rule.id,
                    finding.rule,
                    finding.message,
                )
        return findings

    def _failed(self, rule: Rule, path: Path | str, exc: Exception) -> list[Finding]:
        logger.error("Rule %s failed on %s: %s", rule.id, path, exc, exc_info=True)
        return [_runner_finding(rule.id, path, f"Rule {rule.id} failed: {exc!s}")]

    def _invoke(self, rule: GraphRule | ContentScript, path: str, *args: Any) -> list[Finding]:
        try:
            return self._checked(rule, rule.check(*args))
        except Exception as e:
            return self._failed(rule, path, e)

    async def _invoke_path_script(self, script: PathScript, use_case_path: Path) -> list[Finding]:
        try:
            outcome = script.check(use_case_path)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            return self._checked(script, outcome)
        except Exception as e:
            return self._failed(script, use_case_path, e)

    # ------------------------------------------------------------------------
    # Single workflow
    # ------------------------------------------------------------------------

    def _run_content(
        self,
        content: str,
        path: str,
        rules: Iterable[str] | None,
        exclude_rules: Iterable[str] | None,
    ) -> list[Finding]:
        try:
            graph = parse_workflow(content)
        except WorkflowParseError as e:
            return [_runner_finding(INVALID_JSON, path, f"Invalid workflow JSON: {e}")]

        selected = self.registry.select(rules, self._excluded(exclude_rules))
        ctx = RuleContext(path=path, cfg=self.config, node_lines=locate_node_lines(content, graph))

        findings: list[Finding] = []
        for rule in selected:
            if isinstance(rule, GraphRule):
                findings.extend(self._invoke(rule, path, graph, ctx))
        for rule in selected:
            if isinstance(rule, ContentScript):
                findings.extend(self._invoke(rule, path, content, path))
        return findings

    def _validate_file(
        self,
        path: Path,
        rules: Iterable[str] | None,
        exclude_rules: Iterable[str] | None,
    ) -> list[Finding]:
        if not path.is_file():
            return [_runner_finding(FILE_NOT_FOUND, path, f"Workflow file does not exist: {path}")]

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return [_runner_finding(FILE_UNREADABLE, path, f"Failed to read workflow file: {e}")]

        logger.debug("Validating workflow %s", path)
        return self._run_content(content, str(path), rules, exclude_rules)

    def validate_workflow(
        self,
        path: Path | str,
        *,
        strict: bool | None = None,
        rules: Iterable[str] | None = None,
        exclude_rules: Iterable[str] | None = None,
    ) -> ValidationResult:
        """Validate a single workflow file.

        Args:
            path: Path to the workflow JSON file.
            strict: Count "should" findings as blocking.
            rules: Optional allow-list of rule ids.
            exclude_rules: Optional deny-list of rule ids.

        Returns:
            ValidationResult for the file. A missing, unreadable or
            unparsable file yields a single blocking finding.
        """
        path = Path(path)
        findings = self._validate_file(path, rules, exclude_rules)
        return ValidationResult(
            findings=findings,
            files_validated=[str(path)],
            strict=self._strict(strict),
        )

    def check_workflow_content(
        self,
        content: str,
        path: Path | str,
        *,
        strict: bool | None = None,
        rules: Iterable[str] | None = None,
        exclude_rules: Iterable[str] | None = None,
    ) -> ValidationResult:
        """Validate in-memory workflow text as if it were the file at ``path``."""
        findings = self._run_content(content, str(path), rules, exclude_rules)
        return ValidationResult(
            findings=findings,
            files_validated=[str(path)],
            strict=self._strict(strict),
        )

    # ------------------------------------------------------------------------
    # Use case
    # ------------------------------------------------------------------------

    async def _validate_workflow_files(
        self,
        paths: list[Path],
        rules: Iterable[str] | None,
        exclude_rules: Iterable[str] | None,
    ) -> list[list[Finding]]:
        if self.parallel and len(paths) > 1:
            # gather keeps argument order, so results stay in sorted file order
            return list(
                await asyncio.gather(
                    *(
                        asyncio.to_thread(self._validate_file, path, rules, exclude_rules)
                        for path in paths
                    )
                )
            )
        return [self._validate_file(path, rules, exclude_rules) for path in paths]

    async def validate_use_case(
        self,
        use_case_path: Path | str,
        *,
        strict: bool | None = None,
        skip_workflows: bool | None = None,
        rules: Iterable[str] | None = None,
        exclude_rules: Iterable[str] | None = None,
    ) -> ValidationResult:
        """Validate a use-case folder.

        Runs the use-case scripts first, then validates every
        ``workflows/*.json`` file unless ``skip_workflows`` is set. Findings
        of workflow files are prefixed with ``[<file name>]``.
        The use case's ``config.py`` is evaluated once per call and shared
        by every use-case script.

        Args:
            use_case_path: Path to the use-case folder.
            strict: Count "should" findings as blocking.
            skip_workflows: Skip per-file workflow validation.
            rules: Optional allow-list of rule ids.
            exclude_rules: Optional deny-list of rule ids.

        Returns:
            ValidationResult for the whole use case.
        """
        use_case_path = Path(use_case_path)
        strict = self._strict(strict)

        if not use_case_path.is_dir():
            return ValidationResult(
                findings=[
                    _runner_finding(
                        FOLDER_NOT_FOUND,
                        use_case_path,
                        f"Use-case folder does not exist: {use_case_path}",
                    )
                ],
                files_validated=[str(use_case_path)],
                strict=strict,
            )

        logger.debug("Validating use case %s", use_case_path)
        rule_list = list(rules) if rules is not None else None
        exclude_list = list(exclude_rules or [])

        findings: list[Finding] = []
        with shared_config_loads():
            for rule in self.registry.select(rule_list, self._excluded(exclude_list)):
                if isinstance(rule, PathScript):
                    findings.extend(await self._invoke_path_script(rule, use_case_path))

        files_validated = [str(use_case_path)]
        if not self._skip_workflows(skip_workflows):
            workflow_paths = list_workflow_files(use_case_path)
            per_file = await self._validate_workflow_files(
                workflow_paths, rule_list, exclude_list
            )
            for workflow_path, file_findings in zip(workflow_paths, per_file):
                files_validated.append(str(workflow_path))
                findings.extend(
                    dataclasses.replace(
                        finding, message=f"[{workflow_path.name}] {finding.message}"
                    )
                    for finding in file_findings
                )

        result = ValidationResult(findings=findings, files_validated=files_validated, strict=strict)
        logger.debug(
            "Use case %s: %d finding(s), valid=%s", use_case_path, len(findings), result.valid
        )
        return result

    def run_use_case(
        self,
        use_case_path: Path | str,
        *,
        strict: bool | None = None,
        skip_workflows: bool | None = None,
        rules: Iterable[str] | None = None,
        exclude_rules: Iterable[str] | None = None,
    ) -> ValidationResult:
        """Synchronous wrapper around :meth:`validate_use_case`."""
        return asyncio.run(
            self.validate_use_case(
                use_case_path,
                strict=strict,
                skip_workflows=skip_workflows,
                rules=rules,
                exclude_rules=exclude_rules,
            )
        )
