"""Loader for use-case configuration modules.

A use-case folder holds ``config.py`` next to a ``workflows/`` folder of
workflow JSON files. ``config.py`` exports:

- ``PROJECT_ID``: non-empty string
- ``WORKFLOW_FILES``: list of workflow file paths
- ``get_configuration()``: returns the deployment payload as a dict using
  the platform's wire keys (``processId``, ``workflows``, ...)

Loading never raises for problems inside the use case; they are reported on
the returned ``ConfigLoad`` so validators can turn them into findings.
"""

from __future__ import annotations

import importlib.util
import itertools
import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.py"
WORKFLOWS_DIRNAME = "workflows"

REQUIRED_EXPORTS = ("PROJECT_ID", "WORKFLOW_FILES", "get_configuration")

_module_counter = itertools.count()

# Loads shared by every caller inside shared_config_loads(), keyed by resolved path
_shared_loads: ContextVar[dict[Path, ConfigLoad] | None] = ContextVar(
    "wfverify_shared_loads", default=None
)


# ----------------------------------------------------------------------------
# Triggers
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class HttpTrigger:
    """Webhook-backed trigger invoked over HTTP."""

    trigger_id: str | None = None
    url: str | None = None
    method: str | None = None
    input_schema: list[Any] = field(default_factory=list)
    type: str = "http"


@dataclass(frozen=True)
class ScheduleTrigger:
    """Cron trigger, optionally runnable by hand through a webhook URL."""

    trigger_id: str | None = None
    cron_expression: str | None = None
    timezone: str | None = None
    manual_trigger_url: str | None = None
    type: str = "schedule"


@dataclass(frozen=True)
class ServiceEventTrigger:
    """Third-party service trigger (Gmail, Google Drive, Slack, ...)."""

    trigger_id: str | None = None
    service: str | None = None
    event: str | None = None
    input_schema: list[Any] = field(default_factory=list)
    type: str = "service_event"


@dataclass(frozen=True)
class SubworkflowTrigger:
    """Trigger of a workflow called by other workflows of the use case."""

    trigger_id: str | None = None
    called_by: list[str] | None = None
    input_schema: list[Any] = field(default_factory=list)
    type: str = "subworkflow"


@dataclass(frozen=True)
class UnknownTrigger:
    """Trigger with a type this tool does not model."""

    type: str
    trigger_id: str | None = None


Trigger = Union[
    HttpTrigger, ScheduleTrigger, ServiceEventTrigger, SubworkflowTrigger, UnknownTrigger
]


def _opt_str(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    return value if isinstance(value, str) else None


def _schema(raw: Mapping[str, Any], key: str) -> list[Any]:
    value = raw.get(key)
    return list(value) if isinstance(value, list) else []


def parse_trigger(raw: Any) -> Trigger:
    """Build the typed trigger for one ``triggers`` entry."""
    if not isinstance(raw, Mapping):
        return UnknownTrigger(type=type(raw).__name__)

    trigger_type = raw.get("type")
    trigger_id = _opt_str(raw, "triggerId")

    if trigger_type == "http":
        return HttpTrigger(
            trigger_id=trigger_id,
            url=_opt_str(raw, "url"),
            method=_opt_str(raw, "method"),
            input_schema=_schema(raw, "inputSchema"),
        )
    if trigger_type == "schedule":
        return ScheduleTrigger(
            trigger_id=trigger_id,
            cron_expression=_opt_str(raw, "cronExpression"),
            timezone=_opt_str(raw, "timezone"),
            manual_trigger_url=_opt_str(raw, "manualTriggerUrl"),
        )
    if trigger_type == "service_event":
        return ServiceEventTrigger(
            trigger_id=trigger_id,
            service=_opt_str(raw, "service"),
            event=_opt_str(raw, "event"),
            input_schema=_schema(raw, "inputSchema"),
        )
    if trigger_type == "subworkflow":
        called_by = raw.get("calledBy")
        return SubworkflowTrigger(
            trigger_id=trigger_id,
            called_by=(
                [caller for caller in called_by if isinstance(caller, str)]
                if isinstance(called_by, list)
                else None
            ),
            input_schema=_schema(raw, "inputSchema"),
        )
    return UnknownTrigger(type=str(trigger_type), trigger_id=trigger_id)


# ----------------------------------------------------------------------------
# Configuration payload
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkflowEntry:
    """One entry of the configuration's ``workflows`` list."""

    workflow_template_id: str
    workflow_id: str | None = None
    workflow_name: str | None = None
    triggers: list[Trigger] = field(default_factory=list)
    integration_uids: list[str] = field(default_factory=list)
    output_schema: list[Any] = field(default_factory=list)
    cost: float | int | None = None

    @property
    def subworkflow_trigger(self) -> SubworkflowTrigger | None:
        for trigger in self.triggers:
            if isinstance(trigger, SubworkflowTrigger):
                return trigger
        return None


@dataclass(frozen=True)
class ProcessConfiguration:
    """Typed view of the dict returned by ``get_configuration()``."""

    process_id: str | None = None
    workflows: list[WorkflowEntry] = field(default_factory=list)

    @property
    def template_ids(self) -> list[str]:
        return [entry.workflow_template_id for entry in self.workflows]

    def get_workflow(self, template_id: str) -> WorkflowEntry | None:
        for entry in self.workflows:
            if entry.workflow_template_id == template_id:
                return entry
        return None


def parse_configuration(raw: Any) -> ProcessConfiguration:
    """Build a ProcessConfiguration from the raw payload.

    Raises:
        ValueError: If the payload is not a dict or its workflows are malformed.
    """
    if not isinstance(raw, Mapping):
        raise ValueError(f"get_configuration() must return a dict, got {type(raw).__name__}")

    raw_workflows = raw.get("workflows", [])
    if not isinstance(raw_workflows, list):
        raise ValueError("'workflows' must be a list")

    workflows: list[WorkflowEntry] = []
    for index, item in enumerate(raw_workflows):
        if not isinstance(item, Mapping):
            raise ValueError(f"workflows[{index}] must be a dict")
        template_id = item.get("workflowTemplateId")
        if not isinstance(template_id, str) or not template_id:
            raise ValueError(f"workflows[{index}] has no workflowTemplateId")

        triggers = item.get("triggers")
        integration_uids = item.get("integrationUids")
        cost = item.get("cost")
        workflows.append(
            WorkflowEntry(
                workflow_template_id=template_id,
                workflow_id=_opt_str(item, "workflowId"),
                workflow_name=_opt_str(item, "workflowName"),
                triggers=[parse_trigger(t) for t in triggers] if isinstance(triggers, list) else [],
                integration_uids=(
                    [uid for uid in integration_uids if isinstance(uid, str)]
                    if isinstance(integration_uids, list)
                    else []
                ),
                output_schema=_schema(item, "outputSchema"),
                cost=cost if isinstance(cost, (int, float)) else None,
            )
        )

    return ProcessConfiguration(process_id=_opt_str(raw, "processId"), workflows=workflows)


# ----------------------------------------------------------------------------
# Loading
# ----------------------------------------------------------------------------


@dataclass
class ConfigLoad:
    """Result of loading a use case's ``config.py``.

    Attributes:
        config_path: Path of the configuration module.
        exists: Whether the configuration module exists.
        source: Raw text of the module ("" when missing or unreadable).
        exports: Required export names found on the module, with their values.
        project_id: ``PROJECT_ID`` when it is a non-empty string.
        workflow_files: ``WORKFLOW_FILES`` when it is a list.
        configuration: Parsed ``get_configuration()`` payload.
        error: Why the module could not be read or executed.
        configuration_error: Why ``get_configuration()`` failed or returned
            an unusable payload.
    """

    config_path: Path
    exists: bool = False
    source: str = ""
    exports: dict[str, Any] = field(default_factory=dict)
    project_id: str | None = None
    workflow_files: list[str] | None = None
    configuration: ProcessConfiguration | None = None
    error: str | None = None
    configuration_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.configuration is not None


def _describe_exception(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _execute_module(config_path: Path) -> Any:
    """Execute ``config.py`` under a unique module name.

    The module is registered in ``sys.modules`` only while it executes so
    dataclasses and similar introspection inside it keep working.
    """
    module_name = f"_wfverify_use_case_{next(_module_counter)}"
    spec = importlib.util.spec_from_file_location(module_name, config_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot create module spec for {config_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    finally:
        sys.modules.pop(module_name, None)
    return module


@contextmanager
def shared_config_loads() -> Iterator[None]:
    """Evaluate each use case's ``config.py`` at most once inside the block.

    Every ``load_use_case_config`` call in the block returns the same
    ``ConfigLoad`` for the same folder. Nothing is kept once the block exits.
    """
    token = _shared_loads.set({})
    try:
        yield
    finally:
        _shared_loads.reset(token)


def load_use_case_config(use_case_path: Path | str) -> ConfigLoad:
    """Load and evaluate the configuration module of a use case.

    Inside ``shared_config_loads()`` a folder is only evaluated once.

    Args:
        use_case_path: Path to the use-case folder.

    Returns:
        ConfigLoad describing what could be loaded. Exceptions raised while
        executing the module or calling ``get_configuration()`` are captured
        in ``error`` and ``configuration_error``.
    """
    use_case_path = Path(use_case_path)
    loads = _shared_loads.get()
    if loads is None:
        return _load(use_case_path)

    key = use_case_path.resolve()
    if key not in loads:
        loads[key] = _load(use_case_path)
    return loads[key]


def _load(use_case_path: Path) -> ConfigLoad:
    config_path = use_case_path / CONFIG_FILENAME
    result = ConfigLoad(config_path=config_path)

    if not config_path.is_file():
        return result
    result.exists = True

    try:
        result.source = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        result.error = _describe_exception(e)
        return result

    try:
        module = _execute_module(config_path)
    except Exception as e:  # config.py is user code; any failure is a finding
        logger.debug("Failed to execute %s", config_path, exc_info=True)
        result.error = _describe_exception(e)
        return result

    for name in REQUIRED_EXPORTS:
        if hasattr(module, name):
            result.exports[name] = getattr(module, name)

    project_id = result.exports.get("PROJECT_ID")
    if isinstance(project_id, str) and project_id:
        result.project_id = project_id
    workflow_files = result.exports.get("WORKFLOW_FILES")
    if isinstance(workflow_files, (list, tuple)):
        result.workflow_files = [str(item) for item in workflow_files]

    get_configuration = result.exports.get("get_configuration")
    if not callable(get_configuration):
        return result

    try:
        result.configuration = parse_configuration(get_configuration())
    except Exception as e:  # same as above: user code
        logger.debug("get_configuration() failed for %s", config_path, exc_info=True)
        result.configuration_error = _describe_exception(e)

    return result


def list_workflow_files(use_case_path: Path | str) -> list[Path]:
    """List ``workflows/*.json`` of a use case in sorted order."""
    workflows_dir = Path(use_case_path) / WORKFLOWS_DIRNAME
    if not workflows_dir.is_dir():
        return []
    return sorted(path for path in workflows_dir.glob("*.json") if path.is_file())
