"""Tool settings for wfverify.

Settings are merged from several sources, highest precedence first:
command-line flags, ``WFVERIFY_*`` environment variables, the nearest
``.wfverifyrc``, the nearest ``pyproject.toml`` ``[tool.wfverify]`` table,
and finally the dataclass defaults.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

# tomllib is only available in Python 3.11+
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

RC_FILENAME = ".wfverifyrc"
PYPROJECT_FILENAME = "pyproject.toml"
ENV_PREFIX = "WFVERIFY_"

BOOL_SETTINGS = ("strict", "parallel", "skip_workflows")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class WfverifyConfig:
    """Resolved wfverify settings.

    Attributes:
        strict: Count "should" findings as blocking (default: False)
        parallel: Validate use-case workflow files concurrently (default: True)
        skip_workflows: Skip per-file validation in use-case runs (default: False)
        exclude_rules: Rule ids never executed (default: none)
    """

    strict: bool = False
    parallel: bool = True
    skip_workflows: bool = False
    exclude_rules: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        for name in BOOL_SETTINGS:
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a boolean")

        if not isinstance(self.exclude_rules, list) or not all(
            isinstance(rule, str) and rule.strip() for rule in self.exclude_rules
        ):
            raise ValueError("exclude_rules must be a list of non-empty strings")


SETTING_NAMES = frozenset(f.name for f in fields(WfverifyConfig))


def find_config_file(filename: str = RC_FILENAME, start_dir: Path | None = None) -> Path | None:
    """Locate ``filename`` in ``start_dir`` or the closest ancestor holding it.

    Args:
        filename: File name to look for.
        start_dir: First directory to check. Defaults to the working directory.

    Returns:
        The closest matching file, or None when no ancestor has one.
    """
    start = (start_dir or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    return None


def _read_toml(path: Path) -> dict[str, Any] | None:
    """Parse a TOML file, or return None if it is unreadable or malformed."""
    try:
        with open(path, "rb") as f:
            data: dict[str, Any] = tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError):
        return None
    return data


def _known_settings(table: dict[str, Any]) -> dict[str, Any]:
    """Keep the keys naming a setting; ``skip-workflows`` spells ``skip_workflows``."""
    settings: dict[str, Any] = {}
    for key, value in table.items():
        name = key.replace("-", "_")
        if name in SETTING_NAMES:
            settings[name] = value
    return settings


def _load_from_rc(start_dir: Path | None = None) -> dict[str, Any]:
    path = find_config_file(RC_FILENAME, start_dir)
    data = _read_toml(path) if path is not None else None
    return _known_settings(data) if data else {}


def _load_from_pyproject(start_dir: Path | None = None) -> dict[str, Any]:
    path = find_config_file(PYPROJECT_FILENAME, start_dir)
    data = _read_toml(path) if path is not None else None
    if not data:
        return {}

    table = data.get("tool", {}).get("wfverify", {})
    return _known_settings(table) if isinstance(table, dict) else {}


def _parse_bool(env_var: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"{env_var} must be a boolean (got '{value}')")


def _load_from_env() -> dict[str, Any]:
    """Read ``WFVERIFY_STRICT``, ``WFVERIFY_PARALLEL``, ``WFVERIFY_SKIP_WORKFLOWS``
    and the comma-separated ``WFVERIFY_EXCLUDE_RULES``.

    Raises:
        ValueError: If a boolean variable holds an unrecognized value.
    """
    settings: dict[str, Any] = {}
    for name in BOOL_SETTINGS:
        env_var = ENV_PREFIX + name.upper()
        raw = os.environ.get(env_var)
        if raw is not None:
            settings[name] = _parse_bool(env_var, raw)

    exclude = os.environ.get(ENV_PREFIX + "EXCLUDE_RULES")
    if exclude is not None:
        settings["exclude_rules"] = split_rule_ids(exclude)
    return settings


def split_rule_ids(value: str | None) -> list[str]:
    """Split a comma-separated rule id list, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def load_config(
    cli_overrides: dict[str, Any] | None = None,
    start_dir: Path | None = None,
) -> WfverifyConfig:
    """Resolve wfverify settings from every source.

    Later layers win key by key: pyproject.toml, then .wfverifyrc, then the
    environment, then ``cli_overrides``. None values never override.

    Args:
        cli_overrides: Settings given on the command line.
        start_dir: Directory the rc and pyproject.toml searches start from.

    Returns:
        The merged WfverifyConfig.

    Raises:
        ValueError: If a source holds an invalid value.
    """
    layers = (
        _load_from_pyproject(start_dir),
        _load_from_rc(start_dir),
        _load_from_env(),
        _known_settings(cli_overrides or {}),
    )

    merged: dict[str, Any] = {}
    for layer in layers:
        merged.update((key, value) for key, value in layer.items() if value is not None)
    return WfverifyConfig(**merged)
