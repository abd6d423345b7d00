"""Rule registry for the wfverify catalogue.

Every check is one of three rule kinds sharing a single id namespace:

- GraphRule: ``(graph, context) -> findings`` over a parsed workflow graph
- ContentScript: ``(content, path) -> findings`` over raw workflow text
- PathScript: ``(use_case_path) -> findings`` over a whole use-case folder,
  optionally returning an awaitable

The registry keeps registration order, which is also execution order.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Union

from wfverify.validators.base import Finding, RuleMetadata

if TYPE_CHECKING:
    from wfverify.config import WfverifyConfig
    from wfverify.graph import Graph


@dataclass
class RuleContext:
    """Per-file context handed to graph rules.

    Attributes:
        path: Path of the workflow file being checked.
        cfg: Resolved tool configuration, if any.
        node_lines: Node id to 1-based line of its declaration.
    """

    path: str
    cfg: WfverifyConfig | None = None
    node_lines: dict[str, int] = field(default_factory=dict)


GraphCheck = Callable[["Graph", RuleContext], list[Finding]]
ContentCheck = Callable[[str, str], list[Finding]]
PathCheck = Callable[[Path], Union[list[Finding], Awaitable[list[Finding]]]]


@dataclass(frozen=True)
class GraphRule:
    """A pure check over a parsed workflow graph."""

    metadata: RuleMetadata
    check: GraphCheck

    @property
    def id(self) -> str:
        return self.metadata.id

    @property
    def kind(self) -> str:
        return "graph"


@dataclass(frozen=True)
class ContentScript:
    """A check over one workflow file's raw text."""

    metadata: RuleMetadata
    check: ContentCheck

    @property
    def id(self) -> str:
        return self.metadata.id

    @property
    def kind(self) -> str:
        return "workflow"


@dataclass(frozen=True)
class PathScript:
    """A check over a whole use-case folder."""

    metadata: RuleMetadata
    check: PathCheck

    @property
    def id(self) -> str:
        return self.metadata.id

    @property
    def kind(self) -> str:
        return "use-case"


Rule = Union[GraphRule, ContentScript, PathScript]


def normalize_rule_ids(rule_ids: Iterable[str] | None) -> set[str] | None:
    """Normalize rule ids for case-insensitive matching.

    Returns:
        Upper-cased ids, or None when no ids were given.
    """
    if rule_ids is None:
        return None
    normalized = {rule_id.strip().upper() for rule_id in rule_ids if rule_id.strip()}
    return normalized or None


class RuleRegistry:
    """Ordered registry of rules keyed by rule id.

    Example:
        >>> registry = RuleRegistry()
        >>> registry.register(GraphRule(metadata, check_codika_init))
        >>> [rule.id for rule in registry.graph_rules()]
        ['CODIKA-INIT']
    """

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        """Initialize a registry, registering ``rules`` in order."""
        self._rules: dict[str, Rule] = {}
        for rule in rules:
            self.register(rule)

    def register(self, rule: Rule) -> None:
        """Register a rule by its id.

        Raises:
            ValueError: If the rule has no id or if a rule with the same id
                is already registered.
        """
        rule_id = rule.id
        if not rule_id:
            raise ValueError(f"Rule {rule.check!r} has no id defined")
        if rule_id in self._rules:
            existing = self._rules[rule_id]
            raise ValueError(f"Rule id '{rule_id}' already registered as a {existing.kind} rule")
        self._rules[rule_id] = rule

    def get(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    def has_rule(self, rule_id: str) -> bool:
        return rule_id in self._rules

    def list_rule_ids(self) -> list[str]:
        """List all registered rule ids in registration order."""
        return list(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def select(
        self,
        rules: Iterable[str] | None = None,
        exclude_rules: Iterable[str] | None = None,
    ) -> list[Rule]:
        """Select rules to execute, preserving registration order.

        Args:
            rules: Optional allow-list of rule ids (case-insensitive).
                Unknown ids match nothing.
            exclude_rules: Optional deny-list of rule ids (case-insensitive).

        Returns:
            Rules that pass both filters.
        """
        allowed = normalize_rule_ids(rules)
        excluded = normalize_rule_ids(exclude_rules) or set()

        selected: list[Rule] = []
        for rule in self._rules.values():
            rule_id = rule.id.upper()
            if allowed is not None and rule_id not in allowed:
                continue
            if rule_id in excluded:
                continue
            selected.append(rule)
        return selected

    def graph_rules(self) -> list[GraphRule]:
        return [rule for rule in self._rules.values() if isinstance(rule, GraphRule)]

    def workflow_scripts(self) -> list[ContentScript]:
        return [rule for rule in self._rules.values() if isinstance(rule, ContentScript)]

    def use_case_scripts(self) -> list[PathScript]:
        return [rule for rule in self._rules.values() if isinstance(rule, PathScript)]


# Global registry instance - populated on first use
_global_registry: RuleRegistry | None = None


def get_global_registry() -> RuleRegistry:
    """Get the global rule registry.

    Returns a singleton registry populated with the built-in catalogue.
    """
    global _global_registry
    if _global_registry is None:
        _global_registry = create_default_registry()
    return _global_registry


def create_default_registry() -> RuleRegistry:
    """Create a registry populated with all built-in rules and scripts.

    Order: graph rules, workflow scripts, use-case scripts.
    """
    # Import here to avoid circular imports
    from wfverify.validators.rules import GRAPH_RULES
    from wfverify.validators.use_case_scripts import USE_CASE_SCRIPTS
    from wfverify.validators.workflow_scripts import WORKFLOW_SCRIPTS

    return RuleRegistry([*GRAPH_RULES, *WORKFLOW_SCRIPTS, *USE_CASE_SCRIPTS])
