"""Script LLM-MODEL-ID: LLM chat nodes use current model ids.

Each provider node type maps to an allow-list of model ids. Anything else is
reported, and the fix swaps in a replacement of the same tier when the old id
names one (e.g. "haiku"), or the provider default otherwise.

To support a new provider or retire a model, update ``ALLOWED_MODELS``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from wfverify.graph import find_node_line
from wfverify.validators.base import Finding, Fix, GuideRef, RuleMetadata
from wfverify.validators.registry import ContentScript
from wfverify.validators.workflow_scripts.common import dump_workflow, load_workflow, workflow_nodes


@dataclass(frozen=True)
class ProviderModels:
    """Allowed models for one provider node type.

    Attributes:
        provider_name: Human-readable provider name for messages.
        allowed: Currently valid model ids.
        default: Replacement used when no tier keyword matches.
        tier_map: Keyword found in a model id -> replacement model id.
        guide_ref: Guide section listing the provider's models.
    """

    provider_name: str
    allowed: tuple[str, ...]
    default: str
    tier_map: dict[str, str] = field(default_factory=dict)
    guide_ref: GuideRef | None = None

    def pick_replacement(self, model_id: str) -> str:
        lower = model_id.lower()
        for keyword, replacement in self.tier_map.items():
            if keyword in lower:
                return replacement
        return self.default

    def display_name(self, model_id: str) -> str:
        """Name a model by provider and tier (e.g. "Anthropic Sonnet")."""
        for keyword, tier_model in self.tier_map.items():
            if tier_model == model_id:
                return f"{self.provider_name} {keyword.capitalize()}"
        return model_id


ALLOWED_MODELS: dict[str, ProviderModels] = {
    "@n8n/n8n-nodes-langchain.lmChatAnthropic": ProviderModels(
        provider_name="Anthropic",
        allowed=(
            "claude-sonnet-4-20250514",
            "claude-opus-4-20250514",
            "claude-haiku-4-5-20251001",
        ),
        default="claude-sonnet-4-20250514",
        tier_map={
            "opus": "claude-opus-4-20250514",
            "haiku": "claude-haiku-4-5-20251001",
            "sonnet": "claude-sonnet-4-20250514",
        },
        guide_ref=GuideRef("integrations/anthropic.md", "Available Models"),
    ),
}

metadata = RuleMetadata(
    id="LLM-MODEL-ID",
    name="llm_model_id",
    severity="must",
    description="LLM model nodes must use current, non-deprecated model IDs",
    details=(
        'Retired or unknown model IDs will fail at runtime with "resource not found" errors. '
        "Only use model IDs from the provider allowlist. Run with --fix to auto-replace."
    ),
    fixable=True,
    category="ai-nodes",
)


def extract_model_id(parameters: Any) -> str | None:
    """Read the model id from a plain string or a resource-locator object."""
    if not isinstance(parameters, dict):
        return None
    model = parameters.get("model")
    if isinstance(model, str) and model:
        return model
    if isinstance(model, dict) and isinstance(model.get("value"), str) and model["value"]:
        return model["value"]
    return None


def _replace_model(node_name: str, old: str, replacement: str, display_name: str) -> Fix:
    def apply(content: str) -> str:
        data = load_workflow(content)
        if data is None:
            return content
        for node in workflow_nodes(data):
            if node.get("name") != node_name:
                continue
            parameters = node.get("parameters")
            if extract_model_id(parameters) != old:
                return content
            model = parameters["model"]
            if isinstance(model, str):
                parameters["model"] = replacement
            else:
                model["value"] = replacement
                if model.get("cachedResultName"):
                    model["cachedResultName"] = display_name
            return dump_workflow(data)
        return content

    return Fix(description=f'Replace "{old}" with "{replacement}"', apply=apply)


def check_llm_model_id(content: str, path: str) -> list[Finding]:
    data = load_workflow(content)
    if data is None:
        return []

    findings: list[Finding] = []
    for node in workflow_nodes(data):
        provider = ALLOWED_MODELS.get(node.get("type"))  # type: ignore[arg-type]
        if provider is None:
            continue

        model_id = extract_model_id(node.get("parameters"))
        if model_id is None or model_id in provider.allowed:
            continue

        name = node.get("name")
        node_id = node.get("id") if isinstance(node.get("id"), str) else None
        replacement = provider.pick_replacement(model_id)
        display_name = provider.display_name(replacement)
        findings.append(
            Finding(
                rule=metadata.id,
                severity=metadata.severity,
                path=path,
                message=(
                    f'Node "{name}" uses unknown or deprecated {provider.provider_name} model '
                    f'"{model_id}". Use "{replacement}" ({display_name}).'
                ),
                raw_details=(
                    f'The model "{model_id}" is not in the current {provider.provider_name} '
                    f'allowlist and may be retired. Replace with "{replacement}".\n\n'
                    f"Current allowed models: {', '.join(provider.allowed)}"
                ),
                node_id=node_id,
                line=find_node_line(content, node_id) if node_id else None,
                guide_ref=provider.guide_ref,
                fixable=True,
                fix=_replace_model(name, model_id, replacement, display_name),
            )
        )
    return findings


script = ContentScript(metadata, check_llm_model_id)
