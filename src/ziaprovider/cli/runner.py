"""
Declarative plan/apply over a YAML file of desired resources.

File format::

    resources:
      - type: zia_rule_labels
        attributes:
          name: production
          description: Production rules
      - type: zia_rule_labels
        id: "1234"
        attributes:
          name: staging
      - type: zia_sandbox_behavioral_analysis_v2
        attributes:
          md5_hash_value_list:
            - url: 42914d6d213a20a2684064be5c80ffa9
              type: CUSTOM_FILEHASH_DENY

Entries without ``id`` are created; entries with one are updated. Singleton
settings never need an id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml

from ziaprovider.core.errors import ConfigurationError, ValidationError
from ziaprovider.providers.base import NotFound, PlanResult, ResourceState, unwrap
from ziaprovider.providers.zia import ZIAProvider

logger = structlog.get_logger()

Action = Literal["created", "updated", "unchanged", "removed"]


@dataclass(frozen=True)
class DesiredResource:
    type: str
    attributes: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(frozen=True)
class ApplyOutcome:
    type: str
    action: Action
    id: str | None = None
    state: ResourceState | None = None


def parse_desired(document: Any, *, source: str = "<input>") -> list[DesiredResource]:
    """Turn a loaded YAML document into desired resources, collecting every problem."""
    if not isinstance(document, dict) or not isinstance(document.get("resources"), list):
        raise ValidationError(
            f"{source}: expected a mapping with a 'resources' list",
            details={"file": source},
        )

    problems: list[str] = []
    desired: list[DesiredResource] = []
    for index, entry in enumerate(document["resources"]):
        where = f"resources[{index}]"
        if not isinstance(entry, dict):
            problems.append(f"{where}: expected mapping")
            continue
        unknown = set(entry) - {"type", "id", "attributes"}
        if unknown:
            problems.append(f"{where}: unsupported keys {', '.join(sorted(unknown))}")
        type_name = entry.get("type")
        if not isinstance(type_name, str) or not type_name:
            problems.append(f"{where}.type: required string")
            continue
        attributes = entry.get("attributes") or {}
        if not isinstance(attributes, dict):
            problems.append(f"{where}.attributes: expected mapping")
            continue
        identifier = entry.get("id")
        desired.append(
            DesiredResource(
                type=type_name,
                attributes=attributes,
                id=None if identifier in (None, "") else str(identifier),
            )
        )

    if problems:
        raise ValidationError(
            f"{source}: invalid desired resources file",
            details={"file": source, "problem_count": len(problems)},
            problems=problems,
        )
    return desired


def load_desired(path: str | Path) -> list[DesiredResource]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read {path}: {exc}", details={"file": str(path)}) from exc
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValidationError(f"{path}: invalid YAML: {exc}", details={"file": str(path)}) from exc
    return parse_desired(document, source=str(path))


async def plan_resources(
    provider: ZIAProvider, desired: list[DesiredResource]
) -> list[tuple[DesiredResource, PlanResult]]:
    results = []
    for entry in desired:
        adapter = provider.resource(entry.type)
        results.append((entry, await adapter.plan(entry.id, entry.attributes)))
    return results


async def apply_resources(provider: ZIAProvider, desired: list[DesiredResource]) -> list[ApplyOutcome]:
    outcomes: list[ApplyOutcome] = []
    for entry in desired:
        adapter = provider.resource(entry.type)
        plan = await adapter.plan(entry.id, entry.attributes)
        if not plan.has_changes:
            resource_id = (plan.metadata or {}).get("id") or entry.id
            outcomes.append(ApplyOutcome(entry.type, "unchanged", resource_id))
            continue

        change = plan.changes[0]
        if change.action == "create":
            state = await adapter.create(entry.attributes)
            outcomes.append(ApplyOutcome(entry.type, "created", state.id, state))
            continue

        result = await adapter.update(change.details["id"], entry.attributes)
        if isinstance(result, NotFound):
            logger.warning("apply_target_missing", resource_type=entry.type, resource_id=result.id)
            outcomes.append(ApplyOutcome(entry.type, "removed", result.id))
            continue
        state = unwrap(result)
        outcomes.append(
            ApplyOutcome(entry.type, "updated", state.id if state else None, state)
        )
    return outcomes


__all__ = [
    "ApplyOutcome",
    "DesiredResource",
    "apply_resources",
    "load_desired",
    "parse_desired",
    "plan_resources",
]
