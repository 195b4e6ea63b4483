from __future__ import annotations

from typing import Any, ClassVar, Mapping

from ziaprovider.domain.models import IDNameExtensions, RuleLabel
from ziaprovider.providers.registry import register_data_source, register_resource
from ziaprovider.providers.schema import Attribute, Schema, length_between
from ziaprovider.resources.base import (
    LookupDataSource,
    ResourceAdapter,
    find_by_name,
    not_found_error,
)

_AUDIT_BLOCK = (
    Attribute("id", "int", "Identifier of the admin", computed=True),
    Attribute("name", "string", "Name of the admin", computed=True),
)

_COMPUTED = (
    Attribute("rule_label_id", "int", "Rule label identifier", computed=True),
    Attribute("last_modified_time", "int", "Last modification timestamp", computed=True),
    Attribute("last_modified_by", "block_set", "Admin that last modified the label", computed=True, block=_AUDIT_BLOCK),
    Attribute("created_by", "block_set", "Admin that created the label", computed=True, block=_AUDIT_BLOCK),
    Attribute("referenced_rule_count", "int", "Number of rules referencing the label", computed=True),
)


def _flatten_admin(admin: IDNameExtensions | None) -> list[dict[str, Any]]:
    if admin is None:
        return []
    return [{"id": admin.id, "name": admin.name, "extensions": dict(admin.extensions)}]


def flatten_rule_label(label: RuleLabel) -> dict[str, Any]:
    return {
        "rule_label_id": label.id,
        "name": label.name,
        "description": label.description,
        "last_modified_time": label.last_modified_time,
        "last_modified_by": _flatten_admin(label.last_modified_by),
        "created_by": _flatten_admin(label.created_by),
        "referenced_rule_count": label.referenced_rule_count,
    }


class RuleLabelResource(ResourceAdapter[RuleLabel]):
    type_name: ClassVar[str] = "zia_rule_labels"
    description: ClassVar[str] = "Rule labels used to tag policy rules"
    schema_def: ClassVar[Schema] = Schema(
        (
            Attribute("name", "string", "Rule label name", required=True, validators=(length_between(0, 255),)),
            Attribute("description", "string", "Rule label description", default="", validators=(length_between(0, 10240),)),
            *_COMPUTED,
        )
    )

    def expand(self, desired: Mapping[str, Any]) -> RuleLabel:
        return RuleLabel(name=desired["name"], description=desired.get("description", ""))

    def flatten(self, model: RuleLabel, prior: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return flatten_rule_label(model)

    async def fetch(self, resource_id: str) -> RuleLabel:
        return await self._client.get_rule_label(self.numeric_id(resource_id))

    async def create_remote(self, model: RuleLabel) -> RuleLabel:
        return await self._client.create_rule_label(model)

    async def update_remote(self, resource_id: str, model: RuleLabel) -> RuleLabel:
        model = model.model_copy(update={"id": self.numeric_id(resource_id)})
        return await self._client.update_rule_label(self.numeric_id(resource_id), model)

    async def delete_remote(self, resource_id: str) -> None:
        await self._client.delete_rule_label(self.numeric_id(resource_id))

    async def lookup_by_name(self, name: str) -> RuleLabel:
        label = find_by_name(await self._client.list_rule_labels(), name)
        if label is None:
            raise not_found_error(self.type_name, name)
        return label


class RuleLabelDataSource(LookupDataSource[RuleLabel]):
    type_name: ClassVar[str] = "zia_rule_labels"
    description: ClassVar[str] = "Look up a rule label by id or name"
    schema_def: ClassVar[Schema] = Schema(
        (
            Attribute("id", "int", "Rule label identifier"),
            Attribute("name", "string", "Rule label name"),
            Attribute("description", "string", "Rule label description", computed=True),
            *_COMPUTED[1:],
        )
    )

    async def list_all(self) -> list[RuleLabel]:
        return await self._client.list_rule_labels()

    def flatten(self, model: RuleLabel) -> dict[str, Any]:
        attributes = flatten_rule_label(model)
        attributes.pop("rule_label_id")
        return attributes


register_resource(RuleLabelResource.type_name, RuleLabelResource, description=RuleLabelResource.description)
register_data_source(
    RuleLabelDataSource.type_name, RuleLabelDataSource, description=RuleLabelDataSource.description
)
