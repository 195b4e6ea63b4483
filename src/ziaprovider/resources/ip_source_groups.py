from __future__ import annotations

from typing import Any, ClassVar, Mapping

from ziaprovider.domain.models import IPSourceGroup
from ziaprovider.providers.registry import register_data_source, register_resource
from ziaprovider.providers.schema import Attribute, Schema, length_between
from ziaprovider.resources.base import (
    LookupDataSource,
    ResourceAdapter,
    find_by_name,
    not_found_error,
)
from ziaprovider.resources.reconcile import normalize_strings


def flatten_ip_source_group(group: IPSourceGroup) -> dict[str, Any]:
    return {
        "group_id": group.id,
        "name": group.name,
        "description": group.description,
        "ip_addresses": normalize_strings(group.ip_addresses),
    }


class IPSourceGroupResource(ResourceAdapter[IPSourceGroup]):
    """Firewall filtering source IP groups."""

    type_name: ClassVar[str] = "zia_firewall_filtering_ip_source_groups"
    description: ClassVar[str] = "Source IP address groups for firewall filtering rules"
    schema_def: ClassVar[Schema] = Schema(
        (
            Attribute("group_id", "int", "Group identifier", computed=True),
            Attribute("name", "string", "Group name", required=True, validators=(length_between(0, 64),)),
            Attribute("description", "string", "Group description", default="", validators=(length_between(0, 10240),)),
            Attribute("ip_addresses", "string_set", "IP addresses, ranges or subnets", required=True),
        )
    )

    def expand(self, desired: Mapping[str, Any]) -> IPSourceGroup:
        return IPSourceGroup(
            name=desired["name"],
            description=desired.get("description", ""),
            ip_addresses=normalize_strings(desired.get("ip_addresses")),
        )

    def flatten(self, model: IPSourceGroup, prior: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return flatten_ip_source_group(model)

    async def fetch(self, resource_id: str) -> IPSourceGroup:
        return await self._client.get_ip_source_group(self.numeric_id(resource_id))

    async def create_remote(self, model: IPSourceGroup) -> IPSourceGroup:
        return await self._client.create_ip_source_group(model)

    async def update_remote(self, resource_id: str, model: IPSourceGroup) -> IPSourceGroup:
        group_id = self.numeric_id(resource_id)
        return await self._client.update_ip_source_group(
            group_id, model.model_copy(update={"id": group_id})
        )

    async def delete_remote(self, resource_id: str) -> None:
        await self._client.delete_ip_source_group(self.numeric_id(resource_id))

    async def lookup_by_name(self, name: str) -> IPSourceGroup:
        group = find_by_name(await self._client.list_ip_source_groups(), name)
        if group is None:
            raise not_found_error(self.type_name, name)
        return group


class IPSourceGroupDataSource(LookupDataSource[IPSourceGroup]):
    type_name: ClassVar[str] = "zia_firewall_filtering_ip_source_groups"
    description: ClassVar[str] = "Look up a source IP group by id or name"
    schema_def: ClassVar[Schema] = Schema(
        (
            Attribute("id", "int", "Group identifier"),
            Attribute("name", "string", "Group name"),
            Attribute("description", "string", "Group description", computed=True),
            Attribute("ip_addresses", "string_set", "IP addresses", computed=True),
        )
    )

    async def list_all(self) -> list[IPSourceGroup]:
        return await self._client.list_ip_source_groups()

    def flatten(self, model: IPSourceGroup) -> dict[str, Any]:
        attributes = flatten_ip_source_group(model)
        attributes.pop("group_id")
        return attributes


register_resource(
    IPSourceGroupResource.type_name,
    IPSourceGroupResource,
    description=IPSourceGroupResource.description,
)
register_data_source(
    IPSourceGroupDataSource.type_name,
    IPSourceGroupDataSource,
    description=IPSourceGroupDataSource.description,
)
