"""
Sandbox behavioral analysis advanced settings.

Two generations of the same global setting:

- ``zia_sandbox_behavioral_analysis`` keeps a plain set of MD5 hashes to
  block (``fileHashesToBeBlocked``).
- ``zia_sandbox_behavioral_analysis_v2`` keeps ``md5_hash_value_list``
  blocks of ``url``, ``url_comment`` and ``type``. The blocks are a set:
  order is irrelevant and blocks with every field empty are placeholders,
  not entries.
"""

from __future__ import annotations

from typing import Any, ClassVar, Mapping

from ziaprovider.domain.models import Md5HashType, Md5HashValue, Md5HashValueList, SandboxHashList
from ziaprovider.providers.base import ResourceState
from ziaprovider.providers.registry import register_data_source, register_resource
from ziaprovider.providers.schema import Attribute, Schema, each_matches, max_items, one_of
from ziaprovider.resources.base import DataSource, ResourceAdapter
from ziaprovider.resources.reconcile import SetReconciler, normalize_strings

SANDBOX_SETTINGS_ID = "sandbox_settings"
MAX_FILE_HASHES = 10000
MD5_PATTERN = r"[0-9a-fA-F]{32}"

MD5_HASH_VALUE_FIELDS = ("url", "url_comment", "type")

md5_hash_values = SetReconciler(MD5_HASH_VALUE_FIELDS, key_fields=("url", "type"))

MD5_HASH_VALUE_BLOCK = (
    Attribute("url", "string", "The URL or hash identifier of the entry", default=""),
    Attribute("url_comment", "string", "Comment describing the entry", default=""),
    Attribute(
        "type",
        "string",
        "Entry type",
        default="",
        validators=(one_of(*(t.value for t in Md5HashType)),),
    ),
)


class SandboxSettingsResource(ResourceAdapter[SandboxHashList]):
    type_name: ClassVar[str] = "zia_sandbox_behavioral_analysis"
    description: ClassVar[str] = "MD5 file hashes blocked by Sandbox"
    schema_def: ClassVar[Schema] = Schema(
        (
            Attribute(
                "file_hashes_to_be_blocked",
                "string_set",
                f"Unique MD5 file hashes to block (up to {MAX_FILE_HASHES})",
                default=[],
                validators=(max_items(MAX_FILE_HASHES), each_matches(MD5_PATTERN, "MD5 hash")),
            ),
        )
    )
    singleton_id: ClassVar[str | None] = SANDBOX_SETTINGS_ID

    def expand(self, desired: Mapping[str, Any]) -> SandboxHashList:
        return SandboxHashList(
            file_hashes_to_be_blocked=normalize_strings(desired.get("file_hashes_to_be_blocked"))
        )

    def flatten(self, model: SandboxHashList, prior: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return {"file_hashes_to_be_blocked": normalize_strings(model.file_hashes_to_be_blocked)}

    async def fetch(self, resource_id: str) -> SandboxHashList:
        return await self._client.get_sandbox_hashes()

    async def create_remote(self, model: SandboxHashList) -> SandboxHashList:
        return await self._client.update_sandbox_hashes(model)

    async def update_remote(self, resource_id: str, model: SandboxHashList) -> SandboxHashList:
        return await self._client.update_sandbox_hashes(model)


def expand_md5_hash_values(blocks: Any) -> list[Md5HashValue]:
    return [Md5HashValue(**entry) for entry in md5_hash_values.effective(blocks)]


def flatten_md5_hash_values(values: list[Md5HashValue]) -> list[dict[str, str]]:
    return [
        {"url": v.url, "url_comment": v.url_comment, "type": v.type}
        for v in values
    ]


class SandboxSettingsV2Resource(ResourceAdapter[Md5HashValueList]):
    type_name: ClassVar[str] = "zia_sandbox_behavioral_analysis_v2"
    description: ClassVar[str] = "MD5 hash values with comment and type for Sandbox"
    schema_def: ClassVar[Schema] = Schema(
        (
            Attribute(
                "md5_hash_value_list",
                "block_set",
                "MD5 hash entries: url, url_comment and type",
                default=[],
                block=MD5_HASH_VALUE_BLOCK,
            ),
        )
    )
    singleton_id: ClassVar[str | None] = SANDBOX_SETTINGS_ID

    def expand(self, desired: Mapping[str, Any]) -> Md5HashValueList:
        # Placeholders are dropped; an empty list is still sent so the API clears the setting.
        return Md5HashValueList(
            md5_hash_value_list=expand_md5_hash_values(desired.get("md5_hash_value_list"))
        )

    def flatten(self, model: Md5HashValueList, prior: Mapping[str, Any] | None = None) -> dict[str, Any]:
        if model.md5_hash_value_list:
            return {"md5_hash_value_list": flatten_md5_hash_values(model.md5_hash_value_list)}
        # API has no entries: keep placeholder-only prior blocks so "no blocks" and
        # "one empty block" do not show up as a difference.
        prior_blocks = list((prior or {}).get("md5_hash_value_list") or [])
        if prior_blocks and not md5_hash_values.normalize(prior_blocks):
            return {"md5_hash_value_list": [dict(block) for block in prior_blocks]}
        return {"md5_hash_value_list": []}

    def changed_attributes(self, desired: Md5HashValueList, remote: Md5HashValueList) -> list[str]:
        if md5_hash_values.suppress_diff(
            [v.model_dump() for v in desired.md5_hash_value_list],
            [v.model_dump() for v in remote.md5_hash_value_list],
        ):
            return []
        return ["md5_hash_value_list"]

    async def fetch(self, resource_id: str) -> Md5HashValueList:
        return await self._client.get_sandbox_hash_values()

    async def create_remote(self, model: Md5HashValueList) -> Md5HashValueList:
        return await self._client.update_sandbox_hash_values(model)

    async def update_remote(self, resource_id: str, model: Md5HashValueList) -> Md5HashValueList:
        return await self._client.update_sandbox_hash_values(model)


class SandboxSettingsV2DataSource(DataSource[Md5HashValueList]):
    type_name: ClassVar[str] = "zia_sandbox_behavioral_analysis_v2"
    description: ClassVar[str] = "Current Sandbox MD5 hash value list"
    schema_def: ClassVar[Schema] = Schema(
        (
            Attribute(
                "md5_hash_value_list",
                "block_set",
                "MD5 hash entries",
                computed=True,
                block=MD5_HASH_VALUE_BLOCK,
            ),
        )
    )

    async def read(self, query: Mapping[str, Any] | None = None) -> ResourceState:
        values = await self._client.get_sandbox_hash_values()
        return ResourceState(
            id=SANDBOX_SETTINGS_ID,
            attributes={"md5_hash_value_list": flatten_md5_hash_values(values.md5_hash_value_list)},
        )


register_resource(
    SandboxSettingsResource.type_name,
    SandboxSettingsResource,
    description=SandboxSettingsResource.description,
)
register_resource(
    SandboxSettingsV2Resource.type_name,
    SandboxSettingsV2Resource,
    description=SandboxSettingsV2Resource.description,
)
register_data_source(
    SandboxSettingsV2DataSource.type_name,
    SandboxSettingsV2DataSource,
    description=SandboxSettingsV2DataSource.description,
)
