"""
Typed request/response shapes for the ZIA API.

Field names follow Python conventions; aliases carry the API's camelCase
names. Read-only fields are excluded from write payloads by the client.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    """Base for API shapes: camelCase aliases, unknown fields ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Fields the API sets and ignores on writes.
    read_only_fields: ClassVar[frozenset[str]] = frozenset()

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(
            by_alias=True,
            exclude_none=True,
            exclude=set(self.read_only_fields),
        )


class ActivationState(StrEnum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    INPROGRESS = "INPROGRESS"


class Activation(ApiModel):
    status: str


class IDNameExtensions(ApiModel):
    id: int | None = None
    name: str | None = None
    extensions: dict[str, Any] = Field(default_factory=dict)


class RuleLabel(ApiModel):
    read_only_fields: ClassVar[frozenset[str]] = frozenset(
        {"last_modified_time", "last_modified_by", "created_by", "referenced_rule_count"}
    )

    id: int | None = None
    name: str = ""
    description: str = ""
    last_modified_time: int | None = Field(default=None, alias="lastModifiedTime")
    last_modified_by: IDNameExtensions | None = Field(default=None, alias="lastModifiedBy")
    created_by: IDNameExtensions | None = Field(default=None, alias="createdBy")
    referenced_rule_count: int | None = Field(default=None, alias="referencedRuleCount")


class IPSourceGroup(ApiModel):
    id: int | None = None
    name: str = ""
    description: str = ""
    ip_addresses: list[str] = Field(default_factory=list, alias="ipAddresses")


class AllowListUrls(ApiModel):
    whitelist_urls: list[str] = Field(default_factory=list, alias="whitelistUrls")


class DenyListUrls(ApiModel):
    blacklist_urls: list[str] = Field(default_factory=list, alias="blacklistUrls")


class SecurityListUrls(ApiModel):
    """Allow and deny lists combined; the API stores them on two endpoints."""

    whitelist_urls: list[str] = Field(default_factory=list, alias="whitelistUrls")
    blacklist_urls: list[str] = Field(default_factory=list, alias="blacklistUrls")


class SandboxHashList(ApiModel):
    file_hashes_to_be_blocked: list[str] = Field(
        default_factory=list, alias="fileHashesToBeBlocked"
    )


class Md5HashType(StrEnum):
    CUSTOM_FILEHASH_ALLOW = "CUSTOM_FILEHASH_ALLOW"
    CUSTOM_FILEHASH_DENY = "CUSTOM_FILEHASH_DENY"
    MALWARE = "MALWARE"


class Md5HashValue(ApiModel):
    url: str = ""
    url_comment: str = Field(default="", alias="urlComment")
    type: str = ""


class Md5HashValueList(ApiModel):
    md5_hash_value_list: list[Md5HashValue] = Field(
        default_factory=list, alias="md5HashValueList"
    )
