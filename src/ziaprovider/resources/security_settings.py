from __future__ import annotations

from typing import Any, ClassVar, Mapping

from ziaprovider.domain.models import SecurityListUrls
from ziaprovider.providers.base import ResourceState
from ziaprovider.providers.registry import register_data_source, register_resource
from ziaprovider.providers.schema import Attribute, Schema, max_items
from ziaprovider.resources.base import DataSource, ResourceAdapter
from ziaprovider.resources.reconcile import normalize_strings

SECURITY_SETTINGS_ID = "all_urls"
MAX_ALLOW_LIST_URLS = 255
MAX_DENY_LIST_URLS = 275000


def flatten_security_settings(urls: SecurityListUrls) -> dict[str, Any]:
    return {
        "whitelist_urls": normalize_strings(urls.whitelist_urls),
        "blacklist_urls": normalize_strings(urls.blacklist_urls),
    }


class SecuritySettingsResource(ResourceAdapter[SecurityListUrls]):
    """Organization-wide allow and deny URL lists.

    The allow list is stored on ``/security`` and the deny list on
    ``/security/advanced``; both are written on every change. Deleting only
    forgets the resource, the lists stay as they are.
    """

    type_name: ClassVar[str] = "zia_security_settings"
    description: ClassVar[str] = "Security policy allow list and deny list URLs"
    schema_def: ClassVar[Schema] = Schema(
        (
            Attribute(
                "whitelist_urls",
                "string_set",
                f"Allowlist URLs whose contents are not scanned (up to {MAX_ALLOW_LIST_URLS})",
                default=[],
                validators=(max_items(MAX_ALLOW_LIST_URLS),),
            ),
            Attribute(
                "blacklist_urls",
                "string_set",
                f"Denylist URLs for the organization (up to {MAX_DENY_LIST_URLS})",
                default=[],
                validators=(max_items(MAX_DENY_LIST_URLS),),
            ),
        )
    )
    singleton_id: ClassVar[str | None] = SECURITY_SETTINGS_ID

    def expand(self, desired: Mapping[str, Any]) -> SecurityListUrls:
        return SecurityListUrls(
            whitelist_urls=normalize_strings(desired.get("whitelist_urls")),
            blacklist_urls=normalize_strings(desired.get("blacklist_urls")),
        )

    def flatten(self, model: SecurityListUrls, prior: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return flatten_security_settings(model)

    async def fetch(self, resource_id: str) -> SecurityListUrls:
        return await self._client.get_security_list_urls()

    async def create_remote(self, model: SecurityListUrls) -> SecurityListUrls:
        return await self._client.update_security_list_urls(model)

    async def update_remote(self, resource_id: str, model: SecurityListUrls) -> SecurityListUrls:
        return await self._client.update_security_list_urls(model)


class SecuritySettingsDataSource(DataSource[SecurityListUrls]):
    type_name: ClassVar[str] = "zia_security_settings"
    description: ClassVar[str] = "Current security policy allow and deny lists"
    schema_def: ClassVar[Schema] = Schema(
        (
            Attribute("whitelist_urls", "string_set", "Allowlist URLs", computed=True),
            Attribute("blacklist_urls", "string_set", "Denylist URLs", computed=True),
        )
    )

    async def read(self, query: Mapping[str, Any] | None = None) -> ResourceState:
        urls = await self._client.get_security_list_urls()
        return ResourceState(id=SECURITY_SETTINGS_ID, attributes=flatten_security_settings(urls))


register_resource(
    SecuritySettingsResource.type_name,
    SecuritySettingsResource,
    description=SecuritySettingsResource.description,
)
register_data_source(
    SecuritySettingsDataSource.type_name,
    SecuritySettingsDataSource,
    description=SecuritySettingsDataSource.description,
)
