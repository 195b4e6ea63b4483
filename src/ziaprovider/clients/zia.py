from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import pydantic
import structlog

from ziaprovider.clients.auth import (
    Authenticator,
    LegacySessionAuth,
    OneAPIAuth,
    legacy_base_url,
    oneapi_base_url,
    oneapi_token_url,
)
from ziaprovider.clients.base import BaseHTTPClient
from ziaprovider.config.settings import Settings
from ziaprovider.core.errors import ConfigurationError, DecodeError
from ziaprovider.domain.models import (
    Activation,
    ActivationState,
    AllowListUrls,
    ApiModel,
    DenyListUrls,
    IPSourceGroup,
    Md5HashValueList,
    RuleLabel,
    SandboxHashList,
    SecurityListUrls,
)

logger = structlog.get_logger()

M = TypeVar("M", bound=ApiModel)

ACTIVATION_STATUS_ENDPOINT = "/status"
ACTIVATION_ENDPOINT = "/status/activate"
RULE_LABELS_ENDPOINT = "/ruleLabels"
IP_SOURCE_GROUPS_ENDPOINT = "/ipSourceGroups"
SECURITY_ENDPOINT = "/security"
SECURITY_ADVANCED_ENDPOINT = "/security/advanced"
SANDBOX_SETTINGS_ENDPOINT = "/behavioralAnalysisAdvancedSettings"
SANDBOX_SETTINGS_V2_ENDPOINT = "/behavioralAnalysisAdvancedSettings/v2"


class ZIAClient(BaseHTTPClient):
    """Typed ZIA API client with retry logic, circuit breaker and session handling."""

    def __init__(
        self,
        base_url: str,
        auth: Authenticator,
        *,
        timeout: float = 60.0,
        max_retries: int = 5,
        backoff_factor: float = 1.0,
        user_agent: str | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(
            base_url,
            timeout=timeout,
            max_retries=max_retries,
            backoff_factor=backoff_factor,
            user_agent=user_agent,
            sleep=sleep,
        )
        self._auth = auth

    @classmethod
    def from_settings(cls, settings: Settings) -> "ZIAClient":
        """Build a client for the credentials present in ``settings``."""
        auth: Authenticator
        if settings.use_legacy_client or (settings.username and not settings.client_id):
            required = ["username", "password", "api_key"]
            if not settings.base_url:
                required.append("cloud")
            missing = [name for name in required if not getattr(settings, name)]
            if missing:
                raise ConfigurationError(
                    "legacy ZIA credentials are incomplete",
                    details={"missing": ",".join(f"ZIA_{m.upper()}" for m in missing)},
                )
            base_url = settings.base_url or legacy_base_url(settings.cloud or "")
            auth = LegacySessionAuth(
                base_url,
                settings.username or "",
                settings.password or "",
                settings.api_key or "",
                timeout=settings.http_timeout,
            )
        else:
            missing = [
                env
                for env, value in (
                    ("ZSCALER_CLIENT_ID", settings.client_id),
                    ("ZSCALER_CLIENT_SECRET", settings.client_secret),
                    ("ZSCALER_VANITY_DOMAIN", settings.vanity_domain),
                )
                if not value
            ]
            if missing:
                raise ConfigurationError(
                    "OneAPI credentials are incomplete",
                    details={"missing": ",".join(missing)},
                )
            base_url = settings.base_url or oneapi_base_url(settings.zscaler_cloud)
            auth = OneAPIAuth(
                oneapi_token_url(settings.vanity_domain or "", settings.zscaler_cloud),
                settings.client_id or "",
                settings.client_secret or "",
                timeout=settings.http_timeout,
            )
        return cls(
            base_url,
            auth,
            timeout=settings.http_timeout,
            max_retries=settings.http_max_retries,
            user_agent=settings.user_agent,
        )

    async def aclose(self) -> None:
        await self._auth.aclose()

    async def _headers(self) -> dict[str, str]:
        headers = await super()._headers()
        headers.update(await self._auth.headers())
        return headers

    async def _handle_unauthorized(self) -> bool:
        self._auth.invalidate()
        return True

    # -- decoding -----------------------------------------------------------

    @staticmethod
    def _decode(model: type[M], data: Any, path: str) -> M:
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as exc:
            raise DecodeError(
                f"unexpected response shape for {model.__name__}",
                details={"path": path, "errors": exc.error_count()},
            ) from exc

    @staticmethod
    def _decode_list(model: type[M], data: Any, path: str) -> list[M]:
        try:
            return pydantic.TypeAdapter(list[model]).validate_python(data)  # type: ignore[valid-type]
        except pydantic.ValidationError as exc:
            raise DecodeError(
                f"unexpected response shape for list of {model.__name__}",
                details={"path": path, "errors": exc.error_count()},
            ) from exc

    async def _list(self, path: str, model: type[M]) -> list[M]:
        return self._decode_list(model, await self.get(path), path)

    async def _fetch(self, path: str, model: type[M]) -> M:
        return self._decode(model, await self.get(path), path)

    async def _create(self, path: str, body: M) -> M:
        return self._decode(type(body), await self.post(path, json=body.to_payload()), path)

    async def _replace(self, path: str, body: M) -> M:
        data = await self.put(path, json=body.to_payload())
        # Some settings endpoints answer 204; the request body is then the result.
        if data is None:
            return body
        return self._decode(type(body), data, path)

    # -- activation ---------------------------------------------------------

    async def get_activation_status(self) -> Activation:
        return await self._fetch(ACTIVATION_STATUS_ENDPOINT, Activation)

    async def activate(self) -> Activation:
        data = await self.post(
            ACTIVATION_ENDPOINT, json=Activation(status=ActivationState.ACTIVE).to_payload()
        )
        if data is None:
            return await self.get_activation_status()
        return self._decode(Activation, data, ACTIVATION_ENDPOINT)

    # -- rule labels --------------------------------------------------------

    async def list_rule_labels(self) -> list[RuleLabel]:
        return await self._list(RULE_LABELS_ENDPOINT, RuleLabel)

    async def get_rule_label(self, label_id: int) -> RuleLabel:
        return await self._fetch(f"{RULE_LABELS_ENDPOINT}/{label_id}", RuleLabel)

    async def create_rule_label(self, label: RuleLabel) -> RuleLabel:
        return await self._create(RULE_LABELS_ENDPOINT, label)

    async def update_rule_label(self, label_id: int, label: RuleLabel) -> RuleLabel:
        return await self._replace(f"{RULE_LABELS_ENDPOINT}/{label_id}", label)

    async def delete_rule_label(self, label_id: int) -> None:
        await self.delete(f"{RULE_LABELS_ENDPOINT}/{label_id}")

    # -- firewall IP source groups -----------------------------------------

    async def list_ip_source_groups(self) -> list[IPSourceGroup]:
        return await self._list(IP_SOURCE_GROUPS_ENDPOINT, IPSourceGroup)

    async def get_ip_source_group(self, group_id: int) -> IPSourceGroup:
        return await self._fetch(f"{IP_SOURCE_GROUPS_ENDPOINT}/{group_id}", IPSourceGroup)

    async def create_ip_source_group(self, group: IPSourceGroup) -> IPSourceGroup:
        return await self._create(IP_SOURCE_GROUPS_ENDPOINT, group)

    async def update_ip_source_group(self, group_id: int, group: IPSourceGroup) -> IPSourceGroup:
        return await self._replace(f"{IP_SOURCE_GROUPS_ENDPOINT}/{group_id}", group)

    async def delete_ip_source_group(self, group_id: int) -> None:
        await self.delete(f"{IP_SOURCE_GROUPS_ENDPOINT}/{group_id}")

    # -- security policy settings ------------------------------------------

    async def get_security_list_urls(self) -> SecurityListUrls:
        allow = await self._fetch(SECURITY_ENDPOINT, AllowListUrls)
        deny = await self._fetch(SECURITY_ADVANCED_ENDPOINT, DenyListUrls)
        return SecurityListUrls(
            whitelist_urls=allow.whitelist_urls,
            blacklist_urls=deny.blacklist_urls,
        )

    async def update_security_list_urls(self, urls: SecurityListUrls) -> SecurityListUrls:
        allow = await self._replace(
            SECURITY_ENDPOINT, AllowListUrls(whitelist_urls=urls.whitelist_urls)
        )
        deny = await self._replace(
            SECURITY_ADVANCED_ENDPOINT, DenyListUrls(blacklist_urls=urls.blacklist_urls)
        )
        return SecurityListUrls(
            whitelist_urls=allow.whitelist_urls,
            blacklist_urls=deny.blacklist_urls,
        )

    # -- sandbox behavioral analysis ---------------------------------------

    async def get_sandbox_hashes(self) -> SandboxHashList:
        return await self._fetch(SANDBOX_SETTINGS_ENDPOINT, SandboxHashList)

    async def update_sandbox_hashes(self, hashes: SandboxHashList) -> SandboxHashList:
        return await self._replace(SANDBOX_SETTINGS_ENDPOINT, hashes)

    async def get_sandbox_hash_values(self) -> Md5HashValueList:
        return await self._fetch(SANDBOX_SETTINGS_V2_ENDPOINT, Md5HashValueList)

    async def update_sandbox_hash_values(self, values: Md5HashValueList) -> Md5HashValueList:
        return await self._replace(SANDBOX_SETTINGS_V2_ENDPOINT, values)
