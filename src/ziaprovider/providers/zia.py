from __future__ import annotations

from typing import Any

import structlog

# Import resource modules so every type is registered before lookup.
import ziaprovider.resources  # noqa: F401
from ziaprovider.clients.zia import ZIAClient
from ziaprovider.config.settings import Settings, get_settings
from ziaprovider.core.errors import ProviderError
from ziaprovider.providers.base import Provider, ProviderHealth, ResourceSchema
from ziaprovider.providers.registry import create_data_source, create_resource, list_resources
from ziaprovider.resources.activation import ActivationTrigger
from ziaprovider.resources.base import DataSource, ResourceAdapter

logger = structlog.get_logger()


class ZIAProvider(Provider):
    """Entry point for hosts: hands out adapters wired to one client and activation trigger."""

    name = "zia"

    def __init__(
        self,
        client: ZIAClient,
        *,
        activation: ActivationTrigger | None = None,
        edit_lock_retries: int = 3,
        edit_lock_retry_interval: float = 10.0,
    ) -> None:
        self._client = client
        self._activation = activation or ActivationTrigger(client)
        self._edit_lock_retries = edit_lock_retries
        self._edit_lock_retry_interval = edit_lock_retry_interval

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> "ZIAProvider":
        settings = settings or get_settings()
        client = ZIAClient.from_settings(settings)
        activation = ActivationTrigger.from_settings(client, settings)
        logger.debug(
            "provider_configured",
            base_url=client.base_url,
            activation=settings.activation,
        )
        return cls(
            client,
            activation=activation,
            edit_lock_retries=settings.edit_lock_retries,
            edit_lock_retry_interval=settings.edit_lock_retry_interval_seconds,
            **kwargs,
        )

    @property
    def client(self) -> ZIAClient:
        return self._client

    @property
    def activation(self) -> ActivationTrigger:
        return self._activation

    async def aclose(self) -> None:
        await self._client.aclose()

    async def health_check(self) -> ProviderHealth:
        try:
            status = await self._client.get_activation_status()
        except ProviderError as exc:
            return ProviderHealth(status="unreachable", details=str(exc))
        return ProviderHealth(status="healthy", details=f"activation status {status.status}")

    async def resources(self) -> list[ResourceSchema]:
        schemas = [self.resource(spec.name).schema() for spec in list_resources("resource")]
        schemas += [self.data_source(spec.name).schema() for spec in list_resources("data_source")]
        return schemas

    def resource(self, type_name: str) -> ResourceAdapter[Any]:
        return create_resource(
            type_name,
            client=self._client,
            activation=self._activation,
            edit_lock_retries=self._edit_lock_retries,
            edit_lock_retry_interval=self._edit_lock_retry_interval,
        )

    def data_source(self, type_name: str) -> DataSource[Any]:
        return create_data_source(type_name, client=self._client)


__all__ = ["ZIAProvider"]
