"""
Configuration activation.

ZIA stages most configuration changes until they are activated. After a
successful write the adapters call ``ActivationTrigger.after_write`` which
activates only when ``ZIA_ACTIVATION`` is enabled. The activation status
resource and data source expose the same endpoint directly.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, ClassVar, Mapping

import structlog

from ziaprovider.clients.zia import ZIAClient
from ziaprovider.config.settings import Settings
from ziaprovider.core.errors import ActivationError, ProviderError
from ziaprovider.domain.models import Activation, ActivationState
from ziaprovider.providers.base import ResourceState
from ziaprovider.providers.registry import register_data_source, register_resource
from ziaprovider.providers.schema import Attribute, Schema, one_of
from ziaprovider.resources.base import DataSource, ResourceAdapter

logger = structlog.get_logger()

ACTIVATION_ID = "activation"


class ActivationTrigger:
    """Post-write activation, gated by a flag and preceded by a settle delay."""

    def __init__(
        self,
        client: ZIAClient,
        *,
        enabled: bool = False,
        delay_seconds: float = 2.0,
        poll_timeout_seconds: float = 0.0,
        poll_interval_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self.enabled = enabled
        self.delay_seconds = delay_seconds
        self.poll_timeout_seconds = poll_timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, client: ZIAClient, settings: Settings, **kwargs: Any) -> "ActivationTrigger":
        return cls(
            client,
            enabled=settings.activation,
            delay_seconds=settings.activation_delay_seconds,
            poll_timeout_seconds=settings.activation_poll_timeout_seconds,
            poll_interval_seconds=settings.activation_poll_interval_seconds,
            **kwargs,
        )

    async def after_write(self, *, resource_type: str, resource_id: str, operation: str) -> Activation | None:
        if not self.enabled:
            logger.info(
                "activation_skipped",
                reason="ZIA_ACTIVATION not enabled",
                resource_type=resource_type,
                resource_id=resource_id,
                operation=operation,
            )
            return None
        if self.delay_seconds > 0:
            await self._sleep(self.delay_seconds)
        return await self.activate(resource_type=resource_type, resource_id=resource_id)

    async def activate(self, **context: Any) -> Activation:
        """Activate staged changes now; raises ``ActivationError`` on failure."""
        logger.info("activation_requested", **context)
        try:
            result = await self._client.activate()
        except ProviderError as exc:
            raise ActivationError(
                f"configuration change saved but activation failed: {exc}",
                details={**context, "cause": type(exc).__name__},
            ) from exc

        if self.poll_timeout_seconds > 0 and result.status != ActivationState.ACTIVE:
            result = await self._wait_until_active(context)

        logger.info("activation_completed", status=result.status, **context)
        return result

    async def _wait_until_active(self, context: Mapping[str, Any]) -> Activation:
        deadline = self._clock() + self.poll_timeout_seconds
        while True:
            try:
                status = await self._client.get_activation_status()
            except ProviderError as exc:
                raise ActivationError(
                    f"could not read activation status: {exc}",
                    details={**context, "cause": type(exc).__name__},
                ) from exc
            if status.status == ActivationState.ACTIVE:
                return status
            if self._clock() >= deadline:
                raise ActivationError(
                    "activation did not settle before the timeout",
                    details={**context, "status": status.status, "timeout": self.poll_timeout_seconds},
                )
            logger.debug("activation_pending", status=status.status)
            await self._sleep(self.poll_interval_seconds)


ACTIVATION_SCHEMA = Schema(
    (
        Attribute(
            "status",
            "string",
            "Organization policy activation status",
            required=True,
            validators=(one_of(ActivationState.ACTIVE),),
        ),
    )
)


class ActivationStatusResource(ResourceAdapter[Activation]):
    """Activating is the create; reading returns the current status."""

    type_name: ClassVar[str] = "zia_activation_status"
    description: ClassVar[str] = "Activates staged ZIA configuration changes"
    schema_def: ClassVar[Schema] = ACTIVATION_SCHEMA
    singleton_id: ClassVar[str | None] = ACTIVATION_ID

    def expand(self, desired: Mapping[str, Any]) -> Activation:
        return Activation(status=desired["status"])

    def flatten(self, model: Activation, prior: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return {"status": model.status}

    async def fetch(self, resource_id: str) -> Activation:
        return await self._client.get_activation_status()

    async def create_remote(self, model: Activation) -> Activation:
        return await self._activation.activate(resource_type=self.type_name)

    async def update_remote(self, resource_id: str, model: Activation) -> Activation:
        return await self.create_remote(model)

    async def delete_remote(self, resource_id: str) -> None:
        return None

    # The write is the activation itself.
    async def _after_write(self, resource_id: str, operation: str) -> None:
        return None


class ActivationStatusDataSource(DataSource[Activation]):
    type_name: ClassVar[str] = "zia_activation_status"
    description: ClassVar[str] = "Current ZIA configuration activation status"
    schema_def: ClassVar[Schema] = Schema(
        (Attribute("status", "string", "Activation status", computed=True),)
    )

    async def read(self, query: Mapping[str, Any] | None = None) -> ResourceState:
        status = await self._client.get_activation_status()
        return ResourceState(id=ACTIVATION_ID, attributes={"status": status.status})


register_resource(
    ActivationStatusResource.type_name,
    ActivationStatusResource,
    description=ActivationStatusResource.description,
)
register_data_source(
    ActivationStatusDataSource.type_name,
    ActivationStatusDataSource,
    description=ActivationStatusDataSource.description,
)
