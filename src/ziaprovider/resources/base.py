"""
Generic CRUD adapter for ZIA resources.

Each resource type subclasses ``ResourceAdapter`` with its API model and
implements the translation hooks (``expand``/``flatten``) and the client
calls (``fetch``/``create_remote``/``update_remote``/``delete_remote``).
The lifecycle itself (validation, no-op detection, retries on edit lock,
activation and read-back) lives here once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, Mapping, TypeVar

import structlog

from ziaprovider.clients.retry import retry_on_error
from ziaprovider.clients.zia import ZIAClient
from ziaprovider.core.errors import (
    NotFoundError,
    ProviderError,
    ValidationError,
    ZIAProviderError,
)
from ziaprovider.domain.models import ApiModel
from ziaprovider.logging import bind_context
from ziaprovider.providers.base import (
    Failed,
    Found,
    NotFound,
    PlanChange,
    PlanResult,
    ReadResult,
    ResourceSchema,
    ResourceState,
    unwrap,
)
from ziaprovider.providers.schema import Schema
from ziaprovider.resources.reconcile import strings_equal

if TYPE_CHECKING:
    from ziaprovider.resources.activation import ActivationTrigger

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=ApiModel)


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def not_found_error(resource_type: str, identifier: str) -> NotFoundError:
    return NotFoundError(
        f"{resource_type} {identifier!r} not found",
        status_code=404,
        details={"resource_type": resource_type, "id": identifier},
    )


class ResourceAdapter(Generic[ModelT]):
    type_name: ClassVar[str]
    description: ClassVar[str] = ""
    schema_def: ClassVar[Schema]
    # Global settings objects have a fixed id and cannot be deleted.
    singleton_id: ClassVar[str | None] = None

    def __init__(
        self,
        client: ZIAClient,
        activation: "ActivationTrigger",
        *,
        edit_lock_retries: int = 3,
        edit_lock_retry_interval: float = 10.0,
    ) -> None:
        self._client = client
        self._activation = activation
        self._edit_lock_retries = edit_lock_retries
        self._edit_lock_retry_interval = edit_lock_retry_interval

    # -- hooks ----------------------------------------------------------------

    def expand(self, desired: Mapping[str, Any]) -> ModelT:
        raise NotImplementedError

    def flatten(self, model: ModelT, prior: Mapping[str, Any] | None = None) -> dict[str, Any]:
        raise NotImplementedError

    def identify(self, model: ModelT) -> str:
        if self.singleton_id is not None:
            return self.singleton_id
        identifier = getattr(model, "id", None)
        if identifier is None:
            raise ProviderError(
                f"{self.type_name}: API response did not include an id",
                details={"resource_type": self.type_name},
            )
        return str(identifier)

    def numeric_id(self, resource_id: str) -> int:
        try:
            return int(resource_id)
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                f"{self.type_name}: id must be numeric, got {resource_id!r}",
                details={"resource_type": self.type_name, "id": resource_id},
            ) from exc

    async def fetch(self, resource_id: str) -> ModelT:
        raise NotImplementedError

    async def create_remote(self, model: ModelT) -> ModelT:
        raise NotImplementedError

    async def update_remote(self, resource_id: str, model: ModelT) -> ModelT:
        raise NotImplementedError

    async def delete_remote(self, resource_id: str) -> None:
        raise NotImplementedError

    async def lookup_by_name(self, name: str) -> ModelT:
        raise ValidationError(
            f"{self.type_name} can only be imported by numeric id",
            details={"resource_type": self.type_name, "id": name},
        )

    def changed_attributes(self, desired: ModelT, remote: ModelT) -> list[str]:
        """Attributes whose desired value differs from the remote one.

        String lists are compared as sets; override for nested blocks.
        """
        exclude = set(desired.read_only_fields) | {"id"}
        want = desired.model_dump(exclude=exclude)
        have = remote.model_dump(exclude=exclude)
        changed = []
        for name, value in want.items():
            current = have.get(name)
            if _is_string_list(value) and _is_string_list(current or []):
                if not strings_equal(value, current):
                    changed.append(name)
            elif value != current:
                changed.append(name)
        return changed

    # -- lifecycle ------------------------------------------------------------

    def schema(self) -> ResourceSchema:
        return ResourceSchema(
            name=self.type_name,
            description=self.description,
            attributes=self.schema_def.describe(),
        )

    def validate(self, desired: Mapping[str, Any]) -> dict[str, Any]:
        return self.schema_def.validate(desired, resource_type=self.type_name)

    async def _write(self, call: Any, operation: str, resource_id: str | None = None) -> Any:
        try:
            return await retry_on_error(
                call,
                attempts=self._edit_lock_retries,
                interval=self._edit_lock_retry_interval,
            )
        except ZIAProviderError as exc:
            exc.details.setdefault("resource_type", self.type_name)
            exc.details.setdefault("operation", operation)
            if resource_id is not None:
                exc.details.setdefault("id", resource_id)
            raise

    async def _fetch_current(self, resource_id: str, operation: str) -> ModelT:
        try:
            return await self.fetch(resource_id)
        except NotFoundError:
            raise
        except ZIAProviderError as exc:
            exc.details.setdefault("resource_type", self.type_name)
            exc.details.setdefault("id", resource_id)
            exc.details.setdefault("operation", operation)
            raise

    async def _after_write(self, resource_id: str, operation: str) -> None:
        await self._activation.after_write(
            resource_type=self.type_name, resource_id=resource_id, operation=operation
        )

    async def create(self, desired: Mapping[str, Any]) -> ResourceState:
        cleaned = self.validate(desired)
        model = self.expand(cleaned)
        log = bind_context(resource_type=self.type_name)

        created = await self._write(lambda: self.create_remote(model), "create")
        resource_id = self.identify(created)
        log.info("resource_created", resource_id=resource_id)

        await self._after_write(resource_id, "create")

        state = unwrap(await self.read(resource_id, prior=cleaned))
        if state is None:
            raise ProviderError(
                f"{self.type_name} {resource_id} disappeared right after it was created",
                details={"resource_type": self.type_name, "id": resource_id, "operation": "create"},
            )
        return state

    async def read(self, resource_id: str, *, prior: Mapping[str, Any] | None = None) -> ReadResult:
        resource_id = self.singleton_id or resource_id
        try:
            model = await self.fetch(resource_id)
        except NotFoundError:
            logger.warning(
                "resource_removed_from_state",
                resource_type=self.type_name,
                resource_id=resource_id,
            )
            return NotFound(resource_id)
        except ZIAProviderError as exc:
            exc.details.setdefault("resource_type", self.type_name)
            exc.details.setdefault("id", resource_id)
            exc.details.setdefault("operation", "read")
            return Failed(resource_id, exc)
        return Found(ResourceState(id=resource_id, attributes=self.flatten(model, prior)))

    async def update(self, resource_id: str, desired: Mapping[str, Any]) -> ReadResult:
        resource_id = self.singleton_id or resource_id
        cleaned = self.validate(desired)
        model = self.expand(cleaned)
        log = bind_context(resource_type=self.type_name, resource_id=resource_id)

        try:
            current = await self._fetch_current(resource_id, "update")
        except NotFoundError:
            log.warning("resource_removed_from_state")
            return NotFound(resource_id)

        changed = self.changed_attributes(model, current)
        if not changed:
            log.info("resource_unchanged")
            return Found(ResourceState(id=resource_id, attributes=self.flatten(current, cleaned)))

        await self._write(lambda: self.update_remote(resource_id, model), "update", resource_id)
        log.info("resource_updated", changed=",".join(changed))

        await self._after_write(resource_id, "update")
        return await self.read(resource_id, prior=cleaned)

    async def delete(self, resource_id: str) -> None:
        if self.singleton_id is not None:
            logger.info("resource_delete_noop", resource_type=self.type_name, resource_id=resource_id)
            return
        await self._write(lambda: self.delete_remote(resource_id), "delete", resource_id)
        logger.info("resource_deleted", resource_type=self.type_name, resource_id=resource_id)
        await self._after_write(resource_id, "delete")

    async def import_state(self, identifier: str) -> ResourceState:
        if self.singleton_id is not None:
            resource_id = self.singleton_id
        elif identifier.isdigit():
            resource_id = identifier
        else:
            resource_id = self.identify(await self.lookup_by_name(identifier))

        state = unwrap(await self.read(resource_id))
        if state is None:
            raise not_found_error(self.type_name, identifier)
        logger.info("resource_imported", resource_type=self.type_name, resource_id=resource_id)
        return state

    async def plan(self, resource_id: str | None, desired: Mapping[str, Any]) -> PlanResult:
        cleaned = self.validate(desired)
        model = self.expand(cleaned)
        resource_id = self.singleton_id or resource_id
        create = PlanResult(
            changes=[PlanChange("create", {"type": self.type_name, "attributes": cleaned})]
        )
        if resource_id is None:
            return create
        try:
            current = await self._fetch_current(resource_id, "plan")
        except NotFoundError:
            return create
        changed = self.changed_attributes(model, current)
        if not changed:
            return PlanResult(changes=[], metadata={"id": resource_id})
        return PlanResult(
            changes=[
                PlanChange(
                    "update",
                    {"type": self.type_name, "id": resource_id, "attributes": changed},
                )
            ],
            metadata={"id": resource_id},
        )

    async def drift(self, resource_id: str | None, desired: Mapping[str, Any]) -> PlanResult:
        return await self.plan(resource_id, desired)


class DataSource(Generic[ModelT]):
    type_name: ClassVar[str]
    description: ClassVar[str] = ""
    schema_def: ClassVar[Schema]

    def __init__(self, client: ZIAClient) -> None:
        self._client = client

    def schema(self) -> ResourceSchema:
        return ResourceSchema(
            name=self.type_name,
            description=self.description,
            attributes=self.schema_def.describe(),
            kind="data_source",
        )

    async def read(self, query: Mapping[str, Any] | None = None) -> ResourceState:
        raise NotImplementedError


class LookupDataSource(DataSource[ModelT]):
    """Fetch the full list and pick one entry by ``id``, then by ``name``."""

    async def list_all(self) -> list[ModelT]:
        raise NotImplementedError

    def flatten(self, model: ModelT) -> dict[str, Any]:
        raise NotImplementedError

    async def read(self, query: Mapping[str, Any] | None = None) -> ResourceState:
        query = self.schema_def.validate(query or {}, resource_type=self.type_name)
        wanted_id = query.get("id")
        wanted_name = query.get("name") or ""
        if wanted_id in (None, "", 0) and not wanted_name:
            raise ValidationError(
                f"{self.type_name}: either 'id' or 'name' must be provided",
                details={"resource_type": self.type_name},
            )

        items = await self.list_all()
        logger.debug("data_source_listed", resource_type=self.type_name, count=len(items))

        match: ModelT | None = None
        if wanted_id not in (None, "", 0):
            match = next((i for i in items if str(getattr(i, "id", "")) == str(wanted_id)), None)
            if match is None:
                raise not_found_error(self.type_name, str(wanted_id))
        if match is None:
            match = next((i for i in items if getattr(i, "name", None) == wanted_name), None)
            if match is None:
                raise not_found_error(self.type_name, wanted_name)

        return ResourceState(id=str(getattr(match, "id")), attributes=self.flatten(match))


def find_by_name(items: list[ModelT], name: str) -> ModelT | None:
    """Case-insensitive name match used for imports."""
    wanted = name.casefold()
    return next((i for i in items if str(getattr(i, "name", "")).casefold() == wanted), None)
