from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, Protocol, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class ResourceSchema:
    """Schema metadata describing a provider-managed resource or data source."""

    name: str
    description: str
    attributes: dict[str, str]
    kind: Literal["resource", "data_source"] = "resource"


@dataclass(frozen=True)
class PlanChange:
    """Represents a single change detected during planning."""

    action: Literal["create", "update", "delete"]
    details: dict[str, Any]


@dataclass(frozen=True)
class PlanResult:
    """Plan result summarising pending changes."""

    changes: list[PlanChange]
    metadata: dict[str, Any] | None = None

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)


@dataclass(frozen=True)
class ProviderHealth:
    status: Literal["healthy", "degraded", "unreachable"]
    details: str | None = None


@dataclass(frozen=True)
class ResourceState:
    """Identifier plus flattened attributes handed back to the caller."""

    id: str
    attributes: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, **self.attributes}


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    """The remote object is gone; the caller should stop tracking it."""

    id: str


@dataclass(frozen=True)
class Failed:
    id: str
    cause: BaseException


ReadResult = Union[Found[ResourceState], NotFound, Failed]


def unwrap(result: ReadResult) -> ResourceState | None:
    """Return the state of a ``Found`` result, ``None`` for ``NotFound``; re-raise ``Failed``."""
    if isinstance(result, Found):
        return result.value
    if isinstance(result, NotFound):
        return None
    raise result.cause


class ProviderResource(Protocol):
    """Contract for provider-managed resources."""

    type_name: str

    def schema(self) -> ResourceSchema:
        ...

    async def create(self, desired: dict[str, Any]) -> ResourceState:
        ...

    async def read(self, resource_id: str) -> ReadResult:
        ...

    async def update(self, resource_id: str, desired: dict[str, Any]) -> ReadResult:
        ...

    async def delete(self, resource_id: str) -> None:
        ...

    async def import_state(self, identifier: str) -> ResourceState:
        ...

    async def plan(self, resource_id: str | None, desired: dict[str, Any]) -> PlanResult:
        ...


class ProviderDataSource(Protocol):
    """Contract for read-only data sources."""

    type_name: str

    def schema(self) -> ResourceSchema:
        ...

    async def read(self, query: dict[str, Any]) -> ResourceState:
        ...


class Provider(Protocol):
    """Minimal provider interface exposed to hosts such as the CLI."""

    name: str

    async def health_check(self) -> ProviderHealth:
        ...

    async def resources(self) -> list[ResourceSchema]:
        ...
