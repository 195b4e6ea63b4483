from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal

from ziaprovider.core.errors import ConfigurationError

ResourceFactory = Callable[..., Any]
Kind = Literal["resource", "data_source"]


@dataclass(frozen=True)
class ResourceSpec:
    """Metadata describing a registered resource type or data source."""

    name: str
    factory: ResourceFactory
    kind: Kind = "resource"
    description: str | None = None


class ResourceRegistry:
    """Simple in-memory registry of resource types and data sources."""

    def __init__(self) -> None:
        self._specs: Dict[tuple[Kind, str], ResourceSpec] = {}

    def register(
        self,
        name: str,
        factory: ResourceFactory,
        *,
        kind: Kind = "resource",
        description: str | None = None,
    ) -> None:
        if not name:
            raise ValueError("Resource type name is required")
        self._specs[(kind, name)] = ResourceSpec(
            name=name,
            factory=factory,
            kind=kind,
            description=description,
        )

    def get(self, name: str, *, kind: Kind = "resource") -> ResourceSpec:
        spec = self._specs.get((kind, name))
        if spec is None:
            label = "data source" if kind == "data_source" else "resource type"
            raise ConfigurationError(
                f"Unknown {label} '{name}'",
                details={"kind": kind, "name": name},
            )
        return spec

    def create(self, name: str, *, kind: Kind = "resource", **kwargs: Any) -> Any:
        return self.get(name, kind=kind).factory(**kwargs)

    def list(self, kind: Kind | None = None) -> List[ResourceSpec]:
        specs = [spec for spec in self._specs.values() if kind is None or spec.kind == kind]
        return sorted(specs, key=lambda spec: (spec.kind, spec.name))


resource_registry = ResourceRegistry()


def register_resource(name: str, factory: ResourceFactory, *, description: str | None = None) -> None:
    resource_registry.register(name, factory, kind="resource", description=description)


def register_data_source(name: str, factory: ResourceFactory, *, description: str | None = None) -> None:
    resource_registry.register(name, factory, kind="data_source", description=description)


def create_resource(name: str, **kwargs: Any) -> Any:
    return resource_registry.create(name, kind="resource", **kwargs)


def create_data_source(name: str, **kwargs: Any) -> Any:
    return resource_registry.create(name, kind="data_source", **kwargs)


def list_resources(kind: Kind | None = None) -> List[ResourceSpec]:
    return resource_registry.list(kind)
