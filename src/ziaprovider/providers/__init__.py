"""Provider contracts, schema declarations and the resource registry."""

from ziaprovider.providers.registry import (
    create_data_source,
    create_resource,
    list_resources,
    register_data_source,
    register_resource,
)

__all__ = [
    "create_data_source",
    "create_resource",
    "list_resources",
    "register_data_source",
    "register_resource",
]
