"""ZIA resource types and data sources."""

# Import resource modules for side effects (registration)
from ziaprovider.resources import activation as _activation  # noqa: F401
from ziaprovider.resources import ip_source_groups as _ip_source_groups  # noqa: F401
from ziaprovider.resources import rule_labels as _rule_labels  # noqa: F401
from ziaprovider.resources import sandbox_settings as _sandbox_settings  # noqa: F401
from ziaprovider.resources import security_settings as _security_settings  # noqa: F401
from ziaprovider.resources.activation import ActivationTrigger
from ziaprovider.resources.base import DataSource, LookupDataSource, ResourceAdapter
from ziaprovider.resources.reconcile import SetReconciler

__all__ = [
    "ActivationTrigger",
    "DataSource",
    "LookupDataSource",
    "ResourceAdapter",
    "SetReconciler",
]
