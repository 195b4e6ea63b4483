"""Tests for the resource registry and the provider entry point."""

import pytest

from ziaprovider.core.errors import ConfigurationError, TransientAPIError
from ziaprovider.providers.registry import ResourceRegistry, list_resources
from ziaprovider.providers.zia import ZIAProvider
from ziaprovider.resources.activation import ActivationTrigger
from ziaprovider.resources.rule_labels import RuleLabelDataSource, RuleLabelResource

RESOURCE_TYPES = {
    "zia_activation_status",
    "zia_firewall_filtering_ip_source_groups",
    "zia_rule_labels",
    "zia_sandbox_behavioral_analysis",
    "zia_sandbox_behavioral_analysis_v2",
    "zia_security_settings",
}

DATA_SOURCE_TYPES = {
    "zia_activation_status",
    "zia_firewall_filtering_ip_source_groups",
    "zia_rule_labels",
    "zia_sandbox_behavioral_analysis_v2",
    "zia_security_settings",
}


class TestResourceRegistry:
    def test_register_and_create(self):
        registry = ResourceRegistry()
        registry.register("thing", lambda **kwargs: kwargs, description="A thing")

        assert registry.create("thing", value=1) == {"value": 1}
        assert registry.get("thing").description == "A thing"

    def test_kinds_are_separate(self):
        registry = ResourceRegistry()
        registry.register("thing", dict, kind="data_source")

        with pytest.raises(ConfigurationError):
            registry.get("thing")
        assert registry.get("thing", kind="data_source").kind == "data_source"

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError) as excinfo:
            ResourceRegistry().create("zia_nope")
        assert excinfo.value.details == {"kind": "resource", "name": "zia_nope"}

    def test_name_required(self):
        with pytest.raises(ValueError):
            ResourceRegistry().register("", dict)

    def test_builtin_types_registered(self):
        assert {spec.name for spec in list_resources("resource")} == RESOURCE_TYPES
        assert {spec.name for spec in list_resources("data_source")} == DATA_SOURCE_TYPES


class TestZIAProvider:
    def test_adapters_share_client_and_activation(self, fake_client):
        trigger = ActivationTrigger(fake_client, enabled=True)
        provider = ZIAProvider(fake_client, activation=trigger, edit_lock_retries=5)

        adapter = provider.resource("zia_rule_labels")

        assert isinstance(adapter, RuleLabelResource)
        assert adapter._client is fake_client
        assert adapter._activation is trigger
        assert adapter._edit_lock_retries == 5
        assert isinstance(provider.data_source("zia_rule_labels"), RuleLabelDataSource)

    def test_unknown_resource_type(self, fake_client):
        with pytest.raises(ConfigurationError):
            ZIAProvider(fake_client).resource("zia_unknown")

    @pytest.mark.asyncio
    async def test_resources_lists_schemas(self, fake_client):
        schemas = await ZIAProvider(fake_client).resources()

        kinds = {(schema.kind, schema.name) for schema in schemas}
        assert ("resource", "zia_rule_labels") in kinds
        assert ("data_source", "zia_security_settings") in kinds
        labels = next(s for s in schemas if s.name == "zia_rule_labels" and s.kind == "resource")
        assert labels.attributes["name"].startswith("string (required)")

    @pytest.mark.asyncio
    async def test_health_check(self, fake_client):
        health = await ZIAProvider(fake_client).health_check()
        assert health.status == "healthy"

    @pytest.mark.asyncio
    async def test_health_check_unreachable(self, fake_client):
        fake_client.fail("get_activation_status", TransientAPIError("boom"))
        health = await ZIAProvider(fake_client).health_check()
        assert health.status == "unreachable"
        assert "boom" in (health.details or "")

    @pytest.mark.asyncio
    async def test_aclose(self, fake_client):
        await ZIAProvider(fake_client).aclose()
        assert fake_client.closed
