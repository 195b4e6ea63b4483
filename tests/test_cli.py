"""Tests for the plan/apply runner and the ziaprovider command."""

import json
from textwrap import dedent

import pytest

from ziaprovider.cli import app
from ziaprovider.cli.runner import (
    DesiredResource,
    apply_resources,
    load_desired,
    parse_desired,
    plan_resources,
)
from ziaprovider.config.settings import Settings
from ziaprovider.core.errors import ConfigurationError, ExitCode, ValidationError
from ziaprovider.domain.models import RuleLabel
from ziaprovider.providers.zia import ZIAProvider
from ziaprovider.resources.activation import ActivationTrigger

DESIRED = dedent(
    """
    resources:
      - type: zia_rule_labels
        attributes:
          name: production
          description: Production rules
      - type: zia_security_settings
        attributes:
          whitelist_urls: [b.example.com, a.example.com]
    """
)


@pytest.fixture
def provider(fake_client, sleeps):
    trigger = ActivationTrigger(fake_client, enabled=False, sleep=sleeps)
    return ZIAProvider(fake_client, activation=trigger, edit_lock_retry_interval=0)


@pytest.fixture
def cli_provider(monkeypatch, provider):
    """Route the command to the fake-backed provider without touching logging config."""
    monkeypatch.setattr(app, "get_settings", lambda: Settings(_env_file=None))
    monkeypatch.setattr(app, "configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(ZIAProvider, "from_settings", classmethod(lambda cls, settings=None: provider))
    return provider


@pytest.fixture
def desired_file(tmp_path):
    path = tmp_path / "zia.yaml"
    path.write_text(DESIRED)
    return path


class TestParseDesired:
    def test_parses_entries(self):
        desired = parse_desired(
            {"resources": [{"type": "zia_rule_labels", "id": 42, "attributes": {"name": "a"}}]}
        )
        assert desired == [DesiredResource("zia_rule_labels", {"name": "a"}, "42")]

    def test_collects_problems(self):
        with pytest.raises(ValidationError) as excinfo:
            parse_desired(
                {
                    "resources": [
                        "nope",
                        {"attributes": {}},
                        {"type": "zia_rule_labels", "attributes": ["x"]},
                        {"type": "zia_rule_labels", "depends_on": []},
                    ]
                },
                source="zia.yaml",
            )
        assert excinfo.value.problems == [
            "resources[0]: expected mapping",
            "resources[1].type: required string",
            "resources[2].attributes: expected mapping",
            "resources[3]: unsupported keys depends_on",
        ]

    def test_requires_resources_list(self):
        with pytest.raises(ValidationError):
            parse_desired({"resource": []})

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_desired(tmp_path / "missing.yaml")

    def test_load_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("resources: [\n")
        with pytest.raises(ValidationError):
            load_desired(path)


class TestApplyResources:
    @pytest.mark.asyncio
    async def test_creates_then_reports_unchanged(self, provider, fake_client, desired_file):
        desired = load_desired(desired_file)

        first = await apply_resources(provider, desired)
        assert [o.action for o in first] == ["created", "updated"]
        assert fake_client.security.whitelist_urls == ["a.example.com", "b.example.com"]

        label_id = first[0].id
        pinned = [DesiredResource(d.type, d.attributes, label_id if i == 0 else None) for i, d in enumerate(desired)]
        second = await apply_resources(provider, pinned)
        assert [o.action for o in second] == ["unchanged", "unchanged"]
        assert len(fake_client.writes) == 2

    @pytest.mark.asyncio
    async def test_updates_existing(self, provider, fake_client):
        fake_client.rule_labels[42] = RuleLabel(id=42, name="old")

        outcomes = await apply_resources(
            provider, [DesiredResource("zia_rule_labels", {"name": "new"}, "42")]
        )

        assert outcomes[0].action == "updated"
        assert outcomes[0].state.attributes["name"] == "new"

    @pytest.mark.asyncio
    async def test_plan_does_not_write(self, provider, fake_client, desired_file):
        results = await plan_resources(provider, load_desired(desired_file))

        assert [plan.changes[0].action for _, plan in results] == ["create", "update"]
        assert fake_client.writes == []


class TestCommand:
    def test_no_command_prints_help(self, capsys):
        assert app.run([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_resources(self, capsys):
        assert app.run(["resources"]) == ExitCode.SUCCESS
        assert "zia_rule_labels" in capsys.readouterr().out

    def test_apply(self, cli_provider, fake_client, desired_file, capsys):
        assert app.run(["apply", str(desired_file)]) == ExitCode.SUCCESS

        out = capsys.readouterr().out
        assert "created" in out
        assert [label.name for label in fake_client.rule_labels.values()] == ["production"]
        assert fake_client.closed

    def test_plan(self, cli_provider, fake_client, desired_file, capsys):
        assert app.run(["plan", str(desired_file)]) == ExitCode.SUCCESS

        assert "2 change(s) pending" in capsys.readouterr().out
        assert fake_client.writes == []

    def test_invalid_attributes(self, cli_provider, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("resources:\n  - type: zia_rule_labels\n    attributes: {description: x}\n")

        assert app.run(["apply", str(path)]) == ExitCode.VALIDATION_ERROR
        assert "name: attribute is required" in capsys.readouterr().out

    def test_unknown_type(self, cli_provider, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("resources:\n  - type: zia_nope\n")

        assert app.run(["plan", str(path)]) == ExitCode.CONFIG_ERROR

    def test_import(self, cli_provider, fake_client, capsys, monkeypatch):
        monkeypatch.setenv("CI", "true")
        fake_client.rule_labels[42] = RuleLabel(id=42, name="prod")

        assert app.run(["import", "zia_rule_labels", "prod"]) == ExitCode.SUCCESS

        data = json.loads(capsys.readouterr().out)
        assert data["id"] == "42"
        assert data["name"] == "prod"

    def test_read_data(self, cli_provider, fake_client, capsys, monkeypatch):
        monkeypatch.setenv("CI", "true")
        fake_client.rule_labels[42] = RuleLabel(id=42, name="prod")

        assert app.run(["read-data", "zia_rule_labels", "--id", "42"]) == ExitCode.SUCCESS
        assert json.loads(capsys.readouterr().out)["name"] == "prod"

    def test_delete(self, cli_provider, fake_client):
        fake_client.rule_labels[42] = RuleLabel(id=42, name="prod")

        assert app.run(["delete", "zia_rule_labels", "42"]) == ExitCode.SUCCESS
        assert fake_client.rule_labels == {}

    def test_delete_missing(self, cli_provider):
        assert app.run(["delete", "zia_rule_labels", "42"]) == ExitCode.PROVIDER_ERROR

    def test_activate_ignores_flag(self, cli_provider, fake_client):
        assert app.run(["activate"]) == ExitCode.SUCCESS
        assert fake_client.activations == 1

    def test_status(self, cli_provider, fake_client, capsys):
        fake_client.status = "PENDING"
        assert app.run(["status"]) == ExitCode.SUCCESS
        assert "PENDING" in capsys.readouterr().out

    def test_missing_credentials(self, monkeypatch, desired_file):
        monkeypatch.setattr(app, "get_settings", lambda: Settings(_env_file=None, client_id=None))
        monkeypatch.setattr(app, "configure_logging", lambda *args, **kwargs: None)
        for name in ("ZSCALER_CLIENT_ID", "ZSCALER_CLIENT_SECRET", "ZSCALER_VANITY_DOMAIN", "ZIA_USERNAME"):
            monkeypatch.delenv(name, raising=False)

        assert app.run(["plan", str(desired_file)]) == ExitCode.CONFIG_ERROR

    def test_main_exits_with_code(self):
        with pytest.raises(SystemExit) as excinfo:
            app.main(["resources"])
        assert excinfo.value.code == 0
