"""Root test configuration."""

from __future__ import annotations

import logging
from typing import Any

import pytest
import structlog

from ziaprovider.core.errors import NotFoundError
from ziaprovider.domain.models import (
    Activation,
    IPSourceGroup,
    Md5HashValueList,
    RuleLabel,
    SandboxHashList,
    SecurityListUrls,
)
from ziaprovider.resources.activation import ActivationTrigger


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def _missing(kind: str, identifier: Any) -> NotFoundError:
    return NotFoundError(f"{kind} {identifier} not found", status_code=404, code="RESOURCE_NOT_FOUND")


class FakeZIAClient:
    """In-memory stand-in for ZIAClient that records every write.

    ``fail`` queues exceptions per method name; each call pops one.
    """

    def __init__(self) -> None:
        self.rule_labels: dict[int, RuleLabel] = {}
        self.ip_source_groups: dict[int, IPSourceGroup] = {}
        self.security = SecurityListUrls()
        self.sandbox_hashes = SandboxHashList()
        self.hash_values = Md5HashValueList()
        self.status = "ACTIVE"
        self.status_sequence: list[str] = []
        self.writes: list[tuple[str, Any]] = []
        self.activations = 0
        self.closed = False
        self._failures: dict[str, list[BaseException]] = {}
        self._next_id = 1000

    def fail(self, method: str, *errors: BaseException) -> None:
        self._failures.setdefault(method, []).extend(errors)

    def _check(self, method: str) -> None:
        queue = self._failures.get(method)
        if queue:
            raise queue.pop(0)

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    async def aclose(self) -> None:
        self.closed = True

    # activation

    async def get_activation_status(self) -> Activation:
        self._check("get_activation_status")
        if self.status_sequence:
            self.status = self.status_sequence.pop(0)
        return Activation(status=self.status)

    async def activate(self) -> Activation:
        self._check("activate")
        self.activations += 1
        return Activation(status=self.status)

    # rule labels

    async def list_rule_labels(self) -> list[RuleLabel]:
        self._check("list_rule_labels")
        return list(self.rule_labels.values())

    async def get_rule_label(self, label_id: int) -> RuleLabel:
        self._check("get_rule_label")
        if label_id not in self.rule_labels:
            raise _missing("rule label", label_id)
        return self.rule_labels[label_id]

    async def create_rule_label(self, label: RuleLabel) -> RuleLabel:
        self._check("create_rule_label")
        created = label.model_copy(update={"id": self._new_id(), "referenced_rule_count": 0})
        self.rule_labels[created.id] = created
        self.writes.append(("create_rule_label", created))
        return created

    async def update_rule_label(self, label_id: int, label: RuleLabel) -> RuleLabel:
        self._check("update_rule_label")
        if label_id not in self.rule_labels:
            raise _missing("rule label", label_id)
        self.rule_labels[label_id] = label
        self.writes.append(("update_rule_label", label))
        return label

    async def delete_rule_label(self, label_id: int) -> None:
        self._check("delete_rule_label")
        if label_id not in self.rule_labels:
            raise _missing("rule label", label_id)
        del self.rule_labels[label_id]
        self.writes.append(("delete_rule_label", label_id))

    # IP source groups

    async def list_ip_source_groups(self) -> list[IPSourceGroup]:
        self._check("list_ip_source_groups")
        return list(self.ip_source_groups.values())

    async def get_ip_source_group(self, group_id: int) -> IPSourceGroup:
        self._check("get_ip_source_group")
        if group_id not in self.ip_source_groups:
            raise _missing("ip source group", group_id)
        return self.ip_source_groups[group_id]

    async def create_ip_source_group(self, group: IPSourceGroup) -> IPSourceGroup:
        self._check("create_ip_source_group")
        created = group.model_copy(update={"id": self._new_id()})
        self.ip_source_groups[created.id] = created
        self.writes.append(("create_ip_source_group", created))
        return created

    async def update_ip_source_group(self, group_id: int, group: IPSourceGroup) -> IPSourceGroup:
        self._check("update_ip_source_group")
        if group_id not in self.ip_source_groups:
            raise _missing("ip source group", group_id)
        self.ip_source_groups[group_id] = group
        self.writes.append(("update_ip_source_group", group))
        return group

    async def delete_ip_source_group(self, group_id: int) -> None:
        self._check("delete_ip_source_group")
        if group_id not in self.ip_source_groups:
            raise _missing("ip source group", group_id)
        del self.ip_source_groups[group_id]
        self.writes.append(("delete_ip_source_group", group_id))

    # singleton settings

    async def get_security_list_urls(self) -> SecurityListUrls:
        self._check("get_security_list_urls")
        return self.security

    async def update_security_list_urls(self, urls: SecurityListUrls) -> SecurityListUrls:
        self._check("update_security_list_urls")
        self.security = urls
        self.writes.append(("update_security_list_urls", urls))
        return urls

    async def get_sandbox_hashes(self) -> SandboxHashList:
        self._check("get_sandbox_hashes")
        return self.sandbox_hashes

    async def update_sandbox_hashes(self, hashes: SandboxHashList) -> SandboxHashList:
        self._check("update_sandbox_hashes")
        self.sandbox_hashes = hashes
        self.writes.append(("update_sandbox_hashes", hashes))
        return hashes

    async def get_sandbox_hash_values(self) -> Md5HashValueList:
        self._check("get_sandbox_hash_values")
        return self.hash_values

    async def update_sandbox_hash_values(self, values: Md5HashValueList) -> Md5HashValueList:
        self._check("update_sandbox_hash_values")
        self.hash_values = values
        self.writes.append(("update_sandbox_hash_values", values))
        return values


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_client() -> FakeZIAClient:
    return FakeZIAClient()


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def activation(fake_client, sleeps) -> ActivationTrigger:
    """Activation trigger with the ZIA_ACTIVATION flag off."""
    return ActivationTrigger(fake_client, enabled=False, sleep=sleeps)


@pytest.fixture
def make_adapter(fake_client, activation):
    """Build a resource adapter wired to the fake client without edit-lock waits."""

    def _make(cls, trigger: ActivationTrigger | None = None):
        return cls(
            fake_client,
            trigger or activation,
            edit_lock_retries=3,
            edit_lock_retry_interval=0,
        )

    return _make
