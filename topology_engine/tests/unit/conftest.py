"""In-memory collaborators shared by the unit tests."""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path

import pytest

from topology_engine.config import Settings, load_settings
from topology_engine.errors import ResourceConflictError, StateStoreError
from topology_engine.interfaces import OpenMode
from topology_engine.models.account import ServiceAccount
from topology_engine.models.artefact import SESSION_VARS_NAME, Artefact, ArtefactKind, content_hash
from topology_engine.models.binding import Binding
from topology_engine.models.topic import ConfigEntry, ConfigSource, TopicSpec
from topology_engine.state.serializer import deserialize_snapshot, serialize_snapshot
from topology_engine.state.snapshot import Snapshot
from topology_engine.state.store import StateStore
from topology_engine.topics.config_plan import TopicConfigUpdatePlan

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClusterAdmin:
    def __init__(self) -> None:
        self.configs: dict[str, dict[str, ConfigEntry]] = {}
        self.partitions: dict[str, int] = {}
        self.calls: list[tuple[str, object]] = []

    def add_live_topic(self, name: str, partitions: int = 1, **entries: ConfigEntry) -> None:
        self.configs[name] = dict(entries)
        self.partitions[name] = partitions

    def create_topic(self, topic: TopicSpec) -> None:
        self.calls.append(("create_topic", topic.name))
        if topic.name in self.configs:
            raise ResourceConflictError(f"Topic {topic.name} already exists")
        self.configs[topic.name] = {
            key: ConfigEntry(name=key, value=value, source=ConfigSource.DYNAMIC_TOPIC_CONFIG)
            for key, value in topic.config.items()
        }
        self.partitions[topic.name] = topic.partitions or 1

    def delete_topics(self, names: list[str]) -> None:
        self.calls.append(("delete_topics", list(names)))
        for name in names:
            self.configs.pop(name, None)
            self.partitions.pop(name, None)

    def increase_partitions(self, name: str, count: int) -> None:
        self.calls.append(("increase_partitions", (name, count)))
        self.partitions[name] = count

    def alter_topic_config(self, plan: TopicConfigUpdatePlan) -> None:
        self.calls.append(("alter_topic_config", plan.topic_name))
        entries = self.configs[plan.topic_name]
        for key, value in plan.new_configs.items():
            entries[key] = ConfigEntry(name=key, value=value, source=ConfigSource.DYNAMIC_TOPIC_CONFIG)
        for key, (_, value) in plan.updated_configs.items():
            entries[key] = ConfigEntry(name=key, value=value, source=ConfigSource.DYNAMIC_TOPIC_CONFIG)
        for key in plan.deleted_configs:
            entries.pop(key, None)

    def list_topics(self) -> set[str]:
        return set(self.configs)

    def describe_topic_config(self, name: str) -> list[ConfigEntry]:
        return list(self.configs[name].values())

    def partition_count(self, name: str) -> int:
        return self.partitions[name]

    def healthcheck(self) -> None:
        self.calls.append(("healthcheck", None))


class FakeAccessControl:
    def __init__(self, bindings: set[Binding] | None = None) -> None:
        self.bindings: set[Binding] = set(bindings or ())
        self.created: list[set[Binding]] = []
        self.cleared: list[set[Binding]] = []

    def create_bindings(self, bindings: set[Binding]) -> None:
        self.created.append(set(bindings))
        self.bindings.update(bindings)

    def clear_bindings(self, bindings: set[Binding]) -> None:
        self.cleared.append(set(bindings))
        self.bindings.difference_update(bindings)

    def list_acls(self) -> dict[str, list[Binding]]:
        grouped: dict[str, list[Binding]] = defaultdict(list)
        for binding in self.bindings:
            grouped[binding.resource_name].append(binding)
        return dict(grouped)


class FakePrincipals:
    def __init__(self) -> None:
        self.accounts: dict[str, ServiceAccount] = {}
        self._next_id = 100

    def create_service_account(self, name: str, description: str) -> ServiceAccount:
        account = ServiceAccount(id=f"sa-{self._next_id}", name=name, description=description)
        self._next_id += 1
        self.accounts[name] = account
        return account

    def delete_service_account(self, account: ServiceAccount) -> None:
        del self.accounts[account.name]

    def list_service_accounts(self) -> set[ServiceAccount]:
        return set(self.accounts.values())


class FakeArtefactClient:
    """Hosts artefacts in memory; the kind is inferred from the statement text."""

    def __init__(self, default_kind: ArtefactKind = ArtefactKind.CONNECTOR) -> None:
        self.default_kind = default_kind
        self.hosted: dict[str, Artefact] = {}
        self.session_vars: str | None = None
        self.calls: list[tuple] = []

    def _kind_of(self, content: str) -> ArtefactKind:
        statement = content.strip().upper()
        if statement.startswith("CREATE TABLE"):
            return ArtefactKind.TABLE
        if statement.startswith("CREATE STREAM"):
            return ArtefactKind.STREAM
        return self.default_kind

    def add(self, name: str, content: str) -> None:
        self.calls.append(("add", name))
        if name == SESSION_VARS_NAME:
            self.session_vars = content
            return
        self.hosted[name] = Artefact(kind=self._kind_of(content), name=name, hash=content_hash(content))

    def update(self, name: str, content: str) -> None:
        self.calls.append(("update", name))
        self.hosted[name] = Artefact(kind=self._kind_of(content), name=name, hash=content_hash(content))

    def delete(self, name: str, kind: str | None = None) -> None:
        self.calls.append(("delete", name, kind))
        self.hosted.pop(name, None)

    def get_cluster_state(self) -> list[Artefact]:
        return list(self.hosted.values())


class FakeSchemaRegistry:
    def __init__(self) -> None:
        self.schemas: dict[str, dict[str, int]] = defaultdict(dict)
        self.compatibility: dict[str, str] = {}
        self.registered: list[str] = []
        self.compatibility_updates: list[tuple[str, str]] = []
        self._next_id = 1

    def register(self, subject: str, schema: str, schema_type: str) -> int:
        self.registered.append(subject)
        schema_id = self.schemas[subject].setdefault(schema, self._next_id)
        self._next_id += 1
        return schema_id

    def get_id(self, subject: str, schema: str, schema_type: str) -> int | None:
        return self.schemas.get(subject, {}).get(schema)

    def get_compatibility(self, subject: str) -> str | None:
        return self.compatibility.get(subject)

    def set_compatibility(self, subject: str, compatibility: str) -> None:
        self.compatibility_updates.append((subject, compatibility))
        self.compatibility[subject] = compatibility


class InMemoryBackend:
    """Backend keeping the serialized document, so tests can compare bytes."""

    def __init__(self, document: str | None = None, fail_save: bool = False) -> None:
        self.document = document
        self.fail_save = fail_save
        self.opened: list[OpenMode] = []
        self.saves = 0
        self.closes = 0

    def configure(self, settings: Settings) -> None:
        pass

    def create_or_open(self, mode: OpenMode = OpenMode.APPEND) -> None:
        self.opened.append(mode)

    def close(self) -> None:
        self.closes += 1

    def save(self, snapshot: Snapshot) -> None:
        if self.fail_save:
            raise StateStoreError("state storage unreachable")
        self.saves += 1
        self.document = serialize_snapshot(snapshot)

    def load(self) -> Snapshot:
        return deserialize_snapshot(self.document)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return load_settings(state_dir=tmp_path, instance_id="test-instance")


@pytest.fixture()
def admin() -> FakeClusterAdmin:
    return FakeClusterAdmin()


@pytest.fixture()
def access_control() -> FakeAccessControl:
    return FakeAccessControl()


@pytest.fixture()
def principals() -> FakePrincipals:
    return FakePrincipals()


@pytest.fixture()
def schema_registry() -> FakeSchemaRegistry:
    return FakeSchemaRegistry()


@pytest.fixture()
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture()
def store(backend: InMemoryBackend) -> StateStore:
    return StateStore(backend)


@pytest.fixture()
def make_artefact_client():
    return FakeArtefactClient
