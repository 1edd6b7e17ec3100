"""Shared test fixtures for Bastion."""

import pytest

from bastion_core.config.models import BastionConfig
from bastion_core.engine import GroupAdmin, PermissionEngine
from bastion_core.interfaces import Subject
from bastion_core.registry import KnownPermissionRegistry
from bastion_core.storage import InMemoryStore
from bastion_lite.storage.sqlite_store import SQLiteStore


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def registry():
    return KnownPermissionRegistry()


@pytest.fixture
def engine(store, registry):
    return PermissionEngine(store, registry=registry)


@pytest.fixture
def admin(engine):
    admin = GroupAdmin(engine)
    admin.ensure_default_group()
    return admin


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteStore(db_path=str(tmp_path / "permissions.db"))
    yield store
    store.close()


@pytest.fixture
def user():
    return Subject.user("6a1f0c1e-3b9d-4d2f-9a57-0e2d6f3c8b11")


@pytest.fixture
def sample_config():
    return BastionConfig()


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch):
    monkeypatch.delenv("BASTION_CONFIG", raising=False)
