"""Tests for bastion_core.plugins.loader — discovery, loading, fallback, errors."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from bastion_core.config.models import BastionConfig, StorageConfig
from bastion_core.plugins.loader import PluginLoader, PluginNotFoundError
from bastion_core.storage import InMemoryStore
from bastion_lite.storage.sqlite_store import SQLiteStore


# -- Helpers ----------------------------------------------------------------


def make_entry_point(name: str, load_return=None):
    """Build a mock entry point with .name and .load()."""
    ep = MagicMock()
    ep.name = name
    ep.load.return_value = load_return or MagicMock()
    return ep


def make_loader(**storage) -> PluginLoader:
    """Build a PluginLoader with optional storage config overrides."""
    return PluginLoader(BastionConfig(storage=StorageConfig(**storage)))


def _ep_side_effect(mapping: dict[str, list]):
    """Return a side_effect function for entry_points(group=...).

    Unrecognized groups return [].
    """
    def _side_effect(*, group):
        return mapping.get(group, [])
    return _side_effect


# -- Discovery tests -------------------------------------------------------


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_discover_empty(mock_eps):
    mock_eps.side_effect = _ep_side_effect({})
    assert make_loader().discover() == {"storage": []}


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_discover_finds_registered_plugins(mock_eps):
    mock_eps.side_effect = _ep_side_effect({
        "bastion.plugins.storage": [make_entry_point("redis"), make_entry_point("postgres")],
    })
    assert make_loader().discover() == {"storage": ["redis", "postgres"]}


# -- Loading ---------------------------------------------------------------


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_load_storage_from_entry_point(mock_eps):
    """Explicit name loads the matching storage entry point."""
    sentinel = MagicMock(name="RedisStore")
    mock_eps.side_effect = _ep_side_effect({
        "bastion.plugins.storage": [make_entry_point("redis", sentinel)],
    })
    assert make_loader().load_storage(name="redis") is sentinel


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_load_storage_uses_config_name(mock_eps):
    sentinel = MagicMock(name="RedisStore")
    mock_eps.side_effect = _ep_side_effect({
        "bastion.plugins.storage": [
            make_entry_point("postgres", MagicMock()),
            make_entry_point("redis", sentinel),
        ],
    })
    assert make_loader(backend="redis").load_storage() is sentinel


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_entry_point_overrides_builtin(mock_eps):
    """An installed plugin named like a built-in wins over the built-in."""
    sentinel = MagicMock(name="CustomSQLite")
    mock_eps.side_effect = _ep_side_effect({
        "bastion.plugins.storage": [make_entry_point("sqlite", sentinel)],
    })
    assert make_loader().load_storage() is sentinel


# -- Built-in fallback ------------------------------------------------------


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_fallback_to_builtin_sqlite(mock_eps):
    mock_eps.side_effect = _ep_side_effect({})
    assert make_loader().load_storage() is SQLiteStore


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_fallback_to_builtin_memory(mock_eps):
    mock_eps.side_effect = _ep_side_effect({})
    assert make_loader(backend="memory").load_storage() is InMemoryStore


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_builtin_import_failure_returns_none(mock_eps):
    """A built-in that fails to import is treated as absent."""
    mock_eps.side_effect = _ep_side_effect({})
    loader = make_loader()
    with patch("builtins.__import__", side_effect=ImportError("gone")):
        result = loader._load_builtin("storage", "sqlite")
    assert result is None


# -- Errors ----------------------------------------------------------------


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_unknown_backend_raises(mock_eps):
    mock_eps.side_effect = _ep_side_effect({})
    with pytest.raises(PluginNotFoundError) as exc:
        make_loader(backend="cassandra").load_storage()
    assert exc.value.plugin_type == "storage"
    assert exc.value.name == "cassandra"
    assert str(exc.value) == "No storage plugin found with name 'cassandra'"


# -- create_store ----------------------------------------------------------


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_create_memory_store(mock_eps):
    mock_eps.side_effect = _ep_side_effect({})
    assert isinstance(make_loader(backend="memory").create_store(), InMemoryStore)


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_create_sqlite_store_from_config(mock_eps, tmp_path):
    mock_eps.side_effect = _ep_side_effect({})
    db = tmp_path / "p.db"
    store = make_loader(path=str(db), timeout=2.5).create_store()
    try:
        assert isinstance(store, SQLiteStore)
        assert store.db_path == str(db)
        assert store.timeout == 2.5
    finally:
        store.close()


@patch("bastion_core.plugins.loader.importlib.metadata.entry_points")
def test_create_store_passes_config_to_plugin(mock_eps):
    store_cls = MagicMock(name="RedisStore")
    mock_eps.side_effect = _ep_side_effect({
        "bastion.plugins.storage": [make_entry_point("redis", store_cls)],
    })
    loader = make_loader(backend="redis", path="redis://localhost/0", timeout=1.0)
    assert loader.create_store() is store_cls.return_value
    store_cls.assert_called_once_with(db_path="redis://localhost/0", timeout=1.0)
