"""Storage backend discovery and loading via entry points."""

from __future__ import annotations

import importlib.metadata
from typing import TYPE_CHECKING

from bastion_core.interfaces.storage import PermissionStore

if TYPE_CHECKING:
    from bastion_core.config.models import BastionConfig


class PluginNotFoundError(Exception):
    """Raised when a requested plugin cannot be found."""

    def __init__(self, plugin_type: str, name: str | None = None):
        self.plugin_type = plugin_type
        self.name = name
        msg = f"No {plugin_type} plugin found"
        if name:
            msg += f" with name '{name}'"
        super().__init__(msg)


class PluginLoader:
    """Discovers and loads storage backends via entry points or built-ins."""

    # Entry point group names
    GROUPS = {
        "storage": "bastion.plugins.storage",
    }

    # Built-in backends (lazy import paths)
    BUILTINS = {
        "storage": {
            "sqlite": ("bastion_lite.storage.sqlite_store", "SQLiteStore"),
            "memory": ("bastion_core.storage.memory", "InMemoryStore"),
        },
    }

    def __init__(self, config: BastionConfig):
        self._config = config

    def discover(self) -> dict[str, list[str]]:
        """Scan entry_points for registered plugins. Returns {type: [name, ...]}."""
        result: dict[str, list[str]] = {}
        for plugin_type, group in self.GROUPS.items():
            eps = importlib.metadata.entry_points(group=group)
            result[plugin_type] = [ep.name for ep in eps]
        return result

    def _resolve_name(self, plugin_type: str, name: str | None) -> str:
        """Resolve plugin name: explicit arg > config."""
        if name is not None:
            return name
        return getattr(self._config, plugin_type).backend

    def _load_from_entry_point(self, plugin_type: str, name: str) -> object | None:
        """Try to load a specific named entry point."""
        group = self.GROUPS[plugin_type]
        eps = importlib.metadata.entry_points(group=group)
        for ep in eps:
            if ep.name == name:
                return ep.load()
        return None

    def _load_builtin(self, plugin_type: str, name: str) -> object | None:
        """Try to import a built-in backend by name."""
        target = self.BUILTINS.get(plugin_type, {}).get(name)
        if target is None:
            return None
        module_path, class_name = target
        try:
            module = __import__(module_path, fromlist=[class_name])
            return getattr(module, class_name)
        except (ImportError, AttributeError):
            return None

    def _load_plugin(self, plugin_type: str, name: str | None) -> object:
        """Fallback chain: entry_points > built-ins. Unknown names raise."""
        resolved = self._resolve_name(plugin_type, name)
        result = self._load_from_entry_point(plugin_type, resolved)
        if result is None:
            result = self._load_builtin(plugin_type, resolved)
        if result is None:
            raise PluginNotFoundError(plugin_type, resolved)
        return result

    def load_storage(self, name: str | None = None) -> type[PermissionStore]:
        return self._load_plugin("storage", name)

    def create_store(self, name: str | None = None) -> PermissionStore:
        """Instantiate the configured storage backend."""
        store_cls = self.load_storage(name)
        if self._resolve_name("storage", name) == "memory":
            return store_cls()
        storage = self._config.storage
        return store_cls(db_path=storage.path, timeout=storage.timeout)
