"""Built-in storage backends that need no external services."""

from bastion_core.storage.memory import InMemoryStore

__all__ = ["InMemoryStore"]
