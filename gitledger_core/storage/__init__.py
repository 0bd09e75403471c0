# gitledger_core/storage/__init__.py
from __future__ import annotations

from .models import Identity, KeyPair
from .provider import StorageProvider
from .providers.memory_provider import InMemoryStorage
from .providers.sqlite_provider import SQLiteStorage
import os


def load_storage_provider(config: dict | None = None) -> StorageProvider:
    """
    Factory resolver for selecting the identity registry backend.

        - sqlite (default)
        - memory
    """
    config = config or {}
    provider = config.get("provider") or os.getenv("GITLEDGER_STORAGE_PROVIDER", "sqlite")

    if provider == "memory":
        return InMemoryStorage()

    if provider == "sqlite":
        db_path = config.get("sqlite_path") or os.getenv("GITLEDGER_DB_PATH", "~/.git_ledger.db")
        return SQLiteStorage(db_path)

    raise ValueError(f"Unknown storage provider: {provider}")


__all__ = [
    "Identity",
    "KeyPair",
    "StorageProvider",
    "InMemoryStorage",
    "SQLiteStorage",
    "load_storage_provider",
]
