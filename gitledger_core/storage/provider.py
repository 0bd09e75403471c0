# gitledger_core/storage/provider.py
from __future__ import annotations
from typing import List, Optional
from gitledger_core.storage.models import Identity, KeyPair


class StorageProvider:
    """
    Registry contract shared by every storage backend.

    Compound operations (upsert_active, activate, remove) must apply
    atomically: either every statement lands or none does.
    """
    name: str = "base"

    def upsert_active(self, identity: Identity, key_pair: KeyPair) -> None:
        """Deactivate all rows, store `identity` as the sole active row with its key pair."""
        raise NotImplementedError

    def activate(self, email: str) -> None:
        """Make `email` the sole active row. Raises NotFound if unknown."""
        raise NotImplementedError

    def remove(self, email: str) -> bool:
        """Delete the identity and its key pair; return whether it was active."""
        raise NotImplementedError

    def remove_all(self) -> None:
        raise NotImplementedError

    def get(self, email: str) -> KeyPair:
        raise NotImplementedError

    def get_identity(self, email: str) -> Identity:
        raise NotImplementedError

    def active(self) -> Optional[Identity]:
        actives = [i for i in self.list() if i.is_active]
        return actives[0] if actives else None

    def list(self) -> List[Identity]:
        raise NotImplementedError

    def current_active_flag(self, email: str) -> bool:
        raise NotImplementedError

    def close(self) -> None:
        return
