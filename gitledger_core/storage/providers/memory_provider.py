from typing import Dict, List
from dataclasses import replace
from gitledger_core.errors import NotFound
from gitledger_core.storage.models import Identity, KeyPair
from gitledger_core.storage.provider import StorageProvider
from gitledger_core.utils import now_ts


class InMemoryStorage(StorageProvider):
    """Dict-backed registry. Each transition builds new state before swapping it in."""
    name = "memory"

    def __init__(self):
        self.accounts: Dict[str, Identity] = {}
        self.keys: Dict[str, KeyPair] = {}

    def upsert_active(self, identity: Identity, key_pair: KeyPair):
        prior = self.accounts.get(identity.email)
        created_at = prior.created_at if prior else (identity.created_at or now_ts())
        accounts = {e: replace(i, is_active=False) for e, i in self.accounts.items()}
        accounts[identity.email] = replace(identity, is_active=True, created_at=created_at)
        self.accounts = accounts
        self.keys[key_pair.email] = key_pair

    def activate(self, email: str):
        if email not in self.accounts:
            raise NotFound(f"no identity for {email}")
        self.accounts = {e: replace(i, is_active=(e == email)) for e, i in self.accounts.items()}

    def remove(self, email: str) -> bool:
        if email not in self.accounts:
            raise NotFound(f"no identity for {email}")
        was_active = self.accounts.pop(email).is_active
        self.keys.pop(email, None)
        return was_active

    def remove_all(self):
        self.accounts = {}
        self.keys = {}

    def get(self, email: str) -> KeyPair:
        if email not in self.keys:
            raise NotFound(f"no SSH key stored for {email}")
        return self.keys[email]

    def get_identity(self, email: str) -> Identity:
        if email not in self.accounts:
            raise NotFound(f"no identity for {email}")
        return replace(self.accounts[email])

    def list(self) -> List[Identity]:
        return [replace(i) for i in self.accounts.values()]

    def current_active_flag(self, email: str) -> bool:
        rec = self.accounts.get(email)
        return bool(rec and rec.is_active)
