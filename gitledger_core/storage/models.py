# gitledger_core/storage/models.py
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any


@dataclass
class Identity:
    """
    A developer identity as known to the registry.

    Storage-agnostic: every provider (SQLite, memory) returns these.
    `email` is the unique key; at most one row has is_active=True.
    """
    email: str
    name: str
    is_active: bool = False
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class KeyPair:
    """SSH key material owned by one identity. Replaced whole, never edited."""
    email: str
    private_key: bytes
    public_key: bytes
