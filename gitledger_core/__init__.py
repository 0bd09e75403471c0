"""
gitledger Core Package
======================
Keeps several developer identities (name, email, SSH key) and switches the
active one system-wide.

Provides:
- IdentitySwitcher state machine over the single active-identity slot
- SQLite / in-memory identity registry
- Installed SSH key slot management (ssh-keygen or in-process Ed25519)
- git global user.name / user.email adapter
"""

from .errors import (
    GitLedgerError, KeyGenFailure, NotFound, ConfigMissing, NoIdentityConfigured,
    EncodingError, StorageFailure, ExternalToolFailure, InvalidIdentity,
)
from .storage import Identity, KeyPair
from .switcher import IdentitySwitcher

__all__ = [
    "IdentitySwitcher",
    "Identity",
    "KeyPair",
    "GitLedgerError",
    "KeyGenFailure",
    "NotFound",
    "ConfigMissing",
    "NoIdentityConfigured",
    "EncodingError",
    "StorageFailure",
    "ExternalToolFailure",
    "InvalidIdentity",
]
