from __future__ import annotations
from typing import Dict


class GitLedgerError(Exception):
    """Base error for every failure surfaced by gitledger_core."""
    kind: str = "GitLedgerError"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.kind, "message": self.message}


class KeyGenFailure(GitLedgerError):
    kind = "KeyGenFailure"


class NotFound(GitLedgerError, LookupError):
    kind = "NotFound"


class ConfigMissing(GitLedgerError):
    kind = "ConfigMissing"


class NoIdentityConfigured(ConfigMissing):
    kind = "NoIdentityConfigured"


class EncodingError(GitLedgerError):
    kind = "EncodingError"


class StorageFailure(GitLedgerError):
    kind = "StorageFailure"


class ExternalToolFailure(GitLedgerError):
    kind = "ExternalToolFailure"


class InvalidIdentity(GitLedgerError, ValueError):
    kind = "InvalidIdentity"
