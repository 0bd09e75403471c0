"""
gitledger_core.config
---------------------
Runtime settings resolved from GITLEDGER_* environment variables.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Optional
import os
from .utils import expand


@dataclass
class Settings:
    db_path: str = "~/.git_ledger.db"
    ssh_dir: str = "~/.ssh"
    key_name: str = "id_ed25519"
    keygen: str = "ssh-keygen"      # "ssh-keygen" | "native"
    git: str = "git"
    storage_provider: str = "sqlite"  # "sqlite" | "memory"
    tool_timeout: float = 30.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        defaults = cls()
        timeout = env.get("GITLEDGER_TOOL_TIMEOUT")
        try:
            tool_timeout = float(timeout) if timeout else defaults.tool_timeout
        except ValueError as e:
            raise ValueError(f"GITLEDGER_TOOL_TIMEOUT must be a number, got {timeout!r}") from e
        return cls(
            db_path=expand(env.get("GITLEDGER_DB_PATH", defaults.db_path)),
            ssh_dir=expand(env.get("GITLEDGER_SSH_DIR", defaults.ssh_dir)),
            key_name=env.get("GITLEDGER_KEY_NAME", defaults.key_name),
            keygen=env.get("GITLEDGER_KEYGEN", defaults.keygen),
            git=env.get("GITLEDGER_GIT", defaults.git),
            storage_provider=env.get("GITLEDGER_STORAGE_PROVIDER", defaults.storage_provider),
            tool_timeout=tool_timeout,
        )

    def storage_config(self) -> Dict[str, Any]:
        return {"provider": self.storage_provider, "sqlite_path": self.db_path}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
