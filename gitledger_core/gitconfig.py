# gitledger_core/gitconfig.py
from __future__ import annotations
from typing import Dict, Optional, Tuple
import os, subprocess
from gitledger_core.errors import ConfigMissing, ExternalToolFailure
from gitledger_core.logger import get_logger

log = get_logger("GitLedger.GitConfig")

NAME_KEY = "user.name"
EMAIL_KEY = "user.email"

# `git config --unset` exit status when the key is not set
UNSET_MISSING = 5


class GitGlobalConfig:
    """
    Adapter over git's global (per-user) configuration.

    Only user.name and user.email are touched. Writes are two sequential git
    calls; if the second fails the first is not undone.
    """

    def __init__(self, git: str = "git", timeout: float = 30.0, env: Optional[Dict[str, str]] = None):
        self.git = git
        self.timeout = timeout
        self.env = env

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [self.git, "config", "--global", *args]
        env = {**os.environ, **self.env} if self.env else None
        try:
            return subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
                check=False,
            )
        except FileNotFoundError as e:
            raise ExternalToolFailure(f"{self.git} not found on PATH") from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolFailure(f"{' '.join(cmd)} timed out after {self.timeout}s") from e
        except OSError as e:
            raise ExternalToolFailure(f"{' '.join(cmd)} failed to execute: {e}") from e

    def _get(self, key: str) -> str:
        proc = self._run(key)
        value = proc.stdout.strip() if proc.returncode == 0 else ""
        if not value:
            raise ConfigMissing(f"git global {key} is not set")
        return value

    def read(self) -> Tuple[str, str]:
        return self._get(NAME_KEY), self._get(EMAIL_KEY)

    def _set(self, key: str, value: str) -> None:
        proc = self._run(key, value)
        if proc.returncode != 0:
            raise ExternalToolFailure(f"git config --global {key} failed ({proc.returncode}): {proc.stderr.strip()}")

    def write(self, name: str, email: str) -> None:
        self._set(NAME_KEY, name)
        self._set(EMAIL_KEY, email)
        log.info(f"[GIT] global identity → {name} <{email}>")

    def _unset(self, key: str) -> None:
        proc = self._run("--unset", key)
        if proc.returncode not in (0, UNSET_MISSING):
            raise ExternalToolFailure(f"git config --global --unset {key} failed ({proc.returncode}): {proc.stderr.strip()}")

    def clear(self) -> None:
        self._unset(NAME_KEY)
        self._unset(EMAIL_KEY)
        log.info("[GIT] global identity cleared")
