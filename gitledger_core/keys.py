"""
gitledger_core.keys
-------------------
KeyMaterialStore: owns the single installed SSH key slot
(<ssh_dir>/id_ed25519 and id_ed25519.pub) and the generators that fill it.

Generators write straight into the canonical slot, so generating a key
always replaces whatever was installed before.
"""

from __future__ import annotations
from typing import Optional
import os, subprocess, tempfile
from .crypto import ed25519_openssh_generate
from .errors import KeyGenFailure, StorageFailure
from .logger import get_logger
from .storage.models import KeyPair

log = get_logger("GitLedger.Keys")

DEFAULT_KEY_NAME = "id_ed25519"


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


# --------- Generators ----------
class SshKeygen:
    """Runs the OpenSSH `ssh-keygen` tool: ed25519, no passphrase, email as comment."""
    name = "ssh-keygen"

    def __init__(self, binary: str = "ssh-keygen", timeout: float = 30.0):
        self.binary = binary
        self.timeout = timeout

    def generate(self, comment: str, private_path: str) -> None:
        cmd = [self.binary, "-q", "-t", "ed25519", "-f", private_path, "-N", "", "-C", comment]
        try:
            # ssh-keygen prompts before overwriting; clear the slot first
            _remove_quietly(private_path)
            _remove_quietly(private_path + ".pub")
            proc = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise KeyGenFailure(f"{self.binary} not found; install OpenSSH or set GITLEDGER_KEYGEN=native") from e
        except subprocess.TimeoutExpired as e:
            raise KeyGenFailure(f"{self.binary} timed out after {self.timeout}s") from e
        except OSError as e:
            raise KeyGenFailure(f"{self.binary} failed to execute: {e}") from e

        if proc.returncode != 0:
            err = (proc.stderr or b"").decode("utf-8", errors="ignore").strip()
            raise KeyGenFailure(f"{self.binary} returned code {proc.returncode}: {err}")


class NativeKeygen:
    """Generates the same OpenSSH files in-process via `cryptography`."""
    name = "native"

    def generate(self, comment: str, private_path: str) -> None:
        priv, pub = ed25519_openssh_generate(comment)
        try:
            _write_replace(private_path, priv, 0o600)
            _write_replace(private_path + ".pub", pub, 0o644)
        except OSError as e:
            raise KeyGenFailure(f"cannot write generated key to {private_path}: {e}") from e


def load_keygen(name: Optional[str] = None, timeout: float = 30.0):
    name = name or os.getenv("GITLEDGER_KEYGEN", "ssh-keygen")
    if name == "native":
        return NativeKeygen()
    if name == "ssh-keygen":
        return SshKeygen(timeout=timeout)
    raise ValueError(f"Unknown key generator: {name}")


def _write_replace(path: str, data: bytes, mode: int) -> None:
    """Write `data` beside `path`, fsync, then rename over it."""
    fd, tmp = tempfile.mkstemp(dir=os.path.dirname(path), prefix=".gitledger-")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        _remove_quietly(tmp)
        raise


# --------- Installed slot ----------
class KeyMaterialStore:
    def __init__(self, ssh_dir: str = "~/.ssh", generator=None, key_name: str = DEFAULT_KEY_NAME):
        self.ssh_dir = os.path.expanduser(ssh_dir)
        self.generator = generator or SshKeygen()
        self.key_name = key_name

    @property
    def private_path(self) -> str:
        return os.path.join(self.ssh_dir, self.key_name)

    @property
    def public_path(self) -> str:
        return self.private_path + ".pub"

    def _ensure_dir(self) -> None:
        os.makedirs(self.ssh_dir, mode=0o700, exist_ok=True)

    def generate(self, email: str) -> KeyPair:
        try:
            self._ensure_dir()
        except OSError as e:
            raise KeyGenFailure(f"cannot create {self.ssh_dir}: {e}") from e

        log.info(f"[KEYGEN] {self.generator.name} → {self.private_path} label={email}")
        self.generator.generate(email, self.private_path)

        try:
            with open(self.private_path, "rb") as fh:
                priv = fh.read()
            with open(self.public_path, "rb") as fh:
                pub = fh.read()
        except OSError as e:
            raise KeyGenFailure(f"generated key files unreadable: {e}") from e
        if not priv or not pub:
            raise KeyGenFailure(f"{self.generator.name} produced empty key files")
        return KeyPair(email=email, private_key=priv, public_key=pub)

    def install(self, key_pair: KeyPair) -> None:
        # Each file is replaced atomically; between the two renames the pair is mixed.
        try:
            self._ensure_dir()
            _write_replace(self.private_path, key_pair.private_key, 0o600)
            _write_replace(self.public_path, key_pair.public_key, 0o644)
        except OSError as e:
            log.error(f"[INSTALL] {key_pair.email} failed: {e}")
            raise StorageFailure(f"cannot install key files in {self.ssh_dir}: {e}") from e
        log.info(f"[INSTALL] {key_pair.email} → {self.private_path}")

    def uninstall(self) -> None:
        try:
            _remove_quietly(self.private_path)
            _remove_quietly(self.public_path)
        except OSError as e:
            raise StorageFailure(f"cannot remove key files in {self.ssh_dir}: {e}") from e
        log.info(f"[UNINSTALL] {self.private_path}")

    def installed(self) -> Optional[KeyPair]:
        """Read back the installed pair, or None if either file is missing."""
        try:
            with open(self.private_path, "rb") as fh:
                priv = fh.read()
            with open(self.public_path, "rb") as fh:
                pub = fh.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageFailure(f"cannot read key files in {self.ssh_dir}: {e}") from e
        return KeyPair(email="", private_key=priv, public_key=pub)
