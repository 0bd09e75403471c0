"""
gitledger_core.switcher
-----------------------
IdentitySwitcher: the state machine over the single "active identity" slot.

States are NoActiveIdentity and ActiveIdentity(email). Every transition
coordinates three stores:

- the registry (accounts + ssh_keys tables)
- the installed key slot (~/.ssh/id_ed25519[.pub])
- git's global user.name / user.email

Steps run in a fixed order and stop at the first failure; nothing is rolled
back. Re-running switch_to() for the intended identity reapplies all three
effects and is the recovery path after a partial failure.
"""

from __future__ import annotations
from typing import List, Optional
from .config import Settings
from .errors import ConfigMissing, GitLedgerError, InvalidIdentity, NoIdentityConfigured
from .events import ACCOUNT_REMOVED, ALL_ACCOUNTS_REMOVED, LocalBus
from .gitconfig import GitGlobalConfig
from .keys import KeyMaterialStore, load_keygen
from .logger import get_logger
from .storage import Identity, KeyPair, StorageProvider, load_storage_provider
from .utils import to_text

log = get_logger("GitLedger.Switcher")


class IdentitySwitcher:
    def __init__(self, registry: StorageProvider, keys: KeyMaterialStore, git_config=None, bus: Optional[LocalBus] = None):
        self.registry = registry
        self.keys = keys
        self.git_config = git_config or GitGlobalConfig()
        self.bus = bus or LocalBus()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, bus: Optional[LocalBus] = None) -> "IdentitySwitcher":
        settings = settings or Settings.from_env()
        registry = load_storage_provider(settings.storage_config())
        keys = KeyMaterialStore(
            ssh_dir=settings.ssh_dir,
            generator=load_keygen(settings.keygen, timeout=settings.tool_timeout),
            key_name=settings.key_name,
        )
        git_config = GitGlobalConfig(git=settings.git, timeout=settings.tool_timeout)
        return cls(registry, keys, git_config, bus)

    def _apply(self, identity: Identity, key_pair: KeyPair) -> None:
        """Mirror `identity` into the installed key slot and git's global config."""
        self.keys.install(key_pair)
        self.git_config.write(identity.name, identity.email)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def create(self, name: str, email: str) -> str:
        """Generate a key for a new identity and make it the active one.

        Returns the new public key as text. If a step after key generation
        fails the identity may already be registered; retry or remove it.
        """
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not email:
            raise InvalidIdentity("name and email are both required")

        identity = Identity(email=email, name=name, is_active=True)
        try:
            key_pair = self.keys.generate(email)
            self.registry.upsert_active(identity, key_pair)
            self._apply(identity, key_pair)
        except GitLedgerError as e:
            log.error(f"[CREATE] {email} failed: {e}")
            raise
        log.info(f"[CREATE] {name} <{email}> active")
        return to_text(key_pair.public_key, "public key")

    def switch_to(self, email: str) -> Identity:
        try:
            # activation fails fast on unknown emails before anything external is touched
            self.registry.activate(email)
            identity = self.registry.get_identity(email)
            self._apply(identity, self.registry.get(email))
        except GitLedgerError as e:
            log.error(f"[SWITCH] {email} failed: {e}")
            raise
        log.info(f"[SWITCH] → {identity.name} <{email}>")
        return identity

    def regenerate_key(self, email: str) -> str:
        """Replace the key pair of an existing identity; the identity becomes active.

        Generation overwrites the installed slot, so the identity is also
        activated and mirrored to keep the slot consistent with the registry.
        """
        try:
            identity = self.registry.get_identity(email)
            key_pair = self.keys.generate(email)
            self.registry.upsert_active(identity, key_pair)
            self._apply(identity, key_pair)
        except GitLedgerError as e:
            log.error(f"[REGENERATE] {email} failed: {e}")
            raise
        log.info(f"[REGENERATE] {email} has a new key and is active")
        return to_text(key_pair.public_key, "public key")

    def remove(self, email: str) -> bool:
        """Delete one identity. Returns True if it was the active one."""
        try:
            was_active = self.registry.remove(email)
            if was_active:
                self.git_config.clear()
                self.keys.uninstall()
        except GitLedgerError as e:
            log.error(f"[REMOVE] {email} failed: {e}")
            raise
        log.info(f"[REMOVE] {email} was_active={was_active}")
        self.bus.publish(ACCOUNT_REMOVED, email)
        return was_active

    def remove_all(self) -> None:
        try:
            self.registry.remove_all()
            self.keys.uninstall()
            self.git_config.clear()
        except GitLedgerError as e:
            log.error(f"[REMOVE ALL] failed: {e}")
            raise
        log.info("[REMOVE ALL] registry, key slot and git identity cleared")
        self.bus.publish(ALL_ACCOUNTS_REMOVED, None)

    def clear_current(self) -> None:
        """Unset git's global identity only; the registry and key slot are kept."""
        self.git_config.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list(self) -> List[Identity]:
        return self.registry.list()

    def query_current(self) -> Identity:
        """Live read of git's global identity, tagged with the registry's active flag."""
        try:
            name, email = self.git_config.read()
        except ConfigMissing as e:
            raise NoIdentityConfigured(f"no current git identity: {e.message}") from e
        return Identity(email=email, name=name, is_active=self.registry.current_active_flag(email))

    def get_public_key(self, email: str) -> str:
        return to_text(self.registry.get(email).public_key, "public key")

    def verify(self) -> List[str]:
        """List every way the three stores currently disagree. Empty means consistent."""
        problems = []
        actives = [i for i in self.registry.list() if i.is_active]
        if len(actives) > 1:
            problems.append("multiple active identities: " + ", ".join(i.email for i in actives))

        installed = self.keys.installed()
        try:
            live = self.git_config.read()
        except ConfigMissing:
            live = None

        if not actives:
            if live is not None:
                problems.append(f"git global identity {live[0]} <{live[1]}> is set but no identity is active")
            if installed is not None:
                problems.append(f"key files installed at {self.keys.private_path} but no identity is active")
            return problems

        active = actives[0]
        stored = self.registry.get(active.email)
        if installed is None:
            problems.append(f"key files for {active.email} are not installed")
        elif (installed.private_key, installed.public_key) != (stored.private_key, stored.public_key):
            problems.append(f"installed key files do not match {active.email}")
        if live is None:
            problems.append("git global user.name/user.email are not set")
        elif live != (active.name, active.email):
            problems.append(f"git global identity is {live[0]} <{live[1]}>, expected {active.name} <{active.email}>")
        return problems
