import pytest
from gitledger_core.errors import ConfigMissing, ExternalToolFailure
from gitledger_core.events import LocalBus
from gitledger_core.keys import KeyMaterialStore, NativeKeygen
from gitledger_core.storage import SQLiteStorage
from gitledger_core.switcher import IdentitySwitcher


class FakeGlobalConfig:
    """Stands in for git's global config: a dict plus an optional failure switch."""

    def __init__(self):
        self.values = {}
        self.fail_writes = False

    def read(self):
        name, email = self.values.get("user.name"), self.values.get("user.email")
        if not name or not email:
            raise ConfigMissing("git global identity is not set")
        return name, email

    def write(self, name, email):
        if self.fail_writes:
            raise ExternalToolFailure("git config --global user.name failed (1): locked")
        self.values["user.name"] = name
        self.values["user.email"] = email

    def clear(self):
        self.values.pop("user.name", None)
        self.values.pop("user.email", None)


@pytest.fixture
def git_config():
    return FakeGlobalConfig()


@pytest.fixture
def registry(tmp_path):
    store = SQLiteStorage(str(tmp_path / "ledger.db"))
    yield store
    store.close()


@pytest.fixture
def keys(tmp_path):
    return KeyMaterialStore(ssh_dir=str(tmp_path / "ssh"), generator=NativeKeygen())


@pytest.fixture
def switcher(registry, keys, git_config):
    return IdentitySwitcher(registry, keys, git_config, LocalBus())
