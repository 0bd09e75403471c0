import os
import pytest
from gitledger_core.config import Settings
from gitledger_core.keys import NativeKeygen
from gitledger_core.storage import InMemoryStorage
from gitledger_core.switcher import IdentitySwitcher


def test_settings_defaults():
    s = Settings.from_env({})
    assert s.db_path == os.path.expanduser("~/.git_ledger.db")
    assert s.ssh_dir == os.path.expanduser("~/.ssh")
    assert s.keygen == "ssh-keygen"
    assert s.tool_timeout == 30.0


def test_settings_from_env(tmp_path):
    s = Settings.from_env({
        "GITLEDGER_DB_PATH": str(tmp_path / "x.db"),
        "GITLEDGER_SSH_DIR": str(tmp_path / "ssh"),
        "GITLEDGER_KEYGEN": "native",
        "GITLEDGER_STORAGE_PROVIDER": "memory",
        "GITLEDGER_TOOL_TIMEOUT": "5",
    })
    assert s.storage_config() == {"provider": "memory", "sqlite_path": str(tmp_path / "x.db")}
    assert s.tool_timeout == 5.0

    with pytest.raises(ValueError):
        Settings.from_env({"GITLEDGER_TOOL_TIMEOUT": "soon"})


def test_switcher_from_settings(tmp_path):
    s = Settings(ssh_dir=str(tmp_path / "ssh"), keygen="native", storage_provider="memory")
    sw = IdentitySwitcher.from_settings(s)
    assert isinstance(sw.registry, InMemoryStorage)
    assert isinstance(sw.keys.generator, NativeKeygen)
    assert sw.keys.private_path == str(tmp_path / "ssh" / "id_ed25519")
