# tests/test_storage.py

import pytest
from gitledger_core.errors import NotFound, StorageFailure
from gitledger_core.storage import (
    Identity, KeyPair, InMemoryStorage, SQLiteStorage, load_storage_provider,
)


@pytest.fixture(params=["sqlite", "memory"])
def store(request, tmp_path):
    if request.param == "sqlite":
        s = SQLiteStorage(str(tmp_path / "ledger.db"))
        yield s
        s.close()
    else:
        yield InMemoryStorage()


def _pair(email):
    return KeyPair(email=email, private_key=b"PRIV-" + email.encode(), public_key=b"ssh-ed25519 AAAA " + email.encode())


def _add(store, name, email):
    store.upsert_active(Identity(email=email, name=name), _pair(email))


def _actives(store):
    return [i.email for i in store.list() if i.is_active]


def test_upsert_active_makes_sole_active(store):
    _add(store, "Ann", "ann@x.com")
    _add(store, "Bob", "bob@x.com")
    assert _actives(store) == ["bob@x.com"]
    assert store.active().email == "bob@x.com"
    assert store.get("ann@x.com").private_key == b"PRIV-ann@x.com"


def test_upsert_replaces_key_and_keeps_created_at(store):
    _add(store, "Ann", "ann@x.com")
    created = store.get_identity("ann@x.com").created_at
    store.upsert_active(Identity(email="ann@x.com", name="Ann B"), KeyPair("ann@x.com", b"new", b"newpub"))
    got = store.get_identity("ann@x.com")
    assert got.name == "Ann B"
    assert got.created_at == created
    assert store.get("ann@x.com").public_key == b"newpub"
    assert len(store.list()) == 1


def test_activate_switches_rows(store):
    _add(store, "Ann", "ann@x.com")
    _add(store, "Bob", "bob@x.com")
    store.activate("ann@x.com")
    assert _actives(store) == ["ann@x.com"]


def test_activate_unknown_leaves_state(store):
    _add(store, "Ann", "ann@x.com")
    with pytest.raises(NotFound):
        store.activate("ghost@x.com")
    assert _actives(store) == ["ann@x.com"]


def test_remove_reports_active_flag(store):
    _add(store, "Ann", "ann@x.com")
    _add(store, "Bob", "bob@x.com")
    assert store.remove("ann@x.com") is False
    assert store.remove("bob@x.com") is True
    assert store.list() == []
    with pytest.raises(NotFound):
        store.get("bob@x.com")
    with pytest.raises(NotFound):
        store.remove("bob@x.com")


def test_remove_all_and_flags(store):
    _add(store, "Ann", "ann@x.com")
    assert store.current_active_flag("ann@x.com") is True
    assert store.current_active_flag("nobody@x.com") is False
    store.remove_all()
    assert store.list() == []
    assert store.active() is None
    with pytest.raises(NotFound):
        store.get_identity("ann@x.com")


def test_sqlite_cascade_deletes_keys(tmp_path):
    s = SQLiteStorage(str(tmp_path / "ledger.db"))
    _add(s, "Ann", "ann@x.com")
    s.remove("ann@x.com")
    count = s.db.execute("SELECT COUNT(*) FROM ssh_keys").fetchone()[0]
    assert count == 0


def test_sqlite_repairs_multi_active_state(tmp_path):
    s = SQLiteStorage(str(tmp_path / "ledger.db"))
    _add(s, "Ann", "ann@x.com")
    _add(s, "Bob", "bob@x.com")
    # simulate an external edit that broke the single-active rule
    s.db.execute("UPDATE accounts SET is_active = 1")
    s.db.commit()
    _add(s, "Cid", "cid@x.com")
    assert _actives(s) == ["cid@x.com"]


def test_sqlite_persists_across_connections(tmp_path):
    path = str(tmp_path / "ledger.db")
    s = SQLiteStorage(path)
    _add(s, "Ann", "ann@x.com")
    s.close()
    s2 = SQLiteStorage(path)
    assert s2.get_identity("ann@x.com").is_active is True
    assert s2.get("ann@x.com").public_key == b"ssh-ed25519 AAAA ann@x.com"


def test_sqlite_failed_transaction_rolls_back(tmp_path):
    s = SQLiteStorage(str(tmp_path / "ledger.db"))
    _add(s, "Ann", "ann@x.com")
    s.db.execute("DROP TABLE ssh_keys")
    s.db.commit()
    with pytest.raises(StorageFailure):
        _add(s, "Bob", "bob@x.com")
    # deactivate + insert of accounts must not survive the failed key insert
    assert _actives(s) == ["ann@x.com"]
    assert [i.email for i in s.list()] == ["ann@x.com"]


def test_sqlite_schema_exists(tmp_path):
    s = SQLiteStorage(str(tmp_path / "ledger.db"))
    cols = [row[1] for row in s.db.execute("PRAGMA table_info(accounts)").fetchall()]
    assert {"email", "name", "is_active", "created_at"} <= set(cols)
    cols = [row[1] for row in s.db.execute("PRAGMA table_info(ssh_keys)").fetchall()]
    assert {"email", "private_key", "public_key"} <= set(cols)


def test_storage_factory_modes(monkeypatch, tmp_path):
    monkeypatch.setenv("GITLEDGER_DB_PATH", str(tmp_path / "env.db"))
    monkeypatch.delenv("GITLEDGER_STORAGE_PROVIDER", raising=False)
    assert isinstance(load_storage_provider(), SQLiteStorage)
    assert (tmp_path / "env.db").exists()

    monkeypatch.setenv("GITLEDGER_STORAGE_PROVIDER", "memory")
    assert isinstance(load_storage_provider(), InMemoryStorage)

    with pytest.raises(ValueError):
        load_storage_provider({"provider": "firestore"})
