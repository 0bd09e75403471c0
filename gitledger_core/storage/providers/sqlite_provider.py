from __future__ import annotations
from contextlib import contextmanager
from typing import Optional, List
import sqlite3, os
from gitledger_core.errors import NotFound, StorageFailure
from gitledger_core.logger import get_logger
from gitledger_core.storage.provider import StorageProvider
from gitledger_core.storage.models import Identity, KeyPair
from gitledger_core.utils import now_ts

log = get_logger("GitLedger.Storage.SQLite")


class SQLiteStorage(StorageProvider):
    name = "sqlite"

    def __init__(self, path="~/.git_ledger.db"):
        path = os.path.expanduser(path)
        # If no directory, default to current working directory
        dir_path = os.path.dirname(path) or "."
        os.makedirs(dir_path, exist_ok=True)
        self.path = path
        try:
            self.db = sqlite3.connect(path, check_same_thread=False)
            # ssh_keys rows cascade off accounts only with this pragma on
            self.db.execute("PRAGMA foreign_keys = ON")
            self._init()
        except sqlite3.Error as e:
            raise StorageFailure(f"cannot open identity database {path}: {e}") from e

    def _init(self) -> None:
        c = self.db.cursor()
        c.execute("""CREATE TABLE IF NOT EXISTS accounts(
            email TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            is_active INTEGER NOT NULL DEFAULT 0,
            created_at TEXT
        )""")
        c.execute("""CREATE TABLE IF NOT EXISTS ssh_keys(
            email TEXT PRIMARY KEY,
            private_key BLOB NOT NULL,
            public_key BLOB NOT NULL,
            FOREIGN KEY(email) REFERENCES accounts(email) ON DELETE CASCADE
        )""")
        self.db.commit()

    @contextmanager
    def _tx(self, what: str):
        """One durable transaction; commits on success, rolls back on any error."""
        try:
            with self.db:
                yield self.db
        except sqlite3.Error as e:
            log.error(f"[SQLITE] {what} failed: {e}")
            raise StorageFailure(f"{what} failed: {e}") from e

    def _fetch(self, sql: str, params: tuple = ()) -> list:
        try:
            return self.db.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageFailure(f"query failed: {e}") from e

    # --- compound transitions ---

    def upsert_active(self, identity: Identity, key_pair: KeyPair) -> None:
        with self._tx(f"upsert_active({identity.email})") as db:
            db.execute("UPDATE accounts SET is_active = 0")
            db.execute(
                "INSERT INTO accounts(email,name,is_active,created_at) VALUES(?,?,1,?) "
                "ON CONFLICT(email) DO UPDATE SET name=excluded.name, is_active=1",
                (identity.email, identity.name, identity.created_at or now_ts()),
            )
            db.execute(
                "INSERT INTO ssh_keys(email,private_key,public_key) VALUES(?,?,?) "
                "ON CONFLICT(email) DO UPDATE SET private_key=excluded.private_key, "
                "public_key=excluded.public_key",
                (key_pair.email, key_pair.private_key, key_pair.public_key),
            )

    def activate(self, email: str) -> None:
        with self._tx(f"activate({email})") as db:
            row = db.execute("SELECT 1 FROM accounts WHERE email=?", (email,)).fetchone()
            if row is None:
                raise NotFound(f"no identity for {email}")
            db.execute("UPDATE accounts SET is_active = 0")
            db.execute("UPDATE accounts SET is_active = 1 WHERE email=?", (email,))

    def remove(self, email: str) -> bool:
        with self._tx(f"remove({email})") as db:
            row = db.execute("SELECT is_active FROM accounts WHERE email=?", (email,)).fetchone()
            if row is None:
                raise NotFound(f"no identity for {email}")
            db.execute("DELETE FROM accounts WHERE email=?", (email,))
        return bool(row[0])

    def remove_all(self) -> None:
        with self._tx("remove_all") as db:
            db.execute("DELETE FROM ssh_keys")
            db.execute("DELETE FROM accounts")

    # --- lookups ---

    def get(self, email: str) -> KeyPair:
        rows = self._fetch("SELECT email,private_key,public_key FROM ssh_keys WHERE email=?", (email,))
        if not rows:
            raise NotFound(f"no SSH key stored for {email}")
        e, priv, pub = rows[0]
        return KeyPair(email=e, private_key=bytes(priv), public_key=bytes(pub))

    def get_identity(self, email: str) -> Identity:
        rows = self._fetch("SELECT email,name,is_active,created_at FROM accounts WHERE email=?", (email,))
        if not rows:
            raise NotFound(f"no identity for {email}")
        return self._row_to_identity(rows[0])

    def active(self) -> Optional[Identity]:
        rows = self._fetch("SELECT email,name,is_active,created_at FROM accounts WHERE is_active=1")
        return self._row_to_identity(rows[0]) if rows else None

    def list(self) -> List[Identity]:
        rows = self._fetch("SELECT email,name,is_active,created_at FROM accounts ORDER BY rowid")
        return [self._row_to_identity(r) for r in rows]

    def current_active_flag(self, email: str) -> bool:
        try:
            rows = self._fetch("SELECT is_active FROM accounts WHERE email=?", (email,))
        except StorageFailure:
            log.warning(f"[SQLITE] active flag lookup failed for {email}")
            return False
        return bool(rows and rows[0][0])

    @staticmethod
    def _row_to_identity(row) -> Identity:
        email, name, is_active, created_at = row
        return Identity(email=email, name=name, is_active=bool(is_active), created_at=created_at)

    def close(self):
        self.db.close()
