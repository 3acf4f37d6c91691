"""SQLite-backed state store with compare-and-swap commits and an advisory lock row."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
from .base import StateStore
from .models import StateRecord, StateSnapshot, LockInfo
from ..utils.errors import ConflictError, PlanGateError
from ..utils.logging import get_logger

logger = get_logger("state.sqlite")


class SqliteStateStore(StateStore):
    """
    Durable state store for one namespace inside a shared SQLite file.

    Several namespaces (and several processes) may share the same database.
    Each mutation runs in a ``BEGIN IMMEDIATE`` transaction so the version
    check, the record write and the namespace serial bump are one atomic step.
    """

    def __init__(
        self,
        path: str,
        namespace: str = "default",
        lock_ttl: float = 3600.0,
        lock_poll_interval: float = 0.2,
        wal: bool = True
    ):
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        self.path = str(path)
        self.namespace = namespace
        self.lock_ttl = lock_ttl
        self.lock_poll_interval = lock_poll_interval
        self._conn = sqlite3.connect(self.path, check_same_thread=False, isolation_level=None, timeout=30)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._closed = False
        if wal:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS records (
                namespace TEXT NOT NULL,
                address TEXT NOT NULL,
                type TEXT NOT NULL,
                attributes TEXT NOT NULL,
                external_id TEXT NOT NULL,
                dependencies TEXT NOT NULL,
                version INTEGER NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (namespace, address)
            );

            CREATE TABLE IF NOT EXISTS namespaces (
                namespace TEXT PRIMARY KEY,
                serial INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS locks (
                namespace TEXT PRIMARY KEY,
                owner TEXT NOT NULL,
                acquired_at TEXT NOT NULL,
                expires_at TEXT NOT NULL
            );
            """
        )

    @contextmanager
    def _transaction(self, immediate: bool = True) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if self._closed:
                raise PlanGateError(f"State store {self.path} is closed")
            self._conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            try:
                yield self._conn
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            else:
                self._conn.execute("COMMIT")

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._conn.close()
            self._closed = True

    def load(self, address: str) -> Optional[StateRecord]:
        with self._transaction(immediate=False) as conn:
            row = conn.execute(
                "SELECT * FROM records WHERE namespace = ? AND address = ?",
                (self.namespace, address),
            ).fetchone()
        return _row_to_record(row) if row else None

    def commit_create_or_update(
        self,
        address: str,
        resource_type: str,
        attributes: Dict[str, Any],
        external_id: str,
        dependencies: List[str],
        expected_version: int
    ) -> int:
        now = _utc_now().isoformat()
        with self._transaction() as conn:
            current = self._current_version(conn, address)
            if current != expected_version:
                raise ConflictError(address, expected_version, current)
            new_version = current + 1
            conn.execute(
                """
                INSERT INTO records (
                    namespace, address, type, attributes, external_id, dependencies, version, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(namespace, address) DO UPDATE SET
                    type = excluded.type,
                    attributes = excluded.attributes,
                    external_id = excluded.external_id,
                    dependencies = excluded.dependencies,
                    version = excluded.version,
                    updated_at = excluded.updated_at
                """,
                (
                    self.namespace,
                    address,
                    resource_type,
                    json.dumps(attributes, sort_keys=True),
                    external_id,
                    json.dumps(sorted(dependencies)),
                    new_version,
                    now,
                ),
            )
            self._bump_serial(conn)
        logger.debug(f"Committed {address} at version {new_version}")
        return new_version

    def commit_delete(self, address: str, expected_version: int) -> None:
        with self._transaction() as conn:
            current = self._current_version(conn, address)
            if current != expected_version:
                raise ConflictError(address, expected_version, current)
            conn.execute(
                "DELETE FROM records WHERE namespace = ? AND address = ?",
                (self.namespace, address),
            )
            self._bump_serial(conn)
        logger.debug(f"Removed {address} from state")

    def snapshot(self) -> StateSnapshot:
        with self._transaction(immediate=False) as conn:
            rows = conn.execute(
                "SELECT * FROM records WHERE namespace = ? ORDER BY address",
                (self.namespace,),
            ).fetchall()
            serial = self._read_serial(conn)
        records = {row["address"]: _row_to_record(row) for row in rows}
        return StateSnapshot(namespace=self.namespace, serial=serial, records=records)

    def serial(self) -> int:
        with self._transaction(immediate=False) as conn:
            return self._read_serial(conn)

    def try_acquire_lock(self, owner: str) -> Optional[LockInfo]:
        now = _utc_now()
        with self._transaction() as conn:
            holder = self._live_lock(conn, now)
            if holder is not None and holder.owner != owner:
                return holder
            conn.execute(
                "INSERT OR REPLACE INTO locks (namespace, owner, acquired_at, expires_at) VALUES (?, ?, ?, ?)",
                (
                    self.namespace,
                    owner,
                    now.isoformat(),
                    (now + timedelta(seconds=self.lock_ttl)).isoformat(),
                ),
            )
        return None

    def release_lock(self, owner: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM locks WHERE namespace = ? AND owner = ?",
                (self.namespace, owner),
            )
            return cursor.rowcount > 0

    def renew_lock(self, owner: str) -> bool:
        now = _utc_now()
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE locks SET expires_at = ? WHERE namespace = ? AND owner = ? AND expires_at > ?",
                (
                    (now + timedelta(seconds=self.lock_ttl)).isoformat(),
                    self.namespace,
                    owner,
                    now.isoformat(),
                ),
            )
            return cursor.rowcount > 0

    def lock_info(self) -> Optional[LockInfo]:
        with self._transaction(immediate=False) as conn:
            return self._live_lock(conn, _utc_now())

    def force_unlock(self) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM locks WHERE namespace = ?", (self.namespace,))
            removed = cursor.rowcount > 0
        if removed:
            logger.warning(f"Force-unlocked state namespace '{self.namespace}'")
        return removed

    def _current_version(self, conn: sqlite3.Connection, address: str) -> int:
        row = conn.execute(
            "SELECT version FROM records WHERE namespace = ? AND address = ?",
            (self.namespace, address),
        ).fetchone()
        return int(row["version"]) if row else 0

    def _read_serial(self, conn: sqlite3.Connection) -> int:
        row = conn.execute(
            "SELECT serial FROM namespaces WHERE namespace = ?",
            (self.namespace,),
        ).fetchone()
        return int(row["serial"]) if row else 0

    def _bump_serial(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            INSERT INTO namespaces (namespace, serial) VALUES (?, 1)
            ON CONFLICT(namespace) DO UPDATE SET serial = serial + 1
            """,
            (self.namespace,),
        )

    def _live_lock(self, conn: sqlite3.Connection, now: datetime) -> Optional[LockInfo]:
        row = conn.execute(
            "SELECT * FROM locks WHERE namespace = ?",
            (self.namespace,),
        ).fetchone()
        if row is None:
            return None
        info = LockInfo(
            namespace=row["namespace"],
            owner=row["owner"],
            acquired_at=datetime.fromisoformat(row["acquired_at"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
        )
        if info.expires_at <= now:
            logger.warning(f"Ignoring expired state lock held by {info.owner}")
            return None
        return info


def _row_to_record(row: sqlite3.Row) -> StateRecord:
    return StateRecord(
        address=row["address"],
        type=row["type"],
        attributes=json.loads(row["attributes"]),
        external_id=row["external_id"],
        dependencies=json.loads(row["dependencies"]),
        version=int(row["version"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
