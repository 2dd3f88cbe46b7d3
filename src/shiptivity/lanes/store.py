"""SQLite-backed client store with a single long-lived connection.

One :class:`ClientStore` is opened per process and shared by every request.
All writes go through :meth:`ClientStore.transaction`, which holds the
store lock and an ``IMMEDIATE`` SQLite transaction for the whole
read-decide-write sequence, so no reader ever sees a half-shifted lane.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

from ..constants import DEFAULT_BUSY_TIMEOUT_SECONDS
from .model import Client, Lane

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_SCHEMA = """
CREATE TABLE IF NOT EXISTS clients (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL,
    priority INTEGER NOT NULL
);
"""

_COLUMNS = "id, name, description, status, priority"


# ---------------------------------------------------------------------------
# ClientStore
# ---------------------------------------------------------------------------

class ClientStore:
    """Thread-safe store for :class:`Client` rows.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file (``":memory:"`` is accepted).
    busy_timeout:
        Seconds to wait for another process holding the write lock.
    """

    def __init__(self, db_path: Path | str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT_SECONDS) -> None:
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        # isolation_level=None: transactions are opened explicitly below.
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(
            self.db_path,
            timeout=busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        logger.info("Opened client store at {}", self.db_path)

    def __enter__(self) -> "ClientStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Client store is closed")
        return self._conn

    @property
    def closed(self) -> bool:
        return self._conn is None

    def close(self) -> None:
        """Release the connection; safe to call more than once."""
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.info("Closed client store at {}", self.db_path)

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.executescript(_SCHEMA)

    # -- public API ---------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[_ClientTx]:
        """Acquire the lock, begin an immediate transaction and yield it.

        Commits when the block exits normally; any exception, including a
        failed commit, rolls every statement of the block back and is
        re-raised.

        Usage::

            with store.transaction() as tx:
                client = tx.get(3)
                tx.shift_down_from(client.status, client.priority)
                tx.place(3, Lane.COMPLETE, 1)
        """
        with self._lock:
            conn = self.conn
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield _ClientTx(conn)
                conn.execute("COMMIT")
            except BaseException:
                # A failed COMMIT leaves the transaction open.
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

    def read_snapshot(self, status: Optional[Lane] = None) -> list[Client]:
        """Return every client, or one lane's (no transaction held after return)."""
        with self._lock:
            return _ClientTx(self.conn).find(status=status)

    def get_one(self, client_id: int) -> Optional[Client]:
        with self._lock:
            return _ClientTx(self.conn).get(client_id)


class _ClientTx:
    """Row operations bound to the store's open transaction.

    Shift ranges are caller-guaranteed non-negative; nothing here validates
    lanes or priorities.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    # -- lookups ------------------------------------------------------------

    def get(self, client_id: int) -> Optional[Client]:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM clients WHERE id = ? LIMIT 1", (client_id,)
        ).fetchone()
        return Client.from_row(row) if row is not None else None

    def list_all(self) -> list[Client]:
        rows = self._conn.execute(f"SELECT {_COLUMNS} FROM clients ORDER BY id").fetchall()
        return [Client.from_row(r) for r in rows]

    def find(self, *, status: Optional[Lane] = None) -> list[Client]:
        if status is None:
            return self.list_all()
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM clients WHERE status = ? ORDER BY priority, id",
            (status.value,),
        ).fetchall()
        return [Client.from_row(r) for r in rows]

    def max_priority(self, lane: Lane) -> Optional[int]:
        row = self._conn.execute(
            "SELECT MAX(priority) AS max FROM clients WHERE status = ?", (lane.value,)
        ).fetchone()
        return int(row["max"]) if row["max"] is not None else None

    # -- rank shifts --------------------------------------------------------

    def shift_down(self, lane: Lane, low_exclusive: int, high_inclusive: int) -> int:
        """Decrement priority for ``low_exclusive < priority <= high_inclusive``."""
        return self._execute(
            "UPDATE clients SET priority = priority - 1 WHERE status = ? AND priority > ? AND priority <= ?",
            (lane.value, low_exclusive, high_inclusive),
        )

    def shift_up(self, lane: Lane, low_inclusive: int, high_exclusive: int) -> int:
        """Increment priority for ``low_inclusive <= priority < high_exclusive``."""
        return self._execute(
            "UPDATE clients SET priority = priority + 1 WHERE status = ? AND priority >= ? AND priority < ?",
            (lane.value, low_inclusive, high_exclusive),
        )

    def shift_down_from(self, lane: Lane, low_exclusive: int) -> int:
        """Decrement priority for every client ranked below ``low_exclusive``."""
        return self._execute(
            "UPDATE clients SET priority = priority - 1 WHERE status = ? AND priority > ?",
            (lane.value, low_exclusive),
        )

    def shift_up_from(self, lane: Lane, low_inclusive: int) -> int:
        """Increment priority for every client at or below ``low_inclusive``."""
        return self._execute(
            "UPDATE clients SET priority = priority + 1 WHERE status = ? AND priority >= ?",
            (lane.value, low_inclusive),
        )

    # -- point updates ------------------------------------------------------

    def place(self, client_id: int, lane: Lane, priority: int) -> None:
        self._execute(
            "UPDATE clients SET status = ?, priority = ? WHERE id = ?",
            (lane.value, priority, client_id),
        )

    def set_priority(self, client_id: int, priority: int) -> None:
        self._execute("UPDATE clients SET priority = ? WHERE id = ?", (priority, client_id))

    def add(self, client: Client) -> Client:
        if client.id is not None and self.get(client.id) is not None:
            raise ValueError(f"Client {client.id} already exists")
        cur = self._conn.execute(
            "INSERT INTO clients (id, name, description, status, priority) VALUES (?, ?, ?, ?, ?)",
            (client.id, client.name, client.description, client.status.value, client.priority),
        )
        client.id = int(cur.lastrowid)
        return client

    def _execute(self, sql: str, params: tuple) -> int:
        return self._conn.execute(sql, params).rowcount
