"""
SQLite database shared by the status store and the audit log.

One connection, WAL journal, access serialized through an asyncio.Lock and
executed in a worker thread so the event loop never blocks on disk.
"""

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Callable, TypeVar

T = TypeVar("T")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS file_statuses (
    name TEXT PRIMARY KEY,
    id TEXT NOT NULL,
    status TEXT NOT NULL,
    source TEXT NOT NULL,
    lastUpdated TEXT NOT NULL,
    remarks TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_file_statuses_status ON file_statuses(status);
CREATE INDEX IF NOT EXISTS idx_file_statuses_last_updated ON file_statuses(lastUpdated);

CREATE TABLE IF NOT EXISTS logs (
    id TEXT PRIMARY KEY,
    timestamp TEXT NOT NULL,
    level TEXT NOT NULL,
    actor TEXT NOT NULL,
    action TEXT NOT NULL,
    details TEXT
);
CREATE INDEX IF NOT EXISTS idx_logs_timestamp ON logs(timestamp);
CREATE INDEX IF NOT EXISTS idx_logs_actor ON logs(actor);
"""


class Database:
    def __init__(self, db_path: Path | str, busy_timeout_ms: int = 5000) -> None:
        self._db_path = Path(db_path).expanduser()
        self._busy_timeout_ms = busy_timeout_ms
        self._conn: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._db_path

    def connect(self) -> None:
        if self._conn is not None:
            return

        logging.info(f"Opening SQLite database: {self._db_path}")
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute(f"PRAGMA busy_timeout={int(self._busy_timeout_ms)}")
        conn.executescript(_SCHEMA)
        self._conn = conn

    async def run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """
        Run ``fn(connection)`` in a worker thread while holding the lock.

        Writes inside ``fn`` should use ``with conn:`` so they commit (or roll
        back) as one transaction.
        """
        if self._conn is None:
            self.connect()
        conn = self._conn
        async with self._lock:
            return await asyncio.to_thread(fn, conn)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logging.debug(f"Closed SQLite database: {self._db_path}")
