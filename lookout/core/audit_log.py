"""
Audit log - append-only record of every state-changing action.
"""

import csv
import io
import logging
import sqlite3
from typing import List, Protocol, Sequence

from lookout.core.database import Database
from lookout.models import AuditEntry

AUDIT_CSV_FIELDS = ["id", "timestamp", "level", "actor", "action", "details"]


class AuditSink(Protocol):
    async def record(self, entry: AuditEntry) -> None:
        ...


class SqliteAuditLog:
    """Audit sink persisted in the ``logs`` table of the lookout database."""

    def __init__(self, database: Database):
        self._db = database

    async def record(self, entry: AuditEntry) -> None:
        row = (
            entry.id,
            entry.timestamp.isoformat(),
            entry.level.value,
            entry.actor,
            entry.action,
            entry.details,
        )

        def _insert(conn: sqlite3.Connection):
            with conn:
                conn.execute(
                    "INSERT INTO logs (id, timestamp, level, actor, action, details) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    row,
                )

        await self._db.run(_insert)

    async def list_entries(self) -> List[AuditEntry]:
        """All audit entries, newest first."""
        def _list(conn: sqlite3.Connection):
            return conn.execute("SELECT * FROM logs ORDER BY timestamp DESC").fetchall()

        rows = await self._db.run(_list)
        return [
            AuditEntry(
                id=row["id"],
                timestamp=row["timestamp"],
                level=row["level"],
                actor=row["actor"],
                action=row["action"],
                details=row["details"] or "",
            )
            for row in rows
        ]


def export_audit_csv(entries: Sequence[AuditEntry]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=AUDIT_CSV_FIELDS, lineterminator="\n")
    writer.writeheader()
    for entry in entries:
        writer.writerow(entry.model_dump(mode="json"))
    logging.debug(f"Serialized {len(entries)} audit entries to CSV")
    return buffer.getvalue()
