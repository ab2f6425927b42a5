"""
Status Store - the persisted, keyed record store for FileStatusRecord rows.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from lookout.core.database import Database
from lookout.models import FileStatusRecord

_UPSERT_SQL = """
INSERT INTO file_statuses (name, id, status, source, lastUpdated, remarks)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT(name) DO UPDATE SET
    id = excluded.id,
    status = excluded.status,
    source = excluded.source,
    lastUpdated = excluded.lastUpdated,
    remarks = excluded.remarks
"""


def _to_row(record: FileStatusRecord) -> tuple:
    # Aware timestamps are stored in UTC so text ordering matches time ordering
    last_updated = record.last_updated
    if last_updated.tzinfo is not None:
        last_updated = last_updated.astimezone(timezone.utc)
    return (
        record.name,
        record.id,
        record.status.value,
        record.source,
        last_updated.isoformat(),
        record.remarks or "",
    )


def _from_row(row: sqlite3.Row) -> FileStatusRecord:
    return FileStatusRecord(
        id=row["id"],
        name=row["name"],
        status=row["status"],
        source=row["source"],
        last_updated=row["lastUpdated"],
        remarks=row["remarks"] or "",
    )


class StatusStore:
    """
    Keyed store for file status records, backed by the ``file_statuses`` table.

    ``name`` is the primary key: an upsert of an existing name replaces the
    row. Every call goes through the database lock, so two writers to the
    same name never interleave; the second sees the first's committed row.
    """

    def __init__(self, database: Database):
        self._db = database
        logging.info("StatusStore initialized")

    async def get(self, name: str) -> Optional[FileStatusRecord]:
        """Get a single record by file name."""
        def _get(conn: sqlite3.Connection):
            return conn.execute(
                "SELECT * FROM file_statuses WHERE name = ?", (name,)
            ).fetchone()

        row = await self._db.run(_get)
        return _from_row(row) if row else None

    async def list_all(self) -> List[FileStatusRecord]:
        """All records, most recently updated first."""
        def _list(conn: sqlite3.Connection):
            return conn.execute(
                "SELECT * FROM file_statuses ORDER BY lastUpdated DESC, name ASC"
            ).fetchall()

        rows = await self._db.run(_list)
        return [_from_row(row) for row in rows]

    async def upsert(self, record: FileStatusRecord) -> None:
        """Insert or replace a single record by name."""
        def _upsert(conn: sqlite3.Connection):
            with conn:
                conn.execute(_UPSERT_SQL, _to_row(record))

        await self._db.run(_upsert)

    async def bulk_upsert(
        self,
        records: Sequence[FileStatusRecord],
        delete_names: Iterable[str] = (),
    ) -> None:
        """
        Apply deletes then upserts as one transaction. Either every row is
        written or none is.
        """
        rows = [_to_row(record) for record in records]
        names_to_delete = [(name,) for name in delete_names]

        def _bulk(conn: sqlite3.Connection):
            with conn:
                if names_to_delete:
                    conn.executemany(
                        "DELETE FROM file_statuses WHERE name = ?", names_to_delete
                    )
                if rows:
                    conn.executemany(_UPSERT_SQL, rows)

        await self._db.run(_bulk)
        logging.debug(
            f"Bulk upsert committed: {len(rows)} upserted, {len(names_to_delete)} deleted"
        )

    async def delete(self, name: str) -> bool:
        """Delete a record by name. Returns True if a row was removed."""
        def _delete(conn: sqlite3.Connection):
            with conn:
                return conn.execute(
                    "DELETE FROM file_statuses WHERE name = ?", (name,)
                ).rowcount

        return await self._db.run(_delete) > 0

    async def delete_all(self) -> int:
        def _delete_all(conn: sqlite3.Connection):
            with conn:
                return conn.execute("DELETE FROM file_statuses").rowcount

        return await self._db.run(_delete_all)

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete records whose lastUpdated is at or before ``cutoff``."""
        # lastUpdated is compared in Python: imported rows may carry mixed
        # ISO offsets, so text comparison in SQL is not reliable.
        def _purge(conn: sqlite3.Connection):
            rows = conn.execute("SELECT name, lastUpdated FROM file_statuses").fetchall()
            stale = [
                (row["name"],)
                for row in rows
                if _is_at_or_before(row["lastUpdated"], cutoff)
            ]
            with conn:
                conn.executemany("DELETE FROM file_statuses WHERE name = ?", stale)
            return len(stale)

        return await self._db.run(_purge)

    async def count(self) -> int:
        def _count(conn: sqlite3.Connection):
            return conn.execute("SELECT COUNT(*) FROM file_statuses").fetchone()[0]

        return await self._db.run(_count)


def _is_at_or_before(value: str, cutoff: datetime) -> bool:
    try:
        timestamp = datetime.fromisoformat(value)
    except ValueError:
        logging.warning(f"Unparseable lastUpdated value in status store: {value!r}")
        return False
    if (timestamp.tzinfo is None) != (cutoff.tzinfo is None):
        timestamp = timestamp.replace(tzinfo=cutoff.tzinfo)
    return timestamp <= cutoff
