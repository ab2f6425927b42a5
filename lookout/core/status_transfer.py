"""
Bulk import/export of file status records.

Record format (CSV header / JSON keys): id,name,status,source,lastUpdated,remarks
Import is idempotent by name and written in a single store transaction.
"""

import csv
import io
import json
import logging
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from lookout.core.audit_log import AuditSink
from lookout.core.statistics import NO_PUBLISHED_FILES, build_statistics_report
from lookout.core.status_store import StatusStore
from lookout.models import (
    AuditEntry,
    AuditLevel,
    ExportResult,
    FileStatus,
    FileStatusRecord,
    ImportResult,
)

RECORD_FIELDS = ["id", "name", "status", "source", "lastUpdated", "remarks"]
REQUIRED_FIELDS = ["id", "name", "status", "source", "lastUpdated"]
NOTHING_TO_EXPORT = "There are no file statuses to export."


class StatusImportError(Exception):
    """Raised when an import payload cannot be turned into records."""


def records_to_rows(records: Sequence[FileStatusRecord]) -> List[Dict[str, Any]]:
    return [record.model_dump(mode="json", by_alias=True) for record in records]


def rows_to_records(rows: Sequence[Dict[str, Any]], first_row_number: int = 1) -> List[FileStatusRecord]:
    """
    Validate raw rows into records. A missing or empty remarks value becomes "".

    Raises:
        StatusImportError: naming the first invalid row.
    """
    records: List[FileStatusRecord] = []
    for offset, row in enumerate(rows):
        data = {key: row.get(key) for key in RECORD_FIELDS}
        data["remarks"] = data.get("remarks") or ""
        try:
            records.append(FileStatusRecord.model_validate(data))
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or "record"
            raise StatusImportError(
                f"Invalid record on row {first_row_number + offset}: {field}: {first.get('msg')}"
            ) from e
    return records


def serialize_csv(records: Sequence[FileStatusRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=RECORD_FIELDS, lineterminator="\n")
    writer.writeheader()
    writer.writerows(records_to_rows(records))
    return buffer.getvalue()


def parse_csv(content: str) -> List[FileStatusRecord]:
    reader = csv.DictReader(io.StringIO(content))
    fields = reader.fieldnames or []
    missing = [field for field in REQUIRED_FIELDS if field not in fields]
    if missing:
        raise StatusImportError(
            f"CSV must contain the following columns: {', '.join(REQUIRED_FIELDS)}"
        )

    try:
        rows = [row for row in reader if any((value or "").strip() for value in row.values() if isinstance(value, str))]
    except csv.Error as e:
        raise StatusImportError(f"Error parsing CSV on line {reader.line_num}: {e}") from e
    # Data rows start on line 2, after the header
    return rows_to_records(rows, first_row_number=2)


def serialize_json(records: Sequence[FileStatusRecord]) -> str:
    return json.dumps(records_to_rows(records), indent=2)


def parse_json(content: str) -> List[FileStatusRecord]:
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        raise StatusImportError(f"Error parsing JSON at line {e.lineno}: {e.msg}") from e
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise StatusImportError("JSON must be a list of file status objects.")
    return rows_to_records(payload)


class StatusTransferService:
    """Export and import the whole status table, with audit records."""

    def __init__(self, status_store: StatusStore, audit_sink: AuditSink):
        self._store = status_store
        self._audit_sink = audit_sink

    async def export_csv(self, actor: str = "system") -> ExportResult:
        return await self._export(serialize_csv, "CSV", actor)

    async def export_json(self, actor: str = "system") -> ExportResult:
        return await self._export(serialize_json, "JSON", actor)

    async def import_csv(self, content: str, actor: str = "system") -> ImportResult:
        return await self._import(parse_csv, content, "CSV", actor)

    async def import_json(self, content: str, actor: str = "system") -> ImportResult:
        return await self._import(parse_json, content, "JSON", actor)

    async def generate_statistics_report(self, actor: str = "system") -> ExportResult:
        """Published-files report, see lookout.core.statistics."""
        try:
            records = await self._store.list_all()
            report = build_statistics_report(records)
        except Exception as e:
            logging.error(f"Error generating statistics report: {e}", exc_info=True)
            await self._audit(
                AuditLevel.ERROR, actor, "EXPORT_FAILED", f"Statistics report generation failed: {e}"
            )
            return ExportResult(error="An unexpected error occurred during report generation.")

        if report is None:
            return ExportResult(error=NO_PUBLISHED_FILES)

        published_count = sum(1 for record in records if record.status == FileStatus.PUBLISHED)
        await self._audit(AuditLevel.INFO, actor, "EXPORT_STATISTICS", "Generated statistics report.")
        return ExportResult(content=report, count=published_count)

    async def _export(self, serializer, format_name: str, actor: str) -> ExportResult:
        try:
            records = await self._store.list_all()
            if not records:
                return ExportResult(error=NOTHING_TO_EXPORT)
            content = serializer(records)
        except Exception as e:
            logging.error(f"Error exporting file statuses as {format_name}: {e}", exc_info=True)
            await self._audit(AuditLevel.ERROR, actor, "EXPORT_FAILED", f"File status export failed: {e}")
            return ExportResult(error="An unexpected error occurred during export.")

        await self._audit(
            AuditLevel.INFO, actor, "EXPORT_FILE_STATUSES",
            f"Exported {len(records)} file status records as {format_name}.",
        )
        return ExportResult(content=content, count=len(records))

    async def _import(self, parser, content: str, format_name: str, actor: str) -> ImportResult:
        try:
            records = parser(content)
        except StatusImportError as e:
            logging.warning(f"Rejected file status import ({format_name}): {e}")
            await self._audit(AuditLevel.ERROR, actor, "IMPORT_FAILED", f"File status import failed: {e}")
            return ImportResult(error=str(e))

        try:
            await self._store.bulk_upsert(records)
        except Exception as e:
            logging.error(f"Error importing file statuses: {e}", exc_info=True)
            await self._audit(AuditLevel.ERROR, actor, "IMPORT_FAILED", f"File status import failed: {e}")
            return ImportResult(error=f"An unexpected error occurred during import: {e}")

        logging.info(f"Imported {len(records)} file status records from {format_name}")
        await self._audit(
            AuditLevel.AUDIT, actor, "IMPORT_FILE_STATUSES",
            f"Imported {len(records)} file status records from {format_name}.",
        )
        return ImportResult(imported_count=len(records))

    async def _audit(self, level: AuditLevel, actor: str, action: str, details: str) -> None:
        try:
            await self._audit_sink.record(
                AuditEntry(level=level, actor=actor, action=action, details=details)
            )
        except Exception as e:
            logging.warning(f"Audit record '{action}' could not be written: {e}")
