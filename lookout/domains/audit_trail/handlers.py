from typing import List

from lookout.core.audit_log import SqliteAuditLog, export_audit_csv
from lookout.models import AuditEntry
from lookout.domains.audit_trail.queries import ListAuditEntriesQuery, ExportAuditLogQuery


class ListAuditEntriesHandler:
    def __init__(self, audit_log: SqliteAuditLog):
        self._audit_log = audit_log

    async def handle(self, query: ListAuditEntriesQuery) -> List[AuditEntry]:
        entries = await self._audit_log.list_entries()
        if query.actor:
            entries = [entry for entry in entries if entry.actor == query.actor]
        if query.limit is not None:
            entries = entries[:query.limit]
        return entries


class ExportAuditLogHandler:
    def __init__(self, audit_log: SqliteAuditLog):
        self._audit_log = audit_log

    async def handle(self, query: ExportAuditLogQuery) -> str:
        return export_audit_csv(await self._audit_log.list_entries())
