import logging
from lookout.core.cqrs.query_bus import QueryBus
from lookout.core.cqrs.command_bus import CommandBus
from lookout.dependencies import get_audit_log

from .queries import ListAuditEntriesQuery, ExportAuditLogQuery
from .handlers import ListAuditEntriesHandler, ExportAuditLogHandler


def register_audit_trail_handlers(query_bus: QueryBus, command_bus: CommandBus):
    """
    Register the read side of the audit log. Audit entries are written by the
    lifecycle engine and transfer service directly, so there are no commands.
    """
    logging.info("Registering 'Audit Trail' handlers...")

    audit_log = get_audit_log()

    query_bus.register(ListAuditEntriesQuery, ListAuditEntriesHandler(audit_log).handle)
    query_bus.register(ExportAuditLogQuery, ExportAuditLogHandler(audit_log).handle)
