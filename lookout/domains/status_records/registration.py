import logging
from lookout.core.cqrs.query_bus import QueryBus
from lookout.core.cqrs.command_bus import CommandBus
from lookout.dependencies import get_lifecycle_engine, get_status_transfer

from .commands import (
    ClearAllFileStatusesCommand,
    PurgeStaleStatusesCommand,
    ImportFileStatusesCommand,
)
from .queries import (
    ListFileStatusesQuery,
    ExportFileStatusesQuery,
    GetStatisticsReportQuery,
)
from .handlers import (
    ClearAllFileStatusesHandler,
    PurgeStaleStatusesHandler,
    ImportFileStatusesHandler,
    ListFileStatusesHandler,
    ExportFileStatusesHandler,
    GetStatisticsReportHandler,
)


def register_status_records_handlers(query_bus: QueryBus, command_bus: CommandBus):
    """Register commands and queries for the 'status_records' domain."""
    logging.info("Registering 'Status Records' handlers...")

    engine = get_lifecycle_engine()
    transfer = get_status_transfer()

    command_bus.register(ClearAllFileStatusesCommand, ClearAllFileStatusesHandler(engine).handle)
    command_bus.register(PurgeStaleStatusesCommand, PurgeStaleStatusesHandler(engine).handle)
    command_bus.register(ImportFileStatusesCommand, ImportFileStatusesHandler(transfer).handle)

    query_bus.register(ListFileStatusesQuery, ListFileStatusesHandler(engine).handle)
    query_bus.register(ExportFileStatusesQuery, ExportFileStatusesHandler(transfer).handle)
    query_bus.register(GetStatisticsReportQuery, GetStatisticsReportHandler(transfer).handle)
