from datetime import timedelta
from typing import List

from lookout.core.lifecycle_engine import FileLifecycleEngine
from lookout.core.status_transfer import StatusTransferService
from lookout.models import ExportResult, FileStatusRecord, ImportResult, OperationResult
from lookout.domains.status_records.commands import (
    ClearAllFileStatusesCommand,
    PurgeStaleStatusesCommand,
    ImportFileStatusesCommand,
)
from lookout.domains.status_records.queries import (
    ListFileStatusesQuery,
    ExportFileStatusesQuery,
    GetStatisticsReportQuery,
)

SUPPORTED_FORMATS = ("csv", "json")


def unsupported_format(format_name: str) -> str:
    return f"Unsupported format '{format_name}'. Use one of: {', '.join(SUPPORTED_FORMATS)}."


class ClearAllFileStatusesHandler:
    def __init__(self, engine: FileLifecycleEngine):
        self._engine = engine

    async def handle(self, command: ClearAllFileStatusesCommand) -> OperationResult:
        return await self._engine.clear_all_file_statuses(actor=command.actor)


class PurgeStaleStatusesHandler:
    def __init__(self, engine: FileLifecycleEngine):
        self._engine = engine

    async def handle(self, command: PurgeStaleStatusesCommand) -> OperationResult:
        max_age = None
        if command.max_age_days is not None:
            max_age = timedelta(days=command.max_age_days)
        return await self._engine.purge_stale_statuses(max_age=max_age, actor=command.actor)


class ImportFileStatusesHandler:
    def __init__(self, transfer: StatusTransferService):
        self._transfer = transfer

    async def handle(self, command: ImportFileStatusesCommand) -> ImportResult:
        if command.format == "csv":
            return await self._transfer.import_csv(command.content, actor=command.actor)
        if command.format == "json":
            return await self._transfer.import_json(command.content, actor=command.actor)
        return ImportResult(error=unsupported_format(command.format))


class ListFileStatusesHandler:
    def __init__(self, engine: FileLifecycleEngine):
        self._engine = engine

    async def handle(self, query: ListFileStatusesQuery) -> List[FileStatusRecord]:
        return await self._engine.list_file_statuses()


class ExportFileStatusesHandler:
    def __init__(self, transfer: StatusTransferService):
        self._transfer = transfer

    async def handle(self, query: ExportFileStatusesQuery) -> ExportResult:
        if query.format == "csv":
            return await self._transfer.export_csv(actor=query.actor)
        if query.format == "json":
            return await self._transfer.export_json(actor=query.actor)
        return ExportResult(error=unsupported_format(query.format))


class GetStatisticsReportHandler:
    def __init__(self, transfer: StatusTransferService):
        self._transfer = transfer

    async def handle(self, query: GetStatisticsReportQuery) -> ExportResult:
        return await self._transfer.generate_statistics_report(actor=query.actor)
