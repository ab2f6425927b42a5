from lookout.core.lifecycle_engine import FileLifecycleEngine
from lookout.core.path_resolver import PathResolver
from lookout.models import MonitoredPaths, OperationResult, WriteAccessResult
from lookout.domains.file_lifecycle.commands import (
    RetryFileCommand,
    RenameFileCommand,
    DeleteFailedFileCommand,
    ExpandFilePrefixesCommand,
)
from lookout.domains.file_lifecycle.queries import (
    CheckWriteAccessQuery,
    PathCheckQuery,
    GetMonitoredPathsQuery,
)

# Command handlers delegate to the lifecycle engine, which owns ordering and audit


class RetryFileHandler:
    def __init__(self, engine: FileLifecycleEngine):
        self._engine = engine

    async def handle(self, command: RetryFileCommand) -> OperationResult:
        return await self._engine.retry_file(command.name, actor=command.actor)


class RenameFileHandler:
    def __init__(self, engine: FileLifecycleEngine):
        self._engine = engine

    async def handle(self, command: RenameFileCommand) -> OperationResult:
        return await self._engine.rename_file(
            command.old_name, command.new_name, actor=command.actor
        )


class DeleteFailedFileHandler:
    def __init__(self, engine: FileLifecycleEngine):
        self._engine = engine

    async def handle(self, command: DeleteFailedFileCommand) -> OperationResult:
        return await self._engine.delete_failed_file(command.name, actor=command.actor)


class ExpandFilePrefixesHandler:
    def __init__(self, engine: FileLifecycleEngine):
        self._engine = engine

    async def handle(self, command: ExpandFilePrefixesCommand) -> OperationResult:
        return await self._engine.expand_file_prefixes(command.name, actor=command.actor)


class CheckWriteAccessHandler:
    def __init__(self, engine: FileLifecycleEngine):
        self._engine = engine

    async def handle(self, query: CheckWriteAccessQuery) -> WriteAccessResult:
        return await self._engine.check_write_access()


class PathCheckHandler:
    def __init__(self, path_resolver: PathResolver):
        self._paths = path_resolver

    async def handle(self, query: PathCheckQuery) -> OperationResult:
        return await self._paths.test_path(query.path)


class GetMonitoredPathsHandler:
    def __init__(self, path_resolver: PathResolver):
        self._paths = path_resolver

    async def handle(self, query: GetMonitoredPathsQuery) -> MonitoredPaths:
        return self._paths.monitored_paths()
