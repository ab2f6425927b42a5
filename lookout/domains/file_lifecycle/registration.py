import logging
from lookout.core.cqrs.query_bus import QueryBus
from lookout.core.cqrs.command_bus import CommandBus
from lookout.dependencies import get_lifecycle_engine, get_path_resolver

from .commands import (
    RetryFileCommand,
    RenameFileCommand,
    DeleteFailedFileCommand,
    ExpandFilePrefixesCommand,
)
from .queries import (
    CheckWriteAccessQuery,
    PathCheckQuery,
    GetMonitoredPathsQuery,
)
from .handlers import (
    RetryFileHandler,
    RenameFileHandler,
    DeleteFailedFileHandler,
    ExpandFilePrefixesHandler,
    CheckWriteAccessHandler,
    PathCheckHandler,
    GetMonitoredPathsHandler,
)


def register_file_lifecycle_handlers(query_bus: QueryBus, command_bus: CommandBus):
    """
    Register every command and query owned by the 'file_lifecycle' domain.
    Called once at application startup from main.py.
    """
    logging.info("Registering 'File Lifecycle' handlers...")

    engine = get_lifecycle_engine()
    path_resolver = get_path_resolver()

    command_bus.register(RetryFileCommand, RetryFileHandler(engine).handle)
    command_bus.register(RenameFileCommand, RenameFileHandler(engine).handle)
    command_bus.register(DeleteFailedFileCommand, DeleteFailedFileHandler(engine).handle)
    command_bus.register(ExpandFilePrefixesCommand, ExpandFilePrefixesHandler(engine).handle)

    query_bus.register(CheckWriteAccessQuery, CheckWriteAccessHandler(engine).handle)
    query_bus.register(PathCheckQuery, PathCheckHandler(path_resolver).handle)
    query_bus.register(GetMonitoredPathsQuery, GetMonitoredPathsHandler(path_resolver).handle)
