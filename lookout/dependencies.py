from functools import lru_cache
from typing import Dict, Any

from lookout.config import Settings
from lookout.core.audit_log import SqliteAuditLog
from lookout.core.cqrs.command_bus import CommandBus
from lookout.core.cqrs.query_bus import QueryBus
from lookout.core.database import Database
from lookout.core.error_classifier import ErrorClassifier
from lookout.core.file_state_machine import FileStateMachine
from lookout.core.lifecycle_engine import FileLifecycleEngine
from lookout.core.path_resolver import PathResolver
from lookout.core.status_store import StatusStore
from lookout.core.status_transfer import StatusTransferService

# Global singleton instances
_singletons: Dict[str, Any] = {}


@lru_cache
def get_settings() -> Settings:
    """Settings singleton, read once from the environment / settings file."""
    return Settings()


def get_command_bus() -> CommandBus:
    if "command_bus" not in _singletons:
        _singletons["command_bus"] = CommandBus()
    return _singletons["command_bus"]


def get_query_bus() -> QueryBus:
    if "query_bus" not in _singletons:
        _singletons["query_bus"] = QueryBus()
    return _singletons["query_bus"]


def get_database() -> Database:
    if "database" not in _singletons:
        settings = get_settings()
        _singletons["database"] = Database(
            db_path=settings.database_path,
            busy_timeout_ms=settings.sqlite_busy_timeout_ms,
        )
    return _singletons["database"]


def get_status_store() -> StatusStore:
    if "status_store" not in _singletons:
        _singletons["status_store"] = StatusStore(get_database())
    return _singletons["status_store"]


def get_audit_log() -> SqliteAuditLog:
    if "audit_log" not in _singletons:
        _singletons["audit_log"] = SqliteAuditLog(get_database())
    return _singletons["audit_log"]


def get_error_classifier() -> ErrorClassifier:
    if "error_classifier" not in _singletons:
        _singletons["error_classifier"] = ErrorClassifier()
    return _singletons["error_classifier"]


def get_path_resolver() -> PathResolver:
    if "path_resolver" not in _singletons:
        _singletons["path_resolver"] = PathResolver(
            settings=get_settings(), classifier=get_error_classifier()
        )
    return _singletons["path_resolver"]


def get_file_state_machine() -> FileStateMachine:
    if "file_state_machine" not in _singletons:
        _singletons["file_state_machine"] = FileStateMachine()
    return _singletons["file_state_machine"]


def get_lifecycle_engine() -> FileLifecycleEngine:
    if "lifecycle_engine" not in _singletons:
        _singletons["lifecycle_engine"] = FileLifecycleEngine(
            settings=get_settings(),
            path_resolver=get_path_resolver(),
            status_store=get_status_store(),
            audit_sink=get_audit_log(),
            state_machine=get_file_state_machine(),
            classifier=get_error_classifier(),
        )
    return _singletons["lifecycle_engine"]


def get_status_transfer() -> StatusTransferService:
    if "status_transfer" not in _singletons:
        _singletons["status_transfer"] = StatusTransferService(
            status_store=get_status_store(), audit_sink=get_audit_log()
        )
    return _singletons["status_transfer"]


def reset_singletons() -> None:
    """Drop every singleton (closing the database) and forget cached settings."""
    database = _singletons.get("database")
    if database is not None:
        database.close()
    _singletons.clear()
    get_settings.cache_clear()
