"""
Pytest configuration and shared fixtures.

Every fixture works on real temporary folders and a temporary SQLite file;
faults are injected with monkeypatch/unittest.mock where needed.
"""

from pathlib import Path

import pytest

from lookout.config import Settings
from lookout.core.audit_log import SqliteAuditLog
from lookout.core.database import Database
from lookout.core.lifecycle_engine import FileLifecycleEngine
from lookout.core.path_resolver import PathResolver
from lookout.core.status_store import StatusStore
from lookout.dependencies import reset_singletons
from lookout.models import FileStatus, FileStatusRecord


@pytest.fixture(autouse=True)
def clean_singletons():
    """Automatically reset singletons before each test."""
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def import_dir(tmp_path: Path) -> Path:
    path = tmp_path / "import"
    path.mkdir()
    return path


@pytest.fixture
def failed_dir(tmp_path: Path) -> Path:
    path = tmp_path / "failed"
    path.mkdir()
    return path


@pytest.fixture
def settings(tmp_path: Path, import_dir: Path, failed_dir: Path) -> Settings:
    return Settings(
        import_directory=str(import_dir),
        failed_directory=str(failed_dir),
        database_path=str(tmp_path / "data" / "database.sqlite"),
        log_file_path=str(tmp_path / "logs" / "lookout.log"),
        copy_chunk_size_kb=1,
    )


@pytest.fixture
def database(settings: Settings):
    db = Database(settings.database_path)
    db.connect()
    yield db
    db.close()


@pytest.fixture
def status_store(database: Database) -> StatusStore:
    return StatusStore(database)


@pytest.fixture
def audit_log(database: Database) -> SqliteAuditLog:
    return SqliteAuditLog(database)


@pytest.fixture
def path_resolver(settings: Settings) -> PathResolver:
    return PathResolver(settings)


@pytest.fixture
def engine(settings, path_resolver, status_store, audit_log) -> FileLifecycleEngine:
    return FileLifecycleEngine(
        settings=settings,
        path_resolver=path_resolver,
        status_store=status_store,
        audit_sink=audit_log,
    )


@pytest.fixture
def make_record():
    """Factory for status records as the external pipeline would have written them."""
    def _make(name: str, status: FileStatus = FileStatus.FAILED, **kwargs) -> FileStatusRecord:
        kwargs.setdefault("source", "Import")
        return FileStatusRecord(name=name, status=status, **kwargs)
    return _make
