"""
Tests for FileLifecycleEngine.

Real watched folders under tmp_path and a real SQLite status store; disk and
store faults are injected by patching lookout.utils.file_operations and the
store methods.
"""

import asyncio
import errno
import logging
import sqlite3
from datetime import timedelta
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from lookout.config import Settings
from lookout.core.filename_codec import FORMAT_MISMATCH, TOO_FEW_PREFIXES
from lookout.core.lifecycle_engine import MISSING_ON_DELETE, FileLifecycleEngine
from lookout.core.path_resolver import NOT_CONFIGURED, PathResolver
from lookout.models import ErrorKind, FileStatus, utc_now
from lookout.utils import file_operations

pytestmark = pytest.mark.asyncio

logging.disable(logging.CRITICAL)


def _write(path: Path, content: bytes = b"payload") -> Path:
    path.write_bytes(content)
    return path


async def _actions(audit_log) -> list[str]:
    return [entry.action for entry in await audit_log.list_entries()]


# --- Retry ---

class TestRetryFile:
    async def test_moves_file_and_requeues_record(
        self, engine, status_store, import_dir, failed_dir, make_record
    ):
        _write(failed_dir / "A.mxf")
        original = make_record("A.mxf")
        await status_store.upsert(original)

        result = await engine.retry_file("A.mxf", actor="alice")

        assert result.success
        assert (import_dir / "A.mxf").exists()
        assert not (failed_dir / "A.mxf").exists()
        record = await status_store.get("A.mxf")
        assert record.status == FileStatus.PROCESSING
        assert record.id == original.id
        assert record.remarks == "Retrying file. [user: alice]"
        assert record.last_updated >= original.last_updated

    async def test_second_retry_is_not_found_and_changes_nothing(
        self, engine, status_store, failed_dir, make_record
    ):
        _write(failed_dir / "A.mxf")
        await status_store.upsert(make_record("A.mxf"))

        first = await engine.retry_file("A.mxf", actor="alice")
        after_first = await status_store.get("A.mxf")
        second = await engine.retry_file("A.mxf", actor="alice")

        assert first.success
        assert not second.success
        assert second.error_kind == ErrorKind.NOT_FOUND
        assert second.error == "File not found in failed directory: A.mxf"
        assert await status_store.get("A.mxf") == after_first
        assert await status_store.count() == 1

    async def test_without_record_only_moves_file(self, engine, status_store, import_dir, failed_dir):
        _write(failed_dir / "orphan.mxf")

        result = await engine.retry_file("orphan.mxf", actor="alice")

        assert result.success
        assert (import_dir / "orphan.mxf").exists()
        assert await status_store.get("orphan.mxf") is None

    async def test_conflict_in_import_folder(self, engine, import_dir, failed_dir):
        _write(failed_dir / "A.mxf", b"failed copy")
        _write(import_dir / "A.mxf", b"already importing")

        result = await engine.retry_file("A.mxf", actor="alice")

        assert result.error_kind == ErrorKind.CONFLICT
        assert (failed_dir / "A.mxf").read_bytes() == b"failed copy"
        assert (import_dir / "A.mxf").read_bytes() == b"already importing"

    async def test_drifted_record_is_requeued(self, engine, status_store, failed_dir, make_record):
        _write(failed_dir / "A.mxf")
        await status_store.upsert(make_record("A.mxf", status=FileStatus.PUBLISHED))

        result = await engine.retry_file("A.mxf", actor="alice")

        assert result.success
        assert (await status_store.get("A.mxf")).status == FileStatus.PROCESSING

    async def test_invalid_name_is_rejected(self, engine, failed_dir):
        result = await engine.retry_file("../escape.mxf", actor="alice")

        assert result.error_kind == ErrorKind.INVALID_INPUT

    async def test_unconfigured_paths(self, tmp_path, status_store, audit_log):
        settings = Settings(import_directory="", failed_directory=str(tmp_path))
        engine = FileLifecycleEngine(settings, PathResolver(settings), status_store, audit_log)

        result = await engine.retry_file("A.mxf", actor="alice")

        assert result.error_kind == ErrorKind.CONFIGURATION
        assert result.error == NOT_CONFIGURED

    async def test_permission_denied_on_move(self, engine, failed_dir, monkeypatch):
        _write(failed_dir / "A.mxf")
        monkeypatch.setattr(
            file_operations, "move_file", AsyncMock(side_effect=PermissionError(errno.EACCES, "denied"))
        )

        result = await engine.retry_file("A.mxf", actor="alice")

        assert result.error_kind == ErrorKind.PERMISSION_DENIED
        assert "Permission denied" in result.error
        assert (failed_dir / "A.mxf").exists()

    async def test_store_failure_after_move_is_partial(
        self, engine, status_store, import_dir, failed_dir, make_record, monkeypatch
    ):
        _write(failed_dir / "A.mxf")
        await status_store.upsert(make_record("A.mxf"))
        monkeypatch.setattr(
            status_store, "upsert", AsyncMock(side_effect=sqlite3.OperationalError("database is locked"))
        )

        result = await engine.retry_file("A.mxf", actor="alice")

        assert result.error_kind == ErrorKind.PARTIAL_FAILURE
        assert (import_dir / "A.mxf").exists()
        assert (await status_store.get("A.mxf")).status == FileStatus.FAILED

    async def test_writes_audit_entries(self, engine, audit_log, failed_dir):
        _write(failed_dir / "A.mxf")

        await engine.retry_file("A.mxf", actor="alice")
        await engine.retry_file("A.mxf", actor="alice")

        entries = await audit_log.list_entries()
        assert sorted(entry.action for entry in entries) == ["FILE_RETRY", "FILE_RETRY_FAILED"]
        assert all(entry.actor == "alice" for entry in entries)

    async def test_target_created_after_check_is_not_overwritten(
        self, engine, status_store, import_dir, failed_dir, make_record, monkeypatch
    ):
        _write(failed_dir / "A.mxf", b"failed copy")
        original = make_record("A.mxf")
        await status_store.upsert(original)
        _appear_after_check(monkeypatch, import_dir / "A.mxf")

        result = await engine.retry_file("A.mxf", actor="alice")

        assert result.error_kind == ErrorKind.CONFLICT
        assert (import_dir / "A.mxf").read_bytes() == b"pipeline-content"
        assert (failed_dir / "A.mxf").read_bytes() == b"failed copy"
        assert await status_store.get("A.mxf") == original

    async def test_concurrent_retries_move_the_file_once(
        self, engine, status_store, import_dir, failed_dir, make_record
    ):
        _write(failed_dir / "A.mxf", b"failed copy")
        await status_store.upsert(make_record("A.mxf"))

        results = await asyncio.gather(
            engine.retry_file("A.mxf", actor="a"),
            engine.retry_file("A.mxf", actor="b"),
        )

        winners = [result for result in results if result.success]
        losers = [result for result in results if not result.success]
        assert len(winners) == 1
        assert len(losers) == 1
        # The loser either finds the source gone or the target already linked
        assert losers[0].error_kind in (ErrorKind.NOT_FOUND, ErrorKind.CONFLICT)
        assert (import_dir / "A.mxf").read_bytes() == b"failed copy"
        assert list(failed_dir.iterdir()) == []
        assert await status_store.count() == 1
        assert (await status_store.get("A.mxf")).status == FileStatus.PROCESSING


def _appear_after_check(monkeypatch, target: Path) -> None:
    """Make ``target`` appear on disk right after the engine checks that it is absent."""
    real_file_exists = file_operations.file_exists

    async def file_exists(path):
        exists = await real_file_exists(path)
        if path == target and not exists:
            target.write_bytes(b"pipeline-content")
        return exists

    monkeypatch.setattr(file_operations, "file_exists", file_exists)


# --- Rename ---

class TestRenameFile:
    async def test_moves_and_creates_fresh_identity(
        self, engine, status_store, import_dir, failed_dir, make_record
    ):
        _write(failed_dir / "old.mxf")
        old_record = make_record("old.mxf")
        await status_store.upsert(old_record)

        result = await engine.rename_file("old.mxf", "new.mxf", actor="bob")

        assert result.success
        assert (import_dir / "new.mxf").exists()
        assert not (failed_dir / "old.mxf").exists()
        assert await status_store.get("old.mxf") is None
        new_record = await status_store.get("new.mxf")
        assert new_record.status == FileStatus.PROCESSING
        assert new_record.id != old_record.id
        assert new_record.source == "Import"
        assert new_record.remarks == 'Renamed from "old.mxf" and retrying. [user: bob]'

    async def test_conflict_leaves_everything_untouched(
        self, engine, status_store, import_dir, failed_dir, make_record
    ):
        _write(failed_dir / "old.mxf", b"old")
        _write(import_dir / "new.mxf", b"existing")
        old_record = make_record("old.mxf")
        await status_store.upsert(old_record)

        result = await engine.rename_file("old.mxf", "new.mxf", actor="bob")

        assert result.error_kind == ErrorKind.CONFLICT
        assert (failed_dir / "old.mxf").read_bytes() == b"old"
        assert (import_dir / "new.mxf").read_bytes() == b"existing"
        assert await status_store.get("old.mxf") == old_record
        assert await status_store.get("new.mxf") is None

    async def test_target_created_after_check_is_not_overwritten(
        self, engine, status_store, import_dir, failed_dir, make_record, monkeypatch
    ):
        _write(failed_dir / "old.mxf", b"old")
        old_record = make_record("old.mxf")
        await status_store.upsert(old_record)
        _appear_after_check(monkeypatch, import_dir / "new.mxf")

        result = await engine.rename_file("old.mxf", "new.mxf", actor="bob")

        assert result.error_kind == ErrorKind.CONFLICT
        assert result.error == 'A file named "new.mxf" already exists in the import directory.'
        assert (import_dir / "new.mxf").read_bytes() == b"pipeline-content"
        assert (failed_dir / "old.mxf").read_bytes() == b"old"
        assert await status_store.get("old.mxf") == old_record
        assert await status_store.get("new.mxf") is None

    async def test_conflict_is_checked_before_existence(self, engine, import_dir):
        _write(import_dir / "new.mxf")

        result = await engine.rename_file("missing.mxf", "new.mxf", actor="bob")

        assert result.error_kind == ErrorKind.CONFLICT

    async def test_missing_source(self, engine):
        result = await engine.rename_file("missing.mxf", "new.mxf", actor="bob")

        assert result.error_kind == ErrorKind.NOT_FOUND
        assert result.error == "File not found to rename: missing.mxf"

    async def test_new_name_with_separator_is_rejected(self, engine, failed_dir):
        _write(failed_dir / "old.mxf")

        result = await engine.rename_file("old.mxf", "sub/new.mxf", actor="bob")

        assert result.error_kind == ErrorKind.INVALID_INPUT
        assert (failed_dir / "old.mxf").exists()


# --- Delete ---

class TestDeleteFailedFile:
    async def test_removes_file_and_record(self, engine, status_store, audit_log, failed_dir, make_record):
        _write(failed_dir / "A.mxf")
        await status_store.upsert(make_record("A.mxf"))

        result = await engine.delete_failed_file("A.mxf", actor="carol")

        assert result.success
        assert result.warning is None
        assert not (failed_dir / "A.mxf").exists()
        assert await status_store.get("A.mxf") is None
        assert await _actions(audit_log) == ["FILE_DELETED"]

    async def test_missing_file_converges_with_warning(
        self, engine, status_store, audit_log, make_record
    ):
        await status_store.upsert(make_record("gone.mxf"))

        result = await engine.delete_failed_file("gone.mxf", actor="carol")

        assert result.success
        assert result.warning == MISSING_ON_DELETE
        assert await status_store.get("gone.mxf") is None
        entries = await audit_log.list_entries()
        assert entries[0].action == "FILE_DELETED"
        assert entries[0].level.value == "WARN"

    async def test_permission_denied_keeps_record(
        self, engine, status_store, failed_dir, make_record, monkeypatch
    ):
        _write(failed_dir / "A.mxf")
        await status_store.upsert(make_record("A.mxf"))
        monkeypatch.setattr(
            file_operations, "remove_file", AsyncMock(side_effect=PermissionError(errno.EACCES, "denied"))
        )

        result = await engine.delete_failed_file("A.mxf", actor="carol")

        assert result.error_kind == ErrorKind.PERMISSION_DENIED
        assert "cannot delete 'A.mxf'" in result.error
        assert await status_store.get("A.mxf") is not None

    async def test_actor_defaults_to_system(self, engine, audit_log, failed_dir):
        _write(failed_dir / "A.mxf")

        await engine.delete_failed_file("A.mxf")

        assert (await audit_log.list_entries())[0].actor == "system"


# --- Expand ---

class TestExpandFilePrefixes:
    async def test_creates_one_copy_per_prefix(
        self, engine, status_store, import_dir, failed_dir, make_record
    ):
        _write(failed_dir / "PBCC_A_B_C.txt", b"x" * 5000)
        await status_store.upsert(make_record("PBCC_A_B_C.txt"))

        result = await engine.expand_file_prefixes("PBCC_A_B_C.txt", actor="dave")

        assert result.success
        assert result.count == 2
        assert sorted(p.name for p in import_dir.iterdir()) == ["CC_A_B_C.txt", "PB_A_B_C.txt"]
        assert (import_dir / "PB_A_B_C.txt").read_bytes() == b"x" * 5000
        assert not (failed_dir / "PBCC_A_B_C.txt").exists()

        records = await status_store.list_all()
        assert sorted(r.name for r in records) == ["CC_A_B_C.txt", "PB_A_B_C.txt"]
        for record in records:
            assert record.status == FileStatus.PROCESSING
            assert record.remarks == "Expanded from PBCC_A_B_C.txt. [user: dave]"
        assert records[0].id != records[1].id

    async def test_single_prefix_is_not_expandable(self, engine, failed_dir):
        _write(failed_dir / "P_A_B_C.txt")

        result = await engine.expand_file_prefixes("P_A_B_C.txt", actor="dave")

        assert result.error_kind == ErrorKind.NOT_EXPANDABLE
        assert result.error == TOO_FEW_PREFIXES
        assert (failed_dir / "P_A_B_C.txt").exists()

    async def test_wrong_segment_count(self, engine, failed_dir):
        _write(failed_dir / "PBCC_A_B.txt")

        result = await engine.expand_file_prefixes("PBCC_A_B.txt", actor="dave")

        assert result.error_kind == ErrorKind.NOT_EXPANDABLE
        assert result.error == FORMAT_MISMATCH

    async def test_name_is_parsed_before_existence_check(self, engine):
        result = await engine.expand_file_prefixes("P_A_B_C.txt", actor="dave")

        assert result.error_kind == ErrorKind.NOT_EXPANDABLE

    async def test_missing_source(self, engine):
        result = await engine.expand_file_prefixes("PBCC_A_B_C.txt", actor="dave")

        assert result.error_kind == ErrorKind.NOT_FOUND

    async def test_existing_target_aborts_before_copying(self, engine, import_dir, failed_dir):
        _write(failed_dir / "PBCC_A_B_C.txt")
        _write(import_dir / "CC_A_B_C.txt", b"existing")

        result = await engine.expand_file_prefixes("PBCC_A_B_C.txt", actor="dave")

        assert result.error_kind == ErrorKind.CONFLICT
        assert sorted(p.name for p in import_dir.iterdir()) == ["CC_A_B_C.txt"]
        assert (failed_dir / "PBCC_A_B_C.txt").exists()

    async def test_failed_second_copy_rolls_back(
        self, engine, status_store, audit_log, import_dir, failed_dir, make_record, monkeypatch
    ):
        _write(failed_dir / "PBCCBB_A_B_C.txt")
        original = make_record("PBCCBB_A_B_C.txt")
        await status_store.upsert(original)

        real_copy = file_operations.copy_file
        calls = []

        async def flaky_copy(source, dest, chunk_size=file_operations.DEFAULT_CHUNK_SIZE):
            calls.append(Path(dest).name)
            if len(calls) == 2:
                raise OSError(errno.EIO, "Input/output error")
            return await real_copy(source, dest, chunk_size)

        monkeypatch.setattr(file_operations, "copy_file", flaky_copy)

        result = await engine.expand_file_prefixes("PBCCBB_A_B_C.txt", actor="dave")

        assert not result.success
        assert result.error_kind == ErrorKind.IO_ERROR
        assert result.error.startswith("Failed to create copy: CC_A_B_C.txt. Expansion aborted.")
        assert calls == ["PB_A_B_C.txt", "CC_A_B_C.txt"]
        assert list(import_dir.iterdir()) == []
        assert (failed_dir / "PBCCBB_A_B_C.txt").exists()
        assert await status_store.list_all() == [original]
        assert await _actions(audit_log) == ["FILE_EXPAND_FAILED"]

    async def test_rollback_leftovers_are_partial_failure(
        self, engine, import_dir, failed_dir, monkeypatch
    ):
        _write(failed_dir / "PBCCBB_A_B_C.txt")
        real_copy = file_operations.copy_file
        calls = []

        async def flaky_copy(source, dest, chunk_size=file_operations.DEFAULT_CHUNK_SIZE):
            calls.append(dest)
            if len(calls) == 2:
                raise OSError(errno.ENOSPC, "No space left on device")
            return await real_copy(source, dest, chunk_size)

        monkeypatch.setattr(file_operations, "copy_file", flaky_copy)
        monkeypatch.setattr(
            file_operations, "remove_file", AsyncMock(side_effect=PermissionError(errno.EACCES, "denied"))
        )

        result = await engine.expand_file_prefixes("PBCCBB_A_B_C.txt", actor="dave")

        assert result.error_kind == ErrorKind.PARTIAL_FAILURE
        assert "PB_A_B_C.txt" in result.error
        assert "Manual cleanup required" in result.error

    async def test_original_delete_failure_is_partial(
        self, engine, status_store, import_dir, failed_dir, make_record, monkeypatch
    ):
        source = _write(failed_dir / "PBCC_A_B_C.txt")
        await status_store.upsert(make_record("PBCC_A_B_C.txt"))
        real_remove = file_operations.remove_file

        async def guarded_remove(path):
            if Path(path) == source:
                raise PermissionError(errno.EACCES, "denied")
            await real_remove(path)

        monkeypatch.setattr(file_operations, "remove_file", guarded_remove)

        result = await engine.expand_file_prefixes("PBCC_A_B_C.txt", actor="dave")

        assert result.error_kind == ErrorKind.PARTIAL_FAILURE
        assert result.count == 2
        assert source.exists()
        assert sorted(p.name for p in import_dir.iterdir()) == ["CC_A_B_C.txt", "PB_A_B_C.txt"]
        names = sorted(r.name for r in await status_store.list_all())
        assert names == ["CC_A_B_C.txt", "PBCC_A_B_C.txt", "PB_A_B_C.txt"]


# --- Audit and bulk maintenance ---

class TestAuditIsBestEffort:
    async def test_failing_audit_sink_does_not_change_result(
        self, settings, path_resolver, status_store, import_dir, failed_dir
    ):
        sink = AsyncMock()
        sink.record.side_effect = sqlite3.OperationalError("disk I/O error")
        engine = FileLifecycleEngine(settings, path_resolver, status_store, sink)
        _write(failed_dir / "A.mxf")

        result = await engine.retry_file("A.mxf", actor="alice")

        assert result.success
        assert (import_dir / "A.mxf").exists()
        sink.record.assert_awaited_once()


class TestBulkMaintenance:
    async def test_clear_all_returns_count(self, engine, status_store, audit_log, make_record):
        await status_store.bulk_upsert([make_record("a"), make_record("b")])

        result = await engine.clear_all_file_statuses(actor="admin")

        assert result.success
        assert result.count == 2
        assert await status_store.count() == 0
        assert await _actions(audit_log) == ["DB_CLEAR_FILE_STATUSES"]

    async def test_purge_removes_only_stale_records(self, engine, status_store, make_record):
        old = make_record("old", last_updated=utc_now() - timedelta(days=10))
        fresh = make_record("fresh")
        await status_store.bulk_upsert([old, fresh])

        result = await engine.purge_stale_statuses(actor="admin")

        assert result.count == 1
        assert [r.name for r in await status_store.list_all()] == ["fresh"]

    async def test_purge_with_explicit_age(self, engine, status_store, make_record):
        await status_store.upsert(make_record("recent", last_updated=utc_now() - timedelta(hours=2)))

        result = await engine.purge_stale_statuses(max_age=timedelta(hours=1))

        assert result.count == 1

    async def test_negative_age_is_invalid(self, engine):
        result = await engine.purge_stale_statuses(max_age=timedelta(days=-1))

        assert result.error_kind == ErrorKind.INVALID_INPUT
