"""
File Lifecycle Engine - keeps the watched folders and the status store in step.

Every operation follows the same order:

    precondition on disk -> disk mutation -> status mutation -> audit record

A failing disk step aborts before the status store is touched. A crash or
store failure between the two therefore leaves "file moved, status stale"
(which a folder re-scan can detect) and never "status updated, file not
moved". Failures are returned as OperationResult values, never raised.
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Type

from lookout.config import Settings
from lookout.core.audit_log import AuditSink
from lookout.core.copy_batch import CopyBatch
from lookout.core.error_classifier import ErrorClassifier
from lookout.core.exceptions import (
    FileMissingError,
    FolderIOError,
    FolderPermissionError,
    InvalidFileNameError,
    LifecycleError,
    NameConflictError,
    PartialFailureError,
)
from lookout.core.file_state_machine import FileStateMachine
from lookout.core.filename_codec import plan_expansion
from lookout.core.path_resolver import PathResolver
from lookout.core.status_store import StatusStore
from lookout.models import (
    AuditEntry,
    AuditLevel,
    ErrorKind,
    FileStatus,
    FileStatusRecord,
    OperationResult,
    WriteAccessResult,
    utc_now,
)
from lookout.utils import file_operations

MISSING_ON_DELETE = "File was not found on disk, but its status entry was removed."

_ERROR_TYPES: Dict[ErrorKind, Type[LifecycleError]] = {
    ErrorKind.NOT_FOUND: FileMissingError,
    ErrorKind.PERMISSION_DENIED: FolderPermissionError,
    ErrorKind.CONFLICT: NameConflictError,
}


class FileLifecycleEngine:
    def __init__(
        self,
        settings: Settings,
        path_resolver: PathResolver,
        status_store: StatusStore,
        audit_sink: AuditSink,
        state_machine: Optional[FileStateMachine] = None,
        classifier: Optional[ErrorClassifier] = None,
    ):
        self._settings = settings
        self._paths = path_resolver
        self._store = status_store
        self._audit_sink = audit_sink
        self._state_machine = state_machine or FileStateMachine()
        self._classifier = classifier or ErrorClassifier()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def check_write_access(self) -> WriteAccessResult:
        return await self._paths.check_write_access()

    async def list_file_statuses(self) -> List[FileStatusRecord]:
        return await self._store.list_all()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def retry_file(self, name: str, actor: str) -> OperationResult:
        """Move a file from the failed folder back to import and requeue its record."""
        try:
            self._require_plain_name(name)
            source = self._paths.failed_file(name)
            target = self._paths.import_file(name)

            if not await file_operations.file_exists(source):
                raise FileMissingError(f"File not found in failed directory: {name}")
            if await file_operations.file_exists(target):
                raise NameConflictError(
                    f'A file named "{name}" already exists in the import directory.'
                )

            await self._move(source, target, name)

            record = await self._store.get(name)
            if record:
                updated = self._state_machine.requeue(
                    record, remarks=f"Retrying file. [user: {actor}]"
                )
                await self._commit_status(
                    lambda: self._store.upsert(updated),
                    f"File '{name}' was moved to import",
                )
        except LifecycleError as e:
            await self._audit(
                AuditLevel.ERROR, actor, "FILE_RETRY_FAILED",
                f"Attempted to retry file '{name}'. Error: {e.message}",
            )
            return self._failure(e)
        except Exception as e:
            return await self._unexpected(e, actor, "FILE_RETRY_FAILED", f"retry file '{name}'")

        logging.info(f"File retried: {name} (by {actor})")
        await self._audit(
            AuditLevel.AUDIT, actor, "FILE_RETRY",
            f"File '{name}' was moved from failed to import for retry.",
        )
        return OperationResult.ok()

    async def rename_file(self, old_name: str, new_name: str, actor: str) -> OperationResult:
        """Move failed/old_name to import/new_name and give it a fresh status identity."""
        try:
            self._require_plain_name(old_name)
            self._require_plain_name(new_name)
            source = self._paths.failed_file(old_name)
            target = self._paths.import_file(new_name)

            if await file_operations.file_exists(target):
                raise NameConflictError(
                    f'A file named "{new_name}" already exists in the import directory.'
                )
            if not await file_operations.file_exists(source):
                raise FileMissingError(f"File not found to rename: {old_name}")

            await self._move(source, target, old_name)

            old_record = await self._store.get(old_name)
            if old_record:
                self._note_drift(old_record)
            new_record = FileStatusRecord.new_processing(
                name=new_name,
                source=self._paths.import_label,
                remarks=f'Renamed from "{old_name}" and retrying. [user: {actor}]',
            )
            await self._commit_status(
                lambda: self._store.bulk_upsert([new_record], delete_names=[old_name]),
                f"File '{old_name}' was moved to import as '{new_name}'",
            )
        except LifecycleError as e:
            await self._audit(
                AuditLevel.ERROR, actor, "FILE_RENAME_FAILED",
                f"Attempted to rename '{old_name}' to '{new_name}'. Error: {e.message}",
            )
            return self._failure(e)
        except Exception as e:
            return await self._unexpected(
                e, actor, "FILE_RENAME_FAILED", f"rename '{old_name}' to '{new_name}'"
            )

        logging.info(f"File renamed and retried: {old_name} -> {new_name} (by {actor})")
        await self._audit(
            AuditLevel.AUDIT, actor, "FILE_RENAME_AND_RETRY",
            f"File '{old_name}' was renamed to '{new_name}' and moved to import.",
        )
        return OperationResult.ok()

    async def delete_failed_file(self, name: str, actor: str = "system") -> OperationResult:
        """
        Unlink a file from the failed folder and drop its record.

        An already-missing file is not an error: the record is removed anyway
        and the result carries a warning.
        """
        warning = None
        try:
            self._require_plain_name(name)
            path = self._paths.failed_file(name)

            try:
                await file_operations.remove_file(path)
            except OSError as e:
                if self._classifier.classify(e) != ErrorKind.NOT_FOUND:
                    raise self._translate(
                        e,
                        denied=(
                            f"Permission denied: cannot delete '{name}' from the "
                            f"{self._failed_label} folder. Please check folder permissions."
                        ),
                    ) from e
                warning = MISSING_ON_DELETE
                logging.warning(f"Delete requested for missing file, removing status only: {name}")

            await self._commit_status(
                lambda: self._store.delete(name),
                f"File '{name}' was deleted from disk",
            )
        except LifecycleError as e:
            await self._audit(
                AuditLevel.ERROR, actor, "FILE_DELETE_FAILED",
                f"Attempted to delete file '{name}'. Error: {e.message}",
            )
            return self._failure(e)
        except Exception as e:
            return await self._unexpected(e, actor, "FILE_DELETE_FAILED", f"delete file '{name}'")

        if warning:
            await self._audit(
                AuditLevel.WARN, actor, "FILE_DELETED",
                f"File '{name}' was already absent from the failed directory; its status entry was removed.",
            )
        else:
            logging.info(f"File deleted: {name} (by {actor})")
            await self._audit(
                AuditLevel.AUDIT, actor, "FILE_DELETED",
                f"Permanently deleted file '{name}' from the failed directory.",
            )
        return OperationResult.ok(warning=warning)

    async def expand_file_prefixes(self, name: str, actor: str) -> OperationResult:
        """
        Fan a multi-prefix file out into one import copy per prefix.

        Copies are all-or-nothing on disk (rolled back by deletion); the new
        records are written in one store transaction together with the
        removal of the original's record.
        """
        try:
            self._require_plain_name(name)
            self._paths.require_configured()
            plan = plan_expansion(name)
            source = self._paths.failed_file(name)

            if not await file_operations.file_exists(source):
                raise FileMissingError(f"File not found in failed directory: {name}")
            for target_name in plan.target_names:
                if await file_operations.file_exists(self._paths.import_file(target_name)):
                    raise NameConflictError(
                        f'A file named "{target_name}" already exists in the import directory. '
                        f"Expansion aborted."
                    )

            await self._copy_all(source, plan.target_names)

            new_records = [
                FileStatusRecord.new_processing(
                    name=target_name,
                    source=self._paths.import_label,
                    remarks=f"Expanded from {name}. [user: {actor}]",
                )
                for target_name in plan.target_names
            ]

            original_removed = await self._remove_original(source, name)

            if original_removed:
                old_record = await self._store.get(name)
                if old_record:
                    self._note_drift(old_record)
                await self._commit_status(
                    lambda: self._store.bulk_upsert(new_records, delete_names=[name]),
                    f"File '{name}' was expanded into {plan.count} files on disk",
                    count=plan.count,
                )
            else:
                await self._commit_status(
                    lambda: self._store.bulk_upsert(new_records),
                    f"File '{name}' was expanded into {plan.count} files on disk",
                    count=plan.count,
                )
                raise PartialFailureError(
                    f"Failed to delete original file after expansion. "
                    f"{plan.count} copies were created and are tracked, but '{name}' "
                    f"is still in the {self._failed_label} folder.",
                    count=plan.count,
                )
        except LifecycleError as e:
            await self._audit(
                AuditLevel.ERROR, actor, "FILE_EXPAND_FAILED",
                f"Attempted to expand file '{name}'. Error: {e.message}",
            )
            return self._failure(e)
        except Exception as e:
            return await self._unexpected(e, actor, "FILE_EXPAND_FAILED", f"expand file '{name}'")

        logging.info(f"File expanded: {name} -> {plan.target_names} (by {actor})")
        await self._audit(
            AuditLevel.AUDIT, actor, "FILE_EXPAND",
            f"File '{name}' was expanded into {plan.count} new files.",
        )
        return OperationResult.ok(count=plan.count)

    async def clear_all_file_statuses(self, actor: str = "system") -> OperationResult:
        """Drop every status record. The watched folders are not touched."""
        try:
            removed = await self._store.delete_all()
        except Exception as e:
            return await self._unexpected(e, actor, "DB_CLEAR_FILE_STATUSES_FAILED", "clear file statuses")

        logging.info(f"Cleared {removed} file status records (by {actor})")
        await self._audit(
            AuditLevel.AUDIT, actor, "DB_CLEAR_FILE_STATUSES",
            f"All file statuses were cleared from the database ({removed} records).",
        )
        return OperationResult.ok(count=removed)

    async def purge_stale_statuses(
        self, max_age: Optional[timedelta] = None, actor: str = "system"
    ) -> OperationResult:
        """Drop records not updated within ``max_age`` (default: retention setting)."""
        if max_age is None:
            max_age = timedelta(days=self._settings.status_retention_days)
        if max_age < timedelta(0):
            return OperationResult.failed(ErrorKind.INVALID_INPUT, "Maximum age must not be negative.")

        cutoff = utc_now() - max_age
        try:
            removed = await self._store.delete_older_than(cutoff)
        except Exception as e:
            return await self._unexpected(e, actor, "DB_PURGE_FILE_STATUSES_FAILED", "purge file statuses")

        logging.info(f"Purged {removed} file status records older than {cutoff.isoformat()}")
        await self._audit(
            AuditLevel.AUDIT, actor, "DB_PURGE_FILE_STATUSES",
            f"Removed {removed} file status records last updated before {cutoff.isoformat()}.",
        )
        return OperationResult.ok(count=removed)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @property
    def _failed_label(self) -> str:
        return self._paths.monitored_paths().failed_path.name

    @property
    def _import_label(self) -> str:
        return self._paths.monitored_paths().import_path.name

    @staticmethod
    def _require_plain_name(name: str) -> None:
        if not file_operations.is_plain_file_name(name):
            raise InvalidFileNameError(f"Invalid file name: {name!r}")

    async def _move(self, source: Path, target: Path, name: str) -> None:
        try:
            await file_operations.move_file(source, target)
        except OSError as e:
            raise self._translate(
                e,
                not_found=f"File not found in failed directory: {name}",
                denied=(
                    f"Permission denied: cannot move '{name}' from the {self._failed_label} "
                    f"folder to the {self._import_label} folder. Please check folder permissions."
                ),
                conflict=f'A file named "{target.name}" already exists in the import directory.',
            ) from e

    async def _copy_all(self, source: Path, target_names: List[str]) -> None:
        batch = CopyBatch(source, self._settings.copy_chunk_size)
        for target_name in target_names:
            try:
                await batch.copy_to(self._paths.import_file(target_name))
            except OSError as e:
                logging.error(f"Failed to create copy '{target_name}': {e}")
                leftovers = await batch.rollback()
                if leftovers:
                    names = ", ".join(path.name for path in leftovers)
                    raise PartialFailureError(
                        f"Failed to create copy: {target_name}. Expansion aborted, but "
                        f"{len(leftovers)} copies could not be removed from the "
                        f"{self._import_label} folder: {names}. Manual cleanup required."
                    ) from e
                raise self._translate(
                    e,
                    message=f"Failed to create copy: {target_name}. Expansion aborted.",
                ) from e

    async def _remove_original(self, source: Path, name: str) -> bool:
        try:
            await file_operations.remove_file(source)
        except OSError as e:
            logging.error(f"Failed to delete original expanded file '{name}': {e}")
            return False
        return True

    async def _commit_status(
        self,
        write: Callable[[], Awaitable[object]],
        disk_outcome: str,
        count: Optional[int] = None,
    ) -> None:
        """Run the status write that follows a completed disk mutation."""
        try:
            await write()
        except Exception as e:
            logging.error(f"Status write failed after disk mutation: {disk_outcome}", exc_info=True)
            raise PartialFailureError(
                f"{disk_outcome}, but its status record could not be updated: {e}",
                count=count,
            ) from e

    def _note_drift(self, record: FileStatusRecord) -> None:
        if not self._state_machine.can_transition(record.status, FileStatus.PROCESSING):
            logging.warning(
                f"Status drift for {record.name}: record says '{record.status.value}' "
                f"but the file was in the failed folder"
            )

    def _translate(
        self,
        error: OSError,
        *,
        not_found: Optional[str] = None,
        denied: Optional[str] = None,
        conflict: Optional[str] = None,
        message: Optional[str] = None,
    ) -> LifecycleError:
        kind = self._classifier.classify(error)
        reason = self._classifier.describe(error)
        specific = {
            ErrorKind.NOT_FOUND: not_found,
            ErrorKind.PERMISSION_DENIED: denied,
            ErrorKind.CONFLICT: conflict,
        }.get(kind)
        text = specific or (f"{message} ({reason})" if message else f"An unexpected error occurred: {reason}")
        return _ERROR_TYPES.get(kind, FolderIOError)(text)

    @staticmethod
    def _failure(error: LifecycleError) -> OperationResult:
        count = error.count if isinstance(error, PartialFailureError) else None
        return OperationResult.failed(error.kind, error.message, count=count)

    async def _unexpected(
        self, error: Exception, actor: str, action: str, attempted: str
    ) -> OperationResult:
        logging.error(f"Unexpected error while trying to {attempted}: {error}", exc_info=True)
        await self._audit(
            AuditLevel.ERROR, actor, action,
            f"Attempted to {attempted}. Error: {error}",
        )
        return OperationResult.failed(
            ErrorKind.IO_ERROR, f"An unexpected error occurred: {error}"
        )

    async def _audit(self, level: AuditLevel, actor: str, action: str, details: str) -> None:
        """Best effort: a failing audit write never changes the operation's outcome."""
        try:
            await self._audit_sink.record(
                AuditEntry(level=level, actor=actor, action=action, details=details)
            )
        except Exception as e:
            logging.warning(f"Audit record '{action}' could not be written: {e}")
