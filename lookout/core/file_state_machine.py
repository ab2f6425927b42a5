import logging
from typing import Dict, Set

from lookout.models import FileStatus, FileStatusRecord, utc_now
from lookout.core.exceptions import InvalidTransitionError


class FileStateMachine:
    """
    The single place that knows which status transitions are legal and that
    builds the transitioned record.

    It does not persist anything: the lifecycle engine decides when the new
    record is written, so the write can follow the disk mutation.
    """

    def __init__(self):
        self._transitions: Dict[FileStatus, Set[FileStatus]] = {
            # Driven by the external pipeline
            FileStatus.PROCESSING: {
                FileStatus.PUBLISHED,
                FileStatus.FAILED,
                FileStatus.TIMED_OUT,
            },
            # Retry, rename and expand
            FileStatus.FAILED: {
                FileStatus.PROCESSING,
            },
            # Terminal for this core (only bulk clear removes them)
            FileStatus.PUBLISHED: set(),
            FileStatus.TIMED_OUT: set(),
        }
        logging.info(f"FileStateMachine initialized with {len(self._transitions)} transition rules")

    def can_transition(self, from_status: FileStatus, to_status: FileStatus) -> bool:
        return to_status in self._transitions.get(from_status, set())

    def transition(
        self,
        record: FileStatusRecord,
        new_status: FileStatus,
        **changes,
    ) -> FileStatusRecord:
        """
        Return a copy of ``record`` moved to ``new_status`` with a refreshed
        timestamp and any extra field ``changes`` applied (e.g. remarks).

        Raises:
            InvalidTransitionError: if the transition is not allowed.
        """
        old_status = record.status
        if not self.can_transition(old_status, new_status):
            raise InvalidTransitionError(record.name, old_status.value, new_status.value)

        logging.info(f"Transition: {record.name} | {old_status.value} -> {new_status.value}")
        updates = {key: value for key, value in changes.items() if key in FileStatusRecord.model_fields}
        updates["status"] = new_status
        updates["last_updated"] = utc_now()
        return record.model_copy(update=updates)

    def requeue(self, record: FileStatusRecord, remarks: str) -> FileStatusRecord:
        """
        failed -> processing for a file that was found in the failed folder.

        The file's presence in the failed folder is authoritative: a record
        still saying processing/published/timed-out has drifted, so it is
        re-based to failed (with a warning) before the transition.
        """
        if record.status != FileStatus.FAILED:
            logging.warning(
                f"Status drift for {record.name}: record says '{record.status.value}' "
                f"but the file is in the failed folder; treating it as failed"
            )
            record = record.model_copy(update={"status": FileStatus.FAILED})
        return self.transition(record, FileStatus.PROCESSING, remarks=remarks)
