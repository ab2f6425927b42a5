"""
Copy Batch - the compensating action for multi-file copies.

Filesystem copies cannot join a database transaction, so a batch remembers
every file it created and can delete them again if a later step fails.
"""

import logging
from pathlib import Path
from typing import List

from lookout.utils import file_operations


class CopyBatch:
    """
    Tracks the copies made during one operation attempt.

    Usage:
        batch = CopyBatch(source, chunk_size)
        try:
            for target in targets:
                await batch.copy_to(target)
        except OSError:
            leftovers = await batch.rollback()
    """

    def __init__(self, source_path: Path, chunk_size: int = file_operations.DEFAULT_CHUNK_SIZE):
        self._source_path = source_path
        self._chunk_size = chunk_size
        self._created: List[Path] = []

    @property
    def created(self) -> List[Path]:
        return list(self._created)

    async def copy_to(self, dest_path: Path) -> None:
        """Copy the source to ``dest_path``; only recorded once the copy completed."""
        await file_operations.copy_file(self._source_path, dest_path, self._chunk_size)
        self._created.append(dest_path)
        logging.debug(f"Batch copy created: {dest_path}")

    async def rollback(self) -> List[Path]:
        """
        Delete every copy made by this batch, newest first.

        Returns:
            Paths that could not be removed (empty when the rollback was clean).
        """
        leftovers: List[Path] = []
        for path in reversed(self._created):
            try:
                await file_operations.remove_file(path)
                logging.info(f"Rolled back copy: {path}")
            except FileNotFoundError:
                # Already gone (external pipeline picked it up); nothing to undo
                logging.warning(f"Rollback target already missing: {path}")
            except OSError as e:
                logging.error(f"Rollback could not remove {path}: {e}")
                leftovers.append(path)
        self._created = list(reversed(leftovers))
        return leftovers
