import logging
from pathlib import Path

import aiofiles.os

from lookout.config import Settings
from lookout.core.error_classifier import ErrorClassifier
from lookout.core.exceptions import ConfigurationError
from lookout.models import (
    ErrorKind,
    MonitoredPath,
    MonitoredPaths,
    OperationResult,
    WriteAccessResult,
)
from lookout.utils import file_operations

NOT_CONFIGURED = "Monitored paths are not configured in Settings."


class PathResolver:
    """
    Resolves the logical watched folders (import, failed) to directories and
    checks that the application can write to them.
    """

    def __init__(self, settings: Settings, classifier: ErrorClassifier | None = None):
        self._settings = settings
        self._classifier = classifier or ErrorClassifier()

    def monitored_paths(self) -> MonitoredPaths:
        return MonitoredPaths(
            import_path=MonitoredPath(
                name=self._settings.import_label, path=self._settings.import_directory
            ),
            failed_path=MonitoredPath(
                name=self._settings.failed_label, path=self._settings.failed_directory
            ),
        )

    def require_configured(self) -> MonitoredPaths:
        """
        Raises:
            ConfigurationError: if either watched folder is unset.
        """
        paths = self.monitored_paths()
        if not paths.import_path.is_configured or not paths.failed_path.is_configured:
            raise ConfigurationError(NOT_CONFIGURED)
        return paths

    @property
    def import_label(self) -> str:
        return self._settings.import_label

    def import_file(self, name: str) -> Path:
        return Path(self.require_configured().import_path.path) / name

    def failed_file(self, name: str) -> Path:
        return Path(self.require_configured().failed_path.path) / name

    async def check_write_access(self) -> WriteAccessResult:
        """
        Probe both folders by creating and removing a uniquely named file.
        Advisory only: permissions can change right after the check.
        """
        try:
            paths = self.require_configured()
        except ConfigurationError as e:
            return WriteAccessResult(can_write=False, error=e.message)

        for folder in (paths.import_path, paths.failed_path):
            error = await self._probe_folder(folder)
            if error:
                logging.warning(f"Write access check failed: {error}")
                return WriteAccessResult(can_write=False, error=error)

        logging.debug("Write access verified for both watched folders")
        return WriteAccessResult(can_write=True)

    async def _probe_folder(self, folder: MonitoredPath) -> str | None:
        try:
            probe_path = await file_operations.write_probe_file(
                folder.path, self._settings.write_probe_prefix
            )
            await file_operations.remove_file(probe_path)
        except OSError as e:
            kind = self._classifier.classify(e)
            if kind == ErrorKind.PERMISSION_DENIED:
                return (
                    f"Permission denied on the {folder.name} folder. "
                    f'The application cannot create files in "{folder.path}".'
                )
            if kind == ErrorKind.NOT_FOUND:
                return (
                    f'The {folder.name} folder path does not exist: "{folder.path}". '
                    f"Please verify the path in Settings."
                )
            return f"An unexpected error occurred with the {folder.name} folder: {e}"
        return None

    async def test_path(self, path: str) -> OperationResult:
        """Check that an arbitrary directory or file exists and is reachable."""
        if not path or not path.strip():
            return OperationResult.failed(ErrorKind.INVALID_INPUT, "A path is required.")
        try:
            await aiofiles.os.stat(path)
        except OSError as e:
            kind = self._classifier.classify(e)
            if kind == ErrorKind.NOT_FOUND:
                return OperationResult.failed(kind, f"Path does not exist: {path}")
            if kind == ErrorKind.PERMISSION_DENIED:
                return OperationResult.failed(kind, f"Permission denied: {path}")
            return OperationResult.failed(kind, f"An unexpected error occurred: {e}")
        return OperationResult.ok()

    async def cleanup_probe_files(self) -> int:
        """
        Remove probe files left behind by an interrupted write check.

        Returns:
            Number of files removed
        """
        cleaned_count = 0
        for folder in (self.monitored_paths().import_path, self.monitored_paths().failed_path):
            if not folder.is_configured or not await aiofiles.os.path.isdir(folder.path):
                continue
            try:
                for entry in await aiofiles.os.scandir(folder.path):
                    if (
                        entry.is_file()
                        and entry.name.startswith(self._settings.write_probe_prefix)
                        and entry.name.endswith(".tmp")
                    ):
                        try:
                            await aiofiles.os.remove(entry.path)
                            cleaned_count += 1
                        except OSError as e:
                            logging.warning(f"Could not remove old probe file {entry.path}: {e}")
            except OSError as e:
                logging.error(f"Error during probe file cleanup in {folder.path}: {e}")

        if cleaned_count > 0:
            logging.info(f"Cleaned up {cleaned_count} old write probe files")
        return cleaned_count
