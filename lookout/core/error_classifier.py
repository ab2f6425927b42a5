"""
Error Classifier for Publish Lookout.

Maps the OS errors raised by rename/unlink/copy calls on the watched folders
onto the lifecycle error taxonomy. The error from the actual filesystem call
is authoritative; existence checks made before it are only advisory.
"""

import errno
import logging
from typing import Optional

from lookout.models import ErrorKind


_NOT_FOUND_ERRNOS = {errno.ENOENT, errno.ENOTDIR}
_PERMISSION_ERRNOS = {errno.EACCES, errno.EPERM, errno.EROFS}
_CONFLICT_ERRNOS = {errno.EEXIST, errno.ENOTEMPTY}


class ErrorClassifier:
    """
    Classifies filesystem errors into ErrorKind values.

    Exception type is checked first (FileNotFoundError, PermissionError,
    FileExistsError), then the raw errno for OSErrors raised by wrappers
    that do not map to the specific subclasses.
    """

    def __init__(self):
        self._logger = logging.getLogger("lookout.error_classifier")

    def classify(self, error: BaseException) -> ErrorKind:
        if isinstance(error, FileNotFoundError):
            return ErrorKind.NOT_FOUND
        if isinstance(error, PermissionError):
            return ErrorKind.PERMISSION_DENIED
        if isinstance(error, FileExistsError):
            return ErrorKind.CONFLICT

        errno_code: Optional[int] = getattr(error, "errno", None)
        if errno_code in _NOT_FOUND_ERRNOS:
            return ErrorKind.NOT_FOUND
        if errno_code in _PERMISSION_ERRNOS:
            return ErrorKind.PERMISSION_DENIED
        if errno_code in _CONFLICT_ERRNOS:
            return ErrorKind.CONFLICT

        self._logger.debug(f"Unclassified filesystem error treated as I/O error: {error!r}")
        return ErrorKind.IO_ERROR

    @staticmethod
    def describe(error: BaseException) -> str:
        """Short human-readable reason, without the file path noise."""
        strerror = getattr(error, "strerror", None)
        return strerror or str(error) or type(error).__name__
