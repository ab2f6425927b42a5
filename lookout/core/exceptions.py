# lookout/core/exceptions.py

from lookout.models import ErrorKind


class InvalidTransitionError(Exception):
    """Raised when a file status transition is not allowed."""
    def __init__(self, name: str, from_status: str, to_status: str):
        self.name = name
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid state transition for {name}: "
            f"Cannot move from '{from_status}' to '{to_status}'."
        )


class LifecycleError(Exception):
    """Base for failures the lifecycle engine reports back as results."""

    kind: ErrorKind = ErrorKind.IO_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(LifecycleError):
    kind = ErrorKind.CONFIGURATION


class FileMissingError(LifecycleError):
    kind = ErrorKind.NOT_FOUND


class FolderPermissionError(LifecycleError):
    kind = ErrorKind.PERMISSION_DENIED


class NameConflictError(LifecycleError):
    kind = ErrorKind.CONFLICT


class NotExpandableError(LifecycleError):
    kind = ErrorKind.NOT_EXPANDABLE


class InvalidFileNameError(LifecycleError):
    kind = ErrorKind.INVALID_INPUT


class FolderIOError(LifecycleError):
    kind = ErrorKind.IO_ERROR


class PartialFailureError(LifecycleError):
    """Some state was mutated and some was not; manual reconciliation may be needed."""

    kind = ErrorKind.PARTIAL_FAILURE

    def __init__(self, message: str, count: int | None = None):
        self.count = count
        super().__init__(message)
