from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, ConfigDict


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    return f"file-{uuid4().hex}"


class FileStatus(str, Enum):
    """
    Lifecycle status of a file tracked in the watched folders.

    External pipeline: processing -> published | failed | timed-out
    Operator actions:  failed -> processing (retry, rename, expand)
                       failed -> (record removed) (delete)
    """

    PROCESSING = "processing"
    PUBLISHED = "published"
    FAILED = "failed"
    TIMED_OUT = "timed-out"


class ErrorKind(str, Enum):
    """Failure classes reported by lifecycle operations."""

    CONFIGURATION = "configuration"  # Watched path not configured
    NOT_FOUND = "not_found"  # Expected file absent
    PERMISSION_DENIED = "permission_denied"
    CONFLICT = "conflict"  # Target name already taken
    PARTIAL_FAILURE = "partial_failure"  # Some but not all state mutated
    NOT_EXPANDABLE = "not_expandable"
    INVALID_INPUT = "invalid_input"
    IO_ERROR = "io_error"


class AuditLevel(str, Enum):
    INFO = "INFO"
    AUDIT = "AUDIT"
    WARN = "WARN"
    ERROR = "ERROR"


class FileStatusRecord(BaseModel):
    """
    Persisted lifecycle entry for one file, keyed by ``name``.

    Serialized with the field names ``id,name,status,source,lastUpdated,remarks``
    for import/export (use ``by_alias=True``).
    """

    id: str = Field(
        default_factory=new_record_id,
        description="Opaque identifier, fresh for every new file identity",
    )

    name: str = Field(..., min_length=1, description="File name in a watched folder")

    status: FileStatus = Field(
        default=FileStatus.PROCESSING, description="Current lifecycle status"
    )

    source: str = Field(..., description="Label of the watched folder that produced it")

    last_updated: datetime = Field(
        default_factory=utc_now,
        alias="lastUpdated",
        description="Refreshed on every status transition",
    )

    remarks: str = Field(default="", description="Free-text annotation")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "file-4f1c0b3e9a3d4b53a0c2f7d6e1a2b3c4",
                "name": "PB_20240101_news_v1.mxf",
                "status": "processing",
                "source": "Import",
                "lastUpdated": "2024-01-01T10:15:00+00:00",
                "remarks": "Expanded from PBCC_20240101_news_v1.mxf. [user: admin]",
            }
        },
    )

    @classmethod
    def new_processing(cls, name: str, source: str, remarks: str = "") -> "FileStatusRecord":
        """A brand new identity entering the import folder."""
        return cls(name=name, status=FileStatus.PROCESSING, source=source, remarks=remarks)


class MonitoredPath(BaseModel):
    name: str = Field(..., description="Display label")
    path: str = Field(default="", description="Absolute directory, empty if unset")

    @property
    def is_configured(self) -> bool:
        return bool(self.path and self.path.strip())


class MonitoredPaths(BaseModel):
    import_path: MonitoredPath
    failed_path: MonitoredPath


class AuditEntry(BaseModel):
    id: str = Field(default_factory=lambda: f"log-{uuid4().hex}")
    timestamp: datetime = Field(default_factory=utc_now)
    level: AuditLevel = AuditLevel.AUDIT
    actor: str = "system"
    action: str
    details: str = ""


class WriteAccessResult(BaseModel):
    can_write: bool
    error: Optional[str] = None


class OperationResult(BaseModel):
    """Outcome of a lifecycle operation. Never raised, always returned."""

    success: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    warning: Optional[str] = None
    count: Optional[int] = None

    @classmethod
    def ok(cls, *, count: Optional[int] = None, warning: Optional[str] = None) -> "OperationResult":
        return cls(success=True, count=count, warning=warning)

    @classmethod
    def failed(
        cls, kind: ErrorKind, error: str, *, count: Optional[int] = None
    ) -> "OperationResult":
        return cls(success=False, error=error, error_kind=kind, count=count)


class ImportResult(BaseModel):
    imported_count: int = 0
    error: Optional[str] = None


class ExportResult(BaseModel):
    content: Optional[str] = None
    count: int = 0
    error: Optional[str] = None
