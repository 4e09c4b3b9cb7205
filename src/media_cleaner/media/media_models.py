"""Media data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

AUDIT_LOG_HEADER = (
    "Attachment ID",
    "File Name",
    "Upload Folder",
    "Status",
    "Action Taken",
    "Timestamp",
)


class Classification(str, Enum):
    """Status of an attachment as written to the audit log."""

    USED = "Used"
    UNUSED = "Unused"
    BROKEN_LINK = "Broken Link"
    ERROR = "Error"


class AuditAction(str, Enum):
    """Action recorded next to each classification."""

    KEPT = "Kept"
    TO_BE_DELETED = "To Be Deleted"
    SKIPPED_DRY_RUN = "Skipped (Dry Run)"
    DELETED = "Deleted"
    DELETION_FAILED = "Deletion Failed"


@dataclass(frozen=True, slots=True)
class MediaItem:
    id: int
    path: Path | None
    file_name: str
    upload_folder: str
    url: str


@dataclass(frozen=True, slots=True)
class ScanSnapshot:
    """Unused and broken attachment IDs captured by one scan.

    IDs loaded from disk are kept as found; the deleter filters out anything
    that does not look like an attachment ID.
    """

    unused: tuple[object, ...]
    broken: tuple[object, ...]
    created_at: datetime
    path: Path | None = None

    @property
    def total(self) -> int:
        return len(self.unused) + len(self.broken)

    def to_payload(self) -> dict[str, list[object]]:
        return {"unused_media": list(self.unused), "broken_link_media": list(self.broken)}


@dataclass(frozen=True, slots=True)
class AuditLogEntry:
    attachment_id: int
    file_name: str
    upload_folder: str
    status: Classification
    action: AuditAction
    timestamp: datetime

    def as_row(self) -> list[str]:
        return [
            str(self.attachment_id),
            self.file_name,
            self.upload_folder,
            self.status.value,
            self.action.value,
            self.timestamp.strftime(TIMESTAMP_FORMAT),
        ]


@dataclass(slots=True)
class ScanReport:
    """Outcome of a scan pass."""

    snapshot: ScanSnapshot | None = None
    entries: list[AuditLogEntry] = field(default_factory=list)
    total: int = 0
    kept: int = 0
    unused: int = 0
    broken: int = 0
    log_path: Path | None = None

    @property
    def to_delete(self) -> int:
        return self.unused + self.broken


@dataclass(slots=True)
class DeletionReport:
    """Outcome of a deletion pass."""

    requested: int = 0
    deleted: int = 0
    failed_ids: list[int] = field(default_factory=list)
    entries: list[AuditLogEntry] = field(default_factory=list)
    log_path: Path | None = None


__all__ = [
    "AUDIT_LOG_HEADER",
    "AuditAction",
    "AuditLogEntry",
    "Classification",
    "DeletionReport",
    "MediaItem",
    "ScanReport",
    "ScanSnapshot",
    "TIMESTAMP_FORMAT",
]
