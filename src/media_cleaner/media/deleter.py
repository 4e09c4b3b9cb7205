"""Deletion pass over the attachments collected by a scan."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence

import structlog

from ..exceptions import RepositoryError
from ..repositories.interfaces import MediaRepository
from .audit_log import AuditLogWriter
from .media_models import AuditAction, AuditLogEntry, Classification, DeletionReport, ScanSnapshot

logger = structlog.get_logger(__name__)

Progress = Callable[[Sequence[int], str], Iterable[int]]


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


def _no_progress(ids: Sequence[int], _description: str) -> Iterable[int]:
    return ids


def normalize_ids(values: Iterable[object]) -> list[int]:
    """Keep values that look like attachment IDs, deduplicated in order.

    Accepts integers and strings of digits; anything else (booleans, floats,
    nested objects, blank or signed strings) is dropped.
    """
    seen: set[int] = set()
    result: list[int] = []
    for value in values:
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            candidate = value
        elif isinstance(value, str) and value.strip().isdecimal():
            candidate = int(value.strip())
        else:
            continue
        if candidate < 0 or candidate in seen:
            continue
        seen.add(candidate)
        result.append(candidate)
    return result


class MediaDeleter:
    """Permanently remove attachments and record every outcome."""

    def __init__(
        self,
        media_repo: MediaRepository,
        audit_log: AuditLogWriter,
        *,
        clock: Callable[[], datetime] | None = None,
        progress: Progress | None = None,
    ) -> None:
        self._media_repo = media_repo
        self._audit_log = audit_log
        self._clock = clock or _default_clock
        self._progress = progress or _no_progress

    @staticmethod
    def ids_for(snapshot: ScanSnapshot) -> list[int]:
        return normalize_ids([*snapshot.unused, *snapshot.broken])

    def delete_snapshot(self, snapshot: ScanSnapshot) -> DeletionReport:
        broken = set(normalize_ids(snapshot.broken))
        return self.delete(self.ids_for(snapshot), is_broken=broken.__contains__)

    def delete(self, ids: Sequence[int], is_broken: Callable[[int], bool]) -> DeletionReport:
        """Delete ``ids`` one by one; failures are recorded and skipped.

        An empty ``ids`` sequence returns an empty report without touching the
        audit log.
        """
        report = DeletionReport(requested=len(ids))
        if not ids:
            logger.info("media.delete.empty")
            return report

        report.log_path = self._audit_log.ensure_open()
        for attachment_id in self._progress(ids, "Deleting media"):
            item = None
            try:
                item = self._media_repo.get_media(attachment_id)
                deleted = self._media_repo.delete_media(attachment_id)
            except RepositoryError as exc:
                logger.warning("media.delete.error", attachment_id=attachment_id, error=str(exc))
                deleted = False

            if deleted:
                report.deleted += 1
                status = Classification.BROKEN_LINK if is_broken(attachment_id) else Classification.UNUSED
                action = AuditAction.DELETED
            else:
                report.failed_ids.append(attachment_id)
                status = Classification.ERROR
                action = AuditAction.DELETION_FAILED
                logger.warning("media.delete.failed", attachment_id=attachment_id)

            entry = AuditLogEntry(
                attachment_id=attachment_id,
                file_name=item.file_name if item else "",
                upload_folder=item.upload_folder if item else "",
                status=status,
                action=action,
                timestamp=self._clock(),
            )
            self._audit_log.append(entry)
            report.entries.append(entry)

        logger.info(
            "media.delete.completed",
            requested=report.requested,
            deleted=report.deleted,
            failed=len(report.failed_ids),
        )
        return report


__all__ = ["MediaDeleter", "normalize_ids"]
