"""Classification pass over every attachment."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence

import structlog

from .audit_log import AuditLogWriter
from .locations import SearchLocation
from .media_models import (
    AuditAction,
    AuditLogEntry,
    Classification,
    MediaItem,
    ScanReport,
    ScanSnapshot,
)
from .snapshot_store import SnapshotStore
from .usage_prober import UsageProber

logger = structlog.get_logger(__name__)

Progress = Callable[[Sequence[MediaItem], str], Iterable[MediaItem]]


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


def _no_progress(items: Sequence[MediaItem], _description: str) -> Iterable[MediaItem]:
    return items


def file_is_missing(item: MediaItem) -> bool:
    return item.path is None or not item.path.exists()


class MediaScanner:
    """Classify attachments as used, unused or broken and snapshot the result."""

    def __init__(
        self,
        prober: UsageProber,
        snapshots: SnapshotStore,
        audit_log: AuditLogWriter,
        *,
        clock: Callable[[], datetime] | None = None,
        progress: Progress | None = None,
    ) -> None:
        self._prober = prober
        self._snapshots = snapshots
        self._audit_log = audit_log
        self._clock = clock or _default_clock
        self._progress = progress or _no_progress

    def classify(self, item: MediaItem, locations: Sequence[SearchLocation]) -> Classification:
        # Missing files are never probed.
        if file_is_missing(item):
            return Classification.BROKEN_LINK
        if self._prober.probe(item, locations):
            return Classification.USED
        return Classification.UNUSED

    def scan(
        self,
        items: Sequence[MediaItem],
        locations: Sequence[SearchLocation],
        *,
        dry_run: bool,
    ) -> ScanReport:
        """Classify ``items`` in order, log every decision and save a snapshot.

        An empty ``items`` sequence returns an empty report without creating a
        snapshot or a log file.
        """
        report = ScanReport(total=len(items))
        if not items:
            logger.info("media.scan.empty")
            return report

        report.log_path = self._audit_log.ensure_open()
        started_at = self._clock()
        pending_action = AuditAction.SKIPPED_DRY_RUN if dry_run else AuditAction.TO_BE_DELETED
        unused: list[int] = []
        broken: list[int] = []

        for item in self._progress(items, "Analyzing media"):
            status = self.classify(item, locations)
            if status is Classification.USED:
                report.kept += 1
                action = AuditAction.KEPT
            elif status is Classification.BROKEN_LINK:
                broken.append(item.id)
                action = pending_action
            else:
                unused.append(item.id)
                action = pending_action

            entry = AuditLogEntry(
                attachment_id=item.id,
                file_name=item.file_name,
                upload_folder=item.upload_folder,
                status=status,
                action=action,
                timestamp=self._clock(),
            )
            self._audit_log.append(entry)
            report.entries.append(entry)
            logger.debug(
                "media.scan.classified",
                attachment_id=item.id,
                status=status.value,
                action=action.value,
            )

        report.unused = len(unused)
        report.broken = len(broken)
        report.snapshot = self._snapshots.save(
            ScanSnapshot(unused=tuple(unused), broken=tuple(broken), created_at=started_at)
        )
        logger.info(
            "media.scan.completed",
            total=report.total,
            kept=report.kept,
            unused=report.unused,
            broken=report.broken,
            dry_run=dry_run,
        )
        return report


__all__ = ["MediaScanner", "file_is_missing"]
