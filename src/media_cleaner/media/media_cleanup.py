"""Control flow of one cleanup run: cache offer, scan, confirmation, deletion."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, Protocol, Sequence, TypeVar

import structlog

from ..repositories.interfaces import MediaRepository
from .audit_log import AuditLogWriter
from .deleter import MediaDeleter
from .locations import SearchLocation, label_for
from .media_models import TIMESTAMP_FORMAT, DeletionReport, ScanReport, ScanSnapshot
from .scanner import MediaScanner
from .snapshot_store import SnapshotStore
from .usage_prober import UsageProber

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class Prompter(Protocol):
    """Operator interaction used by :class:`CleanupWorkflow`."""

    def line(self, message: str = "") -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def confirm(self, question: str) -> bool: ...

    def select_locations(self) -> list[SearchLocation]: ...

    def progress(self, items: Sequence[T], description: str) -> Iterable[T]: ...


@dataclass(slots=True)
class CleanupOutcome:
    dry_run: bool
    scan: ScanReport | None = None
    deletion: DeletionReport | None = None
    snapshot_path: Path | None = None
    used_cache: bool = False
    aborted: bool = False


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


def human_time_diff(since: datetime, now: datetime) -> str:
    """Return a short age such as ``"3 hours"``."""
    seconds = max(0, int((now - since).total_seconds()))
    for unit, size in (("day", 86400), ("hour", 3600), ("min", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''}"
    count = max(seconds, 1)
    return f"{count} second{'s' if count != 1 else ''}"


class CleanupWorkflow:
    """Run the scan and deletion passes for a single command invocation."""

    def __init__(
        self,
        *,
        media_repo: MediaRepository,
        prober: UsageProber,
        snapshots: SnapshotStore,
        logs_dir: Path,
        prompter: Prompter,
        locations: Sequence[SearchLocation] | None = None,
        cache_max_age: timedelta | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._media_repo = media_repo
        self._prober = prober
        self._snapshots = snapshots
        self._logs_dir = logs_dir
        self._prompter = prompter
        self._locations = list(locations) if locations is not None else None
        self._cache_max_age = cache_max_age
        self._clock = clock or _default_clock

    def run(self, *, dry_run: bool = False, skip_cache: bool = False) -> CleanupOutcome:
        outcome = CleanupOutcome(dry_run=dry_run)
        structlog.contextvars.bind_contextvars(dry_run=dry_run)
        try:
            with AuditLogWriter(self._logs_dir, clock=self._clock) as audit_log:
                deleter = MediaDeleter(
                    self._media_repo,
                    audit_log,
                    clock=self._clock,
                    progress=self._prompter.progress,
                )
                if not dry_run and not skip_cache:
                    latest = self._snapshots.find_latest(max_age=self._cache_max_age, now=self._clock())
                    if latest is not None:
                        self._run_from_cache(latest, deleter, outcome)
                        return outcome
                self._run_scan(audit_log, deleter, outcome)
                return outcome
        finally:
            structlog.contextvars.unbind_contextvars("dry_run")

    def _run_from_cache(self, path: Path, deleter: MediaDeleter, outcome: CleanupOutcome) -> None:
        snapshot = self._snapshots.load(path)
        outcome.used_cache = True
        outcome.snapshot_path = path
        prompter = self._prompter

        created_at = snapshot.created_at.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
        prompter.line(
            f"\nFound a cache file from {human_time_diff(snapshot.created_at, self._clock())} ago "
            f"({created_at} UTC)."
        )
        prompter.line(
            f"The file contains {len(snapshot.unused)} attachments marked as 'Unused' and "
            f"{len(snapshot.broken)} marked as 'Broken Link'."
        )
        if not prompter.confirm(
            "\nDo you want to use this cache file to proceed with deletion?\n"
            "Using a cache file is much faster than running a new scan."
        ):
            outcome.aborted = True
            return
        self._delete(snapshot, deleter, outcome)

    def _run_scan(self, audit_log: AuditLogWriter, deleter: MediaDeleter, outcome: CleanupOutcome) -> None:
        prompter = self._prompter
        locations = self._locations if self._locations is not None else prompter.select_locations()
        prompter.line(
            "\nExcellent. We will search in: " + ", ".join(label_for(location) for location in locations)
        )

        if outcome.dry_run:
            prompter.line("\nStarting analysis in --dry-run mode. NO files will be deleted.")
        else:
            prompter.line("\nStarting analysis. This may take a while.")

        prompter.line("\nStep 1/2: Finding all media attachments...")
        items = self._media_repo.list_media()
        if not items:
            outcome.scan = ScanReport()
            prompter.success("No media attachments found to analyze.")
            return

        prompter.line(f"Found {len(items)} media attachments to analyze.")
        prompter.line("\nStep 2/2: Analyzing media usage...")
        scanner = MediaScanner(
            self._prober,
            self._snapshots,
            audit_log,
            clock=self._clock,
            progress=prompter.progress,
        )
        report = scanner.scan(items, locations, dry_run=outcome.dry_run)
        outcome.scan = report
        outcome.snapshot_path = report.snapshot.path if report.snapshot else None
        self._summarize_scan(report, outcome)

        if outcome.dry_run:
            prompter.line(
                "\nTo delete these files, run the cleanup again without --dry-run "
                "and confirm you want to use this cache file."
            )
            return
        if report.to_delete == 0 or report.snapshot is None:
            prompter.success("No unused or broken media found to delete.")
            return
        if not prompter.confirm(
            f"\nReady to delete {report.to_delete} attachments. This is irreversible. Proceed?"
        ):
            outcome.aborted = True
            return
        self._delete(report.snapshot, deleter, outcome)

    def _delete(self, snapshot: ScanSnapshot, deleter: MediaDeleter, outcome: CleanupOutcome) -> None:
        prompter = self._prompter
        ids = deleter.ids_for(snapshot)
        if not ids:
            outcome.deletion = DeletionReport()
            prompter.success("No items found in cache file to delete.")
            return

        prompter.warning(
            f"You are about to permanently delete {len(ids)} media attachments from the media "
            "library and the server.\nThis action is IRREVERSIBLE."
        )
        if not prompter.confirm("Are you absolutely sure you want to continue?"):
            outcome.aborted = True
            return

        prompter.line("\nProceeding with deletion...")
        report = deleter.delete_snapshot(snapshot)
        outcome.deletion = report
        for attachment_id in report.failed_ids:
            prompter.warning(f"Failed to delete attachment ID: {attachment_id}")

        prompter.line("\n-------------------------------")
        prompter.success("Deletion Complete!")
        prompter.line("-------------------------------")
        prompter.line("Summary:")
        prompter.line(f"- Attachments Deleted: {report.deleted}")
        if report.failed_ids:
            prompter.line(f"- Deletions Failed: {len(report.failed_ids)}")
        prompter.line(f"\nA detailed log of all actions taken has been saved to:\n{report.log_path}")

    def _summarize_scan(self, report: ScanReport, outcome: CleanupOutcome) -> None:
        prompter = self._prompter
        prompter.line("\n-------------------------------")
        prompter.success("Dry Run Complete!" if outcome.dry_run else "Scan Complete!")
        prompter.line("-------------------------------")
        prompter.line("Summary:")
        prompter.line(f"- Total Media Analyzed: {report.total}")
        prompter.line(f"- Media Kept (In Use): {report.kept}")
        prompter.line(f"- Found Unused: {report.unused}")
        prompter.line(f"- Found with Broken File Links: {report.broken}")
        prompter.line(f"\nA log file has been created at:\n{report.log_path}")
        prompter.line(f"\nA cache file has been created at:\n{outcome.snapshot_path}")


__all__ = ["CleanupOutcome", "CleanupWorkflow", "Prompter", "human_time_diff"]
