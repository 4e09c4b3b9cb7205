from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from src.media_cleaner.media.audit_log import AuditLogWriter
from src.media_cleaner.media.locations import SearchLocation
from src.media_cleaner.media.media_models import AuditAction, Classification, MediaItem
from src.media_cleaner.media.scanner import MediaScanner
from src.media_cleaner.media.snapshot_store import SnapshotStore

pytestmark = pytest.mark.unit


class RecordingProber:
    def __init__(self, used_ids: set[int] | None = None) -> None:
        self.used_ids = used_ids or set()
        self.calls: list[tuple[int, list[SearchLocation]]] = []

    def probe(self, item: MediaItem, locations) -> bool:
        self.calls.append((item.id, list(locations)))
        return item.id in self.used_ids


def _item(tmp_path: Path, attachment_id: int, name: str, *, exists: bool = True) -> MediaItem:
    folder = tmp_path / "uploads" / "2024" / "01"
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / name
    if exists:
        path.write_bytes(b"x")
    return MediaItem(
        id=attachment_id,
        path=path,
        file_name=name,
        upload_folder="2024/01",
        url=f"https://example.test/wp-content/uploads/2024/01/{name}",
    )


def _scanner(prober, cache_dir, audit_log, clock) -> MediaScanner:
    return MediaScanner(prober, SnapshotStore(cache_dir), audit_log, clock=clock)


def test_used_item_is_kept_and_logged(tmp_path, cache_dir, logs_dir, clock) -> None:
    prober = RecordingProber(used_ids={42})
    item = _item(tmp_path, 42, "logo.png")

    with AuditLogWriter(logs_dir, clock=clock) as audit_log:
        report = _scanner(prober, cache_dir, audit_log, clock).scan(
            [item], [SearchLocation.CONTENT], dry_run=False
        )

    assert report.kept == 1
    assert report.entries[0].as_row() == [
        "42",
        "logo.png",
        "2024/01",
        "Used",
        "Kept",
        "2024-05-01 12:00:00",
    ]
    assert prober.calls == [(42, [SearchLocation.CONTENT])]


def test_missing_files_are_broken_and_never_probed(tmp_path, cache_dir, logs_dir, clock) -> None:
    prober = RecordingProber(used_ids={7, 8})
    missing = _item(tmp_path, 7, "gone.png", exists=False)
    no_path = MediaItem(id=8, path=None, file_name="", upload_folder="", url="")

    with AuditLogWriter(logs_dir, clock=clock) as audit_log:
        report = _scanner(prober, cache_dir, audit_log, clock).scan(
            [missing, no_path], list(SearchLocation), dry_run=True
        )

    assert prober.calls == []
    assert report.broken == 2
    assert [entry.status for entry in report.entries] == [Classification.BROKEN_LINK] * 2
    assert [entry.action for entry in report.entries] == [AuditAction.SKIPPED_DRY_RUN] * 2
    assert report.snapshot is not None
    assert report.snapshot.broken == (7, 8)


def test_unused_items_are_marked_for_deletion_outside_dry_run(
    tmp_path, cache_dir, logs_dir, clock
) -> None:
    item = _item(tmp_path, 5, "old.png")

    with AuditLogWriter(logs_dir, clock=clock) as audit_log:
        report = _scanner(RecordingProber(), cache_dir, audit_log, clock).scan(
            [item], [SearchLocation.META], dry_run=False
        )

    entry = report.entries[0]
    assert entry.status is Classification.UNUSED
    assert entry.action is AuditAction.TO_BE_DELETED


def test_no_locations_leaves_existing_files_unused(tmp_path, cache_dir, logs_dir, clock) -> None:
    prober = RecordingProber(used_ids={1, 2})
    items = [_item(tmp_path, 1, "a.png"), _item(tmp_path, 2, "b.png")]

    with AuditLogWriter(logs_dir, clock=clock) as audit_log:
        report = _scanner(prober, cache_dir, audit_log, clock).scan(items, [], dry_run=True)

    assert report.unused == 2
    assert report.kept == 0


def test_snapshot_sets_are_disjoint_and_cover_every_item(
    tmp_path, cache_dir, logs_dir, clock
) -> None:
    items = [
        _item(tmp_path, 1, "used.png"),
        _item(tmp_path, 2, "unused.png"),
        _item(tmp_path, 3, "broken.png", exists=False),
        _item(tmp_path, 4, "unused-too.png"),
    ]

    with AuditLogWriter(logs_dir, clock=clock) as audit_log:
        report = _scanner(RecordingProber(used_ids={1}), cache_dir, audit_log, clock).scan(
            items, [SearchLocation.CONTENT], dry_run=True
        )

    snapshot = report.snapshot
    assert snapshot is not None
    assert set(snapshot.unused).isdisjoint(snapshot.broken)
    assert len(snapshot.unused) + len(snapshot.broken) + report.kept == report.total == 4
    assert snapshot.unused == (2, 4)
    assert snapshot.broken == (3,)


def test_scan_writes_snapshot_and_audit_log(tmp_path, cache_dir, logs_dir, clock) -> None:
    items = [_item(tmp_path, 1, "used.png"), _item(tmp_path, 2, "unused.png")]

    with AuditLogWriter(logs_dir, clock=clock) as audit_log:
        report = _scanner(RecordingProber(used_ids={1}), cache_dir, audit_log, clock).scan(
            items, [SearchLocation.CONTENT], dry_run=True
        )

    assert report.snapshot is not None
    assert report.snapshot.path == cache_dir / "media-cleaner-cache-2024-05-01-120000.json"
    assert json.loads(report.snapshot.path.read_text()) == {
        "unused_media": [2],
        "broken_link_media": [],
    }

    assert report.log_path == logs_dir / "media-cleaner-log-2024-05-01-120000.csv"
    with report.log_path.open(newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == ["Attachment ID", "File Name", "Upload Folder", "Status", "Action Taken", "Timestamp"]
    assert rows[1][3:5] == ["Used", "Kept"]
    assert rows[2][3:5] == ["Unused", "Skipped (Dry Run)"]


def test_empty_enumeration_creates_nothing(cache_dir, logs_dir, clock) -> None:
    with AuditLogWriter(logs_dir, clock=clock) as audit_log:
        report = _scanner(RecordingProber(), cache_dir, audit_log, clock).scan(
            [], list(SearchLocation), dry_run=False
        )

    assert report.snapshot is None
    assert report.total == 0
    assert report.log_path is None
    assert list(cache_dir.iterdir()) == []
    assert list(logs_dir.iterdir()) == []


def test_scan_reports_items_through_progress(tmp_path, cache_dir, logs_dir, clock) -> None:
    seen: list[str] = []

    def progress(items, description):
        seen.append(description)
        return items

    with AuditLogWriter(logs_dir, clock=clock) as audit_log:
        scanner = MediaScanner(
            RecordingProber(), SnapshotStore(cache_dir), audit_log, clock=clock, progress=progress
        )
        scanner.scan([_item(tmp_path, 1, "a.png")], [], dry_run=True)

    assert seen == ["Analyzing media"]
