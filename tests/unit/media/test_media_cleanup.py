from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import pytest

from src.media_cleaner.media.locations import SearchLocation
from src.media_cleaner.media.media_cleanup import CleanupWorkflow, human_time_diff
from src.media_cleaner.media.snapshot_store import SnapshotStore
from src.media_cleaner.media.usage_prober import UsageProber
from src.media_cleaner.repositories.media_repository import SQLAlchemyMediaRepository
from src.media_cleaner.repositories.usage_repository import SQLAlchemyUsageRepository

pytestmark = pytest.mark.unit

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakePrompter:
    def __init__(self, answers=(), locations=(SearchLocation.CONTENT,)) -> None:
        self.answers = list(answers)
        self.locations = list(locations)
        self.lines: list[str] = []
        self.successes: list[str] = []
        self.warnings: list[str] = []
        self.questions: list[str] = []
        self.selection_calls = 0

    def line(self, message: str = "") -> None:
        self.lines.append(message)

    def success(self, message: str) -> None:
        self.successes.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def confirm(self, question: str) -> bool:
        self.questions.append(question)
        return self.answers.pop(0)

    def select_locations(self):
        self.selection_calls += 1
        return list(self.locations)

    def progress(self, items, description):
        return items


@pytest.fixture
def populated_site(site):
    site.add_post('<img src="https://example.test/wp-content/uploads/2024/01/used.png">')
    site.used = site.add_attachment("2024/01/used.png")
    site.unused = site.add_attachment("2024/01/unused.png")
    site.broken = site.add_attachment("2024/02/broken.png", create_file=False)
    return site


def _workflow(site, cache_dir, logs_dir, clock, prompter, **kwargs) -> CleanupWorkflow:
    return CleanupWorkflow(
        media_repo=SQLAlchemyMediaRepository(site.session_factory, site.tables, site.uploads),
        prober=UsageProber(SQLAlchemyUsageRepository(site.session_factory, site.tables), site.uploads),
        snapshots=SnapshotStore(cache_dir),
        logs_dir=logs_dir,
        prompter=prompter,
        clock=clock,
        **kwargs,
    )


def test_dry_run_scans_without_deleting(populated_site, cache_dir, logs_dir, clock) -> None:
    prompter = FakePrompter()

    outcome = _workflow(populated_site, cache_dir, logs_dir, clock, prompter).run(dry_run=True)

    assert outcome.scan is not None
    assert (outcome.scan.total, outcome.scan.kept, outcome.scan.unused, outcome.scan.broken) == (3, 1, 1, 1)
    assert outcome.deletion is None
    assert prompter.questions == []
    assert prompter.selection_calls == 1
    assert prompter.successes == ["Dry Run Complete!"]
    assert outcome.snapshot_path is not None and outcome.snapshot_path.exists()
    assert len(populated_site.post_ids()) == 4
    assert populated_site.file("2024/01/unused.png").exists()
    assert "Excellent. We will search in: Post & Page Content (the main editor)" in "".join(prompter.lines)


def test_full_run_deletes_unused_and_broken(populated_site, cache_dir, logs_dir, clock) -> None:
    prompter = FakePrompter(answers=[True, True])

    outcome = _workflow(populated_site, cache_dir, logs_dir, clock, prompter).run()

    assert outcome.used_cache is False
    assert outcome.deletion is not None
    assert outcome.deletion.deleted == 2
    assert prompter.questions[0].strip().startswith("Ready to delete 2 attachments")
    assert prompter.questions[1] == "Are you absolutely sure you want to continue?"
    assert populated_site.used in populated_site.post_ids()
    assert populated_site.unused not in populated_site.post_ids()
    assert populated_site.broken not in populated_site.post_ids()
    assert not populated_site.file("2024/01/unused.png").exists()
    assert populated_site.file("2024/01/used.png").exists()
    logs = sorted(logs_dir.iterdir())
    assert len(logs) == 1


def test_second_run_reuses_cache_without_asking_locations(
    populated_site, cache_dir, logs_dir, clock
) -> None:
    _workflow(populated_site, cache_dir, logs_dir, clock, FakePrompter()).run(dry_run=True)
    prompter = FakePrompter(answers=[True, True])

    outcome = _workflow(populated_site, cache_dir, logs_dir, clock, prompter).run()

    assert outcome.used_cache is True
    assert prompter.selection_calls == 0
    assert outcome.scan is None
    assert outcome.deletion is not None
    assert outcome.deletion.deleted == 2
    assert any("1 attachments marked as 'Unused' and 1 marked as 'Broken Link'" in line for line in prompter.lines)


def test_declining_cache_aborts_without_deleting(populated_site, cache_dir, logs_dir, clock) -> None:
    _workflow(populated_site, cache_dir, logs_dir, clock, FakePrompter()).run(dry_run=True)
    prompter = FakePrompter(answers=[False])

    outcome = _workflow(populated_site, cache_dir, logs_dir, clock, prompter).run()

    assert outcome.aborted is True
    assert outcome.deletion is None
    assert len(populated_site.post_ids()) == 4


def test_declining_final_confirmation_aborts(populated_site, cache_dir, logs_dir, clock) -> None:
    prompter = FakePrompter(answers=[True, False])

    outcome = _workflow(populated_site, cache_dir, logs_dir, clock, prompter).run()

    assert outcome.aborted is True
    assert outcome.deletion is None
    assert len(populated_site.post_ids()) == 4


def test_skip_cache_forces_new_scan(populated_site, cache_dir, logs_dir, clock) -> None:
    _workflow(populated_site, cache_dir, logs_dir, clock, FakePrompter()).run(dry_run=True)
    prompter = FakePrompter(answers=[False])

    outcome = _workflow(populated_site, cache_dir, logs_dir, clock, prompter).run(skip_cache=True)

    assert outcome.used_cache is False
    assert prompter.selection_calls == 1
    assert outcome.scan is not None and outcome.scan.total == 3
    assert len(list(cache_dir.iterdir())) == 2


def test_stale_cache_is_ignored(populated_site, cache_dir, logs_dir, clock) -> None:
    first = _workflow(populated_site, cache_dir, logs_dir, clock, FakePrompter()).run(dry_run=True)
    old = (FIXED_NOW - timedelta(hours=5)).timestamp()
    os.utime(first.snapshot_path, (old, old))
    prompter = FakePrompter(answers=[False])

    outcome = _workflow(
        populated_site, cache_dir, logs_dir, clock, prompter, cache_max_age=timedelta(hours=1)
    ).run()

    assert outcome.used_cache is False
    assert prompter.selection_calls == 1


def test_preselected_locations_skip_the_prompt(site, cache_dir, logs_dir, clock) -> None:
    site.add_post("logo.png in the editor only")
    site.add_attachment("2024/01/logo.png")
    site.add_attachment("2024/01/banner.png")
    prompter = FakePrompter()

    outcome = _workflow(
        site, cache_dir, logs_dir, clock, prompter, locations=[SearchLocation.THUMBNAIL]
    ).run(dry_run=True)

    assert prompter.selection_calls == 0
    assert outcome.scan is not None
    assert outcome.scan.kept == 0
    assert outcome.scan.unused == 2


def test_empty_library_creates_no_files(site, cache_dir, logs_dir, clock) -> None:
    prompter = FakePrompter()

    outcome = _workflow(site, cache_dir, logs_dir, clock, prompter).run(dry_run=True)

    assert outcome.scan is not None and outcome.scan.total == 0
    assert prompter.successes == ["No media attachments found to analyze."]
    assert list(cache_dir.iterdir()) == []
    assert list(logs_dir.iterdir()) == []


def test_nothing_to_delete_skips_confirmation(site, cache_dir, logs_dir, clock) -> None:
    site.add_post("see used.png")
    site.add_attachment("2024/01/used.png")
    prompter = FakePrompter()

    outcome = _workflow(site, cache_dir, logs_dir, clock, prompter).run()

    assert prompter.questions == []
    assert outcome.deletion is None
    assert "No unused or broken media found to delete." in prompter.successes


def test_cache_with_no_valid_ids_reports_nothing_to_delete(site, cache_dir, logs_dir, clock) -> None:
    (cache_dir / "media-cleaner-cache-2024-05-01-110000.json").write_text(
        '{"unused_media": ["abc"], "broken_link_media": []}'
    )
    prompter = FakePrompter(answers=[True])

    outcome = _workflow(site, cache_dir, logs_dir, clock, prompter).run()

    assert outcome.used_cache is True
    assert outcome.deletion is not None and outcome.deletion.requested == 0
    assert prompter.successes == ["No items found in cache file to delete."]
    assert list(logs_dir.iterdir()) == []


@pytest.mark.parametrize(
    ("delta", "expected"),
    [
        (timedelta(0), "1 second"),
        (timedelta(seconds=45), "45 seconds"),
        (timedelta(minutes=1), "1 min"),
        (timedelta(hours=3, minutes=20), "3 hours"),
        (timedelta(days=2, hours=5), "2 days"),
    ],
)
def test_human_time_diff(delta, expected) -> None:
    assert human_time_diff(FIXED_NOW - delta, FIXED_NOW) == expected


def test_cache_notice_uses_the_same_utc_clock_as_the_log(site, cache_dir, logs_dir, clock) -> None:
    path = cache_dir / "media-cleaner-cache-2024-05-01-090000.json"
    path.write_text('{"unused_media": [], "broken_link_media": []}')
    created = (FIXED_NOW - timedelta(hours=3)).timestamp()
    os.utime(path, (created, created))
    prompter = FakePrompter(answers=[False])

    _workflow(site, cache_dir, logs_dir, clock, prompter).run()

    assert any("from 3 hours ago (2024-05-01 09:00:00 UTC)." in line for line in prompter.lines)
