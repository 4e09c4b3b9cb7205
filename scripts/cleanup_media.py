"""Command entry point for finding and deleting unused media attachments."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass

import colorama

from src.media_cleaner.config import load_config
from src.media_cleaner.console import ConsolePrompter
from src.media_cleaner.exceptions import InvalidSelectionError
from src.media_cleaner.logging import configure_logging
from src.media_cleaner.media.locations import SearchLocation, parse_location_selection
from src.media_cleaner.media.media_cleanup import CleanupOutcome, CleanupWorkflow
from src.media_cleaner.media.snapshot_store import SnapshotStore
from src.media_cleaner.media.usage_prober import UsageProber
from src.media_cleaner.repositories.media_repository import SQLAlchemyMediaRepository
from src.media_cleaner.repositories.usage_repository import SQLAlchemyUsageRepository

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_FAILED = 2


@dataclass(slots=True)
class CleanupSummary:
    scanned: int
    kept: int
    unused: int
    broken: int
    deleted: int
    failed: int
    dry_run: bool
    used_cache: bool
    aborted: bool


def summarize(outcome: CleanupOutcome) -> CleanupSummary:
    scan = outcome.scan
    deletion = outcome.deletion
    return CleanupSummary(
        scanned=scan.total if scan else 0,
        kept=scan.kept if scan else 0,
        unused=scan.unused if scan else 0,
        broken=scan.broken if scan else 0,
        deleted=deletion.deleted if deletion else 0,
        failed=len(deletion.failed_ids) if deletion else 0,
        dry_run=outcome.dry_run,
        used_cache=outcome.used_cache,
        aborted=outcome.aborted,
    )


def perform_cleanup(
    *,
    dry_run: bool,
    skip_cache: bool,
    prompter: ConsolePrompter,
    locations: list[SearchLocation] | None = None,
) -> CleanupSummary:
    """Wire the repositories from configuration and run one cleanup."""
    config = load_config()
    media_repo = SQLAlchemyMediaRepository(config.session_factory, config.tables, config.uploads)
    usage_repo = SQLAlchemyUsageRepository(config.session_factory, config.tables)
    workflow = CleanupWorkflow(
        media_repo=media_repo,
        prober=UsageProber(usage_repo, config.uploads),
        snapshots=SnapshotStore(config.data_paths.cache),
        logs_dir=config.data_paths.logs,
        prompter=prompter,
        locations=locations,
        cache_max_age=config.cache_max_age,
    )
    try:
        outcome = workflow.run(dry_run=dry_run, skip_cache=skip_cache)
    finally:
        config.engine.dispose()
    return summarize(outcome)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Find unused media attachments and attachments with broken file links.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Scan without deleting anything; always writes a cache file for a later run.",
    )
    parser.add_argument(
        "--skip-cache",
        action="store_true",
        help="Force a new scan even if a cache file exists.",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Answer yes to every confirmation.",
    )
    parser.add_argument(
        "--locations",
        help="Comma-separated location numbers to search (skips the interactive prompt).",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not draw progress bars.",
    )
    args = parser.parse_args(argv)
    if args.locations is not None:
        try:
            args.locations = parse_location_selection(args.locations)
        except InvalidSelectionError as exc:
            parser.error(str(exc))
    return args


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    colorama.just_fix_windows_console()
    configure_logging()
    prompter = ConsolePrompter(assume_yes=args.yes, show_progress=not args.no_progress)
    prompter.line(f"{colorama.Fore.CYAN}Welcome to the Media Cleaner!{colorama.Style.RESET_ALL}")

    try:
        summary = perform_cleanup(
            dry_run=args.dry_run,
            skip_cache=args.skip_cache,
            prompter=prompter,
            locations=args.locations,
        )
    except KeyboardInterrupt:
        prompter.warning("Interrupted.")
        return EXIT_ABORTED
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return EXIT_FAILED

    if summary.aborted:
        print("cleanup aborted", file=sys.stdout)
        return EXIT_ABORTED

    print(
        f"cleanup {'dry-run' if summary.dry_run else 'done'}, scanned={summary.scanned}, "
        f"kept={summary.kept}, unused={summary.unused}, broken={summary.broken}, "
        f"deleted={summary.deleted}, failed={summary.failed}",
        file=sys.stdout,
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
