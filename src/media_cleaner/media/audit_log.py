"""Append-only CSV audit log, one file per run."""

from __future__ import annotations

import csv
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, TextIO

import structlog

from .media_models import AUDIT_LOG_HEADER, AuditLogEntry

LOG_FILE_PREFIX = "media-cleaner-log-"
FILE_TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"

logger = structlog.get_logger(__name__)


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


def timestamped_path(directory: Path, prefix: str, suffix: str, now: datetime) -> Path:
    """Return a fresh ``<prefix><timestamp><suffix>`` path inside ``directory``.

    A counter is appended when several files are created within one second.
    """
    stem = f"{prefix}{now.strftime(FILE_TIMESTAMP_FORMAT)}"
    candidate = directory / f"{stem}{suffix}"
    counter = 1
    while candidate.exists():
        candidate = directory / f"{stem}-{counter}{suffix}"
        counter += 1
    return candidate


class AuditLogWriter:
    """Write :class:`AuditLogEntry` rows to a timestamped CSV file.

    The file is created lazily by :meth:`ensure_open` so runs without any work
    leave no log behind. Use the writer as a context manager to guarantee the
    handle is closed.
    """

    def __init__(self, logs_dir: Path, *, clock: Callable[[], datetime] | None = None) -> None:
        self._logs_dir = logs_dir
        self._clock = clock or _default_clock
        self._handle: TextIO | None = None
        self._writer = None
        self.path: Path | None = None

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def open(self) -> Path:
        if self._handle is not None:
            raise RuntimeError(f"audit log already open: {self.path}")
        path = timestamped_path(self._logs_dir, LOG_FILE_PREFIX, ".csv", self._clock())
        self._handle = path.open("w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._handle)
        self._writer.writerow(AUDIT_LOG_HEADER)
        self._handle.flush()
        self.path = path
        logger.info("media.audit_log.opened", path=str(path))
        return path

    def ensure_open(self) -> Path:
        if self._handle is None:
            return self.open()
        assert self.path is not None
        return self.path

    def append(self, entry: AuditLogEntry) -> None:
        if self._writer is None or self._handle is None:
            raise RuntimeError("audit log is not open")
        self._writer.writerow(entry.as_row())
        self._handle.flush()

    def close(self) -> None:
        if self._handle is None:
            return
        self._handle.close()
        self._handle = None
        self._writer = None

    def __enter__(self) -> "AuditLogWriter":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["AuditLogWriter", "LOG_FILE_PREFIX", "timestamped_path"]
