"""JSON snapshots of scan results kept in the cache directory."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import structlog

from ..exceptions import SnapshotError
from .audit_log import timestamped_path
from .media_models import ScanSnapshot

SNAPSHOT_FILE_PREFIX = "media-cleaner-cache-"
SNAPSHOT_GLOB = f"{SNAPSHOT_FILE_PREFIX}*.json"

logger = structlog.get_logger(__name__)


class SnapshotStore:
    """Persist and retrieve :class:`ScanSnapshot` files.

    Snapshots are written once and never rewritten or removed by the store.
    """

    def __init__(self, cache_dir: Path) -> None:
        self._cache_dir = cache_dir

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def find_latest(
        self,
        *,
        max_age: timedelta | None = None,
        now: datetime | None = None,
    ) -> Path | None:
        """Return the snapshot with the newest modification time.

        Snapshots older than ``max_age`` are ignored when it is given.
        """
        candidates = [path for path in self._cache_dir.glob(SNAPSHOT_GLOB) if path.is_file()]
        if not candidates:
            return None
        latest = max(candidates, key=lambda path: (path.stat().st_mtime, path.name))
        if max_age is not None:
            current = now or datetime.now(timezone.utc)
            if current - self.modified_at(latest) > max_age:
                logger.info("media.snapshot.stale", path=str(latest))
                return None
        return latest

    def save(self, snapshot: ScanSnapshot) -> ScanSnapshot:
        path = timestamped_path(self._cache_dir, SNAPSHOT_FILE_PREFIX, ".json", snapshot.created_at)
        path.write_text(json.dumps(snapshot.to_payload(), indent=4), encoding="utf-8")
        logger.info(
            "media.snapshot.saved",
            path=str(path),
            unused=len(snapshot.unused),
            broken=len(snapshot.broken),
        )
        return replace(snapshot, path=path)

    def load(self, path: Path) -> ScanSnapshot:
        """Read a snapshot; ID values are returned exactly as stored."""
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SnapshotError(f"Could not read cache file {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise SnapshotError(f"Cache file {path} does not contain a JSON object")

        return ScanSnapshot(
            unused=self._as_tuple(payload.get("unused_media")),
            broken=self._as_tuple(payload.get("broken_link_media")),
            created_at=self.modified_at(path),
            path=path,
        )

    @staticmethod
    def modified_at(path: Path) -> datetime:
        return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)

    @staticmethod
    def _as_tuple(values: object) -> tuple[object, ...]:
        if isinstance(values, list):
            return tuple(values)
        return ()


__all__ = ["SNAPSHOT_FILE_PREFIX", "SnapshotStore"]
