"""Configuration builder for the media cleaner."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.schema import DEFAULT_TABLE_PREFIX, HostTables, build_tables
from .exceptions import SetupError
from .uploads import UploadPaths


@dataclass(slots=True)
class DataPaths:
    root: Path
    cache: Path
    logs: Path

    @classmethod
    def under(cls, root: Path) -> "DataPaths":
        return cls(root=root, cache=root / "cache", logs=root / "logs")


@dataclass(slots=True)
class CleanerConfig:
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    tables: HostTables
    uploads: UploadPaths
    data_paths: DataPaths
    cache_max_age: timedelta | None


def ensure_data_paths(paths: DataPaths) -> None:
    """Create the data, cache and log directories, raising :class:`SetupError`."""
    for directory in (paths.root, paths.cache, paths.logs):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SetupError(f"Could not create directory: {directory}") from exc


def load_config() -> CleanerConfig:
    """Load configuration from environment (SQLite by default)."""
    uploads_root = Path(os.getenv("UPLOADS_ROOT", "wp-content/uploads"))
    uploads = UploadPaths(
        base_dir=uploads_root,
        base_url=os.getenv("UPLOADS_URL", "http://localhost/wp-content/uploads"),
    )

    data_root = Path(os.getenv("MEDIA_CLEANER_DATA_DIR", str(uploads_root / "media-cleaner-data")))
    data_paths = DataPaths.under(data_root)
    ensure_data_paths(data_paths)

    database_url = os.getenv("DATABASE_URL", "sqlite:///wordpress.db")
    engine = create_engine(database_url, future=True)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)

    max_age_hours = int(os.getenv("CACHE_MAX_AGE_HOURS", 0))
    cache_max_age = timedelta(hours=max_age_hours) if max_age_hours > 0 else None

    return CleanerConfig(
        database_url=database_url,
        engine=engine,
        session_factory=session_factory,
        tables=build_tables(os.getenv("TABLE_PREFIX", DEFAULT_TABLE_PREFIX)),
        uploads=uploads,
        data_paths=data_paths,
        cache_max_age=cache_max_age,
    )
