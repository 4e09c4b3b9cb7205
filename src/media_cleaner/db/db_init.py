"""Database initialization helpers."""

from __future__ import annotations

from sqlalchemy.engine import Engine

from .schema import HostTables


def init_db(engine: Engine, tables: HostTables) -> None:
    """Create the host tables if absent (local SQLite copies, tests)."""
    tables.metadata.create_all(engine)
