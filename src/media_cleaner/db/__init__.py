"""Database helpers for the host CMS schema."""

from .db_init import init_db
from .schema import HostTables, build_tables

__all__ = ["HostTables", "build_tables", "init_db"]
