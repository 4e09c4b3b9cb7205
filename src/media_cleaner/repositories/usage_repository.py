"""SQLAlchemy implementation of :class:`UsageRepository`."""

from __future__ import annotations

from collections.abc import Callable
from typing import Iterable

import sqlalchemy as sa
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from ..db.schema import HostTables
from ..exceptions import handle_sqlalchemy_errors


def _contains_any(column: sa.Column, needles: Iterable[str]) -> list[ColumnElement[bool]]:
    # autoescape escapes LIKE wildcards in the bound value.
    return [column.contains(needle, autoescape=True) for needle in needles if needle]


class SQLAlchemyUsageRepository:
    """Run reference-count queries over posts, postmeta and options."""

    def __init__(self, session_factory: Callable[[], Session], tables: HostTables) -> None:
        self._session_factory = session_factory
        self._tables = tables

    def count_content_matches(self, needles: list[str]) -> int:
        posts = self._tables.posts
        conditions = _contains_any(posts.c.post_content, needles)
        if not conditions:
            return 0
        stmt = sa.select(sa.func.count()).select_from(posts).where(sa.or_(*conditions))
        return self._count(stmt, entity="posts")

    def count_meta_equal(self, meta_key: str, value: str) -> int:
        postmeta = self._tables.postmeta
        stmt = (
            sa.select(sa.func.count())
            .select_from(postmeta)
            .where(postmeta.c.meta_key == meta_key, postmeta.c.meta_value == value)
        )
        return self._count(stmt, entity="postmeta")

    def count_meta_matches(self, *, equals: str, contains: list[str]) -> int:
        postmeta = self._tables.postmeta
        conditions: list[ColumnElement[bool]] = [postmeta.c.meta_value == equals]
        conditions.extend(_contains_any(postmeta.c.meta_value, contains))
        stmt = sa.select(sa.func.count()).select_from(postmeta).where(sa.or_(*conditions))
        return self._count(stmt, entity="postmeta")

    def count_meta_key_contains(self, meta_key: str, needle: str) -> int:
        if not needle:
            return 0
        postmeta = self._tables.postmeta
        stmt = (
            sa.select(sa.func.count())
            .select_from(postmeta)
            .where(
                postmeta.c.meta_key == meta_key,
                postmeta.c.meta_value.contains(needle, autoescape=True),
            )
        )
        return self._count(stmt, entity="postmeta")

    def count_option_matches(self, needles: list[str]) -> int:
        options = self._tables.options
        conditions = _contains_any(options.c.option_value, needles)
        if not conditions:
            return 0
        stmt = sa.select(sa.func.count()).select_from(options).where(sa.or_(*conditions))
        return self._count(stmt, entity="options")

    def _count(self, stmt: sa.Select, *, entity: str) -> int:
        with handle_sqlalchemy_errors(entity=entity):
            with self._session_factory() as session:
                return int(session.scalar(stmt) or 0)


__all__ = ["SQLAlchemyUsageRepository"]
