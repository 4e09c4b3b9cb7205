"""Persistence layer for attachment records."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import sqlalchemy as sa
import structlog
from sqlalchemy.orm import Session

from ..db.schema import (
    ATTACHED_FILE_META_KEY,
    ATTACHMENT_POST_TYPE,
    THUMBNAIL_META_KEY,
    HostTables,
)
from ..exceptions import handle_sqlalchemy_errors
from ..media.media_models import MediaItem
from ..uploads import UploadPaths

logger = structlog.get_logger(__name__)


class SQLAlchemyMediaRepository:
    """Read and remove attachment posts together with their files."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        tables: HostTables,
        uploads: UploadPaths,
    ) -> None:
        self._session_factory = session_factory
        self._tables = tables
        self._uploads = uploads

    def list_media(self) -> list[MediaItem]:
        posts = self._tables.posts
        stmt = self._attachment_query().order_by(posts.c.ID.asc())
        with handle_sqlalchemy_errors(entity="attachment"):
            with self._session_factory() as session:
                rows = session.execute(stmt).all()
        return [self._to_domain(row.ID, row.attached_file, row.guid) for row in rows]

    def get_media(self, attachment_id: int) -> MediaItem | None:
        posts = self._tables.posts
        stmt = self._attachment_query().where(posts.c.ID == attachment_id)
        with handle_sqlalchemy_errors(entity="attachment"):
            with self._session_factory() as session:
                row = session.execute(stmt).first()
        if row is None:
            return None
        return self._to_domain(row.ID, row.attached_file, row.guid)

    def delete_media(self, attachment_id: int) -> bool:
        """Delete the attachment post, its metadata, thumbnail bindings and file.

        Database changes are rolled back when the file cannot be removed.
        """
        posts = self._tables.posts
        postmeta = self._tables.postmeta
        stmt = self._attachment_query().where(posts.c.ID == attachment_id)

        with handle_sqlalchemy_errors(entity="attachment"):
            with self._session_factory() as session:
                row = session.execute(stmt).first()
                if row is None:
                    return False
                item = self._to_domain(row.ID, row.attached_file, row.guid)

                session.execute(sa.delete(postmeta).where(postmeta.c.post_id == attachment_id))
                session.execute(
                    sa.delete(postmeta).where(
                        postmeta.c.meta_key == THUMBNAIL_META_KEY,
                        postmeta.c.meta_value == str(attachment_id),
                    )
                )
                session.execute(sa.delete(posts).where(posts.c.ID == attachment_id))

                try:
                    self._remove_file(item.path)
                except OSError as exc:
                    session.rollback()
                    logger.warning(
                        "media.delete.file_failed",
                        attachment_id=attachment_id,
                        path=str(item.path),
                        error=str(exc),
                    )
                    return False

                session.commit()
        return True

    def _attachment_query(self) -> sa.Select:
        posts = self._tables.posts
        postmeta = self._tables.postmeta
        attached_file = (
            sa.select(postmeta.c.meta_value)
            .where(
                postmeta.c.post_id == posts.c.ID,
                postmeta.c.meta_key == ATTACHED_FILE_META_KEY,
            )
            .order_by(postmeta.c.meta_id.asc())
            .limit(1)
            .scalar_subquery()
        )
        return sa.select(
            posts.c.ID,
            posts.c.guid,
            attached_file.label("attached_file"),
        ).where(posts.c.post_type == ATTACHMENT_POST_TYPE)

    def _to_domain(self, attachment_id: int, stored_path: str | None, guid: str | None) -> MediaItem:
        path = self._uploads.resolve(stored_path)
        return MediaItem(
            id=int(attachment_id),
            path=path,
            file_name=path.name if path else "",
            upload_folder=self._uploads.upload_folder(path),
            url=self._uploads.url_for(stored_path) or (guid or ""),
        )

    @staticmethod
    def _remove_file(path: Path | None) -> None:
        if path is None:
            return
        path.unlink(missing_ok=True)


__all__ = ["SQLAlchemyMediaRepository"]
