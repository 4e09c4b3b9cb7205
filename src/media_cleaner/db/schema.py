"""SQLAlchemy metadata describing the host CMS tables the cleaner touches."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import BigInteger, Column, Index, Integer, MetaData, String, Table, Text

DEFAULT_TABLE_PREFIX = "wp_"

ATTACHMENT_POST_TYPE = "attachment"
ATTACHED_FILE_META_KEY = "_wp_attached_file"
THUMBNAIL_META_KEY = "_thumbnail_id"
PRODUCT_GALLERY_META_KEY = "_product_image_gallery"

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_ID_TYPE = BigInteger().with_variant(Integer(), "sqlite")


@dataclass(frozen=True, slots=True)
class HostTables:
    """Prefixed ``posts``/``postmeta``/``options`` tables of one site."""

    metadata: MetaData
    posts: Table
    postmeta: Table
    options: Table


def build_tables(prefix: str = DEFAULT_TABLE_PREFIX) -> HostTables:
    """Describe the host tables for ``prefix`` (only the columns we use)."""

    metadata = MetaData()

    posts = Table(
        f"{prefix}posts",
        metadata,
        Column("ID", _ID_TYPE, primary_key=True),
        Column("post_type", String(20), nullable=False, server_default="post"),
        Column("post_title", Text, nullable=False, server_default=""),
        Column("post_content", Text, nullable=False, server_default=""),
        Column("guid", String(255), nullable=False, server_default=""),
    )
    Index(f"ix_{prefix}posts_type", posts.c.post_type)

    postmeta = Table(
        f"{prefix}postmeta",
        metadata,
        Column("meta_id", _ID_TYPE, primary_key=True),
        Column("post_id", BigInteger, nullable=False, server_default="0"),
        Column("meta_key", String(255), nullable=True),
        Column("meta_value", Text, nullable=True),
    )
    Index(f"ix_{prefix}postmeta_post_id", postmeta.c.post_id)
    Index(f"ix_{prefix}postmeta_meta_key", postmeta.c.meta_key)

    options = Table(
        f"{prefix}options",
        metadata,
        Column("option_id", _ID_TYPE, primary_key=True),
        Column("option_name", String(191), nullable=False, unique=True),
        Column("option_value", Text, nullable=False, server_default=""),
        Column("autoload", String(20), nullable=False, server_default="yes"),
    )

    return HostTables(metadata=metadata, posts=posts, postmeta=postmeta, options=options)


__all__ = [
    "ATTACHED_FILE_META_KEY",
    "ATTACHMENT_POST_TYPE",
    "DEFAULT_TABLE_PREFIX",
    "HostTables",
    "PRODUCT_GALLERY_META_KEY",
    "THUMBNAIL_META_KEY",
    "build_tables",
]
