"""Repository interfaces for the host data store."""

from __future__ import annotations

from typing import Protocol

from ..media.media_models import MediaItem


class MediaRepository(Protocol):
    """Enumeration and removal of attachment records."""

    def list_media(self) -> list[MediaItem]:
        """Return every attachment ordered by ID."""

    def get_media(self, attachment_id: int) -> MediaItem | None:
        """Return a single attachment or ``None`` when it does not exist."""

    def delete_media(self, attachment_id: int) -> bool:
        """Remove the attachment record and its file.

        Returns ``False`` when nothing was deleted; the store is left
        unchanged in that case.
        """


class UsageRepository(Protocol):
    """Count queries used to decide whether an attachment is referenced."""

    def count_content_matches(self, needles: list[str]) -> int:
        """Count posts whose content contains any of ``needles``."""

    def count_meta_equal(self, meta_key: str, value: str) -> int:
        """Count metadata rows under ``meta_key`` whose value equals ``value``."""

    def count_meta_matches(self, *, equals: str, contains: list[str]) -> int:
        """Count metadata values equal to ``equals`` or containing any needle."""

    def count_meta_key_contains(self, meta_key: str, needle: str) -> int:
        """Count metadata rows under ``meta_key`` whose value contains ``needle``."""

    def count_option_matches(self, needles: list[str]) -> int:
        """Count option values containing any of ``needles``."""
