"""Decide whether an attachment is referenced from the selected locations.

Each :class:`SearchLocation` maps to one probe strategy. Strategies only run
count queries through :class:`UsageRepository` and never modify data.

Serialized values (custom fields, options, widget settings, page builder
blobs) are matched as plain text: the attachment ID wrapped in double quotes
catches serialized arrays and JSON, the file name catches stored paths and
URLs. The serialization formats themselves are not parsed.
"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping, Protocol

import structlog

from ..db.schema import PRODUCT_GALLERY_META_KEY, THUMBNAIL_META_KEY
from ..repositories.interfaces import UsageRepository
from ..uploads import UploadPaths
from .locations import SearchLocation
from .media_models import MediaItem

logger = structlog.get_logger(__name__)


class ProbeStrategy(Protocol):
    def matches(self, item: MediaItem) -> bool:
        """Return ``True`` when ``item`` is referenced from this location."""


class ContentProbe:
    """Post content containing the file name or its URL path."""

    def __init__(self, repo: UsageRepository, uploads: UploadPaths) -> None:
        self._repo = repo
        self._uploads = uploads

    def matches(self, item: MediaItem) -> bool:
        needles = [item.file_name, self._uploads.url_path_fragment(item.url)]
        return self._repo.count_content_matches(needles) > 0


class ThumbnailProbe:
    """Featured image bindings pointing at the attachment ID."""

    def __init__(self, repo: UsageRepository) -> None:
        self._repo = repo

    def matches(self, item: MediaItem) -> bool:
        return self._repo.count_meta_equal(THUMBNAIL_META_KEY, str(item.id)) > 0


class MetaProbe:
    """Custom field values holding the ID, a quoted ID or the file name."""

    def __init__(self, repo: UsageRepository) -> None:
        self._repo = repo

    def matches(self, item: MediaItem) -> bool:
        count = self._repo.count_meta_matches(
            equals=str(item.id),
            contains=[f'"{item.id}"', item.file_name],
        )
        return count > 0


class OptionsProbe:
    """Option values (theme mods, widgets) holding a quoted ID or the file name."""

    def __init__(self, repo: UsageRepository) -> None:
        self._repo = repo

    def matches(self, item: MediaItem) -> bool:
        return self._repo.count_option_matches([f'"{item.id}"', item.file_name]) > 0


class GalleryProbe:
    """Product galleries listing the attachment ID."""

    def __init__(self, repo: UsageRepository) -> None:
        self._repo = repo

    def matches(self, item: MediaItem) -> bool:
        return self._repo.count_meta_key_contains(PRODUCT_GALLERY_META_KEY, str(item.id)) > 0


StrategyFactory = Callable[[UsageRepository, UploadPaths], ProbeStrategy]

STRATEGY_REGISTRY: Mapping[SearchLocation, StrategyFactory] = {
    SearchLocation.CONTENT: ContentProbe,
    SearchLocation.PAGE_BUILDERS: ContentProbe,
    SearchLocation.THUMBNAIL: lambda repo, _uploads: ThumbnailProbe(repo),
    SearchLocation.META: lambda repo, _uploads: MetaProbe(repo),
    SearchLocation.OPTIONS: lambda repo, _uploads: OptionsProbe(repo),
    SearchLocation.WIDGETS: lambda repo, _uploads: OptionsProbe(repo),
    SearchLocation.WOOCOMMERCE: lambda repo, _uploads: GalleryProbe(repo),
}


class UsageProber:
    """Run the strategies of the selected locations, stopping at the first hit."""

    def __init__(
        self,
        repo: UsageRepository,
        uploads: UploadPaths,
        *,
        registry: Mapping[SearchLocation, StrategyFactory] = STRATEGY_REGISTRY,
    ) -> None:
        self._strategies = {
            location: factory(repo, uploads) for location, factory in registry.items()
        }

    def strategy_for(self, location: SearchLocation) -> ProbeStrategy:
        return self._strategies[location]

    def probe(self, item: MediaItem, locations: Iterable[SearchLocation]) -> bool:
        for location in locations:
            if self._strategies[location].matches(item):
                logger.debug(
                    "media.probe.matched",
                    attachment_id=item.id,
                    location=location.value,
                )
                return True
        return False


__all__ = [
    "ContentProbe",
    "GalleryProbe",
    "MetaProbe",
    "OptionsProbe",
    "ProbeStrategy",
    "STRATEGY_REGISTRY",
    "ThumbnailProbe",
    "UsageProber",
]
