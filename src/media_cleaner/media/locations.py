"""Search locations an attachment can be referenced from."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from ..exceptions import InvalidSelectionError


class SearchLocation(str, Enum):
    CONTENT = "content"
    THUMBNAIL = "thumbnail"
    META = "meta"
    OPTIONS = "options"
    WIDGETS = "widgets"
    PAGE_BUILDERS = "page_builders"
    WOOCOMMERCE = "woocommerce"


@dataclass(frozen=True, slots=True)
class LocationChoice:
    number: int
    location: SearchLocation
    label: str


# Numbers are shown to operators and accepted back, keep them stable.
LOCATION_CHOICES: Mapping[int, LocationChoice] = {
    choice.number: choice
    for choice in (
        LocationChoice(1, SearchLocation.CONTENT, "Post & Page Content (the main editor)"),
        LocationChoice(2, SearchLocation.THUMBNAIL, "Featured Images (Post Thumbnails)"),
        LocationChoice(3, SearchLocation.META, "Custom Fields (includes ACF, Carbon Fields, etc.)"),
        LocationChoice(
            4, SearchLocation.OPTIONS, "Theme & Plugin Options (e.g., logos in the Customizer)"
        ),
        LocationChoice(5, SearchLocation.WIDGETS, "Widgets (content within sidebar widgets)"),
        LocationChoice(6, SearchLocation.PAGE_BUILDERS, "Page Builder Data (JSON/serialized data)"),
        LocationChoice(7, SearchLocation.WOOCOMMERCE, "WooCommerce Galleries"),
    )
}


def label_for(location: SearchLocation) -> str:
    for choice in LOCATION_CHOICES.values():
        if choice.location is location:
            return choice.label
    raise KeyError(location)


def parse_location_selection(raw: str) -> list[SearchLocation]:
    """Parse a comma-separated list of legend numbers.

    Duplicates are dropped while keeping the order of first appearance, which
    is also the order locations are probed in.

    Raises:
        InvalidSelectionError: If ``raw`` is blank or any entry is not a legend
            number.
    """

    text = (raw or "").strip()
    if not text:
        raise InvalidSelectionError("Please enter at least one number.")

    selected: list[SearchLocation] = []
    for part in text.split(","):
        token = part.strip()
        if not token.isdecimal() or int(token) not in LOCATION_CHOICES:
            raise InvalidSelectionError(
                f"Invalid selection: '{token}'. Please use numbers from the legend."
            )
        location = LOCATION_CHOICES[int(token)].location
        if location not in selected:
            selected.append(location)
    return selected


__all__ = [
    "LOCATION_CHOICES",
    "LocationChoice",
    "SearchLocation",
    "label_for",
    "parse_location_selection",
]
