"""Page-size clamping and sort-token parsing for book listings."""

from __future__ import annotations

import math
from collections.abc import Iterable

from services.state.catalog_authority.domain import BookSort

SORTABLE_FIELDS = {
    "title": "title",
    "author": "author",
    "publication_year": "publication_year",
    "publicationYear": "publication_year",
}
DEFAULT_SORT = (BookSort(field="title", direction="asc"),)


def resolve_page(
    *, page: int, size: int | None, default_size: int, max_size: int
) -> tuple[int, int]:
    """Clamp a requested page and size into a usable ``(page, size)`` pair."""
    resolved_page = max(page, 0)
    if size is None or size <= 0:
        resolved_size = default_size
    else:
        resolved_size = min(size, max_size)
    return resolved_page, resolved_size


def parse_sort(tokens: Iterable[str]) -> tuple[BookSort, ...]:
    """Parse ``field`` or ``field,direction`` tokens, dropping invalid ones.

    An empty result falls back to ascending title order.
    """
    parsed: list[BookSort] = []
    for token in tokens:
        name, _, direction = token.partition(",")
        field = SORTABLE_FIELDS.get(name.strip())
        direction = direction.strip().lower() or "asc"
        if field is None or direction not in ("asc", "desc"):
            continue
        parsed.append(BookSort(field=field, direction=direction))
    return tuple(parsed) or DEFAULT_SORT


def total_pages(total_elements: int, size: int) -> int:
    """Number of pages needed for ``total_elements`` at ``size`` per page."""
    return math.ceil(total_elements / size) if total_elements else 0
