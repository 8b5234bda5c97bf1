"""Paginated collection reader.

Drains a cursor-based remote collection into an ordered sequence of tracks.
The reader is a lazy async generator: it requests the next page only after
the previous one has been fully consumed.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable

from likesync.config import get_logger
from likesync.domain.entities import Page, Track, TrackCollection

logger = get_logger(__name__)

FetchNextPage = Callable[[Page], Awaitable[Page | None]]


async def paginate(
    first_page: Page,
    fetch_next: FetchNextPage,
    *,
    item_delay: float = 0.0,
) -> AsyncIterator[Track]:
    """Yield every track of a collection, page after page.

    Args:
        first_page: Page already fetched by the caller
        fetch_next: Returns the page after the given one, or None at the end
        item_delay: Seconds to wait between yielded items (throttle, may be 0)

    Yields:
        Tracks in remote collection order

    Raises:
        TransportError: Propagated unchanged from `fetch_next`
    """
    page: Page | None = first_page
    pages = 0

    while page is not None:
        pages += 1
        for track in page.items:
            yield track
            if item_delay:
                await asyncio.sleep(item_delay)
        page = await fetch_next(page)

    logger.debug(f"Pagination finished after {pages} page(s)")


async def collect(
    first_page: Page,
    fetch_next: FetchNextPage,
    *,
    item_delay: float = 0.0,
) -> TrackCollection:
    """Materialize a paginated collection into an ordered list."""
    return [
        track
        async for track in paginate(first_page, fetch_next, item_delay=item_delay)
    ]
