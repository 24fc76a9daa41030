"""Contains the pagination walker shared by every multi-page listing."""

from typing import Awaitable, Callable, TypeVar

import structlog

from review_tracker.github.results import Ok, TrackerFailure, TrackerResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")

PageFetcher = Callable[[int], Awaitable[TrackerResult[list[T]]]]


async def walk_pages(
    fetch_page: PageFetcher[T],
    *,
    per_page: int,
    max_pages: int,
    stop_when: Callable[[T], bool] | None = None,
) -> TrackerResult[list[T]]:
    """Fetch pages in order and concatenate their items.

    The walk stops after a page shorter than ``per_page``, after ``max_pages``
    pages, or right after a page containing an item matching ``stop_when``.
    Pages are requested one at a time starting from page 1.

    A failed page aborts the walk and its failure is returned. Items collected
    from earlier pages are discarded, never returned as a partial listing.

    Args:
        fetch_page: Coroutine function returning the items of a 1-based page
        per_page: Page size the fetcher requests
        max_pages: Upper bound on the number of pages fetched
        stop_when: Optional predicate ending the walk once an item matches

    Returns:
        All collected items, or the failure of the first page that failed
    """
    if per_page < 1:
        raise ValueError(f"per_page must be at least 1, got {per_page}")
    if max_pages < 1:
        raise ValueError(f"max_pages must be at least 1, got {max_pages}")

    collected: list[T] = []
    for page in range(1, max_pages + 1):
        result = await fetch_page(page)
        if isinstance(result, TrackerFailure):
            logger.warning(
                "Aborting paginated walk after a failed page",
                page=page,
                failure=result.kind.value,
                status_code=result.status_code,
                discarded_items=len(collected),
            )
            return result
        items = result.value
        collected.extend(items)
        if stop_when is not None and any(stop_when(item) for item in items):
            logger.debug("Stopping paginated walk on matching item", page=page)
            break
        if len(items) < per_page:
            break
    else:
        logger.debug("Paginated walk reached its page cap", max_pages=max_pages, item_count=len(collected))
    return Ok(collected)
