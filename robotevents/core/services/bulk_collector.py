"""Core service for collecting every page of a paginated resource.

Page 1 is fetched first to learn ``last_page``; pages 2..last_page are then
fetched concurrently and merged by page number, so the result does not
depend on the order in which the requests complete.
"""

import asyncio
import logging
import time
from typing import Dict, Generic, Iterable, List, Optional, Tuple, TypeVar

from robotevents.core.services.page_fetcher import PageFetcher
from robotevents.domain.events.api_events import BulkCollectionCompleted, EventSink, PageCollected, log_event
from robotevents.domain.models.pagination import Page
from robotevents.domain.models.query import Query

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BulkCollector(Generic[T]):
    """Retrieves and merges all pages of a collection."""

    def __init__(
        self,
        page_fetcher: PageFetcher[T],
        max_concurrency: Optional[int] = None,
        event_sink: EventSink = log_event,
    ):
        """Initializes the BulkCollector.

        Args:
            page_fetcher: Fetcher used for every page.
            max_concurrency: Upper bound on page fetches in flight at once.
                None requests every remaining page at once and relies on the
                per-page retry handling to absorb throttling.
            event_sink: Receives PageCollected / BulkCollectionCompleted events.
        """
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.page_fetcher = page_fetcher
        self.max_concurrency = max_concurrency
        self._dispatch = event_sink

    async def collect_all(self, resource_path: str, query: Optional[Query] = None) -> List[T]:
        """Fetches every page of ``resource_path`` and concatenates the items.

        Args:
            resource_path: Collection path, e.g. ``/events/123/teams``.
            query: Caller's query. ``page`` is substituted for each request; the
                caller's object is left untouched.

        Returns:
            Items of pages 1..last_page, in ascending page order and in server
            order within each page.

        Raises:
            RobotEventsError: The first unrecoverable page failure. No partial
                result is returned.
        """
        start_time = time.perf_counter()
        base_query = query if query is not None else Query()

        # 1. Page 1 tells us how many pages exist; failure here aborts everything
        first = await self.page_fetcher.fetch_page(resource_path, base_query.with_page(1))
        self._page_collected(resource_path, 1, first)
        last_page = first.meta.last_page
        logger.info(
            f"Collecting {resource_path}: {first.meta.total} item(s) across {last_page} page(s)"
        )

        pages: Dict[int, Page[T]] = {1: first}
        if last_page > 1:
            pages.update(await self._fetch_pages(resource_path, base_query, range(2, last_page + 1)))

        # 2. Merge by page number, never by arrival
        merged: List[T] = []
        for number in range(1, last_page + 1):
            merged.extend(pages[number].items)

        duration_ms = (time.perf_counter() - start_time) * 1000
        self._dispatch(BulkCollectionCompleted(
            path=resource_path, page_count=last_page, item_count=len(merged), duration_ms=duration_ms,
        ))
        logger.info(f"Collected {len(merged)} item(s) from {resource_path} in {duration_ms:.0f}ms")
        return merged

    async def _fetch_pages(
        self, resource_path: str, base_query: Query, numbers: Iterable[int],
    ) -> Dict[int, Page[T]]:
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        async def fetch(number: int) -> Tuple[int, Page[T]]:
            if semaphore is not None:
                async with semaphore:
                    page = await self.page_fetcher.fetch_page(resource_path, base_query.with_page(number))
            else:
                page = await self.page_fetcher.fetch_page(resource_path, base_query.with_page(number))
            if page.meta.current_page != number:
                logger.warning(
                    f"Requested page {number} of {resource_path} but server reported "
                    f"current_page={page.meta.current_page}"
                )
            self._page_collected(resource_path, number, page)
            return number, page

        tasks = [asyncio.create_task(fetch(number)) for number in numbers]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # One page failed (or we were cancelled); the siblings' results are useless now
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return dict(results)

    def _page_collected(self, resource_path: str, number: int, page: Page[T]) -> None:
        logger.debug(f"Page {number} of {resource_path}: {len(page.items)} item(s)")
        self._dispatch(PageCollected(path=resource_path, page=number, item_count=len(page.items)))
