"""RobotEventsClient: the explicit client value every operation runs through.

Holds the shared transports and the resilience stack built on top of them.
Nothing here is global; create one client, pass it around, close it when
done (or use it as an async context manager).
"""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar
from urllib.parse import urlsplit

from robotevents.core.services.bulk_collector import BulkCollector
from robotevents.core.services.page_fetcher import PageFetcher
from robotevents.domain.events.api_events import EventSink, log_event
from robotevents.domain.exceptions import ConfigurationError, DecodeFailure
from robotevents.domain.interfaces.transport import Transport
from robotevents.domain.models.pagination import Page
from robotevents.domain.models.query import Query
from robotevents.infrastructure.config.settings import ClientSettings
from robotevents.infrastructure.http.transport import V2_API_BASE, HttpxTransport
from robotevents.infrastructure.resilience.api_retry import RateLimitedRequester, SleepFunc

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RobotEventsClient(Generic[T]):
    """Paginated access to the RobotEvents API."""

    def __init__(
        self,
        transport: Transport,
        legacy_transport: Optional[Transport] = None,
        base_url: str = V2_API_BASE,
        max_attempts: int = 5,
        missing_hint_backoff_s: float = 1.0,
        retry_decode_failures: bool = True,
        max_concurrency: Optional[int] = None,
        per_page: Optional[int] = None,
        item_parser: Optional[Callable[[Dict[str, Any]], T]] = None,
        sleep: SleepFunc = asyncio.sleep,
        event_sink: EventSink = log_event,
    ):
        """Wires the resilience stack on top of the given transports.

        Args:
            transport: Authenticated transport for the versioned API.
            legacy_transport: Unauthenticated transport for the v1 API.
            base_url: Versioned base URL; its path is stripped from navigation locators.
            max_attempts: Retry budget per logical request.
            missing_hint_backoff_s: Delay before retrying a 429 without Retry-After.
            retry_decode_failures: Whether undecodable pages are re-requested.
            max_concurrency: Bound on concurrent page fetches (None = unbounded).
            per_page: Default page size added to queries that do not set one.
            item_parser: Optional mapper applied to every raw item.
            sleep: Coroutine used for throttle waits.
            event_sink: Receives domain events from every layer.
        """
        self.transport = transport
        self.legacy_transport = legacy_transport
        self.base_url = base_url.rstrip("/")
        self.per_page = per_page

        self.requester = RateLimitedRequester(
            transport,
            max_attempts=max_attempts,
            missing_hint_backoff_s=missing_hint_backoff_s,
            sleep=sleep,
            event_sink=event_sink,
        )
        self.legacy_requester = (
            RateLimitedRequester(
                legacy_transport,
                max_attempts=max_attempts,
                missing_hint_backoff_s=missing_hint_backoff_s,
                sleep=sleep,
                event_sink=event_sink,
            )
            if legacy_transport is not None else None
        )
        self.page_fetcher: PageFetcher[T] = PageFetcher(
            self.requester,
            item_parser=item_parser,
            retry_decode_failures=retry_decode_failures,
            event_sink=event_sink,
        )
        self.collector: BulkCollector[T] = BulkCollector(
            self.page_fetcher, max_concurrency=max_concurrency, event_sink=event_sink,
        )

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> "RobotEventsClient":
        """Builds a client with httpx transports from ClientSettings.

        Raises:
            ConfigurationError: If no API token is configured.
        """
        if not settings.api_token:
            raise ConfigurationError(
                "RobotEvents API token not provided. Set ROBOTEVENTS_TOKEN or api.token in the config file."
            )
        transport = HttpxTransport(
            base_url=settings.base_url,
            token=settings.api_token,
            timeout_seconds=settings.timeout_seconds,
            user_agent=settings.user_agent,
        )
        legacy_transport = HttpxTransport(
            base_url=settings.legacy_base_url,
            timeout_seconds=settings.timeout_seconds,
            user_agent=settings.user_agent,
        )
        return cls(
            transport,
            legacy_transport=legacy_transport,
            base_url=settings.base_url,
            max_attempts=settings.max_attempts,
            missing_hint_backoff_s=settings.missing_hint_backoff_seconds,
            retry_decode_failures=settings.retry_decode_failures,
            max_concurrency=settings.max_concurrency,
            per_page=settings.per_page,
            **kwargs,
        )

    async def __aenter__(self) -> "RobotEventsClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()
        if self.legacy_transport is not None:
            await self.legacy_transport.aclose()

    # --- Paginated access ---

    def _with_defaults(self, query: Optional[Query]) -> Query:
        query = query if query is not None else Query()
        if self.per_page and query.get("per_page") is None:
            query = query.with_per_page(self.per_page)
        return query

    async def fetch_page(self, path: str, query: Optional[Query] = None, page: int = 1) -> Page[T]:
        """Fetches a single page of ``path``."""
        return await self.page_fetcher.fetch_page(path, self._with_defaults(query).with_page(page))

    async def collect_all(self, path: str, query: Optional[Query] = None) -> List[T]:
        """Fetches every page of ``path`` and returns the items in page order."""
        return await self.collector.collect_all(path, self._with_defaults(query))

    # --- Navigation through the locators in a page's metadata ---

    def _relative(self, url: str) -> str:
        """Request path for a locator, relative to the versioned base path.

        Only the path and query of an absolute locator are used, so a locator
        whose scheme or host differs from ``base_url`` still resolves.
        """
        parts = urlsplit(url)
        if not parts.scheme and not parts.netloc:
            return url
        base_path = urlsplit(self.base_url).path.rstrip("/")
        if base_path and parts.path != base_path and not parts.path.startswith(base_path + "/"):
            raise DecodeFailure(f"locator {url} is outside the API base path {base_path}")
        relative = parts.path[len(base_path):]
        return f"{relative}?{parts.query}" if parts.query else relative

    async def _follow(self, url: str) -> Page[T]:
        return await self.page_fetcher.fetch_page(self._relative(url))

    async def next_page(self, page: Page[T]) -> Optional[Page[T]]:
        """The page after ``page``, or None on the last page."""
        if not page.meta.next_page_url:
            return None
        return await self._follow(page.meta.next_page_url)

    async def prev_page(self, page: Page[T]) -> Optional[Page[T]]:
        """The page before ``page``, or None on the first page."""
        if not page.meta.prev_page_url:
            return None
        return await self._follow(page.meta.prev_page_url)

    async def first_page(self, page: Page[T]) -> Optional[Page[T]]:
        if not page.meta.first_page_url:
            return None
        return await self._follow(page.meta.first_page_url)

    async def last_page(self, page: Page[T]) -> Optional[Page[T]]:
        if not page.meta.last_page_url:
            return None
        return await self._follow(page.meta.last_page_url)

    # --- Legacy API ---

    async def request_legacy(self, path: str) -> Any:
        """Issues one GET against the unversioned v1 API and decodes the JSON body.

        Raises:
            ConfigurationError: If the client has no legacy transport.
            DecodeFailure: If the body is not JSON.
        """
        if self.legacy_requester is None:
            raise ConfigurationError("No legacy (v1) transport configured")
        response = await self.legacy_requester.request(path)
        try:
            return json.loads(response.body)
        except ValueError as e:
            raise DecodeFailure(f"invalid JSON: {e}", path=path) from e
