"""Core service for fetching and decoding a single page of a collection.

A body that does not decode into the ``{meta, data}`` envelope is treated
as transient: the whole request is re-issued within the page's retry
budget, the same budget the throttle retries draw from.
"""

import json
import logging
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from robotevents.domain.events.api_events import EventSink, RetryScheduled, log_event
from robotevents.domain.exceptions import DecodeFailure
from robotevents.domain.interfaces.transport import RawResponse
from robotevents.domain.models.pagination import Page, parse_envelope
from robotevents.domain.models.query import Query
from robotevents.domain.models.retry import RetryBudget
from robotevents.infrastructure.resilience.api_retry import RateLimitedRequester

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PageFetcher(Generic[T]):
    """Fetches one page through the RateLimitedRequester and decodes it."""

    def __init__(
        self,
        requester: RateLimitedRequester,
        item_parser: Optional[Callable[[Dict[str, Any]], T]] = None,
        retry_decode_failures: bool = True,
        event_sink: EventSink = log_event,
    ):
        self.requester = requester
        self.item_parser = item_parser
        self.retry_decode_failures = retry_decode_failures
        self._dispatch = event_sink

    async def fetch_page(
        self,
        path: str,
        query: Optional[Query] = None,
        budget: Optional[RetryBudget] = None,
    ) -> Page[T]:
        """Fetches and decodes one page.

        Args:
            path: Resource path, e.g. ``/teams``.
            query: Query parameters, usually including ``page``.
            budget: Attempt budget for this logical fetch; a fresh one is
                created when omitted.

        Returns:
            The decoded Page.

        Raises:
            DecodeFailure: If every attempt returned an undecodable body, or on
                the first one when decode retries are disabled.
            RobotEventsError: Any error raised by the requester.
        """
        full_path = f"{path}{query.to_query_string() if query else ''}"
        budget = budget if budget is not None else self.requester.new_budget()

        while True:
            try:
                response = await self.requester.request(full_path, budget)
                return self._decode(response, full_path, budget.attempts)
            except DecodeFailure as e:
                e.attempts = budget.attempts
                budget.record_failure(e)
                if not self.retry_decode_failures or budget.exhausted:
                    logger.error(
                        f"Giving up on {full_path} after {budget.attempts} attempt(s): {e.reason}"
                    )
                    raise
                logger.warning(
                    f"Undecodable page from {full_path} (attempt {budget.attempts}/{budget.max_attempts}): "
                    f"{e.reason}. Re-issuing request..."
                )
                self._dispatch(RetryScheduled(
                    path=full_path, attempt_number=budget.attempts, delay_seconds=0.0, reason="decode_failure",
                ))

    def _decode(self, response: RawResponse, path: str, attempts: int) -> Page[T]:
        try:
            payload = json.loads(response.body)
        except ValueError as e:
            raise DecodeFailure(f"invalid JSON: {e}", path=path, attempts=attempts) from e

        try:
            page = parse_envelope(payload, self.item_parser)
        except DecodeFailure as e:
            raise DecodeFailure(e.reason, path=path, attempts=attempts) from e

        if not page.meta.is_consistent():
            logger.warning(
                f"Inconsistent page metadata from {path}: last_page={page.meta.last_page}, "
                f"total={page.meta.total}, per_page={page.meta.per_page}"
            )
        return page
