"""Throttle-aware execution of single API requests.

Wraps one GET with the retry state machine the API's rate limit calls for:

    Requesting -> Success                      (2xx, returned as is)
    Requesting -> Throttled -> Waiting -> Requesting   (429, Retry-After honoured)
    Requesting -> FatalError                   (any other failure status)
    Requesting -> BudgetExhausted              (max attempts used up)

No rate-limit state is shared between requests; everything the loop needs
is in the response being processed and in the caller's RetryBudget.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from robotevents.domain.events.api_events import (
    ApiCallFailed, ApiCallInitiated, ApiCallSucceeded, ApiCallThrottled,
    EventSink, RetryScheduled, log_event,
)
from robotevents.domain.exceptions import (
    DecodeFailure, MissingRetryHint, NonRetryableStatus, RetryBudgetExhausted, RobotEventsError, TransportFailure,
)
from robotevents.domain.interfaces.transport import RawResponse, Transport
from robotevents.domain.models.common import DEFAULT_MAX_ATTEMPTS, DEFAULT_MISSING_HINT_BACKOFF_S
from robotevents.domain.models.retry import RetryBudget
from robotevents.infrastructure.resilience.rate_limiter import is_throttled, parse_retry_after, read_quota

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]

MAX_MISSING_HINT_BACKOFF_S = 30.0


class Throttled(RobotEventsError):
    """A single 429 answer. Kept as the budget's last error, never raised on its own."""

    def __init__(self, retry_after: Optional[int], path: Optional[str] = None):
        self.retry_after = retry_after
        hint = f"retry after {retry_after}s" if retry_after is not None else "no retry hint"
        super().__init__(f"Throttled by server ({hint})", path=path)


class RateLimitedRequester:
    """Executes GET requests, waiting out 429 responses within a bounded budget."""

    def __init__(
        self,
        transport: Transport,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        missing_hint_backoff_s: float = DEFAULT_MISSING_HINT_BACKOFF_S,
        backoff_factor: float = 2.0,
        sleep: SleepFunc = asyncio.sleep,
        event_sink: EventSink = log_event,
    ):
        """Initializes the RateLimitedRequester.

        Args:
            transport: Transport used for every attempt.
            max_attempts: Total tries allowed for one logical request.
            missing_hint_backoff_s: Delay before retrying a 429 that carried no
                usable Retry-After header. Grows by ``backoff_factor`` on each
                further attempt. ``0`` retries immediately.
            backoff_factor: Multiplier for the missing-hint delay.
            sleep: Coroutine used to suspend during waits.
            event_sink: Receives the domain events emitted for each attempt.
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.transport = transport
        self.max_attempts = max_attempts
        self.missing_hint_backoff_s = missing_hint_backoff_s
        self.backoff_factor = backoff_factor
        self._sleep = sleep
        self._dispatch = event_sink

        logger.info(
            f"RateLimitedRequester initialized: max_attempts={max_attempts}, "
            f"missing_hint_backoff={missing_hint_backoff_s}s, factor={backoff_factor}"
        )

    def new_budget(self) -> RetryBudget:
        return RetryBudget(max_attempts=self.max_attempts)

    def _missing_hint_delay(self, attempt: int) -> float:
        if self.missing_hint_backoff_s <= 0:
            return 0.0
        delay = self.missing_hint_backoff_s * (self.backoff_factor ** (attempt - 1))
        return min(delay, MAX_MISSING_HINT_BACKOFF_S)

    async def request(self, path: str, budget: Optional[RetryBudget] = None) -> RawResponse:
        """Issues a GET for ``path``, retrying while the server throttles.

        Args:
            path: Path plus query string relative to the transport's base URL.
            budget: Attempt budget to draw from. A page fetch passes its own
                budget so throttles and decode retries share one limit. A
                fresh budget is used when omitted.

        Returns:
            The first successful RawResponse.

        Raises:
            NonRetryableStatus: On any failure status other than 429.
            MissingRetryHint: If the final attempt is throttled without a usable
                Retry-After header.
            RetryBudgetExhausted: If every attempt was throttled.
            TransportFailure: If the transport could not complete an attempt.
            DecodeFailure: If the transport received a body it could not decode.
        """
        budget = budget if budget is not None else self.new_budget()

        while not budget.exhausted:
            attempt = budget.consume()
            self._dispatch(ApiCallInitiated(path=path, attempt_number=attempt))
            start_time = time.perf_counter()

            try:
                response = await self.transport.get(path)
            except TransportFailure as e:
                budget.record_failure(e)
                logger.error(f"Transport failure for {path} on attempt {attempt}/{budget.max_attempts}: {e}")
                self._fail(path, e, budget)
                raise
            except DecodeFailure as e:
                # Not final: the page fetch decides whether to re-issue
                budget.record_failure(e)
                logger.warning(f"Undecodable body for {path} on attempt {attempt}/{budget.max_attempts}: {e.reason}")
                raise

            latency_ms = (time.perf_counter() - start_time) * 1000

            # 1. Common path: success, no retry
            if response.is_success:
                quota = read_quota(response)
                logger.debug(
                    f"GET {path} -> {response.status_code} in {latency_ms:.0f}ms "
                    f"(quota remaining: {quota['remaining']}/{quota['limit']})"
                )
                self._dispatch(ApiCallSucceeded(
                    path=path, attempt_number=attempt, status_code=response.status_code,
                    latency_ms=latency_ms, rate_limit_remaining=quota["remaining"],
                ))
                return response

            # 2. Anything other than throttling is fatal for this request
            if not is_throttled(response):
                error = NonRetryableStatus(response.status_code, path=path, body=response.text[:500])
                budget.record_failure(error)
                logger.error(f"Non-retryable status {response.status_code} for {path} on attempt {attempt}")
                self._fail(path, error, budget)
                raise error

            # 3. Throttled
            retry_after = parse_retry_after(response)
            budget.record_failure(Throttled(retry_after, path=path))
            self._dispatch(ApiCallThrottled(path=path, attempt_number=attempt, retry_after_seconds=retry_after))

            if retry_after is None:
                if budget.exhausted:
                    error = MissingRetryHint(attempt, path=path)
                    logger.error(f"Throttled on final attempt {attempt} for {path} without a Retry-After hint")
                    self._fail(path, error, budget)
                    raise error
                delay = self._missing_hint_delay(attempt)
                reason = "missing_retry_hint"
                logger.warning(
                    f"Throttled on {path} (attempt {attempt}/{budget.max_attempts}) without a Retry-After hint. "
                    f"Retrying in {delay:.2f}s..."
                )
            else:
                if budget.exhausted:
                    break
                delay = float(retry_after)
                reason = "throttled"
                logger.warning(
                    f"Throttled on {path} (attempt {attempt}/{budget.max_attempts}). "
                    f"Waiting {retry_after}s as requested by the server..."
                )

            self._dispatch(RetryScheduled(path=path, attempt_number=attempt, delay_seconds=delay, reason=reason))
            if delay > 0:
                await self._sleep(delay)

        error = RetryBudgetExhausted(budget.attempts, budget.last_error, path=path)
        logger.error(f"Max attempts ({budget.max_attempts}) reached for {path}. Last error: {budget.last_error}")
        self._fail(path, error, budget)
        raise error

    def _fail(self, path: str, error: Exception, budget: RetryBudget) -> None:
        self._dispatch(ApiCallFailed(
            path=path, error_type=type(error).__name__, error_message=str(error), attempts=budget.attempts,
        ))
