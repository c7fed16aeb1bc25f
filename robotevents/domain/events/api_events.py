"""Domain Events related to API calls and resilience.

Examples include events for when calls are throttled, retried, fail, or
succeed, and when a bulk collection finishes.
"""

from dataclasses import dataclass, field
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when a request is about to be sent."""
    path: str
    attempt_number: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when a request returns a success status."""
    path: str
    attempt_number: int
    status_code: int
    latency_ms: float
    rate_limit_remaining: Optional[int] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a request fails definitively."""
    path: str
    error_type: str
    error_message: str
    attempts: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallThrottled(DomainEvent):
    """Event triggered when the server answers 429."""
    path: str
    attempt_number: int
    retry_after_seconds: Optional[int]  # None when the header was missing or unusable
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a request."""
    path: str
    attempt_number: int
    delay_seconds: float
    reason: str  # 'throttled', 'missing_retry_hint', 'decode_failure'
    timestamp: float = field(default_factory=time.time)

@dataclass
class PageCollected(DomainEvent):
    """Event triggered when one page of a bulk collection is decoded."""
    path: str
    page: int
    item_count: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class BulkCollectionCompleted(DomainEvent):
    """Event triggered when every page of a resource has been merged."""
    path: str
    page_count: int
    item_count: int
    duration_ms: float
    timestamp: float = field(default_factory=time.time)


EventSink = Callable[[DomainEvent], None]


def log_event(event: DomainEvent) -> None:
    """Default event sink: records the event at debug level."""
    logger.debug(f"EVENT: {event}")
