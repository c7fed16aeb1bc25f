"""RobotEvents API client.

Paginated access to the RobotEvents v2 API that waits out rate limiting
and collects whole collections in page order.
"""

__version__ = "0.3.0"

from robotevents.core.client import RobotEventsClient
from robotevents.domain.exceptions import (
    ConfigurationError,
    DecodeFailure,
    MissingRetryHint,
    NonRetryableStatus,
    RetryBudgetExhausted,
    RobotEventsError,
    TransportFailure,
)
from robotevents.domain.models.pagination import Page, PageMeta
from robotevents.domain.models.query import Query

__all__ = [
    "RobotEventsClient",
    "Page",
    "PageMeta",
    "Query",
    "RobotEventsError",
    "ConfigurationError",
    "TransportFailure",
    "NonRetryableStatus",
    "MissingRetryHint",
    "RetryBudgetExhausted",
    "DecodeFailure",
]
