"""Reading the server's rate-limit signals.

The API signals throttling with status 429 and an optional ``Retry-After``
header holding a whole number of seconds. Every response also carries
quota headers; those are informational only and never drive retries.
"""

import logging
from typing import Optional

from robotevents.domain.interfaces.transport import RawResponse
from robotevents.domain.models.common import RateLimitQuota

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = 429
RETRY_AFTER_HEADER = "retry-after"
QUOTA_LIMIT_HEADER = "x-ratelimit-limit"
QUOTA_REMAINING_HEADER = "x-ratelimit-remaining"


def is_throttled(response: RawResponse) -> bool:
    return response.status_code == TOO_MANY_REQUESTS


def parse_retry_after(response: RawResponse) -> Optional[int]:
    """Returns the wait in seconds from ``Retry-After``, or None if unusable.

    Only a non-negative integer is accepted. The HTTP-date form and anything
    else that does not parse count as a missing hint.
    """
    raw = response.header(RETRY_AFTER_HEADER)
    if raw is None:
        return None
    try:
        seconds = int(raw.strip())
    except ValueError:
        logger.debug(f"Ignoring unparseable Retry-After header: {raw!r}")
        return None
    if seconds < 0:
        logger.debug(f"Ignoring negative Retry-After header: {raw!r}")
        return None
    return seconds


def _int_header(response: RawResponse, name: str) -> Optional[int]:
    raw = response.header(name)
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def read_quota(response: RawResponse) -> RateLimitQuota:
    """Reads the informational quota headers of a response."""
    return RateLimitQuota(
        limit=_int_header(response, QUOTA_LIMIT_HEADER),
        remaining=_int_header(response, QUOTA_REMAINING_HEADER),
    )
