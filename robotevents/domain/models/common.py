"""Defines common Value Objects used across the client.

These objects represent simple values like resource paths, tokens and page
numbers, keeping signatures readable across the layers.
"""

from typing import Any, Dict, NewType, Optional, TypedDict

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are plain values at runtime.
ResourcePath = NewType("ResourcePath", str)   # Path relative to the API base, e.g. "/teams"
ApiToken = NewType("ApiToken", str)           # Bearer credential for the v2 API
PageNumber = NewType("PageNumber", int)       # 1-based page index
RawItem = NewType("RawItem", Dict[str, Any])  # One undecoded record from a page's "data" list

# === Rate Limit Context ===

class RateLimitQuota(TypedDict):
    """Informational quota headers returned alongside every response."""
    limit: Optional[int]
    remaining: Optional[int]


DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_MISSING_HINT_BACKOFF_S = 1.0
