"""Per-request retry bookkeeping.

A RetryBudget lives exactly as long as one logical page fetch. Throttle
retries and decode retries both draw from it, so a page never makes more
than ``max_attempts`` network calls in total.
"""

from dataclasses import dataclass
from typing import Optional

from robotevents.domain.models.common import DEFAULT_MAX_ATTEMPTS


@dataclass
class RetryBudget:
    """Attempt counter plus the last failure observed for one logical request."""
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    attempts: int = 0  # attempts already made
    last_error: Optional[Exception] = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    @property
    def remaining(self) -> int:
        return self.max_attempts - self.attempts

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    def consume(self) -> int:
        """Records a new attempt and returns its 1-based number."""
        if self.exhausted:
            raise RuntimeError("Retry budget already exhausted")
        self.attempts += 1
        return self.attempts

    def record_failure(self, error: Exception) -> None:
        self.last_error = error
