"""Interface for the HTTP transport.

A Transport issues exactly one GET and reports what came back. It knows
nothing about throttling or retries; those live in the resilience layer.
"""

import abc
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional


@dataclass
class RawResponse:
    """Status, headers and body of one HTTP response."""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: Optional[str] = None

    def __post_init__(self) -> None:
        # Header names are case-insensitive on the wire
        self.headers = {name.lower(): value for name, value in self.headers.items()}

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class Transport(abc.ABC):
    """Abstract Base Class for issuing single GET requests."""

    @abc.abstractmethod
    async def get(self, path: str) -> RawResponse:
        """Sends one GET for ``path`` relative to the transport's base URL.

        Args:
            path: Path and query string, e.g. ``/teams?page=2``.

        Returns:
            The RawResponse, whatever its status code.

        Raises:
            TransportFailure: On connectivity, DNS or timeout problems.
            DecodeFailure: If the body arrived but could not be decoded
                (e.g. a corrupt compressed body).
        """
        pass

    async def aclose(self) -> None:
        """Releases any connections held by the transport."""
        pass


def build_headers(user_agent: str, token: Optional[str] = None) -> Mapping[str, str]:
    """Headers sent with every request; the bearer token only when given."""
    headers = {
        "Accept": "application/json",
        "Accept-Language": "en",
        "User-Agent": user_agent,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers
