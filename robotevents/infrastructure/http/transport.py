"""httpx-based implementation of the Transport interface.

One HttpxTransport wraps one long-lived ``httpx.AsyncClient`` bound to a
base URL. The client is shared read-only by every concurrent page fetch.
"""

import logging
from typing import Optional

import httpx

from robotevents.domain.exceptions import DecodeFailure, TransportFailure
from robotevents.domain.interfaces.transport import RawResponse, Transport, build_headers

logger = logging.getLogger(__name__)

V1_API_BASE = "https://www.robotevents.com/api/v1"
V2_API_BASE = "https://www.robotevents.com/api/v2"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_USER_AGENT = "robotevents-python"


class HttpxTransport(Transport):
    """Issues single GET requests through httpx with a fixed per-attempt timeout."""

    def __init__(
        self,
        base_url: str = V2_API_BASE,
        token: Optional[str] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initializes the transport.

        Args:
            base_url: API base every path is appended to.
            token: Bearer credential. Leave as None for the unauthenticated v1 API.
            timeout_seconds: Timeout applied to each individual attempt.
            user_agent: Value of the User-Agent header.
            client: Pre-built AsyncClient (tests inject one backed by
                ``httpx.MockTransport``). Headers and timeout are still applied
                per request.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout_seconds)
        self._headers = dict(build_headers(user_agent, token))
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)
        logger.info(
            f"HttpxTransport initialized: base={self.base_url}, timeout={timeout_seconds}s, "
            f"authenticated={token is not None}"
        )

    async def get(self, path: str) -> RawResponse:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.get(url, headers=self._headers, timeout=self.timeout)
        except httpx.TimeoutException as e:
            logger.warning(f"Request to {url} timed out: {e!r}")
            raise TransportFailure(f"timed out: {e!r}", path=path) from e
        except httpx.DecodingError as e:
            # Body could not be decompressed or decoded; the page fetch re-issues the request
            logger.warning(f"Undecodable response body from {url}: {e!r}")
            raise DecodeFailure(f"undecodable body: {e!r}", path=path) from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.warning(f"Request to {url} failed: {e!r}")
            raise TransportFailure(repr(e), path=path) from e

        return RawResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
            url=str(response.url),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
