"""HTTP transport for the AUR web interface.

Wraps a synchronous httpx client. Redirects are not followed, since the AUR
signals successful logins and uploads with a 302, and no cookie jar is kept:
the session cookie travels only in headers set explicitly by the API clients.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import httpx

from .. import __version__
from .exceptions import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"aurtool/{__version__} (httpx/{httpx.__version__})"


@dataclass(frozen=True)
class Response:
    """Raw response as seen by the API clients; content is already inflated."""

    status_code: int
    headers: httpx.Headers
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def is_redirect(self) -> bool:
        return self.status_code == 302


class Transport:
    """Single-attempt HTTP sender with transparent gzip decoding.

    Args:
        user_agent: Value of the User-Agent header sent with every request
        timeout: Timeout in seconds for a whole request, None for no limit
        verify: TLS certificate verification setting passed to httpx
    """

    def __init__(
        self,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        verify: bool = True,
    ):
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.timeout = timeout
        self._client = httpx.Client(
            timeout=timeout,
            follow_redirects=False,
            verify=verify,
        )

    def default_headers(self) -> Dict[str, str]:
        """Headers added to every request unless the caller overrides them."""
        return {
            "User-Agent": self.user_agent,
            "Accept-Encoding": "gzip",
        }

    def send(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None,
    ) -> Response:
        """Send one request and return the decoded response.

        Raises:
            NetworkError: On connection, TLS, timeout or decompression failure
        """
        merged = self.default_headers()
        if headers:
            merged.update(headers)

        # A standalone Request bypasses the client cookie jar.
        request = httpx.Request(method, url, headers=merged, content=body)
        logger.debug(f"{method} {request.url.host}{request.url.path}")

        try:
            response = self._client.send(request)
            content = response.read()
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request to {request.url.host} timed out: {e}") from e
        except httpx.ConnectError as e:
            raise NetworkError(f"Connection failed to {request.url.host}: {e}") from e
        except httpx.DecodingError as e:
            raise NetworkError(f"Failed to decompress response body: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"HTTP error: {e}") from e

        logger.debug(f"-> {response.status_code} ({len(content)} bytes)")
        return Response(
            status_code=response.status_code,
            headers=response.headers,
            content=content,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
