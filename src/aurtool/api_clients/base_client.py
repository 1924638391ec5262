"""Base AUR API Client.

Provides the shared request plumbing for all AUR operations: URL building,
form posts carrying the session cookie and ownership of the transport.
"""

import logging
from typing import Dict, Optional
from urllib.parse import quote

from ..models import Session
from .exceptions import AuthenticationError
from .transport import Response, Transport

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://aur.archlinux.org"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class AURRemoteAPIClient:
    """Base API client bound to one transport and an optional session.

    Args:
        transport: Transport used for every request; created if omitted
        session: Authenticated session for write operations
        base_url: Origin of the AUR web interface
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        session: Optional[Session] = None,
        base_url: str = DEFAULT_BASE_URL,
    ):
        self._owns_transport = transport is None
        self.transport = transport or Transport()
        self.session = session
        self.base_url = base_url.rstrip("/")

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _session_headers(self) -> Dict[str, str]:
        if self.session is None:
            return {}
        return {"Cookie": self.session.cookie_header}

    def _require_session(self) -> Session:
        """Return the current session.

        Raises:
            AuthenticationError: If the client has no session
        """
        if self.session is None:
            raise AuthenticationError("Login required for this operation")
        return self.session

    def _get(self, path: str) -> Response:
        return self.transport.send("GET", self.url(path), self._session_headers())

    def _form_post(self, path: str, body: str) -> Response:
        """POST an already encoded form body."""
        payload = body.encode("utf-8")
        headers = self._session_headers()
        headers["Content-Type"] = FORM_CONTENT_TYPE
        headers["Content-Length"] = str(len(payload))
        return self.transport.send("POST", self.url(path), headers, payload)

    @staticmethod
    def escape(term: str) -> str:
        """Escape a search term or package name for use in a URL."""
        return quote(str(term), safe="")

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
