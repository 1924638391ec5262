"""Session API Client for the AUR.

Logs in through the web login form and decides which session a write
operation runs with: a cookie supplied by the caller, one persisted by an
earlier run, or a fresh login.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Protocol, Tuple
from urllib.parse import urlencode

from ..models import Session
from .base_client import AURRemoteAPIClient
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

LOGIN_PATH = "/index.php"

# Receives the username if already known, returns (username, password).
CredentialPrompt = Callable[[Optional[str]], Tuple[str, str]]


class CookieSource(Protocol):
    """Anything that can hand back a previously persisted cookie."""

    def load(self) -> Optional[str]: ...


class SessionAPIClient(AURRemoteAPIClient):
    """API client for AUR login and session resolution."""

    def login(self, username: str, password: str) -> Optional[Session]:
        """Log in with the AUR web form.

        Returns:
            A new Session when the server answers with a 302 carrying a
            Set-Cookie header, None otherwise

        Raises:
            NetworkError: If the request fails
        """
        body = urlencode({"user": username, "passwd": password})
        response = self._form_post(LOGIN_PATH, body)

        cookie = response.headers.get("set-cookie")
        if cookie and response.is_redirect:
            logger.debug(f"Login succeeded for {username}")
            self.session = Session(cookie=cookie, username=username)
            return self.session

        logger.debug(f"Login rejected for {username} (HTTP {response.status_code})")
        return None

    def resolve_session(
        self,
        supplied_cookie: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        store: Optional[CookieSource] = None,
        prompt: Optional[CredentialPrompt] = None,
    ) -> Session:
        """Pick the session to use for write operations.

        A supplied cookie is only honoured when no username is given: an
        explicit username always forces a fresh login.

        Args:
            supplied_cookie: Cookie text, or path of a file holding it
            username: Explicit username; forces re-authentication
            password: Password for username, prompted for if missing
            store: Session store consulted when neither cookie nor username
                is given
            prompt: Credential prompt used when credentials are missing

        Returns:
            The resolved Session, also kept on this client

        Raises:
            AuthenticationError: If no usable session can be obtained
            NetworkError: If the login request fails
        """
        if supplied_cookie and not username:
            session = self._session_from_supplied(supplied_cookie)
            if session is None:
                raise AuthenticationError(
                    "Supplied cookie is neither a session token nor a readable cookie file"
                )
            self.session = session
            return session

        if not username:
            stored = store.load() if store is not None else None
            if stored:
                logger.debug("Reusing stored session")
                self.session = Session(cookie=stored)
                return self.session

        if not username or not password:
            if prompt is None:
                raise AuthenticationError("No credentials available for login")
            username, password = prompt(username)

        session = self.login(username, password)
        if session is None:
            raise AuthenticationError(f"AUR login failed for {username}")
        return session

    @staticmethod
    def _session_from_supplied(cookie: str) -> Optional[Session]:
        candidate = Session(cookie=cookie)
        if candidate.is_usable:
            return candidate

        try:
            text = Path(cookie).expanduser().read_text().strip()
        except (OSError, ValueError) as e:
            logger.debug(f"Supplied cookie is not a readable file: {e}")
            return None

        from_file = Session(cookie=text)
        return from_file if from_file.is_usable else None
