"""Exception classes for AUR API clients."""

from typing import Optional


class AURClientError(Exception):
    """Base exception for AUR API client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(AURClientError):
    """Raised on connection, TLS, timeout or decompression failure."""

    pass


class AuthenticationError(AURClientError):
    """Raised when login is rejected or a supplied session is unusable."""

    pass


class BadResponseError(AURClientError):
    """Raised for malformed envelopes or service-reported errors."""

    pass


class MissingFileError(AURClientError):
    """Raised when a tarball source cannot be opened or read."""

    pass


class UnknownActionError(AURClientError):
    """Raised for an action name that is not in the action table."""

    pass
