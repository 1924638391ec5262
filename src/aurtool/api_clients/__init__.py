"""API Client Abstractions for the AUR web interface.

Keeps all HTTP traffic inside dedicated client classes; callers only see
Package models, Session values, outcomes and typed errors.
"""

from .base_client import AURRemoteAPIClient, DEFAULT_BASE_URL
from .exceptions import (
    AURClientError,
    AuthenticationError,
    BadResponseError,
    MissingFileError,
    NetworkError,
    UnknownActionError,
)
from .transport import Response, Transport
from .session_client import SessionAPIClient
from .search_client import SearchAPIClient
from .upload_client import UploadAPIClient
from .action_client import ActionAPIClient
from .snapshot_client import SnapshotAPIClient

__all__ = [
    # Base client
    "AURRemoteAPIClient",
    "DEFAULT_BASE_URL",
    "Transport",
    "Response",
    # Errors
    "AURClientError",
    "AuthenticationError",
    "BadResponseError",
    "MissingFileError",
    "NetworkError",
    "UnknownActionError",
    # Clients
    "SessionAPIClient",
    "SearchAPIClient",
    "UploadAPIClient",
    "ActionAPIClient",
    "SnapshotAPIClient",
]
