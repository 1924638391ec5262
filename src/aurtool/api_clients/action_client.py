"""Action API Client for state-changing AUR package operations."""

import logging
from typing import Iterable, Union
from urllib.parse import quote_plus

from ..models import ACTIONS, UNRESOLVED, Unresolved
from .base_client import AURRemoteAPIClient
from .exceptions import UnknownActionError
from .response_parser import package_action_message

logger = logging.getLogger(__name__)

PACKAGES_PATH = "/packages.php"
PKGEDIT_PATH = "/pkgedit.php"


def build_action_body(action_name: str, ids: Iterable[Union[int, str]]) -> str:
    """Build ``IDs[<id>]=1&...&action=<identifier>`` for one bulk request.

    Raises:
        UnknownActionError: If the action is not in the action table
    """
    try:
        identifier = ACTIONS[action_name]
    except KeyError:
        raise UnknownActionError(
            f"Unknown action {action_name!r}; expected one of {', '.join(ACTIONS)}"
        ) from None

    fields = [f"IDs[{quote_plus(str(pkg_id))}]=1" for pkg_id in ids]
    fields.append(f"action={identifier}")
    return "&".join(fields)


class ActionAPIClient(AURRemoteAPIClient):
    """API client for votes, flags, notifications, ownership and comments.

    Every operation needs a session.
    """

    def perform_action(
        self, action_name: str, ids: Iterable[Union[int, str]]
    ) -> Union[str, Unresolved]:
        """Apply an action to any number of packages with a single POST.

        Returns:
            The service's outcome message, or UNRESOLVED if the page carried
            none

        Raises:
            UnknownActionError: If the action is not in the action table
            AuthenticationError: If the client has no session
            NetworkError: If the request fails
        """
        body = build_action_body(action_name, ids)
        self._require_session()
        response = self._form_post(PACKAGES_PATH, body)

        message = package_action_message(response.text)
        if message is None:
            logger.debug(f"No outcome message for {action_name} (HTTP {response.status_code})")
            return UNRESOLVED
        return message

    def add_comment(self, package_id: Union[int, str], text: str):
        """Post a comment on a package page."""
        self._require_session()
        body = f"ID={package_id}&comment={quote_plus(text)}"
        return self._form_post(f"{PACKAGES_PATH}?ID={package_id}", body)

    def delete_comment(self, package_id: Union[int, str], comment_id: Union[int, str]):
        """Delete one comment from a package page."""
        self._require_session()
        return self._get(
            f"{PKGEDIT_PATH}?del_Comment=1&comment_id={comment_id}&ID={package_id}"
        )

    def change_category(self, package_id: Union[int, str], category: str):
        """Move a package to another category (index as a string)."""
        self._require_session()
        body = f"change_Category=1&ID={package_id}&category_id={category}"
        return self._form_post(PKGEDIT_PATH, body)
