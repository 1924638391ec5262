"""Local persistence for sessions and the upgrade ignore list."""

from .ignore_list import IgnoreList
from .session_store import SessionStore

__all__ = ["IgnoreList", "SessionStore"]
