"""Cookie persistence between aurtool runs.

The cookie is written as plain text with owner-only permissions (600).
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class SessionStore:
    """Loads and saves the session cookie at a caller-chosen path."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def load(self) -> Optional[str]:
        """Return the stored cookie, None if there is none or it is unreadable."""
        try:
            cookie = self.path.read_text().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Cannot read stored session {self.path}: {e}")
            return None
        return cookie or None

    def save(self, cookie: str) -> None:
        """Write the cookie, replacing any existing file.

        Raises:
            ValueError: If the cookie is empty
            OSError: If the file cannot be written
        """
        if not cookie:
            raise ValueError("Cookie cannot be empty")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            # an existing file keeps its old mode through O_CREAT
            os.fchmod(f.fileno(), 0o600)
            f.write(cookie)
        logger.debug(f"Session saved to {self.path}")
