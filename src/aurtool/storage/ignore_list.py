"""Persisted list of packages skipped by the upgrade check."""

import logging
from pathlib import Path
from typing import Iterable, List, Union

logger = logging.getLogger(__name__)


class IgnoreList:
    """Newline separated package names stored at ``path``."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def load(self) -> List[str]:
        """Return the stored names; empty if the file is missing or unreadable."""
        try:
            text = self.path.read_text()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning(f"Cannot read ignore list {self.path}: {e}")
            return []
        return text.split()

    def save(self, names: Iterable[str]) -> None:
        """Replace the stored list with the sorted, de-duplicated names."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("\n".join(sorted(set(names))))
