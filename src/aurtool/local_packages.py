"""Installed foreign package discovery and AUR upgrade checks.

Relies on pacman's ``pacman -Qm`` for the list of packages not found in the
sync databases and on ``vercmp`` for version ordering.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .api_clients.exceptions import BadResponseError
from .api_clients.search_client import SearchAPIClient

logger = logging.getLogger(__name__)

PACMAN = "/usr/bin/pacman"
VERCMP = "/usr/bin/vercmp"


class LocalPackageError(Exception):
    """Raised when pacman or vercmp cannot be run."""

    pass


@dataclass(frozen=True)
class VersionChange:
    name: str
    local_version: str
    aur_version: str


@dataclass
class UpgradeReport:
    """Result of comparing installed foreign packages against the AUR."""

    upgradable: List[VersionChange] = field(default_factory=list)
    local_newer: List[VersionChange] = field(default_factory=list)
    not_found: List[str] = field(default_factory=list)


def _run(cmd: List[str], timeout: Optional[float] = 30) -> str:
    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, check=True, timeout=timeout
        )
    except FileNotFoundError as e:
        raise LocalPackageError(f"{cmd[0]} not found: {e}") from e
    except subprocess.CalledProcessError as e:
        raise LocalPackageError(
            f"{' '.join(cmd)} failed with exit code {e.returncode}: {e.stderr.strip()}"
        ) from e
    except subprocess.TimeoutExpired as e:
        raise LocalPackageError(f"{' '.join(cmd)} timed out") from e
    return result.stdout


def list_foreign_packages() -> List[Tuple[str, str]]:
    """Return ``(name, version)`` for every installed foreign package."""
    try:
        output = _run([PACMAN, "-Qm"])
    except LocalPackageError as e:
        # pacman -Qm exits 1 when there are no foreign packages
        if isinstance(e.__cause__, subprocess.CalledProcessError) and not e.__cause__.stdout:
            return []
        raise

    packages = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 2:
            packages.append((parts[0], parts[1]))
    return packages


def vercmp(a: str, b: str) -> int:
    """Compare two pacman versions: -1, 0 or 1 like ``vercmp a b``."""
    output = _run([VERCMP, a, b]).strip()
    try:
        value = int(output)
    except ValueError as e:
        raise LocalPackageError(f"Unexpected vercmp output: {output!r}") from e
    return (value > 0) - (value < 0)


def check_upgrades(
    client: SearchAPIClient,
    installed: Iterable[Tuple[str, str]],
    ignored: Iterable[str] = (),
) -> UpgradeReport:
    """Look up every installed package that is not ignored in the AUR.

    Raises:
        NetworkError: If an AUR lookup fails at the transport level
        LocalPackageError: If vercmp cannot be run
    """
    skip = set(ignored)
    report = UpgradeReport()

    for name, local_version in installed:
        if name in skip:
            continue

        try:
            package = client.info(name)
        except BadResponseError as e:
            logger.warning(f"AUR lookup for {name} failed: {e}")
            package = None

        if package is None:
            report.not_found.append(name)
            continue

        change = VersionChange(name, local_version, package.version)
        order = vercmp(package.version, local_version)
        if order > 0:
            report.upgradable.append(change)
        elif order < 0:
            report.local_newer.append(change)

    return report
