"""Snapshot API Client: fetches and unpacks AUR build script tarballs."""

import io
import logging
import tarfile
from pathlib import Path

from .base_client import AURRemoteAPIClient
from .exceptions import BadResponseError

logger = logging.getLogger(__name__)


class SnapshotAPIClient(AURRemoteAPIClient):
    """API client for downloading package snapshots."""

    def snapshot_path(self, name: str) -> str:
        escaped = self.escape(name)
        return f"/packages/{escaped}/{escaped}.tar.gz"

    def download(self, name: str, dest_dir: Path) -> Path:
        """Download the build scripts of a package and extract them.

        Args:
            name: Package name
            dest_dir: Directory the snapshot is extracted into

        Returns:
            Path of the extracted package directory

        Raises:
            BadResponseError: If the snapshot is missing or not a tarball
            NetworkError: If the request fails
        """
        response = self._get(self.snapshot_path(name))
        if response.status_code != 200:
            raise BadResponseError(
                f"No snapshot available for {name} (HTTP {response.status_code})",
                response.status_code,
            )

        dest_dir = Path(dest_dir)
        try:
            with tarfile.open(fileobj=io.BytesIO(response.content), mode="r:*") as tar:
                tar.extractall(dest_dir, filter="data")
        except tarfile.TarError as e:
            raise BadResponseError(f"Snapshot for {name} is not a valid tarball: {e}") from e

        logger.debug(f"Extracted {name} into {dest_dir}")
        return dest_dir / name
