"""Upload API Client for AUR source tarball submission.

pkgsubmit.php only accepts a hand-framed multipart/form-data body: scalar
fields first, then the tarball part, each framed exactly as below.
"""

import logging
import os
import uuid
from typing import List, Mapping, Optional, Sequence, Tuple

from ..models import TarballSource, UploadOutcome, UploadRequest
from .base_client import AURRemoteAPIClient
from .exceptions import MissingFileError
from .response_parser import extract_package_id, upload_error_message

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/pkgsubmit.php"

DEFAULT_TARBALL_NAME = "src.tar.gz"

CRLF = b"\r\n"

# (field name, filename, raw bytes)
FilePart = Tuple[str, str, bytes]


def generate_boundary() -> str:
    return f"--------------aurtool{uuid.uuid4().hex}"


def quote_header_value(value: str) -> str:
    """Percent-encode the characters that would end a quoted header value."""
    return value.replace("\r", "%0D").replace("\n", "%0A").replace('"', "%22")


def compose_multipart_body(
    boundary: str,
    form_fields: Mapping[str, str],
    file_fields: Sequence[FilePart],
) -> bytes:
    """Build a multipart/form-data body; file bytes are copied verbatim."""
    delimiter = b"--" + boundary.encode("ascii")
    parts: List[bytes] = []

    for name, value in form_fields.items():
        parts += [
            delimiter,
            CRLF,
            f'content-disposition: form-data; name="{quote_header_value(name)}"'.encode(
                "utf-8"
            ),
            CRLF,
            CRLF,
            str(value).encode("utf-8"),
            CRLF,
        ]

    for name, filename, data in file_fields:
        parts += [
            delimiter,
            CRLF,
            (
                f'content-disposition: form-data; name="{quote_header_value(name)}"; '
                f'filename="{quote_header_value(filename)}"'
            ).encode("utf-8"),
            CRLF,
            b"content-type: application/x-gzip",
            CRLF,
            b"content-transfer-encoding: binary",
            CRLF,
            CRLF,
            data,
            CRLF,
        ]

    parts += [delimiter, b"--", CRLF]
    return b"".join(parts)


def read_tarball(
    tarball: TarballSource, filename: Optional[str] = None
) -> Tuple[str, bytes]:
    """Read a tarball from a path or an open binary stream.

    Streams are read but left open. The display name defaults to the
    basename of the path (or of the stream's ``name``).

    Raises:
        MissingFileError: If the source cannot be opened or read
    """
    if hasattr(tarball, "read"):
        source_name = getattr(tarball, "name", None)
        if filename is None:
            filename = (
                os.path.basename(source_name)
                if isinstance(source_name, str)
                else DEFAULT_TARBALL_NAME
            )
        try:
            data = tarball.read()
        except (OSError, ValueError) as e:
            raise MissingFileError(f"Failed to read tarball {filename}: {e}") from e
        if isinstance(data, str):
            raise MissingFileError(f"Tarball stream {filename} is not opened in binary mode")
        return filename, data

    path = os.fspath(tarball)
    try:
        with open(path, "rb") as f:
            data = f.read()
    except (OSError, ValueError) as e:
        reason = getattr(e, "strerror", None) or e
        raise MissingFileError(f"Cannot read tarball {path}: {reason}") from e
    return filename or os.path.basename(path), data


class UploadAPIClient(AURRemoteAPIClient):
    """API client for submitting source tarballs."""

    def upload(
        self,
        tarball: TarballSource,
        category: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> UploadOutcome:
        """Upload a source tarball.

        Args:
            tarball: Path or open binary stream of the .src.tar.gz
            category: Category index as a string; sent empty when None
            filename: Display filename overriding the derived one

        Returns:
            Outcome holding the new package ID, the service's error message,
            or an unresolved marker

        Raises:
            MissingFileError: If the tarball cannot be read
            AuthenticationError: If the client has no session
            NetworkError: If the request fails
        """
        self._require_session()
        filename, data = read_tarball(tarball, filename)

        boundary = generate_boundary()
        body = compose_multipart_body(
            boundary,
            {"pkgsubmit": "1", "category": category or ""},
            [("pfile", filename, data)],
        )
        headers = self._session_headers()
        headers["Content-Type"] = f'multipart/form-data; boundary="{boundary}"'
        headers["Content-Length"] = str(len(body))

        logger.debug(f"Uploading {filename} ({len(data)} bytes)")
        response = self.transport.send("POST", self.url(SUBMIT_PATH), headers, body)

        package_id = extract_package_id(response)
        if package_id is not None:
            return UploadOutcome(filename=filename, package_id=package_id)

        message = upload_error_message(response.text)
        if message is not None:
            return UploadOutcome(filename=filename, message=message)

        logger.debug(f"Unrecognized upload response (HTTP {response.status_code})")
        return UploadOutcome(filename=filename, unresolved=True)

    def submit(self, request: UploadRequest) -> UploadOutcome:
        """Upload a tarball, then post its initial comment if it was accepted."""
        outcome = self.upload(request.tarball, request.category, request.filename)
        if outcome.succeeded and request.comment:
            from .action_client import ActionAPIClient

            actions = ActionAPIClient(self.transport, self.session, self.base_url)
            actions.add_comment(outcome.package_id, request.comment)
        return outcome
