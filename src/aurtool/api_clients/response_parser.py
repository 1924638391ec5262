"""Outcome extraction from raw AUR responses.

The AUR answers reads with a JSON envelope ``{"type": ..., "results": ...}``
and writes with HTML pages or redirects. These helpers turn either form into
plain Python values; none of them performs I/O.
"""

import json
import re
from typing import Any, Optional, Tuple

from .exceptions import BadResponseError
from .transport import Response

NO_RESULTS_RE = re.compile(r"No results? founds?")

PACKAGE_ID_RE = re.compile(r"ID=(\d+)")

TAG_RE = re.compile(r"<[^>]+>")

PKGOUTPUT_RE = re.compile(r'<p class="pkgoutput">([^<]+)<')

# Tried in order, first match wins.
UPLOAD_ERROR_PATTERNS = (
    re.compile(r"^<span class='error'>([^\n]+)</span><br />$", re.MULTILINE),
    PKGOUTPUT_RE,
    re.compile(
        r"^(You must create an account before you can upload packages\.)$",
        re.MULTILINE,
    ),
)


def decode_envelope(response: Response) -> Tuple[str, Any]:
    """Decode a JSON envelope into its ``(type, results)`` pair.

    Raises:
        BadResponseError: If the body is not a well-formed envelope
    """
    try:
        envelope = json.loads(response.text)
    except json.JSONDecodeError as e:
        raise BadResponseError(
            f"Malformed JSON response (HTTP {response.status_code}): {e}",
            response.status_code,
        ) from e

    if (
        not isinstance(envelope, dict)
        or not isinstance(envelope.get("type"), str)
        or "results" not in envelope
    ):
        raise BadResponseError(
            "Response is not a {type, results} envelope", response.status_code
        )
    return envelope["type"], envelope["results"]


def is_no_results_message(message: Any) -> bool:
    """Whether an error envelope message only says nothing matched."""
    return isinstance(message, str) and NO_RESULTS_RE.fullmatch(message) is not None


def redirect_location(response: Response) -> Optional[str]:
    """Return the Location target of a 302 response, None otherwise."""
    if not response.is_redirect:
        return None
    return response.headers.get("location")


def extract_package_id(response: Response) -> Optional[int]:
    """Return the package ID a successful submission redirected to."""
    location = redirect_location(response)
    if not location:
        return None
    match = PACKAGE_ID_RE.search(location)
    return int(match.group(1)) if match else None


def strip_markup(text: str) -> str:
    return TAG_RE.sub("", text)


def _last_group(pattern: "re.Pattern[str]", text: str) -> Optional[str]:
    """First group of the last match; pages may repeat an outcome block."""
    matches = pattern.findall(text)
    return matches[-1] if matches else None


def upload_error_message(body: str) -> Optional[str]:
    """Find the error message embedded in a pkgsubmit.php page."""
    for pattern in UPLOAD_ERROR_PATTERNS:
        message = _last_group(pattern, body)
        if message is not None:
            return strip_markup(message)
    return None


def package_action_message(body: str) -> Optional[str]:
    """Find the outcome message embedded in a packages.php page."""
    return _last_group(PKGOUTPUT_RE, body)
