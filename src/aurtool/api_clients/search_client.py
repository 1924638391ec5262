"""Search API Client for the AUR RPC interface.

Wraps the ``search``, ``msearch`` and ``info`` queries of ``/rpc.php`` and
normalizes their records into Package models.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..models import Package
from .base_client import AURRemoteAPIClient
from .exceptions import BadResponseError
from .response_parser import decode_envelope, is_no_results_message

logger = logging.getLogger(__name__)

RPC_PATH = "/rpc.php"

# Wire field name -> Package attribute
SORT_FIELDS: Dict[str, str] = {
    info.alias: name for name, info in Package.model_fields.items() if info.alias
}


def resolve_sort_field(sort_field: str) -> str:
    """Map a wire field name (``NumVotes``) or attribute name to the attribute.

    Raises:
        ValueError: If the field is unknown
    """
    if sort_field in SORT_FIELDS:
        return SORT_FIELDS[sort_field]
    if sort_field in Package.model_fields:
        return sort_field
    raise ValueError(f"Unknown sort field: {sort_field}")


def sort_packages(packages: List[Package], sort_field: str) -> List[Package]:
    """Stable ascending sort; records without a value sort last."""
    attribute = resolve_sort_field(sort_field)

    def key(package: Package):
        value = getattr(package, attribute)
        return (value is None, value)

    return sorted(packages, key=key)


class SearchAPIClient(AURRemoteAPIClient):
    """API client for AUR package lookups."""

    def search(self, term: str, sort_field: Optional[str] = None) -> List[Package]:
        """Search package names and descriptions.

        Returns:
            Matching packages, empty if the service found nothing

        Raises:
            BadResponseError: If the service reports an error
            NetworkError: If the request fails
        """
        return self._query("search", term, sort_field)

    def maintainer_search(
        self, term: str, sort_field: Optional[str] = None
    ) -> List[Package]:
        """Search packages by maintainer name."""
        return self._query("msearch", term, sort_field)

    def info(self, term: str) -> Optional[Package]:
        """Look up one package by exact name or ID; None if it does not exist."""
        packages = self._query("info", term)
        return packages[0] if packages else None

    def _query(
        self, kind: str, term: str, sort_field: Optional[str] = None
    ) -> List[Package]:
        response = self._get(f"{RPC_PATH}?type={kind}&arg={self.escape(term)}")
        envelope_type, results = decode_envelope(response)

        if envelope_type == kind:
            # info carries a single object rather than a list
            records = [results] if isinstance(results, dict) else results
            packages = self._normalize(records)
            if sort_field:
                packages = sort_packages(packages, sort_field)
            logger.debug(f"{kind} {term!r}: {len(packages)} result(s)")
            return packages

        if envelope_type == "error":
            if is_no_results_message(results):
                return []
            raise BadResponseError(str(results), response.status_code)

        raise BadResponseError(
            f"Unexpected response type {envelope_type!r} for {kind} query",
            response.status_code,
        )

    @staticmethod
    def _normalize(records: Any) -> List[Package]:
        if not isinstance(records, list):
            raise BadResponseError("Results are not a list of package records")
        try:
            return [Package.model_validate(record) for record in records]
        except ValidationError as e:
            raise BadResponseError(f"Malformed package record: {e}") from e
