"""
HTTP client for the patient record API.

Queries the intake system's patient API. Responses use the API's
{"success": ..., "data": ..., "error": ...} envelope.
"""

import logging
from typing import Any, Collection, Dict, List, Optional, Sequence

import requests
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from .base import QueryClause, RecordStore
from ..config import DEFAULT_API_HOSTNAME, DEFAULT_API_PORT, DEFAULT_STORE_TIMEOUT
from ..core.data_models import Country, StoredRecord
from ..core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def default_api_url(hostname: str = DEFAULT_API_HOSTNAME, port: str = DEFAULT_API_PORT) -> str:
    return f"https://{hostname}:{port}/api"


class HttpRecordStore(RecordStore):
    """Record store backed by the patient API."""

    def __init__(self, base_url: str, bearer_token: Optional[str] = None,
                 verify: bool = True, session: Optional[requests.Session] = None):
        """
        Initialize the API client.

        Args:
            base_url: API root, e.g. https://localhost:5000/api
            bearer_token: Token for the Authorization header
            verify: Verify the server's TLS certificate
            session: Session to reuse (a new one when omitted)
        """
        self.base_url = base_url.rstrip('/')
        self.verify = verify
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if bearer_token:
            self.headers["Authorization"] = f"Bearer {bearer_token}"

        if not verify:
            # Suppress SSL warnings for self-signed development servers
            urllib3.disable_warnings(InsecureRequestWarning)

    def find_any(self, clauses: Sequence[QueryClause],
                 timeout: Optional[float] = None) -> List[StoredRecord]:
        if not clauses:
            raise ValueError("find_any requires at least one clause")

        payload = {"clauses": [clause.to_dict() for clause in clauses]}
        return self._post_records("/patients/query", payload, timeout)

    def search_text(self, text: str, country: Optional[Country],
                    exclude_ids: Collection[str], limit: int,
                    timeout: Optional[float] = None) -> List[StoredRecord]:
        payload = {
            "text": text,
            "country": country.value if country else None,
            "exclude_ids": sorted(exclude_ids),
            "limit": limit
        }
        return self._post_records("/patients/search", payload, timeout)

    def _post_records(self, path: str, payload: Dict[str, Any],
                      timeout: Optional[float]) -> List[StoredRecord]:
        url = f"{self.base_url}{path}"

        try:
            response = self.session.post(
                url,
                headers=self.headers,
                json=payload,
                verify=self.verify,
                timeout=timeout or DEFAULT_STORE_TIMEOUT
            )
        except requests.Timeout as e:
            raise StoreUnavailableError(f"Record store timed out: {url}") from e
        except requests.RequestException as e:
            raise StoreUnavailableError(f"Record store request failed: {url}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise StoreUnavailableError(
                f"Record store returned status {response.status_code} for {url}")

        try:
            body = response.json()
        except ValueError as e:
            raise StoreUnavailableError(f"Record store returned invalid JSON for {url}") from e

        if not isinstance(body, dict):
            raise StoreUnavailableError(f"Record store returned an unexpected body for {url}")

        if not body.get("success", False):
            raise StoreUnavailableError(
                f"Record store error for {url}: {body.get('error', 'unknown error')}")

        try:
            records = [StoredRecord.from_dict(item) for item in body.get("data") or []]
        except (ValueError, TypeError, AttributeError) as e:
            raise StoreUnavailableError(f"Record store returned malformed records: {e}") from e

        logger.debug(f"POST {path} returned {len(records)} records")
        return records
