"""
Candidate retrieval for patient duplicate detection.

Builds the exact-identifier query and the broad name search against the
record store, and bounds every store call by the request deadline.
"""

import logging
import time
from typing import Collection, List, Optional

from .country_rules import unique_identifier_keys
from .data_models import PatientRecord, StoredRecord
from .exceptions import StoreUnavailableError
from ..store.base import DemographicClause, IdentifierClause, QueryClause, RecordStore


class CandidateRetriever:
    """Retrieves stored records that may duplicate a submitted record."""

    def __init__(self, store: RecordStore, result_limit: int = 50):
        """
        Initialize the retriever.

        Args:
            store: Record store to query
            result_limit: Maximum number of records the broad search returns
        """
        self.store = store
        self.result_limit = result_limit
        self.logger = logging.getLogger(__name__)

    def build_exact_clauses(self, record: PatientRecord) -> List[QueryClause]:
        """
        Build the disjunctive exact-match query for a record.

        One clause per unique identifier the record carries, plus one
        name/age/country clause when all three are present.
        """
        clauses: List[QueryClause] = []

        unique_keys = unique_identifier_keys(record.country)
        for key, value in record.identifiers.items():
            if key in unique_keys:
                clauses.append(IdentifierClause(key=key, value=value))

        if record.name and record.age is not None and record.country is not None:
            clauses.append(DemographicClause(
                name=record.name, age=record.age, country=record.country))

        return clauses

    def exact_lookup(self, record: PatientRecord,
                     deadline: Optional[float] = None) -> List[StoredRecord]:
        """
        Find stored records sharing a unique identifier, or name, age and
        country, with the record.

        Args:
            record: Submitted record
            deadline: time.monotonic() value by which the store must answer

        Returns:
            Matching stored records, empty without querying when the record
            has no qualifying field

        Raises:
            StoreUnavailableError: If the store fails or the deadline passes
        """
        clauses = self.build_exact_clauses(record)
        if not clauses:
            self.logger.debug("No unique identifier or demographic clause, skipping exact lookup")
            return []

        self.logger.debug(f"Exact lookup with {len(clauses)} clauses")
        timeout = self._remaining(deadline)

        try:
            duplicates = self.store.find_any(clauses, timeout=timeout)
        except StoreUnavailableError:
            raise
        except Exception as e:
            self.logger.error(f"Exact lookup failed: {e}")
            raise StoreUnavailableError(f"Exact lookup failed: {e}") from e

        self._check_deadline(deadline)
        return duplicates

    def broad_lookup(self, record: PatientRecord,
                     exclude_ids: Collection[str] = (),
                     deadline: Optional[float] = None) -> List[StoredRecord]:
        """
        Search stored records by name within the record's country.

        Args:
            record: Submitted record
            exclude_ids: Identities already found by the exact lookup
            deadline: time.monotonic() value by which the store must answer

        Returns:
            Up to result_limit candidates, empty when the record has no name

        Raises:
            StoreUnavailableError: If the store fails or the deadline passes
        """
        if not record.name:
            return []

        timeout = self._remaining(deadline)

        try:
            candidates = self.store.search_text(
                record.name,
                record.country,
                exclude_ids=set(exclude_ids),
                limit=self.result_limit,
                timeout=timeout
            )
        except StoreUnavailableError:
            raise
        except Exception as e:
            self.logger.error(f"Broad lookup failed: {e}")
            raise StoreUnavailableError(f"Broad lookup failed: {e}") from e

        self._check_deadline(deadline)
        excluded = set(exclude_ids)
        candidates = [c for c in candidates if c.record_id not in excluded]
        self.logger.debug(f"Broad lookup returned {len(candidates)} candidates")
        return candidates[:self.result_limit]

    def _remaining(self, deadline: Optional[float]) -> Optional[float]:
        """Seconds left before the deadline."""
        if deadline is None:
            return None

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            self.logger.error("Store deadline exceeded before query")
            raise StoreUnavailableError("Store deadline exceeded")
        return remaining

    def _check_deadline(self, deadline: Optional[float]):
        """Treat an answer arriving after the deadline as a timeout."""
        if deadline is not None and time.monotonic() > deadline:
            self.logger.error("Store answered after the deadline")
            raise StoreUnavailableError("Store call timed out")
