"""
In-memory patient record store.

Holds stored records in insertion order and answers the engine's queries
directly. Records can be loaded from a flat CSV export where each
identifier and detail key is its own column.
"""

import csv
import logging
import threading
from datetime import datetime, timezone
from typing import Collection, Dict, List, Optional, Sequence

from .base import QueryClause, RecordStore
from ..core.country_rules import valid_detail_keys, valid_identifier_keys
from ..core.data_models import Country, PatientRecord, StoredRecord
from ..utils.normalizers import name_tokens

logger = logging.getLogger(__name__)

BASE_COLUMNS = ('record_id', 'name', 'age', 'country', 'status', 'created_at', 'source_url')


class InMemoryRecordStore(RecordStore):
    """List-backed record store."""

    def __init__(self, records: Optional[Sequence[StoredRecord]] = None):
        self._lock = threading.Lock()
        self._records: List[StoredRecord] = list(records or [])
        self._next_id = len(self._records) + 1

    def add(self, record: PatientRecord, record_id: Optional[str] = None,
            created_at: Optional[datetime] = None) -> StoredRecord:
        """
        Store a record under a new identity.

        Args:
            record: Record to store
            record_id: Identity to use (sequential when omitted)
            created_at: Creation timestamp (now, UTC, when omitted)

        Returns:
            The stored record
        """
        with self._lock:
            ids = {r.record_id for r in self._records}
            if record_id is None:
                # Skip sequential ids already taken by explicit ones
                while f"P{self._next_id:06d}" in ids:
                    self._next_id += 1
                record_id = f"P{self._next_id:06d}"
            elif record_id in ids:
                raise ValueError(f"Duplicate record id: {record_id}")
            self._next_id += 1

            stored = StoredRecord(
                record_id=record_id,
                record=record,
                created_at=created_at or datetime.now(timezone.utc)
            )
            self._records.append(stored)
            return stored

    def all(self) -> List[StoredRecord]:
        """Get every stored record in insertion order."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def find_any(self, clauses: Sequence[QueryClause],
                 timeout: Optional[float] = None) -> List[StoredRecord]:
        if not clauses:
            raise ValueError("find_any requires at least one clause")

        return [stored for stored in self.all()
                if any(clause.matches(stored) for clause in clauses)]

    def search_text(self, text: str, country: Optional[Country],
                    exclude_ids: Collection[str], limit: int,
                    timeout: Optional[float] = None) -> List[StoredRecord]:
        terms = set(name_tokens(text))
        if not terms:
            return []

        excluded = set(exclude_ids)
        results = []
        for stored in self.all():
            if stored.record_id in excluded:
                continue
            if country is not None and stored.country != country:
                continue
            if terms & set(name_tokens(stored.name)):
                results.append(stored)
                if len(results) >= limit:
                    break

        return results

    @classmethod
    def from_csv(cls, csv_file: str) -> 'InMemoryRecordStore':
        """
        Load stored records from a CSV file.

        Rows without a name, age or country, and rows whose values cannot
        be parsed, are skipped with a warning.
        Columns other than the base columns are identifier or detail
        keys, dispatched by the row's country.

        Args:
            csv_file: Path to the CSV file

        Returns:
            Store holding the loaded records
        """
        store = cls()

        logger.info(f"Loading stored records from: {csv_file}")

        with open(csv_file, 'r', encoding='utf-8') as file:
            reader = csv.DictReader(file)

            for row in reader:
                name = (row.get('name') or '').strip()
                age = (row.get('age') or '').strip()
                country = (row.get('country') or '').strip()

                if not all([name, age, country]):
                    logger.warning(f"Skipping incomplete stored record: {row}")
                    continue

                try:
                    store.add(_record_from_row(row), **_identity_from_row(row))
                except ValueError as e:
                    logger.warning(f"Skipping invalid stored record: {row} ({e})")
                    continue

        logger.info(f"Loaded {len(store)} stored records")
        return store


def _identity_from_row(row: Dict[str, str]) -> dict:
    identity = {}
    record_id = (row.get('record_id') or '').strip()
    if record_id:
        identity['record_id'] = record_id
    created_at = (row.get('created_at') or '').strip()
    if created_at:
        identity['created_at'] = datetime.fromisoformat(created_at.replace('Z', '+00:00'))
    return identity


def _record_from_row(row: Dict[str, str]) -> PatientRecord:
    data = {key: row.get(key) for key in BASE_COLUMNS}
    record = PatientRecord.from_dict(data)

    id_keys = valid_identifier_keys(record.country)
    detail_keys = valid_detail_keys(record.country)
    extra = {k: v for k, v in row.items() if k not in BASE_COLUMNS}

    return PatientRecord(
        name=record.name,
        age=record.age,
        country=record.country,
        identifiers={k: v for k, v in extra.items() if k in id_keys},
        details={k: v for k, v in extra.items() if k in detail_keys},
        source_url=record.source_url,
        status=record.status
    )
