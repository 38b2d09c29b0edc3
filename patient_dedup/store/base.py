"""
Record store contract.

The duplicate detection engine only reads from the store, through two
capabilities: a disjunctive filter query and a country-scoped text search.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Collection, Dict, List, Optional, Sequence, Union

from ..core.data_models import Country, StoredRecord
from ..utils.normalizers import names_equal


@dataclass(frozen=True)
class IdentifierClause:
    """Matches records carrying the identifier value."""
    key: str
    value: str

    def matches(self, stored: StoredRecord) -> bool:
        return stored.identifiers.get(self.key) == self.value

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'identifier', 'key': self.key, 'value': self.value}


@dataclass(frozen=True)
class DemographicClause:
    """Matches records with the same name (case-insensitive), age and country."""
    name: str
    age: int
    country: Country

    def matches(self, stored: StoredRecord) -> bool:
        return (names_equal(self.name, stored.name)
                and stored.age == self.age
                and stored.country == self.country)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'demographic',
            'name': self.name,
            'age': self.age,
            'country': self.country.value
        }


QueryClause = Union[IdentifierClause, DemographicClause]


class RecordStore(ABC):
    """Read capabilities the engine needs from a patient record store."""

    @abstractmethod
    def find_any(self, clauses: Sequence[QueryClause],
                 timeout: Optional[float] = None) -> List[StoredRecord]:
        """
        Find every stored record matching at least one clause.

        Args:
            clauses: Non-empty disjunction of query clauses
            timeout: Seconds the call may take

        Returns:
            Matching records in store order
        """

    @abstractmethod
    def search_text(self, text: str, country: Optional[Country],
                    exclude_ids: Collection[str], limit: int,
                    timeout: Optional[float] = None) -> List[StoredRecord]:
        """
        Full-text search on record names.

        Args:
            text: Search text, matched term by term
            country: Restrict results to this country when given
            exclude_ids: Record identities to leave out
            limit: Maximum number of records returned
            timeout: Seconds the call may take

        Returns:
            Matching records in store order
        """
