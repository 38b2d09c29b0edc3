"""
Patient Deduplication Data Models

This module defines the core data structures and types used throughout the
duplicate detection engine: submitted records, stored records, and the
results returned to intake callers.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any
from enum import Enum


class Country(Enum):
    """Jurisdictions supported by the intake forms."""
    UK = "UK"
    US = "US"
    INDIA = "India"
    JAPAN = "Japan"


class RecordStatus(Enum):
    """Lifecycle status of a patient record."""
    EXTRACTED = "extracted"      # Newly extracted from a form
    VERIFIED = "verified"        # Confirmed by an operator
    DUPLICATE = "duplicate"      # Marked as a duplicate


def _clean_values(values: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Drop blank entries so an absent key always means 'unknown'."""
    cleaned = {}
    for key, value in (values or {}).items():
        if value is None:
            continue
        value = str(value).strip()
        if value:
            cleaned[key] = value
    return cleaned


def parse_country(value: Any) -> Optional[Country]:
    """
    Parse a country tag into a Country.

    Accepts the enum itself, its value ("India") or its name ("INDIA").
    Blank values give None.
    """
    if value is None or isinstance(value, Country):
        return value

    text = str(value).strip()
    if not text:
        return None

    for country in Country:
        if text.lower() in (country.value.lower(), country.name.lower()):
            return country

    raise ValueError(f"Unsupported country: {value}")


@dataclass
class PatientRecord:
    """Identity submission for one patient, possibly incomplete."""
    name: Optional[str] = None
    age: Optional[int] = None
    country: Optional[Country] = None
    identifiers: Dict[str, str] = field(default_factory=dict)
    details: Dict[str, str] = field(default_factory=dict)
    source_url: Optional[str] = None
    status: RecordStatus = RecordStatus.EXTRACTED

    def __post_init__(self):
        """Validate identifier keys against the record's jurisdiction."""
        from .country_rules import valid_identifier_keys, valid_detail_keys

        if isinstance(self.name, str):
            self.name = self.name.strip() or None
        self.country = parse_country(self.country)
        if not isinstance(self.status, RecordStatus):
            self.status = RecordStatus(self.status)

        self.identifiers = _clean_values(self.identifiers)
        self.details = _clean_values(self.details)

        unknown = sorted(set(self.identifiers) - valid_identifier_keys(self.country))
        if unknown:
            raise ValueError(
                f"Identifiers not valid for {self._country_label()}: {', '.join(unknown)}")

        unknown = sorted(set(self.details) - valid_detail_keys(self.country))
        if unknown:
            raise ValueError(
                f"Details not valid for {self._country_label()}: {', '.join(unknown)}")

    def _country_label(self) -> str:
        return self.country.value if self.country else "any country"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PatientRecord':
        """Build a record from its JSON representation."""
        age = data.get('age')
        if age is not None and age != '':
            age = int(age)
        else:
            age = None

        return cls(
            name=data.get('name'),
            age=age,
            country=data.get('country'),
            identifiers=data.get('identifiers') or {},
            details=data.get('details') or {},
            source_url=data.get('source_url') or None,
            status=data.get('status') or RecordStatus.EXTRACTED
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'name': self.name,
            'age': self.age,
            'country': self.country.value if self.country else None,
            'identifiers': dict(self.identifiers),
            'details': dict(self.details),
            'source_url': self.source_url,
            'status': self.status.value
        }


@dataclass
class StoredRecord:
    """A patient record as held by the record store."""
    record_id: str
    record: PatientRecord
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def name(self) -> Optional[str]:
        return self.record.name

    @property
    def age(self) -> Optional[int]:
        return self.record.age

    @property
    def country(self) -> Optional[Country]:
        return self.record.country

    @property
    def identifiers(self) -> Dict[str, str]:
        return self.record.identifiers

    @property
    def status(self) -> RecordStatus:
        return self.record.status

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoredRecord':
        """Build a stored record from the store's JSON representation."""
        record_id = data.get('record_id') or data.get('_id')
        if not record_id:
            raise ValueError("Stored record without an identity")

        created_at = data.get('created_at') or data.get('createdAt')
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace('Z', '+00:00'))
        elif created_at is None:
            created_at = datetime.now(timezone.utc)

        return cls(
            record_id=str(record_id),
            record=PatientRecord.from_dict(data),
            created_at=created_at
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self.record.to_dict()
        data['record_id'] = self.record_id
        data['created_at'] = self.created_at.isoformat()
        return data


@dataclass
class MatchCandidate:
    """A stored record paired with its overall match score."""
    record: StoredRecord
    score: float

    def __post_init__(self):
        if not 0.0 <= self.score <= 1.0:
            raise ValueError("Score must be between 0.0 and 1.0")

    def to_dict(self) -> Dict[str, Any]:
        return {'record': self.record.to_dict(), 'score': round(self.score, 4)}


@dataclass
class FieldSuggestion:
    """Corrected value offered for a field of the submitted record."""
    field: str
    suggested_value: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'field': self.field,
            'suggested_value': self.suggested_value,
            'confidence': round(self.confidence, 4)
        }


@dataclass
class DuplicateAnalysisResult:
    """Outcome of a duplicate analysis for one submitted record."""
    duplicates: List[StoredRecord] = field(default_factory=list)
    suggestions: List[FieldSuggestion] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)

    @property
    def is_duplicate(self) -> bool:
        return len(self.duplicates) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'is_duplicate': self.is_duplicate,
            'duplicates': [d.to_dict() for d in self.duplicates],
            'suggestions': [s.to_dict() for s in self.suggestions],
            'validation_errors': list(self.validation_errors)
        }


@dataclass
class MatchResult:
    """Exact and ranked partial matches for a submitted record."""
    exact_matches: List[StoredRecord] = field(default_factory=list)
    partial_matches: List[MatchCandidate] = field(default_factory=list)

    @property
    def match_found(self) -> bool:
        return bool(self.exact_matches or self.partial_matches)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'exact_matches': [m.to_dict() for m in self.exact_matches],
            'partial_matches': [m.to_dict() for m in self.partial_matches]
        }
