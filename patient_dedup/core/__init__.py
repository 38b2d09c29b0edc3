"""Core duplicate detection engine."""

# Import main classes for easier access
from .data_models import (
    Country,
    RecordStatus,
    PatientRecord,
    StoredRecord,
    MatchCandidate,
    FieldSuggestion,
    DuplicateAnalysisResult,
    MatchResult
)
from .country_rules import COUNTRY_RULES, CountryRule, IdentifierRule, validate_record
from .similarity import name_similarity, overall_score
from .duplicate_checker import DuplicateChecker

__all__ = [
    'Country',
    'RecordStatus',
    'PatientRecord',
    'StoredRecord',
    'MatchCandidate',
    'FieldSuggestion',
    'DuplicateAnalysisResult',
    'MatchResult',
    'COUNTRY_RULES',
    'CountryRule',
    'IdentifierRule',
    'validate_record',
    'name_similarity',
    'overall_score',
    'DuplicateChecker'
]
