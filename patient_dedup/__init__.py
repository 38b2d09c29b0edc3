"""
Patient Intake Deduplication Engine

Detects likely duplicate patient records before a form submission is saved,
ranks partial matches, and validates records against the required-field
rules of the supported countries (UK, US, India, Japan).
"""

from .config import MatchingConfig
from .core.data_models import (
    Country,
    RecordStatus,
    PatientRecord,
    StoredRecord,
    MatchCandidate,
    FieldSuggestion,
    DuplicateAnalysisResult,
    MatchResult
)
from .core.duplicate_checker import DuplicateChecker
from .core.exceptions import DuplicateCheckError, InvalidInputError, StoreUnavailableError
from .core.country_rules import validate_record
from .core.similarity import name_similarity, overall_score
from .store.memory_store import InMemoryRecordStore
from .store.http_store import HttpRecordStore

__version__ = "1.0.0"

__all__ = [
    'MatchingConfig',
    'Country',
    'RecordStatus',
    'PatientRecord',
    'StoredRecord',
    'MatchCandidate',
    'FieldSuggestion',
    'DuplicateAnalysisResult',
    'MatchResult',
    'DuplicateChecker',
    'DuplicateCheckError',
    'InvalidInputError',
    'StoreUnavailableError',
    'validate_record',
    'name_similarity',
    'overall_score',
    'InMemoryRecordStore',
    'HttpRecordStore'
]
