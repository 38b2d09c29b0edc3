"""Record store collaborators."""

from .base import RecordStore, IdentifierClause, DemographicClause, QueryClause
from .memory_store import InMemoryRecordStore
from .http_store import HttpRecordStore

__all__ = [
    'RecordStore',
    'IdentifierClause',
    'DemographicClause',
    'QueryClause',
    'InMemoryRecordStore',
    'HttpRecordStore'
]
