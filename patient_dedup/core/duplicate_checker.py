"""
Duplicate Checker - Core deduplication engine.

This module combines candidate retrieval, similarity scoring and country
field validation into the two operations offered to intake callers:
duplicate analysis of a new submission and ranked match search.
"""

import logging
import time
from typing import List, Optional

from .candidate_retriever import CandidateRetriever
from .country_rules import validate_record
from .data_models import (
    DuplicateAnalysisResult,
    FieldSuggestion,
    MatchCandidate,
    MatchResult,
    PatientRecord,
    StoredRecord
)
from .exceptions import InvalidInputError
from .similarity import name_similarity, overall_score
from ..config import MatchingConfig
from ..store.base import RecordStore


class DuplicateChecker:
    """
    Detects likely duplicate patient records before intake.

    The checker holds no mutable state of its own: every call reads the
    injected record store and returns a fresh result, so calls may run
    concurrently.
    """

    def __init__(self, store: RecordStore, config: Optional[MatchingConfig] = None):
        """
        Initialize the duplicate checker.

        Args:
            store: Record store holding existing patients
            config: Thresholds and store limits (defaults when omitted)
        """
        self.config = config or MatchingConfig()
        self.retriever = CandidateRetriever(store, result_limit=self.config.broad_result_limit)
        self.logger = logging.getLogger(__name__)

    def analyze_duplicates(self, record: PatientRecord) -> DuplicateAnalysisResult:
        """
        Analyze a submitted record for duplicates and validation errors.

        Duplicate detection and validation are independent: a record can
        be a duplicate and fail validation at the same time.

        Args:
            record: Submitted (possibly partial) record

        Returns:
            DuplicateAnalysisResult with duplicates, name suggestions and
            validation errors

        Raises:
            StoreUnavailableError: If the exact lookup fails or times out
        """
        deadline = self._deadline()
        duplicates = self.retriever.exact_lookup(record, deadline=deadline)

        suggestions = self._build_suggestions(record, duplicates)
        validation_errors = validate_record(record)

        if duplicates:
            self.logger.warning(
                f"DUPLICATE_FOUND - {record.name or '<no name>'} matches "
                f"{', '.join(d.record_id for d in duplicates)}"
            )

        return DuplicateAnalysisResult(
            duplicates=duplicates,
            suggestions=suggestions,
            validation_errors=validation_errors
        )

    def find_matches(self, record: PatientRecord) -> MatchResult:
        """
        Find exact and ranked partial matches for a record.

        Args:
            record: Partial record carrying at least a name or an identifier

        Returns:
            MatchResult with exact matches and partial matches scoring above
            the threshold, sorted by descending score

        Raises:
            InvalidInputError: If the record has neither a name nor any
                identifier (raised before any store access)
            StoreUnavailableError: If either lookup fails or times out
        """
        if not record.name and not record.identifiers:
            raise InvalidInputError("A name or at least one identifier is required to search")

        deadline = self._deadline()
        exact_matches = self.retriever.exact_lookup(record, deadline=deadline)

        candidates = self.retriever.broad_lookup(
            record,
            exclude_ids=[m.record_id for m in exact_matches],
            deadline=deadline
        )

        partial_matches = []
        for candidate in candidates:
            score = overall_score(record, candidate)
            if score > self.config.partial_match_threshold:
                partial_matches.append(MatchCandidate(record=candidate, score=score))

        # Stable sort keeps store order for equal scores
        partial_matches.sort(key=lambda m: m.score, reverse=True)

        self.logger.info(
            f"Found {len(exact_matches)} exact and {len(partial_matches)} partial matches "
            f"out of {len(candidates)} candidates"
        )

        return MatchResult(exact_matches=exact_matches, partial_matches=partial_matches)

    def _build_suggestions(self, record: PatientRecord,
                           duplicates: List[StoredRecord]) -> List[FieldSuggestion]:
        """Offer stored names that are near-identical to the submitted one."""
        suggestions = []
        for duplicate in duplicates:
            if not duplicate.name:
                continue
            similarity = name_similarity(record.name or '', duplicate.name)
            if similarity > self.config.suggestion_confidence_threshold:
                suggestions.append(FieldSuggestion(
                    field='name',
                    suggested_value=duplicate.name,
                    confidence=similarity
                ))
        return suggestions

    def _deadline(self) -> float:
        return time.monotonic() + self.config.store_timeout
