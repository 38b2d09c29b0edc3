"""
Similarity scoring for patient duplicate detection.

This module computes the normalized name similarity and the weighted
overall match score between a submitted record and a stored candidate.
Scores are reproducible: name similarity is plain unit-cost Levenshtein
distance over normalized Unicode code points.
"""

import logging
from typing import Optional

from rapidfuzz.distance import Levenshtein

from .data_models import PatientRecord, StoredRecord
from ..utils.normalizers import normalize_name

logger = logging.getLogger(__name__)

# Component weights of the overall score
NAME_WEIGHT = 0.4
AGE_WEIGHT = 0.2
COUNTRY_WEIGHT = 0.1
IDENTIFIER_WEIGHT = 0.3

# Age difference at which the age score reaches zero
AGE_DECAY_YEARS = 10


def name_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Calculate normalized similarity between two names.

    Args:
        a: First name
        b: Second name

    Returns:
        (max_len - edit_distance) / max_len over the normalized names,
        1.0 when both normalize to the same string
    """
    n1 = normalize_name(a)
    n2 = normalize_name(b)

    if n1 == n2:
        return 1.0

    max_len = max(len(n1), len(n2))
    if max_len == 0:
        return 1.0

    distance = Levenshtein.distance(n1, n2)
    return (max_len - distance) / max_len


def age_similarity(age_a: int, age_b: int) -> float:
    """Linear decay from 1.0 for equal ages to 0.0 at ten years apart."""
    if age_a == age_b:
        return 1.0
    return max(0.0, 1 - abs(age_a - age_b) / AGE_DECAY_YEARS)


def identifier_similarity(query: PatientRecord, candidate: StoredRecord) -> Optional[float]:
    """
    Fraction of shared identifier keys whose values are exactly equal.

    Returns:
        Score in [0, 1], or None when the records have no identifier key
        in common
    """
    common_keys = set(query.identifiers) & set(candidate.identifiers)
    if not common_keys:
        return None

    equal = sum(1 for key in common_keys
                if query.identifiers[key] == candidate.identifiers[key])
    return equal / len(common_keys)


def overall_score(query: PatientRecord, candidate: StoredRecord) -> float:
    """
    Calculate the weighted overall match score of a candidate.

    Only components both records provide are included, and the weighted
    sum is divided by the sum of the included weights:
    - name (0.4): name similarity
    - age (0.2): linear decay over ten years
    - country (0.1): exact equality
    - identifiers (0.3): exact equality over shared keys

    Args:
        query: Submitted (possibly partial) record
        candidate: Stored record retrieved from the store

    Returns:
        Score from 0.0 to 1.0, 0.0 when no component qualifies
    """
    score = 0.0
    total_weight = 0.0

    if query.name and candidate.name:
        score += NAME_WEIGHT * name_similarity(query.name, candidate.name)
        total_weight += NAME_WEIGHT

    if query.age is not None and candidate.age is not None:
        score += AGE_WEIGHT * age_similarity(query.age, candidate.age)
        total_weight += AGE_WEIGHT

    if query.country is not None and candidate.country is not None:
        score += COUNTRY_WEIGHT * (1.0 if query.country == candidate.country else 0.0)
        total_weight += COUNTRY_WEIGHT

    id_score = identifier_similarity(query, candidate)
    if id_score is not None:
        score += IDENTIFIER_WEIGHT * id_score
        total_weight += IDENTIFIER_WEIGHT

    if total_weight == 0:
        return 0.0

    result = min(1.0, score / total_weight)

    logger.debug(
        f"Overall score for candidate {candidate.record_id}: {result:.3f} "
        f"(weights included: {total_weight:.1f})"
    )

    return result
