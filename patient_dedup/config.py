"""
Configuration for the duplicate detection engine.

Defaults can be overridden through environment variables or command line
flags.
"""

import os
from dataclasses import dataclass

# Record store API defaults
DEFAULT_API_HOSTNAME = "localhost"
DEFAULT_API_PORT = "5000"

DEFAULT_PARTIAL_MATCH_THRESHOLD = 0.5
DEFAULT_SUGGESTION_THRESHOLD = 0.8
DEFAULT_STORE_TIMEOUT = 30.0
DEFAULT_RESULT_LIMIT = 50


@dataclass
class MatchingConfig:
    """Tunable thresholds and store limits for duplicate detection."""
    partial_match_threshold: float = DEFAULT_PARTIAL_MATCH_THRESHOLD
    suggestion_confidence_threshold: float = DEFAULT_SUGGESTION_THRESHOLD
    store_timeout: float = DEFAULT_STORE_TIMEOUT
    broad_result_limit: int = DEFAULT_RESULT_LIMIT

    def __post_init__(self):
        """Validate configuration."""
        if not 0.0 <= self.partial_match_threshold <= 1.0:
            raise ValueError("Partial match threshold must be between 0.0 and 1.0")
        if not 0.0 <= self.suggestion_confidence_threshold <= 1.0:
            raise ValueError("Suggestion threshold must be between 0.0 and 1.0")
        if self.store_timeout <= 0:
            raise ValueError("Store timeout must be > 0")
        if self.broad_result_limit < 1:
            raise ValueError("Result limit must be >= 1")

    @classmethod
    def from_env(cls) -> 'MatchingConfig':
        """Build a configuration from PATIENT_DEDUP_* environment variables."""
        return cls(
            partial_match_threshold=float(os.environ.get(
                'PATIENT_DEDUP_PARTIAL_MATCH_THRESHOLD', DEFAULT_PARTIAL_MATCH_THRESHOLD)),
            suggestion_confidence_threshold=float(os.environ.get(
                'PATIENT_DEDUP_SUGGESTION_THRESHOLD', DEFAULT_SUGGESTION_THRESHOLD)),
            store_timeout=float(os.environ.get(
                'PATIENT_DEDUP_STORE_TIMEOUT', DEFAULT_STORE_TIMEOUT)),
            broad_result_limit=int(os.environ.get(
                'PATIENT_DEDUP_RESULT_LIMIT', DEFAULT_RESULT_LIMIT))
        )
