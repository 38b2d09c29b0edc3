"""Utility functions for patient duplicate detection."""

# Import key functions for easier access
from .normalizers import normalize_name, name_tokens, names_equal, parse_key_value

__all__ = [
    'normalize_name',
    'name_tokens',
    'names_equal',
    'parse_key_value'
]
