"""
String normalization utilities for patient duplicate detection.

This module provides the normalization functions used by the scorer, the
candidate retriever and the in-memory store so that names are compared the
same way everywhere.
"""

import re
import unicodedata
from typing import List, Optional


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize a name for comparison.

    Names typed into web forms come in any case and spacing, and the
    same character may arrive composed or decomposed (e.g. Japanese
    dakuten, accented Latin letters). Normalization:
    - Unicode NFC composition
    - Lowercase
    - Trim leading/trailing whitespace
    - Collapse internal whitespace runs to a single space

    Args:
        name: Input name string

    Returns:
        Normalized name, empty string for missing input
    """
    if not name:
        return ""
    composed = unicodedata.normalize('NFC', name)
    return re.sub(r'\s+', ' ', composed.lower().strip())


def name_tokens(name: Optional[str]) -> List[str]:
    """
    Split a name into normalized search terms.

    Punctuation separates terms, so "O'Brien-Smith" gives
    ["o", "brien", "smith"].
    """
    normalized = normalize_name(name)
    return [token for token in re.split(r'[\W_]+', normalized) if token]


def names_equal(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive name equality after whitespace normalization."""
    return bool(a) and bool(b) and normalize_name(a) == normalize_name(b)


def parse_key_value(text: str) -> tuple:
    """
    Parse a KEY=VALUE command line argument.

    Raises:
        ValueError: If the argument has no '=' or an empty key
    """
    key, sep, value = text.partition('=')
    key = key.strip()
    if not sep or not key:
        raise ValueError(f"Expected KEY=VALUE, got: {text}")
    return key, value.strip()
