"""Errors raised by the duplicate detection engine."""


class DuplicateCheckError(Exception):
    """Base class for duplicate detection failures."""


class InvalidInputError(DuplicateCheckError):
    """The record lacks the minimum fields needed to query the store."""


class StoreUnavailableError(DuplicateCheckError):
    """A record store call failed or timed out."""
