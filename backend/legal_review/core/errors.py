"""Exception hierarchy shared by the pipeline, synchronizer and API layer."""

from __future__ import annotations


class LegalReviewError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class LedgerEntryNotFound(LegalReviewError):
    """Raised when neither the ledger nor the semantic store knows an id."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"entry not found: {entry_id}")
        self.entry_id = entry_id


class FileMissingError(LegalReviewError):
    """Raised by the file store when an object does not exist."""

    def __init__(self, name: str) -> None:
        super().__init__(f"file not found: {name}")
        self.name = name


class InvalidTransition(LegalReviewError):
    """Raised when an entry cannot move to the requested status."""


class RateLimitError(LegalReviewError):
    """The generation or embedding service signalled request throttling."""


class GenerationError(LegalReviewError):
    """The generation service failed for a reason other than throttling."""


class ConfigurationError(LegalReviewError):
    """Raised when configuration is invalid or missing."""


__all__ = [
    "ConfigurationError",
    "FileMissingError",
    "GenerationError",
    "InvalidTransition",
    "LedgerEntryNotFound",
    "LegalReviewError",
    "RateLimitError",
]
