"""Domain errors for the scrape and enrichment pipeline.

Every error carries a closed ``ErrorKind`` so callers can branch on the kind
instead of matching message strings.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed taxonomy of pipeline failures."""

    INVALID_INPUT = "invalid_input"
    TRANSPORT_FAILURE = "transport_failure"
    PARSE_FAILURE = "parse_failure"
    NOT_FOUND = "not_found"
    ENRICHMENT_FAILURE = "enrichment_failure"


class CanonSyncError(Exception):
    """Base class for canonsync domain errors."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, **details: Any) -> None:
        """Initialize the error.

        Args:
            message: Human-readable cause.
            **details: Structured context (ids, urls, status codes).
        """
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInputError(CanonSyncError, ValueError):
    """Raised for empty URLs/ids, nil series references or non-positive episode numbers."""

    kind = ErrorKind.INVALID_INPUT


class TransportError(CanonSyncError):
    """Raised for network errors, non-success HTTP statuses and upstream error envelopes."""

    kind = ErrorKind.TRANSPORT_FAILURE

    def __init__(
        self, message: str, status: int | None = None, url: str | None = None, **details: Any
    ) -> None:
        super().__init__(message, status=status, url=url, **details)
        self.status = status
        self.url = url


class ParseFailureError(CanonSyncError):
    """Raised for malformed documents or unparseable mandatory fields."""

    kind = ErrorKind.PARSE_FAILURE


class NotFoundError(CanonSyncError, LookupError):
    """Raised when a required series or episode does not exist."""

    kind = ErrorKind.NOT_FOUND


class EnrichmentError(CanonSyncError):
    """Raised when AniDB enrichment of a stored series fails."""

    kind = ErrorKind.ENRICHMENT_FAILURE
