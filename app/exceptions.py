"""
Exception hierarchy for ingestion, cleanup and query operations.

Client-input errors (InvalidDate) are reported without side effects.
Per-item errors (DownloadError, EmptyDocument, SummarizationError) are
caught inside the ingestion pipeline and never abort a run. Everything else
is run-level and surfaces to the caller.
"""

from typing import Any


class ConcallError(Exception):
    """Base exception for all concall analyser errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and error responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class InvalidDate(ConcallError):
    """A user-supplied date string matched none of the accepted formats."""


class SourceUnavailable(ConcallError):
    """The exchange API could not be reached or answered with a non-200 status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context)
        self.status_code = status_code


class DecodeError(ConcallError):
    """The exchange API answered with a body that is not the expected JSON."""


class DownloadError(ConcallError):
    """An attachment could not be downloaded to the working directory."""


class EmptyDocument(ConcallError):
    """A downloaded attachment has zero bytes."""


class SummarizationError(ConcallError):
    """The summarizer failed to produce text for a document."""


class SummarizerUnavailable(ConcallError):
    """The summarizer could not be initialised (missing key or SDK failure)."""


class WorkingDirectoryError(ConcallError):
    """The working directory for downloads could not be created."""


class PersistenceError(ConcallError):
    """Writing summaries to the store failed."""

    def __init__(
        self,
        message: str,
        unsaved_count: int = 0,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context)
        self.unsaved_count = unsaved_count


class OperationTimeout(ConcallError):
    """A long-running operation exceeded its ceiling timeout."""
