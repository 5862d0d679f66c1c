"""Typed pipeline errors with user-facing messages.

Every component raises one of these classes. Each error carries a message
that tells the user what to do next, an HTTP-style status code for the API
layer, and a ``kind`` tag that tests and callers can branch on without
parsing message text.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Classification tags attached to every PipelineError."""

    CONFIGURATION = "configuration"
    INVALID_INPUT = "invalid_input"
    STORAGE_FAILURE = "storage_failure"
    UPLOAD_EXPIRED = "upload_expired"
    FILE_TOO_LARGE = "file_too_large"
    FILE_PROCESSING_FAILED = "file_processing_failed"
    FILE_PROCESSING_TIMEOUT = "file_processing_timeout"
    INVALID_CREDENTIALS = "invalid_credentials"
    QUOTA_EXCEEDED = "quota_exceeded"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    RATE_LIMITED = "rate_limited"
    MALFORMED_REQUEST = "malformed_request"
    UNSUPPORTED_FORMAT = "unsupported_format"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UPSTREAM_FAILURE = "upstream_failure"
    CONNECTIVITY_FAILURE = "connectivity_failure"
    GENERIC_FAILURE = "generic_failure"
    EMPTY_RESPONSE = "empty_response"
    SCHEMA_VALIDATION = "schema_validation"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"


class PipelineError(Exception):
    """Base class for every error surfaced to a pipeline caller.

    Attributes:
        message: User-facing message naming a concrete remediation step.
        kind: Classification tag.
        status_code: HTTP-style severity used by the API layer.
        raw: Optional raw payload for debugging (e.g. unparsed model output).
        detail: Optional diagnostic detail (e.g. the wrapped exception text).
    """

    status_code: int = 500
    default_kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[ErrorKind] = None,
        raw: Optional[str] = None,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.raw = raw
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        """Render the error as the JSON body returned to API callers."""
        payload: dict[str, Any] = {"error": self.message}
        if self.raw is not None:
            payload["raw"] = self.raw
        if self.detail is not None:
            payload["details"] = self.detail
        return payload


class ConfigurationError(PipelineError):
    """Required configuration is missing. Never retried."""

    default_kind = ErrorKind.CONFIGURATION


class InputValidationError(PipelineError):
    """The submitted video failed size, type or name checks."""

    status_code = 400
    default_kind = ErrorKind.INVALID_INPUT


class StorageError(PipelineError):
    """Uploading or deleting the raw video failed."""

    status_code = 502
    default_kind = ErrorKind.STORAGE_FAILURE


class FileProcessingError(PipelineError):
    """The provider could not activate an uploaded file in time."""

    status_code = 502
    default_kind = ErrorKind.FILE_PROCESSING_FAILED


class TransientProviderError(PipelineError):
    """Provider failure that is likely temporary and eligible for retry."""

    status_code = 502
    default_kind = ErrorKind.UPSTREAM_FAILURE


class TerminalProviderError(PipelineError):
    """Provider failure that retrying cannot fix."""

    status_code = 502
    default_kind = ErrorKind.GENERIC_FAILURE


class EmptyResponseError(PipelineError):
    """A model answered with no usable text."""

    status_code = 502
    default_kind = ErrorKind.EMPTY_RESPONSE


class SchemaValidationError(PipelineError):
    """The generated output is not a valid Veo prompt object."""

    status_code = 500
    default_kind = ErrorKind.SCHEMA_VALIDATION


class PipelineCancelled(PipelineError):
    """Raised when the caller cancels a run between stages."""

    status_code = 499
    default_kind = ErrorKind.CANCELLED


class UnexpectedError(PipelineError):
    """Catch-all wrapper for exceptions no component classified."""

    status_code = 500
    default_kind = ErrorKind.UNEXPECTED
