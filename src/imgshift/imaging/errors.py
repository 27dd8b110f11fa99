"""Error taxonomy for the transformation pipeline.

Every failure the core can report is a ``TransformError`` subclass carrying an
``ErrorKind`` and the HTTP status it surfaces as. Handlers, the validator and
the pipeline raise them; the dispatcher turns them into failed results.
"""

from __future__ import annotations

from enum import StrEnum

from fastapi import status


class ErrorKind(StrEnum):
    MISSING_INPUT = "missing_input"
    UNREADABLE_IMAGE = "unreadable_image"
    INVALID_PARAMETERS = "invalid_parameters"
    UNSUPPORTED_FORMAT = "unsupported_format"
    INVALID_OPERATION = "invalid_operation"
    UNKNOWN_OPERATION = "unknown_operation"
    PROCESSING_FAILED = "processing_failed"


_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.MISSING_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNREADABLE_IMAGE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_PARAMETERS: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNSUPPORTED_FORMAT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_OPERATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNKNOWN_OPERATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PROCESSING_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(kind: ErrorKind) -> int:
    """Return the HTTP status a failure of the given kind is surfaced as."""
    return _STATUS_CODES[kind]


class TransformError(Exception):
    """Base class for every failure reported by the transformation core."""

    kind: ErrorKind = ErrorKind.PROCESSING_FAILED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return status_code_for(self.kind)


class MissingInput(TransformError):
    kind = ErrorKind.MISSING_INPUT


class UnreadableImage(TransformError):
    kind = ErrorKind.UNREADABLE_IMAGE


class InvalidParameters(TransformError):
    kind = ErrorKind.INVALID_PARAMETERS


class UnsupportedFormat(TransformError):
    kind = ErrorKind.UNSUPPORTED_FORMAT


class InvalidOperation(TransformError):
    kind = ErrorKind.INVALID_OPERATION


class UnknownOperation(TransformError):
    kind = ErrorKind.UNKNOWN_OPERATION


class ProcessingFailed(TransformError):
    """The codec library raised while transforming or encoding."""

    kind = ErrorKind.PROCESSING_FAILED
