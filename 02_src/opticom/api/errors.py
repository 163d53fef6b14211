"""Mapping of domain errors to HTTP responses."""

from fastapi import HTTPException

from ..errors import (
    AgentNotAvailable,
    DuplicateName,
    GenerationError,
    InvalidInput,
    InvalidState,
    NotFound,
    ServiceDisabled,
)

STATUS_CODES: list[tuple[type[Exception], int]] = [
    (NotFound, 404),
    (DuplicateName, 409),
    (InvalidState, 409),
    (AgentNotAvailable, 409),
    (InvalidInput, 422),
    (ServiceDisabled, 503),
    (GenerationError, 502),
]


def http_error(error: Exception) -> HTTPException:
    """Translate an exception into an HTTPException (500 if unmapped)."""
    if isinstance(error, HTTPException):
        return error
    for error_type, status_code in STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
