"""Helper utilities shared across API route handlers."""

from fastapi import HTTPException, status

from portal.domain.errors import (
    AuthorizationError,
    InvalidState,
    NotFound,
    PortalError,
    ValidationError,
)

_STATUS_BY_ERROR: tuple[tuple[type[PortalError], int], ...] = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidState, status.HTTP_400_BAD_REQUEST),
)


def to_http_exception(exc: PortalError) -> HTTPException:
    """Translate a domain error into the matching HTTP error."""

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message
    )


def pagination_skip(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit
