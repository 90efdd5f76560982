"""Translate service errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from backend.app.core.exceptions import (
    ConflictError,
    ExceedsBalanceError,
    InvalidInputError,
    InvalidStateError,
    LedgerError,
    NotFoundError,
    StoreError,
)

_STATUS_BY_ERROR: list[tuple[type[Exception], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (ExceedsBalanceError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidInputError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (StoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def to_http_exception(error: LedgerError | StoreError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
