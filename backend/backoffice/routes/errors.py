from __future__ import annotations
from fastapi import HTTPException

from backoffice.errors import (
    BackofficeError, ConflictError, InsufficientPoints, NotFoundError, StateError, StorageError, ValidationError,
)

_STATUS = (
    (ValidationError, 400),
    (InsufficientPoints, 402),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StateError, 409),
    (StorageError, 503),
)


def http_error(e: BackofficeError) -> HTTPException:
    code = next((c for t, c in _STATUS if isinstance(e, t)), 500)
    return HTTPException(status_code=code, detail={"reason": e.reason, "message": e.message})
