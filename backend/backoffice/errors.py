from __future__ import annotations


class BackofficeError(Exception):
    """Base for every error the services raise on purpose."""
    reason = "error"
    retryable = False

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.reason)
        self.message = message or self.reason
        self.context = context


class ValidationError(BackofficeError):
    """Missing or out-of-range input; raised before any write happens."""
    reason = "invalid_input"


class StateError(BackofficeError):
    """A precondition on the current row state does not hold."""
    reason = "invalid_state"


class NotFoundError(BackofficeError):
    reason = "not_found"


class ConflictError(BackofficeError):
    """Voucher code generation ran out of attempts for a slot."""
    reason = "conflict"


class StorageError(BackofficeError):
    """The database failed underneath a unit of work; safe to retry."""
    reason = "storage_error"
    retryable = True


class InsufficientPoints(BackofficeError):
    reason = "insufficient_points"
