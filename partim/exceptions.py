# partim/exceptions.py
"""
Domain error kinds raised by the ticket, loyalty, shift, pass and rate services.
Mapped to HTTP status codes by the exception handlers in partim/main.py.
Billing and RBAC never raise these; they are total over well-typed input.
"""


class PartimError(Exception):
    """Base class for all domain errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PartimError):
    """Malformed input: non-positive hours, empty plate, occupied spot, ..."""

    status_code = 422


class InvalidStateError(PartimError):
    """Record is in the wrong lifecycle state (e.g. settling a Paid ticket)."""

    status_code = 409


class ConflictError(PartimError):
    """Uniqueness violation: double clock-in, duplicate vehicle type rate."""

    status_code = 409


class NotFoundError(PartimError):
    status_code = 404


class StorageError(PartimError):
    """Storage failed or timed out. Transient; retry only idempotent work."""

    status_code = 503
