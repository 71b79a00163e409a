"""
Error taxonomy for the recurring pattern engine.

Insufficient transaction history is deliberately not an exception: it is an
expected state for new users and is reported as a regular result.
"""

from typing import Optional


class CadenceError(Exception):
    """Base class for engine errors."""


class InputError(CadenceError, ValueError):
    """Malformed request: missing field, unknown enum value, bad id list."""


class NotFoundError(CadenceError, LookupError):
    """A pattern, suggestion or income source does not exist for this user."""


class UpstreamUnavailable(CadenceError):
    """The AI collaborator failed, timed out or rate-limited us."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(CadenceError):
    """A store read or write failed during a write operation."""

    def __init__(self, operation: str, user_id: str, detail: str = ""):
        self.operation = operation
        self.user_id = user_id
        message = f"{operation} failed for user {user_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
