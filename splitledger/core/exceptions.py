"""
Ledger error taxonomy.

Every ledger operation either returns a result or raises exactly one of the
errors below. The HTTP layer maps them to stable status codes:

    ValidationError -> 400
    ForbiddenError  -> 403
    NotFoundError   -> 404
    ConflictError   -> 409
"""
from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for all ledger errors"""

    status_code: int = 500
    default_error_code: str = "LEDGER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.default_error_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ValidationError(LedgerError):
    """Malformed input: bad amounts, missing fields, non-zero-sum balances"""

    status_code = 400
    default_error_code = "VALIDATION_ERROR"


class ForbiddenError(LedgerError):
    """Caller lacks the required relationship to the entity"""

    status_code = 403
    default_error_code = "FORBIDDEN"


class NotFoundError(LedgerError):
    """Referenced group, expense or split does not exist"""

    status_code = 404
    default_error_code = "NOT_FOUND"


class ConflictError(LedgerError):
    """State-transition precondition violated (double settlement, lost race)"""

    status_code = 409
    default_error_code = "CONFLICT"
