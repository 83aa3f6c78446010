"""Domain errors raised by the ledger services.

The API layer maps each family to an HTTP status in
``backoffice.views.utils.ledger_exception_handler``.
"""


class LedgerServiceError(Exception):
    """Base exception for all ledger service failures."""


class ValidationError(LedgerServiceError):
    """Raised when an amount, method or field fails validation."""


class OverpaymentError(ValidationError):
    """Raised when a payment exceeds what is still owed."""


class AuthError(LedgerServiceError):
    """Raised when a ledger write has no authenticated user."""


class StoreError(LedgerServiceError):
    """Raised when the database rejects a primary ledger write."""


class InvalidStateError(LedgerServiceError):
    """Raised on payment operations against a cancelled invoice."""


class CashSyncError(LedgerServiceError):
    """Raised when the cash mirror of a ledger write fails in strict mode."""
