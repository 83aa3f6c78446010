"""Shared helpers for ledger writes.

Amounts are normalised to the system's base precision (two decimal places,
``ROUND_HALF_UP``) before they are validated or persisted.  Primary writes run
inside :func:`primary_write`, which opens a transaction and turns database
failures into :class:`~backoffice.services.exceptions.StoreError` so callers
only ever see domain errors.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from django.db import DatabaseError, transaction

from ..models import PAYMENT_METHODS
from .exceptions import AuthError, StoreError, ValidationError

__all__ = [
    "MONEY_QUANTIZER",
    "ZERO",
    "field_value",
    "positive_amount",
    "primary_write",
    "require_payment_method",
    "require_user",
    "to_money",
]

logger = logging.getLogger(__name__)

MONEY_QUANTIZER = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(amount: Optional[Decimal | int | float | str]) -> Decimal:
    """Normalise *amount* to a Decimal with the project's rounding rules."""

    if amount in (None, ""):
        return ZERO
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        if not value.is_finite():
            raise ValidationError(f"Invalid amount: {amount!r}")
        return value.quantize(MONEY_QUANTIZER, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid amount: {amount!r}") from exc


def positive_amount(amount, label: str = "Amount") -> Decimal:
    value = to_money(amount)
    if value <= ZERO:
        raise ValidationError(f"{label} must be greater than zero")
    return value


def require_user(user) -> None:
    if user is None or not getattr(user, "is_authenticated", False):
        raise AuthError("An authenticated user is required to write to the ledger.")


def require_payment_method(method: str) -> str:
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"Unknown payment method: {method!r}")
    return method


def field_value(row: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a model instance or a mapping row."""

    if isinstance(row, Mapping):
        return row.get(name, default)
    return getattr(row, name, default)


@contextmanager
def primary_write(operation: str):
    """Run a primary ledger write atomically, wrapping store failures."""

    try:
        with transaction.atomic():
            yield
    except DatabaseError as exc:
        logger.exception("Ledger write failed: %s", operation)
        raise StoreError(f"Unable to {operation}. Please try again.") from exc
