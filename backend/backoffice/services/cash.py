"""Cash transaction ledger.

Every credit, payment and expense write mirrors itself into
``CashTransaction`` through :func:`record_best_effort`.  Cash in hand is never
stored; it is recomputed from the full history on every read.

Direction of each transaction type::

    manual_add        in
    dealer_payment    in
    sales_payment     in
    dealer_credit     out
    supplier_payment  out
    supplier_credit   out
    expense           out
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import DatabaseError
from django.db.models import Sum
from django.utils import timezone

from ..models import CashTransaction
from .exceptions import CashSyncError, LedgerServiceError, ValidationError
from .ledger import ZERO, field_value, positive_amount, primary_write, require_user, to_money

logger = logging.getLogger(__name__)


def is_inflow(transaction_type: str) -> bool:
    return transaction_type in CashTransaction.INFLOW_TYPES


def compute_cash_in_hand(transactions: Iterable) -> Decimal:
    """Return total inflows minus total outflows for *transactions*."""

    total = ZERO
    for row in transactions:
        amount = to_money(field_value(row, "amount"))
        if is_inflow(field_value(row, "transaction_type")):
            total += amount
        else:
            total -= amount
    return total


def summarize_cash_flow(transactions: Iterable) -> dict:
    inflows = ZERO
    outflows = ZERO
    for row in transactions:
        amount = to_money(field_value(row, "amount"))
        if is_inflow(field_value(row, "transaction_type")):
            inflows += amount
        else:
            outflows += amount
    return {"inflows": inflows, "outflows": outflows, "net": inflows - outflows}


def filter_transactions(
    transactions: Iterable,
    *,
    transaction_type: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
) -> list:
    """Filter cash rows by type, inclusive date range and free-text search."""

    needle = (search or "").strip().lower()
    matched = []
    for row in transactions:
        if transaction_type and field_value(row, "transaction_type") != transaction_type:
            continue
        day = field_value(row, "transaction_date")
        if start_date and day < start_date:
            continue
        if end_date and day > end_date:
            continue
        if needle:
            haystack = " ".join(
                str(field_value(row, name) or "")
                for name in ("description", "reference_type", "transaction_type")
            ).lower()
            if needle not in haystack:
                continue
        matched.append(row)
    return matched


def cash_in_hand() -> Decimal:
    """Recompute the current cash position from every recorded transaction."""

    totals = CashTransaction.objects.order_by().values("transaction_type").annotate(total=Sum("amount"))
    return compute_cash_in_hand(
        {"transaction_type": row["transaction_type"], "amount": row["total"]} for row in totals
    )


def record(
    transaction_type: str,
    amount,
    *,
    user,
    reference_id=None,
    reference_type: Optional[str] = None,
    description: Optional[str] = None,
    transaction_date: Optional[date] = None,
) -> CashTransaction:
    if transaction_type not in CashTransaction.TRANSACTION_TYPES:
        raise ValidationError(f"Unknown cash transaction type: {transaction_type!r}")
    require_user(user)
    amount = positive_amount(amount)

    with primary_write("record the cash transaction"):
        entry = CashTransaction.objects.create(
            transaction_type=transaction_type,
            amount=amount,
            reference_id=str(reference_id) if reference_id is not None else None,
            reference_type=reference_type,
            description=description,
            transaction_date=transaction_date or timezone.localdate(),
            created_by=user,
        )
    logger.info(
        "Cash transaction recorded",
        extra={"transaction_type": transaction_type, "cash_transaction_id": str(entry.pk)},
    )
    return entry


def add_manual_cash(
    amount,
    *,
    user,
    description: Optional[str] = None,
    transaction_date: Optional[date] = None,
) -> CashTransaction:
    return record(
        CashTransaction.MANUAL_ADD,
        amount,
        user=user,
        reference_type="manual",
        description=description or "Manual cash addition",
        transaction_date=transaction_date,
    )


def record_best_effort(transaction_type: str, amount, *, user, **fields) -> Optional[CashTransaction]:
    """Mirror a ledger write into the cash ledger without failing the caller.

    The insert runs in its own savepoint, so a failure leaves the primary row
    in place.  The failure is logged and ``None`` is returned unless
    ``LEDGER_STRICT_CASH_SYNC`` is enabled, in which case
    :class:`CashSyncError` propagates and the caller's transaction rolls back.
    """

    try:
        return record(transaction_type, amount, user=user, **fields)
    except (LedgerServiceError, DatabaseError) as exc:
        if getattr(settings, "LEDGER_STRICT_CASH_SYNC", False):
            raise CashSyncError(f"Failed to record {transaction_type} cash transaction.") from exc
        logger.exception(
            "Failed to record cash transaction",
            extra={
                "transaction_type": transaction_type,
                "reference_id": str(fields.get("reference_id") or ""),
            },
        )
        return None
