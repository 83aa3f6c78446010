"""Payments recorded against invoices.

``Invoice.paid_amount`` is a cached running total.  The figure the rest of
the system trusts is :func:`get_paid_amount`, the larger of the cache and the
sum of payment rows, which the ``reconcile_ledgers`` command uses to repair
stale caches.

A payment is validated and written under a row lock on the invoice.  Once the
write commits, the money received is mirrored into the dealer ledger (which
emits the ``dealer_payment`` cash inflow) and the dealer is notified.  Both
follow-ups are best-effort.  Strict cash sync (``LEDGER_STRICT_CASH_SYNC``)
does not reach back into the committed invoice payment: a strict-mode cash
failure rolls back only the mirrored dealer payment and is logged like any
other mirror failure.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from django.db import DatabaseError, transaction
from django.db.models import DecimalField, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from ..models import Invoice, InvoicePayment
from .exceptions import InvalidStateError, LedgerServiceError, OverpaymentError
from .invoices import derive_status, effective_status
from .ledger import (
    ZERO,
    positive_amount,
    primary_write,
    require_payment_method,
    require_user,
    to_money,
)
from .notifications import send_invoice_payment_notification
from .party_credit import dealer_ledger

logger = logging.getLogger(__name__)


def payments_total(invoice: Invoice) -> Decimal:
    return InvoicePayment.objects.filter(invoice=invoice).aggregate(
        total=Coalesce(Sum("amount"), ZERO, output_field=DecimalField(max_digits=14, decimal_places=2))
    )["total"]


def get_paid_amount(invoice: Invoice) -> Decimal:
    return max(to_money(invoice.paid_amount), to_money(payments_total(invoice)))


def get_remaining(invoice: Invoice) -> Decimal:
    return to_money(invoice.total_amount) - get_paid_amount(invoice)


def _ensure_open(invoice: Invoice) -> None:
    if invoice.status == Invoice.STATUS_CANCELLED:
        raise InvalidStateError(f"Invoice {invoice.invoice_number} is cancelled.")


def _sync_caller(invoice: Invoice, locked: Invoice) -> None:
    invoice.paid_amount = locked.paid_amount
    invoice.status = locked.status


def add_payment(
    invoice: Invoice,
    amount,
    payment_date: Optional[date] = None,
    payment_method: str = "cash",
    *,
    user,
    reference_number: Optional[str] = None,
    notes: Optional[str] = None,
) -> InvoicePayment:
    require_user(user)
    amount = positive_amount(amount, "Payment amount")
    require_payment_method(payment_method)
    payment_date = payment_date or timezone.localdate()

    with primary_write("record the invoice payment"):
        locked = Invoice.objects.select_for_update().select_related("dealer").get(pk=invoice.pk)
        _ensure_open(locked)
        paid = get_paid_amount(locked)
        remaining = to_money(locked.total_amount) - paid
        if amount > remaining:
            raise OverpaymentError(
                f"Payment amount ({amount:,.2f}) exceeds remaining balance ({max(remaining, ZERO):,.2f}) "
                f"on invoice {locked.invoice_number}"
            )
        payment = InvoicePayment.objects.create(
            invoice=locked,
            amount=amount,
            payment_date=payment_date,
            payment_method=payment_method,
            reference_number=reference_number,
            notes=notes,
            created_by=user,
        )
        locked.paid_amount = paid + amount
        locked.status = derive_status(locked.paid_amount, locked.total_amount)
        locked.save(update_fields=["paid_amount", "status", "updated_at"])

    _sync_caller(invoice, locked)
    logger.info(
        "Invoice payment recorded",
        extra={
            "invoice_id": str(locked.pk),
            "payment_id": str(payment.pk),
            "amount": str(amount),
            "status": locked.status,
        },
    )

    mirror_dealer_payment(locked, payment, user=user)
    send_invoice_payment_notification(locked, payment)
    return payment


def mirror_dealer_payment(invoice: Invoice, payment: InvoicePayment, *, user):
    """Record *payment* in the dealer ledger; failures are logged only."""

    note = f"Invoice {invoice.invoice_number} payment"
    if payment.notes:
        note = f"{note} - {payment.notes}"
    try:
        with transaction.atomic():
            mirrored = dealer_ledger.add_payment(
                invoice.dealer,
                payment.amount,
                payment.payment_date,
                payment.payment_method,
                user=user,
                reference_number=payment.reference_number,
                notes=note,
                enforce_outstanding=False,
            )
            InvoicePayment.objects.filter(pk=payment.pk).update(dealer_payment=mirrored)
    except (LedgerServiceError, DatabaseError):
        logger.exception(
            "Failed to mirror invoice payment into the dealer ledger",
            extra={"invoice_id": str(invoice.pk), "payment_id": str(payment.pk)},
        )
        return None
    payment.dealer_payment = mirrored
    return mirrored


def delete_payment(payment: InvoicePayment, *, user=None) -> None:
    """Remove *payment* and roll the invoice's cached total back.

    The mirrored dealer payment and its cash row are left in place.
    """

    with primary_write("delete the invoice payment"):
        locked = Invoice.objects.select_for_update().get(pk=payment.invoice_id)
        _ensure_open(locked)
        amount = to_money(payment.amount)
        payment.delete()
        locked.paid_amount = max(ZERO, to_money(locked.paid_amount) - amount)
        locked.status = derive_status(locked.paid_amount, locked.total_amount)
        locked.save(update_fields=["paid_amount", "status", "updated_at"])

    logger.info(
        "Invoice payment deleted",
        extra={
            "invoice_id": str(locked.pk),
            "amount": str(amount),
            "status": locked.status,
            "user_id": getattr(user, "pk", None),
        },
    )


def get_invoice_snapshot(invoice: Invoice) -> dict:
    return {
        "invoice": invoice,
        "items": list(invoice.items.select_related("product")),
        "payments": list(invoice.payments.all()),
        "paid_amount": get_paid_amount(invoice),
        "status": effective_status(invoice),
    }
