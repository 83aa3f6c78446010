"""Invoice creation, numbering and status derivation."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from django.conf import settings
from django.db import IntegrityError
from django.utils import timezone

from ..models import Invoice, InvoiceItem
from .exceptions import StoreError, ValidationError
from .ledger import ZERO, MONEY_QUANTIZER, primary_write, require_user, to_money
from .party_credit import dealer_ledger

logger = logging.getLogger(__name__)

INVOICE_NUMBER_ATTEMPTS = 5
VALID_SOURCES = frozenset(code for code, _ in Invoice.SOURCE_CHOICES)


def derive_status(paid_amount, total_amount) -> str:
    """Return the stored status implied by the paid and total amounts."""

    paid = to_money(paid_amount)
    total = to_money(total_amount)
    if paid > ZERO and paid >= total:
        return Invoice.STATUS_PAID
    if paid > ZERO:
        return Invoice.STATUS_PARTIAL
    return Invoice.STATUS_UNPAID


def effective_status(invoice: Invoice, today: Optional[date] = None) -> str:
    """Return the status to display, flagging open invoices past due as overdue."""

    if invoice.status in (Invoice.STATUS_PAID, Invoice.STATUS_CANCELLED):
        return invoice.status
    today = today or timezone.localdate()
    if invoice.due_date and invoice.due_date < today:
        return Invoice.STATUS_OVERDUE
    return invoice.status


def generate_invoice_number(invoice_date: Optional[date] = None) -> str:
    """Return the next free number of the form ``INV-YYYYMM-NNNN``."""

    invoice_date = invoice_date or timezone.localdate()
    prefix = f"{settings.INVOICE_NUMBER_PREFIX}-{invoice_date:%Y%m}-"
    sequence = Invoice.objects.filter(invoice_number__startswith=prefix).count() + 1
    number = f"{prefix}{sequence:04d}"
    while Invoice.objects.filter(invoice_number=number).exists():
        sequence += 1
        number = f"{prefix}{sequence:04d}"
    return number


def _normalise_items(items: Iterable[Mapping]) -> list[dict]:
    normalised = []
    for index, item in enumerate(items, start=1):
        product = item.get("product")
        if product is None:
            raise ValidationError(f"Item {index} requires a product.")
        try:
            quantity = to_money(item.get("quantity"))
        except ValidationError as exc:
            raise ValidationError(f"Item {index} has an invalid quantity: {item.get('quantity')!r}") from exc
        unit_price = to_money(item.get("unit_price"))
        if quantity <= 0:
            raise ValidationError(f"Item {index} quantity must be greater than zero")
        if unit_price < ZERO:
            raise ValidationError(f"Item {index} unit price cannot be negative")
        normalised.append(
            {
                "product": product,
                "description": item.get("description"),
                "quantity": quantity,
                "unit_price": unit_price,
                "total": to_money(quantity * unit_price),
            }
        )
    if not normalised:
        raise ValidationError("An invoice needs at least one item.")
    return normalised


def _totals(lines: list[dict], tax_rate: Decimal) -> tuple[Decimal, Decimal, Decimal]:
    subtotal = sum((line["total"] for line in lines), ZERO)
    tax_amount = (subtotal * tax_rate / 100).quantize(MONEY_QUANTIZER)
    return subtotal, tax_amount, subtotal + tax_amount


def create_invoice(
    dealer,
    items: Iterable[Mapping],
    *,
    user,
    invoice_date: Optional[date] = None,
    due_date: Optional[date] = None,
    tax_rate=0,
    notes: Optional[str] = None,
    source: str = Invoice.SOURCE_MANUAL,
    sales_order_id=None,
    paid_amount=0,
) -> Invoice:
    """Create an invoice and its items in one transaction.

    Totals are computed from the items and the initial status from
    ``paid_amount``.  A clash on the generated number is retried.
    """

    require_user(user)
    if source not in VALID_SOURCES:
        raise ValidationError(f"Unknown invoice source: {source!r}")
    lines = _normalise_items(items)
    tax_rate = to_money(tax_rate)
    if tax_rate < ZERO:
        raise ValidationError("Tax rate cannot be negative")
    paid_amount = to_money(paid_amount)
    if paid_amount < ZERO:
        raise ValidationError("Paid amount cannot be negative")

    invoice_date = invoice_date or timezone.localdate()
    due_date = due_date or invoice_date + timedelta(days=settings.INVOICE_DEFAULT_TERMS_DAYS)
    if due_date < invoice_date:
        raise ValidationError("Due date cannot be before the invoice date")

    subtotal, tax_amount, total_amount = _totals(lines, tax_rate)

    for attempt in range(1, INVOICE_NUMBER_ATTEMPTS + 1):
        try:
            with primary_write("create the invoice"):
                invoice = Invoice.objects.create(
                    dealer=dealer,
                    invoice_number=generate_invoice_number(invoice_date),
                    invoice_date=invoice_date,
                    due_date=due_date,
                    status=derive_status(paid_amount, total_amount),
                    subtotal=subtotal,
                    tax_rate=tax_rate,
                    tax_amount=tax_amount,
                    total_amount=total_amount,
                    paid_amount=paid_amount,
                    sales_order_id=sales_order_id,
                    source=source,
                    notes=notes,
                    created_by=user,
                )
                InvoiceItem.objects.bulk_create(
                    [InvoiceItem(invoice=invoice, **line) for line in lines]
                )
        except StoreError as exc:
            if isinstance(exc.__cause__, IntegrityError) and attempt < INVOICE_NUMBER_ATTEMPTS:
                logger.warning("Invoice number collision, retrying", extra={"attempt": attempt})
                continue
            raise
        break

    logger.info(
        "Invoice created",
        extra={"invoice_id": str(invoice.pk), "invoice_number": invoice.invoice_number},
    )
    return invoice


def create_invoice_from_credits(
    dealer,
    credits: Optional[Iterable] = None,
    *,
    user,
    invoice_date: Optional[date] = None,
    due_date: Optional[date] = None,
    tax_rate=0,
    notes: Optional[str] = None,
) -> Invoice:
    """Invoice a dealer's credits, one item per credit with a product.

    ``credits`` defaults to every credit on the dealer.  Credits without a
    product are left off the invoice.  The paid amount is seeded with what the
    dealer has already paid, capped at the invoice total, so the cached paid
    figure can sit above the invoice's own payment rows.
    """

    require_user(user)
    if credits is None:
        credits = dealer_ledger.credits_for(dealer).select_related("product")
    credits = list(credits)
    if not credits:
        raise ValidationError("No credits to invoice.")
    if any(credit.dealer_id != dealer.pk for credit in credits):
        raise ValidationError("Credits must belong to the invoiced dealer.")

    items = [
        {
            "product": credit.product,
            "description": credit.description or f"Credit {credit.credit_date:%Y-%m-%d}",
            "quantity": 1,
            "unit_price": credit.amount,
        }
        for credit in credits
        if credit.product_id is not None
    ]
    if not items:
        raise ValidationError("Credits must have associated products to create an invoice.")

    *_, total_amount = _totals(_normalise_items(items), to_money(tax_rate))
    total_paid = dealer_ledger.get_summary_for_party(dealer).total_paid
    return create_invoice(
        dealer,
        items,
        user=user,
        invoice_date=invoice_date,
        due_date=due_date,
        tax_rate=tax_rate,
        notes=notes,
        source=Invoice.SOURCE_DEALERS,
        paid_amount=min(total_paid, total_amount),
    )


def cancel_invoice(invoice: Invoice, *, user=None) -> Invoice:
    """Move *invoice* to the terminal cancelled state."""

    with primary_write("cancel the invoice"):
        locked = Invoice.objects.select_for_update().get(pk=invoice.pk)
        if locked.status != Invoice.STATUS_CANCELLED:
            locked.status = Invoice.STATUS_CANCELLED
            locked.save(update_fields=["status", "updated_at"])
    invoice.status = locked.status
    logger.info(
        "Invoice cancelled",
        extra={"invoice_id": str(invoice.pk), "user_id": getattr(user, "pk", None)},
    )
    return locked
