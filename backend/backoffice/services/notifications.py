"""E-mail notifications sent after ledger writes.

Notifications are best-effort: a mail failure is logged and never reaches
the caller.
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def send_invoice_payment_notification(invoice, payment) -> bool:
    """E-mail the dealer a receipt for *payment*; return whether it was sent."""

    if not getattr(settings, "INVOICE_PAYMENT_NOTIFICATIONS", False):
        return False
    recipient = invoice.dealer.email
    if not recipient:
        return False

    remaining = invoice.total_amount - invoice.paid_amount
    subject = f"Payment received for invoice {invoice.invoice_number}"
    message = (
        f"Dear {invoice.dealer.dealer_name},\n\n"
        f"We received your payment of {payment.amount:,.2f} on {payment.payment_date:%Y-%m-%d} "
        f"for invoice {invoice.invoice_number}.\n"
        f"Invoice total: {invoice.total_amount:,.2f}\n"
        f"Paid to date: {invoice.paid_amount:,.2f}\n"
        f"Balance due: {max(remaining, 0):,.2f}\n"
    )
    try:
        send_mail(subject, message, settings.DEFAULT_FROM_EMAIL, [recipient])
    except (SMTPException, OSError):
        logger.exception(
            "Failed to send invoice payment notification",
            extra={"invoice_id": str(invoice.pk), "payment_id": str(payment.pk)},
        )
        return False
    return True
