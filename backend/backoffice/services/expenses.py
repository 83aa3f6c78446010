"""Operating expenses and their cash outflow."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from django.utils import timezone

from ..models import CashTransaction, Expense
from . import cash
from .exceptions import ValidationError
from .ledger import positive_amount, primary_write, require_user

logger = logging.getLogger(__name__)


def create_expense(
    category: str,
    amount,
    expense_date: Optional[date] = None,
    *,
    user,
    description: Optional[str] = None,
    territory=None,
) -> Expense:
    require_user(user)
    category = (category or "").strip()
    if not category:
        raise ValidationError("Expense category is required")
    amount = positive_amount(amount, "Expense amount")
    expense_date = expense_date or timezone.localdate()

    with primary_write("record the expense"):
        expense = Expense.objects.create(
            category=category,
            amount=amount,
            expense_date=expense_date,
            description=description,
            territory=territory,
            created_by=user,
        )
        cash.record_best_effort(
            CashTransaction.EXPENSE,
            amount,
            user=user,
            reference_id=expense.pk,
            reference_type="expense",
            description=f"{category}: {description or 'Expense'}",
            transaction_date=expense_date,
        )

    logger.info("Expense recorded", extra={"expense_id": str(expense.pk), "amount": str(amount)})
    return expense
