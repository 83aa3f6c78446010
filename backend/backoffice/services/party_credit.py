"""Credit and payment ledger for dealers and suppliers.

A party's position is never stored: ``remaining = total credit - total paid``
is recomputed from the rows on every read.  Each credit or payment insert
mirrors exactly one cash transaction through
:func:`backoffice.services.cash.record_best_effort`.  Edits and deletions do
not touch the cash ledger, so they leave drift that ``reconcile_ledgers``
reports.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from django.db.models import DecimalField, Max, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from ..models import (
    CashTransaction,
    Dealer,
    DealerCredit,
    DealerPayment,
    Supplier,
    SupplierCredit,
    SupplierPayment,
)
from . import cash
from .exceptions import OverpaymentError, ValidationError
from .ledger import (
    ZERO,
    positive_amount,
    primary_write,
    require_payment_method,
    require_user,
)
from .reconciliation import PartySummary, market_summary, summary_from_totals

__all__ = ["PartyCreditLedger", "dealer_ledger", "supplier_ledger"]

logger = logging.getLogger(__name__)

ADVANCE_PREFIX = "[ADVANCE]"

EDITABLE_CREDIT_FIELDS = frozenset({"amount", "credit_date", "description", "notes", "product"})
EDITABLE_PAYMENT_FIELDS = frozenset(
    {"amount", "payment_date", "payment_method", "reference_number", "notes"}
)


def _sum(field: str = "amount"):
    return Coalesce(Sum(field), ZERO, output_field=DecimalField(max_digits=14, decimal_places=2))


class PartyCreditLedger:
    """Ledger operations for one kind of counterparty."""

    def __init__(
        self,
        *,
        name: str,
        party_model,
        credit_model,
        payment_model,
        party_field: str,
        name_field: str,
        credit_transaction_type: str,
        payment_transaction_type: str,
        enforce_outstanding: bool = False,
        allows_advances: bool = False,
    ):
        self.name = name
        self.party_model = party_model
        self.credit_model = credit_model
        self.payment_model = payment_model
        self.party_field = party_field
        self.name_field = name_field
        self.credit_transaction_type = credit_transaction_type
        self.payment_transaction_type = payment_transaction_type
        self.enforce_outstanding = enforce_outstanding
        self.allows_advances = allows_advances

    def __repr__(self):
        return f"<PartyCreditLedger {self.name}>"

    def party_name(self, party) -> str:
        return getattr(party, self.name_field)

    def credits_for(self, party):
        return self.credit_model.objects.filter(**{self.party_field: party})

    def payments_for(self, party):
        return self.payment_model.objects.filter(**{self.party_field: party})

    # Writes

    def add_credit(
        self,
        party,
        amount,
        credit_date: Optional[date] = None,
        *,
        user,
        product=None,
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ):
        require_user(user)
        amount = positive_amount(amount, "Credit amount")
        credit_date = credit_date or timezone.localdate()

        with primary_write(f"record the {self.name} credit"):
            credit = self.credit_model.objects.create(
                **{self.party_field: party},
                amount=amount,
                credit_date=credit_date,
                product=product,
                description=description,
                notes=notes,
                created_by=user,
            )
            cash.record_best_effort(
                self.credit_transaction_type,
                amount,
                user=user,
                reference_id=credit.pk,
                reference_type=self.credit_model._meta.model_name,
                description=description or f"Credit for {self.party_name(party)}",
                transaction_date=credit_date,
            )

        logger.info(
            "%s credit recorded",
            self.name.capitalize(),
            extra={"party_id": str(party.pk), "credit_id": str(credit.pk), "amount": str(amount)},
        )
        return credit

    def add_payment(
        self,
        party,
        amount,
        payment_date: Optional[date] = None,
        payment_method: str = "cash",
        *,
        user,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
        enforce_outstanding: Optional[bool] = None,
    ):
        """Record a payment against *party*.

        With ``enforce_outstanding`` the party row is locked and the amount is
        checked against the remaining balance inside the same transaction, so
        two concurrent payments cannot both pass the check.
        """

        require_user(user)
        amount = positive_amount(amount, "Payment amount")
        require_payment_method(payment_method)
        payment_date = payment_date or timezone.localdate()
        if enforce_outstanding is None:
            enforce_outstanding = self.enforce_outstanding

        with primary_write(f"record the {self.name} payment"):
            if enforce_outstanding:
                locked = self.party_model.objects.select_for_update().get(pk=party.pk)
                remaining = self.get_summary_for_party(locked).remaining
                if amount > remaining:
                    raise OverpaymentError(
                        f"Payment amount ({amount:,.2f}) exceeds remaining credit ({remaining:,.2f})"
                    )
            payment = self.payment_model.objects.create(
                **{self.party_field: party},
                amount=amount,
                payment_date=payment_date,
                payment_method=payment_method,
                reference_number=reference_number,
                notes=notes,
                created_by=user,
            )
            cash.record_best_effort(
                self.payment_transaction_type,
                amount,
                user=user,
                reference_id=payment.pk,
                reference_type=self.payment_model._meta.model_name,
                description=notes or f"Payment - {self.party_name(party)}",
                transaction_date=payment_date,
            )

        logger.info(
            "%s payment recorded",
            self.name.capitalize(),
            extra={"party_id": str(party.pk), "payment_id": str(payment.pk), "amount": str(amount)},
        )
        return payment

    def add_advance_payment(
        self,
        party,
        amount,
        payment_date: Optional[date] = None,
        payment_method: str = "cash",
        *,
        user,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
    ):
        """Record money received ahead of any credit; remaining goes negative."""

        if not self.allows_advances:
            raise ValidationError(f"Advance payments are not supported for {self.name}s.")
        note = notes or f"Advance payment from {self.party_name(party)}"
        return self.add_payment(
            party,
            amount,
            payment_date,
            payment_method,
            user=user,
            reference_number=reference_number,
            notes=f"{ADVANCE_PREFIX} {note}",
            enforce_outstanding=False,
        )

    def _apply_edits(self, instance, fields: dict, allowed: frozenset, label: str):
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(f"Cannot edit {', '.join(sorted(unknown))} on a {self.name} {label}.")
        if "amount" in fields:
            fields["amount"] = positive_amount(fields["amount"], f"{label.capitalize()} amount")
        if "payment_method" in fields:
            require_payment_method(fields["payment_method"])
        for field, value in fields.items():
            setattr(instance, field, value)
        with primary_write(f"update the {self.name} {label}"):
            instance.save()
        return instance

    def edit_credit(self, credit, **fields):
        # The cash row emitted at creation keeps its original amount.
        return self._apply_edits(credit, fields, EDITABLE_CREDIT_FIELDS, "credit")

    def edit_payment(self, payment, **fields):
        return self._apply_edits(payment, fields, EDITABLE_PAYMENT_FIELDS, "payment")

    def delete_credit(self, credit) -> None:
        with primary_write(f"delete the {self.name} credit"):
            credit.delete()

    def delete_payment(self, payment) -> None:
        with primary_write(f"delete the {self.name} payment"):
            payment.delete()

    # Reads

    def get_summary_for_party(self, party) -> PartySummary:
        total_credit = self.credits_for(party).aggregate(total=_sum())["total"]
        payments = self.payments_for(party).aggregate(total=_sum(), last=Max("payment_date"))
        return summary_from_totals(
            party.pk,
            self.party_name(party),
            total_credit,
            payments["total"],
            payments["last"],
        )

    def get_party_summaries(self) -> list[PartySummary]:
        """Return summaries for every party with credit or payment activity."""

        credit_totals = {
            row[self.party_field]: row["total"]
            for row in self.credit_model.objects.order_by()
            .values(self.party_field)
            .annotate(total=_sum())
        }
        payment_totals = {
            row[self.party_field]: row
            for row in self.payment_model.objects.order_by()
            .values(self.party_field)
            .annotate(total=_sum(), last=Max("payment_date"))
        }

        summaries = []
        for party in self.party_model.objects.order_by(self.name_field):
            paid = payment_totals.get(party.pk, {})
            summary = summary_from_totals(
                party.pk,
                self.party_name(party),
                credit_totals.get(party.pk, ZERO),
                paid.get("total", ZERO),
                paid.get("last"),
            )
            if summary.is_active:
                summaries.append(summary)
        return summaries

    def get_market_summary(self) -> dict:
        return market_summary(self.get_party_summaries())

    def get_history(self, party) -> dict:
        return {
            "credits": list(self.credits_for(party).select_related("product")),
            "payments": list(self.payments_for(party)),
            "summary": self.get_summary_for_party(party),
        }


dealer_ledger = PartyCreditLedger(
    name="dealer",
    party_model=Dealer,
    credit_model=DealerCredit,
    payment_model=DealerPayment,
    party_field="dealer",
    name_field="dealer_name",
    credit_transaction_type=CashTransaction.DEALER_CREDIT,
    payment_transaction_type=CashTransaction.DEALER_PAYMENT,
    enforce_outstanding=True,
    allows_advances=True,
)

supplier_ledger = PartyCreditLedger(
    name="supplier",
    party_model=Supplier,
    credit_model=SupplierCredit,
    payment_model=SupplierPayment,
    party_field="supplier",
    name_field="name",
    credit_transaction_type=CashTransaction.SUPPLIER_CREDIT,
    payment_transaction_type=CashTransaction.SUPPLIER_PAYMENT,
)
