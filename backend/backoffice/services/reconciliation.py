"""Read-side views derived from the credit, payment and cash ledgers.

All functions here are pure: they take rows (model instances or plain
mappings) and return summaries without touching the database.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from django.utils import timezone

from .ledger import MONEY_QUANTIZER, ZERO, field_value, to_money

UNASSIGNED_TERRITORY = "unassigned"

AGING_BUCKETS = (
    (30, "Current"),
    (60, "30-60 Days"),
    (90, "60-90 Days"),
    (None, "90+ Days"),
)

CLOSED_INVOICE_STATUSES = frozenset({"paid", "cancelled"})


@dataclass(frozen=True)
class PartySummary:
    party_id: Any
    party_name: Optional[str]
    total_credit: Decimal
    total_paid: Decimal
    remaining: Decimal
    last_payment_date: Optional[date]

    @property
    def is_active(self) -> bool:
        return self.total_credit > ZERO or self.total_paid > ZERO

    def as_dict(self) -> dict:
        return asdict(self)


def _total(rows: Iterable, field: str = "amount") -> Decimal:
    return sum((to_money(field_value(row, field)) for row in rows), ZERO)


def summary_from_totals(party_id, party_name, total_credit, total_paid, last_payment_date=None) -> PartySummary:
    total_credit = to_money(total_credit)
    total_paid = to_money(total_paid)
    return PartySummary(
        party_id=party_id,
        party_name=party_name,
        total_credit=total_credit,
        total_paid=total_paid,
        remaining=total_credit - total_paid,
        last_payment_date=last_payment_date,
    )


def summarize_party(party_id, credits: Iterable, payments: Iterable, party_name: Optional[str] = None) -> PartySummary:
    payments = list(payments)
    payment_dates = [field_value(row, "payment_date") for row in payments if field_value(row, "payment_date")]
    return summary_from_totals(
        party_id,
        party_name,
        _total(credits),
        _total(payments),
        max(payment_dates) if payment_dates else None,
    )


def market_summary(summaries: Iterable[PartySummary]) -> dict:
    """Aggregate party summaries into market-wide totals.

    ``total_market_credit`` is the signed sum of every active party's
    remaining balance, so advances reduce it.  ``total_outstanding`` only
    counts parties that still owe money.
    """

    active = [summary for summary in summaries if summary.is_active]
    return {
        "total_market_credit": sum((s.remaining for s in active), ZERO),
        "total_outstanding": sum((max(s.remaining, ZERO) for s in active), ZERO),
        "party_count": len(active),
    }


def recovery_rate(recovered, total_credit) -> Decimal:
    """Percentage of *total_credit* recovered, unclamped; 0 without credit."""

    total_credit = to_money(total_credit)
    if total_credit <= ZERO:
        return ZERO
    return (to_money(recovered) / total_credit * 100).quantize(MONEY_QUANTIZER)


def clamp_percentage(value) -> Decimal:
    return min(max(Decimal(value), ZERO), Decimal("100"))


def _in_window(day: Optional[date], date_from: Optional[date], date_to: Optional[date]) -> bool:
    if date_from is None or date_to is None:
        return True
    return day is not None and date_from <= day <= date_to


def _party_key(value) -> str:
    return str(value) if value is not None else ""


def credit_recovery(
    dealers: Iterable,
    credits: Iterable,
    payments: Iterable,
    *,
    territories: Optional[Mapping] = None,
    officers: Optional[Mapping] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> dict:
    """Build the credit recovery report.

    Credit and remaining balance are all-time figures; ``total_recovered``
    only counts payments dated inside the window (when both bounds are set).
    ``territories`` maps territory id to name and ``officers`` maps user id to
    display name.
    """

    territories = {_party_key(k): v for k, v in (territories or {}).items()}
    officers = {_party_key(k): v for k, v in (officers or {}).items()}

    credit_totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for row in credits:
        credit_totals[_party_key(field_value(row, "dealer_id"))] += to_money(field_value(row, "amount"))

    paid_totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    window_payments: dict[str, list] = defaultdict(list)
    recovered_payments = []
    for row in payments:
        key = _party_key(field_value(row, "dealer_id"))
        paid_totals[key] += to_money(field_value(row, "amount"))
        if _in_window(field_value(row, "payment_date"), date_from, date_to):
            window_payments[key].append(row)
            recovered_payments.append(row)

    dealer_rows = []
    for dealer in dealers:
        key = _party_key(field_value(dealer, "id"))
        total_credit = credit_totals.get(key, ZERO)
        recovered = _total(window_payments.get(key, ()))
        if total_credit <= ZERO and recovered <= ZERO:
            continue
        territory_id = field_value(dealer, "territory_id")
        dealer_rows.append(
            {
                "dealer_id": field_value(dealer, "id"),
                "dealer_name": field_value(dealer, "dealer_name"),
                "territory_id": territory_id,
                "territory_name": territories.get(_party_key(territory_id)),
                "total_credit": total_credit,
                "total_recovered": recovered,
                "remaining": total_credit - paid_totals.get(key, ZERO),
                "recovery_rate": recovery_rate(recovered, total_credit),
                "payments": [
                    {
                        "id": field_value(p, "id"),
                        "amount": to_money(field_value(p, "amount")),
                        "payment_date": field_value(p, "payment_date"),
                        "payment_method": field_value(p, "payment_method"),
                        "officer": officers.get(_party_key(field_value(p, "created_by_id"))),
                    }
                    for p in window_payments.get(key, ())
                ],
            }
        )
    dealer_rows.sort(key=lambda row: row["total_recovered"], reverse=True)

    total_credit = _total(dealer_rows, "total_credit")
    total_recovered = _total(dealer_rows, "total_recovered")
    return {
        "dealers": dealer_rows,
        "territories": territory_rollup(dealer_rows),
        "officers": officer_rollup(recovered_payments, officers),
        "summary": {
            "total_credit": total_credit,
            "total_recovered": total_recovered,
            "total_remaining": _total(dealer_rows, "remaining"),
            "recovery_rate": recovery_rate(total_recovered, total_credit),
            "dealer_count": len(dealer_rows),
        },
    }


def territory_rollup(dealer_rows: Iterable[Mapping]) -> list[dict]:
    groups: dict[str, dict] = {}
    for row in dealer_rows:
        territory_id = row.get("territory_id")
        key = _party_key(territory_id) or UNASSIGNED_TERRITORY
        group = groups.setdefault(
            key,
            {
                "territory_id": territory_id if territory_id is not None else UNASSIGNED_TERRITORY,
                "territory_name": row.get("territory_name") or "Unassigned",
                "total_credit": ZERO,
                "total_recovered": ZERO,
                "remaining": ZERO,
                "dealer_count": 0,
            },
        )
        group["total_credit"] += row["total_credit"]
        group["total_recovered"] += row["total_recovered"]
        group["remaining"] += row["remaining"]
        group["dealer_count"] += 1

    for group in groups.values():
        group["recovery_rate"] = recovery_rate(group["total_recovered"], group["total_credit"])
    return sorted(groups.values(), key=lambda g: g["total_recovered"], reverse=True)


def officer_rollup(payments: Iterable, officers: Optional[Mapping] = None) -> list[dict]:
    """Group payments by the user who recorded them."""

    officers = officers or {}
    groups: dict[str, dict] = {}
    for row in payments:
        officer_id = field_value(row, "created_by_id")
        key = _party_key(officer_id)
        group = groups.setdefault(
            key,
            {
                "officer_id": officer_id,
                "officer_name": officers.get(key) or "Unknown",
                "total_recovered": ZERO,
                "payment_count": 0,
            },
        )
        group["total_recovered"] += to_money(field_value(row, "amount"))
        group["payment_count"] += 1
    return sorted(groups.values(), key=lambda g: g["total_recovered"], reverse=True)


def build_statement(credits: Iterable, payments: Iterable) -> dict:
    """Return a dated ledger statement with a running balance.

    Credits are debits to the party and payments are credits; entries on the
    same day keep credits ahead of payments.
    """

    entries = []
    for row in credits:
        product = field_value(row, "product")
        parts = ["Credit"]
        if product is not None:
            parts.append(str(product))
        if field_value(row, "description"):
            parts.append(field_value(row, "description"))
        entries.append(
            {
                "id": field_value(row, "id"),
                "date": field_value(row, "credit_date"),
                "type": "credit",
                "description": " - ".join(parts),
                "debit": to_money(field_value(row, "amount")),
                "credit": ZERO,
            }
        )
    for row in payments:
        method = (field_value(row, "payment_method") or "").replace("_", " ")
        parts = [f"Payment ({method})" if method else "Payment"]
        if field_value(row, "reference_number"):
            parts.append(f"Ref {field_value(row, 'reference_number')}")
        if field_value(row, "notes"):
            parts.append(field_value(row, "notes"))
        entries.append(
            {
                "id": field_value(row, "id"),
                "date": field_value(row, "payment_date"),
                "type": "payment",
                "description": " - ".join(parts),
                "debit": ZERO,
                "credit": to_money(field_value(row, "amount")),
            }
        )

    entries.sort(key=lambda entry: entry["date"])
    balance = ZERO
    for entry in entries:
        balance += entry["debit"] - entry["credit"]
        entry["balance"] = balance

    return {
        "entries": entries,
        "total_debit": _total(entries, "debit"),
        "total_credit": _total(entries, "credit"),
        "closing_balance": balance,
    }


def _bucket_label(days_overdue: int) -> str:
    for limit, label in AGING_BUCKETS:
        if limit is None or days_overdue <= limit:
            return label
    return AGING_BUCKETS[-1][1]


def invoice_aging(invoices: Iterable, today: Optional[date] = None) -> dict:
    """Bucket past-due open invoices by days overdue.

    Remaining is measured against the effective paid figure, the larger of
    the cached ``paid_amount`` and ``payments_total`` (the sum of the
    invoice's payment rows) when the row carries one.
    """

    today = today or timezone.localdate()
    buckets = {label: {"label": label, "count": 0, "total": ZERO, "invoices": []} for _, label in AGING_BUCKETS}

    for invoice in invoices:
        if field_value(invoice, "status") in CLOSED_INVOICE_STATUSES:
            continue
        due_date = field_value(invoice, "due_date")
        if due_date is None or due_date >= today:
            continue
        days_overdue = (today - due_date).days
        paid = max(
            to_money(field_value(invoice, "paid_amount")),
            to_money(field_value(invoice, "payments_total")),
        )
        remaining = to_money(field_value(invoice, "total_amount")) - paid
        bucket = buckets[_bucket_label(days_overdue)]
        bucket["count"] += 1
        bucket["total"] += remaining
        bucket["invoices"].append(
            {
                "id": field_value(invoice, "id"),
                "invoice_number": field_value(invoice, "invoice_number"),
                "due_date": due_date,
                "days_overdue": days_overdue,
                "remaining": remaining,
            }
        )

    ordered = [buckets[label] for _, label in AGING_BUCKETS]
    return {
        "buckets": ordered,
        "total_overdue": _total(ordered, "total"),
        "invoice_count": sum(bucket["count"] for bucket in ordered),
    }


def find_cash_drift(ledger_totals: Mapping[str, Any], cash_totals: Mapping[str, Any]) -> dict:
    """Compare ledger totals with the cash mirror per transaction type.

    Only types present in ``ledger_totals`` are compared; a missing cash
    total counts as zero.  Returns the types whose totals disagree.
    """

    drift = {}
    for transaction_type, ledger_total in ledger_totals.items():
        ledger_total = to_money(ledger_total)
        cash_total = to_money(cash_totals.get(transaction_type))
        if ledger_total != cash_total:
            drift[transaction_type] = {
                "ledger": ledger_total,
                "cash": cash_total,
                "drift": ledger_total - cash_total,
            }
    return drift
