from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import DecimalField, Sum
from django.db.models.functions import Coalesce

from backoffice.models import (
    CashTransaction,
    DealerCredit,
    DealerPayment,
    Expense,
    Invoice,
    SupplierCredit,
    SupplierPayment,
)
from backoffice.services.invoices import derive_status
from backoffice.services.ledger import ZERO
from backoffice.services.reconciliation import find_cash_drift

LEDGER_SOURCES = (
    (CashTransaction.DEALER_CREDIT, DealerCredit),
    (CashTransaction.DEALER_PAYMENT, DealerPayment),
    (CashTransaction.SUPPLIER_CREDIT, SupplierCredit),
    (CashTransaction.SUPPLIER_PAYMENT, SupplierPayment),
    (CashTransaction.EXPENSE, Expense),
)


def _total(queryset, field='amount'):
    return queryset.aggregate(
        total=Coalesce(Sum(field), ZERO, output_field=DecimalField(max_digits=14, decimal_places=2))
    )['total']


class Command(BaseCommand):
    help = 'Report drift between the credit ledgers and the cash ledger, and stale invoice totals.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fix-invoices',
            action='store_true',
            help='Raise stale cached invoice paid amounts to their payment totals and recompute status.',
        )

    def handle(self, *args, **options):
        ledger_totals = {
            transaction_type: _total(model.objects.all())
            for transaction_type, model in LEDGER_SOURCES
        }
        cash_totals = {
            transaction_type: _total(CashTransaction.objects.filter(transaction_type=transaction_type))
            for transaction_type, _ in LEDGER_SOURCES
        }
        drift = find_cash_drift(ledger_totals, cash_totals)
        if drift:
            for transaction_type, row in drift.items():
                self.stdout.write(
                    self.style.WARNING(
                        f'{transaction_type}: ledger {row["ledger"]} vs cash {row["cash"]} '
                        f'(drift {row["drift"]})'
                    )
                )
        else:
            self.stdout.write(self.style.SUCCESS('Cash ledger matches the credit ledgers.'))

        stale = 0
        for invoice in Invoice.objects.exclude(status=Invoice.STATUS_CANCELLED):
            payments_total = _total(invoice.payments.all())
            # A cache above the payment sum is an opening balance, not drift.
            if payments_total <= invoice.paid_amount:
                continue
            stale += 1
            self.stdout.write(
                self.style.WARNING(
                    f'Invoice {invoice.invoice_number}: cached paid {invoice.paid_amount} '
                    f'vs payments {payments_total}'
                )
            )
            if options['fix_invoices']:
                with transaction.atomic():
                    locked = Invoice.objects.select_for_update().get(pk=invoice.pk)
                    locked.paid_amount = payments_total
                    locked.status = derive_status(payments_total, locked.total_amount)
                    locked.save(update_fields=['paid_amount', 'status', 'updated_at'])
                self.stdout.write(
                    self.style.SUCCESS(f'Invoice {invoice.invoice_number} paid amount updated to {payments_total}')
                )

        if not stale:
            self.stdout.write(self.style.SUCCESS('Invoice paid amounts match their payments.'))
