from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from ..models import Invoice
from ..services import invoice_payments
from ..services.invoices import create_invoice
from ..services.party_credit import dealer_ledger
from . import create_dealer, create_product, create_user, invoice_items


class ReconcileLedgersCommandTests(TestCase):
    def setUp(self):
        self.user = create_user("auditor")
        self.dealer = create_dealer(self.user)

    def run_command(self, *args):
        out = StringIO()
        call_command("reconcile_ledgers", *args, stdout=out)
        return out.getvalue()

    def test_consistent_ledgers(self):
        dealer_ledger.add_credit(self.dealer, "1000", user=self.user)
        dealer_ledger.add_payment(self.dealer, "400", user=self.user)

        output = self.run_command()
        self.assertIn("Cash ledger matches the credit ledgers.", output)
        self.assertIn("Invoice paid amounts match their payments.", output)

    def test_deleted_credit_shows_up_as_drift(self):
        credit = dealer_ledger.add_credit(self.dealer, "1200", user=self.user)
        dealer_ledger.delete_credit(credit)

        output = self.run_command()
        self.assertIn("dealer_credit: ledger 0.00 vs cash 1200.00 (drift -1200.00)", output)
        self.assertNotIn("Cash ledger matches", output)

    def test_fix_invoices_raises_stale_cache(self):
        invoice = create_invoice(self.dealer, invoice_items(create_product()), user=self.user)
        invoice_payments.add_payment(invoice, "4000", user=self.user)
        Invoice.objects.filter(pk=invoice.pk).update(paid_amount=Decimal("0"), status=Invoice.STATUS_UNPAID)

        output = self.run_command()
        self.assertIn(f"Invoice {invoice.invoice_number}: cached paid 0.00 vs payments 4000.00", output)
        invoice.refresh_from_db()
        self.assertEqual(invoice.paid_amount, Decimal("0.00"))

        output = self.run_command("--fix-invoices")
        self.assertIn(f"Invoice {invoice.invoice_number} paid amount updated to 4000.00", output)
        invoice.refresh_from_db()
        self.assertEqual(invoice.paid_amount, Decimal("4000.00"))
        self.assertEqual(invoice.status, Invoice.STATUS_PARTIAL)

        self.assertIn("Invoice paid amounts match their payments.", self.run_command())
