from datetime import date
from decimal import Decimal

from django.test import TestCase

from ..models import CashTransaction, DealerPayment
from ..services import cash
from ..services.exceptions import AuthError, OverpaymentError, ValidationError
from ..services.party_credit import dealer_ledger, supplier_ledger
from . import create_dealer, create_product, create_supplier, create_user


class DealerLedgerTests(TestCase):
    def setUp(self):
        self.user = create_user("officer")
        self.dealer = create_dealer(self.user, "Dealer X")

    def test_credit_then_partial_payment(self):
        dealer_ledger.add_credit(self.dealer, "5000", date(2024, 1, 10), user=self.user)
        dealer_ledger.add_payment(self.dealer, "2000", date(2024, 1, 20), "cash", user=self.user)

        summary = dealer_ledger.get_summary_for_party(self.dealer)
        self.assertEqual(summary.total_credit, Decimal("5000.00"))
        self.assertEqual(summary.total_paid, Decimal("2000.00"))
        self.assertEqual(summary.remaining, Decimal("3000.00"))
        self.assertEqual(summary.last_payment_date, date(2024, 1, 20))

        rows = CashTransaction.objects.order_by("transaction_date")
        self.assertEqual(
            [(row.transaction_type, row.amount) for row in rows],
            [
                (CashTransaction.DEALER_CREDIT, Decimal("5000.00")),
                (CashTransaction.DEALER_PAYMENT, Decimal("2000.00")),
            ],
        )
        self.assertEqual(cash.cash_in_hand(), Decimal("-3000.00"))

        with self.assertRaises(OverpaymentError) as ctx:
            dealer_ledger.add_payment(self.dealer, "5000", date(2024, 1, 21), "cash", user=self.user)
        self.assertEqual(
            str(ctx.exception),
            "Payment amount (5,000.00) exceeds remaining credit (3,000.00)",
        )
        self.assertEqual(DealerPayment.objects.count(), 1)

    def test_remaining_equals_credit_minus_paid(self):
        for amount in ("100", "250.50", "49.50"):
            dealer_ledger.add_credit(self.dealer, amount, user=self.user)
        for amount in ("75", "125"):
            dealer_ledger.add_payment(self.dealer, amount, user=self.user)

        summary = dealer_ledger.get_summary_for_party(self.dealer)
        self.assertEqual(summary.remaining, summary.total_credit - summary.total_paid)
        self.assertEqual(summary.remaining, Decimal("200.00"))

    def test_payment_equal_to_remaining_settles_the_dealer(self):
        dealer_ledger.add_credit(self.dealer, "1000", user=self.user)
        dealer_ledger.add_payment(self.dealer, "1000", user=self.user)

        self.assertEqual(dealer_ledger.get_summary_for_party(self.dealer).remaining, Decimal("0.00"))

    def test_overpayment_is_allowed_when_the_check_is_bypassed(self):
        dealer_ledger.add_credit(self.dealer, "1000", user=self.user)
        dealer_ledger.add_payment(self.dealer, "1500", user=self.user, enforce_outstanding=False)

        self.assertEqual(dealer_ledger.get_summary_for_party(self.dealer).remaining, Decimal("-500.00"))

    def test_advance_payment_goes_negative_and_counts_as_inflow(self):
        payment = dealer_ledger.add_advance_payment(self.dealer, "800", user=self.user, notes="Season booking")

        self.assertTrue(payment.notes.startswith("[ADVANCE] "))
        self.assertEqual(dealer_ledger.get_summary_for_party(self.dealer).remaining, Decimal("-800.00"))
        row = CashTransaction.objects.get()
        self.assertEqual(row.transaction_type, CashTransaction.DEALER_PAYMENT)
        self.assertEqual(cash.cash_in_hand(), Decimal("800.00"))

    def test_validation_errors(self):
        with self.assertRaises(ValidationError):
            dealer_ledger.add_credit(self.dealer, "0", user=self.user)
        with self.assertRaises(ValidationError):
            dealer_ledger.add_credit(self.dealer, "-5", user=self.user)
        with self.assertRaises(ValidationError):
            dealer_ledger.add_payment(self.dealer, "10", payment_method="barter", user=self.user)
        with self.assertRaises(AuthError):
            dealer_ledger.add_credit(self.dealer, "10", user=None)
        self.assertFalse(CashTransaction.objects.exists())

    def test_credit_round_trip_leaves_cash_drift(self):
        product = create_product()
        credit = dealer_ledger.add_credit(self.dealer, "1200", user=self.user, product=product)
        dealer_ledger.delete_credit(credit)

        summary = dealer_ledger.get_summary_for_party(self.dealer)
        self.assertEqual(summary.total_credit, Decimal("0.00"))
        self.assertEqual(summary.remaining, Decimal("0.00"))
        # The outflow emitted on creation stays behind.
        self.assertEqual(CashTransaction.objects.filter(reference_id=str(credit.pk)).count(), 1)
        self.assertEqual(cash.cash_in_hand(), Decimal("-1200.00"))

    def test_edit_payment_does_not_touch_cash(self):
        dealer_ledger.add_credit(self.dealer, "1000", user=self.user)
        payment = dealer_ledger.add_payment(self.dealer, "400", user=self.user)

        dealer_ledger.edit_payment(payment, amount="300", notes="corrected")
        payment.refresh_from_db()

        self.assertEqual(payment.amount, Decimal("300.00"))
        self.assertEqual(dealer_ledger.get_summary_for_party(self.dealer).remaining, Decimal("700.00"))
        cash_row = CashTransaction.objects.get(transaction_type=CashTransaction.DEALER_PAYMENT)
        self.assertEqual(cash_row.amount, Decimal("400.00"))

    def test_edit_rejects_unknown_fields_and_bad_amounts(self):
        credit = dealer_ledger.add_credit(self.dealer, "1000", user=self.user)
        with self.assertRaises(ValidationError):
            dealer_ledger.edit_credit(credit, dealer=None)
        with self.assertRaises(ValidationError):
            dealer_ledger.edit_credit(credit, amount="0")

    def test_party_summaries_skip_inactive_dealers(self):
        other = create_dealer(self.user, "Dealer Y")
        create_dealer(self.user, "Dealer Z")
        dealer_ledger.add_credit(self.dealer, "1000", user=self.user)
        dealer_ledger.add_payment(self.dealer, "400", user=self.user)
        dealer_ledger.add_advance_payment(other, "100", user=self.user)

        summaries = dealer_ledger.get_party_summaries()
        self.assertEqual([s.party_name for s in summaries], ["Dealer X", "Dealer Y"])

        market = dealer_ledger.get_market_summary()
        self.assertEqual(market["total_market_credit"], Decimal("500.00"))
        self.assertEqual(market["total_outstanding"], Decimal("600.00"))
        self.assertEqual(market["party_count"], 2)

    def test_history_lists_rows_and_summary(self):
        dealer_ledger.add_credit(self.dealer, "300", user=self.user)
        dealer_ledger.add_payment(self.dealer, "100", user=self.user)

        history = dealer_ledger.get_history(self.dealer)
        self.assertEqual(len(history["credits"]), 1)
        self.assertEqual(len(history["payments"]), 1)
        self.assertEqual(history["summary"].remaining, Decimal("200.00"))


class SupplierLedgerTests(TestCase):
    def setUp(self):
        self.user = create_user("buyer")
        self.supplier = create_supplier(self.user)

    def test_supplier_credit_and_payment_are_both_outflows(self):
        supplier_ledger.add_credit(self.supplier, "900", user=self.user)
        supplier_ledger.add_payment(self.supplier, "400", user=self.user)

        types = set(CashTransaction.objects.values_list("transaction_type", flat=True))
        self.assertEqual(types, {CashTransaction.SUPPLIER_CREDIT, CashTransaction.SUPPLIER_PAYMENT})
        self.assertEqual(cash.cash_in_hand(), Decimal("-1300.00"))
        self.assertEqual(supplier_ledger.get_summary_for_party(self.supplier).remaining, Decimal("500.00"))

    def test_supplier_payments_are_not_capped(self):
        supplier_ledger.add_credit(self.supplier, "100", user=self.user)
        supplier_ledger.add_payment(self.supplier, "150", user=self.user)

        self.assertEqual(supplier_ledger.get_summary_for_party(self.supplier).remaining, Decimal("-50.00"))

    def test_suppliers_do_not_take_advances(self):
        with self.assertRaises(ValidationError):
            supplier_ledger.add_advance_payment(self.supplier, "100", user=self.user)
