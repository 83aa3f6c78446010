import uuid
from datetime import date
from decimal import Decimal
from io import BytesIO

from django.test import TestCase
from openpyxl import load_workbook
from rest_framework.test import APIClient

from ..models import Activity, CashTransaction, Dealer, DealerCredit, Invoice, Product
from ..services import invoice_payments
from ..services.invoices import create_invoice
from ..services.party_credit import dealer_ledger
from . import create_dealer, create_product, create_supplier, create_user


class APITestCase(TestCase):
    def setUp(self):
        self.user = create_user("officer", first_name="Asha")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        self.dealer = create_dealer(self.user, "Dealer X", email="dealer@example.com")


class AuthenticationTests(TestCase):
    def test_requests_without_credentials_are_rejected(self):
        response = APIClient().get("/api/dealers/")
        self.assertEqual(response.status_code, 401)

    def test_token_pair_is_issued(self):
        create_user("tokenuser", password="secret-pass")
        response = APIClient().post(
            "/api/token/", {"username": "tokenuser", "password": "secret-pass"}, format="json"
        )
        self.assertEqual(response.status_code, 200, response.content)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)


class DealerLedgerAPITests(APITestCase):
    def test_credit_payment_and_overpayment(self):
        base = f"/api/dealers/{self.dealer.id}"
        response = self.client.post(
            f"{base}/credits/", {"amount": "5000.00", "credit_date": "2024-01-10"}, format="json"
        )
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(str(response.data["dealer"]), str(self.dealer.id))

        response = self.client.post(
            f"{base}/payments/",
            {"amount": "2000.00", "payment_date": "2024-01-20", "payment_method": "cash"},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.content)
        self.assertFalse(response.data["is_advance"])

        response = self.client.get(f"{base}/summary/")
        self.assertEqual(response.data["remaining"], "3000.00")
        self.assertEqual(response.data["last_payment_date"], "2024-01-20")

        response = self.client.post(
            f"{base}/payments/", {"amount": "5000.00", "payment_method": "cash"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.data["detail"],
            "Payment amount (5,000.00) exceeds remaining credit (3,000.00)",
        )

    def test_unknown_dealer_returns_404(self):
        response = self.client.get(f"/api/dealers/{uuid.uuid4()}/credits/")
        self.assertEqual(response.status_code, 404)

    def test_unknown_payment_method_is_rejected(self):
        dealer_ledger.add_credit(self.dealer, "100", user=self.user)
        response = self.client.post(
            f"/api/dealers/{self.dealer.id}/payments/",
            {"amount": "50.00", "payment_method": "barter"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_advance_payment(self):
        response = self.client.post(
            f"/api/dealers/{self.dealer.id}/advance-payment/",
            {"amount": "800.00", "payment_method": "upi", "notes": "Season booking"},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.content)
        self.assertTrue(response.data["is_advance"])
        self.assertEqual(response.data["notes"], "[ADVANCE] Season booking")

        summary = self.client.get(f"/api/dealers/{self.dealer.id}/summary/")
        self.assertEqual(summary.data["remaining"], "-800.00")

    def test_delete_credit_logs_activity_and_keeps_cash_row(self):
        credit = dealer_ledger.add_credit(self.dealer, "1200", user=self.user)

        response = self.client.delete(f"/api/dealers/{self.dealer.id}/credits/{credit.id}/")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(DealerCredit.objects.exists())
        self.assertEqual(CashTransaction.objects.count(), 1)

        activity = Activity.objects.get(action_type="deleted")
        self.assertEqual(activity.object_id, str(credit.id))
        self.assertIn("1200.00", activity.object_repr)

    def test_summaries_list_active_dealers_with_market_totals(self):
        create_dealer(self.user, "Dealer Idle")
        dealer_ledger.add_credit(self.dealer, "700", user=self.user)

        response = self.client.get("/api/dealers/summaries/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([p["party_name"] for p in response.data["parties"]], ["Dealer X"])
        self.assertEqual(response.data["market"]["total_market_credit"], Decimal("700.00"))

    def test_statement_json_and_exports(self):
        dealer_ledger.add_credit(self.dealer, "5000", date(2024, 1, 10), user=self.user)
        dealer_ledger.add_payment(self.dealer, "2000", date(2024, 1, 20), "cash", user=self.user)
        url = f"/api/dealers/{self.dealer.id}/statement/"

        response = self.client.get(url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data["entries"]), 2)
        self.assertEqual(response.data["closing_balance"], Decimal("3000.00"))

        response = self.client.get(url, {"export_format": "xlsx"})
        self.assertEqual(
            response["Content-Type"],
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
        workbook = load_workbook(BytesIO(response.content))
        self.assertIn("Dealer X", str(workbook.active["A1"].value))

        response = self.client.get(url, {"export_format": "pdf"})
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertTrue(response.content.startswith(b"%PDF"))


class SupplierLedgerAPITests(APITestCase):
    def test_supplier_credit_and_payment(self):
        supplier = create_supplier(self.user)
        base = f"/api/suppliers/{supplier.id}"
        self.client.post(f"{base}/credits/", {"amount": "900.00"}, format="json")
        response = self.client.post(
            f"{base}/payments/", {"amount": "1000.00", "payment_method": "bank_transfer"}, format="json"
        )
        self.assertEqual(response.status_code, 201, response.content)

        summary = self.client.get(f"{base}/summary/")
        self.assertEqual(summary.data["remaining"], "-100.00")


class CashAPITests(APITestCase):
    def test_list_reports_cash_in_hand_and_filters(self):
        dealer_ledger.add_credit(self.dealer, "5000", user=self.user)
        dealer_ledger.add_payment(self.dealer, "2000", user=self.user)

        response = self.client.get("/api/cash-transactions/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["cash_in_hand"], Decimal("-3000.00"))
        self.assertEqual(len(response.data["results"]), 2)

        response = self.client.get("/api/cash-transactions/", {"type": "dealer_credit"})
        self.assertEqual(len(response.data["results"]), 1)
        self.assertEqual(response.data["totals"]["outflows"], Decimal("5000.00"))
        self.assertEqual(response.data["cash_in_hand"], Decimal("-3000.00"))

    def test_bad_date_filter_is_rejected(self):
        response = self.client.get("/api/cash-transactions/", {"start_date": "03/01/2024"})
        self.assertEqual(response.status_code, 400)

    def test_manual_cash_requires_staff(self):
        response = self.client.post("/api/cash-transactions/manual/", {"amount": "100.00"}, format="json")
        self.assertEqual(response.status_code, 403)

        admin = create_user("admin", is_staff=True)
        client = APIClient()
        client.force_authenticate(user=admin)
        response = client.post(
            "/api/cash-transactions/manual/",
            {"amount": "10000.00", "description": "Opening float"},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.data["transaction_type"], CashTransaction.MANUAL_ADD)
        self.assertTrue(response.data["is_inflow"])

        balance = client.get("/api/cash-transactions/balance/")
        self.assertEqual(balance.data["cash_in_hand"], Decimal("10000.00"))

    def test_expense_emits_cash_outflow(self):
        response = self.client.post(
            "/api/expenses/",
            {"category": "Fuel", "amount": "2500.00", "expense_date": "2024-03-02", "description": "Van"},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.content)

        row = CashTransaction.objects.get(transaction_type=CashTransaction.EXPENSE)
        self.assertEqual(row.amount, Decimal("2500.00"))
        self.assertEqual(row.description, "Fuel: Van")


class InvoiceAPITests(APITestCase):
    def setUp(self):
        super().setUp()
        self.product = create_product()

    def create_invoice(self):
        response = self.client.post(
            "/api/invoices/",
            {
                "dealer": str(self.dealer.id),
                "invoice_date": "2024-03-01",
                "due_date": "2024-03-31",
                "items": [{"product": str(self.product.id), "quantity": "1", "unit_price": "10000.00"}],
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.content)
        return response.data

    def test_create_pay_and_cancel(self):
        invoice = self.create_invoice()
        self.assertEqual(invoice["invoice_number"], "INV-202403-0001")
        self.assertEqual(invoice["status"], Invoice.STATUS_UNPAID)
        self.assertEqual(invoice["total_amount"], "10000.00")

        payments_url = f"/api/invoices/{invoice['id']}/payments/"
        response = self.client.post(payments_url, {"amount": "6000.00", "payment_method": "cash"}, format="json")
        self.assertEqual(response.status_code, 201, response.content)
        self.assertIsNotNone(response.data["dealer_payment"])

        response = self.client.post(payments_url, {"amount": "6000.00", "payment_method": "cash"}, format="json")
        self.assertEqual(response.status_code, 400)

        detail = self.client.get(f"/api/invoices/{invoice['id']}/")
        self.assertEqual(detail.data["paid_amount"], "6000.00")
        self.assertEqual(detail.data["remaining"], "4000.00")
        self.assertEqual(detail.data["status"], Invoice.STATUS_PARTIAL)
        self.assertEqual(detail.data["effective_status"], Invoice.STATUS_OVERDUE)

        response = self.client.post(f"/api/invoices/{invoice['id']}/cancel/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], Invoice.STATUS_CANCELLED)

        response = self.client.post(payments_url, {"amount": "100.00", "payment_method": "cash"}, format="json")
        self.assertEqual(response.status_code, 409)

    def test_delete_payment_reopens_invoice(self):
        invoice = self.create_invoice()
        payments_url = f"/api/invoices/{invoice['id']}/payments/"
        payment = self.client.post(
            payments_url, {"amount": "10000.00", "payment_method": "cheque"}, format="json"
        ).data

        response = self.client.delete(f"{payments_url}{payment['id']}/")
        self.assertEqual(response.status_code, 204)

        detail = self.client.get(f"/api/invoices/{invoice['id']}/")
        self.assertEqual(detail.data["paid_amount"], "0.00")
        self.assertEqual(detail.data["status"], Invoice.STATUS_UNPAID)

    def test_list_filters_by_status(self):
        self.create_invoice()
        response = self.client.get("/api/invoices/", {"status": Invoice.STATUS_PAID})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 0)
        response = self.client.get("/api/invoices/", {"dealer": str(self.dealer.id)})
        self.assertEqual(len(response.data), 1)

    def test_invoice_without_items_is_rejected(self):
        response = self.client.post(
            "/api/invoices/", {"dealer": str(self.dealer.id), "items": []}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_referenced_dealer_and_product_cannot_be_deleted(self):
        self.create_invoice()

        response = self.client.delete(f"/api/dealers/{self.dealer.id}/")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["detail"], "Cannot delete this record while invoices still reference it.")
        self.assertTrue(Dealer.objects.filter(pk=self.dealer.pk).exists())

        response = self.client.delete(f"/api/products/{self.product.id}/")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["detail"], "Cannot delete this record while invoice items still reference it.")
        self.assertTrue(Product.objects.filter(pk=self.product.pk).exists())

        self.assertFalse(Activity.objects.filter(action_type="deleted").exists())

    def test_unreferenced_dealer_is_deleted(self):
        idle = create_dealer(self.user, "Dealer Idle")
        response = self.client.delete(f"/api/dealers/{idle.id}/")
        self.assertEqual(response.status_code, 204)
        self.assertEqual(Activity.objects.get(action_type="deleted").object_id, str(idle.id))

    def test_invoice_from_dealer_credits(self):
        dealer_ledger.add_credit(self.dealer, "5000", user=self.user, product=self.product)
        skipped = dealer_ledger.add_credit(self.dealer, "300", user=self.user, description="Transport")
        dealer_ledger.add_payment(self.dealer, "1500", user=self.user)
        url = f"/api/dealers/{self.dealer.id}/invoice-from-credits/"

        response = self.client.post(url, {"credits": [str(skipped.id)]}, format="json")
        self.assertEqual(response.status_code, 400)

        response = self.client.post(url, {"credits": [str(uuid.uuid4())]}, format="json")
        self.assertEqual(response.status_code, 400)

        response = self.client.post(url, {"due_date": "2099-12-31"}, format="json")
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.data["source"], Invoice.SOURCE_DEALERS)
        self.assertEqual(len(response.data["items"]), 1)
        self.assertEqual(response.data["total_amount"], "5000.00")
        self.assertEqual(response.data["paid_amount"], "1500.00")
        self.assertEqual(response.data["status"], Invoice.STATUS_PARTIAL)
        self.assertEqual(response.data["remaining"], "3500.00")
        self.assertTrue(Activity.objects.filter(action_type="created", object_id=response.data["id"]).exists())


class ReportAPITests(APITestCase):
    def setUp(self):
        super().setUp()
        dealer_ledger.add_credit(self.dealer, "10000", date(2024, 1, 5), user=self.user)
        dealer_ledger.add_payment(self.dealer, "2500", date(2024, 3, 5), "cash", user=self.user)

    def test_dealer_credit_report_formats(self):
        response = self.client.get("/api/reports/dealer-credits/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["dealers"][0]["remaining"], "7500.00")
        self.assertEqual(response.data["market"]["party_count"], 1)

        response = self.client.get("/api/reports/dealer-credits/", {"export_format": "xlsx"})
        self.assertEqual(
            response["Content-Type"],
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
        self.assertIn("attachment;", response["Content-Disposition"])
        worksheet = load_workbook(BytesIO(response.content)).active
        self.assertEqual(worksheet["A1"].value, "Dealer Credit Report")
        self.assertEqual(worksheet["A4"].value, "Dealer X")

        response = self.client.get("/api/reports/dealer-credits/", {"export_format": "pdf"})
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_credit_recovery_report(self):
        response = self.client.get(
            "/api/reports/credit-recovery/", {"date_from": "2024-03-01", "date_to": "2024-03-31"}
        )
        self.assertEqual(response.status_code, 200)
        summary = response.data["summary"]
        self.assertEqual(summary["total_recovered"], Decimal("2500.00"))
        self.assertEqual(summary["recovery_rate"], Decimal("25.00"))
        self.assertEqual(response.data["officers"][0]["officer_name"], "Asha")

        response = self.client.get("/api/reports/credit-recovery/", {"date_from": "March"})
        self.assertEqual(response.status_code, 400)

    def test_invoice_aging_report(self):
        product = create_product()
        create_invoice(
            self.dealer,
            [{"product": product, "quantity": Decimal("1"), "unit_price": Decimal("400")}],
            user=self.user,
            invoice_date=date(2024, 1, 1),
            due_date=date(2024, 1, 31),
        )
        response = self.client.get("/api/reports/invoice-aging/", {"as_of": "2024-03-15"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["invoice_count"], 1)
        self.assertEqual(response.data["buckets"][1]["label"], "30-60 Days")
        self.assertEqual(response.data["buckets"][1]["total"], Decimal("400.00"))

    def test_invoice_aging_report_uses_payment_rows_over_a_stale_cache(self):
        invoice = create_invoice(
            self.dealer,
            [{"product": create_product(), "quantity": Decimal("1"), "unit_price": Decimal("400")}],
            user=self.user,
            invoice_date=date(2024, 1, 1),
            due_date=date(2024, 1, 31),
        )
        invoice_payments.add_payment(invoice, "150", date(2024, 2, 1), user=self.user)
        Invoice.objects.filter(pk=invoice.pk).update(paid_amount=Decimal("0"), status=Invoice.STATUS_UNPAID)

        response = self.client.get("/api/reports/invoice-aging/", {"as_of": "2024-03-15"})
        self.assertEqual(response.data["buckets"][1]["total"], Decimal("250.00"))
        self.assertEqual(response.data["buckets"][1]["invoices"][0]["remaining"], Decimal("250.00"))

    def test_market_summary(self):
        response = self.client.get("/api/reports/market-summary/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["dealers"]["total_outstanding"], Decimal("7500.00"))
        self.assertEqual(response.data["suppliers"]["party_count"], 0)
        self.assertEqual(response.data["cash_in_hand"], Decimal("-7500.00"))


class ActivityAPITests(APITestCase):
    def test_writes_are_logged_for_the_user(self):
        self.client.post(f"/api/dealers/{self.dealer.id}/credits/", {"amount": "300.00"}, format="json")

        response = self.client.get("/api/activities/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["action_type"], "created")
        self.assertEqual(response.data[0]["user"], "officer")
