import uuid
from decimal import Decimal

from django.contrib.auth.models import User
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.utils import timezone


PAYMENT_METHOD_CHOICES = (
    ('cash', 'Cash'),
    ('bank_transfer', 'Bank Transfer'),
    ('cheque', 'Cheque'),
    ('upi', 'UPI'),
    ('credit_card', 'Credit Card'),
    ('other', 'Other'),
)
PAYMENT_METHODS = frozenset(code for code, _ in PAYMENT_METHOD_CHOICES)


def _positive_amount(name):
    return models.CheckConstraint(
        condition=models.Q(amount__gt=0),
        name=name,
    )


class Activity(models.Model):
    ACTION_TYPES = (
        ('created', 'Created'),
        ('updated', 'Updated'),
        ('deleted', 'Deleted'),
    )

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='activities')
    action_type = models.CharField(max_length=10, choices=ACTION_TYPES)
    description = models.CharField(max_length=255)
    timestamp = models.DateTimeField(auto_now_add=True)

    # Ledger rows use UUID keys, so the generic reference stores text.
    content_type = models.ForeignKey(ContentType, on_delete=models.CASCADE)
    object_id = models.CharField(max_length=64)
    content_object = GenericForeignKey('content_type', 'object_id')

    # Serialized copy of deleted rows
    object_repr = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ['-timestamp']
        verbose_name_plural = 'Activities'

    def __str__(self):
        return f"{self.user.username} {self.action_type} {self.content_type.model} at {self.timestamp}"


class Territory(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=50, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'Territories'

    def __str__(self):
        return self.name


class Dealer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    dealer_name = models.CharField(max_length=255)
    territory = models.ForeignKey(
        Territory,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='dealers',
    )
    phone = models.CharField(max_length=50, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='dealers')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['dealer_name']

    def __str__(self):
        return self.dealer_name


class Supplier(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=50, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='suppliers')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=100, blank=True, null=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=0),
                name='product_unit_price_non_negative',
            ),
        ]

    def __str__(self):
        return self.name


class LedgerEntry(models.Model):
    """Fields shared by every credit and payment row."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True


class CreditEntry(LedgerEntry):
    credit_date = models.DateField(default=timezone.localdate)
    description = models.CharField(max_length=255, blank=True, null=True)

    class Meta:
        abstract = True
        ordering = ['-credit_date', '-created_at']


class PaymentEntry(LedgerEntry):
    payment_date = models.DateField(default=timezone.localdate)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='cash')
    reference_number = models.CharField(max_length=100, blank=True, null=True)

    class Meta:
        abstract = True
        ordering = ['-payment_date', '-created_at']


class DealerCredit(CreditEntry):
    dealer = models.ForeignKey(Dealer, on_delete=models.CASCADE, related_name='credits')
    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='dealer_credits',
    )
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='dealer_credits')

    class Meta(CreditEntry.Meta):
        constraints = [_positive_amount('dealer_credit_amount_positive')]

    def __str__(self):
        return f"Credit of {self.amount} to {self.dealer}"


class DealerPayment(PaymentEntry):
    dealer = models.ForeignKey(Dealer, on_delete=models.CASCADE, related_name='payments')
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='dealer_payments')

    class Meta(PaymentEntry.Meta):
        constraints = [_positive_amount('dealer_payment_amount_positive')]

    def __str__(self):
        return f"Payment of {self.amount} from {self.dealer}"


class SupplierCredit(CreditEntry):
    supplier = models.ForeignKey(Supplier, on_delete=models.CASCADE, related_name='credits')
    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='supplier_credits',
    )
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='supplier_credits')

    class Meta(CreditEntry.Meta):
        constraints = [_positive_amount('supplier_credit_amount_positive')]

    def __str__(self):
        return f"Credit of {self.amount} from {self.supplier}"


class SupplierPayment(PaymentEntry):
    supplier = models.ForeignKey(Supplier, on_delete=models.CASCADE, related_name='payments')
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='supplier_payments')

    class Meta(PaymentEntry.Meta):
        constraints = [_positive_amount('supplier_payment_amount_positive')]

    def __str__(self):
        return f"Payment of {self.amount} to {self.supplier}"


class Invoice(models.Model):
    STATUS_UNPAID = 'unpaid'
    STATUS_PARTIAL = 'partial'
    STATUS_PAID = 'paid'
    STATUS_OVERDUE = 'overdue'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = (
        (STATUS_UNPAID, 'Unpaid'),
        (STATUS_PARTIAL, 'Partially Paid'),
        (STATUS_PAID, 'Paid'),
        (STATUS_OVERDUE, 'Overdue'),
        (STATUS_CANCELLED, 'Cancelled'),
    )

    SOURCE_MANUAL = 'manual'
    SOURCE_DEALERS = 'dealers'
    SOURCE_CHOICES = (
        (SOURCE_MANUAL, 'Manual'),
        (SOURCE_DEALERS, 'Dealers'),
        ('sales', 'Sales'),
        ('purchases', 'Purchases'),
        ('expenses', 'Expenses'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    dealer = models.ForeignKey(Dealer, on_delete=models.PROTECT, related_name='invoices')
    invoice_number = models.CharField(max_length=50, unique=True)
    invoice_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_UNPAID)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    # Cached running total of payments; see services.invoice_payments.get_paid_amount.
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    sales_order_id = models.UUIDField(blank=True, null=True)
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default=SOURCE_MANUAL)
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='invoices')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-invoice_date', '-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(paid_amount__gte=0),
                name='invoice_paid_amount_non_negative',
            ),
        ]

    def __str__(self):
        return self.invoice_number


class InvoiceItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='invoice_items')
    description = models.CharField(max_length=255, blank=True, null=True)
    quantity = models.DecimalField(max_digits=10, decimal_places=2)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name='invoice_item_quantity_positive',
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=0),
                name='invoice_item_unit_price_non_negative',
            ),
        ]

    def __str__(self):
        return f"{self.quantity} of {self.product} on {self.invoice}"


class InvoicePayment(PaymentEntry):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='payments')
    dealer_payment = models.ForeignKey(
        DealerPayment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invoice_payments',
    )
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='invoice_payments')

    class Meta(PaymentEntry.Meta):
        constraints = [_positive_amount('invoice_payment_amount_positive')]

    def __str__(self):
        return f"Payment of {self.amount} on {self.invoice}"


class CashTransaction(models.Model):
    MANUAL_ADD = 'manual_add'
    DEALER_PAYMENT = 'dealer_payment'
    DEALER_CREDIT = 'dealer_credit'
    SUPPLIER_PAYMENT = 'supplier_payment'
    SUPPLIER_CREDIT = 'supplier_credit'
    EXPENSE = 'expense'
    SALES_PAYMENT = 'sales_payment'

    TRANSACTION_TYPE_CHOICES = (
        (MANUAL_ADD, 'Manual Addition'),
        (DEALER_PAYMENT, 'Dealer Payment'),
        (DEALER_CREDIT, 'Dealer Credit'),
        (SUPPLIER_PAYMENT, 'Supplier Payment'),
        (SUPPLIER_CREDIT, 'Supplier Credit'),
        (EXPENSE, 'Expense'),
        (SALES_PAYMENT, 'Sales Payment'),
    )
    TRANSACTION_TYPES = frozenset(code for code, _ in TRANSACTION_TYPE_CHOICES)
    # Everything outside this set moves cash out.
    INFLOW_TYPES = frozenset({MANUAL_ADD, DEALER_PAYMENT, SALES_PAYMENT})

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    transaction_type = models.CharField(max_length=30, choices=TRANSACTION_TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reference_id = models.CharField(max_length=64, blank=True, null=True)
    reference_type = models.CharField(max_length=50, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    transaction_date = models.DateField(default=timezone.localdate)
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='cash_transactions')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-transaction_date', '-created_at']
        constraints = [_positive_amount('cash_transaction_amount_positive')]

    def __str__(self):
        return f"{self.get_transaction_type_display()} of {self.amount} on {self.transaction_date}"

    @property
    def is_inflow(self):
        return self.transaction_type in self.INFLOW_TYPES


class Expense(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    category = models.CharField(max_length=100)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    expense_date = models.DateField(default=timezone.localdate)
    description = models.TextField(blank=True, null=True)
    territory = models.ForeignKey(
        Territory,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='expenses',
    )
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='expenses')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-expense_date', '-created_at']
        constraints = [_positive_amount('expense_amount_positive')]

    def __str__(self):
        return f"Expense of {self.amount} on {self.expense_date}"
