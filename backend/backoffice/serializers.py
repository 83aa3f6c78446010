from rest_framework import serializers

from .models import (
    Activity,
    CashTransaction,
    Dealer,
    DealerCredit,
    DealerPayment,
    Expense,
    Invoice,
    InvoiceItem,
    InvoicePayment,
    Product,
    Supplier,
    SupplierCredit,
    SupplierPayment,
    Territory,
)
from .services.invoice_payments import get_paid_amount
from .services.invoices import effective_status


class ActivitySerializer(serializers.ModelSerializer):
    user = serializers.StringRelatedField()

    class Meta:
        model = Activity
        fields = ['id', 'user', 'action_type', 'description', 'timestamp', 'object_id', 'object_repr']


class TerritorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Territory
        fields = ['id', 'name', 'code', 'created_at']


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['id', 'name', 'sku', 'unit_price', 'created_at']


class DealerSerializer(serializers.ModelSerializer):
    territory_name = serializers.CharField(source='territory.name', read_only=True, default=None)

    class Meta:
        model = Dealer
        fields = [
            'id',
            'dealer_name',
            'territory',
            'territory_name',
            'phone',
            'email',
            'address',
            'created_by',
            'created_at',
        ]
        read_only_fields = ['created_by']


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ['id', 'name', 'phone', 'email', 'address', 'created_by', 'created_at']
        read_only_fields = ['created_by']


CREDIT_FIELDS = [
    'id',
    'amount',
    'credit_date',
    'product',
    'product_name',
    'description',
    'notes',
    'created_by',
    'created_at',
]
PAYMENT_FIELDS = [
    'id',
    'amount',
    'payment_date',
    'payment_method',
    'reference_number',
    'notes',
    'created_by',
    'created_at',
]


class DealerCreditSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True, default=None)
    dealer = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = DealerCredit
        fields = CREDIT_FIELDS + ['dealer']
        read_only_fields = ['created_by']


class DealerPaymentSerializer(serializers.ModelSerializer):
    dealer = serializers.PrimaryKeyRelatedField(read_only=True)
    is_advance = serializers.SerializerMethodField()

    class Meta:
        model = DealerPayment
        fields = PAYMENT_FIELDS + ['dealer', 'is_advance']
        read_only_fields = ['created_by']

    def get_is_advance(self, obj):
        return (obj.notes or '').startswith('[ADVANCE]')


class SupplierCreditSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True, default=None)
    supplier = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = SupplierCredit
        fields = CREDIT_FIELDS + ['supplier']
        read_only_fields = ['created_by']


class SupplierPaymentSerializer(serializers.ModelSerializer):
    supplier = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = SupplierPayment
        fields = PAYMENT_FIELDS + ['supplier']
        read_only_fields = ['created_by']


class PartySummarySerializer(serializers.Serializer):
    party_id = serializers.UUIDField()
    party_name = serializers.CharField(allow_null=True)
    total_credit = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_paid = serializers.DecimalField(max_digits=14, decimal_places=2)
    remaining = serializers.DecimalField(max_digits=14, decimal_places=2)
    last_payment_date = serializers.DateField(allow_null=True)


class InvoiceItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = InvoiceItem
        fields = ['id', 'product', 'product_name', 'description', 'quantity', 'unit_price', 'total']
        read_only_fields = ['total']


class InvoicePaymentSerializer(serializers.ModelSerializer):
    invoice = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = InvoicePayment
        fields = PAYMENT_FIELDS + ['invoice', 'dealer_payment']
        read_only_fields = ['created_by', 'dealer_payment']


class InvoiceReadSerializer(serializers.ModelSerializer):
    dealer_name = serializers.CharField(source='dealer.dealer_name', read_only=True)
    items = InvoiceItemSerializer(many=True, read_only=True)
    payments = InvoicePaymentSerializer(many=True, read_only=True)
    effective_status = serializers.SerializerMethodField()
    effective_paid_amount = serializers.SerializerMethodField()
    remaining = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = [
            'id',
            'invoice_number',
            'dealer',
            'dealer_name',
            'invoice_date',
            'due_date',
            'status',
            'effective_status',
            'subtotal',
            'tax_rate',
            'tax_amount',
            'total_amount',
            'paid_amount',
            'effective_paid_amount',
            'remaining',
            'sales_order_id',
            'source',
            'notes',
            'items',
            'payments',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_effective_status(self, obj):
        return effective_status(obj)

    def get_effective_paid_amount(self, obj):
        return str(get_paid_amount(obj))

    def get_remaining(self, obj):
        return str(obj.total_amount - get_paid_amount(obj))


class InvoiceWriteSerializer(serializers.Serializer):
    """Validates the payload for creating an invoice with its items."""

    dealer = serializers.PrimaryKeyRelatedField(queryset=Dealer.objects.all())
    invoice_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False)
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=0)
    paid_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    source = serializers.ChoiceField(choices=Invoice.SOURCE_CHOICES, default=Invoice.SOURCE_MANUAL)
    sales_order_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    items = InvoiceItemSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('An invoice needs at least one item.')
        return value


class InvoiceFromCreditsSerializer(serializers.Serializer):
    """Payload for invoicing a dealer's credits; all credits when none are listed."""

    credits = serializers.ListField(child=serializers.UUIDField(), required=False, allow_empty=False)
    invoice_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False)
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CashTransactionSerializer(serializers.ModelSerializer):
    transaction_type_display = serializers.CharField(source='get_transaction_type_display', read_only=True)
    is_inflow = serializers.BooleanField(read_only=True)
    created_by = serializers.StringRelatedField()

    class Meta:
        model = CashTransaction
        fields = [
            'id',
            'transaction_type',
            'transaction_type_display',
            'is_inflow',
            'amount',
            'reference_id',
            'reference_type',
            'description',
            'transaction_date',
            'created_by',
            'created_at',
        ]
        read_only_fields = fields


class ManualCashSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    transaction_date = serializers.DateField(required=False)


class ExpenseSerializer(serializers.ModelSerializer):
    territory_name = serializers.CharField(source='territory.name', read_only=True, default=None)

    class Meta:
        model = Expense
        fields = [
            'id',
            'category',
            'amount',
            'expense_date',
            'description',
            'territory',
            'territory_name',
            'created_by',
            'created_at',
        ]
        read_only_fields = ['created_by']
