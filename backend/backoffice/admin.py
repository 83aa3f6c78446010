# backend/backoffice/admin.py

from django.contrib import admin
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

admin.site.register(Territory)
admin.site.register(Dealer)
admin.site.register(Supplier)
admin.site.register(Product)
admin.site.register(DealerCredit)
admin.site.register(DealerPayment)
admin.site.register(SupplierCredit)
admin.site.register(SupplierPayment)
admin.site.register(Invoice)
admin.site.register(InvoiceItem)
admin.site.register(InvoicePayment)
admin.site.register(Expense)
admin.site.register(Activity)


@admin.register(CashTransaction)
class CashTransactionAdmin(admin.ModelAdmin):
    list_display = ('transaction_date', 'transaction_type', 'amount', 'reference_type', 'created_by')
    list_filter = ('transaction_type',)
    search_fields = ('description', 'reference_id')
