"""URL routing for the back-office ledger API."""

from django.urls import include, path
from rest_framework.permissions import AllowAny
from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views.activities import ActivityViewSet
from .views.cash import CashTransactionViewSet
from .views.catalog import ProductViewSet, TerritoryViewSet
from .views.dealers import DealerCreditViewSet, DealerPaymentViewSet, DealerViewSet
from .views.expenses import ExpenseViewSet
from .views.invoices import InvoicePaymentViewSet, InvoiceViewSet
from .views.reports import (
    credit_recovery_report,
    dealer_credit_report,
    invoice_aging_report,
    market_summary,
)
from .views.suppliers import SupplierCreditViewSet, SupplierPaymentViewSet, SupplierViewSet

router = DefaultRouter()
router.register(r'activities', ActivityViewSet, basename='activity')
router.register(r'territories', TerritoryViewSet, basename='territory')
router.register(r'products', ProductViewSet, basename='product')
router.register(r'dealers', DealerViewSet, basename='dealer')
router.register(r'suppliers', SupplierViewSet, basename='supplier')
router.register(r'invoices', InvoiceViewSet, basename='invoice')
router.register(r'cash-transactions', CashTransactionViewSet, basename='cash-transaction')
router.register(r'expenses', ExpenseViewSet, basename='expense')

dealers_router = routers.NestedSimpleRouter(router, r'dealers', lookup='dealer')
dealers_router.register(r'credits', DealerCreditViewSet, basename='dealer-credits')
dealers_router.register(r'payments', DealerPaymentViewSet, basename='dealer-payments')

suppliers_router = routers.NestedSimpleRouter(router, r'suppliers', lookup='supplier')
suppliers_router.register(r'credits', SupplierCreditViewSet, basename='supplier-credits')
suppliers_router.register(r'payments', SupplierPaymentViewSet, basename='supplier-payments')

invoices_router = routers.NestedSimpleRouter(router, r'invoices', lookup='invoice')
invoices_router.register(r'payments', InvoicePaymentViewSet, basename='invoice-payments')

urlpatterns = [
    path(
        'token/',
        TokenObtainPairView.as_view(permission_classes=[AllowAny]),
        name='get_token',
    ),
    path(
        'token/refresh/',
        TokenRefreshView.as_view(permission_classes=[AllowAny]),
        name='refresh_token',
    ),
    path('reports/dealer-credits/', dealer_credit_report, name='dealer-credit-report'),
    path('reports/credit-recovery/', credit_recovery_report, name='credit-recovery-report'),
    path('reports/invoice-aging/', invoice_aging_report, name='invoice-aging-report'),
    path('reports/market-summary/', market_summary, name='market-summary'),
    path('', include(router.urls)),
    path('', include(dealers_router.urls)),
    path('', include(suppliers_router.urls)),
    path('', include(invoices_router.urls)),
]
