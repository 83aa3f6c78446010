"""Supplier related API views."""

from ..serializers import SupplierCreditSerializer, SupplierPaymentSerializer, SupplierSerializer
from ..services.party_credit import supplier_ledger
from .parties import PartyCreditViewSet, PartyPaymentViewSet, PartyViewSet


class SupplierViewSet(PartyViewSet):
    """CRUD operations for suppliers."""

    serializer_class = SupplierSerializer
    search_fields = ['name', 'email', 'phone']
    ledger = supplier_ledger


class SupplierCreditViewSet(PartyCreditViewSet):
    serializer_class = SupplierCreditSerializer
    ledger = supplier_ledger
    lookup_kwarg = 'supplier_pk'


class SupplierPaymentViewSet(PartyPaymentViewSet):
    serializer_class = SupplierPaymentSerializer
    ledger = supplier_ledger
    lookup_kwarg = 'supplier_pk'
