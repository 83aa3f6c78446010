"""Invoice related API views."""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..activity_logger import log_activity
from ..models import Invoice, InvoicePayment
from ..serializers import InvoicePaymentSerializer, InvoiceReadSerializer, InvoiceWriteSerializer
from ..services import invoice_payments
from ..services.invoices import cancel_invoice, create_invoice


class InvoiceViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Create, list and cancel dealer invoices."""

    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = (
            Invoice.objects.select_related('dealer')
            .prefetch_related('items__product', 'payments')
            .order_by('-invoice_date', '-created_at')
        )
        params = self.request.query_params
        if params.get('dealer'):
            queryset = queryset.filter(dealer_id=params['dealer'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('source'):
            queryset = queryset.filter(source=params['source'])
        return queryset

    def get_serializer_class(self):
        if self.action == 'create':
            return InvoiceWriteSerializer
        return InvoiceReadSerializer

    def create(self, request, *args, **kwargs):
        serializer = InvoiceWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        invoice = create_invoice(
            data.pop('dealer'),
            [dict(item) for item in data.pop('items')],
            user=request.user,
            **data,
        )
        log_activity(request.user, 'created', invoice)
        return Response(InvoiceReadSerializer(invoice).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        invoice = cancel_invoice(self.get_object(), user=request.user)
        log_activity(request.user, 'updated', invoice, description=f"Invoice {invoice} was cancelled.")
        return Response(InvoiceReadSerializer(invoice).data)


class InvoicePaymentViewSet(viewsets.ModelViewSet):
    """Payments recorded against one invoice."""

    serializer_class = InvoicePaymentSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ['get', 'post', 'delete', 'head', 'options']

    def get_invoice(self):
        try:
            return Invoice.objects.select_related('dealer').get(pk=self.kwargs.get('invoice_pk'))
        except (Invoice.DoesNotExist, DjangoValidationError):
            raise NotFound(detail="Invoice not found.")

    def get_queryset(self):
        return InvoicePayment.objects.filter(invoice=self.get_invoice())

    def perform_create(self, serializer):
        data = serializer.validated_data
        instance = invoice_payments.add_payment(
            self.get_invoice(),
            data['amount'],
            data.get('payment_date'),
            data.get('payment_method', 'cash'),
            user=self.request.user,
            reference_number=data.get('reference_number'),
            notes=data.get('notes'),
        )
        serializer.instance = instance
        log_activity(self.request.user, 'created', instance)

    def perform_destroy(self, instance):
        with transaction.atomic():
            log_activity(self.request.user, 'deleted', instance)
            invoice_payments.delete_payment(instance, user=self.request.user)
