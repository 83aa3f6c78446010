"""Dealer related API views."""

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from ..activity_logger import log_activity
from ..report_exports import generate_statement_pdf, generate_statement_workbook
from ..serializers import (
    DealerCreditSerializer,
    DealerPaymentSerializer,
    DealerSerializer,
    InvoiceFromCreditsSerializer,
    InvoiceReadSerializer,
    PartySummarySerializer,
)
from ..services.invoices import create_invoice_from_credits
from ..services.party_credit import dealer_ledger
from ..services.reconciliation import build_statement
from .parties import PartyCreditViewSet, PartyPaymentViewSet, PartyViewSet
from .utils import XLSX_CONTENT_TYPE, file_response, get_export_format


class DealerViewSet(PartyViewSet):
    """CRUD operations for dealers, their statements and advance payments."""

    serializer_class = DealerSerializer
    search_fields = ['dealer_name', 'email', 'phone']
    ledger = dealer_ledger

    def get_queryset(self):
        queryset = super().get_queryset().select_related('territory')
        territory = self.request.query_params.get('territory')
        if territory:
            queryset = queryset.filter(territory_id=territory)
        return queryset

    @action(detail=True, methods=['get'])
    def statement(self, request, pk=None):
        dealer = self.get_object()
        history = dealer_ledger.get_history(dealer)
        statement = build_statement(history['credits'], history['payments'])

        export_format = get_export_format(request)
        filename_stub = f'dealer-statement-{dealer.pk}'
        if export_format in {'xlsx', 'excel'}:
            return file_response(
                generate_statement_workbook(dealer.dealer_name, statement),
                f'{filename_stub}.xlsx',
                XLSX_CONTENT_TYPE,
            )
        if export_format == 'pdf':
            return file_response(
                generate_statement_pdf(dealer.dealer_name, statement),
                f'{filename_stub}.pdf',
                'application/pdf',
            )

        return Response(
            {
                'dealer': DealerSerializer(dealer).data,
                'summary': PartySummarySerializer(history['summary']).data,
                'entries': statement['entries'],
                'total_debit': statement['total_debit'],
                'total_credit': statement['total_credit'],
                'closing_balance': statement['closing_balance'],
            }
        )

    @action(detail=True, methods=['post'], url_path='advance-payment')
    def advance_payment(self, request, pk=None):
        dealer = self.get_object()
        serializer = DealerPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        payment = dealer_ledger.add_advance_payment(
            dealer,
            data['amount'],
            data.get('payment_date'),
            data.get('payment_method', 'cash'),
            user=request.user,
            reference_number=data.get('reference_number'),
            notes=data.get('notes'),
        )
        log_activity(request.user, 'created', payment)
        return Response(DealerPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='invoice-from-credits')
    def invoice_from_credits(self, request, pk=None):
        dealer = self.get_object()
        serializer = InvoiceFromCreditsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        credits = None
        credit_ids = set(data.pop('credits', None) or ())
        if credit_ids:
            credits = list(dealer_ledger.credits_for(dealer).filter(pk__in=credit_ids).select_related('product'))
            if len(credits) != len(credit_ids):
                raise ValidationError({'credits': 'Unknown credit for this dealer.'})

        invoice = create_invoice_from_credits(dealer, credits, user=request.user, **data)
        log_activity(request.user, 'created', invoice)
        return Response(InvoiceReadSerializer(invoice).data, status=status.HTTP_201_CREATED)


class DealerCreditViewSet(PartyCreditViewSet):
    """Credits extended to one dealer."""

    serializer_class = DealerCreditSerializer
    ledger = dealer_ledger
    lookup_kwarg = 'dealer_pk'


class DealerPaymentViewSet(PartyPaymentViewSet):
    """Payments received from one dealer, checked against the outstanding credit."""

    serializer_class = DealerPaymentSerializer
    ledger = dealer_ledger
    lookup_kwarg = 'dealer_pk'
