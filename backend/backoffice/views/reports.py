"""Read-only ledger reports."""

from django.db.models import DecimalField, Sum
from django.db.models.functions import Coalesce
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Dealer, DealerCredit, DealerPayment, Invoice, Territory
from ..report_exports import generate_dealer_credit_pdf, generate_dealer_credit_workbook
from ..serializers import PartySummarySerializer
from ..services import cash
from ..services.ledger import ZERO
from ..services.party_credit import dealer_ledger, supplier_ledger
from ..services.reconciliation import credit_recovery, invoice_aging
from .utils import XLSX_CONTENT_TYPE, file_response, get_export_format, parse_date_param


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dealer_credit_report(request):
    """Return every active dealer's credit position and the market totals."""

    summaries = PartySummarySerializer(dealer_ledger.get_party_summaries(), many=True).data
    market = dealer_ledger.get_market_summary()

    export_format = get_export_format(request)
    filename_stub = 'dealer-credit-report'
    if export_format in {'xlsx', 'excel'}:
        return file_response(
            generate_dealer_credit_workbook(summaries, market),
            f'{filename_stub}.xlsx',
            XLSX_CONTENT_TYPE,
        )
    if export_format == 'pdf':
        return file_response(
            generate_dealer_credit_pdf(summaries, market),
            f'{filename_stub}.pdf',
            'application/pdf',
        )
    return Response({'dealers': summaries, 'market': market})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def credit_recovery_report(request):
    """Return credit recovered per dealer, territory and officer.

    ``date_from`` and ``date_to`` bound the payments counted as recovered;
    credit and remaining balances are always all-time.
    """

    officers = {}
    payments = list(DealerPayment.objects.select_related('created_by'))
    for payment in payments:
        user = payment.created_by
        officers[user.pk] = user.get_full_name() or user.username

    report = credit_recovery(
        Dealer.objects.all(),
        DealerCredit.objects.all(),
        payments,
        territories=dict(Territory.objects.values_list('id', 'name')),
        officers=officers,
        date_from=parse_date_param(request, 'date_from'),
        date_to=parse_date_param(request, 'date_to'),
    )
    return Response(report)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def invoice_aging_report(request):
    invoices = (
        Invoice.objects.exclude(status__in=[Invoice.STATUS_PAID, Invoice.STATUS_CANCELLED])
        .annotate(
            payments_total=Coalesce(
                Sum('payments__amount'), ZERO, output_field=DecimalField(max_digits=14, decimal_places=2)
            )
        )
        .select_related('dealer')
    )
    return Response(invoice_aging(invoices, today=parse_date_param(request, 'as_of')))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def market_summary(request):
    """Dashboard totals: dealer and supplier markets plus cash in hand."""

    return Response(
        {
            'dealers': dealer_ledger.get_market_summary(),
            'suppliers': supplier_ledger.get_market_summary(),
            'cash_in_hand': cash.cash_in_hand(),
        }
    )
