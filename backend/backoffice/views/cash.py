"""Cash ledger API views."""

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from ..activity_logger import log_activity
from ..models import CashTransaction
from ..serializers import CashTransactionSerializer, ManualCashSerializer
from ..services import cash
from .utils import parse_date_param


class CashTransactionViewSet(viewsets.ReadOnlyModelViewSet):
    """Cash transactions with the cash-in-hand figure recomputed on every read."""

    serializer_class = CashTransactionSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None

    def get_queryset(self):
        return CashTransaction.objects.select_related('created_by').order_by('-transaction_date', '-created_at')

    def get_permissions(self):
        if self.action == 'manual':
            return [IsAdminUser()]
        return super().get_permissions()

    def list(self, request, *args, **kwargs):
        transactions = cash.filter_transactions(
            self.get_queryset(),
            transaction_type=request.query_params.get('type'),
            start_date=parse_date_param(request, 'start_date'),
            end_date=parse_date_param(request, 'end_date'),
            search=request.query_params.get('search'),
        )
        return Response(
            {
                'cash_in_hand': cash.cash_in_hand(),
                'totals': cash.summarize_cash_flow(transactions),
                'results': self.get_serializer(transactions, many=True).data,
            }
        )

    @action(detail=False, methods=['get'])
    def balance(self, request):
        return Response({'cash_in_hand': cash.cash_in_hand()})

    @action(detail=False, methods=['post'])
    def manual(self, request):
        serializer = ManualCashSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        entry = cash.add_manual_cash(
            data['amount'],
            user=request.user,
            description=data.get('description'),
            transaction_date=data.get('transaction_date'),
        )
        log_activity(request.user, 'created', entry)
        return Response(CashTransactionSerializer(entry).data, status=status.HTTP_201_CREATED)
