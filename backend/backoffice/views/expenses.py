"""Expense related API views."""

from rest_framework import mixins, viewsets
from rest_framework.filters import SearchFilter
from rest_framework.permissions import IsAuthenticated

from ..activity_logger import log_activity
from ..models import Expense
from ..serializers import ExpenseSerializer
from ..services.expenses import create_expense
from .utils import parse_date_param


class ExpenseViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Record and browse operating expenses."""

    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [SearchFilter]
    search_fields = ['category', 'description']

    def get_queryset(self):
        queryset = Expense.objects.select_related('territory').order_by('-expense_date', '-created_at')
        start_date = parse_date_param(self.request, 'start_date')
        end_date = parse_date_param(self.request, 'end_date')
        if start_date:
            queryset = queryset.filter(expense_date__gte=start_date)
        if end_date:
            queryset = queryset.filter(expense_date__lte=end_date)
        return queryset

    def perform_create(self, serializer):
        data = serializer.validated_data
        instance = create_expense(
            data['category'],
            data['amount'],
            data.get('expense_date'),
            user=self.request.user,
            description=data.get('description'),
            territory=data.get('territory'),
        )
        serializer.instance = instance
        log_activity(self.request.user, 'created', instance)
