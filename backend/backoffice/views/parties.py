"""Shared viewsets for the dealer and supplier credit ledgers.

Writes go through a :class:`~backoffice.services.party_credit.PartyCreditLedger`
so the outstanding checks and the cash mirror apply to API traffic too.
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.filters import SearchFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..activity_logger import log_activity
from ..serializers import PartySummarySerializer


class PartyViewSet(viewsets.ModelViewSet):
    """CRUD for a counterparty plus its ledger summary."""

    permission_classes = [IsAuthenticated]
    filter_backends = [SearchFilter]
    ledger = None

    def get_queryset(self):
        return self.ledger.party_model.objects.all().order_by(self.ledger.name_field)

    def perform_create(self, serializer):
        instance = serializer.save(created_by=self.request.user)
        log_activity(self.request.user, 'created', instance)

    def perform_update(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'updated', instance)

    def perform_destroy(self, instance):
        with transaction.atomic():
            log_activity(self.request.user, 'deleted', instance)
            instance.delete()

    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        party = self.get_object()
        return Response(PartySummarySerializer(self.ledger.get_summary_for_party(party)).data)

    @action(detail=False, methods=['get'])
    def summaries(self, request):
        summaries = self.ledger.get_party_summaries()
        return Response(
            {
                'parties': PartySummarySerializer(summaries, many=True).data,
                'market': self.ledger.get_market_summary(),
            }
        )


class PartyLedgerEntryViewSet(viewsets.ModelViewSet):
    """Credits or payments nested under one party."""

    permission_classes = [IsAuthenticated]
    ledger = None
    lookup_kwarg = None

    def get_party(self):
        party_pk = self.kwargs.get(self.lookup_kwarg)
        try:
            return self.ledger.party_model.objects.get(pk=party_pk)
        except (self.ledger.party_model.DoesNotExist, DjangoValidationError):
            raise NotFound(detail=f"{self.ledger.name.capitalize()} not found.")

    def get_entry_model(self):
        raise NotImplementedError

    def get_queryset(self):
        party = self.get_party()
        return self.get_entry_model().objects.filter(**{self.ledger.party_field: party})

    def perform_update(self, serializer):
        instance = self.edit_entry(serializer.instance, dict(serializer.validated_data))
        serializer.instance = instance
        log_activity(self.request.user, 'updated', instance)

    def perform_destroy(self, instance):
        with transaction.atomic():
            log_activity(self.request.user, 'deleted', instance)
            self.delete_entry(instance)


class PartyCreditViewSet(PartyLedgerEntryViewSet):
    def get_entry_model(self):
        return self.ledger.credit_model

    def get_queryset(self):
        return super().get_queryset().select_related('product')

    def perform_create(self, serializer):
        data = serializer.validated_data
        instance = self.ledger.add_credit(
            self.get_party(),
            data['amount'],
            data.get('credit_date'),
            user=self.request.user,
            product=data.get('product'),
            description=data.get('description'),
            notes=data.get('notes'),
        )
        serializer.instance = instance
        log_activity(self.request.user, 'created', instance)

    def edit_entry(self, instance, fields):
        return self.ledger.edit_credit(instance, **fields)

    def delete_entry(self, instance):
        self.ledger.delete_credit(instance)


class PartyPaymentViewSet(PartyLedgerEntryViewSet):
    def get_entry_model(self):
        return self.ledger.payment_model

    def perform_create(self, serializer):
        data = serializer.validated_data
        instance = self.ledger.add_payment(
            self.get_party(),
            data['amount'],
            data.get('payment_date'),
            data.get('payment_method', 'cash'),
            user=self.request.user,
            reference_number=data.get('reference_number'),
            notes=data.get('notes'),
        )
        serializer.instance = instance
        log_activity(self.request.user, 'created', instance)

    def edit_entry(self, instance, fields):
        return self.ledger.edit_payment(instance, **fields)

    def delete_entry(self, instance):
        self.ledger.delete_payment(instance)
