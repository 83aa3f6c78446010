"""Territory and product API views."""

from django.db import transaction
from rest_framework import viewsets
from rest_framework.filters import SearchFilter
from rest_framework.permissions import IsAuthenticated

from ..activity_logger import log_activity
from ..models import Product, Territory
from ..serializers import ProductSerializer, TerritorySerializer


class CatalogViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated]
    filter_backends = [SearchFilter]

    def perform_create(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'created', instance)

    def perform_update(self, serializer):
        instance = serializer.save()
        log_activity(self.request.user, 'updated', instance)

    def perform_destroy(self, instance):
        with transaction.atomic():
            log_activity(self.request.user, 'deleted', instance)
            instance.delete()


class TerritoryViewSet(CatalogViewSet):
    serializer_class = TerritorySerializer
    search_fields = ['name', 'code']
    queryset = Territory.objects.all().order_by('name')


class ProductViewSet(CatalogViewSet):
    serializer_class = ProductSerializer
    search_fields = ['name', 'sku']
    queryset = Product.objects.all().order_by('name')
