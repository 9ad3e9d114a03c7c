"""
Inventory filters
"""
from django.db.models import Q
from django_filters import rest_framework as filters

from .models import InventoryItem, InventoryTransaction


class InventoryItemFilter(filters.FilterSet):
    warehouse = filters.UUIDFilter(field_name='current_warehouse__id')
    warehouse_type = filters.CharFilter(field_name='current_warehouse__type')
    status = filters.ChoiceFilter(choices=InventoryItem.STATUS_CHOICES)
    vehicle_type = filters.ChoiceFilter(choices=InventoryItem.VEHICLE_TYPE_CHOICES)
    brand = filters.CharFilter(field_name='brand', lookup_expr='iexact')
    price_min = filters.NumberFilter(field_name='purchase_price', lookup_expr='gte')
    price_max = filters.NumberFilter(field_name='purchase_price', lookup_expr='lte')
    search = filters.CharFilter(method='filter_search')

    class Meta:
        model = InventoryItem
        fields = ['warehouse', 'warehouse_type', 'status', 'vehicle_type', 'brand', 'search']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(motor_fingerprint__icontains=value) |
            Q(chassis_number__icontains=value) |
            Q(model__icontains=value) |
            Q(brand__icontains=value)
        )


class InventoryTransactionFilter(filters.FilterSet):
    type = filters.ChoiceFilter(choices=InventoryTransaction.TYPE_CHOICES)
    warehouse = filters.UUIDFilter(method='filter_warehouse')
    date_from = filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    reference = filters.CharFilter(field_name='reference_number', lookup_expr='icontains')

    class Meta:
        model = InventoryTransaction
        fields = ['type', 'warehouse', 'date_from', 'date_to', 'reference']

    def filter_warehouse(self, queryset, name, value):
        return queryset.filter(Q(from_warehouse_id=value) | Q(to_warehouse_id=value))
