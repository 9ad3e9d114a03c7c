"""
Sales Filters for advanced querying
"""
from datetime import timedelta

from django_filters import rest_framework as filters
from django.db.models import Q
from django.utils import timezone

from .models import Sale, Customer


class SaleFilter(filters.FilterSet):
    """Advanced filtering for Sales"""

    # Date range filters
    date_from = filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    # Quick date range filter
    date_range = filters.CharFilter(method='filter_date_range')

    sale_type = filters.ChoiceFilter(choices=Sale.TYPE_CHOICES)
    status = filters.ChoiceFilter(choices=Sale.STATUS_CHOICES)
    payment_method = filters.ChoiceFilter(choices=Sale.PAYMENT_METHOD_CHOICES)
    agent = filters.UUIDFilter(field_name='agent__id')
    customer = filters.UUIDFilter(field_name='customer__id')
    warehouse = filters.UUIDFilter(field_name='warehouse__id')

    amount_min = filters.NumberFilter(field_name='total_amount', lookup_expr='gte')
    amount_max = filters.NumberFilter(field_name='total_amount', lookup_expr='lte')

    # Search filter (invoice, customer, vehicle identifiers)
    search = filters.CharFilter(method='filter_search')

    def filter_date_range(self, queryset, name, value):
        """Filter by predefined date ranges"""
        now = timezone.now()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)

        if value == 'today':
            return queryset.filter(created_at__gte=today)

        elif value == 'yesterday':
            return queryset.filter(created_at__gte=today - timedelta(days=1), created_at__lt=today)

        elif value == 'this_week':
            return queryset.filter(created_at__gte=today - timedelta(days=now.weekday()))

        elif value == 'this_month':
            return queryset.filter(created_at__gte=today.replace(day=1))

        elif value == 'last_30_days':
            return queryset.filter(created_at__gte=now - timedelta(days=30))

        elif value == 'this_year':
            return queryset.filter(created_at__gte=today.replace(month=1, day=1))

        return queryset

    def filter_search(self, queryset, name, value):
        """Search across invoice number, customer and vehicle identifiers"""
        if not value:
            return queryset

        search_term = value.strip()

        return queryset.filter(
            Q(invoice_number__icontains=search_term) |
            Q(customer__name__icontains=search_term) |
            Q(customer__phone__icontains=search_term) |
            Q(customer__national_id__icontains=search_term) |
            Q(items__inventory_item__motor_fingerprint__icontains=search_term) |
            Q(items__inventory_item__chassis_number__icontains=search_term)
        ).distinct()

    class Meta:
        model = Sale
        fields = [
            'sale_type', 'status', 'payment_method', 'agent', 'customer', 'warehouse',
            'date_from', 'date_to', 'date_range', 'amount_min', 'amount_max', 'search',
        ]


class CustomerFilter(filters.FilterSet):
    search = filters.CharFilter(method='filter_search')

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(phone__icontains=value) |
            Q(national_id__icontains=value)
        )

    class Meta:
        model = Customer
        fields = ['search', 'gender']
