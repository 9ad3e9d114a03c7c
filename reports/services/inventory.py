"""
Inventory report: stock by status, value, per-warehouse counts and low stock.
"""
from decimal import Decimal

from django.db.models import Count, Sum

from app.utils import to_money
from inventory.models import Warehouse, InventoryItem
from inventory.services import stock_levels
from settings.models import get_business_setting
from .base import BaseReportBuilder

IN_STOCK_STATUSES = (InventoryItem.STATUS_AVAILABLE, InventoryItem.STATUS_RESERVED)


class InventoryReportBuilder(BaseReportBuilder):
    """Current stock. The date range does not apply to a stock snapshot."""
    title = 'Inventory Report'
    uses_date_range = False
    headers = [
        ('warehouse', 'Warehouse'),
        ('type', 'Type'),
        ('total_items', 'Total Items'),
        ('available_items', 'Available'),
        ('stock_value', 'Stock Value'),
        ('low_stock', 'Low Stock'),
    ]

    def get_items(self):
        queryset = InventoryItem.objects.all()
        if self.filters.get('warehouse'):
            queryset = queryset.filter(current_warehouse_id=self.filters['warehouse'])
        if self.filters.get('vehicle_type'):
            queryset = queryset.filter(vehicle_type=self.filters['vehicle_type'])
        return queryset

    def get_warehouses(self):
        queryset = Warehouse.objects.filter(is_active=True)
        if self.filters.get('warehouse'):
            queryset = queryset.filter(pk=self.filters['warehouse'])
        return stock_levels(queryset)

    @property
    def threshold(self):
        return get_business_setting('low_stock_threshold')

    def build_summary(self):
        items = self.get_items()
        by_status = {status: 0 for status, _ in InventoryItem.STATUS_CHOICES}
        for row in items.values('status').annotate(count=Count('id')):
            by_status[row['status']] = row['count']

        in_stock = items.filter(status__in=IN_STOCK_STATUSES)
        company = in_stock.exclude(current_warehouse__type=Warehouse.TYPE_AGENT).count()

        brands = (
            in_stock.values('brand')
            .annotate(count=Count('id'), value=Sum('purchase_price'))
            .order_by('-count', 'brand')[:5]
        )

        threshold = self.threshold
        low_stock = [
            {'warehouse_id': str(w.id), 'name': w.name, 'available': w.available_items}
            for w in self.get_warehouses() if w.available_items < threshold
        ]

        total_value = to_money(in_stock.aggregate(total=Sum('purchase_price'))['total'])
        in_stock_count = sum(by_status[status] for status in IN_STOCK_STATUSES)
        return {
            'total_items': sum(by_status.values()),
            'by_status': by_status,
            'total_value': total_value,
            'average_value': to_money(total_value / in_stock_count) if in_stock_count else Decimal('0.00'),
            'company_items': company,
            'agent_items': in_stock.count() - company,
            'top_brands': [
                {'brand': row['brand'], 'count': row['count'], 'value': to_money(row['value'])}
                for row in brands
            ],
            'low_stock_threshold': threshold,
            'low_stock_warehouses': low_stock,
        }

    def build_rows(self):
        threshold = self.threshold
        values = {
            row['current_warehouse_id']: row['value']
            for row in self.get_items().filter(status__in=IN_STOCK_STATUSES)
            .values('current_warehouse_id').annotate(value=Sum('purchase_price'))
        }
        return [
            {
                'warehouse': warehouse.name,
                'type': warehouse.type,
                'total_items': warehouse.total_items,
                'available_items': warehouse.available_items,
                'stock_value': to_money(values.get(warehouse.id)),
                'low_stock': warehouse.available_items < threshold,
            }
            for warehouse in self.get_warehouses()
        ]
