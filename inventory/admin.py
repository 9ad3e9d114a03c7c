from django.contrib import admin

from .models import Warehouse, InventoryItem, InventoryTransaction
from .transfer_models import WarehouseTransfer, TransferItem


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'location', 'is_active', 'created_at']
    search_fields = ['name', 'location']
    list_filter = ['type', 'is_active']
    readonly_fields = ['id', 'created_at', 'updated_at']
    ordering = ['name']


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ['motor_fingerprint', 'chassis_number', 'brand', 'model', 'current_warehouse',
                    'status', 'purchase_price', 'created_at']
    search_fields = ['motor_fingerprint', 'chassis_number', 'brand', 'model']
    list_filter = ['status', 'vehicle_type', 'current_warehouse', 'brand']
    readonly_fields = ['id', 'entry_reference', 'sold_at', 'sold_to_agent', 'created_at', 'updated_at']


@admin.register(InventoryTransaction)
class InventoryTransactionAdmin(admin.ModelAdmin):
    list_display = ['reference_number', 'type', 'from_warehouse', 'to_warehouse', 'total_amount', 'created_at']
    search_fields = ['reference_number', 'notes']
    list_filter = ['type', 'created_at']
    readonly_fields = ['id', 'reference_number', 'created_at']
    filter_horizontal = ['items']


class TransferItemInline(admin.TabularInline):
    model = TransferItem
    extra = 0
    readonly_fields = ['inventory_item', 'purchase_price', 'commission_percentage']
    can_delete = False


@admin.register(WarehouseTransfer)
class WarehouseTransferAdmin(admin.ModelAdmin):
    list_display = ['reference_number', 'from_warehouse', 'to_warehouse', 'total_value', 'created_by', 'created_at']
    search_fields = ['reference_number', 'notes']
    list_filter = ['created_at']
    readonly_fields = ['id', 'reference_number', 'from_warehouse', 'to_warehouse', 'total_value',
                       'created_by', 'created_at']
    inlines = [TransferItemInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
