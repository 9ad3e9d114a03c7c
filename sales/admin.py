from django.contrib import admin

from .models import Customer, Sale, SaleItem


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'national_id', 'created_at']
    search_fields = ['name', 'phone', 'national_id']
    readonly_fields = ['id', 'created_at', 'updated_at']


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    can_delete = False
    readonly_fields = [
        'inventory_item', 'purchase_price', 'sale_price', 'profit',
        'commission_percentage', 'agent_commission', 'company_share',
    ]


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'sale_type', 'agent', 'customer', 'total_amount', 'status', 'created_at']
    list_filter = ['sale_type', 'status', 'payment_method', 'created_at']
    search_fields = ['invoice_number', 'customer__name', 'customer__national_id', 'agent__name']
    date_hierarchy = 'created_at'
    inlines = [SaleItemInline]
    # Amounts are fixed at sale time; cancellation goes through the API
    readonly_fields = [
        'id', 'invoice_number', 'sale_type', 'agent', 'customer', 'warehouse',
        'total_amount', 'total_purchase_cost', 'total_profit', 'agent_commission',
        'company_share', 'commission_rate', 'status', 'cancelled_at', 'cancelled_by',
        'cancellation_reason', 'created_by', 'created_at', 'updated_at',
    ]

    def has_delete_permission(self, request, obj=None):
        return False
