from django.contrib import admin

from .models import Agent, AgentTransaction, AccountSettlement


@admin.register(Agent)
class AgentAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'commission_rate', 'current_balance', 'total_sales', 'is_active']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'phone', 'national_id', 'email']
    # Balances change through the ledger only
    readonly_fields = [
        'id', 'current_balance', 'total_sales', 'total_commission',
        'last_sale_at', 'last_settlement_at', 'created_at', 'updated_at',
    ]
    raw_id_fields = ['warehouse', 'user', 'created_by']


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AgentTransaction)
class AgentTransactionAdmin(ReadOnlyAdmin):
    list_display = ['agent', 'type', 'amount', 'previous_balance', 'new_balance', 'created_at']
    list_filter = ['type', 'created_at']
    search_fields = ['agent__name', 'description']
    date_hierarchy = 'created_at'


@admin.register(AccountSettlement)
class AccountSettlementAdmin(ReadOnlyAdmin):
    list_display = ['agent', 'settlement_type', 'previous_balance', 'settlement_amount', 'new_balance', 'created_at']
    list_filter = ['settlement_type', 'created_at']
    search_fields = ['agent__name', 'notes']
