from django.contrib import admin
from .models import SystemSettings


@admin.register(SystemSettings)
class SystemSettingsAdmin(admin.ModelAdmin):
    """Admin interface for system settings"""

    list_display = [
        '__str__',
        'get_currency',
        'get_commission_rate',
        'updated_at',
    ]
    readonly_fields = ['id', 'created_at', 'updated_at', 'updated_by']

    fieldsets = (
        ('Company', {
            'fields': ('id', 'company_info')
        }),
        ('Business Rules', {
            'fields': ('business',),
            'description': 'Currency, tax rate, default commission and low stock threshold'
        }),
        ('Notification Settings', {
            'fields': ('notifications',),
        }),
        ('Display', {
            'fields': ('ui', 'features'),
        }),
        ('Metadata', {
            'fields': ('updated_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_currency(self, obj):
        return obj.merged('business').get('currency')
    get_currency.short_description = 'Currency'

    def get_commission_rate(self, obj):
        return obj.merged('business').get('default_commission_rate')
    get_commission_rate.short_description = 'Default commission %'

    def has_add_permission(self, request):
        return not SystemSettings.objects.exists()

    def has_delete_permission(self, request, obj=None):
        """Prevent deletion of settings through admin"""
        return False
