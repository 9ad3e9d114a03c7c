from django.contrib import admin

from .models import DocumentTracking, DocumentStage


class DocumentStageInline(admin.TabularInline):
    model = DocumentStage
    extra = 0
    readonly_fields = ['status', 'date', 'updated_by', 'notes']
    can_delete = False


@admin.register(DocumentTracking)
class DocumentTrackingAdmin(admin.ModelAdmin):
    list_display = ['motor_fingerprint', 'customer_name', 'agent', 'status', 'created_at', 'completed_at']
    list_filter = ['status', 'sale_type', 'created_at']
    search_fields = ['motor_fingerprint', 'chassis_number', 'customer_name', 'customer_national_id']
    readonly_fields = ['id', 'sale', 'inventory_item', 'created_at', 'updated_at', 'completed_at']
    inlines = [DocumentStageInline]
