from rest_framework import serializers

from .models import DocumentTracking, DocumentStage


class DocumentStageSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    updated_by_name = serializers.CharField(source='updated_by.name', read_only=True, default=None)

    class Meta:
        model = DocumentStage
        fields = ['id', 'status', 'status_display', 'date', 'updated_by', 'updated_by_name', 'notes']
        read_only_fields = fields


class DocumentTrackingSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    stages = DocumentStageSerializer(many=True, read_only=True)
    agent_name = serializers.CharField(source='agent.name', read_only=True, default=None)
    invoice_number = serializers.CharField(source='sale.invoice_number', read_only=True)
    sale_date = serializers.DateTimeField(source='sale.created_at', read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)
    processing_days = serializers.IntegerField(read_only=True)

    class Meta:
        model = DocumentTracking
        fields = [
            'id', 'sale', 'invoice_number', 'sale_date', 'inventory_item',
            'motor_fingerprint', 'chassis_number',
            'customer_name', 'customer_phone', 'customer_national_id',
            'agent', 'agent_name', 'sale_type', 'combined_image_url',
            'status', 'status_display', 'stages', 'is_overdue', 'processing_days',
            'completed_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DocumentTracking.STATUS_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class InquirySerializer(serializers.Serializer):
    query = serializers.CharField(trim_whitespace=True)
