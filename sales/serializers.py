"""
Serializers for Sales API
"""
from decimal import Decimal

from rest_framework import serializers

from accounts.permissions import can_view_profits
from .models import Customer, Sale, SaleItem
from .validators import is_valid_egyptian_phone, is_valid_national_id

PROFIT_FIELDS = ('total_purchase_cost', 'total_profit', 'company_share')
ITEM_PROFIT_FIELDS = ('purchase_price', 'profit', 'company_share')


class CustomerSerializer(serializers.ModelSerializer):
    """Serializer for Customer model"""

    class Meta:
        model = Customer
        fields = [
            'id', 'name', 'phone', 'national_id', 'address', 'birth_date', 'gender', 'nationality',
            'id_card_front_image_url', 'id_card_back_image_url', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class CustomerInputSerializer(serializers.Serializer):
    """Customer details captured with a sale"""
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20)
    national_id = serializers.CharField(max_length=14)
    address = serializers.CharField(required=False, allow_blank=True)
    birth_date = serializers.DateField(required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=Customer.GENDER_CHOICES, required=False, allow_blank=True)
    nationality = serializers.CharField(required=False, allow_blank=True)
    id_card_front_image_url = serializers.URLField(required=False, allow_blank=True)
    id_card_back_image_url = serializers.URLField(required=False, allow_blank=True)

    def validate_phone(self, value):
        if not is_valid_egyptian_phone(value):
            raise serializers.ValidationError('Enter a valid Egyptian phone number.')
        return value.strip()

    def validate_national_id(self, value):
        if not is_valid_national_id(value):
            raise serializers.ValidationError('National ID must be exactly 14 digits.')
        return value.strip()


class SaleItemSerializer(serializers.ModelSerializer):
    """Serializer for SaleItem model"""
    motor_fingerprint = serializers.CharField(source='inventory_item.motor_fingerprint', read_only=True)
    chassis_number = serializers.CharField(source='inventory_item.chassis_number', read_only=True)
    vehicle = serializers.CharField(source='inventory_item.display_name', read_only=True)

    class Meta:
        model = SaleItem
        fields = [
            'id', 'inventory_item', 'motor_fingerprint', 'chassis_number', 'vehicle',
            'purchase_price', 'sale_price', 'profit',
            'commission_percentage', 'agent_commission', 'company_share',
        ]
        read_only_fields = fields


class SaleSerializer(serializers.ModelSerializer):
    """
    Sale with items. Cost and profit fields are removed for users who
    cannot view profits.
    """
    items = SaleItemSerializer(many=True, read_only=True)
    customer = CustomerSerializer(read_only=True)
    agent_name = serializers.CharField(source='agent.name', read_only=True, default=None)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.name', read_only=True, default=None)
    document_status = serializers.SerializerMethodField()

    class Meta:
        model = Sale
        fields = [
            'id', 'invoice_number', 'sale_type', 'agent', 'agent_name', 'customer',
            'warehouse', 'warehouse_name', 'payment_method',
            'total_amount', 'total_purchase_cost', 'total_profit',
            'agent_commission', 'company_share', 'commission_rate',
            'status', 'notes', 'items', 'document_status',
            'cancelled_at', 'cancellation_reason',
            'created_by', 'created_by_name', 'created_at',
        ]
        read_only_fields = fields

    def get_document_status(self, obj):
        document = getattr(obj, 'document', None)
        return document.status if document else None

    def to_representation(self, instance):
        data = super().to_representation(instance)
        request = self.context.get('request')
        if request is not None and not can_view_profits(request.user):
            for field in PROFIT_FIELDS:
                data.pop(field, None)
            for item in data.get('items', []):
                for field in ITEM_PROFIT_FIELDS:
                    item.pop(field, None)
        return data


class CompanySaleItemInputSerializer(serializers.Serializer):
    item = serializers.UUIDField()
    sale_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))


class CompanySaleCreateSerializer(serializers.Serializer):
    items = CompanySaleItemInputSerializer(many=True)
    customer = CustomerInputSerializer()
    payment_method = serializers.ChoiceField(choices=Sale.PAYMENT_METHOD_CHOICES, default=Sale.PAYMENT_CASH)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    combined_image_url = serializers.URLField(required=False, allow_blank=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('At least one item is required.')
        return value


class AgentSaleCreateSerializer(serializers.Serializer):
    agent = serializers.UUIDField(required=False)
    item = serializers.UUIDField()
    sale_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    customer = CustomerInputSerializer()
    payment_method = serializers.ChoiceField(choices=Sale.PAYMENT_METHOD_CHOICES, default=Sale.PAYMENT_CASH)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    combined_image_url = serializers.URLField(required=False, allow_blank=True)


class CancelSaleSerializer(serializers.Serializer):
    reason = serializers.CharField()
