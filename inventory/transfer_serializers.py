"""
Transfer API serializers
"""
from decimal import Decimal

from rest_framework import serializers

from inventory.models import Warehouse
from inventory.transfer_models import WarehouseTransfer, TransferItem


class TransferItemSerializer(serializers.ModelSerializer):
    """Item moved by a transfer"""
    motor_fingerprint = serializers.CharField(source='inventory_item.motor_fingerprint', read_only=True)
    chassis_number = serializers.CharField(source='inventory_item.chassis_number', read_only=True)
    vehicle = serializers.CharField(source='inventory_item.display_name', read_only=True)

    class Meta:
        model = TransferItem
        fields = [
            'id', 'inventory_item', 'motor_fingerprint', 'chassis_number', 'vehicle',
            'purchase_price', 'commission_percentage',
        ]
        read_only_fields = fields


class WarehouseTransferSerializer(serializers.ModelSerializer):
    from_warehouse_name = serializers.CharField(source='from_warehouse.name', read_only=True)
    from_warehouse_type = serializers.CharField(source='from_warehouse.type', read_only=True)
    to_warehouse_name = serializers.CharField(source='to_warehouse.name', read_only=True)
    to_warehouse_type = serializers.CharField(source='to_warehouse.type', read_only=True)
    created_by_name = serializers.CharField(source='created_by.name', read_only=True, default=None)
    items = TransferItemSerializer(many=True, read_only=True)
    total_items = serializers.SerializerMethodField()

    class Meta:
        model = WarehouseTransfer
        fields = [
            'id', 'reference_number',
            'from_warehouse', 'from_warehouse_name', 'from_warehouse_type',
            'to_warehouse', 'to_warehouse_name', 'to_warehouse_type',
            'items', 'total_items', 'total_value', 'notes',
            'created_by', 'created_by_name', 'created_at',
        ]
        read_only_fields = fields

    def get_total_items(self, obj):
        return len(obj.items.all())


class CreateTransferSerializer(serializers.Serializer):
    """
    Input for a transfer.

    ``commission_rates`` maps item id to a percentage and only applies when
    the destination is an agent warehouse.
    """
    from_warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.filter(is_active=True))
    to_warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.filter(is_active=True))
    items = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    commission_rates = serializers.DictField(
        child=serializers.DecimalField(max_digits=5, decimal_places=2,
                                       min_value=Decimal('0'), max_value=Decimal('100')),
        required=False,
        default=dict,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['from_warehouse'].pk == attrs['to_warehouse'].pk:
            raise serializers.ValidationError({'to_warehouse': 'Source and destination warehouse cannot be the same'})
        if len(attrs['items']) != len(set(attrs['items'])):
            raise serializers.ValidationError({'items': 'Duplicate items are not allowed'})
        return attrs
