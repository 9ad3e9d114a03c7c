from decimal import Decimal

from rest_framework import serializers

from accounts.permissions import can_view_profits, has_permission
from .models import Warehouse, InventoryItem, InventoryTransaction


class WarehouseSerializer(serializers.ModelSerializer):
    agent_id = serializers.SerializerMethodField()
    agent_name = serializers.SerializerMethodField()
    total_items = serializers.IntegerField(read_only=True, required=False)
    available_items = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Warehouse
        fields = [
            'id', 'name', 'type', 'location', 'description', 'is_active',
            'agent_id', 'agent_name', 'total_items', 'available_items',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at', 'agent_id', 'agent_name']

    def _agent(self, obj):
        if not obj.is_agent_warehouse:
            return None
        return getattr(obj, 'agent', None)

    def get_agent_id(self, obj):
        agent = self._agent(obj)
        return str(agent.id) if agent else None

    def get_agent_name(self, obj):
        agent = self._agent(obj)
        return agent.name if agent else None

    def validate_type(self, value):
        if value == Warehouse.TYPE_AGENT and (self.instance is None or self.instance.type != value):
            raise serializers.ValidationError('Agent warehouses are created together with the agent.')
        if self.instance is not None and self.instance.type == Warehouse.TYPE_AGENT and value != Warehouse.TYPE_AGENT:
            raise serializers.ValidationError('An agent warehouse cannot change type.')
        return value


class InventoryItemSerializer(serializers.ModelSerializer):
    """
    Vehicle details. Purchase price is hidden from users who cannot view profits.
    """
    warehouse_name = serializers.CharField(source='current_warehouse.name', read_only=True)
    warehouse_type = serializers.CharField(source='current_warehouse.type', read_only=True)
    display_name = serializers.CharField(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = InventoryItem
        fields = [
            'id', 'motor_fingerprint', 'chassis_number',
            'motor_fingerprint_image_url', 'chassis_number_image_url',
            'vehicle_type', 'brand', 'model', 'color', 'manufacturing_year', 'country_of_origin',
            'display_name', 'purchase_price', 'sale_price', 'agent_commission_percentage',
            'current_warehouse', 'warehouse_name', 'warehouse_type',
            'status', 'status_display', 'entry_reference', 'notes',
            'sold_at', 'sold_to_agent', 'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'sale_price', 'agent_commission_percentage', 'current_warehouse', 'status',
            'entry_reference', 'sold_at', 'sold_to_agent', 'created_by', 'created_at', 'updated_at',
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        request = self.context.get('request')
        if request is not None and not (can_view_profits(request.user)
                                        or has_permission(request.user, 'inventory.create')):
            data.pop('purchase_price', None)
        return data


class InventoryItemCreateSerializer(serializers.Serializer):
    warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.filter(is_active=True))
    motor_fingerprint = serializers.CharField(max_length=100)
    chassis_number = serializers.CharField(max_length=100)
    motor_fingerprint_image_url = serializers.URLField(required=False, allow_blank=True)
    chassis_number_image_url = serializers.URLField(required=False, allow_blank=True)
    vehicle_type = serializers.ChoiceField(choices=InventoryItem.VEHICLE_TYPE_CHOICES,
                                           default=InventoryItem.VEHICLE_MOTORCYCLE)
    brand = serializers.CharField(max_length=100)
    model = serializers.CharField(max_length=100)
    color = serializers.CharField(max_length=50, required=False, allow_blank=True)
    manufacturing_year = serializers.IntegerField(required=False, allow_null=True, min_value=1950)
    country_of_origin = serializers.CharField(max_length=100, required=False, allow_blank=True)
    purchase_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    notes = serializers.CharField(required=False, allow_blank=True)


class InventoryTransactionSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_type_display', read_only=True)
    from_warehouse_name = serializers.CharField(source='from_warehouse.name', read_only=True, default=None)
    to_warehouse_name = serializers.CharField(source='to_warehouse.name', read_only=True, default=None)
    items_count = serializers.SerializerMethodField()
    created_by_name = serializers.CharField(source='created_by.name', read_only=True, default=None)

    class Meta:
        model = InventoryTransaction
        fields = [
            'id', 'reference_number', 'type', 'type_display',
            'from_warehouse', 'from_warehouse_name', 'to_warehouse', 'to_warehouse_name',
            'items', 'items_count', 'total_amount', 'related_object_id', 'notes',
            'created_by', 'created_by_name', 'created_at',
        ]
        read_only_fields = fields

    def get_items_count(self, obj):
        return len(obj.items.all())
