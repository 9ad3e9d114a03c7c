from decimal import Decimal

from rest_framework import serializers

from .models import Agent, AgentTransaction, AccountSettlement


class AgentSerializer(serializers.ModelSerializer):
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True, default=None)
    user_email = serializers.EmailField(source='user.email', read_only=True, default=None)
    total_debt = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    has_user_account = serializers.BooleanField(read_only=True)

    class Meta:
        model = Agent
        fields = [
            'id', 'name', 'phone', 'email', 'address', 'national_id',
            'commission_rate', 'current_balance', 'total_sales', 'total_commission', 'total_debt',
            'warehouse', 'warehouse_name', 'user', 'user_email', 'has_user_account',
            'is_active', 'notes', 'last_sale_at', 'last_settlement_at', 'created_at', 'updated_at',
        ]
        # Money fields only change through the ledger
        read_only_fields = [
            'id', 'current_balance', 'total_sales', 'total_commission',
            'warehouse', 'user', 'last_sale_at', 'last_settlement_at', 'created_at', 'updated_at',
        ]


class AgentCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    national_id = serializers.CharField(required=False, allow_blank=True, max_length=14)
    commission_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False,
        min_value=Decimal('0'), max_value=Decimal('100'),
    )
    notes = serializers.CharField(required=False, allow_blank=True)
    user_email = serializers.EmailField(required=False)
    user_password = serializers.CharField(required=False, write_only=True, min_length=8)

    def validate(self, attrs):
        if attrs.get('user_email') and not attrs.get('user_password'):
            raise serializers.ValidationError({'user_password': 'Password is required to create a login.'})
        return attrs


class AgentTransactionSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_type_display', read_only=True)
    created_by_name = serializers.CharField(source='created_by.name', read_only=True, default=None)

    class Meta:
        model = AgentTransaction
        fields = [
            'id', 'agent', 'type', 'type_display', 'amount', 'description',
            'previous_balance', 'new_balance', 'sale_amount', 'commission_amount', 'company_share',
            'reference_type', 'reference_id', 'payment_method',
            'created_by', 'created_by_name', 'created_at',
        ]
        read_only_fields = fields


class AccountSettlementSerializer(serializers.ModelSerializer):
    agent_name = serializers.CharField(source='agent.name', read_only=True)

    class Meta:
        model = AccountSettlement
        fields = [
            'id', 'agent', 'agent_name', 'settlement_type', 'previous_balance',
            'settlement_amount', 'new_balance', 'notes', 'created_by', 'created_at',
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    type = serializers.ChoiceField(
        choices=[AgentTransaction.TYPE_PAYMENT, AgentTransaction.TYPE_CREDIT],
        default=AgentTransaction.TYPE_PAYMENT,
    )
    payment_method = serializers.ChoiceField(
        choices=['cash', 'bank_transfer', 'check', 'other'], default='cash'
    )
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_amount(self, value):
        if value == 0:
            raise serializers.ValidationError('Amount must not be zero.')
        return value


class SettlementSerializer(serializers.Serializer):
    settlement_type = serializers.ChoiceField(choices=AccountSettlement.TYPE_CHOICES)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        settlement_type = attrs['settlement_type']
        amount = attrs.get('amount')
        if settlement_type == AccountSettlement.TYPE_PARTIAL and (amount is None or amount <= 0):
            raise serializers.ValidationError({'amount': 'Partial settlement requires a positive amount.'})
        if settlement_type == AccountSettlement.TYPE_ADJUSTMENT and amount is None:
            raise serializers.ValidationError({'amount': 'Adjustment requires the new balance.'})
        return attrs


class StatementQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and start > end:
            raise serializers.ValidationError('start_date must be before end_date')
        return attrs
