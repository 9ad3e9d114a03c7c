import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from accounts.models import User
from sales.validators import validate_egyptian_phone, validate_national_id


class Agent(models.Model):
    """
    Commissioned sales agent with a running balance.

    ``current_balance`` below zero is money the agent owes the company.
    The balance only changes through ``agents.ledger`` so every change has a
    matching AgentTransaction.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, validators=[validate_egyptian_phone])
    email = models.EmailField(blank=True, default='')
    address = models.TextField(blank=True, default='')
    national_id = models.CharField(max_length=14, blank=True, default='', validators=[validate_national_id])

    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('10.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
        help_text="Default commission percentage on profit"
    )
    current_balance = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Negative balance means the agent owes the company"
    )
    total_sales = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_commission = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    warehouse = models.OneToOneField(
        'inventory.Warehouse',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='agent'
    )
    user = models.OneToOneField(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='agent_profile',
        help_text="Login account; agents without one are managed offline"
    )

    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, default='')
    last_sale_at = models.DateTimeField(null=True, blank=True)
    last_settlement_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_agents')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'agents'
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_active', 'name'], name='agent_active_name_idx'),
            models.Index(fields=['current_balance'], name='agent_balance_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.phone})"

    def clean(self):
        super().clean()
        if self.warehouse_id and self.warehouse.type != self.warehouse.TYPE_AGENT:
            raise ValidationError({'warehouse': 'Agents can only be linked to agent warehouses'})

    @property
    def has_user_account(self):
        return self.user_id is not None

    @property
    def total_debt(self):
        return abs(self.current_balance) if self.current_balance < 0 else Decimal('0.00')


class AgentTransactionQuerySet(models.QuerySet):
    def delete(self):
        raise ValidationError("Agent ledger entries cannot be deleted")

    def update(self, **kwargs):
        raise ValidationError("Agent ledger entries cannot be modified")


class AgentTransaction(models.Model):
    """
    Append-only agent ledger entry.

    ``amount`` is signed: the change this entry made to the agent balance.
    Immutable - records cannot be modified or deleted once written.
    """
    TYPE_COMMISSION = 'commission'
    TYPE_PAYMENT = 'payment'
    TYPE_DEBT = 'debt'
    TYPE_DEBT_INCREASE = 'debt_increase'
    TYPE_DEBT_DECREASE = 'debt_decrease'
    TYPE_CREDIT = 'credit'
    TYPE_SETTLEMENT = 'settlement'
    TYPE_TRANSFER_IN = 'transfer_in'
    TYPE_TRANSFER_OUT = 'transfer_out'
    TYPE_ADJUSTMENT = 'adjustment'
    TYPE_SALE = 'sale'

    TYPE_CHOICES = [
        (TYPE_COMMISSION, 'Commission'),
        (TYPE_PAYMENT, 'Payment'),
        (TYPE_DEBT, 'Debt'),
        (TYPE_DEBT_INCREASE, 'Debt Increase'),
        (TYPE_DEBT_DECREASE, 'Debt Decrease'),
        (TYPE_CREDIT, 'Credit'),
        (TYPE_SETTLEMENT, 'Settlement'),
        (TYPE_TRANSFER_IN, 'Transfer In'),
        (TYPE_TRANSFER_OUT, 'Transfer Out'),
        (TYPE_ADJUSTMENT, 'Adjustment'),
        (TYPE_SALE, 'Sale'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    agent = models.ForeignKey(Agent, on_delete=models.PROTECT, related_name='transactions')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    description = models.TextField(blank=True, default='')
    previous_balance = models.DecimalField(max_digits=14, decimal_places=2)
    new_balance = models.DecimalField(max_digits=14, decimal_places=2)

    sale_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    commission_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    company_share = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    reference_type = models.CharField(max_length=30, blank=True, default='', help_text="sale, transfer, settlement, payment")
    reference_id = models.UUIDField(null=True, blank=True)
    payment_method = models.CharField(max_length=20, blank=True, default='')

    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='agent_transactions')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = AgentTransactionQuerySet.as_manager()

    class Meta:
        db_table = 'agent_transactions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['agent', 'created_at'], name='agent_txn_agent_created_idx'),
            models.Index(fields=['type', 'created_at'], name='agent_txn_type_created_idx'),
            models.Index(fields=['reference_type', 'reference_id'], name='agent_txn_reference_idx'),
        ]

    def __str__(self):
        return f"{self.agent.name} - {self.type} - {self.amount}"

    def save(self, *args, **kwargs):
        """Override save to make ledger entries immutable after creation"""
        if not self._state.adding:
            raise ValidationError("Agent ledger entries cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion of ledger entries"""
        raise ValidationError("Agent ledger entries cannot be deleted")


class AccountSettlement(models.Model):
    """Audit record of a settlement applied to an agent account."""
    TYPE_FULL = 'full'
    TYPE_PARTIAL = 'partial'
    TYPE_ADJUSTMENT = 'adjustment'

    TYPE_CHOICES = [
        (TYPE_FULL, 'Full Settlement'),
        (TYPE_PARTIAL, 'Partial Settlement'),
        (TYPE_ADJUSTMENT, 'Balance Adjustment'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    agent = models.ForeignKey(Agent, on_delete=models.PROTECT, related_name='settlements')
    settlement_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    previous_balance = models.DecimalField(max_digits=14, decimal_places=2)
    settlement_amount = models.DecimalField(max_digits=14, decimal_places=2)
    new_balance = models.DecimalField(max_digits=14, decimal_places=2)
    notes = models.TextField(blank=True, default='')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='agent_settlements')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'agent_settlements'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.agent.name} - {self.settlement_type} - {self.settlement_amount}"
