import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Count, Q, Sum

from accounts.models import User
from app.utils import generate_reference_number


class Warehouse(models.Model):
    """
    A physical stock location.

    Agent warehouses hold the stock an agent sells on commission; the agent
    is linked through ``Agent.warehouse`` (reverse accessor ``agent``).
    """
    TYPE_MAIN = 'main'
    TYPE_SHOWROOM = 'showroom'
    TYPE_AGENT = 'agent'
    TYPE_BRANCH = 'branch'

    TYPE_CHOICES = [
        (TYPE_MAIN, 'Main'),
        (TYPE_SHOWROOM, 'Showroom'),
        (TYPE_AGENT, 'Agent'),
        (TYPE_BRANCH, 'Branch'),
    ]

    COMPANY_TYPES = (TYPE_MAIN, TYPE_SHOWROOM, TYPE_BRANCH)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_MAIN, db_index=True)
    location = models.CharField(max_length=255, blank=True, default='')
    description = models.TextField(blank=True, default='')
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_warehouses')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'warehouses'
        ordering = ['name']
        indexes = [
            models.Index(fields=['type', 'is_active'], name='wh_type_active_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_type_display()})"

    @property
    def is_agent_warehouse(self):
        return self.type == self.TYPE_AGENT

    def get_agent(self):
        """Return the agent that owns this warehouse, if any."""
        if not self.is_agent_warehouse:
            return None
        from agents.models import Agent
        return Agent.objects.filter(warehouse=self).first()

    @property
    def available_count(self):
        return self.items.filter(status=InventoryItem.STATUS_AVAILABLE).count()

    @classmethod
    def with_stock_counts(cls):
        return cls.objects.annotate(
            total_items=Count('items'),
            available_items=Count('items', filter=Q(items__status=InventoryItem.STATUS_AVAILABLE)),
        )


class InventoryItem(models.Model):
    """A single vehicle identified by motor fingerprint and chassis number."""
    VEHICLE_MOTORCYCLE = 'motorcycle'
    VEHICLE_TRICYCLE = 'tricycle'
    VEHICLE_ELECTRIC_SCOOTER = 'electric_scooter'
    VEHICLE_TUKTUK = 'tuktuk'

    VEHICLE_TYPE_CHOICES = [
        (VEHICLE_MOTORCYCLE, 'Motorcycle'),
        (VEHICLE_TRICYCLE, 'Tricycle'),
        (VEHICLE_ELECTRIC_SCOOTER, 'Electric Scooter'),
        (VEHICLE_TUKTUK, 'Tuktuk'),
    ]

    STATUS_AVAILABLE = 'available'
    STATUS_SOLD = 'sold'
    STATUS_TRANSFERRED = 'transferred'
    STATUS_RESERVED = 'reserved'

    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_SOLD, 'Sold'),
        (STATUS_TRANSFERRED, 'Transferred'),
        (STATUS_RESERVED, 'Reserved'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    motor_fingerprint = models.CharField(max_length=100, unique=True)
    chassis_number = models.CharField(max_length=100, unique=True)
    motor_fingerprint_image_url = models.URLField(max_length=500, blank=True, default='')
    chassis_number_image_url = models.URLField(max_length=500, blank=True, default='')

    vehicle_type = models.CharField(max_length=20, choices=VEHICLE_TYPE_CHOICES, default=VEHICLE_MOTORCYCLE)
    brand = models.CharField(max_length=100)
    model = models.CharField(max_length=100)
    color = models.CharField(max_length=50, blank=True, default='')
    manufacturing_year = models.PositiveIntegerField(null=True, blank=True)
    country_of_origin = models.CharField(max_length=100, blank=True, default='')

    purchase_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    sale_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    agent_commission_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
        help_text="Per-item commission rate set when the item moves to an agent warehouse"
    )

    current_warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name='items')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_AVAILABLE, db_index=True)

    entry_reference = models.CharField(max_length=50, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    sold_at = models.DateTimeField(null=True, blank=True)
    sold_to_agent = models.ForeignKey(
        'agents.Agent',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sold_items'
    )

    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_items')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'inventory_items'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['current_warehouse', 'status'], name='item_wh_status_idx'),
            models.Index(fields=['brand', 'model'], name='item_brand_model_idx'),
            models.Index(fields=['status', 'created_at'], name='item_status_created_idx'),
        ]

    def __str__(self):
        return f"{self.brand} {self.model} ({self.motor_fingerprint})"

    def clean(self):
        super().clean()
        if self.motor_fingerprint:
            self.motor_fingerprint = self.motor_fingerprint.strip()
        if self.chassis_number:
            self.chassis_number = self.chassis_number.strip()
        if self.purchase_price is not None and self.purchase_price <= 0:
            raise ValidationError({'purchase_price': 'Purchase price must be greater than zero'})

    @property
    def is_available(self):
        return self.status == self.STATUS_AVAILABLE

    @property
    def display_name(self):
        return f"{self.brand} {self.model} {self.color}".strip()


class InventoryTransaction(models.Model):
    """
    Movement record for inventory entries, transfers, sales and returns.

    Every record carries a ``PREFIX-YYMMDD-XXX`` reference number.
    """
    TYPE_WAREHOUSE_ENTRY = 'warehouse_entry'
    TYPE_WAREHOUSE_TRANSFER = 'warehouse_transfer'
    TYPE_SALE_TO_CUSTOMER = 'sale_to_customer'
    TYPE_AGENT_INVOICE = 'agent_invoice'
    TYPE_PAYMENT_RECEIPT = 'payment_receipt'
    TYPE_RETURN = 'return'

    TYPE_CHOICES = [
        (TYPE_WAREHOUSE_ENTRY, 'Warehouse Entry'),
        (TYPE_WAREHOUSE_TRANSFER, 'Warehouse Transfer'),
        (TYPE_SALE_TO_CUSTOMER, 'Sale to Customer'),
        (TYPE_AGENT_INVOICE, 'Agent Invoice'),
        (TYPE_PAYMENT_RECEIPT, 'Payment Receipt'),
        (TYPE_RETURN, 'Return'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reference_number = models.CharField(max_length=50, unique=True, db_index=True)
    type = models.CharField(max_length=30, choices=TYPE_CHOICES, db_index=True)
    from_warehouse = models.ForeignKey(
        Warehouse, on_delete=models.SET_NULL, null=True, blank=True, related_name='outgoing_transactions'
    )
    to_warehouse = models.ForeignKey(
        Warehouse, on_delete=models.SET_NULL, null=True, blank=True, related_name='incoming_transactions'
    )
    items = models.ManyToManyField(InventoryItem, related_name='transactions', blank=True)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    related_object_id = models.UUIDField(null=True, blank=True, help_text="Sale or transfer this movement belongs to")
    notes = models.TextField(blank=True, default='')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_transactions')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'inventory_transactions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['type', 'created_at'], name='inv_txn_type_created_idx'),
        ]

    def __str__(self):
        return f"{self.reference_number} ({self.get_type_display()})"

    def save(self, *args, **kwargs):
        if not self.reference_number:
            self.reference_number = generate_reference_number(
                self.type,
                exists=lambda ref: InventoryTransaction.objects.filter(reference_number=ref).exists(),
            )
        super().save(*args, **kwargs)

    @classmethod
    def record(cls, transaction_type, items, *, from_warehouse=None, to_warehouse=None,
               total_amount=None, related_object_id=None, notes='', created_by=None,
               reference_number=''):
        items = list(items)
        if total_amount is None:
            total_amount = sum((item.purchase_price for item in items), Decimal('0.00'))
        record = cls.objects.create(
            type=transaction_type,
            reference_number=reference_number,
            from_warehouse=from_warehouse,
            to_warehouse=to_warehouse,
            total_amount=total_amount,
            related_object_id=related_object_id,
            notes=notes or '',
            created_by=created_by,
        )
        if items:
            record.items.set(items)
        return record


def inventory_value(queryset=None):
    """Sum of purchase prices for a queryset of items."""
    queryset = queryset if queryset is not None else InventoryItem.objects.all()
    return queryset.aggregate(total=Sum('purchase_price'))['total'] or Decimal('0.00')


from .transfer_models import WarehouseTransfer, TransferItem  # noqa: E402,F401
