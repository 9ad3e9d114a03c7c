"""
Warehouse transfer models.

A transfer moves a set of inventory items from one warehouse to another in a
single atomic step. Moving stock into or out of an agent warehouse adjusts
the agent's running balance through the agent ledger.
"""
import logging
import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models, transaction

from accounts.models import User
from app.utils import generate_reference_number, to_money
from inventory.models import Warehouse, InventoryItem, InventoryTransaction

logger = logging.getLogger(__name__)


class WarehouseTransfer(models.Model):
    """
    Completed movement of items between two warehouses.

    Debt rules by direction:
    - agent -> agent: source agent's debt decreases, target agent's increases
    - company -> agent: target agent's debt increases
    - agent -> company: source agent's debt decreases
    - company -> company: no debt change

    The debt amount is the sum of the items' purchase prices.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reference_number = models.CharField(
        max_length=50,
        unique=True,
        db_index=True,
        help_text="Auto-generated if not provided: TR-YYMMDD-XXX"
    )
    from_warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        related_name='outbound_transfers'
    )
    to_warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        related_name='inbound_transfers'
    )
    total_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True, default='')

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_transfers'
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'warehouse_transfers'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['from_warehouse', 'created_at'], name='transfer_from_created_idx'),
            models.Index(fields=['to_warehouse', 'created_at'], name='transfer_to_created_idx'),
        ]

    def __str__(self):
        return f"{self.reference_number} ({self.from_warehouse.name} -> {self.to_warehouse.name})"

    def clean(self):
        """Validate transfer before saving."""
        super().clean()
        if self.from_warehouse_id and self.from_warehouse_id == self.to_warehouse_id:
            raise ValidationError({
                'to_warehouse': 'Cannot transfer to the same warehouse as source'
            })

    def save(self, *args, **kwargs):
        """Auto-generate reference number if not provided."""
        if not self.reference_number:
            self.reference_number = generate_reference_number(
                InventoryTransaction.TYPE_WAREHOUSE_TRANSFER,
                exists=lambda ref: WarehouseTransfer.objects.filter(reference_number=ref).exists(),
            )

        self.full_clean()
        super().save(*args, **kwargs)

    @classmethod
    @transaction.atomic
    def execute(cls, from_warehouse, to_warehouse, items, commission_rates=None,
                notes='', created_by=None):
        """
        Move items between warehouses and apply agent debt changes atomically.

        Args:
            from_warehouse: Source Warehouse
            to_warehouse: Destination Warehouse
            items: Iterable of InventoryItem (or ids) currently in the source
            commission_rates: Optional {item_id: percentage} for agent destinations
            notes: Free text stored on the transfer
            created_by: User performing the transfer

        Returns:
            WarehouseTransfer

        Raises:
            ValidationError: Invalid warehouses, empty or unavailable items, or
                an agent warehouse with no agent
        """
        if from_warehouse.pk == to_warehouse.pk:
            raise ValidationError({'to_warehouse': 'Source and destination warehouse cannot be the same'})

        item_ids = [str(getattr(item, 'pk', item)) for item in items]
        if not item_ids:
            raise ValidationError({'items': 'At least one item is required'})
        if len(item_ids) != len(set(item_ids)):
            raise ValidationError({'items': 'Duplicate items are not allowed'})

        locked_items = list(
            InventoryItem.objects.select_for_update().filter(pk__in=item_ids).order_by('created_at')
        )
        found = {str(item.pk) for item in locked_items}

        errors = [f"Item '{item_id}' not found" for item_id in item_ids if item_id not in found]
        for item in locked_items:
            if item.current_warehouse_id != from_warehouse.pk:
                errors.append(f"Item '{item.motor_fingerprint}' is not in warehouse '{from_warehouse.name}'")
            elif item.status != InventoryItem.STATUS_AVAILABLE:
                errors.append(f"Item '{item.motor_fingerprint}' is not available (status: {item.status})")

        if errors:
            raise ValidationError({'items': errors})

        source_agent = from_warehouse.get_agent()
        target_agent = to_warehouse.get_agent()
        if from_warehouse.is_agent_warehouse and source_agent is None:
            raise ValidationError({'from_warehouse': 'Agent warehouse has no linked agent'})
        if to_warehouse.is_agent_warehouse and target_agent is None:
            raise ValidationError({'to_warehouse': 'Agent warehouse has no linked agent'})

        commission_rates = {str(key): value for key, value in (commission_rates or {}).items()}
        debt_amount = to_money(sum((item.purchase_price for item in locked_items), Decimal('0.00')))

        transfer = cls(
            from_warehouse=from_warehouse,
            to_warehouse=to_warehouse,
            total_value=debt_amount,
            notes=notes or '',
            created_by=created_by,
        )
        transfer.save()

        for item in locked_items:
            rate = None
            if target_agent is not None:
                rate = commission_rates.get(str(item.pk))
                rate = Decimal(str(rate)) if rate is not None else target_agent.commission_rate
                if rate < 0 or rate > 100:
                    raise ValidationError({'commission_rates': f"Commission for '{item.motor_fingerprint}' must be between 0 and 100"})
                item.agent_commission_percentage = rate

            TransferItem.objects.create(
                transfer=transfer,
                inventory_item=item,
                purchase_price=item.purchase_price,
                commission_percentage=rate,
            )
            item.current_warehouse = to_warehouse
            item.save(update_fields=['current_warehouse', 'agent_commission_percentage', 'updated_at'])

        transfer.apply_agent_debt(source_agent, target_agent, debt_amount)

        InventoryTransaction.record(
            InventoryTransaction.TYPE_WAREHOUSE_TRANSFER,
            locked_items,
            reference_number=transfer.reference_number,
            from_warehouse=from_warehouse,
            to_warehouse=to_warehouse,
            total_amount=debt_amount,
            related_object_id=transfer.id,
            notes=transfer.notes,
            created_by=created_by,
        )

        logger.info(
            "Transfer %s moved %s items from %s to %s (value %s)",
            transfer.reference_number, len(locked_items), from_warehouse.name, to_warehouse.name, debt_amount,
        )

        from notifications.services import notify_inventory_transferred
        notify_inventory_transferred(transfer, source_agent=source_agent, target_agent=target_agent)

        return transfer

    def apply_agent_debt(self, source_agent, target_agent, amount):
        """Write the ledger entries for this transfer's direction."""
        if amount <= 0 or (source_agent is None and target_agent is None):
            return []

        from agents import ledger

        ledger.lock_agents(source_agent, target_agent)

        count = self.items.count()
        entries = []
        if source_agent is not None:
            entries.append(ledger.decrease_debt(
                source_agent,
                amount,
                description=f"Transfer {self.reference_number}: {count} item(s) moved to {self.to_warehouse.name}",
                reference_type='transfer',
                reference_id=self.id,
                created_by=self.created_by,
            ))
        if target_agent is not None:
            entries.append(ledger.increase_debt(
                target_agent,
                amount,
                description=f"Transfer {self.reference_number}: {count} item(s) received from {self.from_warehouse.name}",
                reference_type='transfer',
                reference_id=self.id,
                created_by=self.created_by,
            ))
        return entries

    @property
    def total_items(self):
        """Get total number of items in transfer."""
        return self.items.count()


class TransferItem(models.Model):
    """Item moved by a transfer, with its price and commission at the time."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    transfer = models.ForeignKey(WarehouseTransfer, on_delete=models.CASCADE, related_name='items')
    inventory_item = models.ForeignKey(InventoryItem, on_delete=models.PROTECT, related_name='transfer_items')
    purchase_price = models.DecimalField(max_digits=12, decimal_places=2)
    commission_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))]
    )

    class Meta:
        db_table = 'warehouse_transfer_items'
        unique_together = ['transfer', 'inventory_item']

    def __str__(self):
        return f"{self.transfer.reference_number} - {self.inventory_item}"
