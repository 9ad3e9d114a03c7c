import logging
import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models, transaction
from django.utils import timezone

from accounts.models import User, AuditLog
from inventory.models import Warehouse, InventoryItem, InventoryTransaction
from .validators import validate_egyptian_phone, validate_national_id

logger = logging.getLogger(__name__)


class Customer(models.Model):
    """Vehicle buyer, identified by national ID card."""
    GENDER_MALE = 'male'
    GENDER_FEMALE = 'female'

    GENDER_CHOICES = [
        (GENDER_MALE, 'Male'),
        (GENDER_FEMALE, 'Female'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, validators=[validate_egyptian_phone])
    national_id = models.CharField(max_length=14, validators=[validate_national_id], db_index=True)
    address = models.TextField(blank=True, default='')
    birth_date = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True, default='')
    nationality = models.CharField(max_length=50, blank=True, default='Egyptian')

    id_card_front_image_url = models.URLField(max_length=500, blank=True, default='')
    id_card_back_image_url = models.URLField(max_length=500, blank=True, default='')

    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_customers')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'customers'
        ordering = ['name']
        indexes = [
            models.Index(fields=['phone'], name='customer_phone_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.national_id})"


class Sale(models.Model):
    """
    Completed sale of one or more vehicles.

    Company sales come from main/showroom/branch stock and all profit goes to
    the company. Agent sales come from the agent's warehouse; profit is split
    between agent commission and company share.
    """
    TYPE_COMPANY = 'company'
    TYPE_AGENT = 'agent'

    TYPE_CHOICES = [
        (TYPE_COMPANY, 'Company Sale'),
        (TYPE_AGENT, 'Agent Sale'),
    ]

    PAYMENT_CASH = 'cash'
    PAYMENT_BANK_TRANSFER = 'bank_transfer'
    PAYMENT_CHECK = 'check'
    PAYMENT_INSTALLMENTS = 'installments'

    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_CASH, 'Cash'),
        (PAYMENT_BANK_TRANSFER, 'Bank Transfer'),
        (PAYMENT_CHECK, 'Check'),
        (PAYMENT_INSTALLMENTS, 'Installments'),
    ]

    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    invoice_number = models.CharField(max_length=50, unique=True, db_index=True)
    sale_type = models.CharField(max_length=10, choices=TYPE_CHOICES, db_index=True)
    agent = models.ForeignKey(
        'agents.Agent',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='sales'
    )
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='sales')
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name='sales')
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default=PAYMENT_CASH)

    # Amounts
    total_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    total_purchase_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_profit = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    agent_commission = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    company_share = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Rate applied to the profit for agent sales"
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_COMPLETED, db_index=True)
    notes = models.TextField(blank=True, default='')

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='cancelled_sales')
    cancellation_reason = models.TextField(blank=True, default='')

    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_sales')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'sales'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['sale_type', 'created_at'], name='sale_type_created_idx'),
            models.Index(fields=['agent', 'created_at'], name='sale_agent_created_idx'),
            models.Index(fields=['status', 'created_at'], name='sale_status_created_idx'),
        ]

    def __str__(self):
        return f"Sale {self.invoice_number} - {self.status} - {self.total_amount}"

    @property
    def is_agent_sale(self):
        return self.sale_type == self.TYPE_AGENT

    def cancel_sale(self, *, user, reason: str):
        """
        Cancel a sale and reverse its effects.

        This method:
        1. Returns every item to stock as available
        2. For agent sales, puts the items back in the agent warehouse, reduces
           the agent totals and credits back the company share
        3. Removes document tracking that has not been submitted yet
        4. Records a return movement and an audit entry

        Raises:
            ValidationError: If sale is already cancelled
        """
        from agents.models import Agent, AgentTransaction
        from agents import ledger
        from documents.models import DocumentTracking

        with transaction.atomic():
            sale = Sale.objects.select_for_update().get(pk=self.pk)
            if sale.status == self.STATUS_CANCELLED:
                raise ValidationError('Sale is already cancelled.')
            if not reason or not reason.strip():
                raise ValidationError({'reason': 'A cancellation reason is required.'})

            items = []
            for sale_item in sale.items.select_related('inventory_item'):
                item = InventoryItem.objects.select_for_update().get(pk=sale_item.inventory_item_id)
                item.status = InventoryItem.STATUS_AVAILABLE
                item.sold_at = None
                item.sold_to_agent = None
                item.sale_price = None
                if sale.is_agent_sale:
                    item.current_warehouse_id = sale.warehouse_id
                item.save(update_fields=['status', 'sold_at', 'sold_to_agent', 'sale_price',
                                         'current_warehouse', 'updated_at'])
                items.append(item)

            if sale.is_agent_sale and sale.agent_id:
                agent = Agent.objects.select_for_update().get(pk=sale.agent_id)
                extra_fields = {
                    'total_sales': max(agent.total_sales - sale.total_amount, Decimal('0.00')),
                    'total_commission': max(agent.total_commission - sale.agent_commission, Decimal('0.00')),
                }
                if sale.company_share != 0:
                    ledger.apply_balance_change(
                        agent,
                        sale.company_share,
                        AgentTransaction.TYPE_ADJUSTMENT,
                        description=f"Cancellation of {sale.invoice_number}: {reason}",
                        created_by=user,
                        reference_type='sale',
                        reference_id=sale.id,
                        extra_fields=extra_fields,
                        sale_amount=-sale.total_amount,
                        commission_amount=-sale.agent_commission,
                        company_share=-sale.company_share,
                    )
                else:
                    for field, value in extra_fields.items():
                        setattr(agent, field, value)
                    agent.save(update_fields=list(extra_fields) + ['updated_at'])

            DocumentTracking.objects.filter(
                sale=sale, status=DocumentTracking.STATUS_PENDING_SUBMISSION
            ).delete()

            InventoryTransaction.record(
                InventoryTransaction.TYPE_RETURN,
                items,
                to_warehouse=sale.warehouse,
                total_amount=sale.total_amount,
                related_object_id=sale.id,
                notes=f"Cancellation of {sale.invoice_number}: {reason}",
                created_by=user,
            )

            sale.status = self.STATUS_CANCELLED
            sale.cancelled_at = timezone.now()
            sale.cancelled_by = user
            sale.cancellation_reason = reason
            sale.save(update_fields=['status', 'cancelled_at', 'cancelled_by', 'cancellation_reason', 'updated_at'])

            AuditLog.log(user, 'CANCEL', 'Sale', sale.id, {
                'invoice_number': sale.invoice_number,
                'reason': reason,
                'sale_type': sale.sale_type,
                'company_share_reversed': str(sale.company_share) if sale.is_agent_sale else '0.00',
                'items_count': len(items),
            })

        self.refresh_from_db()
        logger.info("Sale %s cancelled by %s", self.invoice_number, getattr(user, 'email', None))
        return self


class SaleItem(models.Model):
    """Vehicle sold in a sale, with the prices and split at the time of sale."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='items')
    inventory_item = models.ForeignKey(InventoryItem, on_delete=models.PROTECT, related_name='sale_items')
    purchase_price = models.DecimalField(max_digits=12, decimal_places=2)
    sale_price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    profit = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    commission_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    agent_commission = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    company_share = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        db_table = 'sale_items'
        unique_together = ['sale', 'inventory_item']

    def __str__(self):
        return f"{self.sale.invoice_number} - {self.inventory_item}"
