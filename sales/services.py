"""
Sale operations.

Company sale: profit belongs to the company.
Agent sale: profit = sale - purchase; the agent earns ``rate`` percent of it
and owes the rest (company share) to the company. The balance drops by the
company share; commission is tracked in totals only.
"""
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from accounts.models import User, AuditLog
from app.utils import generate_reference_number, to_money
from inventory.models import Warehouse, InventoryItem, InventoryTransaction
from .models import Customer, Sale, SaleItem

logger = logging.getLogger(__name__)


def _new_invoice_number(transaction_type):
    return generate_reference_number(
        transaction_type,
        exists=lambda ref: Sale.objects.filter(invoice_number=ref).exists(),
    )


def resolve_customer(customer, created_by=None):
    """Accept a Customer or a dict of customer fields; reuse by national ID."""
    if isinstance(customer, Customer):
        return customer
    if not customer:
        raise ValidationError({'customer': 'Customer details are required'})

    data = dict(customer)
    national_id = (data.get('national_id') or '').strip()
    existing = Customer.objects.filter(national_id=national_id).first() if national_id else None
    if existing is not None:
        for field, value in data.items():
            if value not in (None, ''):
                setattr(existing, field, value)
        existing.full_clean()
        existing.save()
        return existing

    new_customer = Customer(created_by=created_by, **data)
    new_customer.full_clean()
    new_customer.save()
    return new_customer


def _mark_sold(item, sale_price, agent=None):
    item.status = InventoryItem.STATUS_SOLD
    item.sold_at = timezone.now()
    item.sale_price = sale_price
    item.sold_to_agent = agent
    item.save(update_fields=['status', 'sold_at', 'sale_price', 'sold_to_agent', 'updated_at'])


@transaction.atomic
def create_company_sale(items, customer, user, payment_method=Sale.PAYMENT_CASH, notes='',
                        combined_image_url=None):
    """
    Sell items from company stock.

    Args:
        items: [{'item': InventoryItem or id, 'sale_price': Decimal}, ...]
        customer: Customer or dict of customer fields
        user: Seller; agent users are rejected

    Returns:
        Sale
    """
    if user is not None and user.role == User.ROLE_AGENT:
        raise ValidationError('Agents must use the agent sale flow')
    if not items:
        raise ValidationError({'items': 'At least one item is required'})

    customer = resolve_customer(customer, created_by=user)
    if not customer.id_card_front_image_url:
        raise ValidationError({'customer': 'Customer ID card front image is required'})

    item_ids = [str(getattr(entry['item'], 'pk', entry['item'])) for entry in items]
    if len(item_ids) != len(set(item_ids)):
        raise ValidationError({'items': 'Duplicate items are not allowed'})
    locked = {
        str(item.pk): item
        for item in InventoryItem.objects.select_for_update().select_related('current_warehouse').filter(pk__in=item_ids)
    }

    errors = []
    lines = []
    for entry, item_id in zip(items, item_ids):
        item = locked.get(item_id)
        if item is None:
            errors.append(f"Item '{item_id}' not found")
            continue
        if item.status != InventoryItem.STATUS_AVAILABLE:
            errors.append(f"Item '{item.motor_fingerprint}' is not available (status: {item.status})")
            continue
        if item.current_warehouse.type not in Warehouse.COMPANY_TYPES:
            errors.append(f"Item '{item.motor_fingerprint}' is in an agent warehouse")
            continue
        sale_price = to_money(entry.get('sale_price'))
        if sale_price <= 0:
            errors.append(f"Sale price for '{item.motor_fingerprint}' must be greater than zero")
            continue
        lines.append((item, sale_price))

    if errors:
        raise ValidationError({'items': errors})

    total_amount = to_money(sum((price for _, price in lines), Decimal('0.00')))
    total_cost = to_money(sum((item.purchase_price for item, _ in lines), Decimal('0.00')))
    total_profit = total_amount - total_cost

    sale = Sale.objects.create(
        invoice_number=_new_invoice_number(InventoryTransaction.TYPE_SALE_TO_CUSTOMER),
        sale_type=Sale.TYPE_COMPANY,
        customer=customer,
        warehouse=lines[0][0].current_warehouse,
        payment_method=payment_method,
        total_amount=total_amount,
        total_purchase_cost=total_cost,
        total_profit=total_profit,
        agent_commission=Decimal('0.00'),
        company_share=total_profit,
        notes=notes or '',
        created_by=user,
    )

    for item, sale_price in lines:
        profit = sale_price - item.purchase_price
        SaleItem.objects.create(
            sale=sale,
            inventory_item=item,
            purchase_price=item.purchase_price,
            sale_price=sale_price,
            profit=profit,
            company_share=profit,
        )
        _mark_sold(item, sale_price)

    _after_sale(sale, [item for item, _ in lines], customer, user, combined_image_url)
    logger.info("Company sale %s: %s item(s) for %s", sale.invoice_number, len(lines), total_amount)
    return sale


@transaction.atomic
def create_agent_sale(agent, item, sale_price, customer, user, payment_method=Sale.PAYMENT_CASH,
                      notes='', combined_image_url=None):
    """
    Sell one item from an agent's warehouse and book the company share
    against the agent's balance.

    Returns:
        Sale
    """
    from agents.models import Agent, AgentTransaction
    from agents import ledger

    item_id = getattr(item, 'pk', item)
    item = InventoryItem.objects.select_for_update().filter(pk=item_id).first()
    if item is None:
        raise ValidationError({'item': 'Item not found'})

    agent_id = getattr(agent, 'pk', agent)
    locked_agent = Agent.objects.select_for_update().filter(pk=agent_id).first()
    if locked_agent is None:
        raise ValidationError({'agent': 'Agent not found'})
    if not locked_agent.is_active:
        raise ValidationError({'agent': 'Agent is not active'})

    if user is not None and user.role == User.ROLE_AGENT:
        own = user.agent
        if own is None or own.pk != locked_agent.pk:
            raise ValidationError({'agent': 'Agents can only sell from their own account'})

    if locked_agent.warehouse_id is None or item.current_warehouse_id != locked_agent.warehouse_id:
        raise ValidationError({'item': "Item is not in the agent's warehouse"})
    if item.status != InventoryItem.STATUS_AVAILABLE:
        raise ValidationError({'item': f"Item is not available (status: {item.status})"})

    sale_price = to_money(sale_price)
    if sale_price <= 0:
        raise ValidationError({'sale_price': 'Sale price must be greater than zero'})

    customer = resolve_customer(customer, created_by=user)

    rate = item.agent_commission_percentage
    if rate is None:
        rate = locked_agent.commission_rate
    total_profit = to_money(sale_price - item.purchase_price)
    agent_commission = to_money(total_profit * rate / Decimal('100'))
    company_share = to_money(total_profit - agent_commission)

    sale = Sale.objects.create(
        invoice_number=_new_invoice_number(InventoryTransaction.TYPE_AGENT_INVOICE),
        sale_type=Sale.TYPE_AGENT,
        agent=locked_agent,
        customer=customer,
        warehouse_id=locked_agent.warehouse_id,
        payment_method=payment_method,
        total_amount=sale_price,
        total_purchase_cost=item.purchase_price,
        total_profit=total_profit,
        agent_commission=agent_commission,
        company_share=company_share,
        commission_rate=rate,
        notes=notes or '',
        created_by=user,
    )
    SaleItem.objects.create(
        sale=sale,
        inventory_item=item,
        purchase_price=item.purchase_price,
        sale_price=sale_price,
        profit=total_profit,
        commission_percentage=rate,
        agent_commission=agent_commission,
        company_share=company_share,
    )
    _mark_sold(item, sale_price, agent=locked_agent)

    # A sale below cost leaves a negative company share, credited back to the agent
    entry_type = AgentTransaction.TYPE_DEBT_INCREASE if company_share >= 0 else AgentTransaction.TYPE_CREDIT
    ledger.apply_balance_change(
        locked_agent,
        -company_share,
        entry_type,
        description=f"Sale {sale.invoice_number}: {item.display_name} ({item.motor_fingerprint})",
        created_by=user,
        reference_type='sale',
        reference_id=sale.id,
        extra_fields={
            'total_sales': locked_agent.total_sales + sale_price,
            'total_commission': locked_agent.total_commission + agent_commission,
            'last_sale_at': timezone.now(),
        },
        sale_amount=sale_price,
        commission_amount=agent_commission,
        company_share=company_share,
    )
    if isinstance(agent, Agent):
        agent.refresh_from_db()

    _after_sale(sale, [item], customer, user, combined_image_url)
    logger.info(
        "Agent sale %s by %s: price %s profit %s commission %s company share %s",
        sale.invoice_number, locked_agent.name, sale_price, total_profit, agent_commission, company_share,
    )
    return sale


def _after_sale(sale, items, customer, user, combined_image_url):
    from documents.services import create_document_tracking
    from notifications.services import notify_sale_created

    create_document_tracking(sale, items[0], customer, user, combined_image_url=combined_image_url)

    InventoryTransaction.record(
        InventoryTransaction.TYPE_SALE_TO_CUSTOMER,
        items,
        reference_number=sale.invoice_number,
        from_warehouse=sale.warehouse,
        total_amount=sale.total_amount,
        related_object_id=sale.id,
        notes=f"Sale to {customer.name}",
        created_by=user,
    )

    AuditLog.log(user, 'SALE', 'Sale', sale.id, {
        'invoice_number': sale.invoice_number,
        'sale_type': sale.sale_type,
        'total_amount': str(sale.total_amount),
        'agent_commission': str(sale.agent_commission),
        'company_share': str(sale.company_share),
    })

    notify_sale_created(sale)
