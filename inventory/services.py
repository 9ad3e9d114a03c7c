"""
Inventory operations: default warehouses, item entry and stock levels.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q

from app.utils import to_money
from .models import Warehouse, InventoryItem, InventoryTransaction

logger = logging.getLogger(__name__)

DEFAULT_WAREHOUSES = [
    {'name': 'Main Warehouse', 'type': Warehouse.TYPE_MAIN, 'description': 'Primary company stock'},
    {'name': 'Showroom Warehouse', 'type': Warehouse.TYPE_SHOWROOM, 'description': 'Stock on display for direct sale'},
]

REQUIRED_ITEM_FIELDS = ('motor_fingerprint', 'chassis_number', 'brand', 'model')


def ensure_default_warehouses(created_by=None):
    """
    Create the main and showroom warehouses when missing.

    Returns:
        {'created': [Warehouse], 'existing': [Warehouse]}
    """
    result = {'created': [], 'existing': []}
    for spec in DEFAULT_WAREHOUSES:
        warehouse, created = Warehouse.objects.get_or_create(
            name=spec['name'],
            defaults={
                'type': spec['type'],
                'description': spec['description'],
                'created_by': created_by,
            },
        )
        result['created' if created else 'existing'].append(warehouse)
        if created:
            logger.info("Created default warehouse %s", warehouse.name)
    return result


@transaction.atomic
def ensure_agent_warehouse(agent, created_by=None):
    """Return the agent's warehouse, creating and linking one if needed."""
    if agent.warehouse_id:
        return agent.warehouse

    warehouse = Warehouse.objects.create(
        name=f"{agent.name} Warehouse",
        type=Warehouse.TYPE_AGENT,
        location=agent.address or '',
        description=f"Stock held by agent {agent.name}",
        created_by=created_by,
    )
    agent.warehouse = warehouse
    agent.save(update_fields=['warehouse', 'updated_at'])
    logger.info("Created warehouse %s for agent %s", warehouse.name, agent.name)
    return warehouse


@transaction.atomic
def create_item(data, warehouse, created_by=None):
    """
    Enter a new vehicle into a warehouse.

    Args:
        data: Item field values (motor_fingerprint, chassis_number, brand, model,
            purchase_price, ...)
        warehouse: Destination Warehouse
        created_by: User recording the entry

    Returns:
        InventoryItem

    Raises:
        ValidationError: Missing fields, non-positive price or a duplicate identifier
    """
    data = dict(data)
    for field in ('motor_fingerprint', 'chassis_number'):
        if isinstance(data.get(field), str):
            data[field] = data[field].strip()

    errors = {}
    for field in REQUIRED_ITEM_FIELDS:
        if not data.get(field):
            errors[field] = 'This field is required.'

    purchase_price = data.get('purchase_price')
    if purchase_price in (None, ''):
        errors['purchase_price'] = 'This field is required.'
    elif to_money(purchase_price) <= 0:
        errors['purchase_price'] = 'Purchase price must be greater than zero'

    if data.get('motor_fingerprint') and InventoryItem.objects.filter(
            motor_fingerprint__iexact=data['motor_fingerprint']).exists():
        errors['motor_fingerprint'] = 'An item with this motor fingerprint already exists'
    if data.get('chassis_number') and InventoryItem.objects.filter(
            chassis_number__iexact=data['chassis_number']).exists():
        errors['chassis_number'] = 'An item with this chassis number already exists'

    if errors:
        raise ValidationError(errors)

    if not warehouse.is_active:
        raise ValidationError({'warehouse': f"Warehouse '{warehouse.name}' is inactive"})

    data.pop('status', None)
    data.pop('current_warehouse', None)
    item = InventoryItem(
        current_warehouse=warehouse,
        status=InventoryItem.STATUS_AVAILABLE,
        created_by=created_by,
        **data,
    )
    item.purchase_price = to_money(item.purchase_price)
    item.full_clean()
    item.save()

    entry = InventoryTransaction.record(
        InventoryTransaction.TYPE_WAREHOUSE_ENTRY,
        [item],
        to_warehouse=warehouse,
        total_amount=item.purchase_price,
        related_object_id=item.id,
        notes=f"Entry of {item.display_name}",
        created_by=created_by,
    )
    item.entry_reference = entry.reference_number
    item.save(update_fields=['entry_reference', 'updated_at'])

    logger.info("Item %s entered into %s (%s)", item.motor_fingerprint, warehouse.name, entry.reference_number)
    return item


def update_item(item, data):
    """
    Apply edits to an item. Sold items only accept notes.
    """
    if item.status == InventoryItem.STATUS_SOLD:
        blocked = sorted(set(data) - {'notes'})
        if blocked:
            raise ValidationError({field: 'Sold items cannot be edited' for field in blocked})

    for field, value in data.items():
        setattr(item, field, value)
    item.full_clean()
    item.save()
    return item


def stock_levels(warehouses=None):
    """Available and total item counts per active warehouse."""
    queryset = warehouses if warehouses is not None else Warehouse.objects.filter(is_active=True)
    return queryset.annotate(
        total_items=Count('items'),
        available_items=Count('items', filter=Q(items__status=InventoryItem.STATUS_AVAILABLE)),
    ).order_by('name')


def low_stock_warehouses(threshold=None):
    """
    Warehouses whose available count is below the threshold.

    Returns:
        [{'warehouse': Warehouse, 'available': int}, ...]
    """
    if threshold is None:
        from settings.models import get_business_setting
        threshold = get_business_setting('low_stock_threshold')
    return [
        {'warehouse': warehouse, 'available': warehouse.available_items}
        for warehouse in stock_levels()
        if warehouse.available_items < threshold
    ]
