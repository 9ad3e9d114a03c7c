"""
Notification fan-out.

Helpers are called from inside business transactions. Each one runs in its
own savepoint and logs failures instead of raising, so a broken notification
never rolls back a sale, transfer or payment.
"""
import logging
from datetime import timedelta
from functools import wraps

from django.db import transaction
from django.utils import timezone

from accounts.models import User
from .models import Notification

logger = logging.getLogger(__name__)

ADMIN_ROLES = list(User.ADMIN_ROLES)
DEFAULT_EXPIRY_DAYS = 30

# Notification type -> SystemSettings.notifications switch
TYPE_SWITCHES = {
    Notification.TYPE_SALE_CREATED: 'saleCreated',
    Notification.TYPE_INVENTORY_TRANSFERRED: 'inventoryTransferred',
    Notification.TYPE_PAYMENT_RECEIVED: 'paymentReceived',
    Notification.TYPE_DOCUMENT_STATUS_UPDATED: 'documentStatusUpdated',
    Notification.TYPE_LOW_INVENTORY: 'lowInventory',
}


def non_fatal(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            with transaction.atomic():
                return func(*args, **kwargs)
        except Exception:
            logger.exception("Notification %s failed", func.__name__)
            return []
    return wrapper


def is_enabled(notification_type):
    switch = TYPE_SWITCHES.get(notification_type)
    if switch is None:
        return True
    from settings.models import SystemSettings
    return bool(SystemSettings.load().merged('notifications').get(switch, True))


def _build(recipient, notification_type, title, message, *, priority=Notification.PRIORITY_MEDIUM,
           data=None, sender=None, action_url='', related_entity_type='', related_entity_id=None,
           expires_in_days=DEFAULT_EXPIRY_DAYS):
    return Notification(
        recipient=recipient,
        sender=sender if sender is not None and sender.is_authenticated else None,
        type=notification_type,
        priority=priority,
        title=title,
        message=message,
        data=data or {},
        action_url=action_url,
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id,
        expires_at=timezone.now() + timedelta(days=expires_in_days) if expires_in_days else None,
    )


def notify_user(user, notification_type, title, message, **kwargs):
    """Create one notification; inactive users are skipped."""
    if user is None or not user.is_active or not is_enabled(notification_type):
        return None
    notification = _build(user, notification_type, title, message, **kwargs)
    notification.save()
    return notification


def notify_roles(roles, notification_type, title, message, exclude=None, **kwargs):
    """Create the same notification for every active user holding one of ``roles``."""
    if not is_enabled(notification_type):
        return []
    recipients = User.objects.filter(role__in=roles, is_active=True)
    if exclude is not None:
        recipients = recipients.exclude(pk=exclude.pk)
    notifications = [_build(user, notification_type, title, message, **kwargs) for user in recipients]
    Notification.objects.bulk_create(notifications)
    logger.debug("Sent %s '%s' notifications", len(notifications), notification_type)
    return notifications


def _agent_user(agent):
    if agent is None or agent.user_id is None:
        return None
    return agent.user


@non_fatal
def notify_sale_created(sale):
    customer_name = sale.customer.name if sale.customer_id else ''
    seller = sale.agent.name if sale.agent_id else (sale.created_by.name if sale.created_by_id else '')
    title = 'New sale'
    message = f"{seller} sold {sale.items.count()} item(s) to {customer_name} for {sale.total_amount}"
    kwargs = dict(
        priority=Notification.PRIORITY_HIGH,
        sender=sale.created_by,
        action_url=f"/sales/{sale.id}",
        related_entity_type='sale',
        related_entity_id=sale.id,
        data={
            'sale_id': str(sale.id),
            'invoice_number': sale.invoice_number,
            'sale_type': sale.sale_type,
            'agent_id': str(sale.agent_id) if sale.agent_id else None,
            'customer_name': customer_name,
            'total_amount': str(sale.total_amount),
        },
    )

    sent = notify_roles(ADMIN_ROLES, Notification.TYPE_SALE_CREATED, title, message,
                        exclude=sale.created_by, **kwargs)
    agent_user = _agent_user(sale.agent)
    if agent_user is not None and agent_user != sale.created_by:
        sent.append(notify_user(agent_user, Notification.TYPE_SALE_CREATED, title, message, **kwargs))
    return [n for n in sent if n is not None]


@non_fatal
def notify_inventory_transferred(transfer, source_agent=None, target_agent=None):
    count = transfer.items.count()
    title = 'Inventory transferred'
    message = (
        f"{count} item(s) moved from {transfer.from_warehouse.name} "
        f"to {transfer.to_warehouse.name} ({transfer.reference_number})"
    )
    kwargs = dict(
        sender=transfer.created_by,
        action_url='/inventory',
        related_entity_type='transfer',
        related_entity_id=transfer.id,
        data={
            'transfer_id': str(transfer.id),
            'reference_number': transfer.reference_number,
            'total_items': count,
            'total_value': str(transfer.total_value),
            'from_warehouse': transfer.from_warehouse.name,
            'to_warehouse': transfer.to_warehouse.name,
        },
    )

    sent = notify_roles(ADMIN_ROLES, Notification.TYPE_INVENTORY_TRANSFERRED, title, message,
                        exclude=transfer.created_by, **kwargs)
    for agent in (source_agent, target_agent):
        agent_user = _agent_user(agent)
        if agent_user is not None and agent_user != transfer.created_by:
            sent.append(notify_user(agent_user, Notification.TYPE_INVENTORY_TRANSFERRED, title, message, **kwargs))
    return [n for n in sent if n is not None]


@non_fatal
def notify_payment_received(agent, entry):
    title = 'Payment recorded'
    message = f"{entry.get_type_display()} of {abs(entry.amount)} for {agent.name}. New balance: {entry.new_balance}"
    kwargs = dict(
        priority=Notification.PRIORITY_HIGH,
        sender=entry.created_by,
        action_url=f"/agents/{agent.id}",
        related_entity_type='agent_transaction',
        related_entity_id=entry.id,
        data={
            'agent_id': str(agent.id),
            'amount': str(entry.amount),
            'previous_balance': str(entry.previous_balance),
            'new_balance': str(entry.new_balance),
            'type': entry.type,
        },
    )

    sent = notify_roles(ADMIN_ROLES, Notification.TYPE_PAYMENT_RECEIVED, title, message,
                        exclude=entry.created_by, **kwargs)
    agent_user = _agent_user(agent)
    if agent_user is not None:
        sent.append(notify_user(agent_user, Notification.TYPE_PAYMENT_RECEIVED, title, message, **kwargs))
    return [n for n in sent if n is not None]


@non_fatal
def notify_document_status_updated(document, old_status, updated_by=None):
    title = 'Document status updated'
    labels = dict(document.STATUS_CHOICES)
    message = (
        f"Documents for {document.customer_name or 'customer'} moved from "
        f"\"{labels.get(old_status, old_status)}\" to \"{document.get_status_display()}\""
    )
    kwargs = dict(
        sender=updated_by,
        action_url=f"/documents/{document.id}",
        related_entity_type='document',
        related_entity_id=document.id,
        data={
            'document_id': str(document.id),
            'old_status': old_status,
            'new_status': document.status,
            'motor_fingerprint': document.motor_fingerprint,
            'customer_name': document.customer_name,
        },
    )

    sent = notify_roles(ADMIN_ROLES, Notification.TYPE_DOCUMENT_STATUS_UPDATED, title, message,
                        exclude=updated_by, **kwargs)
    agent_user = _agent_user(document.agent)
    if agent_user is not None:
        sent.append(notify_user(agent_user, Notification.TYPE_DOCUMENT_STATUS_UPDATED, title, message, **kwargs))
    return [n for n in sent if n is not None]


@non_fatal
def notify_low_inventory(warehouse_rows, threshold):
    """
    Args:
        warehouse_rows: [{'warehouse': Warehouse, 'available': int}, ...]
        threshold: Stock level the rows fell below
    """
    if not warehouse_rows:
        return []

    summary = ", ".join(f"{row['warehouse'].name} ({row['available']})" for row in warehouse_rows)
    data = {
        'threshold': threshold,
        'warehouses': [
            {'id': str(row['warehouse'].id), 'name': row['warehouse'].name, 'available': row['available']}
            for row in warehouse_rows
        ],
    }
    sent = notify_roles(
        ADMIN_ROLES,
        Notification.TYPE_LOW_INVENTORY,
        'Low stock',
        f"{len(warehouse_rows)} warehouse(s) below {threshold} available items: {summary}",
        priority=Notification.PRIORITY_HIGH,
        action_url='/inventory',
        related_entity_type='warehouse',
        data=data,
        expires_in_days=1,
    )

    for row in warehouse_rows:
        agent_user = _agent_user(row['warehouse'].get_agent())
        if agent_user is not None:
            sent.append(notify_user(
                agent_user,
                Notification.TYPE_LOW_INVENTORY,
                'Low stock',
                f"Your warehouse has {row['available']} available items",
                priority=Notification.PRIORITY_MEDIUM,
                related_entity_type='warehouse',
                related_entity_id=row['warehouse'].id,
                expires_in_days=1,
            ))
    return [n for n in sent if n is not None]


def cleanup_expired(now=None):
    """Delete notifications past their expiry; returns the number removed."""
    now = now or timezone.now()
    deleted, _ = Notification.objects.filter(expires_at__isnull=False, expires_at__lte=now).delete()
    return deleted
