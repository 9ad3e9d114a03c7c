"""
Document tracking workflow and customer inquiry.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from accounts.models import User
from .models import DocumentTracking, DocumentStage

logger = logging.getLogger(__name__)

MIN_INQUIRY_LENGTH = 3


def create_document_tracking(sale, item, customer, user=None, combined_image_url=None):
    """Start tracking paperwork for a sold item at ``pending_submission``."""
    document = DocumentTracking.objects.create(
        sale=sale,
        inventory_item=item,
        motor_fingerprint=item.motor_fingerprint,
        chassis_number=item.chassis_number,
        customer_name=customer.name,
        customer_phone=customer.phone or '',
        customer_national_id=customer.national_id or '',
        agent=sale.agent,
        sale_type=sale.sale_type,
        combined_image_url=combined_image_url or '',
        created_by=user,
    )
    DocumentStage.objects.create(
        document=document,
        status=DocumentTracking.STATUS_PENDING_SUBMISSION,
        updated_by=user,
        notes='Document tracking created automatically after sale',
    )
    return document


@transaction.atomic
def update_document_status(document, status, user=None, notes=''):
    """
    Move a document forward. Later statuses may be skipped to; going back
    or staying put is rejected.
    """
    if status not in DocumentTracking.STATUS_FLOW:
        raise ValidationError({'status': f"Unknown status '{status}'"})

    document = DocumentTracking.objects.select_for_update().get(pk=document.pk)
    if document.status == DocumentTracking.STATUS_COMPLETED:
        raise ValidationError({'status': 'Document tracking is already completed'})
    if document.status_index(status) <= document.status_index():
        raise ValidationError({
            'status': f"Cannot move from '{document.status}' to '{status}'; status can only move forward"
        })

    old_status = document.status
    document.status = status
    update_fields = ['status', 'updated_at']
    if status == DocumentTracking.STATUS_COMPLETED:
        document.completed_at = timezone.now()
        update_fields.append('completed_at')
    document.save(update_fields=update_fields)

    DocumentStage.objects.create(document=document, status=status, updated_by=user, notes=notes or '')
    logger.info("Document %s moved %s -> %s", document.id, old_status, status)

    from notifications.services import notify_document_status_updated
    notify_document_status_updated(document, old_status, updated_by=user)

    return document


def documents_for_user(user):
    """Document queryset restricted to what the user may see."""
    queryset = DocumentTracking.objects.select_related('agent', 'sale', 'inventory_item')
    if user.role == User.ROLE_AGENT:
        agent = user.agent
        return queryset.filter(agent=agent) if agent else queryset.none()
    return queryset


def customer_inquiry(query, user):
    """
    Look up documents by motor fingerprint or chassis number prefix.

    Returns:
        List of result dicts with status, stage history and sale details
    """
    query = (query or '').strip()
    if len(query) < MIN_INQUIRY_LENGTH:
        raise ValidationError({'query': f'Search query must be at least {MIN_INQUIRY_LENGTH} characters'})

    documents = documents_for_user(user).filter(
        Q(motor_fingerprint__istartswith=query) | Q(chassis_number__istartswith=query)
    ).prefetch_related('stages')

    results = []
    for document in documents:
        results.append({
            'document_id': str(document.id),
            'motor_fingerprint': document.motor_fingerprint,
            'chassis_number': document.chassis_number,
            'status': document.status,
            'status_display': document.get_status_display(),
            'customer_name': document.customer_name,
            'agent_name': document.agent.name if document.agent_id else None,
            'sale_type': document.sale_type,
            'sale_date': document.sale.created_at,
            'invoice_number': document.sale.invoice_number,
            'is_overdue': document.is_overdue,
            'stages': [
                {'status': stage.status, 'date': stage.date, 'notes': stage.notes}
                for stage in document.stages.all()
            ],
        })
    return results
