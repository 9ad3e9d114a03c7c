"""
Celery tasks for document tracking
"""
import logging

from celery import shared_task
from django.conf import settings

logger = logging.getLogger(__name__)


@shared_task(name='documents.tasks.check_overdue_documents')
def check_overdue_documents():
    """
    Notify administrators about paperwork stuck for too long. Runs daily.
    """
    from documents.models import DocumentTracking
    from notifications.models import Notification
    from notifications.services import notify_roles, non_fatal, ADMIN_ROLES

    overdue = DocumentTracking.overdue()
    count = overdue.count()
    if count == 0:
        logger.info("No overdue documents")
        return {'status': 'no_alerts', 'overdue': 0}

    days = getattr(settings, 'DOCUMENT_OVERDUE_DAYS', 30)
    sample = list(overdue.values_list('motor_fingerprint', flat=True)[:10])
    non_fatal(notify_roles)(
        ADMIN_ROLES,
        Notification.TYPE_GENERAL,
        'Overdue documents',
        f"{count} document(s) have been pending for more than {days} days",
        priority=Notification.PRIORITY_HIGH,
        action_url='/documents?overdue=true',
        related_entity_type='document',
        data={'count': count, 'motor_fingerprints': sample},
        expires_in_days=1,
    )
    logger.warning("%s overdue documents", count)
    return {'status': 'alerted', 'overdue': count}
