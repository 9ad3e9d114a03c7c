"""
Celery tasks for notifications
"""
import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name='notifications.tasks.cleanup_expired_notifications')
def cleanup_expired_notifications():
    """Delete notifications whose expiry has passed. Runs daily."""
    from notifications.services import cleanup_expired

    deleted = cleanup_expired()
    logger.info("Deleted %s expired notifications", deleted)
    return {'deleted': deleted}
