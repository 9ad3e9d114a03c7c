"""
Celery tasks for inventory
"""
import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name='inventory.tasks.send_low_stock_alerts')
def send_low_stock_alerts(threshold: int = None):
    """
    Alert administrators (and owning agents) about warehouses running low.

    Args:
        threshold: Override for the ``low_stock_threshold`` business setting

    Returns:
        dict: Alert results
    """
    from inventory.services import low_stock_warehouses
    from notifications.services import notify_low_inventory
    from settings.models import get_business_setting

    if threshold is None:
        threshold = get_business_setting('low_stock_threshold')

    rows = low_stock_warehouses(threshold)
    if not rows:
        logger.info("All warehouses at or above %s available items", threshold)
        return {'status': 'no_alerts', 'threshold': threshold, 'warehouses': []}

    notify_low_inventory(rows, threshold)
    logger.warning("%s warehouse(s) below %s available items", len(rows), threshold)
    return {
        'status': 'alerted',
        'threshold': threshold,
        'warehouses': [
            {'id': str(row['warehouse'].id), 'name': row['warehouse'].name, 'available': row['available']}
            for row in rows
        ],
    }
