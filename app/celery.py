import os
from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'app.settings')

app = Celery('vehicle_trading')

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django app configs.
app.autodiscover_tasks()

app.conf.update(
    task_track_started=True,
    task_serializer='json',
    result_serializer='json',
    accept_content=['json'],
    enable_utc=True,

    # Task routing
    task_routes={
        'agents.tasks.*': {'queue': 'ledger'},
        'inventory.tasks.*': {'queue': 'inventory'},
        'documents.tasks.*': {'queue': 'documents'},
        'notifications.tasks.*': {'queue': 'notifications'},
    },

    # Periodic tasks
    beat_schedule={
        'reconcile-agent-balances': {
            'task': 'agents.tasks.reconcile_agent_balances',
            'schedule': crontab(hour=2, minute=0),  # Nightly
        },
        'send-low-stock-alerts': {
            'task': 'inventory.tasks.send_low_stock_alerts',
            'schedule': 21600.0,  # Every 6 hours
        },
        'check-overdue-documents': {
            'task': 'documents.tasks.check_overdue_documents',
            'schedule': crontab(hour=8, minute=0),  # Daily
        },
        'cleanup-expired-notifications': {
            'task': 'notifications.tasks.cleanup_expired_notifications',
            'schedule': 86400.0,  # Daily
        },
    },
)
