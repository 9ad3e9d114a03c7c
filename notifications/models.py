import uuid

from django.db import models
from django.utils import timezone

from accounts.models import User


class Notification(models.Model):
    """In-app notification for a single recipient."""
    TYPE_SALE_CREATED = 'sale_created'
    TYPE_INVENTORY_TRANSFERRED = 'inventory_transferred'
    TYPE_PAYMENT_RECEIVED = 'payment_received'
    TYPE_DOCUMENT_STATUS_UPDATED = 'document_status_updated'
    TYPE_LOW_INVENTORY = 'low_inventory'
    TYPE_GENERAL = 'general'

    TYPE_CHOICES = [
        (TYPE_SALE_CREATED, 'Sale Created'),
        (TYPE_INVENTORY_TRANSFERRED, 'Inventory Transferred'),
        (TYPE_PAYMENT_RECEIVED, 'Payment Received'),
        (TYPE_DOCUMENT_STATUS_UPDATED, 'Document Status Updated'),
        (TYPE_LOW_INVENTORY, 'Low Inventory'),
        (TYPE_GENERAL, 'General'),
    ]

    PRIORITY_LOW = 'low'
    PRIORITY_MEDIUM = 'medium'
    PRIORITY_HIGH = 'high'
    PRIORITY_URGENT = 'urgent'

    PRIORITY_CHOICES = [
        (PRIORITY_LOW, 'Low'),
        (PRIORITY_MEDIUM, 'Medium'),
        (PRIORITY_HIGH, 'High'),
        (PRIORITY_URGENT, 'Urgent'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    sender = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='sent_notifications')
    type = models.CharField(max_length=30, choices=TYPE_CHOICES, default=TYPE_GENERAL, db_index=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default=PRIORITY_MEDIUM)
    title = models.CharField(max_length=255)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    action_url = models.CharField(max_length=255, blank=True, default='')
    related_entity_type = models.CharField(max_length=50, blank=True, default='')
    related_entity_id = models.UUIDField(null=True, blank=True)

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient', 'is_read', 'created_at'], name='notif_recipient_read_idx'),
        ]

    def __str__(self):
        return f"{self.recipient} - {self.title}"

    @property
    def is_expired(self):
        return self.expires_at is not None and self.expires_at <= timezone.now()

    def mark_read(self):
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=['is_read', 'read_at'])
