import uuid
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from accounts.models import User


class DocumentTracking(models.Model):
    """
    Registration paperwork for a sold vehicle.

    Moves forward through STATUS_FLOW; every move appends a DocumentStage.
    Customer and vehicle identifiers are copied at sale time so inquiries
    keep working when the sale or customer record changes.
    """
    STATUS_PENDING_SUBMISSION = 'pending_submission'
    STATUS_SUBMITTED_TO_MANUFACTURER = 'submitted_to_manufacturer'
    STATUS_RECEIVED_FROM_MANUFACTURER = 'received_from_manufacturer'
    STATUS_SENT_TO_POINT_OF_SALE = 'sent_to_point_of_sale'
    STATUS_COMPLETED = 'completed'

    STATUS_CHOICES = [
        (STATUS_PENDING_SUBMISSION, 'Pending Submission'),
        (STATUS_SUBMITTED_TO_MANUFACTURER, 'Submitted to Manufacturer'),
        (STATUS_RECEIVED_FROM_MANUFACTURER, 'Received from Manufacturer'),
        (STATUS_SENT_TO_POINT_OF_SALE, 'Sent to Point of Sale'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    STATUS_FLOW = [choice[0] for choice in STATUS_CHOICES]
    PENDING_STATUSES = (STATUS_PENDING_SUBMISSION, STATUS_SUBMITTED_TO_MANUFACTURER)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.OneToOneField('sales.Sale', on_delete=models.CASCADE, related_name='document')
    inventory_item = models.ForeignKey('inventory.InventoryItem', on_delete=models.PROTECT, related_name='documents')

    motor_fingerprint = models.CharField(max_length=100, db_index=True)
    chassis_number = models.CharField(max_length=100, db_index=True)
    customer_name = models.CharField(max_length=255)
    customer_phone = models.CharField(max_length=20, blank=True, default='')
    customer_national_id = models.CharField(max_length=14, blank=True, default='')

    agent = models.ForeignKey('agents.Agent', on_delete=models.SET_NULL, null=True, blank=True, related_name='documents')
    sale_type = models.CharField(max_length=10)
    combined_image_url = models.URLField(max_length=500, blank=True, default='')

    status = models.CharField(max_length=40, choices=STATUS_CHOICES, default=STATUS_PENDING_SUBMISSION, db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_documents')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'document_tracking'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='doc_status_created_idx'),
            models.Index(fields=['agent', 'status'], name='doc_agent_status_idx'),
        ]

    def __str__(self):
        return f"{self.motor_fingerprint} - {self.get_status_display()}"

    @classmethod
    def overdue_cutoff(cls):
        return timezone.now() - timedelta(days=getattr(settings, 'DOCUMENT_OVERDUE_DAYS', 30))

    @classmethod
    def overdue(cls):
        return cls.objects.exclude(status=cls.STATUS_COMPLETED).filter(created_at__lt=cls.overdue_cutoff())

    @property
    def is_overdue(self):
        return self.status != self.STATUS_COMPLETED and self.created_at < self.overdue_cutoff()

    @property
    def processing_days(self):
        if not self.completed_at:
            return None
        return (self.completed_at - self.created_at).days

    def status_index(self, status=None):
        return self.STATUS_FLOW.index(status or self.status)


class DocumentStage(models.Model):
    """One step in a document's history."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    document = models.ForeignKey(DocumentTracking, on_delete=models.CASCADE, related_name='stages')
    status = models.CharField(max_length=40, choices=DocumentTracking.STATUS_CHOICES)
    date = models.DateTimeField(default=timezone.now)
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    notes = models.TextField(blank=True, default='')

    class Meta:
        db_table = 'document_stages'
        ordering = ['date']

    def __str__(self):
        return f"{self.document.motor_fingerprint} - {self.status}"
