"""
Document tracking report.
"""
from decimal import Decimal

from django.db.models import Count

from documents.models import DocumentTracking
from .base import BaseReportBuilder


class DocumentsReportBuilder(BaseReportBuilder):
    title = 'Documents Report'
    headers = [
        ('motor_fingerprint', 'Motor Fingerprint'),
        ('chassis_number', 'Chassis'),
        ('customer_name', 'Customer'),
        ('agent', 'Agent'),
        ('status', 'Status'),
        ('created_at', 'Created'),
        ('processing_days', 'Processing Days'),
        ('is_overdue', 'Overdue'),
    ]

    def get_queryset(self):
        queryset = DocumentTracking.objects.filter(**self.date_filter())
        if self.filters.get('status'):
            queryset = queryset.filter(status=self.filters['status'])
        if self.filters.get('agent'):
            queryset = queryset.filter(agent_id=self.filters['agent'])
        return queryset

    def build_summary(self):
        queryset = self.get_queryset()
        by_status = {status: 0 for status in DocumentTracking.STATUS_FLOW}
        for row in queryset.values('status').annotate(count=Count('id')):
            by_status[row['status']] = row['count']

        completed = list(
            queryset.filter(status=DocumentTracking.STATUS_COMPLETED, completed_at__isnull=False)
            .values_list('created_at', 'completed_at')
        )
        if completed:
            total_days = sum((done - created).days for created, done in completed)
            average_days = (Decimal(total_days) / len(completed)).quantize(Decimal('0.1'))
        else:
            average_days = Decimal('0.0')

        return {
            'total_documents': sum(by_status.values()),
            'pending': sum(by_status[status] for status in DocumentTracking.PENDING_STATUSES),
            'completed': by_status[DocumentTracking.STATUS_COMPLETED],
            'by_status': by_status,
            'average_processing_days': average_days,
            'overdue': queryset.exclude(status=DocumentTracking.STATUS_COMPLETED).filter(
                created_at__lt=DocumentTracking.overdue_cutoff()
            ).count(),
        }

    def build_rows(self):
        return [
            {
                'motor_fingerprint': document.motor_fingerprint,
                'chassis_number': document.chassis_number,
                'customer_name': document.customer_name,
                'agent': document.agent.name if document.agent_id else '',
                'status': document.status,
                'created_at': document.created_at.date().isoformat(),
                'processing_days': document.processing_days,
                'is_overdue': document.is_overdue,
            }
            for document in self.get_queryset().select_related('agent').order_by('-created_at')
        ]
