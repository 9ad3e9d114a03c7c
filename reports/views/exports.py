"""
File downloads for every report.

GET /reports/api/exports/<report>/?export_format=excel|pdf|csv
GET /reports/api/exports/agents/<agent_id>/statement/?export_format=...
"""
import logging

from django.http import HttpResponse
from django.utils import timezone
from rest_framework import status as http_status

from agents.models import Agent
from reports.exporters import EXPORTER_MAP
from reports.services import REPORT_BUILDERS, AgentStatementBuilder
from reports.utils.response import ReportResponse, ReportError
from .base import BaseReportView

logger = logging.getLogger(__name__)

REPORT_FILTERS = {
    'sales': ('agent', 'sale_type', 'payment_method'),
    'inventory': ('warehouse', 'vehicle_type'),
    'documents': ('status', 'agent'),
}


class ReportExportView(BaseReportView):
    """Render a report with the exporter named by ``export_format`` (default excel)."""

    def get_exporter(self, request):
        export_format = request.query_params.get('export_format', 'excel').lower()
        exporter_class = EXPORTER_MAP.get(export_format)
        if exporter_class is None:
            return None, ReportError.invalid_format(
                'export_format', f"Unsupported export format '{export_format}'", allowed=sorted(EXPORTER_MAP)
            )
        return exporter_class(), None

    def get_builder(self, request, period, start_date, end_date):
        report = self.kwargs['report']
        builder_class = REPORT_BUILDERS.get(report)
        if builder_class is None:
            return None, ReportError.not_found(f"Unknown report '{report}'")
        self.filter_params = REPORT_FILTERS.get(report, ())
        filters, error = self.parse_filters(request)
        if error:
            return None, error
        return builder_class(request.user, start_date, end_date, period=period, filters=filters), None

    def get_filename(self, report_data, exporter):
        slug = self.kwargs.get('report', 'report')
        return f"{slug}_report_{timezone.localdate():%Y%m%d}.{exporter.file_extension}"

    def get(self, request, *args, **kwargs):
        exporter, error = self.get_exporter(request)
        if error:
            return ReportResponse.error(error)

        period, start_date, end_date, error = self.get_date_range(request)
        if error:
            return ReportResponse.error(error)

        builder, error = self.get_builder(request, period, start_date, end_date)
        if error:
            status_code = (
                http_status.HTTP_404_NOT_FOUND if error['error']['code'] == ReportError.NOT_FOUND
                else http_status.HTTP_400_BAD_REQUEST
            )
            return ReportResponse.error(error, http_status=status_code)

        report_data = builder.build()
        content = exporter.export(report_data)
        filename = self.get_filename(report_data, exporter)
        logger.info("User %s exported %s (%s rows)", request.user.pk, filename, len(report_data['rows']))

        response = HttpResponse(content, content_type=exporter.content_type)
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response


class AgentStatementExportView(ReportExportView):

    def get_builder(self, request, period, start_date, end_date):
        agent = Agent.objects.filter(pk=self.kwargs['agent_id']).first()
        if agent is None:
            return None, ReportError.not_found('Agent not found')
        return AgentStatementBuilder(request.user, agent, start_date, end_date, period=period), None

    def get_filename(self, report_data, exporter):
        return f"agent_statement_{self.kwargs['agent_id']}_{timezone.localdate():%Y%m%d}.{exporter.file_extension}"
