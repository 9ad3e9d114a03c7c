"""
JSON report endpoints.

Every endpoint answers with the ``ReportResponse`` envelope. Date ranges come
from ``period`` (daily, weekly, monthly, quarterly, yearly, custom) or from
explicit ``start_date`` / ``end_date``; the default is the last 30 days.
"""
import logging

from rest_framework import status as http_status

from agents.models import Agent
from reports.services import (
    SalesReportBuilder,
    InventoryReportBuilder,
    AgentsReportBuilder,
    AgentDebtReportBuilder,
    AgentStatementBuilder,
    DocumentsReportBuilder,
)
from reports.utils.response import ReportResponse, ReportError
from .base import BaseReportView

logger = logging.getLogger(__name__)

GROUP_BY_CHOICES = ('day', 'week', 'month')


class BuilderReportView(BaseReportView):
    """Runs ``builder_class`` and returns its summary and rows."""
    builder_class = None

    def get_builder(self, request, period, start_date, end_date, filters):
        return self.builder_class(request.user, start_date, end_date, period=period, filters=filters)

    def get(self, request, *args, **kwargs):
        period, start_date, end_date, error = self.get_date_range(request)
        if error:
            return ReportResponse.error(error)
        filters, error = self.parse_filters(request)
        if error:
            return ReportResponse.error(error)

        builder = self.get_builder(request, period, start_date, end_date, filters)
        report = builder.build()
        metadata = self.build_metadata(
            period,
            report['start_date'],
            report['end_date'],
            filters,
            title=report['title'],
        )
        return ReportResponse.success(report['summary'], report['rows'], metadata)


class SalesReportView(BuilderReportView):
    """
    GET /reports/api/sales/

    Query Parameters:
    - period / start_date / end_date
    - agent: agent id
    - sale_type: company or agent
    - payment_method
    """
    builder_class = SalesReportBuilder
    filter_params = ('agent', 'sale_type', 'payment_method')


class SalesTimeSeriesView(BaseReportView):
    """
    GET /reports/api/sales/time-series/?group_by=day|week|month

    Sales amount and count per bucket.
    """
    filter_params = SalesReportView.filter_params

    def get(self, request, *args, **kwargs):
        period, start_date, end_date, error = self.get_date_range(request)
        if error:
            return ReportResponse.error(error)
        filters, error = self.parse_filters(request)
        if error:
            return ReportResponse.error(error)

        group_by = request.query_params.get('group_by', 'day')
        if group_by not in GROUP_BY_CHOICES:
            return ReportResponse.error(ReportError.invalid_format(
                'group_by', f"group_by must be one of {', '.join(GROUP_BY_CHOICES)}"
            ))

        builder = SalesReportBuilder(request.user, start_date, end_date, period=period, filters=filters)
        series = builder.time_series(group_by)
        summary = {
            'group_by': group_by,
            'points': len(series),
            'total_amount': sum((point['value'] for point in series), 0),
            'total_count': sum(point['count'] for point in series),
        }
        return ReportResponse.success(
            summary, series, self.build_metadata(period, start_date, end_date, filters, group_by=group_by)
        )


class InventoryReportView(BuilderReportView):
    """
    GET /reports/api/inventory/

    Stock snapshot; the date range is ignored.
    """
    builder_class = InventoryReportBuilder
    filter_params = ('warehouse', 'vehicle_type')


class AgentsReportView(BuilderReportView):
    """GET /reports/api/agents/"""
    builder_class = AgentsReportBuilder


class AgentDebtReportView(BuilderReportView):
    """GET /reports/api/agents/debt/ - agents owing money, largest debt first."""
    builder_class = AgentDebtReportBuilder


class AgentStatementReportView(BuilderReportView):
    """GET /reports/api/agents/<agent_id>/statement/"""

    def get_builder(self, request, period, start_date, end_date, filters):
        agent = Agent.objects.get(pk=self.kwargs['agent_id'])
        return AgentStatementBuilder(request.user, agent, start_date, end_date, period=period, filters=filters)

    def get(self, request, *args, **kwargs):
        if not Agent.objects.filter(pk=kwargs['agent_id']).exists():
            return ReportResponse.error(
                ReportError.not_found('Agent not found'), http_status=http_status.HTTP_404_NOT_FOUND
            )
        return super().get(request, *args, **kwargs)


class DocumentsReportView(BuilderReportView):
    """GET /reports/api/documents/"""
    builder_class = DocumentsReportBuilder
    filter_params = ('status', 'agent')
