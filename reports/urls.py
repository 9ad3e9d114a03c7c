from django.urls import path

from .views import (
    SalesReportView,
    SalesTimeSeriesView,
    InventoryReportView,
    AgentsReportView,
    AgentDebtReportView,
    AgentStatementReportView,
    DocumentsReportView,
    ReportExportView,
    AgentStatementExportView,
)

urlpatterns = [
    path('api/sales/', SalesReportView.as_view(), name='sales-report'),
    path('api/sales/time-series/', SalesTimeSeriesView.as_view(), name='sales-time-series'),
    path('api/inventory/', InventoryReportView.as_view(), name='inventory-report'),
    path('api/agents/', AgentsReportView.as_view(), name='agents-report'),
    path('api/agents/debt/', AgentDebtReportView.as_view(), name='agents-debt-report'),
    path('api/agents/<uuid:agent_id>/statement/', AgentStatementReportView.as_view(), name='agent-statement'),
    path('api/documents/', DocumentsReportView.as_view(), name='documents-report'),
    path(
        'api/exports/agents/<uuid:agent_id>/statement/',
        AgentStatementExportView.as_view(),
        name='agent-statement-export',
    ),
    path('api/exports/<slug:report>/', ReportExportView.as_view(), name='report-export'),
]
