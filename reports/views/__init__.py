"""
Reports Views Package
"""

from .analytics import (
    SalesReportView,
    SalesTimeSeriesView,
    InventoryReportView,
    AgentsReportView,
    AgentDebtReportView,
    AgentStatementReportView,
    DocumentsReportView,
)
from .exports import ReportExportView, AgentStatementExportView

__all__ = [
    'SalesReportView',
    'SalesTimeSeriesView',
    'InventoryReportView',
    'AgentsReportView',
    'AgentDebtReportView',
    'AgentStatementReportView',
    'DocumentsReportView',
    'ReportExportView',
    'AgentStatementExportView',
]
