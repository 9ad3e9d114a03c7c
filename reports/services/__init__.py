"""
Reports Services Module

One builder per report. Each builder turns a user, a date range and filters
into a plain dict that the JSON views and the file exporters share.
"""

from .base import BaseReportBuilder
from .sales import SalesReportBuilder, calculate_growth, generate_time_series
from .inventory import InventoryReportBuilder
from .agents import AgentsReportBuilder, AgentDebtReportBuilder, AgentStatementBuilder
from .documents import DocumentsReportBuilder

REPORT_BUILDERS = {
    'sales': SalesReportBuilder,
    'inventory': InventoryReportBuilder,
    'agents': AgentsReportBuilder,
    'agent-debt': AgentDebtReportBuilder,
    'documents': DocumentsReportBuilder,
}

__all__ = [
    'BaseReportBuilder',
    'SalesReportBuilder',
    'InventoryReportBuilder',
    'AgentsReportBuilder',
    'AgentDebtReportBuilder',
    'AgentStatementBuilder',
    'DocumentsReportBuilder',
    'REPORT_BUILDERS',
    'calculate_growth',
    'generate_time_series',
]
