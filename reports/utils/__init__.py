"""
Reports Utility Modules

Response envelopes and date range helpers shared by the report views.
"""

from .response import ReportResponse, ReportError, ReportMetadata
from .date_utils import DateRangeValidator, get_date_range, get_previous_range

__all__ = [
    'ReportResponse',
    'ReportError',
    'ReportMetadata',
    'DateRangeValidator',
    'get_date_range',
    'get_previous_range',
]
