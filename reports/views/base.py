"""
Shared plumbing for report endpoints.
"""
import uuid
from typing import Any, Dict, Optional, Tuple

from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from accounts.permissions import CanViewReports
from reports.utils.date_utils import PERIODS, DateRangeValidator, get_date_range
from reports.utils.response import ReportError, ReportMetadata

UUID_FILTERS = ('agent', 'warehouse')


class DateRangeFilterMixin:
    """Resolves ``period`` / ``start_date`` / ``end_date`` query params."""

    max_days = 731

    def get_date_range(self, request) -> Tuple[Optional[str], Any, Any, Optional[Dict]]:
        """
        Returns:
            (period, start_date, end_date, error_dict)
        """
        period = request.query_params.get('period') or None
        start_str = request.query_params.get('start_date')
        end_str = request.query_params.get('end_date')

        if period and period not in PERIODS:
            return None, None, None, ReportError.create(
                ReportError.INVALID_PERIOD,
                f"Unknown period '{period}'",
                {'allowed': list(PERIODS)},
            )
        # Explicit dates without a period mean a custom range
        if not period and (start_str or end_str):
            period = 'custom'

        try:
            start_date, end_date = get_date_range(period, start_str, end_str)
        except ValueError as exc:
            return None, None, None, ReportError.invalid_date_range(start_str, end_str, str(exc))

        is_valid, message = DateRangeValidator.validate(start_date, end_date, max_days=self.max_days)
        if not is_valid:
            return None, None, None, ReportError.invalid_date_range(start_date, end_date, message)
        return period, start_date, end_date, None


class BaseReportView(APIView, DateRangeFilterMixin):
    """
    Base class for report endpoints.

    Subclasses name the query params they accept in ``filter_params``;
    ``parse_filters`` collects and checks them.
    """
    permission_classes = [IsAuthenticated, CanViewReports]
    filter_params: Tuple[str, ...] = ()

    def parse_filters(self, request) -> Tuple[Dict[str, Any], Optional[Dict]]:
        filters = {}
        for param in self.filter_params:
            value = request.query_params.get(param)
            if not value:
                continue
            if param in UUID_FILTERS:
                try:
                    value = str(uuid.UUID(value))
                except ValueError:
                    return {}, ReportError.invalid_format(param, f"'{param}' must be a valid id")
            filters[param] = value
        return filters, None

    def build_metadata(self, period, start_date, end_date, filters, **additional) -> Dict[str, Any]:
        return ReportMetadata.create(
            period=period,
            start_date=start_date,
            end_date=end_date,
            filters_applied=filters,
            additional=additional or None,
        )
