"""
Standardized Response Utilities for Reports

Every report endpoint answers with the same envelope:
``{'success', 'data': {'summary', 'results', 'metadata'}, 'error'}``.
"""

from typing import Any, Dict, Optional, List

from django.utils import timezone
from rest_framework.response import Response
from rest_framework import status


def _timestamp() -> str:
    return timezone.now().isoformat()


class ReportError:
    """Standard error response structure"""

    INVALID_DATE_RANGE = 'INVALID_DATE_RANGE'
    INVALID_PERIOD = 'INVALID_PERIOD'
    INVALID_FORMAT = 'INVALID_FORMAT'
    NOT_FOUND = 'NOT_FOUND'

    @staticmethod
    def create(code: str, message: str, details: Optional[Dict] = None) -> Dict:
        """
        Create standardized error response

        Args:
            code: Error code from class constants
            message: Human-readable error message
            details: Additional error details
        """
        return {
            'success': False,
            'data': None,
            'error': {
                'code': code,
                'message': message,
                'details': details or {},
                'timestamp': _timestamp(),
            }
        }

    @staticmethod
    def invalid_date_range(start_date, end_date, reason: str = None) -> Dict:
        return ReportError.create(
            ReportError.INVALID_DATE_RANGE,
            reason or "Invalid date range provided",
            {'start_date': str(start_date or ''), 'end_date': str(end_date or '')}
        )

    @staticmethod
    def invalid_format(parameter: str, message: str, **details) -> Dict:
        return ReportError.create(ReportError.INVALID_FORMAT, message, {'parameter': parameter, **details})

    @staticmethod
    def not_found(message: str) -> Dict:
        return ReportError.create(ReportError.NOT_FOUND, message)


class ReportResponse:
    """Standard report response builder"""

    @staticmethod
    def success(
        summary: Dict[str, Any],
        results: List[Dict[str, Any]],
        metadata: Dict[str, Any]
    ) -> Response:
        """
        Args:
            summary: Aggregated metrics (totals, averages, etc.)
            results: Detailed breakdown/list of items
            metadata: Report metadata (period, filters, etc.)
        """
        return Response({
            'success': True,
            'data': {
                'summary': summary,
                'results': results,
                'metadata': {
                    'generated_at': _timestamp(),
                    'total_records': len(results),
                    **metadata
                }
            },
            'error': None
        }, status=status.HTTP_200_OK)

    @staticmethod
    def error(error_dict: Dict, http_status: int = status.HTTP_400_BAD_REQUEST) -> Response:
        return Response(error_dict, status=http_status)


class ReportMetadata:
    """Helper for building report metadata"""

    @staticmethod
    def create(period: str = None, start_date=None, end_date=None,
               filters_applied: Dict = None, additional: Dict = None) -> Dict:
        metadata = {}

        if start_date or end_date:
            metadata['period'] = {
                'name': period,
                'start': start_date.isoformat() if start_date else None,
                'end': end_date.isoformat() if end_date else None,
            }

        if filters_applied:
            metadata['filters_applied'] = {k: v for k, v in filters_applied.items() if v not in (None, '')}

        if additional:
            metadata.update(additional)

        return metadata
