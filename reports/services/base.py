"""
Base report builder
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from django.utils import timezone

from accounts.permissions import can_view_profits


class BaseReportBuilder(ABC):
    """
    Subclasses set ``title`` and ``headers`` (``(key, label)`` pairs naming
    the row columns) and implement ``build_summary`` and ``build_rows``.
    """
    title: str = ''
    headers: List[Tuple[str, str]] = []
    uses_date_range = True

    def __init__(self, user, start: Optional[date] = None, end: Optional[date] = None,
                 period: Optional[str] = None, filters: Optional[Dict[str, Any]] = None):
        self.user = user
        self.start = start
        self.end = end
        self.period = period
        self.filters = filters or {}
        self.show_profits = can_view_profits(user)

    @abstractmethod
    def build_summary(self) -> Dict[str, Any]:
        """Aggregated metrics - implement in subclass"""

    @abstractmethod
    def build_rows(self) -> List[Dict[str, Any]]:
        """Detail rows keyed by ``headers`` - implement in subclass"""

    def get_headers(self) -> List[Tuple[str, str]]:
        return list(self.headers)

    def build(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'generated_at': timezone.now(),
            'period': self.period,
            'start_date': self.start if self.uses_date_range else None,
            'end_date': self.end if self.uses_date_range else None,
            'filters': {k: v for k, v in self.filters.items() if v not in (None, '')},
            'summary': self.build_summary(),
            'headers': self.get_headers(),
            'rows': self.build_rows(),
        }

    def date_filter(self, field: str = 'created_at') -> Dict[str, date]:
        lookups = {}
        if self.start:
            lookups[f'{field}__date__gte'] = self.start
        if self.end:
            lookups[f'{field}__date__lte'] = self.end
        return lookups
