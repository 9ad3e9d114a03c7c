"""
CSV exporter for report data.
"""

import csv
from io import StringIO
from typing import Any, Dict

from .utils.formatting import flatten_summary, format_value


class BaseCSVExporter:
    """Base class for CSV exporters"""

    content_type = 'text/csv'
    file_extension = 'csv'

    @staticmethod
    def _format_value(value: Any) -> str:
        if hasattr(value, 'quantize'):
            return str(value)
        return format_value(value)

    @staticmethod
    def _write_section_header(writer, title: str) -> None:
        writer.writerow([])
        writer.writerow([title])
        writer.writerow([])


class ReportCSVExporter(BaseCSVExporter):
    """Summary metrics followed by the detail rows."""

    def export(self, data: Dict[str, Any]) -> bytes:
        output = StringIO()
        writer = csv.writer(output)

        writer.writerow([data['title']])
        writer.writerow(['Generated At', data['generated_at'].strftime('%Y-%m-%d %H:%M:%S')])
        if data.get('start_date') and data.get('end_date'):
            writer.writerow(['Period', f"{data['start_date']} to {data['end_date']}"])
        writer.writerow([])

        writer.writerow(['Summary Metrics'])
        writer.writerow(['Metric', 'Value'])
        for metric, value in flatten_summary(data['summary']):
            writer.writerow([metric, self._format_value(value)])

        self._write_section_header(writer, 'Details')
        writer.writerow([title for _, title in data['headers']])
        for row in data['rows']:
            writer.writerow([self._format_value(row.get(key)) for key, _ in data['headers']])

        # BOM so Excel opens Arabic names correctly
        return ('﻿' + output.getvalue()).encode('utf-8')
