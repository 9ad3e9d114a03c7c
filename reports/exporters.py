from __future__ import annotations

from abc import ABC, abstractmethod
from io import BytesIO
from typing import Any, Dict, Iterable

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from .csv_exporters import ReportCSVExporter
from .pdf_exporters import ReportPDFExporter
from .utils.date_utils import get_period_description
from .utils.formatting import flatten_summary, format_value


class BaseReportExporter(ABC):
    content_type: str
    file_extension: str

    @abstractmethod
    def export(self, report_data: Dict[str, Any]) -> bytes:  # pragma: no cover - interface
        raise NotImplementedError


class ExcelReportExporter(BaseReportExporter):
    """Summary sheet plus one detail sheet with a row per report record."""
    content_type = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    file_extension = 'xlsx'

    HEADER_FILL = PatternFill(start_color='2C3E50', end_color='2C3E50', fill_type='solid')

    def export(self, report_data: Dict[str, Any]) -> bytes:
        workbook = Workbook()
        summary_sheet = workbook.active
        summary_sheet.title = 'Summary'

        summary_sheet.append([report_data['title']])
        summary_sheet.merge_cells(start_row=1, start_column=1, end_row=1, end_column=2)
        summary_sheet['A1'].font = Font(size=14, bold=True)

        summary_sheet.append(['Generated At', report_data['generated_at'].strftime('%Y-%m-%d %H:%M:%S %Z')])
        if report_data.get('start_date') and report_data.get('end_date'):
            summary_sheet.append(['Period', get_period_description(report_data['start_date'], report_data['end_date'])])
        for key, value in (report_data.get('filters') or {}).items():
            summary_sheet.append([key.replace('_', ' ').title(), str(value)])
        summary_sheet.append([])

        summary_sheet.append(['Metric', 'Value'])
        self._style_header(summary_sheet, summary_sheet.max_row)
        for metric, value in flatten_summary(report_data['summary']):
            summary_sheet.append([metric, self._cell_value(value)])

        detail_sheet = workbook.create_sheet(title='Detail')
        headers = report_data['headers']
        detail_sheet.append([title for _, title in headers])
        self._style_header(detail_sheet, 1)
        for row in report_data['rows']:
            detail_sheet.append([self._cell_value(row.get(key)) for key, _ in headers])

        self._auto_fit_columns([summary_sheet, detail_sheet])

        with BytesIO() as output:
            workbook.save(output)
            return output.getvalue()

    @staticmethod
    def _cell_value(value):
        # Numbers stay numeric so spreadsheet formulas work
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        if value is not None and value.__class__.__name__ == 'Decimal':
            return float(value)
        return format_value(value)

    def _style_header(self, sheet, row_number: int) -> None:
        for cell in sheet[row_number]:
            cell.font = Font(bold=True, color='FFFFFF')
            cell.fill = self.HEADER_FILL

    @staticmethod
    def _auto_fit_columns(sheets: Iterable[Any]) -> None:
        for sheet in sheets:
            for column_cells in sheet.columns:
                max_length = 0
                column = get_column_letter(column_cells[0].column)
                for cell in column_cells:
                    cell_value = str(cell.value) if cell.value is not None else ''
                    max_length = max(max_length, len(cell_value))
                sheet.column_dimensions[column].width = min(max_length + 2, 50)


EXPORTER_MAP = {
    'excel': ExcelReportExporter,
    'pdf': ReportPDFExporter,
    'csv': ReportCSVExporter,
}
