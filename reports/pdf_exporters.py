"""
PDF exporters for reports and sale invoices.
"""

from io import BytesIO
from typing import Any, Dict, List

from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from .utils.date_utils import get_period_description
from .utils.formatting import flatten_summary, format_value

MAX_PDF_ROWS = 200

GRID_STYLE = [
    ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#2c3e50')),
    ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('FONTSIZE', (0, 0), (-1, 0), 9),
    ('FONTSIZE', (0, 1), (-1, -1), 8),
    ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
    ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f8f9fa')]),
]


class BasePDFExporter:
    """Base class for PDF exporters"""

    content_type = 'application/pdf'
    file_extension = 'pdf'
    pagesize = A4

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self.styles.add(ParagraphStyle(
            name='CustomTitle',
            parent=self.styles['Heading1'],
            fontSize=18,
            spaceAfter=12,
            alignment=TA_CENTER,
            fontName='Helvetica-Bold'
        ))
        self.styles.add(ParagraphStyle(
            name='CustomSubtitle',
            parent=self.styles['Normal'],
            fontSize=10,
            textColor=colors.HexColor('#666666'),
            spaceAfter=16,
            alignment=TA_CENTER
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=13,
            textColor=colors.HexColor('#2c3e50'),
            spaceBefore=12,
            spaceAfter=8,
        ))
        self.styles.add(ParagraphStyle(
            name='AlignRight',
            parent=self.styles['Normal'],
            alignment=TA_RIGHT
        ))

    def _document(self, buffer):
        return SimpleDocTemplate(
            buffer,
            pagesize=self.pagesize,
            leftMargin=0.5 * inch,
            rightMargin=0.5 * inch,
            topMargin=0.5 * inch,
            bottomMargin=0.5 * inch,
        )

    def _key_value_table(self, pairs: List[tuple]) -> Table:
        table = Table(
            [[format_value(label), format_value(value)] for label, value in pairs],
            colWidths=[3.5 * inch, 3.5 * inch],
        )
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (0, -1), colors.HexColor('#f8f9fa')),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#dee2e6')),
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('PADDING', (0, 0), (-1, -1), 6),
        ]))
        return table

    def _render(self, story) -> bytes:
        buffer = BytesIO()
        self._document(buffer).build(story)
        return buffer.getvalue()


class ReportPDFExporter(BasePDFExporter):
    """Renders any report builder output: summary table then detail rows."""

    pagesize = landscape(A4)

    def export(self, data: Dict[str, Any]) -> bytes:
        story = [Paragraph(data['title'], self.styles['CustomTitle'])]

        subtitle = f"Generated: {data.get('generated_at', timezone.now()).strftime('%Y-%m-%d %H:%M')}"
        if data.get('start_date') and data.get('end_date'):
            subtitle += f" | {get_period_description(data['start_date'], data['end_date'])}"
        story.append(Paragraph(subtitle, self.styles['CustomSubtitle']))

        story.append(Paragraph('Summary', self.styles['SectionHeader']))
        story.append(self._key_value_table(flatten_summary(data['summary'])))

        rows = data['rows']
        if rows:
            story.append(Paragraph('Details', self.styles['SectionHeader']))
            table_data = [[title for _, title in data['headers']]]
            for row in rows[:MAX_PDF_ROWS]:
                table_data.append([format_value(row.get(key))[:30] for key, _ in data['headers']])
            table = Table(table_data, repeatRows=1)
            table.setStyle(TableStyle(GRID_STYLE))
            story.append(table)

            if len(rows) > MAX_PDF_ROWS:
                story.append(Spacer(1, 10))
                story.append(Paragraph(
                    f'Showing {MAX_PDF_ROWS} of {len(rows)} rows. Use Excel or CSV export for complete data.',
                    self.styles['Italic']
                ))

        return self._render(story)


class SaleInvoicePDFExporter(BasePDFExporter):
    """Printable invoice for a single sale."""

    def export(self, sale, company_info: Dict[str, Any]) -> bytes:
        story = [
            Paragraph(company_info.get('name') or 'Invoice', self.styles['CustomTitle']),
            Paragraph(
                ' | '.join(filter(None, [company_info.get('address'), company_info.get('phone')])) or '&nbsp;',
                self.styles['CustomSubtitle'],
            ),
            self._key_value_table([
                ('Invoice Number', sale.invoice_number),
                ('Date', timezone.localtime(sale.created_at)),
                ('Sale Type', sale.get_sale_type_display()),
                ('Agent', sale.agent.name if sale.agent_id else ''),
                ('Payment Method', sale.get_payment_method_display()),
                ('Status', sale.get_status_display()),
            ]),
            Paragraph('Customer', self.styles['SectionHeader']),
            self._key_value_table([
                ('Name', sale.customer.name),
                ('National ID', sale.customer.national_id),
                ('Phone', sale.customer.phone),
                ('Address', sale.customer.address),
            ]),
            Paragraph('Vehicles', self.styles['SectionHeader']),
        ]

        table_data = [['#', 'Brand / Model', 'Chassis Number', 'Motor Fingerprint', 'Price']]
        for index, line in enumerate(sale.items.select_related('inventory_item'), start=1):
            item = line.inventory_item
            table_data.append([
                index,
                f"{item.brand} {item.model}",
                item.chassis_number,
                item.motor_fingerprint,
                format_value(line.sale_price),
            ])
        table_data.append(['', '', '', 'Total', format_value(sale.total_amount)])

        table = Table(table_data, repeatRows=1)
        table.setStyle(TableStyle(GRID_STYLE + [
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('ALIGN', (-1, 0), (-1, -1), 'RIGHT'),
        ]))
        story.append(table)

        if sale.notes:
            story.append(Spacer(1, 12))
            story.append(Paragraph(f"Notes: {sale.notes}", self.styles['Normal']))

        return self._render(story)
