from datetime import date, timedelta
from decimal import Decimal
from io import BytesIO

from django.test import TestCase
from django.utils import timezone
from openpyxl import load_workbook
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User
from agents.services import create_agent
from inventory.models import Warehouse
from inventory.services import create_item
from inventory.transfer_models import WarehouseTransfer
from sales.models import Sale
from sales.services import create_company_sale, create_agent_sale
from .services import (
    SalesReportBuilder,
    InventoryReportBuilder,
    AgentsReportBuilder,
    DocumentsReportBuilder,
    calculate_growth,
)
from .utils.date_utils import get_date_range, get_previous_range
from .utils.formatting import flatten_summary

CUSTOMER = {
    'name': 'Mona Hassan',
    'phone': '01012345678',
    'national_id': '29001011234567',
    'id_card_front_image_url': 'https://res.cloudinary.com/demo/front.jpg',
}


def vehicle(number, price):
    return {
        'motor_fingerprint': f'MTR-{number}',
        'chassis_number': f'CHS-{number}',
        'brand': 'Haojue',
        'model': 'HJ150',
        'purchase_price': Decimal(price),
    }


class ReportFixtureMixin:
    """
    One company sale (25000, cost 20000), one agent sale (21000, cost 18000,
    10% commission) and one vehicle left in the main warehouse.
    """

    def setUp(self):
        self.owner = User.objects.create_user(
            email='owner@example.com', password='pass12345', name='Owner', role=User.ROLE_SUPER_ADMIN,
        )
        self.main = Warehouse.objects.create(name='Main Warehouse', type=Warehouse.TYPE_MAIN)

        sold = create_item(vehicle(1001, '20000.00'), self.main, created_by=self.owner)
        self.company_sale = create_company_sale(
            [{'item': sold, 'sale_price': Decimal('25000.00')}], CUSTOMER, self.owner,
        )

        self.agent = create_agent(
            name='Cairo Agent', phone='01122334455', created_by=self.owner, commission_rate=Decimal('10'),
        )
        agent_item = create_item(vehicle(2002, '18000.00'), self.main, created_by=self.owner)
        WarehouseTransfer.execute(self.main, self.agent.warehouse, [agent_item], created_by=self.owner)
        self.agent_sale = create_agent_sale(
            self.agent, agent_item, Decimal('21000.00'),
            dict(CUSTOMER, national_id='29101011234567'), self.owner,
        )

        self.in_stock = create_item(vehicle(3003, '15000.00'), self.main, created_by=self.owner)
        self.today = timezone.localdate()


class DateRangeTest(TestCase):
    def test_periods(self):
        today = date(2024, 5, 17)
        self.assertEqual(get_date_range('daily', today=today), (today, today))
        self.assertEqual(get_date_range('weekly', today=today), (date(2024, 5, 10), today))
        self.assertEqual(get_date_range('monthly', today=today), (date(2024, 5, 1), today))
        self.assertEqual(get_date_range('quarterly', today=today), (date(2024, 4, 1), today))
        self.assertEqual(get_date_range('yearly', today=today), (date(2024, 1, 1), today))
        self.assertEqual(get_date_range(None, today=today), (date(2024, 4, 17), today))

    def test_custom_range(self):
        self.assertEqual(
            get_date_range('custom', '2024-01-01', '2024-01-31'),
            (date(2024, 1, 1), date(2024, 1, 31)),
        )
        with self.assertRaises(ValueError):
            get_date_range('custom', 'not-a-date', '2024-01-31')

    def test_previous_range(self):
        self.assertEqual(
            get_previous_range(date(2024, 5, 1), date(2024, 5, 17), 'monthly'),
            (date(2024, 4, 1), date(2024, 4, 17)),
        )
        self.assertEqual(
            get_previous_range(date(2024, 5, 10), date(2024, 5, 17)),
            (date(2024, 5, 2), date(2024, 5, 9)),
        )


class GrowthTest(TestCase):
    def test_trend_thresholds(self):
        self.assertEqual(calculate_growth(110, 100)['trend'], 'up')
        self.assertEqual(calculate_growth(90, 100)['trend'], 'down')
        self.assertEqual(calculate_growth(104, 100)['trend'], 'stable')

        growth = calculate_growth(Decimal('150'), Decimal('100'))
        self.assertEqual(growth['value'], Decimal('50'))
        self.assertEqual(growth['percentage'], Decimal('50.00'))

    def test_zero_previous_has_zero_percentage(self):
        growth = calculate_growth(500, 0)
        self.assertEqual(growth['percentage'], Decimal('0.00'))
        self.assertEqual(growth['trend'], 'stable')


class ReportBuilderTest(ReportFixtureMixin, TestCase):
    def test_sales_summary(self):
        summary = SalesReportBuilder(self.owner, self.today, self.today).build_summary()

        self.assertEqual(summary['total_sales'], 2)
        self.assertEqual(summary['total_amount'], Decimal('46000.00'))
        self.assertEqual(summary['total_commissions'], Decimal('300.00'))
        self.assertEqual(summary['average_order_value'], Decimal('23000.00'))
        self.assertEqual(summary['company_sales_count'], 1)
        self.assertEqual(summary['agent_sales_amount'], Decimal('21000.00'))
        self.assertEqual(summary['top_agent']['name'], 'Cairo Agent')
        self.assertEqual(summary['total_profit'], Decimal('8000.00'))

    def test_cancelled_sales_excluded(self):
        self.company_sale.cancel_sale(user=self.owner, reason='Returned')
        summary = SalesReportBuilder(self.owner, self.today, self.today).build_summary()
        self.assertEqual(summary['total_sales'], 1)

    def test_profit_hidden_from_non_profit_viewers(self):
        employee = User.objects.create_user(
            email='seller@example.com', password='pass12345', name='Seller', role=User.ROLE_SALES_EMPLOYEE,
        )
        report = SalesReportBuilder(employee, self.today, self.today).build()
        self.assertNotIn('total_profit', report['summary'])
        self.assertNotIn('total_profit', report['rows'][0])

    def test_sale_type_filter(self):
        builder = SalesReportBuilder(self.owner, self.today, self.today, filters={'sale_type': Sale.TYPE_AGENT})
        self.assertEqual(builder.build_summary()['total_sales'], 1)

    def test_time_series(self):
        series = SalesReportBuilder(self.owner, self.today, self.today).time_series('day')
        self.assertEqual(len(series), 1)
        self.assertEqual(series[0]['count'], 2)
        self.assertEqual(series[0]['value'], Decimal('46000.00'))

    def test_inventory_summary(self):
        summary = InventoryReportBuilder(self.owner).build_summary()

        self.assertEqual(summary['total_items'], 3)
        self.assertEqual(summary['total_value'], Decimal('15000.00'))
        self.assertEqual(summary['company_items'], 1)
        self.assertIn('Main Warehouse', [row['name'] for row in summary['low_stock_warehouses']])

    def test_agents_summary(self):
        summary = AgentsReportBuilder(self.owner, self.today, self.today).build_summary()

        self.assertEqual(summary['total_agents'], 1)
        self.assertEqual(summary['active_agents'], 1)
        self.assertEqual(summary['total_commissions'], Decimal('300.00'))
        # 18000 transferred plus the 2700 company share of the sale
        self.assertEqual(summary['total_debt'], Decimal('20700.00'))

    def test_documents_summary(self):
        summary = DocumentsReportBuilder(self.owner, self.today, self.today).build_summary()
        self.assertEqual(summary['total_documents'], 2)
        self.assertEqual(summary['pending'], 2)
        self.assertEqual(summary['completed'], 0)

    def test_flatten_summary_for_exports(self):
        pairs = dict(flatten_summary({'growth': {'trend': 'up'}, 'total_sales': 2}))
        self.assertEqual(pairs['Growth - Trend'], 'up')
        self.assertEqual(pairs['Total Sales'], 2)


class ReportAPITest(ReportFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(self.owner)

    def test_sales_report_envelope(self):
        response = self.client.get('/reports/api/sales/', {'period': 'monthly'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['summary']['total_sales'], 2)
        self.assertEqual(response.data['data']['metadata']['period']['name'], 'monthly')
        self.assertEqual(response.data['data']['metadata']['total_records'], 2)

    def test_invalid_period(self):
        response = self.client.get('/reports/api/sales/', {'period': 'hourly'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_PERIOD')

    def test_reversed_custom_range(self):
        response = self.client.get('/reports/api/sales/', {
            'start_date': self.today.isoformat(),
            'end_date': (self.today - timedelta(days=3)).isoformat(),
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'INVALID_DATE_RANGE')

    def test_time_series_group_by(self):
        response = self.client.get('/reports/api/sales/time-series/', {'group_by': 'month'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['summary']['total_count'], 2)

        response = self.client.get('/reports/api/sales/time-series/', {'group_by': 'hour'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_agent_debt_and_statement(self):
        response = self.client.get('/reports/api/agents/debt/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']['results']), 1)

        response = self.client.get(f'/reports/api/agents/{self.agent.pk}/statement/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['summary']['closing_balance'], Decimal('-20700.00'))

    def test_inventory_and_documents_reports(self):
        self.assertEqual(self.client.get('/reports/api/inventory/').status_code, status.HTTP_200_OK)
        response = self.client.get('/reports/api/documents/', {'status': 'pending_submission'})
        self.assertEqual(response.data['data']['summary']['total_documents'], 2)

    def test_sales_employee_forbidden(self):
        employee = User.objects.create_user(
            email='seller@example.com', password='pass12345', name='Seller', role=User.ROLE_SALES_EMPLOYEE,
        )
        self.client.force_authenticate(employee)
        response = self.client.get('/reports/api/sales/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_excel_export(self):
        response = self.client.get('/reports/api/exports/sales/', {'export_format': 'excel'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('attachment', response['Content-Disposition'])
        workbook = load_workbook(BytesIO(response.content))
        self.assertEqual(workbook.sheetnames, ['Summary', 'Detail'])
        self.assertEqual(workbook['Detail'].max_row, 3)

    def test_csv_and_pdf_exports(self):
        response = self.client.get('/reports/api/exports/inventory/', {'export_format': 'csv'})
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertIn('Inventory Report', response.content.decode('utf-8'))

        response = self.client.get('/reports/api/exports/agent-debt/', {'export_format': 'pdf'})
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_statement_export(self):
        response = self.client.get(
            f'/reports/api/exports/agents/{self.agent.pk}/statement/', {'export_format': 'csv'}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('Cairo Agent', response.content.decode('utf-8'))

    def test_export_errors(self):
        response = self.client.get('/reports/api/exports/sales/', {'export_format': 'docx'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/reports/api/exports/unknown/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_sale_invoice_pdf(self):
        response = self.client.get(f'/sales/api/sales/{self.company_sale.pk}/invoice/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
