"""
Agent data isolation.

An agent login must only ever reach its own warehouse, stock, sales,
documents and ledger. Company staff without agent access must never
reach agent stock.
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User
from inventory.models import Warehouse
from sales.services import create_agent_sale
from .utils import CUSTOMER, make_user, make_agent_with_login, add_vehicle, stock_agent


class AgentIsolationSecurityTest(TestCase):
    def setUp(self):
        self.manager = make_user(User.ROLE_ADMIN_MANAGER, 'manager@example.com')
        self.main = Warehouse.objects.create(name='Main Warehouse', type=Warehouse.TYPE_MAIN)

        self.cairo = make_agent_with_login('Cairo Agent', '01011111111', 'cairo@example.com', self.manager)
        self.alex = make_agent_with_login('Alex Agent', '01022222222', 'alex@example.com', self.manager)

        self.cairo_item = stock_agent(self.main, self.cairo, 'MTR-CAI-1', '18000.00', self.manager)
        self.alex_item = stock_agent(self.main, self.alex, 'MTR-ALX-1', '19000.00', self.manager)
        self.company_item = add_vehicle(self.main, 'MTR-COM-1', '17000.00', self.manager)

        self.alex_sale = create_agent_sale(self.alex, self.alex_item, Decimal('22000.00'), CUSTOMER,
                                           self.alex.user)

        self.client = APIClient()
        self.client.force_authenticate(self.cairo.user)

    def test_items_limited_to_own_warehouse(self):
        response = self.client.get('/inventory/api/items/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        fingerprints = [row['motor_fingerprint'] for row in response.data['results']]
        self.assertEqual(fingerprints, ['MTR-CAI-1'])

        response = self.client.get(f'/inventory/api/items/{self.company_item.pk}/')
        self.assertIn(response.status_code, (status.HTTP_403_FORBIDDEN, status.HTTP_404_NOT_FOUND))

    def test_warehouses_limited_to_own(self):
        response = self.client.get('/inventory/api/warehouses/')
        ids = [row['id'] for row in response.data['results']]
        self.assertEqual(ids, [str(self.cairo.warehouse_id)])

    def test_transfers_limited_to_own(self):
        response = self.client.get('/inventory/api/transfers/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['to_warehouse'], self.cairo.warehouse_id)

    def test_other_agent_sales_hidden(self):
        response = self.client.get('/sales/api/sales/')
        self.assertEqual(response.data['count'], 0)

        response = self.client.get(f'/sales/api/sales/{self.alex_sale.pk}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_other_agent_documents_hidden(self):
        response = self.client.get('/documents/api/documents/')
        self.assertEqual(response.data['count'], 0)

        response = self.client.get('/documents/api/inquiry/', {'query': 'MTR-ALX'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 0)

    def test_other_agent_ledger_hidden(self):
        response = self.client.get(f'/agents/api/agents/{self.alex.pk}/statement/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.get('/agents/api/transactions/', {'agent': str(self.alex.pk)})
        self.assertEqual(response.data['count'], 0)

    def test_agent_cannot_sell_other_agent_stock(self):
        response = self.client.post('/sales/api/sales/agent/', {
            'item': str(self.company_item.pk),
            'sale_price': '20000.00',
            'customer': CUSTOMER,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_agent_cannot_view_reports(self):
        response = self.client.get('/reports/api/sales/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_sales_employee_cannot_see_agent_stock(self):
        employee = make_user(User.ROLE_SALES_EMPLOYEE, 'seller@example.com')
        self.client.force_authenticate(employee)

        response = self.client.get('/inventory/api/items/')
        fingerprints = {row['motor_fingerprint'] for row in response.data['results']}
        self.assertEqual(fingerprints, {'MTR-COM-1'})
