from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User, AuditLog
from agents.services import create_agent
from documents.models import DocumentTracking
from inventory.models import Warehouse, InventoryItem, InventoryTransaction
from inventory.services import create_item
from inventory.transfer_models import WarehouseTransfer
from .models import Customer, Sale
from .services import create_company_sale, resolve_customer

CUSTOMER = {
    'name': 'Ahmed Salah',
    'phone': '01098765432',
    'national_id': '28505051234567',
    'id_card_front_image_url': 'https://res.cloudinary.com/demo/front.jpg',
}


class SaleFixtureMixin:
    def setUp(self):
        self.admin = User.objects.create_user(
            email='manager@example.com', password='testpass123', name='Manager', role=User.ROLE_ADMIN_MANAGER,
        )
        self.employee = User.objects.create_user(
            email='seller@example.com', password='testpass123', name='Seller', role=User.ROLE_SALES_EMPLOYEE,
        )
        self.main = Warehouse.objects.create(name='Main Warehouse', type=Warehouse.TYPE_MAIN)
        self.showroom = Warehouse.objects.create(name='Showroom', type=Warehouse.TYPE_SHOWROOM)
        self.item = self.add_item(1, '20000.00')
        self.second = self.add_item(2, '30000.00', warehouse=self.showroom)

    def add_item(self, number, price, warehouse=None):
        return create_item({
            'motor_fingerprint': f'MTR-{number:04d}',
            'chassis_number': f'CHS-{number:04d}',
            'brand': 'Bajaj',
            'model': 'Boxer',
            'purchase_price': Decimal(price),
        }, warehouse or self.main, created_by=self.admin)


class CompanySaleTest(SaleFixtureMixin, TestCase):
    def test_company_sale_totals(self):
        sale = create_company_sale([
            {'item': self.item, 'sale_price': Decimal('24000.00')},
            {'item': self.second, 'sale_price': Decimal('35500.50')},
        ], CUSTOMER, self.employee)

        self.assertEqual(sale.sale_type, Sale.TYPE_COMPANY)
        self.assertRegex(sale.invoice_number, r'^INV-\d{6}-\d{3}$')
        self.assertEqual(sale.total_amount, Decimal('59500.50'))
        self.assertEqual(sale.total_purchase_cost, Decimal('50000.00'))
        self.assertEqual(sale.total_profit, Decimal('9500.50'))
        self.assertEqual(sale.company_share, Decimal('9500.50'))
        self.assertEqual(sale.agent_commission, Decimal('0.00'))
        self.assertEqual(sale.items.count(), 2)

    def test_items_marked_sold_in_place(self):
        create_company_sale([{'item': self.item, 'sale_price': Decimal('24000.00')}], CUSTOMER, self.employee)

        self.item.refresh_from_db()
        self.assertEqual(self.item.status, InventoryItem.STATUS_SOLD)
        self.assertEqual(self.item.sale_price, Decimal('24000.00'))
        self.assertEqual(self.item.current_warehouse, self.main)
        self.assertIsNotNone(self.item.sold_at)

    def test_side_effects(self):
        sale = create_company_sale([{'item': self.item, 'sale_price': Decimal('24000.00')}], CUSTOMER, self.employee)

        self.assertEqual(sale.document.status, DocumentTracking.STATUS_PENDING_SUBMISSION)
        self.assertTrue(InventoryTransaction.objects.filter(
            type=InventoryTransaction.TYPE_SALE_TO_CUSTOMER, reference_number=sale.invoice_number,
        ).exists())
        self.assertTrue(AuditLog.objects.filter(action='SALE', object_id=sale.id).exists())

    def test_customer_reused_by_national_id(self):
        first = resolve_customer(CUSTOMER)
        second = resolve_customer(dict(CUSTOMER, address='12 Tahrir St'))

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Customer.objects.count(), 1)
        self.assertEqual(second.address, '12 Tahrir St')

    def test_requires_id_card_image(self):
        customer = dict(CUSTOMER, id_card_front_image_url='')
        with self.assertRaises(ValidationError):
            create_company_sale([{'item': self.item, 'sale_price': Decimal('24000.00')}], customer, self.employee)

    def test_rejects_unavailable_and_duplicate_items(self):
        create_company_sale([{'item': self.item, 'sale_price': Decimal('24000.00')}], CUSTOMER, self.employee)

        with self.assertRaises(ValidationError):
            create_company_sale([{'item': self.item, 'sale_price': Decimal('24000.00')}], CUSTOMER, self.employee)
        with self.assertRaises(ValidationError):
            create_company_sale([
                {'item': self.second, 'sale_price': Decimal('1.00')},
                {'item': self.second, 'sale_price': Decimal('1.00')},
            ], CUSTOMER, self.employee)

    def test_rejects_agent_warehouse_items(self):
        agent = create_agent(name='Tanta Agent', phone='01122334455', created_by=self.admin)
        WarehouseTransfer.execute(self.main, agent.warehouse, [self.item], created_by=self.admin)

        with self.assertRaises(ValidationError):
            create_company_sale([{'item': self.item, 'sale_price': Decimal('24000.00')}], CUSTOMER, self.employee)

    def test_failed_sale_rolls_back(self):
        with self.assertRaises(ValidationError):
            create_company_sale([
                {'item': self.item, 'sale_price': Decimal('24000.00')},
                {'item': self.second, 'sale_price': Decimal('0')},
            ], CUSTOMER, self.employee)

        self.item.refresh_from_db()
        self.assertEqual(self.item.status, InventoryItem.STATUS_AVAILABLE)
        self.assertEqual(Sale.objects.count(), 0)


class CancelCompanySaleTest(SaleFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.sale = create_company_sale(
            [{'item': self.item, 'sale_price': Decimal('24000.00')}], CUSTOMER, self.employee,
        )

    def test_cancel_restores_item(self):
        self.sale.cancel_sale(user=self.admin, reason='Customer returned the vehicle')

        self.assertEqual(self.sale.status, Sale.STATUS_CANCELLED)
        self.assertEqual(self.sale.cancelled_by, self.admin)
        self.item.refresh_from_db()
        self.assertEqual(self.item.status, InventoryItem.STATUS_AVAILABLE)
        self.assertIsNone(self.item.sale_price)
        self.assertTrue(InventoryTransaction.objects.filter(
            type=InventoryTransaction.TYPE_RETURN, related_object_id=self.sale.id,
        ).exists())

    def test_cancel_twice_fails(self):
        self.sale.cancel_sale(user=self.admin, reason='Returned')
        with self.assertRaises(ValidationError):
            self.sale.cancel_sale(user=self.admin, reason='Again')

    def test_reason_required(self):
        with self.assertRaises(ValidationError):
            self.sale.cancel_sale(user=self.admin, reason='  ')


class SaleAPITest(SaleFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def company_payload(self, item, price='24000.00'):
        return {
            'items': [{'item': str(item.pk), 'sale_price': price}],
            'customer': CUSTOMER,
            'payment_method': 'cash',
        }

    def test_employee_creates_company_sale(self):
        self.client.force_authenticate(self.employee)
        response = self.client.post('/sales/api/sales/company/', self.company_payload(self.item), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_amount'], '24000.00')
        self.assertEqual(response.data['document_status'], DocumentTracking.STATUS_PENDING_SUBMISSION)
        self.assertNotIn('total_profit', response.data)
        self.assertNotIn('purchase_price', response.data['items'][0])

    def test_manager_sees_profit(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/sales/api/sales/company/', self.company_payload(self.item), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_profit'], '4000.00')

    def test_invalid_customer_phone(self):
        self.client.force_authenticate(self.employee)
        payload = self.company_payload(self.item)
        payload['customer'] = dict(CUSTOMER, phone='12345')
        response = self.client.post('/sales/api/sales/company/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_service_error_envelope(self):
        create_company_sale([{'item': self.item, 'sale_price': Decimal('24000.00')}], CUSTOMER, self.employee)
        self.client.force_authenticate(self.employee)
        response = self.client.post('/sales/api/sales/company/', self.company_payload(self.item), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertIn('items', response.data['details'])

    def test_employee_sees_only_own_sales(self):
        create_company_sale([{'item': self.second, 'sale_price': Decimal('31000.00')}], CUSTOMER, self.admin)
        create_company_sale([{'item': self.item, 'sale_price': Decimal('24000.00')}], CUSTOMER, self.employee)

        self.client.force_authenticate(self.employee)
        response = self.client.get('/sales/api/sales/')
        self.assertEqual(response.data['count'], 1)

        self.client.force_authenticate(self.admin)
        response = self.client.get('/sales/api/sales/')
        self.assertEqual(response.data['count'], 2)

    def test_search_filter(self):
        create_company_sale([{'item': self.item, 'sale_price': Decimal('24000.00')}], CUSTOMER, self.employee)
        create_company_sale([{'item': self.second, 'sale_price': Decimal('31000.00')}],
                            dict(CUSTOMER, national_id='29909091234567', name='Sara Nabil'), self.employee)

        self.client.force_authenticate(self.admin)
        response = self.client.get('/sales/api/sales/', {'search': 'MTR-0002'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['customer']['name'], 'Sara Nabil')

    def test_only_admins_cancel(self):
        sale = create_company_sale([{'item': self.item, 'sale_price': Decimal('24000.00')}], CUSTOMER, self.employee)

        self.client.force_authenticate(self.employee)
        response = self.client.post(f'/sales/api/sales/{sale.pk}/cancel/', {'reason': 'Mistake'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.post(f'/sales/api/sales/{sale.pk}/cancel/', {'reason': 'Mistake'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Sale.STATUS_CANCELLED)

    def test_customer_lookup(self):
        resolve_customer(CUSTOMER)
        self.client.force_authenticate(self.employee)
        response = self.client.get('/sales/api/customers/', {'search': CUSTOMER['national_id'][:6]})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
