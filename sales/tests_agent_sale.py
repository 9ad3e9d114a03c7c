from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User
from agents.models import AgentTransaction
from agents.services import create_agent
from inventory.models import Warehouse, InventoryItem
from inventory.services import create_item
from inventory.transfer_models import WarehouseTransfer
from .models import Sale
from .services import create_agent_sale

CUSTOMER = {
    'name': 'Khaled Mostafa',
    'phone': '01234567890',
    'national_id': '29203031234567',
}


class AgentSaleFixtureMixin:
    """An agent holding one vehicle bought for 20000 at a 10% commission rate."""

    def setUp(self):
        self.admin = User.objects.create_user(
            email='manager@example.com', password='testpass123', name='Manager', role=User.ROLE_ADMIN_MANAGER,
        )
        self.main = Warehouse.objects.create(name='Main Warehouse', type=Warehouse.TYPE_MAIN)
        self.agent = create_agent(
            name='Mansoura Agent', phone='01122334455', created_by=self.admin, commission_rate=Decimal('10'),
            user_email='mansoura@example.com', user_password='testpass123',
        )
        self.item = self.stock_agent(1, '20000.00')
        self.agent.refresh_from_db()
        self.balance_after_transfer = self.agent.current_balance

    def stock_agent(self, number, price, commission=None):
        item = create_item({
            'motor_fingerprint': f'MTR-A{number}',
            'chassis_number': f'CHS-A{number}',
            'brand': 'TVS',
            'model': 'Apache',
            'purchase_price': Decimal(price),
        }, self.main, created_by=self.admin)
        rates = {item.pk: commission} if commission is not None else None
        WarehouseTransfer.execute(self.main, self.agent.warehouse, [item], commission_rates=rates,
                                  created_by=self.admin)
        item.refresh_from_db()
        return item


class AgentSaleCommissionTest(AgentSaleFixtureMixin, TestCase):
    def test_commission_split(self):
        sale = create_agent_sale(self.agent, self.item, Decimal('25000.00'), CUSTOMER, self.agent.user)

        self.assertEqual(sale.sale_type, Sale.TYPE_AGENT)
        self.assertRegex(sale.invoice_number, r'^AI-\d{6}-\d{3}$')
        self.assertEqual(sale.total_profit, Decimal('5000.00'))
        self.assertEqual(sale.agent_commission, Decimal('500.00'))
        self.assertEqual(sale.company_share, Decimal('4500.00'))
        self.assertEqual(sale.commission_rate, Decimal('10.00'))

    def test_balance_drops_by_company_share(self):
        sale = create_agent_sale(self.agent, self.item, Decimal('25000.00'), CUSTOMER, self.agent.user)

        self.agent.refresh_from_db()
        self.assertEqual(self.agent.current_balance, self.balance_after_transfer - Decimal('4500.00'))
        self.assertEqual(self.agent.total_sales, Decimal('25000.00'))
        self.assertEqual(self.agent.total_commission, Decimal('500.00'))

        entry = AgentTransaction.objects.get(reference_type='sale', reference_id=sale.id)
        self.assertEqual(entry.type, AgentTransaction.TYPE_DEBT_INCREASE)
        self.assertEqual(entry.amount, Decimal('-4500.00'))
        self.assertEqual(entry.new_balance, entry.previous_balance - Decimal('4500.00'))
        self.assertEqual(entry.commission_amount, Decimal('500.00'))

    def test_one_ledger_entry_per_sale(self):
        sale = create_agent_sale(self.agent, self.item, Decimal('25000.00'), CUSTOMER, self.agent.user)

        entries = AgentTransaction.objects.filter(reference_type='sale', reference_id=sale.id)
        self.assertEqual(entries.count(), 1)
        self.assertFalse(entries.filter(type=AgentTransaction.TYPE_SALE).exists())
        self.assertEqual(entries.get().sale_amount, Decimal('25000.00'))

    def test_item_override_rate(self):
        item = self.stock_agent(2, '10000.00', commission=Decimal('25'))
        sale = create_agent_sale(self.agent, item, Decimal('12000.00'), CUSTOMER, self.admin)

        self.assertEqual(sale.agent_commission, Decimal('500.00'))
        self.assertEqual(sale.company_share, Decimal('1500.00'))

    def test_sale_below_cost_credits_agent(self):
        sale = create_agent_sale(self.agent, self.item, Decimal('18000.00'), CUSTOMER, self.admin)

        self.assertEqual(sale.total_profit, Decimal('-2000.00'))
        self.assertEqual(sale.company_share, Decimal('-1800.00'))
        entry = AgentTransaction.objects.get(reference_type='sale', reference_id=sale.id)
        self.assertEqual(entry.type, AgentTransaction.TYPE_CREDIT)
        self.assertEqual(entry.amount, Decimal('1800.00'))

    def test_rounding_half_up(self):
        item = self.stock_agent(3, '10000.00', commission=Decimal('12.5'))
        sale = create_agent_sale(self.agent, item, Decimal('10000.05'), CUSTOMER, self.admin)

        # 0.05 profit at 12.5% is 0.00625 -> 0.01
        self.assertEqual(sale.agent_commission, Decimal('0.01'))
        self.assertEqual(sale.company_share, Decimal('0.04'))

    def test_item_stays_in_agent_warehouse(self):
        create_agent_sale(self.agent, self.item, Decimal('25000.00'), CUSTOMER, self.admin)

        self.item.refresh_from_db()
        self.assertEqual(self.item.status, InventoryItem.STATUS_SOLD)
        self.assertEqual(self.item.current_warehouse_id, self.agent.warehouse_id)
        self.assertEqual(self.item.sold_to_agent, self.agent)


class AgentSaleValidationTest(AgentSaleFixtureMixin, TestCase):
    def test_item_must_be_in_agent_warehouse(self):
        company_item = create_item({
            'motor_fingerprint': 'MTR-C1', 'chassis_number': 'CHS-C1', 'brand': 'TVS', 'model': 'Apache',
            'purchase_price': Decimal('15000.00'),
        }, self.main, created_by=self.admin)

        with self.assertRaises(ValidationError):
            create_agent_sale(self.agent, company_item, Decimal('18000.00'), CUSTOMER, self.admin)

    def test_inactive_agent_rejected(self):
        self.agent.is_active = False
        self.agent.save()
        with self.assertRaises(ValidationError):
            create_agent_sale(self.agent, self.item, Decimal('25000.00'), CUSTOMER, self.admin)

    def test_agent_cannot_sell_for_another_agent(self):
        other = create_agent(
            name='Aswan Agent', phone='01122334466', created_by=self.admin,
            user_email='aswan@example.com', user_password='testpass123',
        )
        with self.assertRaises(ValidationError):
            create_agent_sale(self.agent, self.item, Decimal('25000.00'), CUSTOMER, other.user)

    def test_failed_sale_leaves_balance_untouched(self):
        with self.assertRaises(ValidationError):
            create_agent_sale(self.agent, self.item, Decimal('0'), CUSTOMER, self.admin)

        self.agent.refresh_from_db()
        self.assertEqual(self.agent.current_balance, self.balance_after_transfer)
        self.assertFalse(AgentTransaction.objects.filter(reference_type='sale').exists())


class CancelAgentSaleTest(AgentSaleFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.sale = create_agent_sale(self.agent, self.item, Decimal('25000.00'), CUSTOMER, self.agent.user)

    def test_cancel_reverses_ledger_and_totals(self):
        self.sale.cancel_sale(user=self.admin, reason='Wrong vehicle')

        self.agent.refresh_from_db()
        self.assertEqual(self.agent.current_balance, self.balance_after_transfer)
        self.assertEqual(self.agent.total_sales, Decimal('0.00'))
        self.assertEqual(self.agent.total_commission, Decimal('0.00'))

        reversal = AgentTransaction.objects.filter(
            reference_type='sale', reference_id=self.sale.id, type=AgentTransaction.TYPE_ADJUSTMENT,
        ).get()
        self.assertEqual(reversal.amount, Decimal('4500.00'))

    def test_cancel_returns_item_to_agent_stock(self):
        self.sale.cancel_sale(user=self.admin, reason='Wrong vehicle')

        self.item.refresh_from_db()
        self.assertEqual(self.item.status, InventoryItem.STATUS_AVAILABLE)
        self.assertEqual(self.item.current_warehouse_id, self.agent.warehouse_id)
        self.assertIsNone(self.item.sold_to_agent)


class AgentSaleAPITest(AgentSaleFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def test_agent_sells_as_themselves(self):
        self.client.force_authenticate(self.agent.user)
        response = self.client.post('/sales/api/sales/agent/', {
            'item': str(self.item.pk),
            'sale_price': '25000.00',
            'customer': CUSTOMER,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['agent_commission'], '500.00')
        self.assertNotIn('company_share', response.data)

    def test_staff_must_name_the_agent(self):
        self.client.force_authenticate(self.admin)
        payload = {'item': str(self.item.pk), 'sale_price': '25000.00', 'customer': CUSTOMER}

        response = self.client.post('/sales/api/sales/agent/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        payload['agent'] = str(self.agent.pk)
        response = self.client.post('/sales/api/sales/agent/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['company_share'], '4500.00')

    def test_agent_cannot_create_company_sale(self):
        self.client.force_authenticate(self.agent.user)
        response = self.client.post('/sales/api/sales/company/', {
            'items': [{'item': str(self.item.pk), 'sale_price': '25000.00'}],
            'customer': CUSTOMER,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_agent_lists_only_own_sales(self):
        other = create_agent(name='Aswan Agent', phone='01122334466', created_by=self.admin)
        other_item = create_item({
            'motor_fingerprint': 'MTR-O1', 'chassis_number': 'CHS-O1', 'brand': 'TVS', 'model': 'Apache',
            'purchase_price': Decimal('15000.00'),
        }, self.main, created_by=self.admin)
        WarehouseTransfer.execute(self.main, other.warehouse, [other_item], created_by=self.admin)
        create_agent_sale(other, other_item, Decimal('17000.00'), CUSTOMER, self.admin)
        own = create_agent_sale(self.agent, self.item, Decimal('25000.00'), CUSTOMER, self.agent.user)

        self.client.force_authenticate(self.agent.user)
        response = self.client.get('/sales/api/sales/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], str(own.pk))
