from decimal import Decimal

from django.core.exceptions import ValidationError
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import User
from agents.ledger import recompute_balance
from agents.models import AgentTransaction
from agents.services import create_agent
from inventory.models import Warehouse, InventoryItem, InventoryTransaction
from inventory.services import create_item
from inventory.transfer_models import WarehouseTransfer
from notifications.models import Notification


class TransferDebtTest(APITestCase):
    def setUp(self):
        self.manager = User.objects.create_user(
            email='manager@example.com', password='pass12345', name='Manager', role=User.ROLE_ADMIN_MANAGER,
        )
        self.main = Warehouse.objects.create(name='Main Warehouse', type=Warehouse.TYPE_MAIN)
        self.showroom = Warehouse.objects.create(name='Showroom Warehouse', type=Warehouse.TYPE_SHOWROOM)
        self.alex = create_agent(name='Alex Agent', phone='01000000001', commission_rate=Decimal('15'))
        self.tanta = create_agent(name='Tanta Agent', phone='01000000002', commission_rate=Decimal('10'))

        self.items = [
            create_item({
                'motor_fingerprint': f'MTR-{n}',
                'chassis_number': f'CHS-{n}',
                'brand': 'Haojue',
                'model': 'DK150',
                'purchase_price': Decimal(price),
            }, self.main)
            for n, price in enumerate(['10000.50', '12000.25'])
        ]

    def test_company_to_agent_increases_debt(self):
        transfer = WarehouseTransfer.execute(self.main, self.alex.warehouse, self.items, created_by=self.manager)

        self.alex.refresh_from_db()
        self.assertEqual(transfer.total_value, Decimal('22000.75'))
        self.assertRegex(transfer.reference_number, r'^TR-\d{6}-\d{3,6}$')
        self.assertEqual(self.alex.current_balance, Decimal('-22000.75'))

        entry = self.alex.transactions.get()
        self.assertEqual(entry.type, AgentTransaction.TYPE_DEBT_INCREASE)
        self.assertEqual(entry.amount, Decimal('-22000.75'))
        self.assertEqual(entry.previous_balance, Decimal('0.00'))
        self.assertEqual(entry.new_balance, Decimal('-22000.75'))
        self.assertEqual(entry.reference_id, transfer.id)
        self.assertIn('2 item(s)', entry.description)

        for item in self.items:
            item.refresh_from_db()
            self.assertEqual(item.current_warehouse, self.alex.warehouse)
            self.assertEqual(item.agent_commission_percentage, Decimal('15.00'))

    def test_commission_override_per_item(self):
        rates = {str(self.items[0].pk): Decimal('20')}
        WarehouseTransfer.execute(self.main, self.alex.warehouse, self.items, commission_rates=rates)

        self.items[0].refresh_from_db()
        self.items[1].refresh_from_db()
        self.assertEqual(self.items[0].agent_commission_percentage, Decimal('20.00'))
        self.assertEqual(self.items[1].agent_commission_percentage, Decimal('15.00'))

    def test_agent_to_agent_moves_debt(self):
        WarehouseTransfer.execute(self.main, self.alex.warehouse, self.items)
        WarehouseTransfer.execute(self.alex.warehouse, self.tanta.warehouse, [self.items[0]])

        self.alex.refresh_from_db()
        self.tanta.refresh_from_db()
        self.assertEqual(self.alex.current_balance, Decimal('-12000.25'))
        self.assertEqual(self.tanta.current_balance, Decimal('-10000.50'))
        self.assertEqual(
            self.alex.transactions.filter(type=AgentTransaction.TYPE_DEBT_DECREASE).get().amount,
            Decimal('10000.50'),
        )

    def test_agent_to_company_decreases_debt(self):
        WarehouseTransfer.execute(self.main, self.alex.warehouse, self.items)
        WarehouseTransfer.execute(self.alex.warehouse, self.showroom, self.items)

        self.alex.refresh_from_db()
        self.assertEqual(self.alex.current_balance, Decimal('0.00'))
        self.assertEqual(recompute_balance(self.alex)[2], False)

    def test_company_to_company_has_no_ledger_effect(self):
        WarehouseTransfer.execute(self.main, self.showroom, self.items)

        self.assertFalse(AgentTransaction.objects.exists())
        self.assertTrue(InventoryTransaction.objects.filter(type=InventoryTransaction.TYPE_WAREHOUSE_TRANSFER).exists())

    def test_validation_failures_leave_state_untouched(self):
        with self.assertRaises(ValidationError):
            WarehouseTransfer.execute(self.main, self.main, self.items)
        with self.assertRaises(ValidationError):
            WarehouseTransfer.execute(self.main, self.alex.warehouse, [])

        InventoryItem.objects.filter(pk=self.items[1].pk).update(status=InventoryItem.STATUS_SOLD)
        with self.assertRaises(ValidationError):
            WarehouseTransfer.execute(self.main, self.alex.warehouse, self.items)

        self.assertFalse(WarehouseTransfer.objects.exists())
        self.alex.refresh_from_db()
        self.assertEqual(self.alex.current_balance, Decimal('0.00'))
        self.items[0].refresh_from_db()
        self.assertEqual(self.items[0].current_warehouse, self.main)

    def test_item_not_in_source_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            WarehouseTransfer.execute(self.showroom, self.alex.warehouse, self.items)
        self.assertIn('items', ctx.exception.message_dict)

    def test_transfer_without_user(self):
        transfer = WarehouseTransfer.execute(self.main, self.showroom, [self.items[0]])

        self.assertIsNone(transfer.created_by)
        self.items[0].refresh_from_db()
        self.assertEqual(self.items[0].current_warehouse, self.showroom)

    def test_transfer_notifies_other_admins(self):
        owner = User.objects.create_user(
            email='owner@example.com', password='pass12345', name='Owner', role=User.ROLE_SUPER_ADMIN,
        )
        WarehouseTransfer.execute(self.main, self.alex.warehouse, self.items, created_by=self.manager)

        notifications = Notification.objects.filter(type=Notification.TYPE_INVENTORY_TRANSFERRED)
        self.assertEqual([n.recipient for n in notifications], [owner])

    def test_agent_to_company_notifies_source_agent(self):
        giza = create_agent(name='Giza Agent', phone='01000000003',
                            user_email='giza@example.com', user_password='pass12345')
        WarehouseTransfer.execute(self.main, giza.warehouse, self.items, created_by=self.manager)
        Notification.objects.all().delete()

        WarehouseTransfer.execute(giza.warehouse, self.showroom, [self.items[0]], created_by=self.manager)

        recipients = set(Notification.objects.filter(
            type=Notification.TYPE_INVENTORY_TRANSFERRED,
        ).values_list('recipient', flat=True))
        self.assertEqual(recipients, {giza.user_id})

    def test_agent_to_agent_notifies_source_and_target(self):
        giza = create_agent(name='Giza Agent', phone='01000000003',
                            user_email='giza@example.com', user_password='pass12345')
        aswan = create_agent(name='Aswan Agent', phone='01000000004',
                             user_email='aswan@example.com', user_password='pass12345')
        WarehouseTransfer.execute(self.main, giza.warehouse, self.items, created_by=self.manager)
        Notification.objects.all().delete()

        WarehouseTransfer.execute(giza.warehouse, aswan.warehouse, self.items, created_by=self.manager)

        recipients = set(Notification.objects.values_list('recipient', flat=True))
        self.assertEqual(recipients, {giza.user_id, aswan.user_id})

    def test_transfer_endpoint(self):
        self.client.force_authenticate(self.manager)
        response = self.client.post('/inventory/api/transfers/', {
            'from_warehouse': str(self.main.pk),
            'to_warehouse': str(self.alex.warehouse.pk),
            'items': [str(item.pk) for item in self.items],
            'notes': 'Weekly restock',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_items'], 2)
        self.assertEqual(response.data['total_value'], '22000.75')
        self.alex.refresh_from_db()
        self.assertEqual(self.alex.current_balance, Decimal('-22000.75'))

    def test_transfer_endpoint_requires_permission(self):
        employee = User.objects.create_user(
            email='seller@example.com', password='pass12345', name='Seller', role=User.ROLE_SALES_EMPLOYEE,
        )
        self.client.force_authenticate(employee)
        response = self.client.post('/inventory/api/transfers/', {
            'from_warehouse': str(self.main.pk),
            'to_warehouse': str(self.showroom.pk),
            'items': [str(self.items[0].pk)],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
