from decimal import Decimal
from io import StringIO

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import User
from agents.services import create_agent
from inventory.models import Warehouse, InventoryItem, InventoryTransaction
from inventory.services import (
    ensure_default_warehouses,
    create_item,
    update_item,
    low_stock_warehouses,
)
from inventory.tasks import send_low_stock_alerts
from notifications.models import Notification


def item_data(suffix, price='15000.00', **overrides):
    data = {
        'motor_fingerprint': f'MTR-{suffix}',
        'chassis_number': f'CHS-{suffix}',
        'brand': 'Bajaj',
        'model': 'Boxer 150',
        'color': 'Red',
        'purchase_price': Decimal(price),
    }
    data.update(overrides)
    return data


class DefaultWarehouseTest(TestCase):
    def test_defaults_are_idempotent(self):
        first = ensure_default_warehouses()
        second = ensure_default_warehouses()

        self.assertEqual(len(first['created']), 2)
        self.assertEqual(second['created'], [])
        self.assertEqual(len(second['existing']), 2)
        self.assertEqual(
            set(Warehouse.objects.values_list('type', flat=True)),
            {Warehouse.TYPE_MAIN, Warehouse.TYPE_SHOWROOM},
        )

    def test_management_command(self):
        out = StringIO()
        call_command('create_default_warehouses', stdout=out)
        self.assertIn('2 created', out.getvalue())


class InventoryEntryTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            email='stock@example.com', password='pass12345', name='Stock', role=User.ROLE_ADMIN_MANAGER,
        )
        self.main = Warehouse.objects.create(name='Main Warehouse', type=Warehouse.TYPE_MAIN)

    def test_entry_records_movement_with_reference(self):
        item = create_item(item_data('001'), self.main, created_by=self.user)

        self.assertEqual(item.status, InventoryItem.STATUS_AVAILABLE)
        self.assertRegex(item.entry_reference, r'^IN-\d{6}-\d{3,6}$')
        entry = InventoryTransaction.objects.get(reference_number=item.entry_reference)
        self.assertEqual(entry.type, InventoryTransaction.TYPE_WAREHOUSE_ENTRY)
        self.assertEqual(entry.to_warehouse, self.main)
        self.assertEqual(list(entry.items.all()), [item])

    def test_duplicate_identifiers_rejected(self):
        create_item(item_data('001'), self.main)

        with self.assertRaises(ValidationError) as ctx:
            create_item(item_data('002', motor_fingerprint='mtr-001'), self.main)
        self.assertIn('motor_fingerprint', ctx.exception.message_dict)

        with self.assertRaises(ValidationError) as ctx:
            create_item(item_data('003', chassis_number='CHS-001'), self.main)
        self.assertIn('chassis_number', ctx.exception.message_dict)

    def test_price_and_required_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            create_item(item_data('004', price='0', brand=''), self.main)
        self.assertIn('purchase_price', ctx.exception.message_dict)
        self.assertIn('brand', ctx.exception.message_dict)

    def test_sold_item_only_accepts_notes(self):
        item = create_item(item_data('005'), self.main)
        InventoryItem.objects.filter(pk=item.pk).update(status=InventoryItem.STATUS_SOLD)
        item.refresh_from_db()

        update_item(item, {'notes': 'Registered'})
        self.assertEqual(item.notes, 'Registered')
        with self.assertRaises(ValidationError):
            update_item(item, {'color': 'Blue'})

    def test_low_stock(self):
        showroom = Warehouse.objects.create(name='Showroom Warehouse', type=Warehouse.TYPE_SHOWROOM)
        for n in range(3):
            create_item(item_data(f'10{n}'), self.main)

        rows = low_stock_warehouses(threshold=2)
        self.assertEqual([row['warehouse'] for row in rows], [showroom])
        self.assertEqual(rows[0]['available'], 0)

    def test_low_stock_task_notifies_admins(self):
        result = send_low_stock_alerts(threshold=1)

        self.assertEqual(result['status'], 'alerted')
        self.assertTrue(Notification.objects.filter(
            recipient=self.user, type=Notification.TYPE_LOW_INVENTORY,
        ).exists())


class InventoryAPITest(APITestCase):
    def setUp(self):
        self.manager = User.objects.create_user(
            email='manager@example.com', password='pass12345', name='Manager', role=User.ROLE_ADMIN_MANAGER,
        )
        self.employee = User.objects.create_user(
            email='seller@example.com', password='pass12345', name='Seller', role=User.ROLE_SALES_EMPLOYEE,
        )
        self.main = Warehouse.objects.create(name='Main Warehouse', type=Warehouse.TYPE_MAIN)
        self.agent = create_agent(
            name='Giza Agent', phone='01011112222', created_by=self.manager,
            user_email='giza@example.com', user_password='pass12345',
        )
        self.main_item = create_item(item_data('201'), self.main)
        self.agent_item = create_item(item_data('202'), self.agent.warehouse)

    def test_create_item(self):
        self.client.force_authenticate(self.manager)
        payload = {
            'warehouse': str(self.main.pk),
            'motor_fingerprint': 'MTR-300',
            'chassis_number': 'CHS-300',
            'brand': 'TVS',
            'model': 'Apache',
            'purchase_price': '21000.00',
        }
        response = self.client.post('/inventory/api/items/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], InventoryItem.STATUS_AVAILABLE)
        self.assertTrue(response.data['entry_reference'].startswith('IN-'))

    def test_duplicate_returns_error_envelope(self):
        self.client.force_authenticate(self.manager)
        payload = {
            'warehouse': str(self.main.pk),
            'motor_fingerprint': 'MTR-201',
            'chassis_number': 'CHS-999',
            'brand': 'TVS',
            'model': 'Apache',
            'purchase_price': '21000.00',
        }
        response = self.client.post('/inventory/api/items/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('motor_fingerprint', response.data['details'])

    def test_sales_employee_cannot_create(self):
        self.client.force_authenticate(self.employee)
        response = self.client.post('/inventory/api/items/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_sales_employee_sees_company_stock_only(self):
        self.client.force_authenticate(self.employee)
        response = self.client.get('/inventory/api/items/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [row['id'] for row in response.data['results']]
        self.assertEqual(ids, [str(self.main_item.pk)])
        self.assertNotIn('purchase_price', response.data['results'][0])

    def test_agent_sees_own_warehouse_only(self):
        self.client.force_authenticate(self.agent.user)
        response = self.client.get('/inventory/api/items/')
        ids = [row['id'] for row in response.data['results']]
        self.assertEqual(ids, [str(self.agent_item.pk)])

        response = self.client.get(f'/inventory/api/items/{self.main_item.pk}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_filters(self):
        create_item(item_data('203', brand='TVS', vehicle_type=InventoryItem.VEHICLE_TRICYCLE), self.main)
        self.client.force_authenticate(self.manager)

        response = self.client.get('/inventory/api/items/', {'vehicle_type': 'tricycle'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/inventory/api/items/', {'warehouse': str(self.main.pk)})
        self.assertEqual(response.data['count'], 2)
        response = self.client.get('/inventory/api/items/', {'search': 'chs-20'})
        self.assertEqual(response.data['count'], 3)

    def test_warehouse_list_includes_counts(self):
        self.client.force_authenticate(self.manager)
        response = self.client.get('/inventory/api/warehouses/')

        rows = {row['name']: row for row in response.data['results']}
        self.assertEqual(rows['Main Warehouse']['available_items'], 1)
        self.assertEqual(rows['Giza Agent Warehouse']['agent_name'], 'Giza Agent')

    def test_create_defaults_endpoint(self):
        self.client.force_authenticate(self.manager)
        response = self.client.post('/inventory/api/warehouses/create_defaults/')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([w['name'] for w in response.data['created']], ['Showroom Warehouse'])
        self.assertEqual([w['name'] for w in response.data['existing']], ['Main Warehouse'])

        self.client.force_authenticate(self.employee)
        response = self.client.post('/inventory/api/warehouses/create_defaults/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
