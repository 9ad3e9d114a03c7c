from datetime import timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User
from agents.services import create_agent
from inventory.models import Warehouse
from inventory.services import create_item
from inventory.transfer_models import WarehouseTransfer
from notifications.models import Notification
from sales.services import create_company_sale, create_agent_sale
from .models import DocumentTracking
from .services import update_document_status, customer_inquiry
from .tasks import check_overdue_documents

CUSTOMER = {
    'name': 'Mona Hassan',
    'phone': '01012345678',
    'national_id': '29001011234567',
    'id_card_front_image_url': 'https://res.cloudinary.com/demo/front.jpg',
}


class DocumentFixtureMixin:
    def setUp(self):
        self.admin = User.objects.create_user(
            email='admin@example.com', password='pass12345', name='Admin', role=User.ROLE_ADMIN,
        )
        self.main = Warehouse.objects.create(name='Main Warehouse', type=Warehouse.TYPE_MAIN)
        self.item = create_item({
            'motor_fingerprint': 'MTR-1001',
            'chassis_number': 'CHS-1001',
            'brand': 'Haojue',
            'model': 'HJ150',
            'purchase_price': Decimal('20000.00'),
        }, self.main, created_by=self.admin)
        self.sale = create_company_sale(
            [{'item': self.item, 'sale_price': Decimal('25000.00')}], CUSTOMER, self.admin,
        )
        self.document = self.sale.document


class DocumentWorkflowTest(DocumentFixtureMixin, TestCase):
    def test_sale_starts_tracking(self):
        self.assertEqual(self.document.status, DocumentTracking.STATUS_PENDING_SUBMISSION)
        self.assertEqual(self.document.motor_fingerprint, 'MTR-1001')
        self.assertEqual(self.document.customer_name, 'Mona Hassan')
        self.assertEqual(self.document.stages.count(), 1)

    def test_status_moves_forward_with_history(self):
        update_document_status(self.document, DocumentTracking.STATUS_SUBMITTED_TO_MANUFACTURER, self.admin)
        update_document_status(self.document, DocumentTracking.STATUS_RECEIVED_FROM_MANUFACTURER, self.admin,
                               notes='Plates received')

        self.document.refresh_from_db()
        self.assertEqual(self.document.status, DocumentTracking.STATUS_RECEIVED_FROM_MANUFACTURER)
        self.assertEqual(
            list(self.document.stages.order_by('date').values_list('status', flat=True)),
            [
                DocumentTracking.STATUS_PENDING_SUBMISSION,
                DocumentTracking.STATUS_SUBMITTED_TO_MANUFACTURER,
                DocumentTracking.STATUS_RECEIVED_FROM_MANUFACTURER,
            ],
        )

    def test_status_cannot_move_backwards(self):
        update_document_status(self.document, DocumentTracking.STATUS_SENT_TO_POINT_OF_SALE, self.admin)

        with self.assertRaises(ValidationError):
            update_document_status(self.document, DocumentTracking.STATUS_SUBMITTED_TO_MANUFACTURER, self.admin)

    def test_completion_sets_timestamp_and_locks(self):
        update_document_status(self.document, DocumentTracking.STATUS_COMPLETED, self.admin)

        self.document.refresh_from_db()
        self.assertIsNotNone(self.document.completed_at)
        self.assertEqual(self.document.processing_days, 0)
        with self.assertRaises(ValidationError):
            update_document_status(self.document, DocumentTracking.STATUS_COMPLETED, self.admin)

    def test_overdue_detection(self):
        DocumentTracking.objects.filter(pk=self.document.pk).update(
            created_at=timezone.now() - timedelta(days=45)
        )
        self.document.refresh_from_db()

        self.assertTrue(self.document.is_overdue)
        self.assertIn(self.document, DocumentTracking.overdue())

    def test_overdue_task_alerts_admins(self):
        DocumentTracking.objects.filter(pk=self.document.pk).update(
            created_at=timezone.now() - timedelta(days=45)
        )

        result = check_overdue_documents()

        self.assertEqual(result, {'status': 'alerted', 'overdue': 1})
        self.assertTrue(Notification.objects.filter(recipient=self.admin, title='Overdue documents').exists())

    def test_cancel_removes_pending_tracking(self):
        self.sale.cancel_sale(user=self.admin, reason='Customer changed mind')
        self.assertFalse(DocumentTracking.objects.filter(sale=self.sale).exists())


class CustomerInquiryTest(DocumentFixtureMixin, TestCase):
    def test_prefix_match_on_fingerprint_and_chassis(self):
        self.assertEqual(len(customer_inquiry('MTR', self.admin)), 1)
        self.assertEqual(len(customer_inquiry('chs-10', self.admin)), 1)
        self.assertEqual(customer_inquiry('1001', self.admin), [])

    def test_short_query_rejected(self):
        with self.assertRaises(ValidationError):
            customer_inquiry('MT', self.admin)

    def test_agent_only_sees_own_documents(self):
        agent = create_agent(
            name='Cairo Agent', phone='01122334455', created_by=self.admin,
            user_email='agent@example.com', user_password='pass12345',
        )
        self.assertEqual(customer_inquiry('MTR', agent.user), [])

        agent_item = create_item({
            'motor_fingerprint': 'MTR-2002', 'chassis_number': 'CHS-2002',
            'brand': 'Haojue', 'model': 'HJ150', 'purchase_price': Decimal('18000.00'),
        }, self.main, created_by=self.admin)
        WarehouseTransfer.execute(self.main, agent.warehouse, [agent_item], created_by=self.admin)
        create_agent_sale(agent, agent_item, Decimal('21000.00'),
                          dict(CUSTOMER, national_id='29101011234567'), agent.user)

        results = customer_inquiry('MTR', agent.user)
        self.assertEqual([row['motor_fingerprint'] for row in results], ['MTR-2002'])


class DocumentAPITest(DocumentFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

    def test_list_documents(self):
        response = self.client.get('/documents/api/documents/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['invoice_number'], self.sale.invoice_number)

    def test_update_status_endpoint(self):
        response = self.client.post(
            f'/documents/api/documents/{self.document.pk}/update_status/',
            {'status': DocumentTracking.STATUS_SUBMITTED_TO_MANUFACTURER, 'notes': 'Sent by courier'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], DocumentTracking.STATUS_SUBMITTED_TO_MANUFACTURER)
        self.assertEqual(len(response.data['stages']), 2)

    def test_backwards_update_returns_400(self):
        update_document_status(self.document, DocumentTracking.STATUS_COMPLETED, self.admin)
        response = self.client.post(
            f'/documents/api/documents/{self.document.pk}/update_status/',
            {'status': DocumentTracking.STATUS_PENDING_SUBMISSION},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_sales_employee_cannot_view_documents(self):
        employee = User.objects.create_user(
            email='seller@example.com', password='pass12345', name='Seller', role=User.ROLE_SALES_EMPLOYEE,
        )
        self.client.force_authenticate(employee)
        response = self.client.get('/documents/api/documents/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_inquiry_endpoint(self):
        response = self.client.get('/documents/api/inquiry/', {'query': 'MTR-10'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/documents/api/inquiry/', {'query': 'MT'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
