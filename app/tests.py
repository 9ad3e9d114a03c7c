from decimal import Decimal
from unittest.mock import patch

import requests
from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User
from sales.validators import validate_egyptian_phone, validate_national_id
from .uploads import upload_image, ImageUploadError
from .utils import generate_reference_number, to_money, validation_error_response

CLOUDINARY = {
    'CLOUDINARY_CLOUD_NAME': 'demo',
    'CLOUDINARY_UPLOAD_PRESET': 'unsigned',
}


class UtilsTest(SimpleTestCase):
    def test_reference_number_prefixes(self):
        self.assertRegex(generate_reference_number('warehouse_entry'), r'^IN-\d{6}-\d{3}$')
        self.assertRegex(generate_reference_number('agent_invoice'), r'^AI-\d{6}-\d{3}$')
        self.assertRegex(generate_reference_number('something_else'), r'^TXN-\d{6}-\d{3}$')

    def test_reference_number_retries_on_collision(self):
        taken = []

        def exists(reference):
            taken.append(reference)
            return len(taken) < 3

        generate_reference_number('sale_to_customer', exists=exists)
        self.assertEqual(len(taken), 3)

    def test_money_rounding(self):
        self.assertEqual(to_money('10.005'), Decimal('10.01'))
        self.assertEqual(to_money(None), Decimal('0.00'))

    def test_validators(self):
        validate_egyptian_phone('01012345678')
        validate_egyptian_phone('+201012345678')
        validate_national_id('29001011234567')
        with self.assertRaises(ValidationError):
            validate_egyptian_phone('0101234567')
        with self.assertRaises(ValidationError):
            validate_national_id('2900101123456X')

    def test_validation_error_envelope(self):
        response = validation_error_response(ValidationError({'item': 'Item not found'}))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertIn('item', response.data['details'])


class UploadImageTest(SimpleTestCase):
    @override_settings(CLOUDINARY_CLOUD_NAME='', CLOUDINARY_UPLOAD_PRESET='')
    def test_disabled_without_credentials(self):
        with self.assertRaises(ImageUploadError):
            upload_image(SimpleUploadedFile('id.jpg', b'data', content_type='image/jpeg'))

    @override_settings(**CLOUDINARY)
    @patch('app.uploads.requests.post')
    def test_returns_secure_url(self, post):
        post.return_value.json.return_value = {'secure_url': 'https://res.cloudinary.com/demo/id.jpg'}

        url = upload_image(SimpleUploadedFile('id.jpg', b'data', content_type='image/jpeg'))

        self.assertEqual(url, 'https://res.cloudinary.com/demo/id.jpg')
        self.assertIn('/demo/image/upload', post.call_args[0][0])

    @override_settings(**CLOUDINARY)
    @patch('app.uploads.requests.post', side_effect=requests.ConnectionError('down'))
    def test_network_failure_raises(self, post):
        with self.assertRaises(ImageUploadError):
            upload_image(SimpleUploadedFile('id.jpg', b'data', content_type='image/jpeg'))


@override_settings(**CLOUDINARY)
class ImageUploadViewTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email='seller@example.com', password='pass12345', name='Seller')
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    @patch('app.views.upload_image', return_value='https://res.cloudinary.com/demo/front.jpg')
    def test_upload(self, upload):
        response = self.client.post('/api/uploads/image/', {
            'image': SimpleUploadedFile('front.jpg', b'data', content_type='image/jpeg'),
        }, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['url'], 'https://res.cloudinary.com/demo/front.jpg')

    def test_rejects_non_images(self):
        response = self.client.post('/api/uploads/image/', {
            'image': SimpleUploadedFile('notes.txt', b'data', content_type='text/plain'),
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @patch('app.views.upload_image', side_effect=ImageUploadError('timeout'))
    def test_upload_failure(self, upload):
        response = self.client.post('/api/uploads/image/', {
            'image': SimpleUploadedFile('front.jpg', b'data', content_type='image/jpeg'),
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)


class CeleryEagerTest(TestCase):
    def test_tasks_run_in_process_under_test(self):
        from django.conf import settings
        from agents.tasks import reconcile_agent_balances
        from .celery import app as celery_app

        self.assertTrue(settings.CELERY_TASK_ALWAYS_EAGER)
        self.assertTrue(celery_app.conf.task_always_eager)

        result = reconcile_agent_balances.delay()
        self.assertEqual(result.get()['status'], 'success')
