from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status
from django.contrib.auth import get_user_model

from .models import SystemSettings, get_business_setting

User = get_user_model()


class SystemSettingsAPITestCase(TestCase):
    """Test cases for System Settings API"""

    def setUp(self):
        """Set up test data"""
        self.client = APIClient()

        self.admin = User.objects.create_user(
            email='owner@example.com',
            password='testpass123',
            name='Owner',
            role=User.ROLE_SUPER_ADMIN,
        )
        self.manager = User.objects.create_user(
            email='manager@example.com',
            password='testpass123',
            name='Manager',
            role=User.ROLE_ADMIN_MANAGER,
        )

        self.client.force_authenticate(user=self.admin)

    def test_get_settings_creates_defaults(self):
        """GET should create settings with defaults if they don't exist"""
        response = self.client.get('/settings/api/settings/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        for group in SystemSettings.GROUPS:
            self.assertIn(group, response.data)

        self.assertEqual(response.data['business']['currency'], 'EGP')
        self.assertEqual(response.data['business']['default_commission_rate'], 10)
        self.assertEqual(response.data['business']['low_stock_threshold'], 5)
        self.assertEqual(response.data['business']['tax_rate'], 14)
        self.assertEqual(SystemSettings.objects.count(), 1)

    def test_patch_merges_group(self):
        """PATCH should keep keys that were not sent"""
        response = self.client.patch(
            '/settings/api/settings/',
            {'business': {'default_commission_rate': 12.5}},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['business']['default_commission_rate'], 12.5)
        self.assertEqual(response.data['business']['currency'], 'EGP')
        self.assertEqual(get_business_setting('default_commission_rate'), Decimal('12.5'))

    def test_invalid_commission_rate_rejected(self):
        response = self.client.patch(
            '/settings/api/settings/',
            {'business': {'default_commission_rate': 150}},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_negative_threshold_rejected(self):
        response = self.client.patch(
            '/settings/api/settings/',
            {'business': {'low_stock_threshold': -1}},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_tax_rate_rejected(self):
        response = self.client.patch(
            '/settings/api/settings/',
            {'business': {'tax_rate': -3}},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_notifications(self):
        """PATCH should update notification settings"""
        response = self.client.patch(
            '/settings/api/settings/',
            {'notifications': {'lowInventory': False}},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['notifications']['lowInventory'])
        self.assertTrue(response.data['notifications']['saleCreated'])

    def test_reset_to_defaults(self):
        """POST reset_to_defaults should restore default settings"""
        self.client.patch(
            '/settings/api/settings/',
            {'business': {'low_stock_threshold': 20}},
            format='json'
        )

        response = self.client.post('/settings/api/settings/reset_to_defaults/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['business']['low_stock_threshold'], 5)
        self.assertEqual(get_business_setting('low_stock_threshold'), 5)

    def test_non_super_admin_can_read_but_not_update(self):
        self.client.force_authenticate(user=self.manager)

        response = self.client.get('/settings/api/settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.patch(
            '/settings/api/settings/',
            {'business': {'tax_rate': 10}},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.post('/settings/api/settings/reset_to_defaults/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unauthorized_access_denied(self):
        """Unauthenticated users should not access settings"""
        self.client.force_authenticate(user=None)

        response = self.client.get('/settings/api/settings/')

        self.assertIn(response.status_code, [status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN])


class BusinessSettingHelperTest(TestCase):
    def test_defaults_without_row(self):
        self.assertEqual(get_business_setting('default_commission_rate'), Decimal('10'))
        self.assertEqual(get_business_setting('currency'), 'EGP')
        self.assertIsNone(get_business_setting('missing'))

    def test_stored_values_override_defaults(self):
        settings = SystemSettings.load()
        settings.business = {'low_stock_threshold': 2}
        settings.save()

        self.assertEqual(get_business_setting('low_stock_threshold'), 2)
        self.assertEqual(get_business_setting('tax_rate'), Decimal('14'))
