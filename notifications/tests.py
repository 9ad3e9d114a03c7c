from datetime import timedelta
from unittest import mock

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User
from settings.models import SystemSettings
from .models import Notification
from .services import notify_roles, notify_user, cleanup_expired, non_fatal
from .tasks import cleanup_expired_notifications


class NotificationServiceTest(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(
            email='owner@example.com', password='pass12345', name='Owner', role=User.ROLE_SUPER_ADMIN,
        )
        self.manager = User.objects.create_user(
            email='manager@example.com', password='pass12345', name='Manager', role=User.ROLE_ADMIN_MANAGER,
        )
        self.inactive = User.objects.create_user(
            email='old@example.com', password='pass12345', name='Old', role=User.ROLE_ADMIN_MANAGER,
            is_active=False,
        )
        self.employee = User.objects.create_user(
            email='employee@example.com', password='pass12345', name='Employee',
        )

    def test_notify_roles_targets_active_users_only(self):
        sent = notify_roles([User.ROLE_SUPER_ADMIN, User.ROLE_ADMIN_MANAGER],
                            Notification.TYPE_GENERAL, 'Hello', 'Message')

        self.assertEqual(len(sent), 2)
        recipients = set(Notification.objects.values_list('recipient__email', flat=True))
        self.assertEqual(recipients, {'owner@example.com', 'manager@example.com'})

    def test_notify_roles_can_exclude_actor(self):
        notify_roles([User.ROLE_SUPER_ADMIN, User.ROLE_ADMIN_MANAGER],
                     Notification.TYPE_GENERAL, 'Hello', 'Message', exclude=self.owner)
        self.assertFalse(Notification.objects.filter(recipient=self.owner).exists())

    def test_disabled_type_is_not_sent(self):
        settings = SystemSettings.load()
        settings.notifications = {'lowInventory': False}
        settings.save()

        sent = notify_user(self.owner, Notification.TYPE_LOW_INVENTORY, 'Low', 'Low stock')

        self.assertIsNone(sent)
        self.assertEqual(Notification.objects.count(), 0)

    def test_cleanup_removes_only_expired(self):
        old = notify_user(self.owner, Notification.TYPE_GENERAL, 'Old', 'Old')
        Notification.objects.filter(pk=old.pk).update(expires_at=timezone.now() - timedelta(days=1))
        notify_user(self.owner, Notification.TYPE_GENERAL, 'New', 'New')

        self.assertEqual(cleanup_expired(), 1)
        self.assertEqual(Notification.objects.count(), 1)

    def test_cleanup_task(self):
        old = notify_user(self.owner, Notification.TYPE_GENERAL, 'Old', 'Old')
        Notification.objects.filter(pk=old.pk).update(expires_at=timezone.now() - timedelta(hours=1))

        self.assertEqual(cleanup_expired_notifications(), {'deleted': 1})

    def test_failures_are_logged_not_raised(self):
        @non_fatal
        def broken():
            raise RuntimeError('boom')

        with mock.patch('notifications.services.logger') as logger:
            self.assertEqual(broken(), [])
            logger.exception.assert_called_once()


class NotificationAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            email='manager@example.com', password='pass12345', name='Manager', role=User.ROLE_ADMIN_MANAGER,
        )
        self.other = User.objects.create_user(
            email='other@example.com', password='pass12345', name='Other', role=User.ROLE_ADMIN_MANAGER,
        )
        self.first = notify_user(self.user, Notification.TYPE_SALE_CREATED, 'Sale', 'A sale')
        self.second = notify_user(self.user, Notification.TYPE_GENERAL, 'Hi', 'General')
        notify_user(self.other, Notification.TYPE_GENERAL, 'Not yours', 'Other')
        self.client.force_authenticate(user=self.user)

    def test_list_own_notifications(self):
        response = self.client.get('/notifications/api/notifications/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

    def test_filter_by_type(self):
        response = self.client.get('/notifications/api/notifications/', {'type': 'sale_created'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['title'], 'Sale')

    def test_mark_read_and_unread_count(self):
        response = self.client.post(f'/notifications/api/notifications/{self.first.id}/mark_read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_read'])

        response = self.client.get('/notifications/api/notifications/unread_count/')
        self.assertEqual(response.data['unread_count'], 1)

        response = self.client.get('/notifications/api/notifications/', {'is_read': 'true'})
        self.assertEqual(response.data['count'], 1)

    def test_mark_all_read(self):
        response = self.client.post('/notifications/api/notifications/mark_all_read/')
        self.assertEqual(response.data['updated'], 2)
        self.assertEqual(Notification.objects.filter(recipient=self.other, is_read=False).count(), 1)

    def test_cannot_read_other_users_notification(self):
        foreign = Notification.objects.get(recipient=self.other)
        response = self.client.post(f'/notifications/api/notifications/{foreign.id}/mark_read/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
