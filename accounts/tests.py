from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from agents.services import create_agent
from inventory.models import Warehouse
from inventory.services import create_item
from .models import User, AuditLog
from .permissions import (
    has_permission,
    can_view_profits,
    can_only_sell_from_company,
    can_view_reports,
    can_manage_settings,
    can_agent_access,
    is_admin_or_higher,
)
from .rbac import permissions_for_role, PERMISSION_CODENAMES


def make_user(role, email=None, **extra):
    return User.objects.create_user(
        email=email or f'{role}@example.com', password='testpass123', name=role.replace('_', ' ').title(),
        role=role, **extra
    )


class UserModelTest(TestCase):
    """Test cases for User model"""

    def test_default_role_is_sales_employee(self):
        user = User.objects.create_user(email='new@example.com', password='testpass123', name='New')
        self.assertEqual(user.role, User.ROLE_SALES_EMPLOYEE)
        self.assertTrue(user.check_password('testpass123'))

    def test_superuser_is_super_admin(self):
        user = User.objects.create_superuser(email='root@example.com', password='testpass123', name='Root')
        self.assertEqual(user.role, User.ROLE_SUPER_ADMIN)
        self.assertTrue(user.is_staff)

    def test_agent_property(self):
        owner = make_user(User.ROLE_SUPER_ADMIN)
        agent = create_agent(
            name='Giza Agent', phone='01122334455', created_by=owner,
            user_email='giza@example.com', user_password='testpass123',
        )
        self.assertEqual(agent.user.agent, agent)
        self.assertIsNone(owner.agent)

    def test_audit_log_ignores_anonymous(self):
        from django.contrib.auth.models import AnonymousUser

        entry = AuditLog.log(AnonymousUser(), 'LOGIN', 'User')
        self.assertIsNone(entry.user)


class RolePermissionTest(TestCase):
    def test_super_admin_has_everything(self):
        owner = make_user(User.ROLE_SUPER_ADMIN)
        self.assertEqual(permissions_for_role(User.ROLE_SUPER_ADMIN), PERMISSION_CODENAMES)
        self.assertTrue(has_permission(owner, 'agents.fix_balances'))
        self.assertTrue(can_view_reports(owner))
        self.assertTrue(can_manage_settings(owner))
        self.assertTrue(can_view_profits(owner))

    def test_admin_manager(self):
        manager = make_user(User.ROLE_ADMIN_MANAGER)
        self.assertTrue(has_permission(manager, 'inventory.transfer'))
        self.assertTrue(can_view_profits(manager))
        self.assertTrue(is_admin_or_higher(manager))
        self.assertFalse(can_view_reports(manager))
        self.assertFalse(can_manage_settings(manager))

    def test_legacy_admin_views_reports(self):
        admin = make_user(User.ROLE_ADMIN)
        self.assertTrue(can_view_reports(admin))
        self.assertFalse(can_manage_settings(admin))

    def test_sales_employee(self):
        employee = make_user(User.ROLE_SALES_EMPLOYEE)
        self.assertTrue(can_only_sell_from_company(employee))
        self.assertTrue(has_permission(employee, 'sales.create_company_sale'))
        self.assertFalse(has_permission(employee, 'sales.create_agent_sale'))
        self.assertFalse(can_view_profits(employee))
        self.assertFalse(is_admin_or_higher(employee))

    def test_agent_composites(self):
        agent_user = make_user(User.ROLE_AGENT)
        self.assertTrue(has_permission(agent_user, 'sales.create_agent_sale'))
        self.assertTrue(has_permission(agent_user, 'agents.browse'))
        self.assertTrue(has_permission(agent_user, 'documents.browse'))
        self.assertFalse(has_permission(agent_user, 'sales.create_company_sale'))

    def test_inactive_user_has_no_permissions(self):
        owner = make_user(User.ROLE_SUPER_ADMIN, is_active=False)
        self.assertFalse(has_permission(owner, 'inventory.view'))


class AgentScopingTest(TestCase):
    def setUp(self):
        self.owner = make_user(User.ROLE_SUPER_ADMIN)
        self.agent = create_agent(
            name='Giza Agent', phone='01122334455', created_by=self.owner,
            user_email='giza@example.com', user_password='testpass123',
        )
        self.other = create_agent(name='Alex Agent', phone='01122334466', created_by=self.owner)
        main = Warehouse.objects.create(name='Main Warehouse', type=Warehouse.TYPE_MAIN)
        self.company_item = create_item({
            'motor_fingerprint': 'MTR-1', 'chassis_number': 'CHS-1', 'brand': 'Haojue', 'model': 'HJ150',
            'purchase_price': Decimal('15000.00'),
        }, main, created_by=self.owner)
        self.own_item = create_item({
            'motor_fingerprint': 'MTR-2', 'chassis_number': 'CHS-2', 'brand': 'Haojue', 'model': 'HJ150',
            'purchase_price': Decimal('15000.00'),
        }, self.agent.warehouse, created_by=self.owner)

    def test_agent_limited_to_own_warehouse(self):
        self.assertTrue(can_agent_access(self.agent.user, 'inventory', self.own_item))
        self.assertFalse(can_agent_access(self.agent.user, 'inventory', self.company_item))

    def test_non_agents_unrestricted(self):
        self.assertTrue(can_agent_access(self.owner, 'inventory', self.company_item))

    def test_unknown_resource_type_denied(self):
        self.assertFalse(can_agent_access(self.agent.user, 'settings', self.own_item))


class AuthenticationAPITest(APITestCase):
    def setUp(self):
        self.user = make_user(User.ROLE_ADMIN_MANAGER, email='manager@example.com')

    def test_login_returns_token_and_permissions(self):
        response = self.client.post('/accounts/api/auth/login/', {
            'email': 'manager@example.com', 'password': 'testpass123',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['token'], Token.objects.get(user=self.user).key)
        self.assertEqual(response.data['user']['role'], User.ROLE_ADMIN_MANAGER)
        self.assertIn('inventory.transfer', response.data['user']['permissions'])
        self.assertTrue(AuditLog.objects.filter(user=self.user, action='LOGIN').exists())

    def test_login_rejects_bad_password(self):
        response = self.client.post('/accounts/api/auth/login/', {
            'email': 'manager@example.com', 'password': 'wrong-password',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_rejects_disabled_account(self):
        self.user.is_active = False
        self.user.save()
        response = self.client.post('/accounts/api/auth/login/', {
            'email': 'manager@example.com', 'password': 'testpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_token_authenticates_me(self):
        token = Token.objects.create(user=self.user)
        self.client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')

        response = self.client.get('/accounts/api/users/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'manager@example.com')

    def test_logout_deletes_token(self):
        token = Token.objects.create(user=self.user)
        self.client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')

        response = self.client.post('/accounts/api/auth/logout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Token.objects.filter(user=self.user).exists())

    def test_change_password(self):
        self.client.force_authenticate(self.user)
        response = self.client.post('/accounts/api/auth/change-password/', {
            'old_password': 'testpass123', 'new_password': 'newpass12345',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('newpass12345'))


class UserManagementAPITest(APITestCase):
    def setUp(self):
        self.owner = make_user(User.ROLE_SUPER_ADMIN)
        self.manager = make_user(User.ROLE_ADMIN_MANAGER)
        self.client.force_authenticate(self.owner)

    def test_super_admin_creates_user(self):
        response = self.client.post('/accounts/api/users/', {
            'name': 'Showroom Seller', 'email': 'seller@example.com', 'phone': '01012345678',
            'role': User.ROLE_SALES_EMPLOYEE, 'password': 'testpass123',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        created = User.objects.get(email='seller@example.com')
        self.assertEqual(created.created_by, self.owner)
        self.assertTrue(AuditLog.objects.filter(action='CREATE', object_id=str(created.id)).exists())

    def test_password_required_on_create(self):
        response = self.client.post('/accounts/api/users/', {
            'name': 'No Password', 'email': 'nopass@example.com', 'role': User.ROLE_SALES_EMPLOYEE,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_manager_cannot_manage_users(self):
        self.client.force_authenticate(self.manager)
        response = self.client.get('/accounts/api/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_deactivates(self):
        response = self.client.delete(f'/accounts/api/users/{self.manager.pk}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.manager.refresh_from_db()
        self.assertFalse(self.manager.is_active)

    def test_cannot_deactivate_self(self):
        response = self.client.post(f'/accounts/api/users/{self.owner.pk}/deactivate/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_audit_logs_scoped_for_non_admins(self):
        employee = make_user(User.ROLE_SALES_EMPLOYEE)
        AuditLog.log(self.owner, 'UPDATE', 'User', self.manager.id)
        AuditLog.log(employee, 'LOGIN', 'User', employee.id)

        self.client.force_authenticate(employee)
        response = self.client.get('/accounts/api/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
