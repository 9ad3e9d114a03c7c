from decimal import Decimal
from io import StringIO

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.db import transaction
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User
from inventory.models import Warehouse
from . import ledger
from .models import Agent, AgentTransaction, AccountSettlement
from .services import create_agent, agent_statement, debt_report
from .tasks import reconcile_agent_balances


class AgentFixtureMixin:
    def setUp(self):
        self.admin = User.objects.create_user(
            email='manager@example.com', password='testpass123', name='Manager', role=User.ROLE_ADMIN_MANAGER,
        )
        self.agent = create_agent(name='Luxor Agent', phone='01122334455', created_by=self.admin,
                                  commission_rate=Decimal('8'))


class CreateAgentTest(AgentFixtureMixin, TestCase):
    def test_agent_gets_warehouse(self):
        self.assertIsNotNone(self.agent.warehouse)
        self.assertEqual(self.agent.warehouse.type, Warehouse.TYPE_AGENT)
        self.assertEqual(self.agent.current_balance, Decimal('0.00'))

    def test_default_commission_from_settings(self):
        agent = create_agent(name='Qena Agent', phone='01122334466', created_by=self.admin)
        self.assertEqual(agent.commission_rate, Decimal('10.00'))

    def test_login_account(self):
        agent = create_agent(name='Sohag Agent', phone='01122334477', created_by=self.admin,
                             user_email='sohag@example.com', user_password='testpass123')
        self.assertEqual(agent.user.role, User.ROLE_AGENT)
        self.assertTrue(agent.user.check_password('testpass123'))

    def test_login_requires_password(self):
        with self.assertRaises(ValidationError):
            create_agent(name='Minya Agent', phone='01122334488', user_email='minya@example.com')
        self.assertFalse(Agent.objects.filter(name='Minya Agent').exists())

    def test_invalid_phone(self):
        with self.assertRaises(ValidationError):
            create_agent(name='Bad Phone', phone='555-1234')


class LedgerTest(AgentFixtureMixin, TestCase):
    def test_debt_changes(self):
        ledger.increase_debt(self.agent, Decimal('15000'))
        entry = ledger.decrease_debt(self.agent, Decimal('4000'))

        self.assertEqual(self.agent.current_balance, Decimal('-11000.00'))
        self.assertEqual(entry.previous_balance, Decimal('-15000.00'))
        self.assertEqual(entry.new_balance, Decimal('-11000.00'))
        self.assertEqual(AgentTransaction.objects.filter(agent=self.agent).count(), 2)

    def test_debt_amount_must_be_positive(self):
        with self.assertRaises(ValidationError):
            ledger.increase_debt(self.agent, Decimal('0'))

    def test_payment_and_credit_raise_balance(self):
        ledger.increase_debt(self.agent, Decimal('10000'))
        payment = ledger.record_payment(self.agent, Decimal('-3000'), payment_method='bank_transfer')
        credit = ledger.record_payment(self.agent, Decimal('500'), transaction_type=AgentTransaction.TYPE_CREDIT)

        self.assertEqual(payment.amount, Decimal('3000.00'))
        self.assertEqual(payment.payment_method, 'bank_transfer')
        self.assertEqual(credit.type, AgentTransaction.TYPE_CREDIT)
        self.agent.refresh_from_db()
        self.assertEqual(self.agent.current_balance, Decimal('-6500.00'))

    def test_payment_type_validated(self):
        with self.assertRaises(ValidationError):
            ledger.record_payment(self.agent, Decimal('100'), transaction_type=AgentTransaction.TYPE_DEBT)

    def test_full_settlement(self):
        ledger.increase_debt(self.agent, Decimal('7000'))
        settlement, entry = ledger.settle_account(self.agent, AccountSettlement.TYPE_FULL)

        self.assertEqual(settlement.previous_balance, Decimal('-7000.00'))
        self.assertEqual(settlement.settlement_amount, Decimal('7000.00'))
        self.assertEqual(entry.amount, Decimal('7000.00'))
        self.assertEqual(self.agent.current_balance, Decimal('0.00'))
        self.assertIsNotNone(self.agent.last_settlement_at)

    def test_partial_settlement_moves_toward_zero(self):
        ledger.increase_debt(self.agent, Decimal('7000'))
        ledger.settle_account(self.agent, AccountSettlement.TYPE_PARTIAL, amount=Decimal('2000'))
        self.assertEqual(self.agent.current_balance, Decimal('-5000.00'))

        # Capped at the outstanding amount
        settlement, _ = ledger.settle_account(self.agent, AccountSettlement.TYPE_PARTIAL, amount=Decimal('9000'))
        self.assertEqual(settlement.settlement_amount, Decimal('5000.00'))
        self.assertEqual(self.agent.current_balance, Decimal('0.00'))

    def test_partial_settlement_on_credit_balance(self):
        ledger.record_payment(self.agent, Decimal('1200'))
        ledger.settle_account(self.agent, AccountSettlement.TYPE_PARTIAL, amount=Decimal('200'))
        self.assertEqual(self.agent.current_balance, Decimal('1000.00'))

    def test_adjustment_sets_balance(self):
        ledger.increase_debt(self.agent, Decimal('7000'))
        settlement, entry = ledger.settle_account(self.agent, AccountSettlement.TYPE_ADJUSTMENT, amount=Decimal('-2500'))

        self.assertEqual(settlement.new_balance, Decimal('-2500.00'))
        self.assertEqual(entry.amount, Decimal('4500.00'))

    def test_settlement_without_change_writes_no_entry(self):
        settlement, entry = ledger.settle_account(self.agent, AccountSettlement.TYPE_FULL)
        self.assertIsNone(entry)
        self.assertEqual(settlement.settlement_amount, Decimal('0.00'))

    def test_statement(self):
        ledger.increase_debt(self.agent, Decimal('5000'))
        ledger.record_payment(self.agent, Decimal('2000'))

        statement = agent_statement(self.agent)
        self.assertEqual(statement['opening_balance'], Decimal('0.00'))
        self.assertEqual(statement['closing_balance'], Decimal('-3000.00'))
        self.assertEqual(statement['totals_by_type'][AgentTransaction.TYPE_PAYMENT], Decimal('2000.00'))

    def test_debt_report(self):
        other = create_agent(name='Aswan Agent', phone='01122334466', created_by=self.admin)
        ledger.increase_debt(self.agent, Decimal('1000'))
        ledger.increase_debt(other, Decimal('3000'))

        report = debt_report()
        self.assertEqual(report['count'], 2)
        self.assertEqual(report['total_debt'], Decimal('4000.00'))
        self.assertEqual(report['agents'][0]['name'], 'Aswan Agent')


class LedgerImmutabilityTest(AgentFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.entry = ledger.increase_debt(self.agent, Decimal('2500'))

    def test_entry_cannot_be_resaved(self):
        self.entry.description = 'Edited'
        with self.assertRaises(ValidationError):
            self.entry.save()

    def test_entry_cannot_be_deleted(self):
        with self.assertRaises(ValidationError):
            self.entry.delete()

    def test_queryset_update_and_delete_rejected(self):
        entries = AgentTransaction.objects.filter(agent=self.agent)
        with self.assertRaises(ValidationError):
            entries.update(amount=Decimal('0.00'))
        with self.assertRaises(ValidationError):
            entries.delete()

        self.entry.refresh_from_db()
        self.assertEqual(self.entry.amount, Decimal('-2500.00'))
        self.assertEqual(entries.count(), 1)


class LockAgentsTest(AgentFixtureMixin, TestCase):
    def test_locks_in_primary_key_order(self):
        other = create_agent(name='Aswan Agent', phone='01122334466', created_by=self.admin)

        with transaction.atomic():
            locked = ledger.lock_agents(other, None, self.agent)

        self.assertEqual([agent.pk for agent in locked], sorted([self.agent.pk, other.pk]))


class ReconcileTest(AgentFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        ledger.increase_debt(self.agent, Decimal('8000'))
        ledger.record_payment(self.agent, Decimal('3000'))
        # Simulate drift from a write that bypassed the ledger
        Agent.objects.filter(pk=self.agent.pk).update(current_balance=Decimal('-1.00'))

    def test_recompute_balance(self):
        old_balance, new_balance, changed = ledger.recompute_balance(self.agent)

        self.assertTrue(changed)
        self.assertEqual(old_balance, Decimal('-1.00'))
        self.assertEqual(new_balance, Decimal('-5000.00'))
        self.agent.refresh_from_db()
        self.assertEqual(self.agent.current_balance, Decimal('-5000.00'))

    def test_recompute_is_stable(self):
        ledger.recompute_balance(self.agent)
        _, _, changed = ledger.recompute_balance(self.agent)
        self.assertFalse(changed)

    def test_nightly_task(self):
        result = reconcile_agent_balances()
        self.assertEqual(result, {'status': 'success', 'agents_checked': 1, 'balances_corrected': 1})

    def test_management_command(self):
        out = StringIO()
        call_command('fix_agent_balances', stdout=out)
        self.agent.refresh_from_db()
        self.assertEqual(self.agent.current_balance, Decimal('-5000.00'))


class AgentAPITest(AgentFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

    def test_create_agent(self):
        response = self.client.post('/agents/api/agents/', {
            'name': 'Damietta Agent', 'phone': '01122334499', 'commission_rate': '12.50',
            'user_email': 'damietta@example.com', 'user_password': 'testpass123',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['has_user_account'])
        self.assertEqual(response.data['commission_rate'], '12.50')

    def test_record_payment(self):
        ledger.increase_debt(self.agent, Decimal('5000'))
        response = self.client.post(f'/agents/api/agents/{self.agent.pk}/payments/', {
            'amount': '1500.00', 'payment_method': 'cash',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['new_balance'], '-3500.00')

    def test_settle(self):
        ledger.increase_debt(self.agent, Decimal('5000'))
        response = self.client.post(f'/agents/api/agents/{self.agent.pk}/settle/', {
            'settlement_type': 'partial',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f'/agents/api/agents/{self.agent.pk}/settle/', {
            'settlement_type': 'full', 'notes': 'Cash collected',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['settlement']['new_balance'], '0.00')

    def test_statement_and_summary(self):
        ledger.increase_debt(self.agent, Decimal('5000'))

        response = self.client.get(f'/agents/api/agents/{self.agent.pk}/statement/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['entries']), 1)

        response = self.client.get(f'/agents/api/agents/{self.agent.pk}/summary/')
        self.assertEqual(response.data['total_debt'], Decimal('5000.00'))

    def test_agent_user_sees_only_self(self):
        own = create_agent(name='Giza Agent', phone='01122334466', created_by=self.admin,
                           user_email='giza@example.com', user_password='testpass123')
        ledger.increase_debt(self.agent, Decimal('100'))

        self.client.force_authenticate(own.user)
        response = self.client.get('/agents/api/agents/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Giza Agent')

        response = self.client.get('/agents/api/transactions/')
        self.assertEqual(response.data['count'], 0)

        response = self.client.post(f'/agents/api/agents/{own.pk}/payments/', {'amount': '10.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_sales_employee_denied(self):
        employee = User.objects.create_user(
            email='seller@example.com', password='testpass123', name='Seller', role=User.ROLE_SALES_EMPLOYEE,
        )
        self.client.force_authenticate(employee)
        response = self.client.get('/agents/api/agents/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_debt_report_admin_only(self):
        ledger.increase_debt(self.agent, Decimal('100'))
        response = self.client.get('/agents/api/debt-report/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_fix_balances_super_admin_only(self):
        response = self.client.post('/agents/api/fix-balances/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        owner = User.objects.create_user(
            email='owner@example.com', password='testpass123', name='Owner', role=User.ROLE_SUPER_ADMIN,
        )
        self.client.force_authenticate(owner)
        response = self.client.post('/agents/api/fix-balances/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['changed'], 0)
