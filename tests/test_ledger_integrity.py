"""
Agent ledger integrity across transfers, sales, cancellations, payments
and settlements. After any mix of operations the stored balance must equal
the replayed ledger and each entry must chain from the previous one.
"""
from decimal import Decimal

from django.test import TestCase

from accounts.models import User
from agents import ledger
from agents.models import AgentTransaction, AccountSettlement
from inventory.models import Warehouse
from inventory.transfer_models import WarehouseTransfer
from reports.services.agents import AgentStatementBuilder
from sales.services import create_agent_sale
from .utils import CUSTOMER, make_user, make_agent_with_login, add_vehicle, stock_agent


class LedgerIntegrityTest(TestCase):
    def setUp(self):
        self.manager = make_user(User.ROLE_ADMIN_MANAGER, 'manager@example.com')
        self.main = Warehouse.objects.create(name='Main Warehouse', type=Warehouse.TYPE_MAIN)
        self.showroom = Warehouse.objects.create(name='Showroom Warehouse', type=Warehouse.TYPE_SHOWROOM)
        self.agent = make_agent_with_login('Zagazig Agent', '01033333333', 'zagazig@example.com', self.manager,
                                           commission_rate=Decimal('10'))
        self.other = make_agent_with_login('Ismailia Agent', '01044444444', 'ismailia@example.com', self.manager)

    def run_business_day(self):
        first = stock_agent(self.main, self.agent, 'MTR-Z-1', '20000.00', self.manager)
        second = stock_agent(self.main, self.agent, 'MTR-Z-2', '15000.00', self.manager)
        third = stock_agent(self.main, self.agent, 'MTR-Z-3', '12500.50', self.manager)

        sale = create_agent_sale(self.agent, first, Decimal('23000.00'), CUSTOMER, self.agent.user)
        create_agent_sale(self.agent, second, Decimal('14000.00'), CUSTOMER, self.agent.user)
        sale.cancel_sale(user=self.manager, reason='Customer changed their mind')

        WarehouseTransfer.execute(self.agent.warehouse, self.other.warehouse, [third], created_by=self.manager)
        returned = add_vehicle(self.main, 'MTR-Z-4', '9000.00', self.manager)
        WarehouseTransfer.execute(self.main, self.agent.warehouse, [returned], created_by=self.manager)
        WarehouseTransfer.execute(self.agent.warehouse, self.showroom, [returned], created_by=self.manager)

        ledger.record_payment(self.agent, Decimal('5000.00'), payment_method='bank_transfer',
                              created_by=self.manager)
        ledger.settle_account(self.agent, AccountSettlement.TYPE_PARTIAL, amount=Decimal('1000.00'),
                              created_by=self.manager)
        self.agent.refresh_from_db()

    def test_balance_matches_replayed_ledger(self):
        self.run_business_day()

        entries = AgentTransaction.objects.filter(agent=self.agent).order_by('created_at')
        self.assertEqual(ledger.replay_balance(entries), self.agent.current_balance)
        _, _, changed = ledger.recompute_balance(self.agent)
        self.assertFalse(changed)

    def test_entries_chain(self):
        self.run_business_day()

        previous = Decimal('0.00')
        for entry in AgentTransaction.objects.filter(agent=self.agent).order_by('created_at'):
            self.assertEqual(entry.previous_balance, previous)
            self.assertEqual(entry.new_balance, entry.previous_balance + entry.amount)
            previous = entry.new_balance
        self.assertEqual(previous, self.agent.current_balance)

    def test_expected_closing_balance(self):
        self.run_business_day()

        # Stocked 47500.50 + 9000, cancelled sale nets to zero, loss sale credits 900,
        # 12500.50 and 9000 moved back out, paid 5000, settled 1000
        self.assertEqual(self.agent.current_balance, Decimal('-28100.00'))
        self.assertEqual(self.agent.total_sales, Decimal('14000.00'))

        self.other.refresh_from_db()
        self.assertEqual(self.other.current_balance, Decimal('-12500.50'))

    def test_statement_report_agrees_with_agent(self):
        self.run_business_day()

        report = AgentStatementBuilder(self.manager, self.agent).build()
        self.assertEqual(report['summary']['closing_balance'], self.agent.current_balance)
        self.assertEqual(len(report['rows']), AgentTransaction.objects.filter(agent=self.agent).count())
