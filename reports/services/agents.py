"""
Agent reports: overview, debt and per-agent statements.
"""
from decimal import Decimal

from django.db.models import Count, Sum

from agents.models import Agent, AgentTransaction
from agents.services import debt_report, agent_statement
from app.utils import to_money
from sales.models import Sale
from .base import BaseReportBuilder


class AgentsReportBuilder(BaseReportBuilder):
    title = 'Agents Report'
    headers = [
        ('name', 'Agent'),
        ('phone', 'Phone'),
        ('is_active', 'Active'),
        ('commission_rate', 'Commission %'),
        ('sales_count', 'Sales'),
        ('sales_amount', 'Sales Amount'),
        ('commission', 'Commission'),
        ('current_balance', 'Balance'),
    ]

    def agent_sales(self):
        return Sale.objects.filter(
            sale_type=Sale.TYPE_AGENT, status=Sale.STATUS_COMPLETED, **self.date_filter()
        )

    def build_summary(self):
        agents = Agent.objects.all()

        ledger_commissions = AgentTransaction.objects.filter(
            type=AgentTransaction.TYPE_COMMISSION, amount__gt=0, **self.date_filter()
        ).aggregate(total=Sum('amount'))['total']
        sale_commissions = self.agent_sales().aggregate(total=Sum('agent_commission'))['total']
        debt = agents.filter(current_balance__lt=0).aggregate(total=Sum('current_balance'))['total']

        return {
            'total_agents': agents.count(),
            'active_agents': agents.filter(is_active=True).count(),
            'total_commissions': to_money((ledger_commissions or Decimal('0')) + (sale_commissions or Decimal('0'))),
            'total_debt': abs(to_money(debt)),
            'agents_in_debt': agents.filter(current_balance__lt=0).count(),
        }

    def build_rows(self):
        per_agent = {
            row['agent_id']: row
            for row in self.agent_sales().values('agent_id').annotate(
                amount=Sum('total_amount'), commission=Sum('agent_commission'), count=Count('id'),
            )
        }

        rows = []
        for agent in Agent.objects.order_by('name'):
            sales = per_agent.get(agent.id, {})
            rows.append({
                'name': agent.name,
                'phone': agent.phone,
                'is_active': agent.is_active,
                'commission_rate': agent.commission_rate,
                'sales_count': sales.get('count', 0),
                'sales_amount': to_money(sales.get('amount')),
                'commission': to_money(sales.get('commission')),
                'current_balance': agent.current_balance,
            })
        return rows


class AgentDebtReportBuilder(BaseReportBuilder):
    """Agents currently owing money, largest debt first."""
    title = 'Agent Debt Report'
    uses_date_range = False
    headers = [
        ('name', 'Agent'),
        ('phone', 'Phone'),
        ('current_balance', 'Balance'),
        ('debt', 'Debt'),
        ('last_settlement_at', 'Last Settlement'),
    ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._report = debt_report()

    def build_summary(self):
        return {'agents_in_debt': self._report['count'], 'total_debt': self._report['total_debt']}

    def build_rows(self):
        return [
            {key: row[key] for key, _ in self.headers}
            for row in self._report['agents']
        ]


class AgentStatementBuilder(BaseReportBuilder):
    """Ledger entries for one agent with opening and closing balances."""
    title = 'Agent Statement'
    headers = [
        ('date', 'Date'),
        ('type', 'Type'),
        ('description', 'Description'),
        ('amount', 'Amount'),
        ('previous_balance', 'Balance Before'),
        ('new_balance', 'Balance After'),
    ]

    def __init__(self, user, agent, *args, **kwargs):
        super().__init__(user, *args, **kwargs)
        self.agent = agent
        self.title = f'Agent Statement - {agent.name}'
        self._statement = agent_statement(agent, self.start, self.end)

    def build_summary(self):
        statement = self._statement
        return {
            'agent_id': statement['agent_id'],
            'agent_name': statement['agent_name'],
            'opening_balance': statement['opening_balance'],
            'closing_balance': statement['closing_balance'],
            'totals_by_type': statement['totals_by_type'],
            'entries': len(statement['entries']),
        }

    def build_rows(self):
        return [
            {
                'date': entry.created_at.strftime('%Y-%m-%d %H:%M'),
                'type': entry.type,
                'description': entry.description,
                'amount': entry.amount,
                'previous_balance': entry.previous_balance,
                'new_balance': entry.new_balance,
            }
            for entry in self._statement['entries']
        ]
