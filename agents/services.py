"""
Agent onboarding and account reporting.

Balance changes live in ``agents.ledger``.
"""
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum

from accounts.models import User, AuditLog
from app.utils import to_money
from .models import Agent, AgentTransaction

logger = logging.getLogger(__name__)


@transaction.atomic
def create_agent(*, name, phone, created_by=None, commission_rate=None, email='', address='',
                 national_id='', notes='', user_email=None, user_password=None):
    """
    Create an agent with its own warehouse.

    When ``user_email`` is given a login with role ``agent`` is created and
    linked. Without it the agent is an offline agent managed by staff.
    """
    from inventory.services import ensure_agent_warehouse
    from settings.models import get_business_setting

    if commission_rate is None:
        commission_rate = get_business_setting('default_commission_rate')

    agent = Agent(
        name=name,
        phone=phone,
        email=email or '',
        address=address or '',
        national_id=national_id or '',
        commission_rate=to_money(commission_rate),
        notes=notes or '',
        created_by=created_by,
    )
    agent.full_clean()

    if user_email:
        if not user_password:
            raise ValidationError({'user_password': 'A password is required to create a login'})
        if User.objects.filter(email__iexact=user_email).exists():
            raise ValidationError({'user_email': 'A user with this email already exists'})
        agent.user = User.objects.create_user(
            email=user_email,
            password=user_password,
            name=name,
            phone=phone,
            role=User.ROLE_AGENT,
            created_by=created_by,
        )

    agent.save()
    ensure_agent_warehouse(agent, created_by=created_by)

    AuditLog.log(created_by, 'CREATE', 'Agent', agent.id, {
        'commission_rate': str(agent.commission_rate),
        'has_user_account': agent.has_user_account,
    })
    logger.info("Agent %s created with %s%% commission", agent.name, agent.commission_rate)
    return agent


def agent_summary(agent):
    from inventory.models import InventoryItem

    available_items = 0
    if agent.warehouse_id:
        available_items = InventoryItem.objects.filter(
            current_warehouse_id=agent.warehouse_id,
            status=InventoryItem.STATUS_AVAILABLE,
        ).count()

    return {
        'agent_id': str(agent.id),
        'name': agent.name,
        'commission_rate': agent.commission_rate,
        'total_sales': agent.total_sales,
        'total_commission': agent.total_commission,
        'total_debt': agent.total_debt,
        'current_balance': agent.current_balance,
        'available_items': available_items,
        'sold_items': agent.sold_items.count(),
        'last_sale_at': agent.last_sale_at,
        'last_settlement_at': agent.last_settlement_at,
    }


def agent_statement(agent, start=None, end=None):
    """
    Ledger entries for a date range with opening and closing balances.

    Args:
        start, end: Optional dates (inclusive)
    """
    entries = AgentTransaction.objects.filter(agent=agent)
    if start:
        entries = entries.filter(created_at__date__gte=start)
    if end:
        entries = entries.filter(created_at__date__lte=end)
    entries = list(entries.select_related('created_by').order_by('created_at'))

    if entries:
        opening_balance = entries[0].previous_balance
        closing_balance = entries[-1].new_balance
    else:
        opening_balance = closing_balance = agent.current_balance

    totals = {}
    for entry in entries:
        totals[entry.type] = totals.get(entry.type, Decimal('0.00')) + entry.amount

    return {
        'agent_id': str(agent.id),
        'agent_name': agent.name,
        'start_date': start,
        'end_date': end,
        'opening_balance': opening_balance,
        'closing_balance': closing_balance,
        'totals_by_type': {key: to_money(value) for key, value in totals.items()},
        'entries': entries,
    }


def debt_report():
    """Agents that owe money, largest debt first."""
    indebted = list(Agent.objects.filter(current_balance__lt=0).order_by('current_balance'))
    total = Agent.objects.filter(current_balance__lt=0).aggregate(total=Sum('current_balance'))['total']
    return {
        'agents': [
            {
                'agent_id': str(agent.id),
                'name': agent.name,
                'phone': agent.phone,
                'current_balance': agent.current_balance,
                'debt': agent.total_debt,
                'last_settlement_at': agent.last_settlement_at,
            }
            for agent in indebted
        ],
        'count': len(indebted),
        'total_debt': abs(to_money(total)),
    }
