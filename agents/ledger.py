"""
Agent balance ledger.

Every change to ``Agent.current_balance`` goes through ``apply_balance_change``,
which locks the agent row, writes the new balance and appends the matching
AgentTransaction inside one database transaction.

Sign convention: a negative balance is money the agent owes the company.
"""
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from app.utils import to_money
from .models import Agent, AgentTransaction, AccountSettlement

logger = logging.getLogger(__name__)

BALANCE_TOLERANCE = Decimal('0.01')

# Replay effect per entry type when rebuilding a balance from history
SIGNED_TYPES = (
    AgentTransaction.TYPE_COMMISSION,
    AgentTransaction.TYPE_CREDIT,
    AgentTransaction.TYPE_ADJUSTMENT,
    AgentTransaction.TYPE_SETTLEMENT,
)
DEBIT_TYPES = (
    AgentTransaction.TYPE_DEBT,
    AgentTransaction.TYPE_DEBT_INCREASE,
    AgentTransaction.TYPE_TRANSFER_IN,
)
CREDIT_TYPES = (
    AgentTransaction.TYPE_PAYMENT,
    AgentTransaction.TYPE_DEBT_DECREASE,
    AgentTransaction.TYPE_TRANSFER_OUT,
)


def _lock(agent):
    return Agent.objects.select_for_update().get(pk=agent.pk)


def lock_agents(*agents):
    """Lock several agent rows in primary key order; caller must hold a transaction."""
    pks = {agent.pk for agent in agents if agent is not None}
    return list(Agent.objects.select_for_update().filter(pk__in=pks).order_by('pk'))


def _sync(target, source, fields):
    for field in fields:
        setattr(target, field, getattr(source, field))


@transaction.atomic
def apply_balance_change(agent, delta, transaction_type, *, description='', created_by=None,
                         reference_type='', reference_id=None, extra_fields=None, **entry):
    """
    Add ``delta`` to the agent balance and append the ledger entry.

    Args:
        agent: Agent instance; refreshed with the new balance on return
        delta: Signed change to the balance, also stored as the entry amount
        transaction_type: One of AgentTransaction.TYPE_*
        extra_fields: Additional Agent field values saved with the balance
        **entry: Additional AgentTransaction fields (sale_amount, ...)

    Returns:
        AgentTransaction
    """
    delta = to_money(delta)
    locked = _lock(agent)

    previous_balance = locked.current_balance
    locked.current_balance = to_money(previous_balance + delta)

    update_fields = ['current_balance', 'updated_at']
    for field, value in (extra_fields or {}).items():
        setattr(locked, field, value)
        update_fields.append(field)
    locked.save(update_fields=update_fields)

    record = AgentTransaction.objects.create(
        agent=locked,
        type=transaction_type,
        amount=delta,
        description=description,
        previous_balance=previous_balance,
        new_balance=locked.current_balance,
        reference_type=reference_type,
        reference_id=reference_id,
        created_by=created_by,
        **entry,
    )

    _sync(agent, locked, update_fields)

    logger.info(
        "Agent %s balance %s -> %s (%s %s)",
        locked.name, previous_balance, locked.current_balance, transaction_type, delta,
    )
    return record


def increase_debt(agent, amount, **kwargs):
    """Agent owes ``amount`` more: balance decreases."""
    amount = to_money(amount)
    if amount <= 0:
        raise ValidationError({'amount': 'Debt amount must be greater than zero'})
    return apply_balance_change(agent, -amount, AgentTransaction.TYPE_DEBT_INCREASE, **kwargs)


def decrease_debt(agent, amount, **kwargs):
    """Agent owes ``amount`` less: balance increases."""
    amount = to_money(amount)
    if amount <= 0:
        raise ValidationError({'amount': 'Debt amount must be greater than zero'})
    return apply_balance_change(agent, amount, AgentTransaction.TYPE_DEBT_DECREASE, **kwargs)


@transaction.atomic
def record_payment(agent, amount, payment_method='cash', notes='', created_by=None,
                   transaction_type=AgentTransaction.TYPE_PAYMENT):
    """
    Record money received from (payment) or credited to (credit) an agent.

    Both raise the balance by ``abs(amount)``.
    """
    if transaction_type not in (AgentTransaction.TYPE_PAYMENT, AgentTransaction.TYPE_CREDIT):
        raise ValidationError({'type': 'Type must be payment or credit'})

    amount = abs(to_money(amount))
    if amount <= 0:
        raise ValidationError({'amount': 'Amount must be greater than zero'})

    label = 'Payment received' if transaction_type == AgentTransaction.TYPE_PAYMENT else 'Credit'
    description = f"{label} ({payment_method})"
    if notes:
        description = f"{description}: {notes}"

    record = apply_balance_change(
        agent,
        amount,
        transaction_type,
        description=description,
        created_by=created_by,
        reference_type='payment',
        payment_method=payment_method or '',
    )

    from notifications.services import notify_payment_received
    notify_payment_received(agent, record)

    return record


@transaction.atomic
def settle_account(agent, settlement_type, amount=None, notes='', created_by=None):
    """
    Settle an agent account.

    - full: balance becomes zero
    - partial: moves the balance toward zero by at most ``amount``
    - adjustment: balance is set to ``amount``

    Returns:
        (AccountSettlement, AgentTransaction or None)
    """
    locked = _lock(agent)
    old_balance = locked.current_balance

    if settlement_type == AccountSettlement.TYPE_FULL:
        new_balance = Decimal('0.00')
        settlement_amount = abs(old_balance)
    elif settlement_type == AccountSettlement.TYPE_PARTIAL:
        if amount is None or to_money(amount) <= 0:
            raise ValidationError({'amount': 'Partial settlement requires an amount greater than zero'})
        amount = to_money(amount)
        if old_balance < 0:
            settlement_amount = min(amount, abs(old_balance))
            new_balance = old_balance + settlement_amount
        else:
            settlement_amount = min(amount, old_balance)
            new_balance = old_balance - settlement_amount
    elif settlement_type == AccountSettlement.TYPE_ADJUSTMENT:
        if amount is None:
            raise ValidationError({'amount': 'Adjustment requires the new balance amount'})
        new_balance = to_money(amount)
        settlement_amount = abs(new_balance - old_balance)
    else:
        raise ValidationError({'type': f"Unknown settlement type '{settlement_type}'"})

    settlement = AccountSettlement.objects.create(
        agent=locked,
        settlement_type=settlement_type,
        previous_balance=old_balance,
        settlement_amount=to_money(settlement_amount),
        new_balance=to_money(new_balance),
        notes=notes or '',
        created_by=created_by,
    )

    entry = None
    now = timezone.now()
    delta = to_money(new_balance - old_balance)
    description = f"{settlement.get_settlement_type_display()}"
    if notes:
        description = f"{description}: {notes}"

    if delta != 0:
        entry = apply_balance_change(
            agent,
            delta,
            AgentTransaction.TYPE_SETTLEMENT,
            description=description,
            created_by=created_by,
            reference_type='settlement',
            reference_id=settlement.id,
            extra_fields={'last_settlement_at': now},
        )
    else:
        locked.last_settlement_at = now
        locked.save(update_fields=['last_settlement_at', 'updated_at'])
        agent.last_settlement_at = now

    return settlement, entry


def replay_balance(entries):
    """Rebuild a balance from ledger entries in creation order."""
    balance = Decimal('0.00')
    for entry in entries:
        if entry.type in SIGNED_TYPES:
            balance += entry.amount
        elif entry.type in DEBIT_TYPES:
            balance -= abs(entry.amount)
        elif entry.type in CREDIT_TYPES:
            balance += abs(entry.amount)
    return to_money(balance)


@transaction.atomic
def recompute_balance(agent):
    """
    Replay the ledger and store the result when it drifted.

    Returns:
        (old_balance, new_balance, changed)
    """
    locked = _lock(agent)
    entries = AgentTransaction.objects.filter(agent=locked).order_by('created_at')
    old_balance = locked.current_balance
    new_balance = replay_balance(entries)

    changed = abs(new_balance - old_balance) > BALANCE_TOLERANCE
    if changed:
        locked.current_balance = new_balance
        locked.save(update_fields=['current_balance', 'updated_at'])
        agent.current_balance = new_balance
        logger.warning("Agent %s balance corrected from %s to %s", locked.name, old_balance, new_balance)
    return old_balance, new_balance, changed


@transaction.atomic
def recompute_totals(agent):
    """Rebuild total_sales and total_commission from completed agent sales."""
    from sales.models import Sale

    locked = _lock(agent)
    totals = Sale.objects.filter(
        agent=locked,
        sale_type=Sale.TYPE_AGENT,
        status=Sale.STATUS_COMPLETED,
    ).aggregate(sales=Sum('total_amount'), commission=Sum('agent_commission'))

    locked.total_sales = to_money(totals['sales'])
    locked.total_commission = to_money(totals['commission'])
    locked.save(update_fields=['total_sales', 'total_commission', 'updated_at'])
    _sync(agent, locked, ['total_sales', 'total_commission'])
    return locked.total_sales, locked.total_commission


def fix_all_agent_balances():
    """Recompute balances and totals for every agent; returns one row per agent."""
    results = []
    for agent in Agent.objects.all().order_by('name'):
        old_balance, new_balance, changed = recompute_balance(agent)
        total_sales, total_commission = recompute_totals(agent)
        results.append({
            'agent_id': str(agent.id),
            'agent_name': agent.name,
            'old_balance': old_balance,
            'new_balance': new_balance,
            'changed': changed,
            'total_sales': total_sales,
            'total_commission': total_commission,
        })

    fixed = sum(1 for row in results if row['changed'])
    logger.info("Reconciled %s agents, %s balances corrected", len(results), fixed)
    return results
