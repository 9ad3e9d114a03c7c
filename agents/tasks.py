"""
Celery tasks for the agent ledger
"""
import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name='agents.tasks.reconcile_agent_balances')
def reconcile_agent_balances():
    """
    Rebuild every agent balance from its ledger and report drift.
    Runs nightly.
    """
    from agents.ledger import fix_all_agent_balances

    results = fix_all_agent_balances()
    changed = [row for row in results if row['changed']]
    for row in changed:
        logger.warning(
            "Agent %s balance drifted: %s -> %s",
            row['agent_name'], row['old_balance'], row['new_balance'],
        )
    return {
        'status': 'success',
        'agents_checked': len(results),
        'balances_corrected': len(changed),
    }
