from django.core.management.base import BaseCommand

from agents.ledger import fix_all_agent_balances


class Command(BaseCommand):
    help = 'Recompute agent balances and sales totals from the ledger'

    def handle(self, *args, **options):
        results = fix_all_agent_balances()

        if not results:
            self.stdout.write(self.style.NOTICE('No agents found'))
            return

        for row in results:
            if row['changed']:
                self.stdout.write(self.style.WARNING(
                    f"✓ {row['agent_name']}: {row['old_balance']} -> {row['new_balance']}"
                ))
            else:
                self.stdout.write(f"  {row['agent_name']}: {row['new_balance']} (unchanged)")

        changed = sum(1 for row in results if row['changed'])
        self.stdout.write('\n' + '=' * 60)
        self.stdout.write(self.style.SUCCESS(
            f'Checked {len(results)} agents, corrected {changed} balances'
        ))
