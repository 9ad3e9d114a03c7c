from django.core.management.base import BaseCommand

from inventory.services import ensure_default_warehouses


class Command(BaseCommand):
    help = 'Create the main and showroom warehouses if they do not exist'

    def handle(self, *args, **options):
        result = ensure_default_warehouses()

        for warehouse in result['created']:
            self.stdout.write(self.style.SUCCESS(f"Created {warehouse.name} ({warehouse.type})"))
        for warehouse in result['existing']:
            self.stdout.write(self.style.NOTICE(f"{warehouse.name} already exists"))

        self.stdout.write(f"{len(result['created'])} created, {len(result['existing'])} existing")
