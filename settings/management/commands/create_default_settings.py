from django.core.management.base import BaseCommand
from settings.models import SystemSettings


class Command(BaseCommand):
    help = 'Create the system settings row with defaults if it does not exist'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Overwrite existing settings with the defaults',
        )

    def handle(self, *args, **options):
        exists = SystemSettings.objects.exists()
        settings = SystemSettings.load()

        if options['reset'] and exists:
            settings.reset_to_defaults()
            self.stdout.write(self.style.WARNING('Settings reset to defaults'))
        elif exists:
            self.stdout.write(self.style.NOTICE('Settings already exist'))
        else:
            self.stdout.write(self.style.SUCCESS('Created default settings'))

        business = settings.merged('business')
        self.stdout.write(
            f"  currency={business['currency']} "
            f"commission={business['default_commission_rate']}% "
            f"low_stock_threshold={business['low_stock_threshold']}"
        )
