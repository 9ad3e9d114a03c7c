from copy import deepcopy
from decimal import Decimal

from django.db import models
import uuid


class SystemSettings(models.Model):
    """
    Company-wide settings stored as a single row.

    Uses JSON fields for maximum flexibility without requiring migrations
    when adding new setting options. Missing keys fall back to the
    ``get_default_*`` values.
    """
    SINGLETON_KEY = 'system'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    key = models.CharField(max_length=20, unique=True, default=SINGLETON_KEY, editable=False)

    company_info = models.JSONField(
        default=dict,
        blank=True,
        help_text='Company name, address and contact details printed on documents'
    )

    # Currency, tax, commission and stock thresholds
    business = models.JSONField(
        default=dict,
        blank=True,
        help_text='Business rules including default commission rate and low stock threshold'
    )

    notifications = models.JSONField(
        default=dict,
        blank=True,
        help_text='Which events create in-app notifications'
    )

    ui = models.JSONField(
        default=dict,
        blank=True,
        help_text='Display preferences for the dashboard'
    )

    features = models.JSONField(
        default=dict,
        blank=True,
        help_text='Feature switches'
    )

    updated_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    GROUPS = ('company_info', 'business', 'notifications', 'ui', 'features')

    class Meta:
        db_table = 'system_settings'
        verbose_name = 'System Settings'
        verbose_name_plural = 'System Settings'

    def __str__(self):
        return "System settings"

    @classmethod
    def defaults(cls):
        return {group: getattr(cls, f'get_default_{group}')() for group in cls.GROUPS}

    @classmethod
    def load(cls):
        """Get or create the settings row with defaults"""
        settings, _ = cls.objects.get_or_create(key=cls.SINGLETON_KEY, defaults=cls.defaults())
        return settings

    def reset_to_defaults(self):
        for group, values in self.defaults().items():
            setattr(self, group, values)
        self.save()

    def merged(self, group):
        """Group values layered over the defaults"""
        values = deepcopy(getattr(self, f'get_default_{group}')())
        values.update(getattr(self, group) or {})
        return values

    @staticmethod
    def get_default_company_info():
        """Default company information"""
        return {
            'name': 'Vehicle Trading Co.',
            'address': '',
            'phone': '',
            'email': '',
            'taxNumber': '',
        }

    @staticmethod
    def get_default_business():
        """Default business rules"""
        return {
            'currency': 'EGP',
            'currency_symbol': 'ج.م',
            'tax_rate': 14,
            'default_commission_rate': 10,
            'low_stock_threshold': 5,
        }

    @staticmethod
    def get_default_notifications():
        """Default notification settings"""
        return {
            'saleCreated': True,
            'inventoryTransferred': True,
            'paymentReceived': True,
            'documentStatusUpdated': True,
            'lowInventory': True,
        }

    @staticmethod
    def get_default_ui():
        """Default UI settings"""
        return {
            'language': 'ar',
            'direction': 'rtl',
            'colorScheme': 'light',
            'itemsPerPage': 50,
        }

    @staticmethod
    def get_default_features():
        """Default feature switches"""
        return {
            'imageUpload': True,
            'documentTracking': True,
            'customerInquiry': True,
        }


NUMERIC_BUSINESS_KEYS = ('tax_rate', 'default_commission_rate', 'low_stock_threshold')


def get_business_setting(key, default=None):
    """
    Read one value from the ``business`` group.

    Numeric rates come back as Decimal, ``low_stock_threshold`` as int.
    """
    value = SystemSettings.load().merged('business').get(key, default)
    if value is None or key not in NUMERIC_BUSINESS_KEYS:
        return value
    if key == 'low_stock_threshold':
        return int(value)
    return Decimal(str(value))
