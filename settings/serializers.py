from decimal import Decimal, InvalidOperation

from rest_framework import serializers
from .models import SystemSettings


def _number(value, field):
    if isinstance(value, bool):
        raise serializers.ValidationError(f"{field} must be a number")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise serializers.ValidationError(f"{field} must be a number")


class SystemSettingsSerializer(serializers.ModelSerializer):
    """
    Serializer for system settings.
    Validates JSON structure for each settings category.
    """

    class Meta:
        model = SystemSettings
        fields = [
            'id',
            'company_info',
            'business',
            'notifications',
            'ui',
            'features',
            'updated_at',
        ]
        read_only_fields = ['id', 'updated_at']

    def validate_business(self, value):
        """Validate business rules"""
        for field in ('default_commission_rate', 'tax_rate'):
            if field in value:
                number = _number(value[field], field)
                if number < 0 or number > 100:
                    raise serializers.ValidationError(f"{field} must be between 0 and 100")

        if 'low_stock_threshold' in value:
            threshold = value['low_stock_threshold']
            if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
                raise serializers.ValidationError(
                    "low_stock_threshold must be a non-negative integer"
                )

        if 'currency' in value and not isinstance(value['currency'], str):
            raise serializers.ValidationError("currency must be a currency code")

        return value

    def validate_notifications(self, value):
        """Validate notification settings"""
        # All notification fields should be boolean
        for key, val in value.items():
            if not isinstance(val, bool):
                raise serializers.ValidationError(
                    f"{key} must be a boolean value"
                )
        return value

    def validate_features(self, value):
        for key, val in value.items():
            if not isinstance(val, bool):
                raise serializers.ValidationError(f"{key} must be a boolean value")
        return value

    def validate_ui(self, value):
        if 'direction' in value and value['direction'] not in ['rtl', 'ltr']:
            raise serializers.ValidationError("direction must be 'rtl' or 'ltr'")
        if 'colorScheme' in value and value['colorScheme'] not in ['light', 'dark', 'auto']:
            raise serializers.ValidationError(
                "colorScheme must be 'light', 'dark', or 'auto'"
            )
        return value
