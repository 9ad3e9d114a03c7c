"""
Field validators for customer and agent identity data.
"""
import re

from django.core.exceptions import ValidationError

EGYPTIAN_PHONE_RE = re.compile(r'^(\+201|01)[0-9]{9}$')
NATIONAL_ID_RE = re.compile(r'^[0-9]{14}$')


def is_valid_egyptian_phone(value):
    return bool(value) and EGYPTIAN_PHONE_RE.match(value.strip()) is not None


def is_valid_national_id(value):
    return bool(value) and NATIONAL_ID_RE.match(value.strip()) is not None


def validate_egyptian_phone(value):
    """
    Egyptian mobile number: 01XXXXXXXXX or +201XXXXXXXXX

    Raises:
        ValidationError if the number does not match
    """
    if not is_valid_egyptian_phone(value):
        raise ValidationError(
            "Enter a valid Egyptian phone number (01XXXXXXXXX or +201XXXXXXXXX).",
            code='invalid_phone',
        )


def validate_national_id(value):
    """Egyptian national ID: exactly 14 digits"""
    if not is_valid_national_id(value):
        raise ValidationError(
            "National ID must be exactly 14 digits.",
            code='invalid_national_id',
        )
