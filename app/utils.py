"""
Shared helpers: reference numbers and money rounding.
"""
import random
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional

from django.utils import timezone

TWO_PLACES = Decimal('0.01')

REFERENCE_PREFIXES = {
    'warehouse_entry': 'IN',
    'warehouse_transfer': 'TR',
    'sale_to_customer': 'INV',
    'agent_invoice': 'AI',
    'payment_receipt': 'RCPT',
    'return': 'RET',
}


def to_money(value) -> Decimal:
    """Coerce a number to a Decimal rounded to 2 places (half up)."""
    if value is None:
        return Decimal('0.00')
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def generate_reference_number(
    transaction_type: str,
    exists: Optional[Callable[[str], bool]] = None,
    max_attempts: int = 20,
) -> str:
    """
    Build a reference like ``TR-250314-042``.

    Args:
        transaction_type: Key of REFERENCE_PREFIXES; unknown types use TXN
        exists: Optional predicate used to retry on collision

    Returns:
        The reference number
    """
    prefix = REFERENCE_PREFIXES.get(transaction_type, 'TXN')
    date_part = timezone.localtime().strftime('%y%m%d')

    for _ in range(max_attempts):
        reference = f"{prefix}-{date_part}-{random.randint(0, 999):03d}"
        if exists is None or not exists(reference):
            return reference

    # The 3-digit space for the day is crowded; widen the random part
    while True:
        reference = f"{prefix}-{date_part}-{random.randint(0, 999999):06d}"
        if not exists(reference):
            return reference


def validation_error_response(exc):
    """400 response for a django ValidationError raised by a model or service."""
    from rest_framework import status
    from rest_framework.response import Response

    if hasattr(exc, 'error_dict'):
        details = exc.message_dict
        first = next(iter(details.values()), [''])
        message = first[0] if isinstance(first, list) and first else str(first)
    else:
        details = exc.messages
        message = details[0] if details else str(exc)
    return Response({'error': message, 'details': details}, status=status.HTTP_400_BAD_REQUEST)
