"""
Value formatting shared by the file exporters.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Tuple


def format_value(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, Decimal):
        return f"{value:,.2f}"
    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d %H:%M')
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def label(key: str) -> str:
    return key.replace('_', ' ').title()


def flatten_summary(summary: Dict[str, Any], prefix: str = '') -> List[Tuple[str, Any]]:
    """
    Turn a nested summary dict into (label, value) pairs.

    Nested dicts become "Parent - Child" rows; lists of dicts are listed one
    row per entry using their ``name``/``brand`` field.
    """
    pairs = []
    for key, value in summary.items():
        name = f"{prefix}{label(key)}"
        if isinstance(value, dict):
            pairs.extend(flatten_summary(value, prefix=f"{name} - "))
        elif isinstance(value, list):
            for entry in value:
                if isinstance(entry, dict):
                    title = entry.get('name') or entry.get('brand') or ''
                    detail = ', '.join(
                        f"{label(k)}: {format_value(v)}" for k, v in entry.items()
                        if k not in ('name', 'brand') and not k.endswith('_id')
                    )
                    pairs.append((f"{name} - {title}", detail))
                else:
                    pairs.append((name, entry))
        else:
            pairs.append((name, value))
    return pairs
