"""
Helper Utilities Module
Common utility functions used across the application.
"""

from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

import pytz


def safe_get(data: Dict, *keys, default=None) -> Any:
    """
    Safely get nested dictionary value.

    Args:
        data: Dictionary to traverse
        *keys: Keys to follow
        default: Default value if key not found

    Returns:
        Value at path or default
    """
    result = data
    for key in keys:
        if isinstance(result, dict):
            result = result.get(key)
        else:
            return default
        if result is None:
            return default
    return result


def truncate_string(text: Optional[str], max_length: int) -> Optional[str]:
    """
    Cut a string down to its first ``max_length`` characters.

    Unlike display formatting no ellipsis is appended; the stored value is an
    exact prefix of the input.

    Args:
        text: Text to truncate
        max_length: Maximum length

    Returns:
        Truncated string, or None when text is None
    """
    if text is None:
        return None
    return text[:max_length]


def previous_utc_day(now: datetime = None) -> Tuple[datetime, datetime]:
    """
    Get the full previous calendar day in UTC.

    Args:
        now: Reference time (defaults to the current UTC time)

    Returns:
        Tuple of (yesterday 00:00:00, today 00:00:00 minus one microsecond)
    """
    if now is None:
        now = datetime.now(pytz.UTC)
    elif now.tzinfo is None:
        now = pytz.UTC.localize(now)
    else:
        now = now.astimezone(pytz.UTC)

    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start = today - timedelta(days=1)
    end = today - timedelta(microseconds=1)
    return start, end


def parse_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse a money amount into a non-negative Decimal.

    Args:
        value: String or number from the API

    Returns:
        Decimal, or None when absent, unparseable or negative
    """
    if value is None or value == '':
        return None

    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None

    if not amount.is_finite() or amount < 0:
        return None
    return amount


def parse_quantity(value: Any) -> int:
    """
    Parse a stock quantity into a non-negative integer.

    Args:
        value: Quantity from the API

    Returns:
        Integer quantity, 0 when absent or invalid
    """
    if value is None or isinstance(value, bool):
        return 0

    try:
        quantity = int(value)
    except (ValueError, TypeError):
        return 0

    return max(quantity, 0)
