# -*- coding: utf-8 -*-
"""
Report utility functions for coercing stored values into report-safe numbers,
dates and paging parameters.

Documents in the storefront collections are written by several clients over
time, so numeric fields can be missing, strings, or garbage. None of these
helpers raise on bad input.
"""

import math
from datetime import date, datetime, timezone
from typing import Any, Optional


def to_amount(value: Any) -> float:
    """Coerce a stored monetary value to a non-negative float (0 on missing/invalid)"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        return 0.0
    return amount


def to_quantity(value: Any) -> float:
    """Order quantity; missing or zero quantities count as a single unit"""
    quantity = to_amount(value)
    return quantity if quantity else 1.0


def parse_positive_int(value: Any, default: int) -> int:
    """Parse a paging parameter, falling back to default and clamping to >= 1"""
    if value is None or value == '':
        return default
    try:
        parsed = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return max(parsed, 1)


def parse_report_date(value: Any) -> Optional[datetime]:
    """
    Parse a stored date into a naive UTC datetime for ordering.

    Accepts datetimes, dates, ISO-8601 strings (with or without a trailing 'Z')
    and epoch milliseconds. Returns None when the value cannot be read.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def format_report_date(value: Any) -> Any:
    """Render datetimes the way the API renders them elsewhere; pass other values through"""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat() + 'Z'
    return value
