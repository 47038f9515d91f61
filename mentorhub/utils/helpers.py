from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation


def utc_now():
    """Naive UTC timestamp, the form stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(value):
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        parsed = datetime.strptime(str(value), '%Y-%m-%d')
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_decimal(value):
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise InvalidOperation(value)
    parsed = Decimal(str(value))
    if not parsed.is_finite():
        raise InvalidOperation(value)
    return parsed


def isoformat(value):
    return value.isoformat() if value else None


def money(value):
    return float(value) if value is not None else None
