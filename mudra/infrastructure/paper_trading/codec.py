"""
Conversions between driver values and domain values.

PostgreSQL hands back ``Decimal`` and ``datetime``; SQLite hands back
ints, floats and ISO strings. Writes always send decimals as strings
and timestamps as ISO-8601 UTC strings so both backends store the
same thing.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional


def to_decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def to_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def decimal_param(value: Decimal) -> str:
    return str(value)


def timestamp_param(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
