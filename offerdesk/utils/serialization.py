"""
Outward-facing serialization.

Models keep exact ``Decimal`` values and ``None`` internally. Everything that
leaves the service layer goes through :func:`serialize` exactly once, which
turns decimals into plain numbers, dates into ISO strings and drops keys whose
value is ``None`` so callers never see a null optional field.
"""
import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any


def decimal_to_number(value: Decimal):
    """Return an int for integral decimals, a float otherwise."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def serialize(value: Any) -> Any:
    """Recursively convert a result structure into plain JSON-ready data."""
    if isinstance(value, dict):
        return {key: serialize(item) for key, item in value.items() if item is not None}
    if isinstance(value, (list, tuple)):
        return [serialize(item) for item in value]
    if isinstance(value, Decimal):
        return decimal_to_number(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value
