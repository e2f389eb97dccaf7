"""Number and date parsing utilities for incoming payloads."""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from offerdesk.exceptions import ValidationError

# Column scales: Numeric(14, 3) for quantities and totals, Numeric(14, 2) for prices
NUMERIC_DIGITS = 14
QUANTITY_PLACES = 3
PRICE_PLACES = 2


def to_decimal(value: Any, field: str, places: Optional[int] = None,
               max_digits: int = NUMERIC_DIGITS) -> Decimal:
    """
    Convert a payload value (int, float, str or Decimal) to an exact Decimal.

    Floats go through ``str()`` so ``0.1`` becomes ``Decimal('0.1')``.
    With ``places`` the value must also fit a ``Numeric(max_digits, places)``
    column as is, so nothing gets rounded on the way to the database.

    Raises:
        ValidationError: if the value is missing, not numeric, has more
            decimal places than ``places`` or too many integer digits.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f'{field} must be a number')
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip()
        if not text:
            raise ValidationError(f'{field} must be a number')
        try:
            result = Decimal(text)
        except (InvalidOperation, ValueError):
            raise ValidationError(f'{field} must be a number, got "{value}"')

    if not result.is_finite():
        raise ValidationError(f'{field} must be a finite number')

    if places is not None:
        if abs(result) >= Decimal(10) ** (max_digits - places):
            raise ValidationError(f'{field} is too large, got "{value}"')
        if result != result.quantize(Decimal(1).scaleb(-places)):
            raise ValidationError(f'{field} allows at most {places} decimal places, got "{value}"')
    return result


def format_number(value: Decimal) -> str:
    """
    Display a Decimal without trailing zeros.

    Examples:
        format_number(Decimal('18.000')) -> "18"
        format_number(Decimal('17.50')) -> "17.5"
    """
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), 'f')


def parse_date(value: Any, field: str) -> Optional[date]:
    """
    Parse an ISO date (``YYYY-MM-DD``, optionally with a time part).

    Empty values map to None.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f'{field} must be a date in YYYY-MM-DD format, got "{value}"')


def parse_int(value: Any, field: str) -> int:
    """Parse an integer identifier or counter from a payload value."""
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer')
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer, got "{value}"')
