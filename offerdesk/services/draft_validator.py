"""
Draft validation rules.

Pure functions over in-memory payloads; they run before anything is written.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from offerdesk.exceptions import BreakupTotalMismatchError, StructuralError, ValidationError
from offerdesk.utils.number_format import PRICE_PLACES, QUANTITY_PLACES, to_decimal

REQUIRED_DRAFT_FIELDS = ('from_party', 'origin', 'plant_approval_number', 'brand')


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _product_label(product: Any, position: int) -> str:
    name = product.get('product_name') if isinstance(product, dict) else None
    return f'"{name}"' if name else f'#{position}'


def validate_required_fields(data: Dict[str, Any], fields: Sequence[str] = REQUIRED_DRAFT_FIELDS) -> None:
    """Require every field in ``fields`` to be present and non-blank."""
    missing = [name for name in fields if _is_blank(data.get(name))]
    if missing:
        raise ValidationError(
            'From party, origin, plant approval number, and brand are required',
            payload={'missing': missing}
        )


def validate_products_present(products: Any) -> List[Dict[str, Any]]:
    """Products must be a non-empty list of objects."""
    if products is None or (isinstance(products, (list, tuple)) and len(products) == 0):
        raise ValidationError('At least one product is required')
    if not isinstance(products, (list, tuple)):
        raise StructuralError('Products must be a list')
    for position, product in enumerate(products, start=1):
        if not isinstance(product, dict):
            raise StructuralError(f'Product #{position} must be an object')
    return list(products)


def validate_size_breakups(products: Sequence[Dict[str, Any]], grand_total: Any) -> Decimal:
    """
    Check that the breakup quantities of all products add up to the grand total.

    The rule compares the plain sum of ``breakup`` quantities (not
    quantity times price) with the declared total, exactly.

    Returns:
        The computed sum.

    Raises:
        StructuralError: a product has no ``size_breakups`` list.
        ValidationError: a value is not a non-negative number, a size is
            missing, or the sum differs from the grand total.
    """
    if not isinstance(products, (list, tuple)):
        raise StructuralError('Products must be a list')

    computed = Decimal('0')
    for position, product in enumerate(products, start=1):
        label = _product_label(product, position)
        breakups = product.get('size_breakups') if isinstance(product, dict) else None
        if not isinstance(breakups, (list, tuple)):
            raise StructuralError(f'Product {label} must have a size breakups list')

        for breakup in breakups:
            if not isinstance(breakup, dict):
                raise StructuralError(f'Size breakups of product {label} must be objects')
            if _is_blank(breakup.get('size')):
                raise ValidationError(f'Every size breakup of product {label} needs a size')

            quantity = to_decimal(breakup.get('breakup') or 0, 'breakup', QUANTITY_PLACES)
            price = to_decimal(breakup.get('price'), 'price', PRICE_PLACES)
            if quantity < 0:
                raise ValidationError(f'Breakup for size "{breakup["size"]}" of product {label} cannot be negative')
            if price < 0:
                raise ValidationError(f'Price for size "{breakup["size"]}" of product {label} cannot be negative')
            computed += quantity

    declared = to_decimal(grand_total, 'grand_total', QUANTITY_PLACES)
    if computed != declared:
        raise BreakupTotalMismatchError(computed, declared)
    return computed


def validate_dates(
    offer_validity_date: Optional[date],
    shipment_date: Optional[date],
    today: Optional[date] = None,
    allow_past_validity: bool = False
) -> None:
    """
    Date ordering: validity date not in the past, shipment not before validity.
    """
    today = today or date.today()
    if offer_validity_date and not allow_past_validity and offer_validity_date < today:
        raise ValidationError('Offer validity date cannot be earlier than today.')
    if shipment_date and offer_validity_date and shipment_date < offer_validity_date:
        raise ValidationError('Shipment date cannot be earlier than the offer validity date.')
