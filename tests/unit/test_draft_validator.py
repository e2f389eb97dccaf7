"""
Unit tests for the draft validation rules.
"""

import pytest
from datetime import date
from decimal import Decimal

from offerdesk.exceptions import BreakupTotalMismatchError, StructuralError, ValidationError
from offerdesk.services.draft_validator import (
    validate_dates,
    validate_products_present,
    validate_required_fields,
    validate_size_breakups,
)


def _products(*quantities_per_product):
    return [
        {
            'product_name': f'Product {i}',
            'size_breakups': [{'size': f'S{j}', 'breakup': q, 'price': 1} for j, q in enumerate(quantities)],
        }
        for i, quantities in enumerate(quantities_per_product, start=1)
    ]


class TestBreakupSum:
    """Tests for the breakup-sum rule."""

    def test_matching_total_returns_sum(self):
        """10 + 5 + 3 equals a grand total of 18."""
        assert validate_size_breakups(_products([10, 5], [3]), 18) == Decimal('18')

    @pytest.mark.parametrize('grand_total', [17, 19])
    def test_mismatch_names_both_values(self, grand_total):
        """The error reports the computed sum and the declared total."""
        with pytest.raises(BreakupTotalMismatchError) as exc:
            validate_size_breakups(_products([10, 5], [3]), grand_total)

        assert '(18)' in exc.value.message
        assert f'({grand_total})' in exc.value.message
        assert exc.value.status_code == 400

    def test_sum_is_exact_for_fractions(self):
        """0.1 + 0.2 equals 0.3 exactly (no float drift)."""
        assert validate_size_breakups(_products([0.1, 0.2]), '0.3') == Decimal('0.3')

    def test_quantity_not_price_is_summed(self):
        """Prices do not take part in the sum."""
        products = [{'product_name': 'A', 'size_breakups': [{'size': 'L', 'breakup': 4, 'price': 100}]}]
        assert validate_size_breakups(products, 4) == Decimal('4')

    def test_missing_breakup_list_is_structural(self):
        products = [{'product_name': 'Squid Rings'}]
        with pytest.raises(StructuralError) as exc:
            validate_size_breakups(products, 0)
        assert 'Squid Rings' in exc.value.message

    def test_empty_breakup_list_is_allowed(self):
        products = [{'product_name': 'A', 'size_breakups': []}]
        assert validate_size_breakups(products, 0) == Decimal('0')

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError):
            validate_size_breakups(_products([-1, 1]), 0)

    def test_negative_price_rejected(self):
        products = [{'product_name': 'A', 'size_breakups': [{'size': 'L', 'breakup': 1, 'price': -2}]}]
        with pytest.raises(ValidationError):
            validate_size_breakups(products, 1)

    def test_non_numeric_quantity_rejected(self):
        products = [{'product_name': 'A', 'size_breakups': [{'size': 'L', 'breakup': 'ten', 'price': 1}]}]
        with pytest.raises(ValidationError):
            validate_size_breakups(products, 10)

    def test_missing_size_rejected(self):
        products = [{'product_name': 'A', 'size_breakups': [{'breakup': 1, 'price': 1}]}]
        with pytest.raises(ValidationError):
            validate_size_breakups(products, 1)

    def test_quantity_beyond_three_places_rejected(self):
        """0.0005 + 0.0005 would be stored as 0.001 + 0.001 and break the sum."""
        with pytest.raises(ValidationError) as exc:
            validate_size_breakups(_products(['0.0005', '0.0005']), '0.001')
        assert 'breakup allows at most 3 decimal places' in exc.value.message

    def test_price_beyond_two_places_rejected(self):
        products = [{'product_name': 'A', 'size_breakups': [{'size': 'L', 'breakup': 1, 'price': '1.005'}]}]
        with pytest.raises(ValidationError) as exc:
            validate_size_breakups(products, 1)
        assert 'price allows at most 2 decimal places' in exc.value.message

    def test_grand_total_beyond_three_places_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate_size_breakups(_products([1]), '1.0001')
        assert exc.value.message.startswith('grand_total')

    def test_trailing_zeros_are_fine(self):
        assert validate_size_breakups(_products(['1.500']), '1.50000') == Decimal('1.5')

    def test_quantity_too_large_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate_size_breakups(_products([10 ** 11]), 10 ** 11)
        assert 'too large' in exc.value.message


class TestRequiredFields:
    """Tests for mandatory draft fields."""

    def test_all_present(self):
        validate_required_fields({'from_party': 'A', 'origin': 'B', 'plant_approval_number': 'C', 'brand': 'D'})

    def test_blank_field_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate_required_fields({'from_party': 'A', 'origin': '  ', 'plant_approval_number': 'C', 'brand': 'D'})
        assert exc.value.payload == {'missing': ['origin']}

    def test_empty_products_rejected(self):
        with pytest.raises(ValidationError):
            validate_products_present([])
        with pytest.raises(ValidationError):
            validate_products_present(None)

    def test_products_must_be_objects(self):
        with pytest.raises(StructuralError):
            validate_products_present(['shrimp'])


class TestDates:
    """Tests for date ordering."""

    today = date(2025, 3, 1)

    def test_valid_ordering(self):
        validate_dates(date(2025, 3, 10), date(2025, 4, 1), today=self.today)

    def test_validity_in_past_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate_dates(date(2025, 2, 28), None, today=self.today)
        assert 'earlier than today' in exc.value.message

    def test_validity_in_past_allowed_for_offers(self):
        validate_dates(date(2025, 2, 1), date(2025, 2, 2), today=self.today, allow_past_validity=True)

    def test_shipment_before_validity_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate_dates(date(2025, 3, 10), date(2025, 3, 9), today=self.today)
        assert 'Shipment date' in exc.value.message

    def test_missing_dates_are_fine(self):
        validate_dates(None, None, today=self.today)
        validate_dates(None, date(2025, 1, 1), today=self.today)
