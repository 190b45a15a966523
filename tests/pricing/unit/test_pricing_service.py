"""
PricingService Unit Tests

Tests the dowel price schedule: tier lookup at the boundaries, clamping,
5,000-increment rounding and display formatting.

Run with:
    pytest tests/pricing/unit/test_pricing_service.py -v
"""

import pytest

from models.price_tier import PricingTierDTO
from services.pricing import PricingService, PRICING_TIERS, format_currency, format_number
from utils.tier_validation import validate_tier_coverage, validate_tier_logic


class TestPricingTierLookup:

    @pytest.mark.parametrize("quantity,expected_price", [
        (5000, 0.0720),
        (20000, 0.0720),
        (20001, 0.0675),
        (160000, 0.0675),
        (160001, 0.0630),
        (960000, 0.0630),
    ])
    def test_tier_boundaries(self, quantity, expected_price):
        assert PricingService.calculate_price_per_unit(quantity) == expected_price

    def test_below_minimum_has_no_tier(self):
        assert PricingService.get_pricing_tier(4999) is None
        assert PricingService.calculate_price_per_unit(4999) is None
        assert PricingService.calculate_total_price(4999) is None

    def test_above_schedule_clamps_to_top_tier(self):
        """Quantities past 960,000 keep the best price instead of failing."""
        tier = PricingService.get_pricing_tier(1_000_000)
        assert tier == PRICING_TIERS[-1]
        assert PricingService.calculate_total_price(1_000_000) == 63000.0

    def test_total_price_rounded_to_cents(self):
        assert PricingService.calculate_total_price(5000) == 360.0
        assert PricingService.calculate_total_price(30000) == 2025.0


class TestQuantityIncrements:

    @pytest.mark.parametrize("quantity,expected", [
        (5000, True),
        (15000, True),
        (960000, True),
        (7500, False),
        (0, False),
        (965000, False),
    ])
    def test_is_valid_quantity_increment(self, quantity, expected):
        assert PricingService.is_valid_quantity_increment(quantity) is expected

    @pytest.mark.parametrize("quantity,expected", [
        (100, 5000),
        (7499, 5000),
        (7500, 10000),
        (12345, 10000),
        (2_000_000, 960000),
    ])
    def test_round_to_valid_quantity(self, quantity, expected):
        assert PricingService.round_to_valid_quantity(quantity) == expected


class TestTierInfo:

    def test_tier_info_formats_values(self):
        info = PricingService.get_tier_info(25000)

        assert info.tier.range == "<20,000-160,000"
        assert info.price_per_unit == 0.0675
        assert info.total_price == 1687.5
        assert info.formatted_quantity == "25,000"
        assert info.formatted_price_per_unit == "$0.0675"
        assert info.formatted_total_price == "$1,687.50"
        assert info.is_valid_increment is True

    def test_tier_info_below_minimum(self):
        info = PricingService.get_tier_info(1000)

        assert info.tier is None
        assert info.total_price == 0.0
        assert info.is_valid_increment is False


class TestFormatting:

    def test_format_currency(self):
        assert format_currency(1234.5) == "$1,234.50"
        assert format_currency(-3) == "-$3.00"

    def test_format_number(self):
        assert format_number(960000) == "960,000"


class TestTierValidation:

    def test_schedule_is_contiguous(self):
        assert validate_tier_coverage(list(PRICING_TIERS)) == (True, None)

    def test_gap_detected(self):
        tiers = [
            PricingTierDTO(range="a", min_quantity=5000, max_quantity=20000, price_per_unit=0.072),
            PricingTierDTO(range="b", min_quantity=25000, max_quantity=160000, price_per_unit=0.0675),
        ]
        is_valid, error = validate_tier_coverage(tiers)
        assert is_valid is False
        assert "Gap detected" in error

    def test_overlap_detected(self):
        tiers = [
            PricingTierDTO(range="a", min_quantity=5000, max_quantity=20000, price_per_unit=0.072),
            PricingTierDTO(range="b", min_quantity=20000, max_quantity=160000, price_per_unit=0.0675),
        ]
        is_valid, error = validate_tier_coverage(tiers)
        assert is_valid is False
        assert "Overlap detected" in error

    def test_inverted_tier_rejected(self):
        tier = PricingTierDTO(range="x", min_quantity=10, max_quantity=5, price_per_unit=0.07)
        assert validate_tier_logic(tier) == (False, "max_quantity (5) must be >= min_quantity (10)")
