"""
Tests for the Loyalty-Eligible Base Calculator.

Covers:
- Tax-exclusive base reconstruction per line
- Category exclusion
- Optional tobacco exclusion
- Clamping at zero, fallback and points
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from pricing_engines.loyalty import (
    LoyaltyEligibilityCalculator,
    LoyaltyLine,
    line_tax_exclusive_base,
)


def _line(price="10.00", quantity=1, **kwargs) -> LoyaltyLine:
    return LoyaltyLine(
        product_id=uuid4(),
        product_name="Widget",
        quantity=quantity,
        price=Decimal(price),
        **kwargs,
    )


class TestLineBase:

    def test_price_when_no_base_price(self):
        assert line_tax_exclusive_base(_line("10.00", 2)) == Decimal("20.00")

    def test_base_price_preferred(self):
        line = _line("12.00", 2, base_price=Decimal("10.00"))
        assert line_tax_exclusive_base(line) == Decimal("20.00")

    def test_percentage_tax_removed(self):
        line = _line("29.00", 1, tax_percentage=Decimal("45"))
        assert line_tax_exclusive_base(line) == Decimal("20")

    def test_flat_tax_subtracted(self):
        line = _line("11.50", 3, flat_tax_amount=Decimal("4.50"))
        assert line_tax_exclusive_base(line) == Decimal("30.00")


class TestEligibleBase:

    def setup_method(self):
        self.calculator = LoyaltyEligibilityCalculator()

    def test_excluded_category_dropped(self):
        lines = [
            _line("100.00", 1, exclude_from_loyalty=True),
            _line("50.00", 1),
        ]
        assert self.calculator.eligible_base(lines) == Decimal("50.00")

    def test_tobacco_kept_by_default(self):
        lines = [_line("40.00", 1, is_tobacco=True), _line("10.00", 1)]
        assert self.calculator.eligible_base(lines) == Decimal("50.00")

    def test_tobacco_excluded_when_asked(self):
        lines = [_line("40.00", 1, is_tobacco=True), _line("10.00", 1)]
        assert self.calculator.eligible_base(lines, exclude_tobacco=True) == Decimal("10.00")

    def test_clamped_at_zero(self):
        lines = [_line("1.00", 1, flat_tax_amount=Decimal("5.00"))]
        assert self.calculator.eligible_base(lines) == Decimal("0")

    def test_no_lines(self):
        assert self.calculator.eligible_base([]) == Decimal("0")


class TestFallbackAndPoints:

    def test_fallback_ratio(self):
        base = LoyaltyEligibilityCalculator.fallback_base(Decimal("100.00"), Decimal("0.85"))
        assert base == Decimal("85.00")

    def test_fallback_never_negative(self):
        base = LoyaltyEligibilityCalculator.fallback_base(Decimal("-10"), Decimal("0.85"))
        assert base == Decimal("0")

    @pytest.mark.parametrize(
        "eligible,rate,points",
        [
            (Decimal("50.00"), Decimal("0.02"), 100),
            (Decimal("0.00"), Decimal("0.02"), 0),
            (Decimal("12.34"), Decimal("0.02"), 25),  # 24.68 -> 25
            (Decimal("0.25"), Decimal("0.02"), 1),  # 0.5 -> 1 (half up)
        ],
    )
    def test_points(self, eligible, rate, points):
        assert LoyaltyEligibilityCalculator.points_for(eligible, rate) == points
