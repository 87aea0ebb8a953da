"""
Loyalty-Eligible Base Calculator -- the subtotal that earns loyalty points.

Responsibility:
    Reconstructs each completed order line's tax-exclusive amount and
    drops lines whose category is excluded from loyalty.  Taxes never earn
    points.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The service fetches the
    lines and applies the failure fallback when the fetch itself fails.

Per line:
    unit    = base_price, or price when no base price was stored
    unit    = price / (1 + tax_percentage / 100)   when tax_percentage > 0
    base    = unit x quantity - flat_tax_amount
    eligible = sum(base of non-excluded lines), clamped at zero
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence
from uuid import UUID

from pricing_engines.tracer import traced_engine
from pricing_kernel.domain.values import HUNDRED, ZERO, to_decimal
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.loyalty")

DEFAULT_POINTS_RATE = Decimal("0.02")


@dataclass(frozen=True)
class LoyaltyLine:
    """A stored order line with the category flag needed for loyalty."""

    product_id: UUID
    product_name: str
    quantity: int
    price: Decimal
    base_price: Decimal | None = None
    flat_tax_amount: Decimal = ZERO
    tax_percentage: Decimal = ZERO
    exclude_from_loyalty: bool = False
    is_tobacco: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "price", to_decimal(self.price))
        if self.base_price is not None:
            object.__setattr__(self, "base_price", to_decimal(self.base_price))
        object.__setattr__(self, "flat_tax_amount", to_decimal(self.flat_tax_amount))
        object.__setattr__(self, "tax_percentage", to_decimal(self.tax_percentage))


def line_tax_exclusive_base(line: LoyaltyLine) -> Decimal:
    """Tax-exclusive amount of one line, before exclusion rules."""
    unit = line.base_price if line.base_price else line.price
    if line.tax_percentage > ZERO:
        unit = line.price / (1 + line.tax_percentage / HUNDRED)
    return unit * line.quantity - line.flat_tax_amount


class LoyaltyEligibilityCalculator:
    """Sums the loyalty-eligible base of an order's lines."""

    @traced_engine("loyalty_eligible_base", "1.0", fingerprint_fields=("lines",))
    def eligible_base(
        self,
        lines: Sequence[LoyaltyLine],
        exclude_tobacco: bool = False,
    ) -> Decimal:
        total = ZERO
        excluded = 0
        for line in lines:
            if line.exclude_from_loyalty or (exclude_tobacco and line.is_tobacco):
                excluded += 1
                continue
            total += line_tax_exclusive_base(line)

        eligible = max(total, ZERO)
        logger.debug("loyalty_base_computed", extra={
            "line_count": len(lines),
            "excluded_line_count": excluded,
            "eligible_base": str(eligible),
        })
        return eligible

    @staticmethod
    def fallback_base(fallback_total: Decimal, ratio: Decimal) -> Decimal:
        """Approximate base used when the order lines cannot be read."""
        return max(to_decimal(fallback_total) * ratio, ZERO)

    @staticmethod
    def points_for(eligible_base: Decimal, rate: Decimal = DEFAULT_POINTS_RATE) -> int:
        """Points earned, one point per cent of reward value."""
        points = (eligible_base * rate * HUNDRED).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        return int(points)
