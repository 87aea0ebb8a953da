"""
Line Tax Calculator -- itemized tax for one order line.

Pure functions - no I/O, no database access, no rounding.

    item_total_before_tax = base_price x quantity
    percentage_tax_amount = item_total_before_tax x tax_percentage / 100
    flat tax contribution:
        per_unit    amount x quantity
        percentage  item_total_before_tax x amount / 100
        fixed       amount (once per line, not per unit)
    total_tax_amount      = percentage_tax_amount + flat_tax_amount
    final_total_price     = item_total_before_tax + total_tax_amount
    final_price_per_unit  = base_price + total_tax_amount / quantity

Amounts stay unrounded here; the order aggregator and the display
projector round at their boundary so that many lines do not compound
rounding error.

Usage:
    calculator = LineTaxCalculator()
    result = calculator.compute(line, applicable_flat_taxes)
    print(result.final_total_price)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Sequence
from uuid import UUID

from pricing_engines.tax_types import FlatTaxDefinition, FlatTaxType, LineTaxRequest
from pricing_engines.tracer import traced_engine
from pricing_kernel.domain.values import ZERO, percent_of


@dataclass(frozen=True)
class FlatTaxContribution:
    """The amount one flat tax adds to one line."""

    tax_id: UUID
    tax_name: str
    applied_to: str
    amount: Decimal


@dataclass(frozen=True)
class LineTaxResult:
    """
    Calculated taxes for a single order line.

    Invariants:
        total_tax_amount == percentage_tax_amount + flat_tax_amount
        final_total_price == item_total_before_tax + total_tax_amount
    """

    product_id: UUID
    product_name: str
    base_price: Decimal
    quantity: int
    item_total_before_tax: Decimal
    percentage_tax_amount: Decimal
    flat_tax_amount: Decimal
    total_tax_amount: Decimal
    final_price_per_unit: Decimal
    final_total_price: Decimal
    flat_tax_contributions: tuple[FlatTaxContribution, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": str(self.product_id),
            "product_name": self.product_name,
            "base_price": str(self.base_price),
            "quantity": self.quantity,
            "item_total_before_tax": str(self.item_total_before_tax),
            "percentage_tax_amount": str(self.percentage_tax_amount),
            "flat_tax_amount": str(self.flat_tax_amount),
            "total_tax_amount": str(self.total_tax_amount),
            "final_price_per_unit": str(self.final_price_per_unit),
            "final_total_price": str(self.final_total_price),
        }


def flat_tax_for_line(
    tax: FlatTaxDefinition,
    quantity: int,
    item_total_before_tax: Decimal,
) -> Decimal:
    """Contribution of one flat tax to one line."""
    if tax.tax_type == FlatTaxType.PER_UNIT:
        return tax.amount * quantity
    if tax.tax_type == FlatTaxType.PERCENTAGE:
        return percent_of(item_total_before_tax, tax.amount)
    return tax.amount


class LineTaxCalculator:
    """
    Computes the itemized tax breakdown of one line.

    Malformed or negative percentages are treated as zero; upstream
    administration is responsible for validating tax definitions.
    """

    @traced_engine("line_tax", "1.0", fingerprint_fields=("item", "applicable_flat_taxes"))
    def compute(
        self,
        item: LineTaxRequest,
        applicable_flat_taxes: Sequence[FlatTaxDefinition],
    ) -> LineTaxResult:
        item_total = item.base_price * item.quantity

        percentage_tax = ZERO
        if item.tax_percentage > ZERO:
            percentage_tax = percent_of(item_total, item.tax_percentage)

        contributions = tuple(
            FlatTaxContribution(
                tax_id=tax.id,
                tax_name=tax.name,
                applied_to=tax.applied_to,
                amount=flat_tax_for_line(tax, item.quantity, item_total),
            )
            for tax in applicable_flat_taxes
        )
        flat_tax = sum((c.amount for c in contributions), ZERO)

        total_tax = percentage_tax + flat_tax
        if item.quantity:
            price_per_unit = item.base_price + total_tax / item.quantity
        else:
            price_per_unit = item.base_price

        return LineTaxResult(
            product_id=item.product_id,
            product_name=item.product_name,
            base_price=item.base_price,
            quantity=item.quantity,
            item_total_before_tax=item_total,
            percentage_tax_amount=percentage_tax,
            flat_tax_amount=flat_tax,
            total_tax_amount=total_tax,
            final_price_per_unit=price_per_unit,
            final_total_price=item_total + total_tax,
            flat_tax_contributions=contributions,
        )
