"""
Display Price Projector -- tax-inclusive prices for catalog browsing.

Responsibility:
    Shows customers the price they will actually pay per unit: the product
    price plus its percentage tax plus the flat taxes that apply to them.
    Flat tax applicability goes through the same ApplicabilityResolver used
    at checkout, so browsing and checkout agree on WHICH taxes apply.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Pricing rules (per unit):
    display = price
    display += price x tax_percentage / 100          (if configured)
    per_unit flat tax:    display += amount
    percentage flat tax:  display += display x amount / 100
    fixed flat taxes are a per-line charge and are not shown per unit.

Display prices and flat tax amounts are rounded half-up to the quantum.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Protocol, Sequence
from uuid import UUID

from pricing_engines.applicability import ApplicabilityResolver
from pricing_engines.tax_types import (
    CustomerTaxContext,
    FlatTaxDefinition,
    FlatTaxType,
    ProductTaxProfile,
)
from pricing_engines.tracer import traced_engine
from pricing_kernel.domain.values import CENT, ZERO, percent_of, round_money
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.display_price")


class _TaxedItem(Protocol):
    is_tobacco: bool
    tax_percentage: Decimal


@dataclass(frozen=True)
class ProductWithDisplayPrice:
    """A product with the per-unit price shown to one customer."""

    product_id: UUID
    name: str
    original_price: Decimal
    display_price: Decimal
    flat_tax_amount: Decimal
    tax_percentage: Decimal
    has_tax_included: bool
    has_il_tobacco_tax: bool
    applied_flat_tax_ids: tuple[UUID, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": str(self.product_id),
            "name": self.name,
            "original_price": str(self.original_price),
            "display_price": str(self.display_price),
            "flat_tax_amount": str(self.flat_tax_amount),
            "has_tax_included": self.has_tax_included,
            "has_il_tobacco_tax": self.has_il_tobacco_tax,
        }


@dataclass(frozen=True)
class CartLine:
    """A product in a cart, before checkout."""

    product: ProductTaxProfile
    quantity: int


@dataclass(frozen=True)
class CartLinePricing:
    """Price of one cart line with its tax breakdown."""

    product_id: UUID
    quantity: int
    base_price: Decimal
    unit_price_with_tax: Decimal
    total_price: Decimal
    total_flat_tax: Decimal
    breakdown_base_price: Decimal
    breakdown_percentage_tax: Decimal
    breakdown_flat_tax: Decimal
    breakdown_final_total: Decimal
    has_il_tobacco_tax: bool


def has_regulated_tobacco_items(items: Iterable[_TaxedItem]) -> bool:
    """True if any item is tobacco carrying a statutory percentage tax."""
    return any(i.is_tobacco and i.tax_percentage > ZERO for i in items)


class DisplayPriceProjector:
    """Projects tax-inclusive unit prices for a customer."""

    def __init__(self, resolver: ApplicabilityResolver | None = None):
        self._resolver = resolver or ApplicabilityResolver()

    def project_one(
        self,
        product: ProductTaxProfile,
        catalog: Sequence[FlatTaxDefinition],
        context: CustomerTaxContext,
        quantum: Decimal = CENT,
    ) -> ProductWithDisplayPrice:
        price = product.price
        display = price
        flat_amount = ZERO
        applied: list[UUID] = []

        if product.tax_percentage > ZERO:
            display += percent_of(price, product.tax_percentage)

        if context.apply_flat_tax:
            taxes = self._resolver.resolve_for_product(
                catalog,
                product_id=product.product_id,
                is_tobacco=product.is_tobacco,
                assignment=product.assignment,
                context=context,
            )
            for tax in taxes:
                if tax.tax_type == FlatTaxType.PER_UNIT:
                    amount = tax.amount
                elif tax.tax_type == FlatTaxType.PERCENTAGE:
                    amount = percent_of(display, tax.amount)
                else:
                    continue
                flat_amount += amount
                display += amount
                applied.append(tax.id)

        return ProductWithDisplayPrice(
            product_id=product.product_id,
            name=product.name,
            original_price=price,
            display_price=round_money(display, quantum),
            flat_tax_amount=round_money(flat_amount, quantum),
            tax_percentage=product.tax_percentage,
            has_tax_included=display != price,
            has_il_tobacco_tax=product.is_tobacco and product.tax_percentage > ZERO,
            applied_flat_tax_ids=tuple(applied),
        )

    @traced_engine("display_price", "1.0", fingerprint_fields=("products", "context"))
    def project(
        self,
        products: Sequence[ProductTaxProfile],
        catalog: Sequence[FlatTaxDefinition],
        context: CustomerTaxContext,
        quantum: Decimal = CENT,
    ) -> list[ProductWithDisplayPrice]:
        projected = [self.project_one(p, catalog, context, quantum) for p in products]
        logger.debug("display_prices_projected", extra={
            "product_count": len(projected),
            "apply_flat_tax": context.apply_flat_tax,
            "customer_level": context.customer_level,
        })
        return projected

    def price_cart_lines(
        self,
        lines: Sequence[CartLine],
        catalog: Sequence[FlatTaxDefinition],
        context: CustomerTaxContext,
        quantum: Decimal = CENT,
    ) -> list[CartLinePricing]:
        """Price cart lines from their projected unit display prices."""
        priced = self.project([line.product for line in lines], catalog, context, quantum)
        result = []
        for line, unit in zip(lines, priced):
            qty = line.quantity
            total_price = round_money(unit.display_price * qty, quantum)
            total_flat = round_money(unit.flat_tax_amount * qty, quantum)
            percentage_tax = ZERO
            if unit.tax_percentage > ZERO:
                percentage_tax = round_money(
                    (unit.display_price - unit.original_price - unit.flat_tax_amount) * qty,
                    quantum,
                )
            result.append(CartLinePricing(
                product_id=unit.product_id,
                quantity=qty,
                base_price=unit.original_price,
                unit_price_with_tax=unit.display_price,
                total_price=total_price,
                total_flat_tax=total_flat,
                breakdown_base_price=round_money(unit.original_price * qty, quantum),
                breakdown_percentage_tax=percentage_tax,
                breakdown_flat_tax=total_flat,
                breakdown_final_total=total_price,
                has_il_tobacco_tax=unit.has_il_tobacco_tax,
            ))
        return result
