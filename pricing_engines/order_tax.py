"""
Order Tax Aggregator -- taxes for every line of an order.

Responsibility:
    Runs the applicability resolver and the line calculator over each line,
    merges flat tax amounts by tax identity, separates regulated (tobacco)
    lines for statutory tracking, and rounds the order totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Persisting the audit trail
    is the caller's job (``PricingTaxService``); this module never touches
    the database or the clock.

Invariants enforced:
    - Determinism: identical (catalog, request) always produce an identical
      OrderTaxResult.  No counters, random ids or timestamps are involved.
    - total_tax_amount == percentage_tax_total + flat_tax_total, each
      component rounded once from the unrounded line sums.
    - flat_taxes_applied has one entry per distinct tax id, in the order the
      taxes were first applied.
    - Money totals are rounded half-up to the quantum only at the end.

Usage:
    aggregator = OrderTaxAggregator()
    result = aggregator.calculate(request, catalog)
    result.total_tax_amount   # Decimal("13.50")
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Sequence
from uuid import UUID

from pricing_engines.applicability import ApplicabilityResolver
from pricing_engines.line_tax import LineTaxCalculator, LineTaxResult
from pricing_engines.tax_types import (
    CustomerTaxContext,
    FlatTaxDefinition,
    LineTaxRequest,
)
from pricing_kernel.domain.values import CENT, ZERO, round_money
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.order_tax")


@dataclass(frozen=True)
class OrderTaxRequest:
    """An order's lines and the customer context they are priced for."""

    order_id: UUID
    customer_id: str
    items: tuple[LineTaxRequest, ...]
    customer_level: int | None = None
    apply_flat_tax: bool = False
    county: str | None = None
    zip_code: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    @property
    def context(self) -> CustomerTaxContext:
        return CustomerTaxContext(
            customer_level=self.customer_level,
            county=self.county,
            zip_code=self.zip_code,
            apply_flat_tax=self.apply_flat_tax,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": str(self.order_id),
            "customer_id": self.customer_id,
            "customer_level": self.customer_level,
            "apply_flat_tax": self.apply_flat_tax,
            "county": self.county,
            "zip_code": self.zip_code,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class FlatTaxApplied:
    """One flat tax, summed across every line it applied to."""

    tax_id: UUID
    tax_name: str
    tax_amount: Decimal
    applied_to: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "tax_id": str(self.tax_id),
            "tax_name": self.tax_name,
            "tax_amount": str(self.tax_amount),
            "applied_to": self.applied_to,
        }


@dataclass(frozen=True)
class TobaccoItem:
    """A regulated line as reported for statutory filing."""

    product_id: UUID
    product_name: str
    quantity: int
    total_value: Decimal
    tax_amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": str(self.product_id),
            "product_name": self.product_name,
            "quantity": self.quantity,
            "total_value": str(self.total_value),
            "tax_amount": str(self.tax_amount),
        }


@dataclass(frozen=True)
class TobaccoSalesTracking:
    """Regulated lines of one order and their totals."""

    tobacco_items: tuple[TobaccoItem, ...]
    total_tobacco_value: Decimal
    total_tobacco_tax: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "tobacco_items": [i.to_dict() for i in self.tobacco_items],
            "total_tobacco_value": str(self.total_tobacco_value),
            "total_tobacco_tax": str(self.total_tobacco_tax),
        }


@dataclass(frozen=True)
class OrderTaxResult:
    """
    Complete tax calculation for an order.

    Line details are kept unrounded.  The percentage and flat totals are
    rounded; ``total_tax_amount`` is their sum.
    """

    order_id: UUID
    customer_id: str
    item_tax_details: tuple[LineTaxResult, ...]
    flat_taxes_applied: tuple[FlatTaxApplied, ...]
    percentage_tax_total: Decimal
    flat_tax_total: Decimal
    total_tax_amount: Decimal
    tobacco_sales_tracking: TobaccoSalesTracking | None = None

    @property
    def has_regulated_items(self) -> bool:
        return bool(
            self.tobacco_sales_tracking and self.tobacco_sales_tracking.tobacco_items
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": str(self.order_id),
            "customer_id": self.customer_id,
            "item_tax_details": [d.to_dict() for d in self.item_tax_details],
            "flat_taxes_applied": [f.to_dict() for f in self.flat_taxes_applied],
            "percentage_tax_total": str(self.percentage_tax_total),
            "flat_tax_total": str(self.flat_tax_total),
            "total_tax_amount": str(self.total_tax_amount),
            "tobacco_sales_tracking": (
                self.tobacco_sales_tracking.to_dict()
                if self.tobacco_sales_tracking else None
            ),
        }


@dataclass
class _FlatTaxAccumulator:
    tax_name: str
    applied_to: str
    amount: Decimal = ZERO


@dataclass
class _Totals:
    percentage: Decimal = ZERO
    flat: Decimal = ZERO
    flat_by_tax: dict[UUID, _FlatTaxAccumulator] = field(default_factory=dict)


class OrderTaxAggregator:
    """
    Calculate taxes for a whole order.

    Pure - catalog supplied as a parameter.  When the request does not apply
    flat taxes the resolver is skipped entirely and only percentage tax is
    charged.
    """

    def __init__(
        self,
        resolver: ApplicabilityResolver | None = None,
        calculator: LineTaxCalculator | None = None,
    ):
        self._resolver = resolver or ApplicabilityResolver()
        self._calculator = calculator or LineTaxCalculator()

    def calculate(
        self,
        request: OrderTaxRequest,
        catalog: Sequence[FlatTaxDefinition],
        quantum: Decimal = CENT,
    ) -> OrderTaxResult:
        t0 = time.monotonic()
        context = request.context
        totals = _Totals()
        details: list[LineTaxResult] = []
        tobacco_items: list[TobaccoItem] = []

        for item in request.items:
            applicable: list[FlatTaxDefinition] = []
            if request.apply_flat_tax:
                applicable = self._resolver.resolve(catalog, item, context)

            line = self._calculator.compute(item, applicable)
            details.append(line)

            for contribution in line.flat_tax_contributions:
                acc = totals.flat_by_tax.get(contribution.tax_id)
                if acc is None:
                    acc = _FlatTaxAccumulator(
                        tax_name=contribution.tax_name,
                        applied_to=contribution.applied_to,
                    )
                    totals.flat_by_tax[contribution.tax_id] = acc
                acc.amount += contribution.amount

            if item.is_tobacco:
                tobacco_items.append(
                    TobaccoItem(
                        product_id=line.product_id,
                        product_name=line.product_name,
                        quantity=line.quantity,
                        total_value=line.final_total_price,
                        tax_amount=line.total_tax_amount,
                    )
                )

            totals.percentage += line.percentage_tax_amount
            totals.flat += line.flat_tax_amount

        tracking = None
        if tobacco_items:
            tracking = TobaccoSalesTracking(
                tobacco_items=tuple(tobacco_items),
                total_tobacco_value=round_money(
                    sum((i.total_value for i in tobacco_items), ZERO), quantum
                ),
                total_tobacco_tax=round_money(
                    sum((i.tax_amount for i in tobacco_items), ZERO), quantum
                ),
            )

        percentage_total = round_money(totals.percentage, quantum)
        flat_total = round_money(totals.flat, quantum)

        result = OrderTaxResult(
            order_id=request.order_id,
            customer_id=request.customer_id,
            item_tax_details=tuple(details),
            flat_taxes_applied=tuple(
                FlatTaxApplied(
                    tax_id=tax_id,
                    tax_name=acc.tax_name,
                    tax_amount=round_money(acc.amount, quantum),
                    applied_to=acc.applied_to,
                )
                for tax_id, acc in totals.flat_by_tax.items()
            ),
            percentage_tax_total=percentage_total,
            flat_tax_total=flat_total,
            total_tax_amount=percentage_total + flat_total,
            tobacco_sales_tracking=tracking,
        )

        logger.info("order_tax_calculated", extra={
            "order_id": str(request.order_id),
            "item_count": len(details),
            "apply_flat_tax": request.apply_flat_tax,
            "percentage_tax_total": str(result.percentage_tax_total),
            "flat_tax_total": str(result.flat_tax_total),
            "total_tax_amount": str(result.total_tax_amount),
            "tobacco_item_count": len(tobacco_items),
            "duration_ms": round((time.monotonic() - t0) * 1000, 2),
        })
        return result
