"""
Pricing Tax Service -- composes the pricing engines with the stores.

Responsibility:
    Thin glue that reads the flat tax catalog, products and order lines
    through selectors, delegates every calculation to the pure engines and
    hands the results to the ComplianceRecorder.  This service owns the
    best-effort policy for compliance writes and the loyalty fallback.

Architecture:
    pricing_modules -- thin glue (this layer).
    1. Selectors read catalog, product and order data.
    2. ``OrderTaxAggregator``, ``DisplayPriceProjector`` and
       ``LoyaltyEligibilityCalculator`` compute (pure, stateless).
    3. ``ComplianceRecorder`` persists audits and regulated sales.

Invariants:
    - The pricing result never depends on whether a compliance write
      succeeded.  Write failures are logged and swallowed.
    - A catalog read failure degrades to "no flat taxes" with a warning.
    - The service flushes and never commits; the caller owns the
      transaction.
    - Amounts are ``Decimal`` throughout -- NEVER ``float``.

Failure modes:
    - ``record_order_line_taxes`` raises OrderNotFoundError when the order
      has no stored lines.
    - Loyalty line reconstruction failures fall back to
      ``fallback_total x loyalty_fallback_ratio`` with a warning.

Usage:
    service = PricingTaxService(session, config, clock)
    result = service.calculate_order_tax(request)
    result.total_tax_amount
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pricing_engines.display_price import (
    CartLine,
    CartLinePricing,
    DisplayPriceProjector,
    ProductWithDisplayPrice,
)
from pricing_engines.loyalty import LoyaltyEligibilityCalculator
from pricing_engines.order_tax import (
    OrderTaxAggregator,
    OrderTaxRequest,
    OrderTaxResult,
)
from pricing_engines.tax_types import CustomerTaxContext, FlatTaxDefinition
from pricing_kernel.domain.clock import Clock, SystemClock
from pricing_kernel.domain.values import round_money
from pricing_kernel.exceptions import OrderNotFoundError, PricingKernelError
from pricing_kernel.logging_config import LogContext, get_logger
from pricing_kernel.selectors.compliance_selector import ComplianceSelector
from pricing_kernel.services.compliance_recorder import ComplianceRecorder
from pricing_modules.tax.config import PricingTaxConfig
from pricing_modules.tax.orm import OrderItemModel
from pricing_modules.tax.selectors import (
    FlatTaxSelector,
    OrderLineSelector,
)

logger = get_logger("modules.tax.service")


class PricingTaxService:
    """
    Orchestrates pricing and tax operations through engines and kernel.

    Contract:
        Callers supply a ``Session``, an optional ``PricingTaxConfig`` and an
        optional ``Clock``.  Calculation methods return engine results;
        compliance rows and order line write-backs are flushed into the
        caller's transaction.

    Engine composition:
        - ``OrderTaxAggregator``: checkout and preview taxes.
        - ``DisplayPriceProjector``: catalog browsing and cart pricing.
        - ``LoyaltyEligibilityCalculator``: points base after completion.
    """

    def __init__(
        self,
        session: Session,
        config: PricingTaxConfig | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._config = config or PricingTaxConfig.with_defaults()
        self._clock = clock or SystemClock()

        self._flat_taxes = FlatTaxSelector(session)
        self._order_lines = OrderLineSelector(session)
        self._compliance = ComplianceSelector(session)
        self._recorder = ComplianceRecorder(
            session, self._clock, report_form=self._config.regulated_report_form,
        )

        # Stateless engines
        self._aggregator = OrderTaxAggregator()
        self._projector = DisplayPriceProjector()
        self._loyalty = LoyaltyEligibilityCalculator()

    # =========================================================================
    # Catalog
    # =========================================================================

    def _load_catalog(self) -> list[FlatTaxDefinition]:
        try:
            with self._session.begin_nested():
                return self._flat_taxes.list_flat_taxes()
        except SQLAlchemyError:
            logger.warning("flat_tax_catalog_unavailable", exc_info=True)
            return []

    # =========================================================================
    # Order tax
    # =========================================================================

    def calculate_order_tax(self, request: OrderTaxRequest) -> OrderTaxResult:
        """
        Calculate an order's taxes and record the compliance trail.

        Every invocation appends one audit row, so an order recalculated
        before completion owns several.  The returned result is identical
        whether or not the compliance writes succeeded.
        """
        with LogContext.bind(
            order_id=str(request.order_id),
            customer_id=request.customer_id,
        ):
            catalog = self._load_catalog() if request.apply_flat_tax else []
            result = self._aggregator.calculate(
                request, catalog, quantum=self._config.money_quantum,
            )
            self._emit_compliance(request, result)
            return result

    def _emit_compliance(self, request: OrderTaxRequest, result: OrderTaxResult) -> None:
        if self._config.audit_enabled:
            try:
                self._recorder.record_calculation_audit(
                    order_id=request.order_id,
                    customer_id=request.customer_id,
                    customer_level=request.customer_level,
                    apply_flat_tax=request.apply_flat_tax,
                    calculation_input=request.to_dict(),
                    calculation_result={**result.to_dict(), "currency": self._config.currency},
                    percentage_tax_applied=result.percentage_tax_total,
                    flat_taxes_applied=[f.to_dict() for f in result.flat_taxes_applied],
                    flat_tax_total=result.flat_tax_total,
                    total_tax_amount=result.total_tax_amount,
                )
            except (PricingKernelError, SQLAlchemyError):
                logger.error("compliance_write_failed", exc_info=True, extra={
                    "record_type": "tax_calculation_audit",
                    "order_id": str(request.order_id),
                })

        if not (self._config.regulated_tracking_enabled and result.has_regulated_items):
            return

        tracking = result.tobacco_sales_tracking
        try:
            if self._compliance.has_regulated_sale(request.order_id):
                logger.info("regulated_sale_already_recorded", extra={
                    "order_id": str(request.order_id),
                })
                return
            self._recorder.record_regulated_sale(
                order_id=request.order_id,
                customer_id=request.customer_id,
                regulated_products=[
                    {
                        "product_id": str(i.product_id),
                        "product_name": i.product_name,
                        "quantity": i.quantity,
                        "value": str(i.total_value),
                        "tax": str(i.tax_amount),
                    }
                    for i in tracking.tobacco_items
                ],
                total_value=tracking.total_tobacco_value,
                total_tax=tracking.total_tobacco_tax,
            )
        except (PricingKernelError, SQLAlchemyError):
            logger.error("compliance_write_failed", exc_info=True, extra={
                "record_type": "regulated_sales_record",
                "order_id": str(request.order_id),
            })

    def record_order_line_taxes(
        self,
        order_id: UUID,
        customer_id: str,
        context: CustomerTaxContext,
    ) -> OrderTaxResult:
        """
        Calculate a stored order and write each line's taxes back onto it.

        Completed orders then keep their tax breakdown regardless of later
        catalog edits.

        Raises:
            OrderNotFoundError: If the order has no stored lines.
        """
        stored = self._order_lines.order_items(order_id)
        if not stored:
            raise OrderNotFoundError(str(order_id))

        request = OrderTaxRequest(
            order_id=order_id,
            customer_id=customer_id,
            items=tuple(line.request for line in stored),
            customer_level=context.customer_level,
            apply_flat_tax=context.apply_flat_tax,
            county=context.county,
            zip_code=context.zip_code,
        )
        result = self.calculate_order_tax(request)

        quantum = self._config.money_quantum
        for line, detail in zip(stored, result.item_tax_details):
            item = self._session.get(OrderItemModel, line.item_id)
            item.flat_tax_amount = round_money(detail.flat_tax_amount, quantum)
            item.percentage_tax_amount = round_money(detail.percentage_tax_amount, quantum)
            item.total_tax_amount = round_money(detail.total_tax_amount, quantum)
        self._session.flush()

        logger.info("order_line_taxes_recorded", extra={
            "order_id": str(order_id),
            "line_count": len(stored),
            "total_tax_amount": str(result.total_tax_amount),
            "currency": self._config.currency,
        })
        return result

    # =========================================================================
    # Display prices
    # =========================================================================

    def project_display_prices(
        self,
        products,
        customer_id: str | None = None,
        customer_level: int | None = None,
        apply_flat_tax: bool = False,
        county: str | None = None,
    ) -> list[ProductWithDisplayPrice]:
        """Tax-inclusive unit prices of products for one customer."""
        context = CustomerTaxContext(
            customer_level=customer_level,
            county=county,
            apply_flat_tax=apply_flat_tax,
        )
        with LogContext.bind(customer_id=customer_id):
            catalog = self._load_catalog() if apply_flat_tax else []
            return self._projector.project(
                list(products), catalog, context, quantum=self._config.money_quantum,
            )

    def price_cart_lines(
        self,
        lines: Sequence[CartLine],
        customer_id: str | None = None,
        customer_level: int | None = None,
        apply_flat_tax: bool = False,
        county: str | None = None,
    ) -> list[CartLinePricing]:
        """Price cart lines with a per-line tax breakdown."""
        context = CustomerTaxContext(
            customer_level=customer_level,
            county=county,
            apply_flat_tax=apply_flat_tax,
        )
        with LogContext.bind(customer_id=customer_id):
            catalog = self._load_catalog() if apply_flat_tax else []
            return self._projector.price_cart_lines(
                lines, catalog, context, quantum=self._config.money_quantum,
            )

    # =========================================================================
    # Loyalty
    # =========================================================================

    def loyalty_eligible_base(self, order_id: UUID, fallback_total: Decimal) -> Decimal:
        """
        Tax-exclusive subtotal of a completed order that earns points.

        When the order lines cannot be read, returns
        ``fallback_total x loyalty_fallback_ratio`` instead of failing.
        """
        quantum = self._config.money_quantum
        with LogContext.bind(order_id=str(order_id)):
            try:
                with self._session.begin_nested():
                    lines = self._order_lines.loyalty_lines(order_id)
            except SQLAlchemyError:
                fallback = self._loyalty.fallback_base(
                    fallback_total, self._config.loyalty_fallback_ratio,
                )
                logger.warning("loyalty_fallback_used", exc_info=True, extra={
                    "order_id": str(order_id),
                    "fallback_total": str(fallback_total),
                    "fallback_ratio": str(self._config.loyalty_fallback_ratio),
                    "eligible_base": str(fallback),
                })
                return round_money(fallback, quantum)

            eligible = self._loyalty.eligible_base(
                lines, exclude_tobacco=self._config.exclude_tobacco_from_loyalty,
            )
            return round_money(eligible, quantum)

    def loyalty_points_for_order(self, order_id: UUID, fallback_total: Decimal) -> int:
        """Points the external awarding step should credit for an order."""
        eligible = self.loyalty_eligible_base(order_id, fallback_total)
        points = self._loyalty.points_for(eligible, self._config.loyalty_points_rate)
        logger.info("loyalty_points_calculated", extra={
            "order_id": str(order_id),
            "eligible_base": str(eligible),
            "points_rate": str(self._config.loyalty_points_rate),
            "points": points,
            "currency": self._config.currency,
        })
        return points
