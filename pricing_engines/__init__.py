"""
Module: pricing_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    pricing and tax engines.  This is the import surface for
    ``pricing_modules``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pricing_kernel.domain and pricing_kernel.logging_config.
    MUST NOT import pricing_kernel.db, services or pricing_modules.

Invariants enforced:
    - Purity: engines never read the clock or the database.  The catalog,
      the product profiles and the customer context are parameters.
    - Decimal-only arithmetic; floats are converted at the boundary.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are wrapped with ``@traced_engine`` and emit
    PRICING_ENGINE_TRACE records carrying an input fingerprint.

Usage:
    from pricing_engines import OrderTaxAggregator, OrderTaxRequest
    result = OrderTaxAggregator().calculate(request, catalog)
"""

from pricing_kernel.logging_config import get_logger

logger = get_logger("engines")

from pricing_engines.applicability import (
    ApplicabilityResolver,
    matches_assignment,
    passes_scope,
)
from pricing_engines.display_price import (
    CartLine,
    CartLinePricing,
    DisplayPriceProjector,
    ProductWithDisplayPrice,
    has_regulated_tobacco_items,
)
from pricing_engines.line_tax import (
    FlatTaxContribution,
    LineTaxCalculator,
    LineTaxResult,
    flat_tax_for_line,
)
from pricing_engines.loyalty import (
    LoyaltyEligibilityCalculator,
    LoyaltyLine,
    line_tax_exclusive_base,
)
from pricing_engines.order_tax import (
    FlatTaxApplied,
    OrderTaxAggregator,
    OrderTaxRequest,
    OrderTaxResult,
    TobaccoItem,
    TobaccoSalesTracking,
)
from pricing_engines.tax_types import (
    Assignment,
    CustomerTaxContext,
    ExplicitAssignment,
    FlatTaxDefinition,
    FlatTaxType,
    LegacyAssignment,
    LineTaxRequest,
    NoFlatTax,
    ProductTaxProfile,
    assignment_from_ids,
)
from pricing_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # applicability
    "ApplicabilityResolver",
    "matches_assignment",
    "passes_scope",
    # display_price
    "CartLine",
    "CartLinePricing",
    "DisplayPriceProjector",
    "ProductWithDisplayPrice",
    "has_regulated_tobacco_items",
    # line_tax
    "FlatTaxContribution",
    "LineTaxCalculator",
    "LineTaxResult",
    "flat_tax_for_line",
    # loyalty
    "LoyaltyEligibilityCalculator",
    "LoyaltyLine",
    "line_tax_exclusive_base",
    # order_tax
    "FlatTaxApplied",
    "OrderTaxAggregator",
    "OrderTaxRequest",
    "OrderTaxResult",
    "TobaccoItem",
    "TobaccoSalesTracking",
    # tax_types
    "Assignment",
    "CustomerTaxContext",
    "ExplicitAssignment",
    "FlatTaxDefinition",
    "FlatTaxType",
    "LegacyAssignment",
    "LineTaxRequest",
    "NoFlatTax",
    "ProductTaxProfile",
    "assignment_from_ids",
    # tracer
    "compute_input_fingerprint",
    "traced_engine",
]

logger.debug("engines_package_loaded", extra={
    "modules": [
        "applicability", "line_tax", "order_tax", "display_price", "loyalty",
    ],
})
