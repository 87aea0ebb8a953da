"""
Tax Module.

Responsibility:
    Thin glue for flat taxes, percentage taxes, tax-inclusive display
    prices and loyalty eligibility.  Delegates all computation to
    ``pricing_engines`` and all compliance persistence to
    ``pricing_kernel.services.ComplianceRecorder``.

Architecture:
    pricing_modules -- thin glue (this layer).
    The module owns the catalog, product and order-line ORM models, the
    selectors over them, configuration, and PricingTaxService.

Invariants:
    - All monetary amounts use ``Decimal`` -- NEVER ``float``.
    - Compliance write failures never fail a pricing call.

Failure modes:
    - ``PricingTaxConfig.__post_init__`` raises ``ValueError`` for
      out-of-range configuration values.
"""

from pricing_modules.tax.config import PricingTaxConfig
from pricing_modules.tax.orm import (
    CategoryModel,
    FlatTaxModel,
    OrderItemModel,
    ProductModel,
)
from pricing_modules.tax.selectors import (
    FlatTaxSelector,
    OrderLineSelector,
    ProductSelector,
    StoredOrderLine,
)
from pricing_modules.tax.service import PricingTaxService

__all__ = [
    "PricingTaxConfig",
    "PricingTaxService",
    "FlatTaxModel",
    "CategoryModel",
    "ProductModel",
    "OrderItemModel",
    "FlatTaxSelector",
    "ProductSelector",
    "OrderLineSelector",
    "StoredOrderLine",
]
