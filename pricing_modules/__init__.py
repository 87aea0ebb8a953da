"""
Pricing Modules.

Thin orchestration layers over the Pricing Kernel and Engines.

Modules:
- Tax: flat tax catalog, products, order lines, configuration and the
  PricingTaxService used by checkout, catalog browsing and loyalty.

Actual processing logic lives in the kernel and engines.
"""

from pricing_modules import tax

__all__ = ["tax"]
