"""
Typed Exception Hierarchy for the Pricing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the pricing engine (checkout, preview, order completion) must be
able to tell a missing catalog entry from a refused audit write without
parsing messages.  Every error here:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (not just a message string)

Example:
    try:
        selector.get_flat_tax(tax_id)
    except FlatTaxNotFoundError as e:
        api_response(code=e.code, tax_id=e.tax_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PricingKernelError (base)
    |
    +-- CatalogError
    |   +-- FlatTaxNotFoundError
    |
    +-- OrderError
    |   +-- OrderNotFoundError
    |
    +-- ComplianceError
    |   +-- ComplianceWriteError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
WHAT IS NEVER RAISED
===============================================================================

Input-fidelity problems (missing or negative amounts, malformed percentages)
are not errors: the engines coerce them to zero.  Compliance write failures
are caught by PricingTaxService and logged, never surfaced to checkout.
"""


class PricingKernelError(Exception):
    """
    Base exception for all pricing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PRICING_KERNEL_ERROR"


# Catalog-related exceptions


class CatalogError(PricingKernelError):
    """Base exception for tax catalog errors."""

    code: str = "CATALOG_ERROR"


class FlatTaxNotFoundError(CatalogError):
    """Flat tax with given ID was not found in the catalog."""

    code: str = "FLAT_TAX_NOT_FOUND"

    def __init__(self, tax_id: str):
        self.tax_id = tax_id
        super().__init__(f"Flat tax not found: {tax_id}")


# Order-related exceptions


class OrderError(PricingKernelError):
    """Base exception for order store errors."""

    code: str = "ORDER_ERROR"


class OrderNotFoundError(OrderError):
    """Order has no stored line items."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found or has no items: {order_id}")


# Compliance-related exceptions


class ComplianceError(PricingKernelError):
    """Base exception for audit and regulated-sales persistence."""

    code: str = "COMPLIANCE_ERROR"


class ComplianceWriteError(ComplianceError):
    """An audit or regulated-sales row could not be written."""

    code: str = "COMPLIANCE_WRITE_FAILED"

    def __init__(self, record_type: str, order_id: str, reason: str):
        self.record_type = record_type
        self.order_id = order_id
        self.reason = reason
        super().__init__(
            f"Failed to write {record_type} for order {order_id}: {reason}"
        )


# Immutability-related exceptions


class ImmutabilityError(PricingKernelError):
    """Base exception for append-only record violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    TaxCalculationAudit rows are immutable from creation; regulated sales
    records are immutable except for their reporting status.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
