"""
Applicability Resolver -- which catalog flat taxes apply to one line.

Pure function of (catalog, line, customer context).  No I/O, no clock.

Filtering applied to every catalog entry, in order, stopping at the first
failing condition:

    1. inactive entries are dropped
    2. tier restriction: dropped if the customer's tier is not listed
    3. county restriction: dropped if the customer's county differs
    4. zip restriction: dropped if the customer's zip differs
    5-8. assignment, as one exhaustive match on the line's Assignment:
         NoFlatTax           -> nothing applies, whatever the catalog says
         ExplicitAssignment  -> applies iff the entry id is listed
         LegacyAssignment    -> the entry's own applicability list decides
                                ("all", the product id, or "tobacco" for
                                tobacco lines); no list means every line

A jurisdiction or tier restriction only excludes when the customer's value
is known: a customer with no county on file is not excluded by a
county-restricted tax.

Usage:
    resolver = ApplicabilityResolver()
    taxes = resolver.resolve(catalog, line, context)
"""

from __future__ import annotations

from typing import Iterable, Sequence
from uuid import UUID

from pricing_engines.tax_types import (
    Assignment,
    CustomerTaxContext,
    ExplicitAssignment,
    FlatTaxDefinition,
    LegacyAssignment,
    LineTaxRequest,
    NoFlatTax,
)
from pricing_engines.tracer import traced_engine
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.applicability")

LEGACY_ALL = "all"
LEGACY_TOBACCO = "tobacco"


def passes_scope(tax: FlatTaxDefinition, context: CustomerTaxContext) -> bool:
    """Steps 1-4: activity, tier, county and zip restrictions."""
    if not tax.is_active:
        return False
    if tax.customer_tiers and context.customer_level and (
        context.customer_level not in tax.customer_tiers
    ):
        return False
    if tax.county_restriction and context.county and (
        tax.county_restriction != context.county
    ):
        return False
    if tax.zip_restriction and context.zip_code and (
        tax.zip_restriction != context.zip_code
    ):
        return False
    return True


def matches_legacy_list(
    tax: FlatTaxDefinition,
    product_id: UUID,
    is_tobacco: bool,
) -> bool:
    """Step 7-8: the entry's own product applicability list."""
    products = tax.legacy_applicable_products
    if not products:
        return True
    return (
        str(product_id) in products
        or LEGACY_ALL in products
        or (is_tobacco and LEGACY_TOBACCO in products)
    )


def matches_assignment(
    tax: FlatTaxDefinition,
    assignment: Assignment,
    product_id: UUID,
    is_tobacco: bool,
) -> bool:
    """Steps 5-8 as a single exhaustive decision."""
    match assignment:
        case NoFlatTax():
            return False
        case ExplicitAssignment(tax_ids=ids):
            return tax.id in ids
        case LegacyAssignment():
            return matches_legacy_list(tax, product_id, is_tobacco)
    raise TypeError(f"Unknown flat tax assignment: {assignment!r}")


class ApplicabilityResolver:
    """
    Decides which flat taxes apply to a product for a customer.

    Used by both checkout (order lines) and catalog browsing (product
    display prices), so the two can never disagree.
    """

    @traced_engine(
        "flat_tax_applicability", "1.0",
        fingerprint_fields=("product_id", "assignment", "context"),
    )
    def resolve_for_product(
        self,
        catalog: Iterable[FlatTaxDefinition],
        product_id: UUID,
        is_tobacco: bool,
        assignment: Assignment,
        context: CustomerTaxContext,
    ) -> list[FlatTaxDefinition]:
        if isinstance(assignment, NoFlatTax):
            logger.debug(
                "flat_tax_assignment_none",
                extra={"product_id": str(product_id)},
            )
            return []

        applicable = [
            tax for tax in catalog
            if passes_scope(tax, context)
            and matches_assignment(tax, assignment, product_id, is_tobacco)
        ]

        logger.debug(
            "flat_tax_resolved",
            extra={
                "product_id": str(product_id),
                "assignment": type(assignment).__name__,
                "customer_level": context.customer_level,
                "county": context.county,
                "applicable_tax_ids": [str(t.id) for t in applicable],
            },
        )
        return applicable

    def resolve(
        self,
        catalog: Sequence[FlatTaxDefinition],
        item: LineTaxRequest,
        context: CustomerTaxContext,
    ) -> list[FlatTaxDefinition]:
        """Resolve for an order line (``LineTaxRequest``)."""
        return self.resolve_for_product(
            catalog,
            product_id=item.product_id,
            is_tobacco=item.is_tobacco,
            assignment=item.assignment,
            context=context,
        )
