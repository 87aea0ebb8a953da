"""Builders for engine value objects used across the test suite."""

from decimal import Decimal
from uuid import UUID, uuid4

from pricing_engines.tax_types import (
    FlatTaxDefinition,
    FlatTaxType,
    LegacyAssignment,
    LineTaxRequest,
    ProductTaxProfile,
)


def make_flat_tax(
    name: str = "Flat Tax",
    tax_type: FlatTaxType | str = FlatTaxType.FIXED,
    amount: str | Decimal = "1.00",
    **kwargs,
) -> FlatTaxDefinition:
    """Build a catalog entry with a fresh id."""
    return FlatTaxDefinition(
        id=kwargs.pop("id", uuid4()),
        name=name,
        tax_type=tax_type,
        amount=Decimal(str(amount)),
        **kwargs,
    )


def make_line(
    base_price: str | Decimal = "10.00",
    quantity: int = 1,
    tax_percentage: str | Decimal = "0",
    is_tobacco: bool = False,
    assignment=None,
    product_id: UUID | None = None,
    product_name: str = "Widget",
) -> LineTaxRequest:
    """Build an order line with a fresh product id."""
    return LineTaxRequest(
        product_id=product_id or uuid4(),
        product_name=product_name,
        base_price=Decimal(str(base_price)),
        quantity=quantity,
        tax_percentage=Decimal(str(tax_percentage)),
        is_tobacco=is_tobacco,
        assignment=assignment if assignment is not None else LegacyAssignment(),
    )


def make_product(
    price: str | Decimal = "10.00",
    tax_percentage: str | Decimal = "0",
    is_tobacco: bool = False,
    assignment=None,
    product_id: UUID | None = None,
    name: str = "Widget",
) -> ProductTaxProfile:
    """Build a product tax profile with a fresh id."""
    return ProductTaxProfile(
        product_id=product_id or uuid4(),
        name=name,
        price=Decimal(str(price)),
        tax_percentage=Decimal(str(tax_percentage)),
        is_tobacco=is_tobacco,
        assignment=assignment if assignment is not None else LegacyAssignment(),
    )
