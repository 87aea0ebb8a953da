"""
Read access to the catalog, products and stored order lines.

Every selector returns frozen engine value objects, never ORM instances.
Reads never flush or mutate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from pricing_engines.loyalty import LoyaltyLine
from pricing_engines.tax_types import (
    FlatTaxDefinition,
    LineTaxRequest,
    ProductTaxProfile,
    assignment_from_ids,
)
from pricing_kernel.exceptions import FlatTaxNotFoundError
from pricing_kernel.selectors.base import BaseSelector
from pricing_modules.tax.orm import (
    CategoryModel,
    FlatTaxModel,
    OrderItemModel,
    ProductModel,
)


class FlatTaxSelector(BaseSelector[FlatTaxModel]):
    """The flat tax catalog, active and inactive entries alike."""

    def __init__(self, session: Session):
        super().__init__(session)

    def list_flat_taxes(self) -> list[FlatTaxDefinition]:
        """All catalog entries, ordered by name.  Inactive ones included."""
        rows = self.session.execute(
            select(FlatTaxModel).order_by(FlatTaxModel.name, FlatTaxModel.id)
        ).scalars().all()
        return [r.to_dto() for r in rows]

    def get_flat_tax(self, tax_id: UUID) -> FlatTaxDefinition:
        """
        One catalog entry.

        Raises:
            FlatTaxNotFoundError: If no entry has this id.
        """
        row = self.session.get(FlatTaxModel, tax_id)
        if row is None:
            raise FlatTaxNotFoundError(str(tax_id))
        return row.to_dto()


class ProductSelector(BaseSelector[ProductModel]):
    """Tax profiles of products."""

    def __init__(self, session: Session):
        super().__init__(session)

    def tax_profiles(self, product_ids: Iterable[UUID]) -> list[ProductTaxProfile]:
        """
        Profiles of the given products, in the order requested.

        Unknown ids are skipped.
        """
        ids = list(dict.fromkeys(product_ids))
        if not ids:
            return []
        rows = self.session.execute(
            select(ProductModel).where(ProductModel.id.in_(ids))
        ).scalars().all()
        by_id = {r.id: r.to_dto() for r in rows}
        return [by_id[i] for i in ids if i in by_id]


@dataclass(frozen=True)
class StoredOrderLine:
    """An order item id with the calculation request built from it."""

    item_id: UUID
    line_number: int
    request: LineTaxRequest


class OrderLineSelector(BaseSelector[OrderItemModel]):
    """
    Stored order lines joined to their products.

    Line tax percentage is the order item's own value when recorded,
    otherwise the product's.  The base price is the item's ``base_price``
    when recorded, otherwise its ``price``.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def order_items(self, order_id: UUID) -> list[StoredOrderLine]:
        rows = self.session.execute(
            select(OrderItemModel, ProductModel)
            .join(ProductModel, OrderItemModel.product_id == ProductModel.id)
            .where(OrderItemModel.order_id == order_id)
            .order_by(OrderItemModel.line_number, OrderItemModel.id)
        ).all()

        lines = []
        for item, product in rows:
            tax_percentage = item.tax_percentage
            if tax_percentage is None:
                tax_percentage = product.tax_percentage
            base_price = item.base_price if item.base_price is not None else item.price
            lines.append(StoredOrderLine(
                item_id=item.id,
                line_number=item.line_number,
                request=LineTaxRequest(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    base_price=base_price,
                    quantity=item.quantity,
                    tax_percentage=tax_percentage,
                    is_tobacco=bool(product.is_tobacco),
                    assignment=assignment_from_ids(product.flat_tax_ids),
                ),
            ))
        return lines

    def loyalty_lines(self, order_id: UUID) -> list[LoyaltyLine]:
        """Order lines with their category's loyalty exclusion flag."""
        rows = self.session.execute(
            select(OrderItemModel, ProductModel, CategoryModel.exclude_from_loyalty)
            .join(ProductModel, OrderItemModel.product_id == ProductModel.id)
            .outerjoin(CategoryModel, ProductModel.category_id == CategoryModel.id)
            .where(OrderItemModel.order_id == order_id)
            .order_by(OrderItemModel.line_number, OrderItemModel.id)
        ).all()

        return [
            LoyaltyLine(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                price=item.price,
                base_price=item.base_price,
                flat_tax_amount=item.flat_tax_amount,
                tax_percentage=item.tax_percentage,
                exclude_from_loyalty=bool(excluded),
                is_tobacco=bool(product.is_tobacco),
            )
            for item, product, excluded in rows
        ]
