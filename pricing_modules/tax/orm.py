"""
Pricing Tax ORM Persistence Models (``pricing_modules.tax.orm``).

Responsibility:
    SQLAlchemy ORM models for the data the pricing engine reads: the flat
    tax catalog, product categories, products and stored order lines.
    Catalog and product models provide ``to_dto()`` conversion to the
    frozen engine value objects.

Architecture position:
    **Modules layer** -- persistence companions to the pure engine types.
    Inherits from ``TrackedBase`` (kernel DB base) which provides:
    id (UUID PK, auto-generated), created_at, updated_at.

Invariants enforced:
    - All monetary fields use Decimal (maps to Numeric(38,9)) -- NEVER float.
    - ``ProductModel.flat_tax_ids`` stores SQL NULL for "explicitly no flat
      taxes" and a JSON list otherwise.  An empty list means legacy
      matching.  ``to_dto()`` keeps the two states apart.
    - Order lines keep their computed tax fields once written, independent
      of later catalog edits.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricing_kernel.db.base import TrackedBase


# ---------------------------------------------------------------------------
# FlatTaxModel
# ---------------------------------------------------------------------------

class FlatTaxModel(TrackedBase):
    """
    ORM model for ``FlatTaxDefinition`` -- an administrator-managed flat tax.

    Contract:
        ``is_active = False`` removes the tax from resolution without
        deleting its history.  ``customer_tiers`` and
        ``applicable_products`` are JSON lists; empty means unrestricted.
    """

    __tablename__ = "flat_taxes"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tax_type: Mapped[str] = mapped_column(String(20), nullable=False, default="fixed")
    amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    customer_tiers: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    county_restriction: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip_restriction: Mapped[str | None] = mapped_column(String(20), nullable=True)
    applicable_products: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index("idx_flat_tax_active", "is_active"),
    )

    def to_dto(self):
        from pricing_engines.tax_types import FlatTaxDefinition, FlatTaxType
        return FlatTaxDefinition(
            id=self.id,
            name=self.name,
            tax_type=FlatTaxType.parse(self.tax_type),
            amount=self.amount,
            is_active=bool(self.is_active),
            customer_tiers=frozenset(self.customer_tiers or ()),
            county_restriction=self.county_restriction or None,
            zip_restriction=self.zip_restriction or None,
            legacy_applicable_products=tuple(self.applicable_products or ()),
            description=self.description,
        )

    def __repr__(self) -> str:
        return f"<FlatTaxModel {self.name}: {self.tax_type} {self.amount}>"


# ---------------------------------------------------------------------------
# CategoryModel
# ---------------------------------------------------------------------------

class CategoryModel(TrackedBase):
    """Product category; may be excluded from loyalty accrual as a whole."""

    __tablename__ = "product_categories"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    exclude_from_loyalty: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
    )

    def __repr__(self) -> str:
        return f"<CategoryModel {self.name} exclude_from_loyalty={self.exclude_from_loyalty}>"


# ---------------------------------------------------------------------------
# ProductModel
# ---------------------------------------------------------------------------

class ProductModel(TrackedBase):
    """
    ORM model for the tax-relevant part of a product.

    Contract:
        Assigning ``flat_tax_ids = None`` persists SQL NULL (the product is
        exempt from every flat tax).  Leaving it unset stores ``[]``.
    """

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(nullable=False)
    tax_percentage: Mapped[Decimal | None] = mapped_column(nullable=True)
    is_tobacco: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    flat_tax_ids: Mapped[list | None] = mapped_column(
        JSON(none_as_null=True), nullable=True, default=list,
    )
    category_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("product_categories.id"), nullable=True,
    )

    category: Mapped["CategoryModel | None"] = relationship(
        "CategoryModel", lazy="select",
    )

    __table_args__ = (
        Index("idx_product_category", "category_id"),
    )

    def to_dto(self):
        from pricing_engines.tax_types import ProductTaxProfile, assignment_from_ids
        return ProductTaxProfile(
            product_id=self.id,
            name=self.name,
            price=self.price,
            tax_percentage=self.tax_percentage,
            is_tobacco=bool(self.is_tobacco),
            assignment=assignment_from_ids(self.flat_tax_ids),
            category_id=self.category_id,
        )

    def __repr__(self) -> str:
        return f"<ProductModel {self.name}: {self.price}>"


# ---------------------------------------------------------------------------
# OrderItemModel
# ---------------------------------------------------------------------------

class OrderItemModel(TrackedBase):
    """
    A stored order line.

    Contract:
        ``price`` is the unit price charged; ``base_price`` the unit price
        before tax when the order flow recorded it.  ``tax_percentage``
        overrides the product's rate when set.  The three tax amount
        columns are written back by ``PricingTaxService`` and are line
        totals, not per-unit amounts.
    """

    __tablename__ = "order_items"

    order_id: Mapped[UUID] = mapped_column(nullable=False)
    line_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    product_id: Mapped[UUID] = mapped_column(
        ForeignKey("products.id"), nullable=False,
    )
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(nullable=False)
    base_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    tax_percentage: Mapped[Decimal | None] = mapped_column(nullable=True)
    flat_tax_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    percentage_tax_amount: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0"),
    )
    total_tax_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    product: Mapped["ProductModel"] = relationship("ProductModel", lazy="select")

    __table_args__ = (
        Index("idx_order_item_order", "order_id", "line_number"),
    )

    def __repr__(self) -> str:
        return f"<OrderItemModel order={self.order_id} line={self.line_number} qty={self.quantity}>"
