"""
Module: pricing_engines.tax_types
Responsibility:
    Immutable value objects shared by the pricing engines: flat tax
    definitions, the per-product tax profile, the per-line calculation
    request, the customer's tax context, and the tagged flat-tax
    assignment variant.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import kernel domain helpers.

Invariants enforced:
    - Every value object is ``frozen=True``.
    - All monetary and percentage fields are ``Decimal``; constructors
      coerce ``None`` and malformed numbers to zero instead of raising.
    - ``NoFlatTax`` and ``LegacyAssignment`` are distinct states:
      an explicit null list of flat tax ids means "no flat taxes at all",
      an empty or absent list means "fall back to legacy matching".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pricing_kernel.domain.values import ZERO, to_decimal
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.tax_types")


class FlatTaxType(str, Enum):
    """How a flat tax amount is applied to a line."""

    PER_UNIT = "per_unit"  # amount x quantity
    PERCENTAGE = "percentage"  # amount is a percent of the line total
    FIXED = "fixed"  # amount once per line, regardless of quantity

    @classmethod
    def parse(cls, value: Any) -> FlatTaxType:
        """Parse a stored tax type; anything unrecognised is a fixed charge."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.FIXED


# ---------------------------------------------------------------------------
# Flat tax assignment variant
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExplicitAssignment:
    """The product lists the flat taxes that apply to it, and only those."""

    tax_ids: frozenset[UUID]


@dataclass(frozen=True)
class NoFlatTax:
    """The product is explicitly exempt from every flat tax."""


@dataclass(frozen=True)
class LegacyAssignment:
    """No assignment data; each tax's own applicability list decides."""


Assignment = ExplicitAssignment | NoFlatTax | LegacyAssignment

_MISSING = object()


def assignment_from_ids(flat_tax_ids: Any = _MISSING) -> Assignment:
    """
    Build the assignment variant from a stored ``flat_tax_ids`` value.

    ``None`` is the explicit "no flat taxes" marker.  A missing argument or
    an empty list falls back to legacy matching.  Entries that are not
    UUIDs are dropped with a warning; a non-empty list stays explicit even
    when every entry is dropped.
    """
    if flat_tax_ids is _MISSING:
        return LegacyAssignment()
    if flat_tax_ids is None:
        return NoFlatTax()
    raw = list(flat_tax_ids)
    if not raw:
        return LegacyAssignment()
    ids = frozenset(u for u in (_as_uuid(v) for v in raw) if u is not None)
    return ExplicitAssignment(tax_ids=ids)


def _as_uuid(value: Any) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        logger.warning("flat_tax_id_invalid", extra={"value": repr(value)})
        return None


def _as_tier(value: Any) -> int | None:
    try:
        return int(str(value).strip())
    except ValueError:
        logger.warning("customer_tier_invalid", extra={"value": repr(value)})
        return None


# ---------------------------------------------------------------------------
# Catalog and context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FlatTaxDefinition:
    """
    A flat tax from the catalog, with its scoping rules.

    ``customer_tiers`` empty means every tier; entries that are not
    integers are dropped.  ``legacy_applicable_products``
    holds product id strings and the literals ``"all"`` and ``"tobacco"``.
    """

    id: UUID
    name: str
    tax_type: FlatTaxType
    amount: Decimal
    is_active: bool = True
    customer_tiers: frozenset[int] = frozenset()
    county_restriction: str | None = None
    zip_restriction: str | None = None
    legacy_applicable_products: tuple[str, ...] = ()
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tax_type", FlatTaxType.parse(self.tax_type))
        amount = to_decimal(self.amount)
        object.__setattr__(self, "amount", amount if amount >= ZERO else ZERO)
        object.__setattr__(
            self,
            "customer_tiers",
            frozenset(
                t for t in (_as_tier(v) for v in self.customer_tiers) if t is not None
            ),
        )
        object.__setattr__(
            self,
            "legacy_applicable_products",
            tuple(str(p) for p in self.legacy_applicable_products),
        )

    @property
    def has_restrictions(self) -> bool:
        return bool(self.customer_tiers or self.county_restriction or self.zip_restriction)

    @property
    def applied_to(self) -> str:
        """Human-readable scope recorded on the order result."""
        if not self.legacy_applicable_products:
            return "all"
        return ",".join(self.legacy_applicable_products)


@dataclass(frozen=True)
class CustomerTaxContext:
    """Per-calculation customer scoping, supplied by the caller."""

    customer_level: int | None = None
    county: str | None = None
    zip_code: str | None = None
    apply_flat_tax: bool = False


@dataclass(frozen=True)
class ProductTaxProfile:
    """The tax-relevant subset of a product record."""

    product_id: UUID
    name: str
    price: Decimal
    tax_percentage: Decimal = ZERO
    is_tobacco: bool = False
    assignment: Assignment = field(default_factory=LegacyAssignment)
    category_id: UUID | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "tax_percentage", to_decimal(self.tax_percentage))


@dataclass(frozen=True)
class LineTaxRequest:
    """One order line as input to a tax calculation."""

    product_id: UUID
    product_name: str
    base_price: Decimal
    quantity: int
    tax_percentage: Decimal = ZERO
    is_tobacco: bool = False
    assignment: Assignment = field(default_factory=LegacyAssignment)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_price", to_decimal(self.base_price))
        object.__setattr__(self, "tax_percentage", to_decimal(self.tax_percentage))
        object.__setattr__(self, "quantity", int(to_decimal(self.quantity)))

    @classmethod
    def for_product(cls, profile: ProductTaxProfile, quantity: int,
                    base_price: Decimal | None = None) -> LineTaxRequest:
        """Build a line from a product profile, optionally overriding its price."""
        return cls(
            product_id=profile.product_id,
            product_name=profile.name,
            base_price=profile.price if base_price is None else base_price,
            quantity=quantity,
            tax_percentage=profile.tax_percentage,
            is_tobacco=profile.is_tobacco,
            assignment=profile.assignment,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation for audit payloads."""
        return {
            "product_id": str(self.product_id),
            "product_name": self.product_name,
            "base_price": str(self.base_price),
            "quantity": self.quantity,
            "tax_percentage": str(self.tax_percentage),
            "is_tobacco": self.is_tobacco,
            "flat_tax_ids": _assignment_to_json(self.assignment),
        }


def _assignment_to_json(assignment: Assignment) -> list[str] | None:
    match assignment:
        case ExplicitAssignment(tax_ids=ids):
            return sorted(str(i) for i in ids)
        case NoFlatTax():
            return None
        case LegacyAssignment():
            return []
