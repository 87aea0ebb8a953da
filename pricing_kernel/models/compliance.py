"""
Module: pricing_kernel.models.compliance
Responsibility: ORM persistence for the tax calculation audit trail and for
    regulated (tobacco) sales records used in monthly statutory filing.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - TaxCalculationAudit rows are append-only; no UPDATE or DELETE
      (ORM listeners in db/immutability.py).
    - RegulatedSalesRecord financial fields are frozen at insert.  Only
      reporting_status (pending -> filed) and submitted_at may change, and
      the row may never be deleted.
    - One audit row per calculation invocation; an order recalculated three
      times before completion owns three audit rows.

Audit relevance:
    These two tables ARE the compliance output of the pricing engine.
    External reporting tooling reads regulated sales by reporting_period
    (``YYYY-MM``) and audits by order_id.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from pricing_kernel.db.base import Base, UUIDString


class ReportingStatus(str, Enum):
    """Filing lifecycle of a regulated sales record."""

    PENDING = "pending"
    FILED = "filed"


class TaxCalculationAudit(Base):
    """
    Immutable record of one order tax calculation.

    Contract:
        Captures the full request and result as opaque JSON payloads plus
        the numeric summary needed for reconciliation queries.  Decimal
        values inside the JSON payloads are stored as strings.

    Guarantees:
        - input_hash is the SHA-256 of the canonical request payload; two
          calculations of an unmodified order share it.
        - calculated_at and reporting_period come from the injected Clock.
    """

    __tablename__ = "tax_calculation_audits"

    __table_args__ = (
        Index("idx_tax_audit_order", "order_id"),
        Index("idx_tax_audit_period", "reporting_period"),
        Index("idx_tax_audit_input_hash", "input_hash"),
    )

    order_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    customer_id: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    apply_flat_tax: Mapped[bool] = mapped_column(Boolean, nullable=False)

    calculation_input: Mapped[dict] = mapped_column(JSON, nullable=False)
    calculation_result: Mapped[dict] = mapped_column(JSON, nullable=False)
    input_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    percentage_tax_applied: Mapped[Decimal] = mapped_column(nullable=False)
    flat_taxes_applied: Mapped[list] = mapped_column(JSON, nullable=False)
    flat_tax_total: Mapped[Decimal] = mapped_column(nullable=False)
    total_tax_amount: Mapped[Decimal] = mapped_column(nullable=False)

    reporting_period: Mapped[str] = mapped_column(String(7), nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<TaxCalculationAudit order={self.order_id} "
            f"total_tax={self.total_tax_amount} period={self.reporting_period}>"
        )


class RegulatedSalesRecord(Base):
    """
    Statutory record of the regulated (tobacco) lines of one order.

    Contract:
        Created once per calculation that contains at least one regulated
        line, with reporting_status=pending.  A separate filing process
        moves it to filed and stamps submitted_at.
    """

    __tablename__ = "regulated_sales_records"

    __table_args__ = (
        Index("idx_regulated_sales_order", "order_id"),
        Index("idx_regulated_sales_period_status", "reporting_period", "reporting_status"),
    )

    order_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    customer_id: Mapped[str] = mapped_column(String(100), nullable=False)
    sale_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    regulated_products: Mapped[list] = mapped_column(JSON, nullable=False)
    total_value: Mapped[Decimal] = mapped_column(nullable=False)
    total_tax: Mapped[Decimal] = mapped_column(nullable=False)

    report_form: Mapped[str] = mapped_column(String(20), nullable=False, default="IL-TP1")
    reporting_period: Mapped[str] = mapped_column(String(7), nullable=False)
    reporting_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReportingStatus.PENDING.value,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<RegulatedSalesRecord order={self.order_id} "
            f"period={self.reporting_period} status={self.reporting_status}>"
        )
