"""
Module: pricing_kernel.selectors.compliance_selector
Responsibility: Read-only access to the tax calculation audit trail and to
    regulated sales records, for statutory reporting tools.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Read-only: no mutations are performed on queried rows.
    - Deterministic ordering: audits by calculated_at then id; regulated
      sales by sale_date then id.

Failure modes:
    - Returns an empty list when nothing matches (never raises on absence).
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from pricing_kernel.models.compliance import (
    RegulatedSalesRecord,
    ReportingStatus,
    TaxCalculationAudit,
)
from pricing_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class TaxAuditDTO:
    """Data transfer object for one audited calculation."""

    id: UUID
    order_id: UUID
    customer_id: str
    input_hash: str
    percentage_tax_applied: Decimal
    flat_tax_total: Decimal
    total_tax_amount: Decimal
    flat_taxes_applied: list
    calculation_input: dict
    calculation_result: dict
    reporting_period: str
    calculated_at: datetime


@dataclass(frozen=True)
class RegulatedSaleDTO:
    """Data transfer object for one regulated sales record."""

    id: UUID
    order_id: UUID
    customer_id: str
    sale_date: datetime
    regulated_products: list
    total_value: Decimal
    total_tax: Decimal
    report_form: str
    reporting_period: str
    reporting_status: ReportingStatus
    submitted_at: datetime | None


class ComplianceSelector(BaseSelector[TaxCalculationAudit]):
    """Queries the compliance output of the pricing engine."""

    def __init__(self, session: Session):
        super().__init__(session)

    @staticmethod
    def _audit_to_dto(row: TaxCalculationAudit) -> TaxAuditDTO:
        return TaxAuditDTO(
            id=row.id,
            order_id=row.order_id,
            customer_id=row.customer_id,
            input_hash=row.input_hash,
            percentage_tax_applied=row.percentage_tax_applied,
            flat_tax_total=row.flat_tax_total,
            total_tax_amount=row.total_tax_amount,
            flat_taxes_applied=list(row.flat_taxes_applied or []),
            calculation_input=dict(row.calculation_input or {}),
            calculation_result=dict(row.calculation_result or {}),
            reporting_period=row.reporting_period,
            calculated_at=row.calculated_at,
        )

    @staticmethod
    def _sale_to_dto(row: RegulatedSalesRecord) -> RegulatedSaleDTO:
        return RegulatedSaleDTO(
            id=row.id,
            order_id=row.order_id,
            customer_id=row.customer_id,
            sale_date=row.sale_date,
            regulated_products=list(row.regulated_products or []),
            total_value=row.total_value,
            total_tax=row.total_tax,
            report_form=row.report_form,
            reporting_period=row.reporting_period,
            reporting_status=ReportingStatus(row.reporting_status),
            submitted_at=row.submitted_at,
        )

    def audits_for_order(self, order_id: UUID) -> list[TaxAuditDTO]:
        """
        Every audited calculation of an order, oldest first.

        An order recalculated before completion has several rows.
        """
        rows = self.session.execute(
            select(TaxCalculationAudit)
            .where(TaxCalculationAudit.order_id == order_id)
            .order_by(TaxCalculationAudit.calculated_at, TaxCalculationAudit.id)
        ).scalars().all()
        return [self._audit_to_dto(r) for r in rows]

    def regulated_sales_for_period(
        self,
        period: str,
        status: ReportingStatus | None = None,
    ) -> list[RegulatedSaleDTO]:
        """
        Regulated sales records of a ``YYYY-MM`` reporting period.

        Args:
            period: Reporting period key.
            status: Optional filter on reporting status.
        """
        stmt = select(RegulatedSalesRecord).where(
            RegulatedSalesRecord.reporting_period == period
        )
        if status is not None:
            stmt = stmt.where(
                RegulatedSalesRecord.reporting_status == ReportingStatus(status).value
            )
        rows = self.session.execute(
            stmt.order_by(RegulatedSalesRecord.sale_date, RegulatedSalesRecord.id)
        ).scalars().all()
        return [self._sale_to_dto(r) for r in rows]

    def has_regulated_sale(self, order_id: UUID) -> bool:
        """True if a regulated sales record already exists for the order."""
        found = self.session.execute(
            select(RegulatedSalesRecord.id)
            .where(RegulatedSalesRecord.order_id == order_id)
            .limit(1)
        ).first()
        return found is not None
