"""
ComplianceRecorder -- persistence of tax audits and regulated sales.

Responsibility:
    Writes one TaxCalculationAudit row per order tax calculation and one
    RegulatedSalesRecord per calculation containing regulated (tobacco)
    lines.  Reporting period and timestamps come from the injected Clock.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by PricingTaxService after the pure aggregation has finished.
    Takes JSON-safe payloads rather than engine objects so the kernel does
    not depend on the engines package.

Invariants enforced:
    - Each write runs in its own SAVEPOINT (``session.begin_nested()``).
      A failed write rolls back only that savepoint; the caller's
      transaction and any earlier work in it survive.
    - Rows are only ever added.  Immutability listeners refuse updates
      and deletes after insert.

Failure modes:
    - ComplianceWriteError: the database refused the write.  The original
      SQLAlchemyError is chained as ``__cause__``.

Audit relevance:
    input_hash is the SHA-256 of the canonical JSON of the calculation
    input, so reporting tools can detect identical recalculations.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pricing_kernel.domain.clock import Clock, SystemClock
from pricing_kernel.domain.values import reporting_period
from pricing_kernel.exceptions import ComplianceWriteError
from pricing_kernel.logging_config import get_logger
from pricing_kernel.models.compliance import (
    RegulatedSalesRecord,
    ReportingStatus,
    TaxCalculationAudit,
)
from pricing_kernel.services.base import BaseService

logger = get_logger("services.compliance_recorder")

DEFAULT_REPORT_FORM = "IL-TP1"


def canonical_input_hash(payload: dict[str, Any]) -> str:
    """SHA-256 of a payload serialized with sorted keys and no whitespace."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ComplianceRecorder(BaseService):
    """
    Append-only writer for the pricing engine's compliance output.

    Usage:
        recorder = ComplianceRecorder(session, clock)
        audit = recorder.record_calculation_audit(
            order_id=order_id,
            customer_id="cust-42",
            customer_level=2,
            apply_flat_tax=True,
            calculation_input=request.to_dict(),
            calculation_result=result.to_dict(),
            percentage_tax_applied=result.percentage_tax_total,
            flat_taxes_applied=[f.to_dict() for f in result.flat_taxes_applied],
            flat_tax_total=result.flat_tax_total,
            total_tax_amount=result.total_tax_amount,
        )
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        report_form: str = DEFAULT_REPORT_FORM,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._report_form = report_form

    def record_calculation_audit(
        self,
        order_id: UUID,
        customer_id: str,
        customer_level: int | None,
        apply_flat_tax: bool,
        calculation_input: dict[str, Any],
        calculation_result: dict[str, Any],
        percentage_tax_applied: Decimal,
        flat_taxes_applied: list[dict[str, Any]],
        flat_tax_total: Decimal,
        total_tax_amount: Decimal,
    ) -> TaxCalculationAudit:
        """
        Append the audit row of one calculation.

        Raises:
            ComplianceWriteError: If the database refuses the write.
        """
        now = self._clock.now()
        audit = TaxCalculationAudit(
            order_id=order_id,
            customer_id=customer_id,
            customer_level=customer_level,
            apply_flat_tax=apply_flat_tax,
            calculation_input=calculation_input,
            calculation_result=calculation_result,
            input_hash=canonical_input_hash(calculation_input),
            percentage_tax_applied=percentage_tax_applied,
            flat_taxes_applied=flat_taxes_applied,
            flat_tax_total=flat_tax_total,
            total_tax_amount=total_tax_amount,
            reporting_period=reporting_period(now),
            calculated_at=now,
        )
        self._write("tax_calculation_audit", order_id, audit)
        logger.info("tax_audit_recorded", extra={
            "order_id": str(order_id),
            "audit_id": str(audit.id),
            "input_hash": audit.input_hash,
            "total_tax_amount": str(total_tax_amount),
            "reporting_period": audit.reporting_period,
        })
        return audit

    def record_regulated_sale(
        self,
        order_id: UUID,
        customer_id: str,
        regulated_products: list[dict[str, Any]],
        total_value: Decimal,
        total_tax: Decimal,
    ) -> RegulatedSalesRecord:
        """
        Append the regulated sales record of an order, status pending.

        Raises:
            ComplianceWriteError: If the database refuses the write.
        """
        now = self._clock.now()
        record = RegulatedSalesRecord(
            order_id=order_id,
            customer_id=customer_id,
            sale_date=now,
            regulated_products=regulated_products,
            total_value=total_value,
            total_tax=total_tax,
            report_form=self._report_form,
            reporting_period=reporting_period(now),
            reporting_status=ReportingStatus.PENDING.value,
        )
        self._write("regulated_sales_record", order_id, record)
        logger.info("regulated_sale_recorded", extra={
            "order_id": str(order_id),
            "record_id": str(record.id),
            "regulated_line_count": len(regulated_products),
            "total_value": str(total_value),
            "total_tax": str(total_tax),
            "reporting_period": record.reporting_period,
            "report_form": self._report_form,
        })
        return record

    def _write(self, record_type: str, order_id: UUID, row: Any) -> None:
        try:
            with self.session.begin_nested():
                self.session.add(row)
                self.session.flush()
        except SQLAlchemyError as exc:
            raise ComplianceWriteError(
                record_type=record_type,
                order_id=str(order_id),
                reason=str(exc.__class__.__name__),
            ) from exc
