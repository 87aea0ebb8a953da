"""Kernel ORM models: the compliance output of the pricing engine."""

from pricing_kernel.models.compliance import (
    RegulatedSalesRecord,
    ReportingStatus,
    TaxCalculationAudit,
)

__all__ = [
    "TaxCalculationAudit",
    "RegulatedSalesRecord",
    "ReportingStatus",
]
