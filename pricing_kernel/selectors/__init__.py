"""Selectors for the pricing kernel (read side)."""

from pricing_kernel.selectors.base import BaseSelector
from pricing_kernel.selectors.compliance_selector import (
    ComplianceSelector,
    RegulatedSaleDTO,
    TaxAuditDTO,
)

__all__ = [
    "BaseSelector",
    "ComplianceSelector",
    "RegulatedSaleDTO",
    "TaxAuditDTO",
]
