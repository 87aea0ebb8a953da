"""Kernel write services."""

from pricing_kernel.services.base import BaseService
from pricing_kernel.services.compliance_recorder import (
    ComplianceRecorder,
    canonical_input_hash,
)

__all__ = [
    "BaseService",
    "ComplianceRecorder",
    "canonical_input_hash",
]
