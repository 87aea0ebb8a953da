"""
Pricing Tax Configuration Schema.

Defines the structure and defaults for the pricing engine's settings.
Actual values are loaded from a YAML file or a dict at runtime.
"""

from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Self

import yaml

from pricing_kernel.logging_config import get_logger

logger = get_logger("modules.tax.config")

_DECIMAL_FIELDS = ("money_quantum", "loyalty_fallback_ratio", "loyalty_points_rate")


@dataclass
class PricingTaxConfig:
    """
    Configuration schema for the pricing tax module.

    Override at instantiation with distributor-specific values:

        config = PricingTaxConfig(
            loyalty_points_rate=Decimal("0.03"),
            exclude_tobacco_from_loyalty=True,
        )
    """

    currency: str = "USD"
    money_quantum: Decimal = Decimal("0.01")

    # Loyalty
    loyalty_fallback_ratio: Decimal = Decimal("0.85")
    loyalty_points_rate: Decimal = Decimal("0.02")
    exclude_tobacco_from_loyalty: bool = False

    # Compliance
    audit_enabled: bool = True
    regulated_tracking_enabled: bool = True
    regulated_report_form: str = "IL-TP1"

    def __post_init__(self):
        if not self.currency or len(self.currency) != 3:
            raise ValueError(f"currency must be a 3-letter ISO code, got '{self.currency}'")

        if self.money_quantum <= 0:
            raise ValueError("money_quantum must be positive")

        if not (Decimal("0") < self.loyalty_fallback_ratio <= Decimal("1")):
            raise ValueError(
                "loyalty_fallback_ratio must be greater than 0 and at most 1, "
                f"got {self.loyalty_fallback_ratio}"
            )

        if self.loyalty_points_rate < 0:
            raise ValueError("loyalty_points_rate cannot be negative")

        if not self.regulated_report_form or not self.regulated_report_form.strip():
            raise ValueError("regulated_report_form cannot be empty")

        logger.info(
            "pricing_tax_config_initialized",
            extra={
                "currency": self.currency,
                "money_quantum": str(self.money_quantum),
                "loyalty_fallback_ratio": str(self.loyalty_fallback_ratio),
                "loyalty_points_rate": str(self.loyalty_points_rate),
                "exclude_tobacco_from_loyalty": self.exclude_tobacco_from_loyalty,
                "audit_enabled": self.audit_enabled,
                "regulated_tracking_enabled": self.regulated_tracking_enabled,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the distributor's standard defaults."""
        logger.info("pricing_tax_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from a dictionary (e.g. loaded from a file)."""
        logger.info(
            "pricing_tax_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown pricing tax config keys: {sorted(unknown)}")

        values: dict[str, Any] = dict(data)
        for name in _DECIMAL_FIELDS:
            if name in values:
                try:
                    values[name] = Decimal(str(values[name]))
                except InvalidOperation as exc:
                    raise ValueError(f"{name} must be a number, got {values[name]!r}") from exc
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """
        Load config from a YAML file.

        The file may hold the settings at its top level or under a
        ``pricing_tax`` key.

        Raises:
            FileNotFoundError: if the file does not exist.
            yaml.YAMLError: if the file contains invalid YAML.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if "pricing_tax" in data:
            data = data["pricing_tax"] or {}
        logger.info("pricing_tax_config_loaded_from_yaml", extra={"path": str(path)})
        return cls.from_dict(data)
