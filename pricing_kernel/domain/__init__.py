"""Pure domain helpers: clock abstraction and money values."""

from pricing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from pricing_kernel.domain.values import (
    CENT,
    HUNDRED,
    ZERO,
    percent_of,
    reporting_period,
    round_money,
    to_decimal,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "ZERO",
    "HUNDRED",
    "CENT",
    "to_decimal",
    "round_money",
    "percent_of",
    "reporting_period",
]
