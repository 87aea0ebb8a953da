"""
Money helpers -- Decimal coercion and boundary rounding.

Responsibility:
    The single place where untrusted numeric input (``None``, ``int``,
    ``str``, ``float`` left over from an upstream form) becomes a
    ``Decimal``, and where monetary amounts are rounded for display and
    order totals.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.  Imported by engines.

Invariants enforced:
    - NEVER use float for monetary amounts.  Floats are converted through
      ``str()`` so that 0.1 becomes Decimal("0.1"), not its binary expansion.
    - Missing or malformed numbers become Decimal("0"); pricing never raises
      on input fidelity problems.
    - Rounding is ROUND_HALF_UP and happens only where callers ask for it.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce a loosely-typed numeric value to Decimal, defaulting to zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def round_money(amount: Decimal, quantum: Decimal = CENT) -> Decimal:
    """Round a monetary amount half-up to the given quantum."""
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percentage: Decimal) -> Decimal:
    """Return ``percentage`` percent of ``amount`` (percentage as 0-100)."""
    return amount * (percentage / HUNDRED)


def reporting_period(moment: datetime) -> str:
    """Monthly reporting period key, ``YYYY-MM``."""
    return f"{moment.year:04d}-{moment.month:02d}"
