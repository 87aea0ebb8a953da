"""
Clock -- injectable time source for compliance metadata.

Pricing numbers never depend on time.  The only timestamps this system
produces are audit metadata: ``calculated_at`` and ``reporting_period`` on
tax calculation audits, ``sale_date`` and ``reporting_period`` on regulated
sales records.  Those are taken from a ``Clock`` handed to the
``ComplianceRecorder``, so tests can pin the reporting month.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta


class Clock(ABC):
    """Source of the current, timezone-aware time."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_utc(self) -> datetime:
        return self.now().astimezone(UTC)


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Starts at 2024-01-01 12:00 UTC unless given ``fixed_time``, so records
    created under it fall in reporting period ``2024-01``.
    """

    DEFAULT_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or self.DEFAULT_TIME

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        """Move forward by ``seconds``."""
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        self.advance(1)
        return self._current
