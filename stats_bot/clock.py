from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Optional

from tzlocal import get_localzone


def local_zone() -> tzinfo:
    """The server's zone with its DST rules, not just today's UTC offset"""
    return get_localzone()


@dataclass
class Clock:
    tz: Optional[tzinfo] = None  # None -> server local zone
    _fixed: Optional[datetime] = field(default=None, repr=False)

    def __post_init__(self):
        if self.tz is None:
            self.tz = local_zone()

    @classmethod
    def frozen(cls, moment: datetime, tz: Optional[tzinfo] = None) -> "Clock":
        """Clock that always returns `moment` (must be aware), seen in `tz` or its own zone"""
        return cls(tz=tz or moment.tzinfo, _fixed=moment)

    def now(self) -> datetime:
        if self._fixed is not None:
            return self._fixed.astimezone(self.tz)
        return datetime.now(self.tz)

    def start_of_day(self, dt: datetime | None = None) -> datetime:
        dt = (dt or self.now()).astimezone(self.tz)
        return dt.replace(hour=0, minute=0, second=0, microsecond=0)

    @staticmethod
    def add_days(dt: datetime, days: int) -> datetime:
        # wall-clock arithmetic: midnight stays midnight across DST changes
        return dt + timedelta(days=days)


@dataclass(frozen=True)
class TimeWindow:
    """Timestamp interval; a None bound is open"""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    end_inclusive: bool = False
