"""Injectable time source and day bucketing."""

from __future__ import annotations

import time
from datetime import datetime
from typing import Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class Clock(Protocol):
    def now(self) -> int:
        """Return the current time in epoch seconds."""
        ...

    def day_bucket(self, ts: int) -> str:
        """Return the calendar day (``YYYY-MM-DD``) containing ``ts``."""
        ...


def _zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        from .challenge.errors import ValidationError

        raise ValidationError(f"Unknown time zone '{tz_name}'") from exc


class SystemClock:
    """Wall clock; day buckets follow the server's configured time zone."""

    def __init__(self, tz_name: str = "UTC") -> None:
        self._tz = _zone(tz_name)

    def now(self) -> int:
        return int(time.time())

    def day_bucket(self, ts: int) -> str:
        return datetime.fromtimestamp(ts, tz=self._tz).strftime("%Y-%m-%d")


class FrozenClock(SystemClock):
    """Clock that only moves when told to. Used by tests and replays."""

    def __init__(self, start: int, tz_name: str = "UTC") -> None:
        super().__init__(tz_name)
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int = 0, *, minutes: int = 0, days: int = 0) -> int:
        self._now += seconds + minutes * 60 + days * 86400
        return self._now

    def set(self, ts: Optional[int]) -> None:
        if ts is not None:
            self._now = int(ts)


__all__ = ["Clock", "FrozenClock", "SystemClock"]
