from __future__ import annotations

import time as _time
from datetime import date, datetime, time, timezone, tzinfo
from typing import Callable, Optional

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Timezone-aware current time in the device's local zone."""

    return datetime.now().astimezone()


def _is_system_offset(zone: tzinfo) -> bool:
    # ``astimezone()`` yields a fixed offset named after the system zone
    return isinstance(zone, timezone) and zone.tzname(None) in _time.tzname


def combine_wall_time(day: date, at: time, zone: Optional[tzinfo] = None) -> datetime:
    """Read ``day`` and ``at`` as wall-clock values in ``zone``.

    A fixed offset taken from the system clock is resolved with the system
    rules for ``day`` so a daylight-saving change between now and ``day`` is
    honoured. IANA zones resolve their own offset.
    """

    naive = datetime.combine(day, at)
    if zone is None:
        return naive
    if _is_system_offset(zone):
        return naive.astimezone()
    return naive.replace(tzinfo=zone)


def as_utc(moment: datetime) -> datetime:
    """Absolute instant in UTC; naive values are read as system local time."""

    return moment.astimezone(timezone.utc)


__all__ = ["Clock", "as_utc", "combine_wall_time", "local_now"]
