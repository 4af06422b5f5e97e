# barbershop/localtime.py
"""
Business time zone helpers.

Every "day" decision (which weekly rule applies, the daily booking limit,
slot-grid boundaries) is taken on the wall clock of the business time zone,
never on the server's local zone or on UTC. Timestamps are stored naive,
already converted to that wall clock.
"""
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Union
from zoneinfo import ZoneInfo

from barbershop.errors import InvalidStart


@lru_cache(maxsize=None)
def get_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def to_local_naive(instant: datetime, tz_name: str) -> datetime:
    """Wall-clock time of ``instant`` in ``tz_name``; naive input is taken as already local."""
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(get_zone(tz_name)).replace(tzinfo=None)


def to_aware(local: datetime, tz_name: str) -> datetime:
    return local.replace(tzinfo=get_zone(tz_name))


def local_date(instant: datetime, tz_name: str) -> str:
    """Calendar date (YYYY-MM-DD) observed in ``tz_name``."""
    return to_local_naive(instant, tz_name).strftime("%Y-%m-%d")


def local_timestamp(instant: datetime, tz_name: str) -> str:
    """Zone-less timestamp (YYYY-MM-DD HH:MM:SS) for a timestamp-without-time-zone column."""
    return to_local_naive(instant, tz_name).strftime("%Y-%m-%d %H:%M:%S")


def today(tz_name: str) -> date:
    return datetime.now(get_zone(tz_name)).date()


def now_local(tz_name: str) -> datetime:
    return datetime.now(get_zone(tz_name)).replace(tzinfo=None)


def utc_now() -> datetime:
    """Naive UTC, for audit columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def day_of_week(day: date) -> int:
    # 0=Sunday ... 6=Saturday (date.weekday() is 0=Monday)
    return (day.weekday() + 1) % 7


def day_bounds(day: date) -> tuple:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def parse_start(value: Union[str, datetime], tz_name: str) -> datetime:
    """Parse a requested start into a naive local timestamp, raising InvalidStart."""
    if isinstance(value, datetime):
        parsed = value
    else:
        if not isinstance(value, str) or not value.strip():
            raise InvalidStart()
        raw = value.strip()
        # fromisoformat only accepts a trailing "Z" from Python 3.11 on
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise InvalidStart()

    return to_local_naive(parsed, tz_name).replace(microsecond=0)
