from __future__ import annotations
from datetime import date, datetime, timedelta, timezone as dt_tz, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from fitleague.config import settings

log = structlog.get_logger()

# getTimezoneOffset() never leaves this range
_MAX_OFFSET_MINUTES = 14 * 60


def resolve_zone(tz_name: str | None = None, tz_offset_minutes: int | None = None) -> tzinfo:
    """
    Pick the zone that defines the caller's "today".

    Preference order:
      1. ``tz_name``: an IANA zone such as "America/Los_Angeles"
      2. ``tz_offset_minutes``: browser ``Date.getTimezoneOffset()`` semantics,
         i.e. minutes *behind* UTC (UTC-5 is ``300``)
      3. the configured default zone

    An unknown zone name or an out-of-range offset falls through to the next option.

    Examples:
        >>> resolve_zone("Asia/Tokyo").key
        'Asia/Tokyo'
        >>> resolve_zone(None, 300).utcoffset(None)
        datetime.timedelta(days=-1, seconds=68400)
    """
    if tz_name:
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            log.warning("invalid_timezone", tz=tz_name)
    if tz_offset_minutes is not None and abs(tz_offset_minutes) <= _MAX_OFFSET_MINUTES:
        return dt_tz(timedelta(minutes=-tz_offset_minutes))
    return ZoneInfo(settings.default_timezone)


def local_date(ts: datetime, tz: tzinfo) -> date:
    """Calendar day of an instant in ``tz``. Naive datetimes are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=dt_tz.utc)
    return ts.astimezone(tz).date()


def local_today(now_utc: datetime, tz_name: str | None = None, tz_offset_minutes: int | None = None) -> date:
    return local_date(now_utc, resolve_zone(tz_name, tz_offset_minutes))


def utc_now() -> datetime:
    """Request clock; routes take it as a dependency so tests can pin it."""
    return datetime.now(dt_tz.utc)
