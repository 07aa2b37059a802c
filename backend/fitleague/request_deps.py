from __future__ import annotations
from datetime import date, datetime, tzinfo

from fastapi import Depends, Query

from fitleague.services.time_windows import local_date, resolve_zone, utc_now


def request_zone(
    tz: str | None = Query(default=None, description="IANA zone, e.g. America/New_York"),
    tz_offset_minutes: int | None = Query(
        default=None, alias="tzOffsetMinutes", description="Date.getTimezoneOffset()"
    ),
) -> tzinfo:
    """The caller's zone; every route that needs "today" resolves it here."""
    return resolve_zone(tz, tz_offset_minutes)


def request_today(
    now: datetime = Depends(utc_now),
    zone: tzinfo = Depends(request_zone),
) -> date:
    return local_date(now, zone)
