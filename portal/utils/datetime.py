"""Timezone helpers shared by the domain and the persistence layer.

The domain handles aware datetimes only. Columns store the naive wall-clock
value in the application timezone, so every value crossing the repository
boundary goes through :func:`ensure_app_naive_datetime` on the way in and
:func:`ensure_app_timezone` on the way out.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from portal.config import get_settings

_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the timezone named by ``APP_TIMEZONE``.

    IANA names and fixed offsets such as ``UTC-05:00`` are accepted; anything
    else resolves to UTC.
    """

    name = (get_settings().app_timezone or "").strip()
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return _parse_offset(name) or timezone.utc


def now_in_app_timezone() -> datetime:
    return datetime.now(tz=get_app_timezone())


def now_in_app_naive_datetime() -> datetime:
    """Column default: the current wall-clock time of the app timezone."""

    return now_in_app_timezone().replace(tzinfo=None)


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Attach (naive input) or convert to (aware input) the app timezone."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=get_app_timezone())
    return value.astimezone(get_app_timezone())


def ensure_app_naive_datetime(value: datetime | None) -> datetime | None:
    """Return the naive wall-clock value of ``value`` in the app timezone."""

    localized = ensure_app_timezone(value)
    return localized.replace(tzinfo=None) if localized is not None else None


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` of ``year`` as aware app-timezone datetimes."""

    tz = get_app_timezone()
    return datetime(year, 1, 1, tzinfo=tz), datetime(year + 1, 1, 1, tzinfo=tz)


def _parse_offset(name: str) -> tzinfo | None:
    match = _OFFSET_PATTERN.match(name)
    if match is None:
        return None
    offset = timedelta(
        hours=int(match.group("hours")), minutes=int(match.group("minutes") or 0)
    )
    return timezone(-offset if match.group("sign") == "-" else offset)
