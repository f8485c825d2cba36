# time_utils.py
"""
Conversions between UTC date-time strings and epoch milliseconds.

All arithmetic is done on integers (timedelta days/seconds/microseconds), so
no float rounding ever touches a timestamp. Only instants a datetime can hold
(years 1..9999, UTC) are accepted; MIN_TIME_MS..MAX_TIME_MS is that range.
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _to_ms(dt: datetime) -> int:
    delta = dt - EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


MIN_TIME_MS = _to_ms(datetime.min.replace(tzinfo=timezone.utc))
MAX_TIME_MS = _to_ms(datetime.max.replace(tzinfo=timezone.utc))


def check_time_ms(time_ms: int) -> int:
    if not MIN_TIME_MS <= time_ms <= MAX_TIME_MS:
        raise ValueError(f"bad timestamp: {time_ms} ms is out of range")
    return time_ms


def dt_to_utc_time_ms(dt: datetime) -> int:
    """Milliseconds since the epoch. Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        utc = dt.astimezone(timezone.utc)
    except OverflowError:
        raise ValueError(f"bad timestamp: {dt.isoformat()} is out of range in UTC") from None
    return _to_ms(utc)


def dt_str_to_utc_time_ms(s: str) -> int:
    """
    Parse an ISO-8601 / RFC 3339 date-time string into epoch milliseconds.

    Accepted:
      2021-07-01T00:00:00Z
      2021-07-01T02:00:00.250+02:00
      2021-07-01 00:00:00         (naive -> UTC)
    """
    text = (s or "").strip()
    if not text:
        raise ValueError("bad timestamp: empty")
    if text[-1] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"bad timestamp: {s!r} is not an ISO-8601 date-time") from None
    return dt_to_utc_time_ms(dt)


def time_ms_to_utc(time_ms: int) -> datetime:
    return EPOCH + timedelta(milliseconds=check_time_ms(time_ms))


def time_ms_to_utc_string(time_ms: int) -> str:
    """e.g. 1625097600000 -> '2021-07-01T00:00:00.000+00:00'"""
    return time_ms_to_utc(time_ms).isoformat(timespec="milliseconds")


def time_ms_to_utc_z_string(time_ms: int) -> str:
    """e.g. 1625097600000 -> '2021-07-01T00:00:00.000Z'"""
    return time_ms_to_utc_string(time_ms).replace("+00:00", "Z")
