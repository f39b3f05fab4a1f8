from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import tzlocal
from babel.dates import get_month_names
from pydantic import BaseModel

from app.core.config import Settings, get_settings


logger = logging.getLogger(__name__)

LOCAL_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
ISO_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_LONG_FRACTION_RE = re.compile(r"(:\d{2}[.,]\d{6})\d+")
_FRACTION_RE = re.compile(r"[T ]\d{2}:\d{2}:\d{2}[.,](\d+)")


class InvalidTimezoneError(ValueError):
    pass


class TimeZoneInfo(BaseModel):
    zone: str
    offset: str
    abbreviation: str
    observes_dst: bool
    in_dst: bool


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def resolve_zone(name: str | None) -> ZoneInfo:
    if not name or not name.strip():
        raise InvalidTimezoneError("Timezone name cannot be empty.")
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise InvalidTimezoneError(f"Unknown timezone: {name}") from exc


def _parse_iso(value: str) -> datetime:
    text = value.strip()
    # datetime holds at most six fractional digits.
    text = _LONG_FRACTION_RE.sub(r"\1", text)
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"Invalid ISO-8601 date/time: {value!r}") from exc


def _format_offset(offset: timedelta | None) -> str:
    seconds = int((offset or timedelta(0)).total_seconds())
    sign = "+" if seconds >= 0 else "-"
    # Historic LMT offsets carry seconds; truncate them.
    hours, mins = divmod(abs(seconds) // 60, 60)
    return f"{sign}{hours:02d}:{mins:02d}"


def get_local_current_timezone(*, settings: Settings | None = None) -> str:
    """Return the IANA name of the device timezone, e.g. ``Asia/Kuala_Lumpur``.

    Falls back to the configured timezone when the runtime cannot name it.
    """
    try:
        name = tzlocal.get_localzone_name()
    except (LookupError, ValueError, OSError) as exc:
        name = None
        logger.warning("Could not resolve device timezone: %s", exc)
    if name:
        try:
            resolve_zone(name)
            return name
        except InvalidTimezoneError:
            logger.warning("Device timezone %r is not in the zone database", name)
    fallback = (settings or get_settings()).timezone
    logger.warning("Using fallback timezone %s", fallback)
    return fallback


def normalize_time(time: str) -> str:
    """Rewrite a ``24:`` hour artifact (seen around midnight) as ``00:``."""
    return time.replace("24:", "00:", 1)


def _coerce_instant(value: str | datetime, format_in_utc: bool, settings: Settings | None) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = _parse_iso(value)
        # A bare date is UTC midnight in either mode.
        if _DATE_ONLY_RE.match(value.strip()):
            return parsed.replace(tzinfo=timezone.utc)

    if parsed.tzinfo is not None:
        return parsed
    if format_in_utc:
        return parsed.replace(tzinfo=resolve_zone(get_local_current_timezone(settings=settings)))
    return parsed.replace(tzinfo=timezone.utc)


def convert_to_timezone(
    timezone: str,
    date_time: str | datetime | None,
    fmt: str,
    format_in_utc: bool = True,
    full_month: bool = False,
    *,
    settings: Settings | None = None,
) -> str | None:
    """Render ``date_time`` in ``timezone`` using a token template.

    Supported tokens are ``YYYY``, ``MM``, ``DD``, ``HH``, ``mm`` and ``ss``;
    the first occurrence of each is replaced. With ``format_in_utc`` false a
    naive input is read as UTC wall-clock time, otherwise as device-local
    time. ``full_month`` renders ``MM`` as the month name.

    >>> convert_to_timezone("Asia/Kuala_Lumpur", "2023-10-04T14:56:43.000000Z", "YYYY-MM-DD HH:mm:ss")
    '2023-10-04 22:56:43'
    """
    if not date_time:
        return None
    target = resolve_zone(timezone)
    local = _coerce_instant(date_time, format_in_utc, settings).astimezone(target)

    if full_month:
        locale = (settings or get_settings()).locale
        month = get_month_names("wide", locale=locale)[local.month]
    else:
        month = f"{local.month:02d}"

    formatted = (
        fmt.replace("YYYY", f"{local.year:04d}", 1)
        .replace("MM", month, 1)
        .replace("DD", f"{local.day:02d}", 1)
        .replace("HH", f"{local.hour:02d}", 1)
        .replace("mm", f"{local.minute:02d}", 1)
        .replace("ss", f"{local.second:02d}", 1)
    )
    return normalize_time(formatted)


def _local_to_utc(date_time: str, timezone_name: str) -> datetime:
    zone = resolve_zone(timezone_name)
    parsed = _parse_iso(date_time)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed.astimezone(timezone.utc)


def convert_local_date_to_default_utc(date_time: str, timezone: str) -> str:
    """Convert local wall-clock ``date_time`` in ``timezone`` to a UTC string.

    Milliseconds are kept and padded with a literal ``000`` to six digits,
    e.g. ``2024-01-17T01:39:48`` in ``Asia/Kuala_Lumpur`` becomes
    ``2024-01-16T17:39:48.000000Z``.
    """
    utc = _local_to_utc(date_time, timezone)
    return f"{utc.strftime(ISO_DATETIME_FORMAT)}.{utc.microsecond // 1000:03d}000Z"


def convert_local_date_to_utc_microseconds(date_time: str, timezone: str) -> str:
    """Like :func:`convert_local_date_to_default_utc` but keeps the input fraction.

    Intended for end-of-day bounds such as ``2024-07-22T23:59:59.999999``;
    the fraction is copied verbatim (padded or cut to six digits) so it is
    never rounded into the next second.
    """
    utc = _local_to_utc(date_time, timezone)
    match = _FRACTION_RE.search(date_time)
    fraction = match.group(1) if match else ""
    fraction = fraction.ljust(6, "0")[:6]
    return f"{utc.strftime(ISO_DATETIME_FORMAT)}.{fraction}Z"


def format_date_to_iso(date: str) -> str:
    try:
        parsed = datetime.strptime(date.strip(), LOCAL_DATETIME_FORMAT)
    except ValueError as exc:
        raise ValueError(f"Expected 'YYYY-MM-DD HH:MM:SS', got {date!r}") from exc
    return parsed.strftime(ISO_DATETIME_FORMAT)


def get_timezone_info(zone: str, now: datetime | None = None) -> TimeZoneInfo:
    """Describe ``zone`` at ``now`` (default: the current time).

    ``abbreviation`` is the tz database name from ``tzname()``, e.g. ``EST`` or
    ``AEDT``. Zones without a lettered abbreviation report a numeric one such
    as ``+08``, not the ``GMT+8`` style a browser would show.
    """
    tz = resolve_zone(zone)
    instant = now or datetime.now(timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    current = instant.astimezone(tz)

    january = datetime(current.year, 1, 1, tzinfo=tz).utcoffset()
    july = datetime(current.year, 7, 1, tzinfo=tz).utcoffset()

    return TimeZoneInfo(
        zone=tz.key,
        offset=f"GMT{_format_offset(current.utcoffset())}",
        abbreviation=current.tzname() or "",
        observes_dst=january != july,
        in_dst=bool(current.dst()),
    )
