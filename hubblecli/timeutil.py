"""Time parsing and formatting helpers for relative and absolute timestamps."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

RFC3339 = "2006-01-02T15:04:05Z07:00"
RFC3339_MILLI = "2006-01-02T15:04:05.999Z07:00"
RFC3339_MICRO = "2006-01-02T15:04:05.999999Z07:00"
RFC3339_NANO = "2006-01-02T15:04:05.999999999Z07:00"
RFC1123Z = "Mon, 02 Jan 2006 15:04:05 -0700"
STAMP_MILLI = "Jan _2 15:04:05.000"

FORMAT_NAMES = (
    "StampMilli",
    "RFC3339",
    "RFC3339Milli",
    "RFC3339Micro",
    "RFC3339Nano",
    "RFC1123Z",
)

_LAYOUTS_BY_NAME = {
    "rfc3339": RFC3339,
    "rfc3339milli": RFC3339_MILLI,
    "rfc3339micro": RFC3339_MICRO,
    "rfc3339nano": RFC3339_NANO,
    "rfc1123z": RFC1123Z,
    "stampmilli": STAMP_MILLI,
}

_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_MAX_NANOSECONDS = 2**63 - 1
_DURATION_PART = re.compile(r"(\d*)(\.(\d*))?([^\d.]*)")

_MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)
_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_RFC3339_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})"
)
_RFC1123Z_RE = re.compile(
    r"(?:mon|tue|wed|thu|fri|sat|sun), (\d{2}) ([a-z]{3}) (\d{4}) "
    r"(\d{2}):(\d{2}):(\d{2})(?:[.,](\d+))? ([+-])(\d{2})(\d{2})",
    re.IGNORECASE,
)

_TOKENS = (
    "January", "Jan", "Monday", "Mon", "MST",
    "2006", "002", "01", "02", "03", "04", "05", "06", "15",
    "__2", "_2", "1", "2", "3", "4", "5", "PM", "pm",
    "Z07:00:00", "Z070000", "Z07:00", "Z0700", "Z07",
    "-07:00:00", "-070000", "-07:00", "-0700", "-07",
)
_FRACTION = re.compile(r"([.,])(0+|9+)(?!\d)")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"1h30m"``, ``"-1.5s"`` or ``"300ms"``."""
    rest = text
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")

    total = 0
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        whole, dot, fraction, unit = match.group(1), match.group(2), match.group(3), match.group(4)
        if not whole and not fraction:
            raise ValueError(f"invalid duration {text!r}")
        if not unit:
            raise ValueError(f"missing unit in duration {text!r}")
        if unit not in _UNITS:
            raise ValueError(f"unknown unit {unit!r} in duration {text!r}")
        scale = _UNITS[unit]
        total += int(whole or "0") * scale
        if dot and fraction:
            total += int(fraction) * scale // 10 ** len(fraction)
        if total > _MAX_NANOSECONDS:
            raise ValueError(f"invalid duration {text!r}")
        pos = match.end()

    result = timedelta(microseconds=total // 1000)
    return -result if negative else result


def _offset(sign: str, hours: str, minutes: str) -> timezone:
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    if not delta:
        return timezone.utc
    return timezone(-delta if sign == "-" else delta)


def _microseconds(fraction: str | None) -> int:
    if not fraction:
        return 0
    return int((fraction + "000000")[:6])


def _parse_rfc3339(value: str) -> datetime | None:
    match = _RFC3339_RE.fullmatch(value)
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    try:
        tz = timezone.utc if zone == "Z" else _offset(zone[0], zone[1:3], zone[4:6])
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second),
            _microseconds(fraction), tzinfo=tz,
        )
    except ValueError:
        return None


def _parse_rfc1123z(value: str) -> datetime | None:
    match = _RFC1123Z_RE.fullmatch(value)
    if match is None:
        return None
    day, month_name, year, hour, minute, second, fraction, sign, oh, om = match.groups()
    months = [name[:3].lower() for name in _MONTHS]
    if month_name.lower() not in months:
        return None
    try:
        return datetime(
            int(year), months.index(month_name.lower()) + 1, int(day),
            int(hour), int(minute), int(second), _microseconds(fraction),
            tzinfo=_offset(sign, oh, om),
        )
    except ValueError:
        return None


def from_string(value: str, now: datetime | None = None) -> datetime:
    """Convert a duration in the past or an RFC 3339 / RFC 1123Z string to a datetime.

    A duration is taken relative to ``now`` (the current UTC time by default).
    """
    try:
        delta = parse_duration(value)
    except ValueError:
        pass
    else:
        current = now if now is not None else datetime.now(timezone.utc)
        return current - delta

    for parser in (_parse_rfc3339, _parse_rfc1123z):
        parsed = parser(value)
        if parsed is not None:
            return parsed
    raise ValueError(f"failed to convert {value} to time")


def format_name_to_layout(name: str) -> str:
    """Return the layout for a time format name; unknown names give StampMilli."""
    return _LAYOUTS_BY_NAME.get(name.lower(), STAMP_MILLI)


def _utc_offset_seconds(moment: datetime) -> int:
    return int((moment.utcoffset() or timedelta(0)).total_seconds())


def _format_zone(moment: datetime, token: str) -> str:
    offset = _utc_offset_seconds(moment)
    if token.startswith("Z") and offset == 0:
        return "Z"
    sign = "-" if offset < 0 else "+"
    hours, rest = divmod(abs(offset), 3600)
    minutes, seconds = divmod(rest, 60)
    body = token[1:]
    if body == "07":
        return f"{sign}{hours:02d}"
    if body == "0700":
        return f"{sign}{hours:02d}{minutes:02d}"
    if body == "07:00":
        return f"{sign}{hours:02d}:{minutes:02d}"
    if body == "070000":
        return f"{sign}{hours:02d}{minutes:02d}{seconds:02d}"
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"


def _zone_name(moment: datetime) -> str:
    if moment.tzinfo is None:
        return "UTC"
    name = moment.tzname() or ""
    if name and not (name.startswith("UTC") and len(name) > 3):
        return name
    offset = _utc_offset_seconds(moment) // 60
    sign = "-" if offset < 0 else "+"
    hours, minutes = divmod(abs(offset), 60)
    return f"{sign}{hours:02d}{minutes:02d}"


def _hour12(moment: datetime) -> int:
    return moment.hour % 12 or 12


def _format_token(moment: datetime, token: str) -> str:
    if token[0] in "Z-":
        return _format_zone(moment, token)
    formatters = {
        "January": lambda: _MONTHS[moment.month - 1],
        "Jan": lambda: _MONTHS[moment.month - 1][:3],
        "Monday": lambda: _DAYS[moment.weekday()],
        "Mon": lambda: _DAYS[moment.weekday()][:3],
        "MST": lambda: _zone_name(moment),
        "2006": lambda: f"{moment.year:04d}",
        "06": lambda: f"{moment.year % 100:02d}",
        "01": lambda: f"{moment.month:02d}",
        "1": lambda: str(moment.month),
        "02": lambda: f"{moment.day:02d}",
        "2": lambda: str(moment.day),
        "_2": lambda: f"{moment.day:>2d}",
        "__2": lambda: f"{moment.timetuple().tm_yday:>3d}",
        "002": lambda: f"{moment.timetuple().tm_yday:03d}",
        "15": lambda: f"{moment.hour:02d}",
        "03": lambda: f"{_hour12(moment):02d}",
        "3": lambda: str(_hour12(moment)),
        "04": lambda: f"{moment.minute:02d}",
        "4": lambda: str(moment.minute),
        "05": lambda: f"{moment.second:02d}",
        "5": lambda: str(moment.second),
        "PM": lambda: "PM" if moment.hour >= 12 else "AM",
        "pm": lambda: "pm" if moment.hour >= 12 else "am",
    }
    return formatters[token]()


def _format_fraction(moment: datetime, separator: str, run: str) -> str:
    digits = f"{moment.microsecond * 1000:09d}"[: len(run)]
    if run[0] == "0":
        return separator + digits
    trimmed = digits.rstrip("0")
    return separator + trimmed if trimmed else ""


def format_time(moment: datetime, layout: str) -> str:
    """Format ``moment`` using a reference-time layout such as ``STAMP_MILLI``."""
    out: list[str] = []
    pos = 0
    while pos < len(layout):
        if layout.startswith("_2006", pos):
            out.append("_")
            pos += 1
            continue
        fraction = _FRACTION.match(layout, pos)
        if fraction:
            out.append(_format_fraction(moment, fraction.group(1), fraction.group(2)))
            pos = fraction.end()
            continue
        for token in _TOKENS:
            if layout.startswith(token, pos):
                out.append(_format_token(moment, token))
                pos += len(token)
                break
        else:
            out.append(layout[pos])
            pos += 1
    return "".join(out)