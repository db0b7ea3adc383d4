from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from build_notifier.core.exceptions import TimestampParseError

_RFC3339 = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d{1,9}))?"
    r"(?P<tz>[Zz]|[+-]\d{2}:\d{2})$"
)


def normalize_timestamp(value: str | None, field: str = "timestamp") -> str:
    """Parse an RFC 3339 timestamp and return it in canonical UTC form.

    Accepts a ``Z`` suffix or a numeric offset and up to nanosecond
    precision, the same inputs a protobuf ``Timestamp`` accepts. The result
    uses a ``Z`` suffix and 0, 3, 6 or 9 fractional digits.

    Args:
        value: The timestamp string, e.g. ``"2020-01-01T00:05:00.123456789Z"``.
        field: Name used in the error message.

    Returns:
        The normalized timestamp, e.g. ``"2020-01-01T00:05:00.123456789Z"``.

    Raises:
        TimestampParseError: If *value* is missing or not a valid timestamp.
    """
    if not value:
        raise TimestampParseError(f"{field} is missing", details={"field": field})

    match = _RFC3339.match(value.strip())
    if match is None:
        raise TimestampParseError(
            f"{field} is not an RFC 3339 timestamp: {value!r}",
            details={"field": field, "value": value},
        )

    try:
        offset = _parse_offset(match["tz"])
        parsed = datetime.strptime(
            f"{match['date']}T{match['time']}", "%Y-%m-%dT%H:%M:%S"
        ).replace(tzinfo=offset)
        utc = parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError) as exc:
        raise TimestampParseError(
            f"{field} is out of range: {value!r}",
            details={"field": field, "value": value},
        ) from exc

    nanos = int((match["frac"] or "0").ljust(9, "0"))
    return _format_seconds(utc) + _format_nanos(nanos) + "Z"


def _parse_offset(tz: str) -> timezone:
    if tz in ("Z", "z"):
        return timezone.utc
    hours, minutes = int(tz[1:3]), int(tz[4:6])
    if hours > 23 or minutes > 59:
        raise ValueError(f"UTC offset out of range: {tz}")
    delta = timedelta(hours=hours, minutes=minutes)
    return timezone(-delta if tz[0] == "-" else delta)


def _format_seconds(utc: datetime) -> str:
    # strftime does not zero-pad years before 1000 on every platform.
    return (
        f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d}"
        f"T{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}"
    )


def _format_nanos(nanos: int) -> str:
    if nanos == 0:
        return ""
    if nanos % 1_000_000 == 0:
        return f".{nanos // 1_000_000:03d}"
    if nanos % 1_000 == 0:
        return f".{nanos // 1_000:06d}"
    return f".{nanos:09d}"


def format_timestamp(moment: datetime) -> str:
    """Format an aware datetime as an RFC 3339 UTC string."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return _format_seconds(utc) + _format_nanos(utc.microsecond * 1_000) + "Z"
