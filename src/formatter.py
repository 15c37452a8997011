"""Render any ``TagValue`` as a single display string.

Formatting is total: it never raises. Values that cannot be rendered
meaningfully (binary payloads, unparseable dates) become the empty
string so they drop out of the editable view instead of leaking raw
text into the UI or back into a write command.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, time, timedelta, timezone

from constants import (
    DEFAULT_DATE_FORMAT,
    EXIF_DATE_PATTERN,
    EXIF_DATEONLY_FORMAT,
    EXIF_DATETIME_FORMAT,
    EXIF_TIME_PATTERN,
    LIST_SEPARATOR,
)
from tag_values import Binary, DateLike, Nested, Scalar, Sequence, TagValue, to_plain


def format_value(value: TagValue, date_format: str = DEFAULT_DATE_FORMAT) -> str:
    """
    Convert a tag value into its canonical display string.

    Args:
        value: Decoded tag value.
        date_format: ``strftime`` pattern used for date/time values.

    Returns:
        Display string, or ``""`` when the value has no safe rendering.
    """
    if isinstance(value, Scalar):
        return _format_scalar(value.value)
    if isinstance(value, DateLike):
        return format_date(value.raw_value, date_format)
    if isinstance(value, Binary):
        return ""
    if isinstance(value, Sequence):
        return LIST_SEPARATOR.join(format_value(item, date_format) for item in value.items)
    if isinstance(value, Nested):
        try:
            return json.dumps(
                to_plain(value), separators=(",", ":"), ensure_ascii=False, default=str
            )
        except (TypeError, ValueError):
            return ""
    return ""


def _format_scalar(value: str | int | float | bool) -> str:
    # bool first: True is also an int
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_date(raw_value: str, date_format: str = DEFAULT_DATE_FORMAT) -> str:
    """Render an ExifTool date/time string, or ``""`` if it is not a real instant."""
    raw_value = raw_value.strip()
    match = EXIF_DATE_PATTERN.match(raw_value)
    if match:
        try:
            return _render_datetime(match.groupdict(), date_format)
        except ValueError:
            return ""
    match = EXIF_TIME_PATTERN.match(raw_value)
    if match:
        try:
            return _render_time(match.groupdict())
        except ValueError:
            return ""
    return ""


# ``+02:00`` or ``Z`` as appended by ``format_date``
_DISPLAY_OFFSET = re.compile(r"(?:Z|[+-]\d{2}:\d{2})$")


def parse_display_date(text: str, date_format: str = DEFAULT_DATE_FORMAT) -> str | None:
    """
    Convert a displayed date back into the layout ExifTool writes.

    Accepts what ``format_date`` produces for ``date_format`` as well as
    ISO ``YYYY-MM-DD [HH:MM:SS]`` and bare ``HH:MM:SS`` text, each with an
    optional fraction and UTC offset.

    Args:
        text: Date string as shown to (and edited by) the user.
        date_format: ``strftime`` pattern the text was rendered with.

    Returns:
        ``YYYY:MM:DD HH:MM:SS[.fff][+HH:MM]`` (or the date-only / time-only
        form), or ``None`` when the text matches none of the layouts.
    """
    body = text.strip()
    offset = ""
    match = _DISPLAY_OFFSET.search(body)
    if match:
        body, offset = body[: match.start()], match.group(0)

    for pattern in (date_format, DEFAULT_DATE_FORMAT, "%Y-%m-%d", "%H:%M:%S"):
        moment = _strptime(body, pattern)
        if moment is None:
            continue
        fraction = f".{moment.microsecond:06d}".rstrip("0").rstrip(".")
        if pattern == "%H:%M:%S":
            return f"{moment.strftime('%H:%M:%S')}{fraction}{offset}"
        if "%H" not in pattern and "%I" not in pattern:
            return moment.strftime(EXIF_DATEONLY_FORMAT)
        return f"{moment.strftime(EXIF_DATETIME_FORMAT)}{fraction}{offset}"
    return None


def _strptime(text: str, pattern: str) -> datetime | None:
    candidates = [pattern]
    if "%S" in pattern:
        candidates.insert(0, pattern.replace("%S", "%S.%f", 1))
    for candidate in candidates:
        try:
            return datetime.strptime(text, candidate)
        except ValueError:
            continue
    return None


def _render_datetime(parts: dict[str, str | None], date_format: str) -> str:
    year, month, day = int(parts["year"]), int(parts["month"]), int(parts["day"])
    if parts["hour"] is None:
        return datetime(year, month, day).strftime("%Y-%m-%d")
    moment = datetime(
        year,
        month,
        day,
        int(parts["hour"]),
        int(parts["minute"]),
        int(parts["second"] or 0),
    )
    rendered = moment.strftime(_with_fraction(date_format, parts["fraction"]))
    offset = _parse_offset(parts["tz"])
    if offset is not None:
        rendered = f"{rendered}{_format_offset(offset)}"
    return rendered


def _render_time(parts: dict[str, str | None]) -> str:
    moment = time(int(parts["hour"]), int(parts["minute"]), int(parts["second"] or 0))
    rendered = moment.strftime(_with_fraction("%H:%M:%S", parts["fraction"]))
    offset = _parse_offset(parts["tz"])
    if offset is not None:
        rendered = f"{rendered}{_format_offset(offset)}"
    return rendered


def _with_fraction(pattern: str, fraction: str | None) -> str:
    # sub-second digits go right after the seconds field
    if not fraction or "%S" not in pattern:
        return pattern
    return pattern.replace("%S", f"%S.{fraction}", 1)


def _parse_offset(tz: str | None) -> timezone | None:
    if not tz:
        return None
    if tz == "Z":
        return timezone.utc
    sign = -1 if tz[0] == "-" else 1
    digits = tz[1:].replace(":", "")
    hours, minutes = int(digits[:2]), int(digits[2:])
    if hours > 23 or minutes > 59:
        raise ValueError(f"offset out of range: {tz}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def _format_offset(offset: timezone) -> str:
    total = int(offset.utcoffset(None).total_seconds()) // 60
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"
