"""Closed tagged-union representation of tag values.

ExifTool's JSON output is self-describing: a tag may hold a string, a
number, a date, a binary placeholder, a nested structure (ICC profiles,
XMP structs) or a list of any of those. The decoder turns that raw
output into one of five frozen variants so downstream code can match
on the shape instead of probing dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from constants import (
    BINARY_CTOR,
    BINARY_VALUE_PATTERN,
    DATE_CTORS,
    EXIF_DATE_PATTERN,
)


@dataclass(frozen=True)
class Scalar:
    value: str | int | float | bool


@dataclass(frozen=True)
class DateLike:
    """An instant as ExifTool wrote it; the display form is derived."""

    raw_value: str


@dataclass(frozen=True)
class Binary:
    """Opaque binary payload. Only ExifTool's description is kept."""

    description: str = ""


@dataclass(frozen=True)
class Nested:
    fields: Mapping[str, "TagValue"] = field(default_factory=dict)


@dataclass(frozen=True)
class Sequence:
    items: tuple["TagValue", ...] = ()


TagValue = Union[Scalar, DateLike, Binary, Nested, Sequence]


def decode_value(raw: Any) -> TagValue:
    """
    Decode one raw JSON value into a ``TagValue``.

    Args:
        raw: Value as produced by ``json.loads`` on ExifTool output, or a
            record serialized with ``_ctor`` markers.

    Returns:
        The matching ``TagValue`` variant.
    """
    if raw is None:
        return Scalar("")
    if isinstance(raw, (bool, int, float)):
        return Scalar(raw)
    if isinstance(raw, str):
        if BINARY_VALUE_PATTERN.match(raw):
            return Binary(raw)
        if EXIF_DATE_PATTERN.match(raw):
            return DateLike(raw)
        return Scalar(raw)
    if isinstance(raw, (list, tuple)):
        return Sequence(tuple(decode_value(item) for item in raw))
    if isinstance(raw, Mapping):
        return _decode_mapping(raw)
    if isinstance(raw, (bytes, bytearray)):
        return Binary(f"(Binary data {len(raw)} bytes)")
    return Scalar(str(raw))


def _decode_mapping(raw: Mapping[str, Any]) -> TagValue:
    """Decode a mapping, honouring ``_ctor`` type markers."""
    ctor = raw.get("_ctor")
    if ctor == BINARY_CTOR:
        return Binary(str(raw.get("rawValue", "")))
    if ctor in DATE_CTORS:
        return DateLike(str(raw.get("rawValue", "")))
    return Nested({str(key): decode_value(value) for key, value in raw.items()})


def decode_record(raw: Mapping[str, Any]) -> dict[str, TagValue]:
    """Decode a whole ExifTool record (one JSON object per file)."""
    return {str(name): decode_value(value) for name, value in raw.items()}


def to_plain(value: TagValue) -> Any:
    """Convert a ``TagValue`` back to JSON-compatible data."""
    if isinstance(value, Scalar):
        return value.value
    if isinstance(value, DateLike):
        return value.raw_value
    if isinstance(value, Binary):
        return value.description
    if isinstance(value, Sequence):
        return [to_plain(item) for item in value.items]
    return {key: to_plain(item) for key, item in value.fields.items()}
