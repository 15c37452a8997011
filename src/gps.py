"""Derive one normalized coordinate from the GPS tags of a record.

ExifTool may report a position as separate ``GPSLatitude`` /
``GPSLongitude`` tags or as a combined ``GPSPosition`` string. Either
way the result is signed decimal degrees with N/S and E/W references
recomputed from the sign, so the pair can never be inconsistent.

The coordinate is for display only (map embedding); nothing here ever
writes back into a record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from constants import (
    DECIMAL_PATTERN,
    GPS_LATITUDE_REF_TAG,
    GPS_LATITUDE_TAG,
    GPS_LONGITUDE_REF_TAG,
    GPS_LONGITUDE_TAG,
    GPS_PAIR_PATTERN,
    GPS_POSITION_TAG,
    MAPS_SEARCH_URL,
)
from formatter import format_value
from tag_values import Binary, DateLike, Nested, Scalar, Sequence, TagValue, decode_value

logger = logging.getLogger(__name__)

_SOUTH = {"S", "SOUTH"}
_WEST = {"W", "WEST"}


@dataclass(frozen=True)
class GpsCoordinate:
    """Signed decimal degrees."""

    lat: float
    lng: float

    @property
    def lat_ref(self) -> str:
        return "S" if self.lat < 0 else "N"

    @property
    def lng_ref(self) -> str:
        return "W" if self.lng < 0 else "E"

    def as_tags(self) -> dict[str, str]:
        """The coordinate as unsigned values plus references."""
        return {
            GPS_LATITUDE_TAG: repr(abs(self.lat)),
            GPS_LATITUDE_REF_TAG: self.lat_ref,
            GPS_LONGITUDE_TAG: repr(abs(self.lng)),
            GPS_LONGITUDE_REF_TAG: self.lng_ref,
        }


def extract_coordinate(record: Mapping[str, Any]) -> GpsCoordinate | None:
    """
    Extract a coordinate from a raw, decoded or formatted record.

    Args:
        record: Tag name to value. Values may be raw JSON data,
            ``TagValue`` instances, or display strings.

    Returns:
        The normalized coordinate, or ``None`` when no usable position
        is present.
    """
    lat_text = _text(record.get(GPS_LATITUDE_TAG))
    lng_text = _text(record.get(GPS_LONGITUDE_TAG))

    if lat_text and lng_text:
        lat = _parse_decimal(lat_text)
        lng = _parse_decimal(lng_text)
        if lat is None or lng is None:
            logger.debug("Unparseable GPS pair: %r, %r", lat_text, lng_text)
            return None
    else:
        position = _text(record.get(GPS_POSITION_TAG))
        if not position:
            return None
        match = GPS_PAIR_PATTERN.search(position)
        if match is None:
            logger.debug("Unparseable GPSPosition: %r", position)
            return None
        lat, lng = float(match.group(1)), float(match.group(2))
        lat_text, lng_text = match.group(1), match.group(2)

    lat = _apply_reference(lat, lat_text, _text(record.get(GPS_LATITUDE_REF_TAG)), _SOUTH)
    lng = _apply_reference(lng, lng_text, _text(record.get(GPS_LONGITUDE_REF_TAG)), _WEST)
    return normalize(lat, lng)


def normalize(lat: float, lng: float) -> GpsCoordinate:
    """Split into magnitude and reference, then re-apply the sign."""
    lat_ref = "S" if lat < 0 else "N"
    lng_ref = "W" if lng < 0 else "E"
    lat, lng = abs(lat), abs(lng)
    if lat_ref == "S":
        lat = -lat
    if lng_ref == "W":
        lng = -lng
    return GpsCoordinate(lat=lat, lng=lng)


def map_link(coordinate: GpsCoordinate) -> str:
    return MAPS_SEARCH_URL.format(lat=f"{coordinate.lat:.6f}", lng=f"{coordinate.lng:.6f}")


def _apply_reference(value: float, text: str, ref: str, negative_refs: set[str]) -> float:
    # An explicit sign in the value wins; an unsigned value takes the reference
    if value < 0 or text.lstrip().startswith(("-", "+")):
        return value
    # ``48 deg 51' 23.76" S`` style values carry their own reference
    trailing = text.strip().split()[-1].upper() if text.strip() else ""
    if trailing in negative_refs or ref.strip().upper() in negative_refs:
        return -value
    return value


def _parse_decimal(text: str) -> float | None:
    match = DECIMAL_PATTERN.match(text.strip())
    if match is None:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    tag_value: TagValue = value if _is_tag_value(value) else decode_value(value)
    if isinstance(tag_value, Binary):
        return ""
    return format_value(tag_value).strip()


def _is_tag_value(value: Any) -> bool:
    return isinstance(value, (Scalar, DateLike, Binary, Nested, Sequence))
