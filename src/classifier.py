"""Partition tags into read-only, binary and editable fields.

The same rules gate both directions: building the editable view from a
record, and re-validating every submitted name before it can reach a
write command.

Rules, first match wins:
1. Filesystem/tool-identity tags and the ``File``/``Error``/``Warning``
   prefixes are read-only.
2. Internal markers (leading underscore) and ``SourceFile`` are read-only.
3. Binary values are opaque.
4. Everything else is editable.
"""

from __future__ import annotations

from enum import Enum

from constants import (
    INTERNAL_PREFIX,
    READ_ONLY_GROUPS,
    READ_ONLY_PREFIXES,
    READ_ONLY_TAGS,
)
from tag_values import Binary, TagValue


class FieldClass(Enum):
    READ_ONLY = "read_only"
    BINARY = "binary"
    EDITABLE = "editable"


def split_group(name: str) -> tuple[str | None, str]:
    """Split ``EXIF:Make`` into ``("EXIF", "Make")``; ungrouped names get ``None``."""
    if ":" not in name:
        return None, name
    group, _, tag = name.rpartition(":")
    return group, tag


def classify_name(name: str) -> FieldClass:
    """
    Apply the name-only rules (1 and 2).

    Used on write-back, where every value is a plain string and the
    value shape carries no information.

    Args:
        name: Tag name, optionally group-prefixed.

    Returns:
        ``FieldClass.READ_ONLY`` or ``FieldClass.EDITABLE``.
    """
    group, tag = split_group(name)
    if group is not None:
        # ``File:FileSize``, ``System:FileName``
        family0 = group.split("-", 1)[0]
        if family0 in READ_ONLY_GROUPS:
            return FieldClass.READ_ONLY

    for candidate in (name, tag):
        if not candidate:
            return FieldClass.READ_ONLY
        if candidate in READ_ONLY_TAGS or candidate.startswith(READ_ONLY_PREFIXES):
            return FieldClass.READ_ONLY
        if candidate.startswith(INTERNAL_PREFIX) or candidate == "SourceFile":
            return FieldClass.READ_ONLY

    return FieldClass.EDITABLE


def classify(name: str, value: TagValue) -> FieldClass:
    """Classify a tag by name and by the runtime shape of its value."""
    by_name = classify_name(name)
    if by_name is not FieldClass.EDITABLE:
        return by_name
    if isinstance(value, Binary):
        return FieldClass.BINARY
    return FieldClass.EDITABLE


def is_editable(name: str, value: TagValue) -> bool:
    return classify(name, value) is FieldClass.EDITABLE
