"""Turn records into editable views and edits into write instructions.

The editable view is a flat ``name -> string`` map of every tag the
classifier marks editable. On the way back, the submitted map is
re-validated against the same rules and becomes a
``WriteInstructionSet``: a full clear followed by one assignment per
kept, non-empty value. Removing a tag is expressed by leaving it out of
the submitted map; the clear step takes care of the rest.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from classifier import FieldClass, classify_name, is_editable
from constants import (
    ARGFILE_CSTRING_PREFIX,
    DEFAULT_DATE_FORMAT,
    DISPLAY_HIDDEN_TAGS,
    INTERNAL_PREFIX,
    TAG_NAME_PATTERN,
)
from errors import ValidationError
from formatter import format_value, parse_display_date
from tag_values import Binary, DateLike, Nested, TagValue, to_plain

logger = logging.getLogger(__name__)

# Characters with meaning inside a serialized ExifTool structure
_STRUCT_SPECIAL = re.compile(r"([,\[\]{}|])")


@dataclass(frozen=True)
class WriteInstructionSet:
    """
    What the commit pipeline applies to a file.

    Attributes:
        clear_all: Reset every tag before applying ``assignments``.
        assignments: Tag name to non-empty value, in submission order.
    """

    clear_all: bool = True
    assignments: Mapping[str, str] = field(default_factory=dict)

    def directives(self) -> list[str]:
        """
        Render the assignments as ExifTool argfile lines.

        One ``-Tag=value`` line per assignment. Values containing line
        breaks are emitted as C-string lines so they cannot spill into a
        second argument.
        """
        lines: list[str] = []
        for name, value in self.assignments.items():
            if not value:
                continue
            if "\n" in value or "\r" in value:
                escaped = value.replace("\\", "\\\\").replace("\r", "\\r").replace("\n", "\\n")
                lines.append(f"{ARGFILE_CSTRING_PREFIX}-{name}={escaped}")
            else:
                lines.append(f"-{name}={value}")
        return lines


@dataclass(frozen=True)
class ChangeSummary:
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    changed: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)


def build_editable_view(
    record: Mapping[str, TagValue], date_format: str = DEFAULT_DATE_FORMAT
) -> dict[str, str]:
    """
    Build the flat, string-valued view a user edits.

    Args:
        record: Decoded metadata record.
        date_format: ``strftime`` pattern for date/time values.

    Returns:
        Every editable tag mapped to its display string; tags whose
        display string is empty are dropped.
    """
    view: dict[str, str] = {}
    for name, value in record.items():
        if not is_editable(name, value):
            continue
        formatted = format_value(value, date_format)
        if formatted == "":
            continue
        view[name] = formatted
    return view


def build_write_instructions(
    previous: Mapping[str, str], submitted: Mapping[str, str]
) -> WriteInstructionSet:
    """
    Reconcile a submitted view into the instructions for a commit.

    ``previous`` does not change the result; deletion is implied by
    omission from ``submitted`` and performed by the clear step. It is
    only used to log what the edit amounts to.

    Args:
        previous: Editable view the user started from.
        submitted: Editable view the user sent back.

    Returns:
        An instruction set with ``clear_all`` set and only writable,
        non-empty assignments.
    """
    assignments: dict[str, str] = {}
    for name, value in submitted.items():
        if classify_name(name) is not FieldClass.EDITABLE:
            logger.warning("Dropping reserved tag from edit: %s", name)
            continue
        if not TAG_NAME_PATTERN.fullmatch(name):
            logger.warning("Dropping malformed tag name from edit: %r", name)
            continue
        if value is None or not str(value).strip():
            continue
        assignments[name] = str(value)

    summary = summarize_changes(previous, assignments)
    logger.info(
        "Edit reconciled: %d assignments (%d added, %d removed, %d changed)",
        len(assignments),
        len(summary.added),
        len(summary.removed),
        len(summary.changed),
    )
    return WriteInstructionSet(clear_all=True, assignments=assignments)


def restore_write_values(
    record: Mapping[str, TagValue],
    instructions: WriteInstructionSet,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> WriteInstructionSet:
    """
    Map display strings in ``instructions`` back to values ExifTool can write.

    The editable view renders dates with ``date_format`` and structures
    as JSON; neither is what ExifTool expects on input. For every
    assignment whose tag currently holds a ``DateLike`` or ``Nested``
    value:

    * an unchanged date is written back as its original raw value, and
      an edited one is converted to ``YYYY:MM:DD HH:MM:SS`` when it
      matches ``date_format`` (otherwise it is passed through as typed);
    * a structure, unchanged or edited as JSON, is serialized in
      ExifTool's ``{Field=value,List=[a,b]}`` syntax.

    Args:
        record: Record the editable view was built from.
        instructions: Output of ``build_write_instructions``.
        date_format: ``strftime`` pattern the view was rendered with.

    Returns:
        A new instruction set with the same names in the same order.

    Raises:
        ValidationError: If an edited structure is not a JSON object or array.
    """
    assignments: dict[str, str] = {}
    for name, text in instructions.assignments.items():
        current = record.get(name)
        if isinstance(current, DateLike):
            text = _restore_date(current, text, date_format)
        elif isinstance(current, Nested):
            text = _restore_structure(name, current, text, date_format)
        assignments[name] = text
    return replace(instructions, assignments=assignments)


def _restore_date(current: DateLike, text: str, date_format: str) -> str:
    if text == format_value(current, date_format):
        return current.raw_value
    converted = parse_display_date(text, date_format)
    if converted is None:
        logger.debug("Passing unrecognized date through unchanged: %r", text)
        return text
    return converted


def _restore_structure(name: str, current: Nested, text: str, date_format: str) -> str:
    if text == format_value(current, date_format):
        return serialize_structure(to_plain(current))
    try:
        edited = json.loads(text)
    except ValueError as e:
        raise ValidationError(f"Value for {name} must be a JSON object or array") from e
    if not isinstance(edited, (dict, list)):
        raise ValidationError(f"Value for {name} must be a JSON object or array")
    return serialize_structure(edited)


def serialize_structure(value: Any) -> str:
    """
    Render plain data in ExifTool's serialized structure syntax.

    Objects become ``{Field=value,...}`` and arrays ``[a,b]``. The
    characters ExifTool treats as syntax (``,[]{}|``) and a leading
    space are escaped with ``|``.
    """
    if isinstance(value, Mapping):
        fields = (f"{key}={serialize_structure(item)}" for key, item in value.items())
        return "{" + ",".join(fields) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(serialize_structure(item) for item in value) + "]"
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    text = _STRUCT_SPECIAL.sub(r"|\1", str(value))
    if text[:1].isspace():
        text = "|" + text
    return text


def summarize_changes(previous: Mapping[str, str], submitted: Mapping[str, str]) -> ChangeSummary:
    """Compare two editable views by tag name and value."""
    before, after = set(previous), set(submitted)
    changed = sorted(name for name in before & after if previous[name] != submitted[name])
    return ChangeSummary(
        added=tuple(sorted(after - before)),
        removed=tuple(sorted(before - after)),
        changed=tuple(changed),
    )


def build_display_view(
    record: Mapping[str, TagValue], date_format: str = DEFAULT_DATE_FORMAT
) -> dict[str, str]:
    """
    Build the read-only view shown next to the editor.

    Unlike the editable view this keeps derived tags such as
    ``FileSize`` and ``MIMEType``; only tool bookkeeping is hidden.
    """
    view: dict[str, str] = {}
    for name, value in record.items():
        if name in DISPLAY_HIDDEN_TAGS or name.startswith(INTERNAL_PREFIX):
            continue
        if isinstance(value, Binary):
            continue
        formatted = format_value(value, date_format)
        if formatted:
            view[name] = formatted
    return view
