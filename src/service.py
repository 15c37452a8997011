"""View, edit and strip operations over managed files.

``MetadataService`` is what the request layer calls. It validates caller
input, reads records through the shared ``TagTool``, builds the views,
and hands edits to the ``CommitPipeline``.
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping

from config import Settings
from constants import DEFAULT_DATE_FORMAT
from errors import ValidationError
from formatter import format_value
from gps import GpsCoordinate, extract_coordinate
from pipeline import CommitPipeline, CommitResult, CommitState
from reconciler import (
    build_display_view,
    build_editable_view,
    build_write_instructions,
    restore_write_values,
)
from storage import ManagedStorage
from tag_tool import ExifToolClient, TagTool
from tag_values import Binary, Nested, Sequence, TagValue, decode_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetadataView:
    """Everything the UI shows for one file."""

    identifier: str
    record: Mapping[str, TagValue] = field(default_factory=dict)
    editable: Mapping[str, str] = field(default_factory=dict)
    display: Mapping[str, str] = field(default_factory=dict)
    coordinate: GpsCoordinate | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": True,
            "filePath": self.identifier,
            "metadata": dict(self.display),
            "editable": dict(self.editable),
            "gps": None,
        }
        if self.coordinate is not None:
            payload["gps"] = {"lat": self.coordinate.lat, "lng": self.coordinate.lng}
        return payload


class MetadataService:
    """
    Metadata operations on files inside one storage root.

    Args:
        storage: Managed storage root.
        tool: Shared tag tool.
        date_format: ``strftime`` pattern for date/time values.
    """

    def __init__(
        self,
        storage: ManagedStorage,
        tool: TagTool,
        date_format: str | None = None,
    ):
        self.storage = storage
        self.tool = tool
        self.date_format = date_format or DEFAULT_DATE_FORMAT

    def view(self, identifier: str) -> MetadataView:
        """Read a file and build its display and editable views."""
        path = self.storage.resolve(identifier)
        record = self.tool.read(path)
        logger.info("Read %d tags from %s", len(record), path.name)
        return MetadataView(
            identifier=identifier,
            record=record,
            editable=build_editable_view(record, self.date_format),
            display=build_display_view(record, self.date_format),
            coordinate=extract_coordinate(record),
        )

    def update(
        self,
        identifier: str,
        payload: Any,
        progress_callback: Callable[[CommitState], None] | None = None,
    ) -> CommitResult:
        """
        Replace the tags of a file with the submitted editable view.

        Args:
            identifier: Relative file identifier.
            payload: Mapping of tag name to value, as submitted.
            progress_callback: Receives each pipeline state.

        Returns:
            The commit result.

        Raises:
            ValidationError: If the payload is not a flat mapping, or an
                edited structure is not valid JSON.
            MetadataError: If reading or committing fails.
        """
        submitted = validate_payload(payload)
        path = self.storage.resolve(identifier)
        record = self.tool.read(path)
        previous = build_editable_view(record, self.date_format)
        instructions = restore_write_values(
            record, build_write_instructions(previous, submitted), self.date_format
        )
        return self._pipeline(progress_callback).commit(path, instructions)

    def delete(
        self,
        identifier: str,
        progress_callback: Callable[[CommitState], None] | None = None,
    ) -> CommitResult:
        """Strip every tag from a file."""
        path = self.storage.resolve(identifier)
        return self._pipeline(progress_callback).delete_all(path)

    def _pipeline(self, progress_callback: Callable[[CommitState], None] | None) -> CommitPipeline:
        return CommitPipeline(self.storage, self.tool, progress_callback=progress_callback)


def validate_payload(payload: Any) -> dict[str, str]:
    """
    Check a submitted edit and coerce scalar values to strings.

    Nested structures are rejected: they must be decomposed into
    individual tags before they can be written back.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Invalid metadata provided")

    submitted: dict[str, str] = {}
    for name, value in payload.items():
        if not isinstance(name, str):
            raise ValidationError(f"Invalid tag name: {name!r}")
        if value is None:
            continue
        if isinstance(value, str):
            submitted[name] = value
            continue
        decoded = decode_value(value)
        if isinstance(decoded, (Nested, Sequence, Binary)):
            raise ValidationError(f"Value for {name} must be a string")
        submitted[name] = format_value(decoded)
    return submitted


@contextlib.contextmanager
def open_service(settings: Settings | None = None) -> Iterator[MetadataService]:
    """
    Start the shared ExifTool process and yield a service bound to it.

    The process is closed when the block exits.
    """
    settings = settings or Settings.from_env()
    storage = ManagedStorage(settings.storage_root)
    client = ExifToolClient(settings.exiftool, timeout=settings.tool_timeout)
    client.start()
    try:
        yield MetadataService(storage, client, date_format=settings.date_format)
    finally:
        client.close()
