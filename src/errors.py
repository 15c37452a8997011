"""Error taxonomy shared by the service, pipeline, storage and tool layers.

Every failure that crosses a module boundary is one of these. Callers get
a ``kind`` they can switch on and a human-readable message; ``to_dict``
gives the structured failure the request layer returns.
"""

from __future__ import annotations

from typing import Any


class MetadataError(Exception):
    """Base class for every failure reported to callers."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "kind": self.kind, "error": self.message}


class ValidationError(MetadataError):
    """Missing or malformed caller input."""

    kind = "validation"


class NotFoundError(MetadataError):
    """The target file does not exist under the storage root."""

    kind = "not_found"


class ToolError(MetadataError):
    """The external tag tool failed or reported an error status."""

    kind = "tool"

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.stderr:
            payload["stderr"] = self.stderr
        return payload


class ReadError(ToolError):
    """The file could not be read or is not supported by the tool."""

    kind = "read"


class ToolTimeoutError(ToolError):
    """The tool did not answer within the configured timeout."""

    kind = "timeout"


class StorageError(MetadataError):
    """A copy, replace or remove on storage failed."""

    kind = "io"
