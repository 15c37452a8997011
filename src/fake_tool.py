"""Deterministic in-process ``TagTool`` for tests and dry runs.

Files handled by ``FakeTagTool`` are small JSON documents holding a
``tags`` object and an opaque ``payload``. Tags therefore live inside
the file itself and travel with it through copies and renames, just as
embedded metadata does, so the commit pipeline can be exercised end to
end without an ExifTool binary.

Every call is recorded, and any operation can be made to fail.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from constants import ARGFILE_CSTRING_PREFIX, LIST_SEPARATOR
from errors import ReadError, ToolError
from tag_values import TagValue, decode_record

# Tags ExifTool stores as lists; writes to them are split on LIST_SEPARATOR
LIST_TAGS = frozenset(
    {"Keywords", "Subject", "HierarchicalSubject", "Creator", "SupplementalCategories"}
)


class FakeTagTool:
    """
    ``TagTool`` that stores tags as JSON inside the file.

    Attributes:
        calls: ``(operation, path)`` for every call, in order.
        instructions: Directive lines received by each ``apply_instructions``.
        fail_on: Operation names (``read``, ``clear_all``,
            ``apply_instructions``) that raise instead of running.
        list_tags: Tags whose written values are split into lists.
    """

    def __init__(self, fail_on: set[str] | None = None, list_tags: frozenset[str] = LIST_TAGS):
        self.list_tags = list_tags
        self.calls: list[tuple[str, Path]] = []
        self.instructions: list[list[str]] = []
        self.fail_on: set[str] = set(fail_on or ())

    @staticmethod
    def create_file(path: Path, tags: Mapping[str, Any], payload: str = "pixels") -> Path:
        """Write a file the fake tool can read."""
        path.write_text(json.dumps({"tags": dict(tags), "payload": payload}), encoding="utf-8")
        return path

    def read(self, path: Path) -> dict[str, TagValue]:
        self._record("read", path)
        document = self._load(path)
        raw: dict[str, Any] = {
            "SourceFile": str(path),
            "FileName": path.name,
            "Directory": str(path.parent),
            "FileSize": f"{path.stat().st_size} bytes",
        }
        raw.update(document["tags"])
        return decode_record(raw)

    def clear_all(self, path: Path) -> None:
        self._record("clear_all", path)
        document = self._load(path)
        document["tags"] = {}
        self._save(path, document)

    def apply_instructions(self, path: Path, argfile: Path) -> None:
        self._record("apply_instructions", path)
        lines = argfile.read_text(encoding="utf-8").splitlines()
        self.instructions.append(lines)
        document = self._load(path)
        for line in lines:
            name, value = _parse_directive(line)
            if not name:
                continue
            if name in self.list_tags and LIST_SEPARATOR in value:
                document["tags"][name] = value.split(LIST_SEPARATOR)
            else:
                document["tags"][name] = value
        self._save(path, document)

    def _record(self, operation: str, path: Path) -> None:
        self.calls.append((operation, path))
        if operation in self.fail_on:
            raise ToolError(f"Simulated {operation} failure", stderr=f"Error: {operation} failed")

    def _load(self, path: Path) -> dict[str, Any]:
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ReadError(f"Unsupported or unreadable file {path.name}: {e}") from e
        if not isinstance(document, dict) or not isinstance(document.get("tags"), dict):
            raise ReadError(f"Unsupported or unreadable file {path.name}")
        return document

    def _save(self, path: Path, document: dict[str, Any]) -> None:
        try:
            path.write_text(json.dumps(document), encoding="utf-8")
        except OSError as e:
            raise ToolError(f"Could not write {path.name}: {e}") from e


def _parse_directive(line: str) -> tuple[str, str]:
    """Parse ``-Tag=value``; returns ``("", "")`` for anything else."""
    if line.startswith(ARGFILE_CSTRING_PREFIX):
        line = line[len(ARGFILE_CSTRING_PREFIX):]
        line = line.encode("utf-8").decode("unicode_escape").encode("latin-1").decode("utf-8")
    if not line.startswith("-") or "=" not in line:
        return "", ""
    name, _, value = line[1:].partition("=")
    return name, value
