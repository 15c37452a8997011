"""Managed storage root: path resolution, copies and removals.

Callers hand over an opaque relative identifier (the upload name). It is
resolved against the root and rejected if it escapes it, whether by an
absolute path, ``..`` components or a symlink. Every path the pipeline
is about to touch destructively goes through ``ensure_inside`` again.
"""

from __future__ import annotations

import logging
import os
import shutil
import time
import uuid
from pathlib import Path

from constants import ARGFILE_PREFIX, TEMP_SUFFIX
from errors import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)


class ManagedStorage:
    """
    File operations confined to one root directory.

    Attributes:
        root: Absolute, resolved storage root.
    """

    def __init__(self, root: Path | str, create: bool = True):
        root = Path(root).expanduser()
        if create:
            root.mkdir(parents=True, exist_ok=True)
        self.root = root.resolve()

    def resolve(self, identifier: str) -> Path:
        """
        Resolve a caller identifier to an existing file inside the root.

        Args:
            identifier: Relative file identifier, e.g. ``"3f2a.jpg"``.

        Returns:
            Absolute path of the file.

        Raises:
            ValidationError: If the identifier is empty or escapes the root.
            NotFoundError: If no such file exists.
        """
        if not isinstance(identifier, str) or not identifier.strip():
            raise ValidationError("No file path provided")
        if "\x00" in identifier:
            raise ValidationError("Invalid file path")
        candidate = Path(identifier)
        if candidate.is_absolute() or candidate.drive:
            raise ValidationError(f"File path must be relative: {identifier}")

        path = self.ensure_inside(self.root / candidate)
        if not path.is_file():
            raise NotFoundError(f"File not found: {identifier}")
        return path

    def ensure_inside(self, path: Path) -> Path:
        """Return the resolved *path*, or raise if it is outside the root."""
        resolved = Path(os.path.realpath(path))
        if resolved == self.root or not resolved.is_relative_to(self.root):
            raise ValidationError(f"Path escapes storage root: {path}")
        return resolved

    def temp_path_for(self, target: Path) -> Path:
        """Unique staging path next to *target*, keeping its extension for the tool."""
        nonce = uuid.uuid4().hex[:12]
        return target.with_name(f"{target.stem}.{nonce}{TEMP_SUFFIX}{target.suffix}")

    def argfile_path(self) -> Path:
        """Unique path for a transient ExifTool argfile."""
        return self.root / f"{ARGFILE_PREFIX}{time.time_ns()}_{uuid.uuid4().hex[:8]}.txt"

    def copy(self, src: Path, dst: Path) -> None:
        logger.debug("Copying %s -> %s", src, dst)
        try:
            shutil.copy2(src, dst)
        except OSError as e:
            raise StorageError(f"Failed to copy {src.name} to {dst.name}: {e}") from e

    def replace(self, src: Path, dst: Path) -> None:
        """Atomically move *src* over *dst* (same directory, same filesystem)."""
        logger.debug("Replacing %s with %s", dst, src)
        try:
            os.replace(src, dst)
        except OSError as e:
            raise StorageError(f"Failed to replace {dst.name}: {e}") from e

    def write_text(self, path: Path, content: str) -> None:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e}") from e

    def remove(self, path: Path) -> None:
        """Remove *path* if it exists."""
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path.name}: {e}") from e

    def read_bytes(self, identifier: str) -> bytes:
        """Contents of a managed file, for the download side of the request layer."""
        path = self.resolve(identifier)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read {identifier}: {e}") from e

    def __repr__(self) -> str:
        return f"ManagedStorage({str(self.root)!r})"
