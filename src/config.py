"""Runtime settings, read once from the environment.

Variables:

- ``METAWIZ_STORAGE_ROOT``  directory holding managed files (``./uploads``)
- ``METAWIZ_EXIFTOOL``      ExifTool executable name or path
- ``METAWIZ_TOOL_TIMEOUT``  seconds to wait for one ExifTool command
- ``METAWIZ_DATE_FORMAT``   ``strftime`` pattern for date/time display
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

from constants import (
    DEFAULT_DATE_FORMAT,
    DEFAULT_EXIFTOOL,
    DEFAULT_STORAGE_ROOT,
    DEFAULT_TOOL_TIMEOUT,
)
from errors import ValidationError


@dataclass(frozen=True)
class Settings:
    storage_root: Path = Path(DEFAULT_STORAGE_ROOT)
    exiftool: str = DEFAULT_EXIFTOOL
    tool_timeout: float | None = DEFAULT_TOOL_TIMEOUT
    date_format: str = DEFAULT_DATE_FORMAT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            Settings with defaults for every unset variable.

        Raises:
            ValidationError: If ``METAWIZ_TOOL_TIMEOUT`` is not a number.
        """
        env = os.environ if environ is None else environ
        return cls(
            storage_root=Path(env.get("METAWIZ_STORAGE_ROOT") or DEFAULT_STORAGE_ROOT),
            exiftool=env.get("METAWIZ_EXIFTOOL") or DEFAULT_EXIFTOOL,
            tool_timeout=parse_timeout(env.get("METAWIZ_TOOL_TIMEOUT")),
            date_format=env.get("METAWIZ_DATE_FORMAT") or DEFAULT_DATE_FORMAT,
        )

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with every non-``None`` override applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def parse_timeout(raw: str | None) -> float | None:
    """``""``/unset means the default; ``0`` or a negative value disables the timeout."""
    if raw is None or not raw.strip():
        return DEFAULT_TOOL_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        raise ValidationError(f"Invalid tool timeout: {raw!r}") from None
    return value if value > 0 else None
