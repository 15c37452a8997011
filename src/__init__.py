"""metawiz: inspect, edit and strip file metadata through ExifTool.

The metadata pipeline:

1. **Read** a record with ExifTool and decode it into typed tag values.
2. **View** it as a flat editable map, hiding read-only and binary tags.
3. **Edit** the map and reconcile it into clear-then-rewrite instructions.
4. **Commit** atomically: stage a copy, clear, rewrite, then replace.
"""

__version__ = "0.1.0"

from metadata_handler import (
    MetadataService,
    build_editable_view,
    build_write_instructions,
    classify,
    extract_coordinate,
    format_value,
    open_service,
)

__all__ = [
    "MetadataService",
    "build_editable_view",
    "build_write_instructions",
    "classify",
    "extract_coordinate",
    "format_value",
    "open_service",
]
