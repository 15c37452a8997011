"""Public façade for the metadata pipeline: re-exports every symbol.

Consumers should ``import metadata_handler`` rather than reaching into
the internal modules directly. This file gathers all public names so
that the API surface stays stable even as the implementation is
reorganised.

Internal modules:

- ``constants``   reserved tags, patterns and ExifTool defaults
- ``tag_values``  tagged-union tag values and the ExifTool JSON decoder
- ``formatter``   display strings for tag values
- ``classifier``  read-only / binary / editable classification
- ``gps``         coordinate extraction and normalization
- ``reconciler``  editable views and write instructions
- ``tag_tool``    tag tool interface and the ExifTool client
- ``storage``     managed storage root
- ``pipeline``    atomic clear-then-rewrite commit
- ``service``     view / update / delete operations
"""

from classifier import FieldClass, classify, classify_name
from config import Settings
from constants import READ_ONLY_PREFIXES, READ_ONLY_TAGS
from errors import (
    MetadataError,
    NotFoundError,
    ReadError,
    StorageError,
    ToolError,
    ToolTimeoutError,
    ValidationError,
)
from fake_tool import FakeTagTool
from formatter import format_value
from gps import GpsCoordinate, extract_coordinate, map_link
from pipeline import CommitPipeline, CommitResult, CommitState
from reconciler import (
    WriteInstructionSet,
    build_display_view,
    build_editable_view,
    build_write_instructions,
    summarize_changes,
)
from service import MetadataService, MetadataView, open_service
from storage import ManagedStorage
from tag_tool import ExifToolClient, TagTool
from tag_values import Binary, DateLike, Nested, Scalar, Sequence, TagValue, decode_record, decode_value

__all__ = [
    # Constants
    "READ_ONLY_TAGS",
    "READ_ONLY_PREFIXES",
    # Values
    "TagValue",
    "Scalar",
    "DateLike",
    "Binary",
    "Nested",
    "Sequence",
    "decode_value",
    "decode_record",
    "format_value",
    # Classification
    "FieldClass",
    "classify",
    "classify_name",
    # GPS
    "GpsCoordinate",
    "extract_coordinate",
    "map_link",
    # Reconciliation
    "WriteInstructionSet",
    "build_editable_view",
    "build_display_view",
    "build_write_instructions",
    "summarize_changes",
    # Tools and storage
    "TagTool",
    "ExifToolClient",
    "FakeTagTool",
    "ManagedStorage",
    # Pipeline and service
    "CommitPipeline",
    "CommitResult",
    "CommitState",
    "MetadataService",
    "MetadataView",
    "Settings",
    "open_service",
    # Errors
    "MetadataError",
    "ValidationError",
    "NotFoundError",
    "ToolError",
    "ReadError",
    "ToolTimeoutError",
    "StorageError",
]
