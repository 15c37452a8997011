"""Shared constants for tag classification, decoding, and ExifTool defaults.

All modules reference these constants rather than hard-coding values,
so adding a new reserved tag or changing a default requires updating
only this file.
"""

import re

# Filesystem and tool-identity fields reported by ExifTool. Never editable.
READ_ONLY_TAGS = frozenset(
    {
        "FileName",
        "Directory",
        "SourceFile",
        "ExifToolVersion",
        "FileSize",
        "FileModifyDate",
        "FileAccessDate",
        "FileInodeChangeDate",
        "FilePermissions",
    }
)

# Any tag whose name starts with one of these is read-only
READ_ONLY_PREFIXES = ("File", "Error", "Warning")

# Internal markers (e.g. ``_ctor``) start with an underscore
INTERNAL_PREFIX = "_"

# ExifTool family-0 groups that only ever hold derived or identity values
READ_ONLY_GROUPS = frozenset({"File", "System", "ExifTool", "Composite"})

# Hidden from the read-only display view (the editable view uses the classifier)
DISPLAY_HIDDEN_TAGS = frozenset(
    {
        "ExifToolVersion",
        "Directory",
        "SourceFile",
        "Error",
        "FilePermissions",
        "Linearized",
        "FileType",
        "FileTypeExtension",
    }
)

# Tag identifiers accepted in a write directive: ``Make``, ``XMP-dc:Title``
TAG_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_:-]*$")

# ``(Binary data 2048 bytes, use -b option to extract)``
BINARY_VALUE_PATTERN = re.compile(r"^\(Binary data \d+ bytes")

# ExifTool date/time values: ``2021:06:01 14:03:22.25+02:00``
EXIF_DATE_PATTERN = re.compile(
    r"^(?P<year>\d{4}):(?P<month>\d{2}):(?P<day>\d{2})"
    r"(?:[ T](?P<hour>\d{2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<tz>Z|[+-]\d{2}:?\d{2})?)?$"
)

# ExifTime values: ``14:03:22``, ``14:03:22.5+02:00``
EXIF_TIME_PATTERN = re.compile(
    r"^(?P<hour>\d{2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?"
    r"(?:\.(?P<fraction>\d+))?(?P<tz>Z|[+-]\d{2}:?\d{2})?$"
)

# ``_ctor`` markers used by serialized ExifTool records
DATE_CTORS = frozenset({"ExifDateTime", "ExifDate", "ExifTime"})
BINARY_CTOR = "BinaryField"

# Signed decimal numbers, used by the GPS reconciler
DECIMAL_PATTERN = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)")
GPS_PAIR_PATTERN = re.compile(
    r"([-+]?(?:\d+(?:\.\d*)?|\.\d+))[,\s]+([-+]?(?:\d+(?:\.\d*)?|\.\d+))"
)

GPS_LATITUDE_TAG = "GPSLatitude"
GPS_LONGITUDE_TAG = "GPSLongitude"
GPS_POSITION_TAG = "GPSPosition"
GPS_LATITUDE_REF_TAG = "GPSLatitudeRef"
GPS_LONGITUDE_REF_TAG = "GPSLongitudeRef"

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query={lat},{lng}"

# ExifTool invocation
DEFAULT_EXIFTOOL = "exiftool"
# Signed decimal degrees for GPS coordinates
EXIFTOOL_COMMON_ARGS = ["-c", "%+.6f"]
EXIFTOOL_CLEAR_ARGS = ["-All=", "-m", "-overwrite_original"]
# List values are shown joined with this separator; ExifTool splits them on it again
LIST_SEPARATOR = ", "
EXIFTOOL_APPLY_ARGS = ["-m", "-overwrite_original", "-sep", LIST_SEPARATOR]
# ExifTool argfile lines starting with this are parsed as C strings
ARGFILE_CSTRING_PREFIX = "#[CSTR]"

DEFAULT_STORAGE_ROOT = "uploads"
DEFAULT_TOOL_TIMEOUT = 30.0
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# Layouts ExifTool reads back when dates are written
EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"
EXIF_DATEONLY_FORMAT = "%Y:%m:%d"

TEMP_SUFFIX = ".temp"
ARGFILE_PREFIX = "exiftool_cmd_"

# Directive content is truncated to this many characters in debug logs
LOG_TRUNCATE = 500
