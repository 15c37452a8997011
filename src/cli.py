"""Command-line interface for metawiz.

Provides the ``metawiz`` entry point with four commands:

- ``view``   show a file's metadata (display or editable view)
- ``edit``   set and remove tags, then commit atomically
- ``strip``  remove every tag
- ``gps``    print the normalized coordinate and a map link

FILE is resolved against ``--root`` (or ``METAWIZ_STORAGE_ROOT``) when
given; otherwise the file's own directory is used as the storage root.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable

from config import Settings
from errors import MetadataError, ValidationError
from gps import map_link
from pipeline import CommitResult
from progress import commit_progress, run_with_progress
from service import MetadataService, open_service
from utils import parse_assignment, truncate

logger = logging.getLogger(__name__)

_BANNER = "─── metawiz · metadata editor ───"


def _print_banner() -> None:
    """Print the startup banner to stderr, colored unless ``NO_COLOR`` is set."""
    if os.environ.get("NO_COLOR"):
        print(_BANNER, file=sys.stderr)
        return
    print(f"\033[1m\033[94m{_BANNER}\033[0m", file=sys.stderr)


def _format_entry(key: str, value: str, full: bool = False) -> str:
    """Return a single-line human-readable representation of a tag."""
    if not full:
        value = truncate(value, 100)
    return f"  {key}: {value}"


# ── Argument parser construction ────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    """Construct and return the CLI argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--root", type=Path, default=None,
        help="Storage root FILE is relative to (default: METAWIZ_STORAGE_ROOT or FILE's directory)",
    )
    common.add_argument(
        "--exiftool", type=str, default=None,
        help="ExifTool executable (default: METAWIZ_EXIFTOOL or 'exiftool')",
    )
    common.add_argument(
        "--timeout", type=float, default=None,
        help="Seconds to wait for each ExifTool command; 0 waits forever. Default: 30",
    )
    common.add_argument(
        "--json", action="store_true",
        help="Print machine-readable JSON instead of text",
    )
    common.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log pipeline steps and ExifTool commands",
    )

    parser = argparse.ArgumentParser(
        prog="metawiz",
        description="Inspect, edit and strip EXIF/IPTC/XMP/ICC metadata with ExifTool.",
        epilog="Example: metawiz edit photo.jpg --set Artist='Jane Doe' --remove GPSPosition",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    view = commands.add_parser("view", parents=[common], help="Show metadata")
    view.add_argument("file", help="File to inspect")
    view.add_argument(
        "--editable", action="store_true",
        help="Show only the tags that can be edited",
    )
    view.add_argument(
        "--full", action="store_true",
        help="Do not truncate long values",
    )

    edit = commands.add_parser("edit", parents=[common], help="Set and remove tags")
    edit.add_argument("file", help="File to edit")
    edit.add_argument(
        "--set", dest="assignments", action="append", default=[], metavar="TAG=VALUE",
        help="Set a tag (repeatable)",
    )
    edit.add_argument(
        "--remove", dest="removals", action="append", default=[], metavar="TAG",
        help="Remove a tag (repeatable)",
    )

    strip = commands.add_parser("strip", parents=[common], help="Remove all metadata")
    strip.add_argument("file", help="File to strip")

    gps = commands.add_parser("gps", parents=[common], help="Show the GPS coordinate")
    gps.add_argument("file", help="File to inspect")

    return parser


def _settings_for(args: argparse.Namespace) -> tuple[Settings, str]:
    """Resolve settings and the storage identifier for ``args.file``."""
    settings = Settings.from_env()
    root = args.root
    if root is None and not os.environ.get("METAWIZ_STORAGE_ROOT"):
        file_path = Path(args.file).expanduser().resolve()
        root, identifier = file_path.parent, file_path.name
    else:
        identifier = args.file
    settings = settings.with_overrides(storage_root=root, exiftool=args.exiftool)
    if args.timeout is not None:
        # 0 disables the timeout
        settings = replace(settings, tool_timeout=args.timeout if args.timeout > 0 else None)
    return settings, identifier


def _run_commit(task: Callable[[Callable], CommitResult], animate: bool) -> CommitResult:
    """Run a commit, with a spinner when stderr is a terminal."""
    if not animate:
        return task(None)
    state: dict[str, str] = {"message": "Preparing..."}
    return run_with_progress(lambda: task(commit_progress(state)), progress_state=state)


def _emit(args: argparse.Namespace, payload: dict[str, Any], lines: list[str]) -> None:
    if args.json:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return
    for line in lines:
        print(line)


# ── Command handlers ────────────────────────────────────────────────

def _handle_view(service: MetadataService, identifier: str, args: argparse.Namespace) -> int:
    """Print the display or editable view of a file."""
    view = service.view(identifier)
    entries = view.editable if args.editable else view.display
    lines = [f"=== {'EDITABLE' if args.editable else 'ALL'} METADATA: {identifier} ==="]
    lines.extend(_format_entry(key, value, args.full) for key, value in entries.items())
    if not entries:
        lines.append("  No metadata found for this file")
    if view.coordinate is not None:
        lines.append(f"\nLocation: {view.coordinate.lat:.6f}, {view.coordinate.lng:.6f}")
    _emit(args, view.to_dict(), lines)
    return 0


def _handle_edit(service: MetadataService, identifier: str, args: argparse.Namespace) -> int:
    """Apply ``--set``/``--remove`` on top of the current editable view."""
    if not args.assignments and not args.removals:
        raise ValidationError("Nothing to do: pass --set TAG=VALUE and/or --remove TAG")

    submitted = dict(service.view(identifier).editable)
    for raw in args.assignments:
        try:
            name, value = parse_assignment(raw)
        except ValueError as e:
            raise ValidationError(str(e)) from None
        submitted[name] = value
    for name in args.removals:
        submitted.pop(name, None)

    result = _run_commit(
        lambda callback: service.update(identifier, submitted, progress_callback=callback),
        animate=not args.json and sys.stderr.isatty(),
    )
    _emit(
        args,
        {"success": True, "message": "Metadata updated successfully", "tags": result.directives},
        [f"Successfully updated metadata ({result.directives} tags written): {result.target}"],
    )
    return 0


def _handle_strip(service: MetadataService, identifier: str, args: argparse.Namespace) -> int:
    """Remove every tag from a file."""
    result = _run_commit(
        lambda callback: service.delete(identifier, progress_callback=callback),
        animate=not args.json and sys.stderr.isatty(),
    )
    _emit(
        args,
        {"success": True, "message": "Metadata deleted successfully"},
        [f"Successfully removed all metadata from: {result.target}"],
    )
    return 0


def _handle_gps(service: MetadataService, identifier: str, args: argparse.Namespace) -> int:
    """Print the coordinate, or exit 1 when the file has none."""
    coordinate = service.view(identifier).coordinate
    if coordinate is None:
        _emit(args, {"success": True, "gps": None}, [f"'{identifier}' has no GPS position."])
        return 1
    _emit(
        args,
        {
            "success": True,
            "gps": {"lat": coordinate.lat, "lng": coordinate.lng},
            "ref": {"lat": coordinate.lat_ref, "lng": coordinate.lng_ref},
            "map": map_link(coordinate),
        },
        [
            f"{coordinate.lat:.6f} {coordinate.lat_ref}, {coordinate.lng:.6f} {coordinate.lng_ref}",
            map_link(coordinate),
        ],
    )
    return 0


_HANDLERS = {
    "view": _handle_view,
    "edit": _handle_edit,
    "strip": _handle_strip,
    "gps": _handle_gps,
}


# ── Entry point ─────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> int:
    """Parse arguments and dispatch to the appropriate command handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 2

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not args.json:
        _print_banner()

    try:
        settings, identifier = _settings_for(args)
        with open_service(settings) as service:
            return _HANDLERS[args.command](service, identifier, args)
    except MetadataError as e:
        logger.debug("%s failed", args.command, exc_info=True)
        if args.json:
            print(json.dumps(e.to_dict(), indent=2, ensure_ascii=False))
        else:
            print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
