"""Test configuration and fixtures."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import piexif
import pytest
from PIL import Image

from fake_tool import FakeTagTool
from service import MetadataService
from storage import ManagedStorage


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage(temp_dir: Path) -> ManagedStorage:
    """Storage root inside the temporary directory."""
    return ManagedStorage(temp_dir / "uploads")


@pytest.fixture
def fake_tool() -> FakeTagTool:
    return FakeTagTool()


@pytest.fixture
def service(storage: ManagedStorage, fake_tool: FakeTagTool) -> MetadataService:
    return MetadataService(storage, fake_tool)


@pytest.fixture
def tagged_file(storage: ManagedStorage) -> Path:
    """A fake-tool file carrying GPS, camera and file-identity tags."""
    return FakeTagTool.create_file(
        storage.root / "photo.jpg",
        {
            "GPSLatitude": "48.8566",
            "GPSLongitude": "2.3522",
            "Make": "Acme",
            "DateTimeOriginal": "2021:06:01 14:03:22",
            "ThumbnailImage": "(Binary data 5120 bytes, use -b option to extract)",
        },
    )


@pytest.fixture
def artifacts(storage: ManagedStorage):
    """Return the names of every temp copy and argfile left in the root."""

    def _list() -> list[str]:
        return sorted(
            p.name
            for p in storage.root.iterdir()
            if ".temp" in p.name or p.name.startswith("exiftool_cmd_")
        )

    return _list


# ── Real ExifTool ────────────────────────────────────────────────────


@pytest.fixture
def sample_jpg(storage: ManagedStorage) -> Path:
    """A real JPEG with camera make and a GPS position in its EXIF block."""
    img_path = storage.root / "sample.jpg"
    exif_dict = {
        "0th": {piexif.ImageIFD.Make: b"Acme", piexif.ImageIFD.Model: b"Model X"},
        "Exif": {piexif.ExifIFD.DateTimeOriginal: b"2021:06:01 14:03:22"},
        "GPS": {
            piexif.GPSIFD.GPSLatitudeRef: b"N",
            piexif.GPSIFD.GPSLatitude: ((48, 1), (51, 1), (2376, 100)),
            piexif.GPSIFD.GPSLongitudeRef: b"E",
            piexif.GPSIFD.GPSLongitude: ((2, 1), (21, 1), (776, 100)),
        },
        "1st": {},
        "Interop": {},
    }
    img = Image.new("RGB", (64, 64), color="blue")
    img.save(img_path, "JPEG", exif=piexif.dump(exif_dict))
    return img_path
