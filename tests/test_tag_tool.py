"""Tests for tag_tool module."""

import shutil
import threading
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from exiftool.exceptions import ExifToolExecuteError, ExifToolNotRunning

from errors import ReadError, ToolError, ToolTimeoutError
from service import MetadataService
from storage import ManagedStorage
from tag_tool import ExifToolClient, TagTool
from tag_values import Binary, DateLike, Scalar

requires_exiftool = pytest.mark.skipif(
    shutil.which("exiftool") is None, reason="exiftool not installed"
)


@pytest.fixture
def mock_helper():
    """Patch ExifToolHelper and return the helper instance it produces."""
    with patch("tag_tool.ExifToolHelper") as mock_cls:
        helper = MagicMock()
        helper.running = True
        helper.version = "12.76"
        mock_cls.return_value = helper
        helper.factory = mock_cls
        yield helper


class TestLifecycle:
    """Tests for starting and stopping the shared process."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(ExifToolClient(), TagTool)

    def test_start_runs_helper_once(self, mock_helper) -> None:
        client = ExifToolClient("/opt/exiftool", timeout=1.0)
        client.start()
        client.start()
        mock_helper.factory.assert_called_once_with(
            executable="/opt/exiftool", common_args=["-c", "%+.6f"], auto_start=False
        )
        mock_helper.run.assert_called_once()
        assert client.running

    def test_close_terminates(self, mock_helper) -> None:
        with ExifToolClient(timeout=1.0) as client:
            assert client.running
        mock_helper.terminate.assert_called_once_with(timeout=5)
        assert not client.running

    def test_close_without_start(self) -> None:
        ExifToolClient().close()

    def test_missing_executable(self) -> None:
        with patch("tag_tool.ExifToolHelper") as mock_cls:
            mock_cls.return_value.run.side_effect = FileNotFoundError("no such file")
            with pytest.raises(ToolError, match="Could not start"):
                ExifToolClient("missing-exiftool").start()

    def test_restarts_after_process_exit(self, mock_helper) -> None:
        client = ExifToolClient(timeout=1.0).start()
        mock_helper.running = False
        mock_helper.get_metadata.return_value = [{"Make": "Acme"}]
        client.read(Path("a.jpg"))
        assert mock_helper.run.call_count == 2


class TestRead:
    """Tests for ExifToolClient.read."""

    def test_decodes_record(self, mock_helper) -> None:
        mock_helper.get_metadata.return_value = [
            {
                "SourceFile": "a.jpg",
                "Make": "Acme",
                "DateTimeOriginal": "2021:06:01 14:03:22",
                "ThumbnailImage": "(Binary data 5120 bytes, use -b option to extract)",
            }
        ]
        record = ExifToolClient(timeout=1.0).read(Path("a.jpg"))
        mock_helper.get_metadata.assert_called_once_with("a.jpg")
        assert record["Make"] == Scalar("Acme")
        assert isinstance(record["DateTimeOriginal"], DateLike)
        assert isinstance(record["ThumbnailImage"], Binary)

    def test_error_tag_is_read_error(self, mock_helper) -> None:
        mock_helper.get_metadata.return_value = [
            {"SourceFile": "a.txt", "Error": "Unknown file type"}
        ]
        with pytest.raises(ReadError, match="Unknown file type"):
            ExifToolClient(timeout=1.0).read(Path("a.txt"))

    def test_empty_output_is_read_error(self, mock_helper) -> None:
        mock_helper.get_metadata.return_value = []
        with pytest.raises(ReadError):
            ExifToolClient(timeout=1.0).read(Path("a.jpg"))

    def test_execute_failure_is_read_error(self, mock_helper) -> None:
        mock_helper.get_metadata.side_effect = ExifToolExecuteError(
            1, "", "Error: File not found - a.jpg", ["-j", "a.jpg"]
        )
        with pytest.raises(ReadError) as exc_info:
            ExifToolClient(timeout=1.0).read(Path("a.jpg"))
        assert exc_info.value.stderr == "Error: File not found - a.jpg"
        assert exc_info.value.kind == "read"


class TestWrite:
    """Tests for clear_all and apply_instructions."""

    def test_clear_all_args(self, mock_helper) -> None:
        ExifToolClient(timeout=1.0).clear_all(Path("/root/uploads/a.temp.jpg"))
        mock_helper.execute.assert_called_once_with(
            "-All=", "-m", "-overwrite_original", "/root/uploads/a.temp.jpg"
        )

    def test_apply_uses_argfile(self, mock_helper) -> None:
        ExifToolClient(timeout=1.0).apply_instructions(Path("a.jpg"), Path("args.txt"))
        mock_helper.execute.assert_called_once_with(
            "-m", "-overwrite_original", "-sep", ", ", "-@", "args.txt", "a.jpg"
        )

    def test_non_zero_status_is_tool_error(self, mock_helper) -> None:
        mock_helper.execute.side_effect = ExifToolExecuteError(
            1, "", "Error: Not a valid JPEG", ["-All="]
        )
        with pytest.raises(ToolError) as exc_info:
            ExifToolClient(timeout=1.0).clear_all(Path("a.jpg"))
        assert exc_info.value.stderr == "Error: Not a valid JPEG"
        assert exc_info.value.to_dict()["stderr"] == "Error: Not a valid JPEG"

    def test_process_state_error_is_tool_error(self, mock_helper) -> None:
        mock_helper.execute.side_effect = ExifToolNotRunning("gone")
        with pytest.raises(ToolError, match="gone"):
            ExifToolClient(timeout=1.0).clear_all(Path("a.jpg"))

    def test_unexpected_errors_propagate(self, mock_helper) -> None:
        mock_helper.execute.side_effect = KeyError("bug")
        with pytest.raises(KeyError):
            ExifToolClient(timeout=1.0).clear_all(Path("a.jpg"))


class TestTimeout:
    """Tests for the per-command timeout."""

    def test_timeout_kills_process(self, mock_helper) -> None:
        release = threading.Event()
        mock_helper.execute.side_effect = lambda *args: release.wait(5)
        client = ExifToolClient(timeout=0.05)
        try:
            with pytest.raises(ToolTimeoutError) as exc_info:
                client.clear_all(Path("a.jpg"))
        finally:
            release.set()
        assert exc_info.value.kind == "timeout"
        mock_helper.terminate.assert_called_once_with(timeout=5)
        assert not client.running

    def test_timeout_on_read_stays_timeout(self, mock_helper) -> None:
        release = threading.Event()
        mock_helper.get_metadata.side_effect = lambda *args: release.wait(5)
        try:
            with pytest.raises(ToolTimeoutError):
                ExifToolClient(timeout=0.05).read(Path("a.jpg"))
        finally:
            release.set()

    def test_no_timeout(self, mock_helper) -> None:
        mock_helper.execute.return_value = "1 image files updated"
        ExifToolClient(timeout=None).clear_all(Path("a.jpg"))
        mock_helper.terminate.assert_not_called()


@requires_exiftool
class TestRealExifTool:
    """End-to-end checks against an installed ExifTool."""

    def test_read_sample(self, sample_jpg: Path) -> None:
        with ExifToolClient() as client:
            record = client.read(sample_jpg)
        assert record["Make"] == Scalar("Acme")
        assert isinstance(record["DateTimeOriginal"], DateLike)

    def test_edit_and_strip(
        self, storage: ManagedStorage, sample_jpg: Path, artifacts
    ) -> None:
        with ExifToolClient() as client:
            service = MetadataService(storage, client)
            before = service.view(sample_jpg.name)
            assert before.coordinate is not None
            assert before.coordinate.lat == pytest.approx(48.8566, abs=1e-4)
            assert before.coordinate.lng == pytest.approx(2.3522, abs=1e-4)

            service.update(sample_jpg.name, {"Make": "Beta", "Artist": "Jane"})
            after = service.view(sample_jpg.name)
            assert after.editable["Make"] == "Beta"
            assert after.editable["Artist"] == "Jane"
            assert "Model" not in after.editable
            assert after.coordinate is None

            service.delete(sample_jpg.name)
            assert "Make" not in service.view(sample_jpg.name).editable
        assert artifacts() == []
