"""Request/response interface to the external tag tool, and its ExifTool client.

``TagTool`` is what the pipeline and service depend on. ``ExifToolClient``
talks to one long-lived ``exiftool -stay_open`` process through
PyExifTool; it is started once, shared across requests and closed at
shutdown. The process runs one command at a time, so calls are
serialized with a lock, and each call is bounded by a timeout.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Protocol, runtime_checkable

from exiftool import ExifToolHelper
from exiftool.exceptions import ExifToolException, ExifToolExecuteException

from constants import (
    DEFAULT_EXIFTOOL,
    DEFAULT_TOOL_TIMEOUT,
    EXIFTOOL_APPLY_ARGS,
    EXIFTOOL_CLEAR_ARGS,
    EXIFTOOL_COMMON_ARGS,
)
from errors import ReadError, ToolError, ToolTimeoutError
from tag_values import TagValue, decode_record

logger = logging.getLogger(__name__)


@runtime_checkable
class TagTool(Protocol):
    """The three operations the metadata pipeline needs from a tag tool."""

    def read(self, path: Path) -> dict[str, TagValue]:
        """Return the decoded record; raise ``ReadError`` if unreadable."""
        ...

    def clear_all(self, path: Path) -> None:
        """Remove every writable tag, in place; raise ``ToolError`` on failure."""
        ...

    def apply_instructions(self, path: Path, argfile: Path) -> None:
        """Apply the ``-Tag=value`` lines of *argfile*, in place."""
        ...


class ExifToolClient:
    """
    ``TagTool`` backed by a persistent ExifTool process.

    Attributes:
        executable: ExifTool executable name or path.
        timeout: Seconds to wait for one command; ``None`` waits forever.
    """

    def __init__(
        self,
        executable: str = DEFAULT_EXIFTOOL,
        timeout: float | None = DEFAULT_TOOL_TIMEOUT,
        common_args: list[str] | None = None,
    ):
        self.executable = executable
        self.timeout = timeout
        self._common_args = list(EXIFTOOL_COMMON_ARGS if common_args is None else common_args)
        self._helper: ExifToolHelper | None = None
        self._lock = threading.Lock()

    # ── Lifecycle ───────────────────────────────────────────────────

    def start(self) -> "ExifToolClient":
        """Start the ExifTool process if it is not running yet."""
        with self._lock:
            self._ensure_running()
        return self

    def close(self) -> None:
        """Stop the ExifTool process."""
        with self._lock:
            self._shutdown()

    @property
    def running(self) -> bool:
        return self._helper is not None and self._helper.running

    def __enter__(self) -> "ExifToolClient":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _ensure_running(self) -> ExifToolHelper:
        if self._helper is not None and self._helper.running:
            return self._helper
        try:
            helper = ExifToolHelper(
                executable=self.executable,
                common_args=self._common_args,
                auto_start=False,
            )
            helper.run()
        except (ExifToolException, OSError) as e:
            raise ToolError(f"Could not start {self.executable}: {e}") from e
        logger.info("Started ExifTool %s (%s)", helper.version, self.executable)
        self._helper = helper
        return helper

    def _shutdown(self) -> None:
        helper, self._helper = self._helper, None
        if helper is None or not helper.running:
            return
        try:
            helper.terminate(timeout=5)
        except (ExifToolException, OSError):
            logger.warning("ExifTool did not terminate cleanly", exc_info=True)
        else:
            logger.info("Stopped ExifTool")

    # ── TagTool ─────────────────────────────────────────────────────

    def read(self, path: Path) -> dict[str, TagValue]:
        def task(helper: ExifToolHelper) -> list[dict[str, Any]]:
            return helper.get_metadata(str(path))

        try:
            results = self._call(task, f"read {path.name}")
        except ToolTimeoutError:
            raise
        except ToolError as e:
            raise ReadError(f"Could not read metadata from {path.name}", e.stderr) from e

        if not results:
            raise ReadError(f"No metadata returned for {path.name}")
        raw = results[0]
        error = raw.get("Error") or raw.get("ExifTool:Error")
        if error:
            raise ReadError(f"Unsupported or unreadable file {path.name}: {error}")
        return decode_record(raw)

    def clear_all(self, path: Path) -> None:
        self._call(
            lambda helper: helper.execute(*EXIFTOOL_CLEAR_ARGS, str(path)),
            f"clear {path.name}",
        )

    def apply_instructions(self, path: Path, argfile: Path) -> None:
        self._call(
            lambda helper: helper.execute(*EXIFTOOL_APPLY_ARGS, "-@", str(argfile), str(path)),
            f"write {path.name}",
        )

    # ── Execution ───────────────────────────────────────────────────

    def _call(self, task: Callable[[ExifToolHelper], Any], label: str) -> Any:
        """
        Run *task* against the shared process, bounded by ``timeout``.

        The task runs on a worker thread; if it does not finish in time
        the process is killed (it is restarted on the next call) and
        ``ToolTimeoutError`` is raised.
        """
        with self._lock:
            helper = self._ensure_running()
            done = threading.Event()
            outcome: dict[str, Any] = {"result": None, "error": None}

            def worker() -> None:
                try:
                    outcome["result"] = task(helper)
                except Exception as error:
                    outcome["error"] = error
                finally:
                    done.set()

            thread = threading.Thread(target=worker, name="exiftool-call", daemon=True)
            thread.start()
            if not done.wait(self.timeout):
                logger.error("ExifTool timed out after %ss: %s", self.timeout, label)
                self._shutdown()
                raise ToolTimeoutError(f"ExifTool timed out after {self.timeout}s ({label})")

        error = outcome["error"]
        if error is None:
            logger.debug("ExifTool %s: ok", label)
            return outcome["result"]
        if isinstance(error, ExifToolExecuteException):
            stderr = (error.stderr or "").strip()
            logger.error("ExifTool %s failed (status %s): %s", label, error.returncode, stderr)
            raise ToolError(f"ExifTool failed to {label}", stderr) from error
        if isinstance(error, (ExifToolException, OSError, ValueError)):
            logger.error("ExifTool %s failed: %s", label, error)
            raise ToolError(f"ExifTool failed to {label}: {error}") from error
        raise error
