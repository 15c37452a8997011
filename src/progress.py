"""Terminal spinner shown by the CLI while a commit runs.

``run_with_progress`` executes a task on a background thread and
renders a one-line braille spinner with elapsed time and the current
pipeline step to ``stderr``. ``commit_progress`` returns the callback
the pipeline uses to update that step.
"""

from __future__ import annotations

import os
import sys
import threading
import time
from typing import Any, Callable, TextIO

from pipeline import CommitState
from utils import truncate

# ── ANSI color constants ────────────────────────────────────────────
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_RED = "\033[31m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"

_SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"

STATE_MESSAGES: dict[CommitState, str] = {
    CommitState.IDLE: "Preparing...",
    CommitState.STAGED: "Staged a working copy",
    CommitState.CLEARED: "Cleared existing tags",
    CommitState.REWRITTEN: "Wrote tags to the working copy",
    CommitState.COMMITTED: "Committed changes",
    CommitState.FAILED: "Commit failed, original file left unchanged",
}


def _no_color() -> bool:
    """Respect the NO_COLOR convention (https://no-color.org/)."""
    return bool(os.environ.get("NO_COLOR"))


def commit_progress(progress_state: dict[str, str]) -> Callable[[CommitState], None]:
    """Return a pipeline callback that writes the step message into *progress_state*."""

    def on_state(state: CommitState) -> None:
        progress_state["message"] = STATE_MESSAGES[state]

    return on_state


def run_with_progress(
    task: Callable[[], Any],
    progress_state: dict[str, str] | None = None,
    stream: TextIO | None = None,
    interval: float = 0.08,
) -> Any:
    """Execute *task* in a background thread while showing a spinner.

    Args:
        task: A zero-argument callable to run in the background.
        progress_state: Mutable dict whose ``"message"`` key is read
            by the animation loop to display the current step.
        stream: Where to draw; defaults to ``sys.__stderr__``.
        interval: Seconds between frames.

    Returns:
        Whatever *task* returns.

    Raises:
        Any exception raised by *task* is re-raised after the spinner
        is cleaned up.
    """
    out = stream or sys.__stderr__
    done = threading.Event()
    outcome: dict[str, Any] = {"result": None, "error": None}

    def worker() -> None:
        try:
            outcome["result"] = task()
        except Exception as error:
            outcome["error"] = error
        finally:
            done.set()

    thread = threading.Thread(target=worker, name="commit-progress", daemon=True)
    thread.start()

    no_color = _no_color()
    start_time = time.time()
    frame = 0

    def _current_step() -> str:
        if isinstance(progress_state, dict):
            return truncate(progress_state.get("message", "Working..."))
        return "Working..."

    while not done.wait(interval):
        spinner = _SPINNER_FRAMES[frame % len(_SPINNER_FRAMES)]
        elapsed = int(time.time() - start_time)
        step = _current_step()
        if no_color:
            line = f"  {spinner}  {step}  {elapsed:>3}s"
        else:
            line = f"  {_CYAN}{spinner}{_RESET}  {step}  {_DIM}{elapsed:>3}s{_RESET}"
        print(f"\r\033[2K{line}", end="", flush=True, file=out)
        frame += 1

    thread.join()
    failed = outcome["error"] is not None
    mark = "✗" if failed else "✓"
    step = _current_step()
    if no_color:
        final_line = f"  {mark}  {step}"
    else:
        color = _RED if failed else _GREEN
        final_line = f"  {color}{_BOLD}{mark}{_RESET}  {step}"
    print(f"\r\033[2K{final_line}", file=out)

    if failed:
        raise outcome["error"]
    return outcome["result"]
