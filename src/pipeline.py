"""Atomic clear-then-rewrite commit of tag edits to a managed file.

The pipeline never touches the target until the very last step:

1. ``IDLE -> STAGED``       copy the target to a unique temp path
2. ``STAGED -> CLEARED``    tool clears every tag on the temp copy
3. ``CLEARED -> REWRITTEN`` assignments are written to a transient
   argfile and applied to the temp copy (skipped when there are none)
4. ``REWRITTEN -> COMMITTED`` the temp copy atomically replaces the target

Any failure moves to ``FAILED`` and propagates; the target is then
byte-identical to what it was before. The temp copy and the argfile are
removed on every exit path, and a failed removal is logged, not raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from constants import LOG_TRUNCATE
from errors import MetadataError, StorageError
from reconciler import WriteInstructionSet
from storage import ManagedStorage
from tag_tool import TagTool
from utils import truncate

logger = logging.getLogger(__name__)


class CommitState(Enum):
    IDLE = "idle"
    STAGED = "staged"
    CLEARED = "cleared"
    REWRITTEN = "rewritten"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class CommitResult:
    """Outcome of a successful commit."""

    target: Path
    state: CommitState
    history: tuple[CommitState, ...] = ()
    directives: int = 0


@dataclass
class _Transaction:
    target: Path
    history: list[CommitState] = field(default_factory=lambda: [CommitState.IDLE])
    temp_path: Path | None = None
    argfile: Path | None = None

    @property
    def state(self) -> CommitState:
        return self.history[-1]


class CommitPipeline:
    """
    Apply a ``WriteInstructionSet`` to one file through a ``TagTool``.

    Callers must serialize commits against the same file; commits
    against different files may run concurrently.

    Args:
        storage: Storage root that confines every path the pipeline touches.
        tool: Tag tool used to clear and rewrite the staged copy.
        progress_callback: Called with each new state as it is entered.
    """

    def __init__(
        self,
        storage: ManagedStorage,
        tool: TagTool,
        progress_callback: Callable[[CommitState], None] | None = None,
    ):
        self.storage = storage
        self.tool = tool
        self._progress_callback = progress_callback

    def commit(self, target: Path, instructions: WriteInstructionSet) -> CommitResult:
        """
        Clear every tag on *target*, then apply the instruction assignments.

        Args:
            target: File inside the storage root.
            instructions: Instruction set; ``clear_all`` must be true.

        Returns:
            The committed result.

        Raises:
            MetadataError: Whatever step failed, after cleanup.
        """
        if not instructions.clear_all:
            # Without the reset, tags dropped by the user would survive
            raise ValueError("CommitPipeline only applies clear-then-rewrite instruction sets")

        tx = _Transaction(target=self.storage.ensure_inside(target))
        directives = instructions.directives()
        logger.info("Committing %d tags to %s", len(directives), tx.target.name)
        try:
            self._stage(tx)
            self._clear(tx)
            self._rewrite(tx, directives)
            self._commit(tx)
        except MetadataError as e:
            self._advance(tx, CommitState.FAILED)
            logger.error("Commit to %s failed in %s: %s", tx.target.name, tx.history[-2].value, e)
            raise
        finally:
            self._cleanup(tx)

        return CommitResult(
            target=tx.target,
            state=tx.state,
            history=tuple(tx.history),
            directives=len(directives),
        )

    def delete_all(self, target: Path) -> CommitResult:
        """Strip every tag: the same pipeline with nothing to rewrite."""
        return self.commit(target, WriteInstructionSet(clear_all=True, assignments={}))

    # ── Steps ───────────────────────────────────────────────────────

    def _stage(self, tx: _Transaction) -> None:
        temp_path = self.storage.ensure_inside(self.storage.temp_path_for(tx.target))
        tx.temp_path = temp_path
        self.storage.copy(tx.target, temp_path)
        self._advance(tx, CommitState.STAGED)

    def _clear(self, tx: _Transaction) -> None:
        self.tool.clear_all(self._staged(tx))
        self._advance(tx, CommitState.CLEARED)

    def _rewrite(self, tx: _Transaction, directives: list[str]) -> None:
        if directives:
            content = "\n".join(directives) + "\n"
            logger.debug("Argfile for %s: %s", tx.target.name, truncate(content, LOG_TRUNCATE))
            tx.argfile = self.storage.ensure_inside(self.storage.argfile_path())
            self.storage.write_text(tx.argfile, content)
            self.tool.apply_instructions(self._staged(tx), tx.argfile)
        self._advance(tx, CommitState.REWRITTEN)

    def _commit(self, tx: _Transaction) -> None:
        target = self.storage.ensure_inside(tx.target)
        self.storage.replace(self._staged(tx), target)
        tx.temp_path = None
        self._advance(tx, CommitState.COMMITTED)

    def _staged(self, tx: _Transaction) -> Path:
        if tx.temp_path is None:
            raise StorageError(f"No staged copy of {tx.target.name} to work on")
        return self.storage.ensure_inside(tx.temp_path)

    def _advance(self, tx: _Transaction, state: CommitState) -> None:
        tx.history.append(state)
        logger.info("%s: %s", tx.target.name, state.value)
        if self._progress_callback is not None:
            self._progress_callback(state)

    def _cleanup(self, tx: _Transaction) -> None:
        for path in (tx.temp_path, tx.argfile):
            if path is None:
                continue
            try:
                self.storage.remove(path)
            except StorageError as e:
                logger.error("Cleanup failed for %s: %s", path, e)
