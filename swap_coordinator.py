"""
Replaces the live root with the contents of a snapshot.

The restore runs as three steps:

    IDLE -> LIVE_REMOVED -> STAGING_POPULATED -> SWAPPED

1. delete the live root,
2. clone the snapshot into ``<root>Temp``,
3. rename ``<root>Temp`` to ``<root>``.

The live root is only ever exposed through the final rename, so it is never
seen half-copied. Any failure stops the sequence and raises ``RestoreError``
carrying the last completed stage; the snapshot itself is never touched, so
a failed restore can be run again.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from directory_cloner import clone
from errors import CloneError, RestoreError, SnapshotNotFoundError
from snapshot_manager import remove_tree, trees_overlap

_log = logging.getLogger(__name__)

STAGING_SUFFIX = "Temp"


class RestoreStage(enum.Enum):
    IDLE = "idle"
    LIVE_REMOVED = "live_removed"
    STAGING_POPULATED = "staging_populated"
    SWAPPED = "swapped"
    FAILED = "failed"


@dataclass
class RestoreResult:
    live_root: Path
    snapshot_path: Path
    files_copied: int
    stage: RestoreStage = RestoreStage.SWAPPED


class SwapCoordinator:
    def __init__(
        self,
        live_root: str | Path,
        progress_callback: Optional[Callable[[RestoreStage], None]] = None,
    ):
        self.live_root = Path(live_root)
        self.staging_path = Path(f"{self.live_root}{STAGING_SUFFIX}")
        self._progress_cb = progress_callback
        self.stage = RestoreStage.IDLE

    def _advance(self, stage: RestoreStage):
        self.stage = stage
        _log.info("Restore of %s: %s", self.live_root, stage.value)
        if self._progress_cb:
            self._progress_cb(stage)

    def _fail(self, operation: str, path: Path, exc: BaseException, **kwargs) -> RestoreError:
        reached = self.stage
        self.stage = RestoreStage.FAILED
        err = RestoreError(
            operation,
            path,
            exc,
            stage=reached,
            staging_path=self.staging_path,
            **kwargs,
        )
        _log.error("%s (%s)", err, err.recovery_hint())
        return err

    def restore(self, snapshot_path: str | Path) -> RestoreResult:
        snapshot_path = Path(snapshot_path)
        self.stage = RestoreStage.IDLE
        if not snapshot_path.is_dir():
            raise SnapshotNotFoundError("Restore", snapshot_path, "backup folder not found")
        # Step 1 deletes the live root, so the snapshot must not overlap it.
        if trees_overlap(snapshot_path, self.live_root) or trees_overlap(snapshot_path, self.staging_path):
            raise RestoreError(
                "Restore",
                snapshot_path,
                "cannot restore a directory onto itself, its parent or its child",
                stage=self.stage,
            )

        # 1. Remove the live root. Already absent is fine (re-run after a failure).
        try:
            remove_tree(self.live_root)
        except OSError as exc:
            raise self._fail(
                "Delete live directory",
                self.live_root,
                exc,
                live_missing=not self.live_root.exists(),
                live_damaged=True,
            ) from exc
        self._advance(RestoreStage.LIVE_REMOVED)

        # 2. Populate the staging directory from scratch.
        try:
            remove_tree(self.staging_path)
            files_copied = clone(snapshot_path, self.staging_path)
        except (CloneError, OSError) as exc:
            raise self._fail(
                "Copy backup", self.live_root, exc, live_missing=True
            ) from exc
        self._advance(RestoreStage.STAGING_POPULATED)

        # 3. Activate it.
        try:
            os.rename(self.staging_path, self.live_root)
        except OSError as exc:
            raise self._fail(
                "Activate backup", self.live_root, exc, live_missing=True
            ) from exc
        self._advance(RestoreStage.SWAPPED)

        return RestoreResult(
            live_root=self.live_root,
            snapshot_path=snapshot_path,
            files_copied=files_copied,
        )
