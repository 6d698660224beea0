"""
Whole-directory snapshots of the live root.

Snapshots live next to the live root and are named after it:
``<root>BACKUP`` for the first one, ``<root>BACKUP_<timestamp>`` once that
name is taken, with a ``_<n>`` counter when two land in the same second.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

from directory_cloner import clone
from errors import CloneError, SnapshotNotFoundError, StorageError

_log = logging.getLogger(__name__)

BACKUP_MARKER = "BACKUP"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def _timestamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def trees_overlap(a: Path, b: Path) -> bool:
    """True if ``a`` and ``b`` are the same directory or one contains the other."""
    a = Path(a).resolve()
    b = Path(b).resolve()
    return a == b or a in b.parents or b in a.parents


def remove_tree(path: Path) -> None:
    """Recursively delete ``path``; a missing path is not an error."""
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        else:
            shutil.rmtree(path)
    except FileNotFoundError:
        pass


class SnapshotManager:
    def __init__(self, live_root: str | Path):
        self.live_root = Path(live_root)

    @property
    def base_snapshot_path(self) -> Path:
        return Path(f"{self.live_root}{BACKUP_MARKER}")

    def snapshot_path(self, name: str | Path) -> Path:
        """Resolve a snapshot name from ``list_snapshots`` (or a full path)."""
        path = Path(name)
        if path.is_absolute():
            return path
        return self.live_root.parent / path

    def next_snapshot_path(self) -> Path:
        candidate = self.base_snapshot_path
        if not candidate.exists():
            return candidate
        stamped = f"{self.live_root}{BACKUP_MARKER}_{_timestamp()}"
        candidate = Path(stamped)
        counter = 1
        while candidate.exists():
            candidate = Path(f"{stamped}_{counter}")
            counter += 1
        return candidate

    # ── Create ────────────────────────────────────────────────────────

    def create_snapshot(self) -> Path:
        """Copy the live root into a new, uniquely named snapshot.

        The copy is made in a hidden staging directory beside the live root
        and renamed into place, so a snapshot path only ever holds a
        complete tree.
        """
        if not self.live_root.is_dir():
            raise SnapshotNotFoundError(
                "Create snapshot", self.live_root, "live directory does not exist"
            )

        target = self.next_snapshot_path()
        try:
            staging = Path(
                tempfile.mkdtemp(
                    prefix=f".wmm-snapshot-{self.live_root.name}-",
                    dir=self.live_root.parent,
                )
            )
        except OSError as exc:
            raise CloneError("Create snapshot", target, exc) from exc

        _log.info("Creating snapshot %s (staging %s)", target, staging)
        try:
            clone(self.live_root, staging)
            os.rename(staging, target)
        except CloneError:
            self._discard_staging(staging)
            raise
        except OSError as exc:
            self._discard_staging(staging)
            raise CloneError("Create snapshot", target, exc) from exc

        _log.info("Snapshot created: %s", target)
        return target

    @staticmethod
    def _discard_staging(staging: Path) -> None:
        try:
            remove_tree(staging)
        except OSError as exc:
            _log.warning("Could not remove snapshot staging dir %s: %s", staging, exc)

    # ── List / delete ─────────────────────────────────────────────────

    def list_snapshots(self) -> list[str]:
        """Names of entries beside the live root that carry the BACKUP marker.

        Order is whatever the filesystem enumerates.
        """
        parent = self.live_root.parent
        try:
            with os.scandir(parent) as it:
                return [entry.name for entry in it if BACKUP_MARKER in entry.name]
        except FileNotFoundError as exc:
            raise SnapshotNotFoundError("List snapshots", parent, exc) from exc
        except OSError as exc:
            raise StorageError("List snapshots", parent, exc) from exc

    def delete_snapshot(self, name: str | Path) -> Path:
        path = self.snapshot_path(name)
        if trees_overlap(path, self.live_root):
            raise StorageError(
                "Delete snapshot", path, "refusing to delete a path overlapping the live directory"
            )
        if BACKUP_MARKER not in path.name:
            raise StorageError("Delete snapshot", path, f"not a backup (name lacks {BACKUP_MARKER!r})")
        _log.info("Deleting snapshot %s", path)
        try:
            remove_tree(path)
        except OSError as exc:
            raise StorageError("Delete snapshot", path, exc) from exc
        return path
