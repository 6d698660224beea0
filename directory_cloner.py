"""
Recursive directory copy used for snapshots and restores.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

from errors import CloneError

_log = logging.getLogger(__name__)


def clone(source_root: str | Path, destination_root: str | Path) -> int:
    """Copy the tree at ``source_root`` into ``destination_root``.

    Directories are created with the source's permission bits before their
    children; regular files are copied byte for byte with their mode,
    overwriting existing destination files. Symlinked directories and special
    files are skipped. The walk is lexical and depth-first and stops at the
    first failure with ``CloneError``, leaving a partial destination.

    Returns the number of files copied.
    """
    src_root = Path(source_root)
    dst_root = Path(destination_root)
    if not src_root.is_dir():
        raise CloneError("Clone", src_root, "source directory does not exist")

    def _walk_error(exc: OSError):
        raise CloneError("Clone", exc.filename or src_root, exc) from exc

    # Directories without owner write are tightened after their children exist.
    deferred_modes: list[tuple[Path, int]] = []
    count = 0
    for dirpath, dirnames, filenames in os.walk(src_root, onerror=_walk_error):
        dirnames.sort()
        current = Path(dirpath)
        target_dir = dst_root / current.relative_to(src_root)
        try:
            mode = stat.S_IMODE(current.stat().st_mode)
            target_dir.mkdir(parents=True, exist_ok=True)
            if mode & stat.S_IWUSR and mode & stat.S_IXUSR:
                os.chmod(target_dir, mode)
            else:
                deferred_modes.append((target_dir, mode))
        except OSError as exc:
            raise CloneError("Clone", target_dir, exc) from exc

        for name in sorted(filenames):
            src = current / name
            dst = target_dir / name
            if not src.is_file():
                _log.debug("Skipping non-regular file %s", src)
                continue
            try:
                shutil.copyfile(src, dst)
                shutil.copymode(src, dst)
            except OSError as exc:
                raise CloneError("Clone", src, exc) from exc
            count += 1

    for path, mode in reversed(deferred_modes):
        try:
            os.chmod(path, mode)
        except OSError as exc:
            raise CloneError("Clone", path, exc) from exc

    _log.info("Cloned %d file(s) from %s to %s", count, src_root, dst_root)
    return count
