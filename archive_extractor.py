"""
Unpacks downloaded mod archives into a destination directory.

Zip archives are processed entry by entry in archive order: directory
entries create the directory, file entries create their parents and are
written with the entry's recorded permission bits. A later entry with the
same path overwrites an earlier one. 7z and rar archives are handed to
py7zr / rarfile after their member names have been checked.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import zipfile
from pathlib import Path

import py7zr
import rarfile

from errors import ExtractError

_log = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".zip", ".7z", ".rar"}

DEFAULT_FILE_MODE = 0o644


def _resolve_member(dest_root: Path, member: str) -> Path:
    """Map an archive member name onto a path under ``dest_root``."""
    name = member.replace("\\", "/")
    parts = [p for p in name.split("/") if p not in ("", ".")]
    # Checked lexically: existing symlinks under dest_root are followed as-is.
    if name.startswith("/") or ".." in parts or (parts and ":" in parts[0]):
        raise ExtractError("Extract", dest_root, f"unsafe path in archive: {member!r}")
    return dest_root.joinpath(*parts)


def _entry_mode(info: zipfile.ZipInfo) -> int:
    mode = stat.S_IMODE(info.external_attr >> 16)
    return mode or DEFAULT_FILE_MODE


def _detect_format(archive_path: Path) -> str:
    ext = archive_path.suffix.lower()
    if ext in SUPPORTED_EXTENSIONS:
        return ext
    # Downloads do not always carry a useful name, so sniff the container.
    if zipfile.is_zipfile(archive_path):
        return ".zip"
    if py7zr.is_7zfile(archive_path):
        return ".7z"
    if rarfile.is_rarfile(archive_path):
        return ".rar"
    raise ExtractError("Open archive", archive_path, "unsupported or corrupt archive")


def _extract_zip(archive_path: Path, dest_root: Path) -> int:
    try:
        zf = zipfile.ZipFile(archive_path, "r")
    except (zipfile.BadZipFile, OSError) as exc:
        raise ExtractError("Open archive", archive_path, exc) from exc

    count = 0
    with zf:
        for info in zf.infolist():
            target = _resolve_member(dest_root, info.filename)
            try:
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                mode = _entry_mode(info)
                with zf.open(info, "r") as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                os.chmod(target, mode)
            except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as exc:
                raise ExtractError("Extract", target, exc) from exc
            _log.debug("Extracted %s (mode %o)", info.filename, mode)
            count += 1
    return count


def _extract_7z(archive_path: Path, dest_root: Path) -> int:
    try:
        with py7zr.SevenZipFile(archive_path, "r") as sz:
            names = sz.getnames()
            for name in names:
                _resolve_member(dest_root, name)
            sz.extractall(path=dest_root)
    except ExtractError:
        raise
    except (py7zr.exceptions.ArchiveError, OSError) as exc:
        raise ExtractError("Extract", archive_path, exc) from exc
    return len(names)


def _extract_rar(archive_path: Path, dest_root: Path) -> int:
    try:
        with rarfile.RarFile(archive_path, "r") as rf:
            names = rf.namelist()
            for name in names:
                _resolve_member(dest_root, name)
            rf.extractall(dest_root)
    except ExtractError:
        raise
    except (rarfile.Error, OSError) as exc:
        raise ExtractError("Extract", archive_path, exc) from exc
    return len(names)


_EXTRACTORS = {
    ".zip": _extract_zip,
    ".7z": _extract_7z,
    ".rar": _extract_rar,
}


def extract(archive_path: str | Path, destination_root: str | Path) -> int:
    """Unpack ``archive_path`` into ``destination_root``.

    Missing parents of ``destination_root`` are created. Returns the number
    of files written. Raises ``ExtractError`` on the first failure; entries
    already written are left in place.
    """
    archive_path = Path(archive_path)
    if not archive_path.is_file():
        raise ExtractError("Open archive", archive_path, "archive not found")

    dest_root = Path(destination_root)
    try:
        dest_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExtractError("Extract", dest_root, exc) from exc
    dest_root = dest_root.resolve()

    fmt = _detect_format(archive_path)
    _log.info("Extracting %s (%s) into %s", archive_path, fmt, dest_root)
    count = _EXTRACTORS[fmt](archive_path, dest_root)
    _log.info("Extracted %d file(s) into %s", count, dest_root)
    return count
