"""
Shared fixtures and helpers for the wmm test suite.
"""

import zipfile
from pathlib import Path

import pytest


def make_zip(path: Path, members: dict[str, bytes | str]) -> Path:
    """Write a zip with the given {archive_path: content} entries, in order."""
    with zipfile.ZipFile(path, "w") as zf:
        for member, data in members.items():
            zf.writestr(member, data)
    return path


def tree_contents(root: Path) -> dict[str, bytes]:
    """Map every regular file under root to its bytes, keyed by posix relpath."""
    return {
        f.relative_to(root).as_posix(): f.read_bytes()
        for f in sorted(root.rglob("*"))
        if f.is_file()
    }


def populate(root: Path, files: dict[str, bytes | str]) -> Path:
    for rel, data in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            data = data.encode("utf-8")
        path.write_bytes(data)
    return root


class FakeResponse:
    """Stand-in for a streamed ``requests`` response."""

    def __init__(self, chunks=(), status_code=200, reason="OK", headers=None):
        self.chunks = list(chunks)
        self.status_code = status_code
        self.reason = reason
        self.headers = headers or {}

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def iter_content(self, chunk_size=1):
        yield from self.chunks

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def live_root(tmp_path):
    """A populated game directory at <tmp>/game/.minecraft."""
    root = tmp_path / "game" / ".minecraft"
    populate(
        root,
        {
            "options.txt": "fov:70\n",
            "mods/old-mod.jar": b"\x00old-mod",
            "saves/world/level.dat": b"\x01\x02level",
        },
    )
    (root / "resourcepacks").mkdir()
    return root
