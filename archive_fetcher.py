"""
Streaming HTTP(S) download of installer and mod payloads.
"""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from pathlib import Path

import requests

from errors import FetchError

_log = logging.getLogger(__name__)

CHUNK_SIZE = 8192
DEFAULT_TIMEOUT = 300


def payload_path(kind: str, url: str | None = None) -> Path:
    """Return a per-invocation temp path for a payload of the given kind.

    The suffix of the URL's last path segment is kept so an installer
    stays runnable (``.exe``) and an archive keeps its format extension.
    """
    suffix = ""
    if url:
        name = url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
        suffix = Path(name).suffix
    name = f"wmm-{kind}-{os.getpid()}-{uuid.uuid4().hex[:8]}{suffix}"
    return Path(tempfile.gettempdir()) / name


def _remove_partial(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        _log.warning("Could not remove partial download %s: %s", path, exc)


def fetch(url: str, destination_path: str | Path, *, timeout: float = DEFAULT_TIMEOUT) -> Path:
    """Download ``url`` into ``destination_path`` without buffering the body.

    Any file already at ``destination_path`` is removed first. On failure the
    partially written file is removed and ``FetchError`` is raised.
    """
    dest = Path(destination_path)
    if not dest.parent.is_dir():
        raise FetchError("Download", dest, "destination directory does not exist", url=url)

    try:
        dest.unlink(missing_ok=True)
    except OSError as exc:
        raise FetchError("Download", dest, exc, url=url) from exc

    _log.info("Downloading %s to %s", url, dest)
    written = 0
    try:
        with requests.get(url, stream=True, timeout=timeout) as r:
            if not 200 <= r.status_code < 300:
                raise FetchError(
                    "Download",
                    dest,
                    f"HTTP {r.status_code} {r.reason or ''}".strip(),
                    url=url,
                    status=r.status_code,
                )
            expected = r.headers.get("Content-Length")
            encoded = bool(r.headers.get("Content-Encoding"))
            with open(dest, "wb") as f:
                for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        written += len(chunk)
            # Decoded bodies do not match the wire length.
            if expected and expected.isdigit() and not encoded and written != int(expected):
                raise FetchError(
                    "Download",
                    dest,
                    f"truncated transfer ({written} of {expected} bytes)",
                    url=url,
                )
    except FetchError:
        _remove_partial(dest)
        raise
    except requests.exceptions.RequestException as exc:
        _remove_partial(dest)
        raise FetchError("Download", dest, exc, url=url) from exc
    except OSError as exc:
        _remove_partial(dest)
        raise FetchError("Download", dest, exc, url=url) from exc

    _log.info("Download complete: %s (%d bytes)", dest, written)
    return dest
