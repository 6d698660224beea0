"""
Error kinds raised by the wmm core components.

Every error names the operation that failed, the path it was working on and
the underlying cause, so the caller can report it without further context.
"""

from __future__ import annotations

from pathlib import Path


class WmmError(Exception):
    """Base class for all wmm failures."""

    def __init__(
        self,
        operation: str,
        path: str | Path | None = None,
        cause: BaseException | str | None = None,
    ):
        self.operation = operation
        self.path = Path(path) if path is not None else None
        self.cause = cause
        super().__init__(self._format())

    def _format(self) -> str:
        msg = f"{self.operation} failed"
        if self.path is not None:
            msg += f" for {self.path}"
        if self.cause is not None:
            msg += f": {self.cause}"
        return msg


class FetchError(WmmError):
    """Network, HTTP or filesystem failure while downloading."""

    def __init__(
        self,
        operation: str,
        path: str | Path | None = None,
        cause: BaseException | str | None = None,
        *,
        url: str | None = None,
        status: int | None = None,
    ):
        self.url = url
        self.status = status
        super().__init__(operation, path, cause)

    def _format(self) -> str:
        msg = super()._format()
        if self.url:
            msg += f" (url: {self.url})"
        return msg


class ExtractError(WmmError):
    """Corrupt archive or filesystem failure while unpacking."""


class CloneError(WmmError):
    """Read or write failure during a recursive copy."""


class StorageError(WmmError):
    """Generic filesystem failure: missing path, permission, rename."""


class SnapshotNotFoundError(StorageError):
    """A live root or snapshot that must exist is missing."""


class ConfigError(WmmError):
    """The install configuration could not be loaded."""


class RestoreError(WmmError):
    """A restore stopped before the snapshot was activated.

    ``stage`` is the last stage the restore completed, which tells the
    caller what the disk looks like now.
    """

    def __init__(
        self,
        operation: str,
        path: str | Path | None = None,
        cause: BaseException | str | None = None,
        *,
        stage=None,
        staging_path: str | Path | None = None,
        live_missing: bool = False,
        live_damaged: bool = False,
    ):
        self.stage = stage
        self.staging_path = Path(staging_path) if staging_path is not None else None
        self.live_missing = live_missing
        self.live_damaged = live_damaged
        super().__init__(operation, path, cause)

    def recovery_hint(self) -> str:
        if not self.live_missing:
            if self.live_damaged:
                return (
                    f"{self.path} may be partially deleted. Run the restore again "
                    "from the same backup to replace it."
                )
            return f"{self.path} was not modified."
        if self.staging_path is not None and self.staging_path.exists():
            return (
                f"{self.path} is currently MISSING. A staged copy was left at "
                f"{self.staging_path}: rename it to {self.path} if it is complete, "
                "or run the restore again from the same backup."
            )
        return (
            f"{self.path} is currently MISSING. Run the restore again from the "
            "same backup to recreate it."
        )
