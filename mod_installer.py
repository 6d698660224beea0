"""
wmm - install, backup and restore workflows for a game data directory.

Core components raise typed errors; this layer turns them into
``(success, message)`` results and user-facing progress text.
"""

from __future__ import annotations

import logging
import os
import stat
import subprocess
from pathlib import Path
from typing import Callable, Optional

from archive_extractor import extract
from archive_fetcher import DEFAULT_TIMEOUT, fetch, payload_path
from config_schema import InstallConfig
from errors import FetchError, RestoreError, SnapshotNotFoundError, WmmError
from snapshot_manager import SnapshotManager
from swap_coordinator import RestoreStage, SwapCoordinator

_log = logging.getLogger(__name__)

INSTALLER_WAIT_PROMPT = "Press Enter after installation is complete..."


class ModInstaller:
    """
    Workflow controller for one live root.

    Workflow:
        1. install_mods() snapshots the live root, runs the configured
           installers and unpacks the mods archive into it
        2. create_backup() / list_backups() / delete_backup() manage snapshots
        3. restore_backup() swaps a snapshot back in as the live root
    """

    def __init__(
        self,
        live_root: str | Path,
        config: InstallConfig,
        log_callback: Optional[Callable[[str], None]] = None,
        installer_wait_callback: Optional[Callable[[str], None]] = None,
        fetch_timeout: float = DEFAULT_TIMEOUT,
    ):
        self.live_root = Path(live_root)
        self.config = config
        self.snapshots = SnapshotManager(self.live_root)
        self.fetch_timeout = fetch_timeout
        self._log_cb = log_callback or print
        self._installer_wait_cb = installer_wait_callback

    # ── Logging ───────────────────────────────────────────────────────

    def log(self, msg: str):
        self._log_cb(msg)

    def describe_config(self) -> list[str]:
        return self.config.describe()

    # ── Backups ───────────────────────────────────────────────────────

    def create_backup(self) -> tuple[bool, str]:
        self.log("Creating backup...")
        try:
            path = self.snapshots.create_snapshot()
        except WmmError as exc:
            _log.error("Backup of %s failed: %s", self.live_root, exc)
            return False, f"Error creating backup: {exc}"
        self.log(f"Backup successfully created at {path}")
        return True, str(path)

    def list_backups(self) -> list[str]:
        backups = self.snapshots.list_snapshots()
        if not backups:
            self.log("No backups found.")
        return backups

    def delete_backup(self, name: str) -> tuple[bool, str]:
        self.log("Deleting backup...")
        try:
            path = self.snapshots.delete_snapshot(name)
        except WmmError as exc:
            _log.warning("Could not delete backup %s: %s", name, exc)
            return False, f"Error deleting backup: {exc}"
        self.log("Backup deleted successfully.")
        return True, str(path)

    def _report_restore_stage(self, stage: RestoreStage):
        messages = {
            RestoreStage.LIVE_REMOVED: f"The {self.live_root.name} folder was successfully deleted.",
            RestoreStage.STAGING_POPULATED: "Backup copied successfully.",
            RestoreStage.SWAPPED: "Backup activated.",
        }
        if stage in messages:
            self.log(messages[stage])

    def restore_backup(self, name: str | None = None) -> tuple[bool, str]:
        """Replace the live root with a backup (the base backup if no name)."""
        if name is None:
            snapshot = self.snapshots.base_snapshot_path
        else:
            snapshot = self.snapshots.snapshot_path(name)

        self.log(f"Restoring backup from {snapshot}...")
        coordinator = SwapCoordinator(self.live_root, progress_callback=self._report_restore_stage)
        try:
            result = coordinator.restore(snapshot)
        except SnapshotNotFoundError:
            return False, f"Backup folder not found: {snapshot}"
        except RestoreError as exc:
            return False, f"Error restoring backup: {exc}\n{exc.recovery_hint()}"
        self.log(f"Restored {result.files_copied} file(s) into {self.live_root}")
        return True, "Backup successfully restored."

    # ── Installers ────────────────────────────────────────────────────

    def _discard_payload(self, path: Path):
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            _log.warning("Could not remove payload %s: %s", path, exc)

    def run_installer(self, url: str) -> tuple[bool, str]:
        """Download an installer, launch it and wait until it is done."""
        installer = payload_path("installer", url)
        try:
            fetch(url, installer, timeout=self.fetch_timeout)
        except FetchError as exc:
            return False, f"Error downloading installer: {exc}"

        self.log("Running installer...")
        try:
            if os.name != "nt":
                installer.chmod(installer.stat().st_mode | stat.S_IXUSR)
            proc = subprocess.Popen([str(installer)])
        except OSError as exc:
            self._discard_payload(installer)
            return False, f"Error running installer: {exc}"

        if self._installer_wait_cb:
            self._installer_wait_cb(INSTALLER_WAIT_PROMPT)
            if proc.poll() is None:
                # Still running: the file is in use, leave it for the OS to clean.
                _log.info("Installer %s still running, leaving payload in place", installer)
                return True, "Installer still running"
        else:
            proc.wait()

        self._discard_payload(installer)
        _log.info("Installer %s exited with code %s", url, proc.returncode)
        if proc.returncode:
            return False, f"Installer exited with code {proc.returncode}"
        return True, "Installer finished"

    # ── Mods ──────────────────────────────────────────────────────────

    def download_and_extract_mods(self) -> tuple[bool, str]:
        url = self.config.mods_url
        if not url:
            self.log("No mods URL configured. Skipping mods step...")
            return True, "No mods to install"

        self.log(f"Downloading mods from {url}")
        archive = payload_path("mods", url)
        try:
            fetch(url, archive, timeout=self.fetch_timeout)
            self.log("Extracting mods...")
            count = extract(archive, self.live_root)
        except FetchError as exc:
            return False, f"Error downloading mods: {exc}"
        except WmmError as exc:
            return False, f"Error extracting mods: {exc}"
        finally:
            self._discard_payload(archive)

        self.log("Mods successfully installed!")
        return True, f"Installed {count} file(s)"

    def install_mods(self) -> tuple[bool, str]:
        self.log("Installing mods...")
        if not self.live_root.is_dir():
            return False, f"The {self.live_root.name} folder was not found!"

        ok, backup = self.create_backup()
        if not ok:
            return False, backup

        for hint in self.config.hints:
            self.log(hint)

        if not self.config.install_urls:
            self.log("No install URL found. Skipping installer step...")
        for url in self.config.install_urls:
            self.log(f"Downloading and running installer from {url}")
            ok, msg = self.run_installer(url)
            if not ok:
                self.log(msg)

        ok, msg = self.download_and_extract_mods()
        if not ok:
            return False, f"{msg}\nThe backup at {backup} can be restored to undo a partial install."

        self.log("Installation complete!")
        return True, "Installation complete!"
