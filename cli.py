"""
wmm - command dispatch.

Thin glue between argparse and ModInstaller: resolves the live root, loads
the install config when a command needs it, asks for confirmation before
destructive commands and turns results into an exit status.
"""

import logging
import os
from pathlib import Path

from config_schema import InstallConfig, load_config
from errors import WmmError
from mod_installer import ModInstaller

DEFAULT_FOLDER = ".minecraft"


def default_root(folder: str = DEFAULT_FOLDER) -> Path:
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / folder
    return Path.home() / "AppData" / "Roaming" / folder


def confirm(question: str) -> bool:
    answer = input(f"{question} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def wait_for_enter(prompt: str):
    input(prompt)


def _finish(installer: ModInstaller, ok: bool, msg: str) -> int:
    installer.log(msg)
    return 0 if ok else 1


def run(args, logger: logging.Logger | None = None) -> int:
    logger = logger or logging.getLogger("wmm")

    def echo(msg: str):
        print(msg)
        logger.info(msg)

    root = Path(args.root) if args.root else default_root()
    config = InstallConfig()
    if args.command in ("install", "config"):
        try:
            config = load_config(args.config)
        except WmmError as exc:
            echo(f"Failed to load config: {exc}")
            return 1

    installer = ModInstaller(
        root,
        config,
        log_callback=echo,
        installer_wait_callback=wait_for_enter,
    )

    if args.command == "install":
        return _finish(installer, *installer.install_mods())

    if args.command == "backup":
        ok, msg = installer.create_backup()
        return 0 if ok else _finish(installer, ok, msg)

    if args.command == "restore":
        target = args.name or installer.snapshots.base_snapshot_path.name
        if not args.yes and not confirm(f"Delete {root} and restore it from {target}?"):
            echo("Restore cancelled.")
            return 0
        return _finish(installer, *installer.restore_backup(args.name))

    if args.command == "list":
        try:
            backups = installer.list_backups()
        except WmmError as exc:
            echo(f"Error reading the directory: {exc}")
            return 1
        for name in backups:
            print(name)
        return 0

    if args.command == "delete":
        if not args.yes and not confirm(f"Delete backup {args.name}?"):
            echo("Delete cancelled.")
            return 0
        return _finish(installer, *installer.delete_backup(args.name))

    if args.command == "config":
        for line in installer.describe_config():
            print(line)
        return 0

    echo(f"Unknown command: {args.command}")
    return 1
