#!/usr/bin/env python3
"""wmm mod installer — Entry Point"""

import argparse
import faulthandler
import logging
import os
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config_schema import CONFIG_FILENAME


def setup_logging() -> tuple[logging.Logger, Path]:
    log_dir = Path(os.environ.get("APPDATA", "~")).expanduser() / "wmm"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "wmm.log"

    handler = RotatingFileHandler(
        log_file,
        maxBytes=1 * 1024 * 1024,  # 1 MB
        backupCount=2,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(asctime)s  %(levelname)-8s  %(message)s"))

    # Component modules log under their own names, so attach at the root.
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)
    logging.getLogger("urllib3").setLevel(logging.INFO)
    return logging.getLogger("wmm"), log_dir


def install_crash_handler(logger: logging.Logger, log_dir: Path):
    def handle_exception(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logger.critical(
            "Unhandled exception:\n%s",
            "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
        )
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = handle_exception

    # faulthandler cannot go through logging after a native crash
    crash_file = log_dir / "crash.log"
    faulthandler.enable(open(crash_file, "w"), all_threads=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wmm", description="Mod installer and backup tool")
    parser.add_argument("--root", help="Game data directory (default: %%APPDATA%%/.minecraft)")
    parser.add_argument("--config", default=CONFIG_FILENAME, help="Install config file")
    parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("install", help="Back up, run installers and install mods")
    subparsers.add_parser("backup", help="Create a backup of the game directory")
    restore_parser = subparsers.add_parser("restore", help="Restore a backup (default: the base backup)")
    restore_parser.add_argument("name", nargs="?", help="Backup name as shown by 'list'")
    subparsers.add_parser("list", help="List backups")
    delete_parser = subparsers.add_parser("delete", help="Delete a backup")
    delete_parser.add_argument("name", help="Backup name as shown by 'list'")
    subparsers.add_parser("config", help="Show the install configuration")
    return parser


def parse_args(argv=None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def main():
    args = parse_args()

    logger, log_dir = setup_logging()
    install_crash_handler(logger, log_dir)
    logger.info("Starting wmm: %s", args.command)

    from cli import run
    sys.exit(run(args, logger))


if __name__ == "__main__":
    main()
