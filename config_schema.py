"""
Install configuration for wmm.

The pack maintainer ships a ``wmm.json`` next to the executable describing
what an install does:

{
    "hints": [
        "Close the game launcher before installing."
    ],
    "installurl": [
        "https://example.com/fabric-installer.exe"
    ],
    "modsurl": "https://example.com/modpack.zip"
}

``hints`` are shown before installing, each ``installurl`` is downloaded and
run in order (an empty list skips the step), and ``modsurl`` is the archive
unpacked into the game directory.

The parsed value is passed explicitly to whatever needs it; nothing reads
configuration from module state.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from errors import ConfigError

CONFIG_FILENAME = "wmm.json"

_log = logging.getLogger(__name__)


def _check_url(v: str) -> str:
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL {v!r} — expected an http(s) URL")
    return v


class InstallConfig(BaseModel):
    """Parsed contents of a wmm.json file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    hints: list[str] = Field(default_factory=list)
    install_urls: list[str] = Field(default_factory=list, alias="installurl")
    mods_url: str | None = Field(default=None, alias="modsurl")

    @field_validator("install_urls")
    @classmethod
    def _check_install_urls(cls, v: list[str]) -> list[str]:
        urls = [u.strip() for u in v if u and u.strip()]
        return [_check_url(u) for u in urls]

    @field_validator("mods_url")
    @classmethod
    def _check_mods_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return _check_url(v.strip())

    def describe(self) -> list[str]:
        return [
            "Current Configuration:",
            f"Hints: {self.hints}",
            f"Install URL(s): {self.install_urls}",
            f"Mods URL: {self.mods_url or ''}",
        ]


def parse_config(data: bytes | str) -> InstallConfig:
    """Parse raw JSON into an InstallConfig.

    Raises ``pydantic.ValidationError`` if the data is invalid.
    Raises ``json.JSONDecodeError`` if the bytes are not valid JSON.
    """
    return InstallConfig.model_validate(json.loads(data))


def load_config(path: str | Path = CONFIG_FILENAME) -> InstallConfig:
    path = Path(path)
    try:
        config = parse_config(path.read_bytes())
    except OSError as exc:
        raise ConfigError("Load config", path, exc) from exc
    except json.JSONDecodeError as exc:
        raise ConfigError("Parse config", path, exc) from exc
    except ValidationError as exc:
        raise ConfigError("Validate config", path, exc) from exc
    _log.info(
        "Loaded config %s: %d hint(s), %d installer(s), mods url %s",
        path, len(config.hints), len(config.install_urls), config.mods_url,
    )
    return config
