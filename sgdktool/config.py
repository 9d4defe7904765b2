"""Configuration file access and emulator lookup."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import platformdirs
import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.toml_document import TOMLDocument

APP_NAME = "sgdktool"
CONFIG_FILE = "config.toml"


class SgdkToolError(Exception):
    """Base error for this tool."""


class ConfigError(SgdkToolError):
    """The configuration file is missing or cannot be read."""


def config_dir() -> Path:
    """Return the tool's configuration directory."""
    return Path(platformdirs.user_config_dir(APP_NAME, appauthor=False, roaming=True))


def config_path() -> Path:
    """Return the path of config.toml."""
    return config_dir() / CONFIG_FILE


def load_config(path: Path | str | None = None) -> TOMLDocument:
    """Read and parse config.toml, raising ConfigError on failure."""
    path = Path(path) if path is not None else config_path()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    try:
        return tomlkit.parse(text)
    except TOMLKitError as exc:
        raise ConfigError(f"cannot parse {path}: {exc}") from exc


def save_config(doc: TOMLDocument, path: Path | str | None = None) -> None:
    """Write *doc* to config.toml, creating its directory when needed."""
    path = Path(path) if path is not None else config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def _string_at(table: Any, key: str) -> str | None:
    if not hasattr(table, "get"):
        return None
    value = table.get(key)
    return str(value) if isinstance(value, str) else None


def get_sgdk_config(doc: Any) -> tuple[str | None, str | None]:
    """Return the SGDK (path, version) from the sgdk table, None where absent."""
    table = doc.get("sgdk")
    return _string_at(table, "path"), _string_at(table, "version")


def get_emulator_path(doc: Any, emulator: str) -> str | None:
    """Return the recorded executable path for *emulator*, if any."""
    return _string_at(doc.get("emulator"), f"{emulator}_path")


def find_emulator_executable(config_dir: Path | str, emulator: str) -> Path | None:
    """Locate an installed emulator executable under *config_dir*."""
    emulator_dir = Path(config_dir) / emulator

    if emulator == "gens":
        candidates = [
            emulator_dir / "gens.exe",
            emulator_dir / "Gens_KMod_v0.7.3" / "gens.exe",
        ]
        return next((p for p in candidates if p.exists()), None)

    if emulator == "blastem":
        if emulator_dir.is_dir():
            for entry in sorted(emulator_dir.iterdir()):
                if entry.is_dir() and entry.name.startswith("blastem-win64"):
                    exe = entry / "blastem.exe"
                    if exe.exists():
                        return exe
        direct = emulator_dir / "blastem.exe"
        return direct if direct.exists() else None

    return None


def makefile_name() -> str:
    """Return the SGDK makefile used on this platform."""
    return "makefile.gen" if sys.platform == "win32" else "makefile_wine.gen"