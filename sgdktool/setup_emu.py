"""Downloading and installing the Gens and BlastEm emulators."""

from __future__ import annotations

import re
import tempfile
import zipfile
from pathlib import Path

import requests
import tomlkit
from tomlkit.items import InlineTable, Table
from tomlkit.toml_document import TOMLDocument

from .config import (
    SgdkToolError,
    config_dir,
    find_emulator_executable,
    load_config,
    save_config,
)
from .sevenzip import extract_7z

GENS_URL = "https://retrocdn.net/images/4/43/Gens_KMod_v0.7.3.7z"
BLASTEM_NIGHTLIES_URL = "https://www.retrodev.com/blastem/nightlies/"
SUPPORTED_EMULATORS = ("gens", "blastem")

_BLASTEM_BUILD = re.compile(r"blastem-win64-[0-9\.]+.*?\.zip")
_TIMEOUT = 120


def find_latest_blastem_build(page: str) -> str:
    """Return the first win64 nightly zip name linked from the nightlies page."""
    match = _BLASTEM_BUILD.search(page)
    if match is None:
        raise SgdkToolError("Failed to find a win64 nightly build")
    return match.group(0)


def extract_zip(archive_path: Path | str, install_dir: Path | str) -> Path:
    """Extract a zip archive into *install_dir*."""
    install_dir = Path(install_dir)
    install_dir.mkdir(parents=True, exist_ok=True)
    try:
        with zipfile.ZipFile(archive_path) as archive:
            archive.extractall(install_dir)
    except zipfile.BadZipFile as exc:
        raise SgdkToolError(f"Failed to read zip archive: {exc}") from exc
    return install_dir


def record_emulator_path(
    config_path: Path | str, emulator: str, exe_path: Path | str
) -> TOMLDocument:
    """Store the emulator's executable path in config.toml and return the document."""
    config_path = Path(config_path)
    doc = load_config(config_path) if config_path.exists() else tomlkit.document()
    table = doc.get("emulator")
    if not isinstance(table, (Table, InlineTable)):
        table = tomlkit.table()
        doc["emulator"] = table
    table[f"{emulator}_path"] = str(exe_path)
    save_config(doc, config_path)
    return doc


def _download(url: str, what: str) -> requests.Response:
    try:
        response = requests.get(url, timeout=_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise SgdkToolError(f"Failed to download {what}: {exc}") from exc
    return response


def _download_to_temp(url: str, what: str, suffix: str, work_dir: str) -> Path:
    target = Path(work_dir) / f"download{suffix}"
    target.write_bytes(_download(url, what).content)
    return target


def setup_gens(install_dir: Path | str) -> Path:
    """Download and unpack Gens KMod into *install_dir*."""
    install_dir = Path(install_dir)
    print("Setting up Gens KMod v0.7.3...")
    with tempfile.TemporaryDirectory() as work:
        archive = _download_to_temp(GENS_URL, "Gens", ".7z", work)
        install_dir.mkdir(parents=True, exist_ok=True)
        print("Extracting Gens KMod...")
        try:
            extract_7z(archive, install_dir)
        except SgdkToolError as exc:
            raise SgdkToolError(f"Failed to extract Gens KMod: {exc}") from exc
    print(f"Gens KMod v0.7.3 installed to {install_dir}")
    return install_dir


def setup_blastem(install_dir: Path | str) -> Path:
    """Download the latest BlastEm win64 nightly and unpack it into *install_dir*."""
    install_dir = Path(install_dir)
    print("Setting up BlastEm nightly build...")
    page = _download(BLASTEM_NIGHTLIES_URL, "BlastEm nightlies page").text
    build = find_latest_blastem_build(page)
    print(f"Found latest build: {build}")
    with tempfile.TemporaryDirectory() as work:
        archive = _download_to_temp(BLASTEM_NIGHTLIES_URL + build, "BlastEm", ".zip", work)
        extract_zip(archive, install_dir)
    print(f"BlastEm nightly build installed to {install_dir}")
    return install_dir


def setup_emulator(emulator: str = "gens", dir: str | Path | None = None) -> Path | None:
    """Install *emulator* and record its executable; return the executable if found."""
    base = config_dir()
    install_dir = Path(dir) if dir is not None else base / emulator
    install_dir.mkdir(parents=True, exist_ok=True)

    if emulator == "gens":
        setup_gens(install_dir)
    elif emulator == "blastem":
        setup_blastem(install_dir)
    else:
        raise SgdkToolError(
            f"Unsupported emulator: {emulator}. Supported emulators: gens, blastem"
        )

    exe_path = find_emulator_executable(base, emulator)
    if exe_path is not None:
        record_emulator_path(base / "config.toml", emulator, exe_path)
        print(f"{emulator} path saved to config.toml")
    return exe_path