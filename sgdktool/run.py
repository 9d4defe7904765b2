"""Running a ROM in an installed emulator."""

from __future__ import annotations

import shutil
import subprocess
import sys
from pathlib import Path

from .config import SgdkToolError, config_dir, find_emulator_executable


def resolve_emulator(config_dir: Path | str, emulator: str | None = None) -> str:
    """Return the emulator to use, auto-detecting gens then blastem."""
    if emulator:
        return emulator
    for candidate in ("gens", "blastem"):
        if find_emulator_executable(config_dir, candidate) is not None:
            return candidate
    raise SgdkToolError("No emulator found. Please run 'sgdktool setup-emu' first.")


def run_emulator(emulator: str | None = None, rom_path: str = "out/rom.bin") -> int:
    """Launch *rom_path* in the chosen emulator and return its exit code."""
    base = config_dir()
    if not Path(rom_path).exists():
        raise SgdkToolError(f"ROM file not found: {rom_path}")

    name = resolve_emulator(base, emulator)
    exe_path = find_emulator_executable(base, name)
    if exe_path is None:
        raise SgdkToolError(
            f"Emulator '{name}' not found. Please run 'sgdktool setup-emu {name}' first."
        )

    if sys.platform == "win32":
        return run_direct(exe_path, rom_path)
    return run_with_wine(exe_path, rom_path)


def _absolute_rom(rom_path: str | Path) -> Path:
    try:
        return Path(rom_path).resolve(strict=True)
    except OSError as exc:
        raise SgdkToolError(f"Failed to get absolute path for ROM file: {exc}") from exc


def _launch(command: list[str], failure: str) -> int:
    try:
        completed = subprocess.run(command)
    except OSError as exc:
        raise SgdkToolError(f"{failure}: {exc}") from exc
    if completed.returncode != 0:
        print(f"Emulator exited with error code: {completed.returncode}", file=sys.stderr)
    return completed.returncode


def run_with_wine(exe_path: Path | str, rom_path: str | Path) -> int:
    """Run a Windows emulator through wine."""
    if shutil.which("wine") is None:
        raise SgdkToolError(
            "Wine is not installed or not in PATH. "
            "Please install wine to run Windows emulators."
        )
    print(f"Running {exe_path} with wine...")
    rom = _absolute_rom(rom_path)
    return _launch(["wine", str(exe_path), str(rom)], "Failed to run emulator with wine")


def run_direct(exe_path: Path | str, rom_path: str | Path) -> int:
    """Run the emulator executable directly."""
    print(f"Running {exe_path} ...")
    rom = _absolute_rom(rom_path)
    return _launch([str(exe_path), str(rom)], "Failed to run emulator")