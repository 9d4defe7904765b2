"""Removing SGDK, installed emulators and the configuration."""

from __future__ import annotations

import shutil
from pathlib import Path

from .config import (
    ConfigError,
    config_dir,
    get_emulator_path,
    get_sgdk_config,
    load_config,
    save_config,
)
from .i18n import t


def is_confirmed(answer: str) -> bool:
    """Return True when *answer* is y or yes, in any case."""
    return answer.strip().lower() in ("y", "yes")


def _remove_emulator(doc, emulator: str) -> None:
    exe = get_emulator_path(doc, emulator)
    if exe is None:
        return
    exe_path = Path(exe)
    directory = exe_path.parent if exe_path.parent != exe_path else exe_path
    if directory.exists():
        print(f"Removing {emulator} emulator: {directory}")
        shutil.rmtree(directory)


def uninstall_sgdk() -> bool:
    """Ask for confirmation, then remove everything; return whether it went ahead."""
    base = config_dir()
    path = base / "config.toml"

    print(t("uninstall_all_confirm"))
    try:
        answer = input("> ")
    except EOFError:
        answer = ""
    if not is_confirmed(answer):
        print(t("operation_cancelled"))
        return False

    if path.exists():
        try:
            doc = load_config(path)
        except ConfigError:
            doc = None
        if doc is not None:
            sgdk_path, _ = get_sgdk_config(doc)
            if sgdk_path is not None and Path(sgdk_path).exists():
                print(t("removing_sgdk_installation", path=sgdk_path))
                shutil.rmtree(sgdk_path)
            _remove_emulator(doc, "gens")
            _remove_emulator(doc, "blastem")
            doc.pop("emulator", None)
            save_config(doc, path)

    if base.exists():
        shutil.rmtree(base)
        print(t("sgdk_and_config_removed"))
    else:
        print(t("nothing_to_remove"))
    return True