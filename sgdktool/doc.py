"""Reporting on, and opening, the generated SGDK documentation."""

from __future__ import annotations

import shutil
import subprocess
import sys
from pathlib import Path

from .config import config_dir
from .i18n import t


def open_in_browser(path: Path | str) -> bool:
    """Open *path* with the platform's default handler; return whether it was launched."""
    target = str(path)
    if sys.platform == "darwin":
        command = ["open", target]
    elif sys.platform == "win32":
        command = ["cmd", "/C", "start", "", target]
    else:
        command = ["xdg-open", target]
    try:
        subprocess.run(command)
    except OSError:
        return False
    return True


def show_sgdk_doc_status() -> Path | None:
    """Print the documentation status, opening it when present; return the HTML directory."""
    out_html = config_dir() / "SGDK" / "doc" / "html"
    index_html = out_html / "index.html"

    if out_html.is_dir():
        print(t("sgdk_doc_exists", path=out_html))
        if index_html.exists():
            open_in_browser(index_html)
        else:
            print("index.html not found in doc directory.")
        return out_html

    if shutil.which("doxygen") is None:
        print(t("sgdk_doc_doxygen_missing"))
    else:
        print(t("sgdk_doc_not_generated"))
    return None