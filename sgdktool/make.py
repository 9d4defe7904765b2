"""Building an SGDK project with make."""

from __future__ import annotations

import subprocess
from collections.abc import Iterable
from pathlib import Path

from .config import ConfigError, SgdkToolError, get_sgdk_config, load_config, makefile_name
from .i18n import t
from .project import temporary_sgdk_link


def build_command(sgdk_path: Path | str, extra: Iterable[str] = ()) -> list[str]:
    """Return the make command line for building against *sgdk_path*."""
    sgdk_path = Path(sgdk_path)
    return ["make", f"GDK={sgdk_path}", "-f", str(sgdk_path / makefile_name()), *extra]


def build_project(extra: Iterable[str] = ()) -> int:
    """Run make in the current directory and return its exit code."""
    if not Path(".").is_dir():
        raise SgdkToolError(t("project_dir_not_found"))

    doc = load_config()
    sgdk_path_str, _ = get_sgdk_config(doc)
    if sgdk_path_str is None:
        raise ConfigError("SGDK path not found in config.toml.")

    extra = list(extra)
    with temporary_sgdk_link(Path(sgdk_path_str)) as effective:
        try:
            completed = subprocess.run(build_command(effective, extra), cwd=".")
        except OSError as exc:
            raise SgdkToolError(f"Failed to execute make: {exc}") from exc

    code = completed.returncode
    return code if code >= 0 else 1