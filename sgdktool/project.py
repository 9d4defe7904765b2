"""Creating new SGDK projects from the bundled samples."""

from __future__ import annotations

import shutil
import subprocess
import sys
import tempfile
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager, suppress
from pathlib import Path

from .config import (
    ConfigError,
    SgdkToolError,
    config_path,
    get_sgdk_config,
    load_config,
    makefile_name,
)
from .i18n import t

SYMLINK_NAME = "sgdk_no_spaces"

CLANGD_CONTENT = """CompileFlags:
  Add:
    - '-DSGDK_GCC'
    - '-include'
    - 'types.h'
  Remove:
    - '-ffat-lto-objects'
    - '-externally_visible'
    - '-f*'
    - '-m68000'
Diagnostics:
  Suppress:
    - main_arg_wrong
"""

CPP_PROPERTIES_CONTENT = """{
    "configurations": [
      {
        "name": "sgdk",
        "cStandard": "c23",
        "intelliSenseMode": "gcc-x64",
        "compileCommands": "${workspaceFolder}/compile_commands.json"
      }
    ],
    "version": 4
}
"""

GITIGNORE_CONTENT = """/compile_commands.json
/.cache
/out
/res/**/*.h
"""


def find_templates(sample_root: Path | str) -> list[tuple[str, Path]]:
    """Return (relative name, path) of every directory holding a src folder, sorted."""
    found: list[tuple[str, Path]] = []

    def walk(base: Path, rel: str) -> None:
        if (base / "src").exists():
            found.append((rel, base))
        try:
            entries = list(base.iterdir())
        except OSError:
            return
        for entry in entries:
            if entry.is_dir():
                walk(entry, f"{rel}/{entry.name}" if rel else entry.name)

    walk(Path(sample_root), "")
    found.sort(key=lambda item: item[0])
    return found


def select_template(sgdk_path: Path | str) -> Path | None:
    """Ask the user to pick a sample template; None when cancelled."""
    templates = find_templates(Path(sgdk_path) / "sample")
    if not templates:
        raise SgdkToolError("No templates found in sample directory.")

    print("Select a project template:")
    for number, (rel, _) in enumerate(templates, start=1):
        print(f"  {number}) {rel}")

    while True:
        try:
            answer = input("Number (Enter for 1, q to cancel): ").strip()
        except EOFError:
            answer = "q"
        if answer.lower() in ("q", "quit"):
            print("Cancelled.")
            return None
        if not answer:
            index = 0
        elif answer.isdigit() and 1 <= int(answer) <= len(templates):
            index = int(answer) - 1
        else:
            print(f"Invalid selection: {answer}")
            continue
        rel, path = templates[index]
        print(f"Selected template: {rel}")
        return path


def create_project(name: str) -> Path | None:
    """Create project *name* from a chosen template; return its path or None if cancelled."""
    path = config_path()
    if not path.exists():
        raise ConfigError(t("config_not_found_for_project"))

    doc = load_config(path)
    sgdk_path_str, _ = get_sgdk_config(doc)
    if sgdk_path_str is None:
        raise ConfigError("SGDK path not found in config.toml.")
    sgdk_path = Path(sgdk_path_str)

    dest = Path(name)
    if dest.exists():
        raise SgdkToolError(t("project_exists", name=name))

    template = select_template(sgdk_path)
    if template is None:
        return None

    print(t("creating_project", name=name))
    shutil.copytree(template, dest)
    print(t("project_created", name=name))

    print(t("compiledb_check"))
    if check_compiledb_available():
        run_compiledb_make(dest, sgdk_path)

    create_clangd_config(dest)
    create_vscode_config(dest)
    create_gitignore(dest)
    return dest


def check_compiledb_available() -> bool:
    """Report whether compiledb is on PATH."""
    if shutil.which("compiledb") is not None:
        print(t("compiledb_found"))
        return True
    print(t("compiledb_not_found"))
    return False


@contextmanager
def temporary_sgdk_link(sgdk_path: Path | str) -> Iterator[Path]:
    """Yield a space-free path to SGDK, using a temporary symlink when needed."""
    sgdk_path = Path(sgdk_path)
    if " " not in str(sgdk_path):
        yield sgdk_path
        return

    print(t("compiledb_symlink_created"))
    link = Path(tempfile.gettempdir()) / SYMLINK_NAME
    if link.is_symlink() or link.exists():
        with suppress(OSError):
            link.unlink()
    try:
        link.symlink_to(sgdk_path, target_is_directory=True)
    except OSError as exc:
        raise SgdkToolError(t("compiledb_symlink_failed")) from exc
    try:
        yield link
    finally:
        with suppress(OSError):
            link.unlink()


def run_compiledb_make(project_path: Path | str, sgdk_path: Path | str) -> bool:
    """Generate compile_commands.json with compiledb; return whether it succeeded."""
    project_path = Path(project_path)
    sgdk_path = Path(sgdk_path)
    print(t("running_compiledb"))

    with ExitStack() as stack:
        try:
            effective = stack.enter_context(temporary_sgdk_link(sgdk_path))
        except SgdkToolError as exc:
            print(exc)
            return False

        command = [
            "compiledb",
            "make",
            f"GDK={effective}",
            "-f",
            str(effective / makefile_name()),
        ]
        try:
            output = subprocess.run(command, cwd=project_path, capture_output=True)
        except OSError as exc:
            print(t("compiledb_failed"))
            print(f"Error executing compiledb: {exc}", file=sys.stderr)
            return False

        if output.returncode != 0:
            print(t("compiledb_failed"))
            if output.stderr:
                print(f"Error: {_decode(output.stderr)}", file=sys.stderr)
            if output.stdout:
                print(f"Output: {_decode(output.stdout)}")
            return False

        print(t("compiledb_success"))
        if effective != sgdk_path:
            fix_compile_commands_paths(project_path, effective, sgdk_path)
        return True


def _decode(data: bytes | str) -> str:
    return data if isinstance(data, str) else data.decode("utf-8", errors="replace")


def fix_compile_commands_paths(
    project_path: Path | str, symlink_path: Path | str, real_sgdk_path: Path | str
) -> None:
    """Replace the symlink path with the real SGDK path in compile_commands.json."""
    target = Path(project_path) / "compile_commands.json"
    try:
        content = target.read_text(encoding="utf-8")
    except OSError:
        return
    fixed = content.replace(str(symlink_path), str(real_sgdk_path))
    try:
        target.write_text(fixed, encoding="utf-8")
    except OSError:
        print("Warning: Failed to fix compile_commands.json paths", file=sys.stderr)


def create_clangd_config(project_path: Path | str) -> Path:
    """Write the project's .clangd file."""
    print(t("creating_clangd_config"))
    path = Path(project_path) / ".clangd"
    path.write_text(CLANGD_CONTENT, encoding="utf-8")
    print(t("clangd_config_created"))
    return path


def create_vscode_config(project_path: Path | str) -> Path:
    """Write .vscode/c_cpp_properties.json for the project."""
    print(t("creating_vscode_config"))
    vscode_dir = Path(project_path) / ".vscode"
    vscode_dir.mkdir(parents=True, exist_ok=True)
    path = vscode_dir / "c_cpp_properties.json"
    path.write_text(CPP_PROPERTIES_CONTENT, encoding="utf-8")
    print(t("vscode_config_created"))
    return path


def create_gitignore(project_path: Path | str) -> Path:
    """Write the project's .gitignore."""
    print(t("creating_gitignore"))
    path = Path(project_path) / ".gitignore"
    path.write_text(GITIGNORE_CONTENT, encoding="utf-8")
    print(t("gitignore_created"))
    return path