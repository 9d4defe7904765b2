import json
import subprocess
import tempfile
from pathlib import Path

import platformdirs
import pytest
import tomlkit

from sgdktool import project
from sgdktool.config import ConfigError, SgdkToolError, makefile_name


class Recorder:
    def __init__(self, returncode=0, stdout=b"", stderr=b"", action=None):
        self.calls = []
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.action = action

    def __call__(self, args, **kwargs):
        self.calls.append((list(args), kwargs))
        if self.action is not None:
            self.action(args, kwargs)
        return subprocess.CompletedProcess(args, self.returncode, self.stdout, self.stderr)


def make_sgdk(root: Path) -> Path:
    for rel in ["basics/hello-world", "game", "game/sub"]:
        src = root / "sample" / rel / "src"
        src.mkdir(parents=True)
        (src / "main.c").write_text("int main(void) { return 0; }\n")
    (root / "sample" / "game" / "res").mkdir()
    return root


@pytest.fixture
def cfg_dir(tmp_path, monkeypatch):
    directory = tmp_path / "cfg"
    monkeypatch.setattr(platformdirs, "user_config_dir", lambda *a, **k: str(directory))
    return directory


def write_config(cfg_dir: Path, doc: dict) -> None:
    cfg_dir.mkdir(parents=True, exist_ok=True)
    (cfg_dir / "config.toml").write_text(tomlkit.dumps(doc))


def test_find_templates_sorted_and_nested(tmp_path):
    sgdk = make_sgdk(tmp_path / "sgdk")
    found = project.find_templates(sgdk / "sample")
    assert [rel for rel, _ in found] == ["basics/hello-world", "game", "game/sub"]
    assert found[1][1] == sgdk / "sample" / "game"


def test_find_templates_missing_root(tmp_path):
    assert project.find_templates(tmp_path / "nothing") == []


def test_select_template_default(tmp_path, monkeypatch):
    sgdk = make_sgdk(tmp_path / "sgdk")
    monkeypatch.setattr("builtins.input", lambda prompt="": "")
    assert project.select_template(sgdk) == sgdk / "sample" / "basics" / "hello-world"


def test_select_template_by_number_after_invalid(tmp_path, monkeypatch):
    sgdk = make_sgdk(tmp_path / "sgdk")
    answers = iter(["9", "abc", "3"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    assert project.select_template(sgdk) == sgdk / "sample" / "game" / "sub"


def test_select_template_cancel(tmp_path, monkeypatch):
    sgdk = make_sgdk(tmp_path / "sgdk")
    monkeypatch.setattr("builtins.input", lambda prompt="": "q")
    assert project.select_template(sgdk) is None


def test_select_template_none_found(tmp_path):
    (tmp_path / "sgdk" / "sample").mkdir(parents=True)
    with pytest.raises(SgdkToolError, match="No templates found"):
        project.select_template(tmp_path / "sgdk")


def test_create_project_full(tmp_path, monkeypatch, cfg_dir):
    sgdk = make_sgdk(tmp_path / "sgdk")
    write_config(cfg_dir, {"sgdk": {"path": str(sgdk), "version": "master"}})
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setattr("builtins.input", lambda prompt="": "2")
    monkeypatch.setattr(project.shutil, "which", lambda name: None)

    dest = project.create_project("mygame")

    assert dest == Path("mygame")
    assert (work / "mygame" / "src" / "main.c").exists()
    assert (work / "mygame" / "sub" / "src" / "main.c").exists()
    assert (work / "mygame" / ".clangd").read_text() == project.CLANGD_CONTENT
    assert (work / "mygame" / ".gitignore").read_text() == project.GITIGNORE_CONTENT
    props = json.loads((work / "mygame" / ".vscode" / "c_cpp_properties.json").read_text())
    assert props["configurations"][0]["name"] == "sgdk"


def test_create_project_cancelled(tmp_path, monkeypatch, cfg_dir):
    sgdk = make_sgdk(tmp_path / "sgdk")
    write_config(cfg_dir, {"sgdk": {"path": str(sgdk), "version": "master"}})
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("builtins.input", lambda prompt="": "q")
    assert project.create_project("proj") is None
    assert not (tmp_path / "proj").exists()


def test_create_project_existing_dest(tmp_path, monkeypatch, cfg_dir):
    sgdk = make_sgdk(tmp_path / "sgdk")
    write_config(cfg_dir, {"sgdk": {"path": str(sgdk), "version": "master"}})
    monkeypatch.chdir(tmp_path)
    (tmp_path / "taken").mkdir()
    with pytest.raises(SgdkToolError, match="taken"):
        project.create_project("taken")


def test_create_project_without_config(cfg_dir):
    with pytest.raises(ConfigError):
        project.create_project("anything")


def test_create_project_without_sgdk_path(cfg_dir):
    write_config(cfg_dir, {"emulator": {"gens_path": "x"}})
    with pytest.raises(ConfigError, match="SGDK path not found"):
        project.create_project("anything")


def test_check_compiledb_available(monkeypatch):
    monkeypatch.setattr(project.shutil, "which", lambda name: f"/bin/{name}")
    assert project.check_compiledb_available() is True
    monkeypatch.setattr(project.shutil, "which", lambda name: None)
    assert project.check_compiledb_available() is False


def test_temporary_link_not_needed(tmp_path):
    sgdk = tmp_path / "sgdk"
    with project.temporary_sgdk_link(sgdk) as effective:
        assert effective == sgdk


def test_temporary_link_created_and_removed(tmp_path, monkeypatch):
    sgdk = tmp_path / "my sgdk"
    sgdk.mkdir()
    temp = tmp_path / "tmp"
    temp.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(temp))
    with project.temporary_sgdk_link(sgdk) as effective:
        assert effective == temp / project.SYMLINK_NAME
        assert effective.resolve() == sgdk.resolve()
    assert not effective.is_symlink()


def test_run_compiledb_make_success(tmp_path, monkeypatch):
    sgdk = tmp_path / "sgdk"
    proj = tmp_path / "proj"
    proj.mkdir()
    recorder = Recorder()
    monkeypatch.setattr(subprocess, "run", recorder)
    assert project.run_compiledb_make(proj, sgdk) is True
    args, kwargs = recorder.calls[0]
    assert args == ["compiledb", "make", f"GDK={sgdk}", "-f", str(sgdk / makefile_name())]
    assert kwargs["cwd"] == proj


def test_run_compiledb_make_failure(tmp_path, monkeypatch):
    monkeypatch.setattr(subprocess, "run", Recorder(returncode=2, stderr=b"boom"))
    assert project.run_compiledb_make(tmp_path, tmp_path / "sgdk") is False


def test_run_compiledb_make_missing_program(tmp_path, monkeypatch):
    def fail(args, **kwargs):
        raise FileNotFoundError(args[0])

    monkeypatch.setattr(subprocess, "run", fail)
    assert project.run_compiledb_make(tmp_path, tmp_path / "sgdk") is False


def test_run_compiledb_make_with_spaces_fixes_paths(tmp_path, monkeypatch):
    sgdk = tmp_path / "my sgdk"
    sgdk.mkdir()
    proj = tmp_path / "proj"
    proj.mkdir()
    temp = tmp_path / "tmp"
    temp.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(temp))
    link = temp / project.SYMLINK_NAME

    def write_commands(args, kwargs):
        gdk = args[2].split("=", 1)[1]
        Path(kwargs["cwd"], "compile_commands.json").write_text(
            json.dumps([{"directory": gdk, "file": f"{gdk}/inc/genesis.h"}])
        )

    recorder = Recorder(action=write_commands)
    monkeypatch.setattr(subprocess, "run", recorder)

    assert project.run_compiledb_make(proj, sgdk) is True
    assert recorder.calls[0][0][2] == f"GDK={link}"
    entries = json.loads((proj / "compile_commands.json").read_text())
    assert entries[0]["directory"] == str(sgdk)
    assert entries[0]["file"] == f"{sgdk}/inc/genesis.h"
    assert not link.is_symlink()


def test_fix_compile_commands_paths(tmp_path):
    (tmp_path / "compile_commands.json").write_text("A /x/link/inc and /x/link/src")
    project.fix_compile_commands_paths(tmp_path, "/x/link", "/real path")
    assert (tmp_path / "compile_commands.json").read_text() == "A /real path/inc and /real path/src"


def test_fix_compile_commands_paths_missing_file(tmp_path):
    project.fix_compile_commands_paths(tmp_path, "/a", "/b")
    assert not (tmp_path / "compile_commands.json").exists()


def test_config_writers_return_paths(tmp_path):
    assert project.create_clangd_config(tmp_path) == tmp_path / ".clangd"
    assert project.create_gitignore(tmp_path).read_text().splitlines()[0] == "/compile_commands.json"
    vscode = project.create_vscode_config(tmp_path)
    assert json.loads(vscode.read_text())["version"] == 4