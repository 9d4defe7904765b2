import shutil
import subprocess
import sys

import platformdirs
import pytest

from sgdktool.doc import open_in_browser, show_sgdk_doc_status
from sgdktool.i18n import set_locale, t


class _Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, command, *args, **kwargs):
        self.calls.append(list(command))
        return subprocess.CompletedProcess(command, 0)


def _raise_oserror(*args, **kwargs):
    raise OSError("no launcher")


@pytest.fixture
def cfg_dir(tmp_path, monkeypatch):
    base = tmp_path / "cfg"
    monkeypatch.setattr(platformdirs, "user_config_dir", lambda *a, **k: str(base))
    set_locale("en")
    return base


@pytest.mark.parametrize(
    "platform, prefix",
    [
        ("darwin", ["open"]),
        ("win32", ["cmd", "/C", "start", ""]),
        ("linux", ["xdg-open"]),
    ],
)
def test_open_in_browser_commands(tmp_path, monkeypatch, platform, prefix):
    recorder = _Recorder()
    monkeypatch.setattr(subprocess, "run", recorder)
    monkeypatch.setattr(sys, "platform", platform)
    page = tmp_path / "index.html"

    assert open_in_browser(page) is True
    assert recorder.calls == [prefix + [str(page)]]


def test_open_in_browser_launch_failure(tmp_path, monkeypatch):
    monkeypatch.setattr(subprocess, "run", _raise_oserror)
    assert open_in_browser(tmp_path / "index.html") is False


def test_show_status_opens_index(cfg_dir, monkeypatch):
    html = cfg_dir / "SGDK" / "doc" / "html"
    html.mkdir(parents=True)
    (html / "index.html").write_text("<html/>", encoding="utf-8")
    recorder = _Recorder()
    monkeypatch.setattr(subprocess, "run", recorder)

    assert show_sgdk_doc_status() == html
    assert len(recorder.calls) == 1
    assert recorder.calls[0][-1] == str(html / "index.html")


def test_show_status_without_index(cfg_dir, monkeypatch, capsys):
    html = cfg_dir / "SGDK" / "doc" / "html"
    html.mkdir(parents=True)
    recorder = _Recorder()
    monkeypatch.setattr(subprocess, "run", recorder)

    assert show_sgdk_doc_status() == html
    assert recorder.calls == []
    assert "index.html not found in doc directory." in capsys.readouterr().out


def test_show_status_doxygen_missing(cfg_dir, monkeypatch, capsys):
    monkeypatch.setattr(shutil, "which", lambda *a, **k: None)
    assert show_sgdk_doc_status() is None
    assert capsys.readouterr().out.strip() == t("sgdk_doc_doxygen_missing")


def test_show_status_not_generated(cfg_dir, monkeypatch, capsys):
    monkeypatch.setattr(shutil, "which", lambda name, *a, **k: f"/usr/bin/{name}")
    assert show_sgdk_doc_status() is None
    assert capsys.readouterr().out.strip() == t("sgdk_doc_not_generated")