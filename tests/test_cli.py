"""Tests for slink.cli — commands end to end with a recorded subprocess.run."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from slink import __version__
from slink.cli import app
from slink.config import BaseDirs
from slink.ssh import base_connection_options

runner = CliRunner()


@pytest.fixture()
def active(xdg_dirs: BaseDirs) -> BaseDirs:
    """A configured environment with ``devbox`` as the active host."""
    result = runner.invoke(app, ["use", "devbox"])
    assert result.exit_code == 0, result.output
    return xdg_dirs


# ---------------------------------------------------------------------------
# Tests — host selection
# ---------------------------------------------------------------------------


class TestUse:
    def test_use_persists_host(self, xdg_dirs: BaseDirs):
        result = runner.invoke(app, ["use", "devbox"])
        assert result.exit_code == 0
        assert "Now using devbox" in result.output
        assert (xdg_dirs.config_dir / "hostname").read_text() == "devbox\n"

    def test_host_shows_active(self, active: BaseDirs):
        result = runner.invoke(app, ["host"])
        assert result.exit_code == 0
        assert result.output.strip() == "devbox"

    def test_host_without_selection(self, xdg_dirs: BaseDirs):
        result = runner.invoke(app, ["host"])
        assert result.exit_code == 1
        assert "No remote host configured" in result.output

    def test_rejects_path_separator(self, xdg_dirs: BaseDirs):
        result = runner.invoke(app, ["use", "a/b"])
        assert result.exit_code == 2
        assert not (xdg_dirs.config_dir / "hostname").exists()

    def test_rejects_blank(self, xdg_dirs: BaseDirs):
        result = runner.invoke(app, ["use", "   "])
        assert result.exit_code == 2


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_main_module_import_does_not_run_app(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delitem(sys.modules, "slink.__main__", raising=False)
    calls = []
    monkeypatch.setattr("slink.cli.app_entry", lambda: calls.append(True))
    importlib.import_module("slink.__main__")
    assert calls == []


# ---------------------------------------------------------------------------
# Tests — remote commands
# ---------------------------------------------------------------------------


class TestRemote:
    def test_go(self, active: BaseDirs, fake_run):
        result = runner.invoke(app, ["go"])
        assert result.exit_code == 0, result.output
        # CliRunner's stdout is not a terminal, so no -t.
        assert fake_run.last == ["ssh", *base_connection_options("devbox", active), "-q", "devbox"]

    def test_go_creates_socket_dir(self, active: BaseDirs, fake_run):
        runner.invoke(app, ["go"])
        assert active.cache_dir.is_dir()

    def test_run(self, active: BaseDirs, fake_run):
        result = runner.invoke(app, ["run", "uname -a"])
        assert result.exit_code == 0
        assert fake_run.last[-2:] == ["devbox", "uname -a"]

    def test_no_host_runs_nothing(self, xdg_dirs: BaseDirs, fake_run):
        result = runner.invoke(app, ["run", "uptime"])
        assert result.exit_code == 1
        assert "No remote host configured" in result.output
        assert fake_run.calls == []

    def test_exit_status_mirrored(self, active: BaseDirs, fake_run):
        fake_run.returncode = 5
        result = runner.invoke(app, ["run", "false"])
        assert result.exit_code == 5
        assert "exited with status 5" in result.output

    def test_missing_program(self, active: BaseDirs, fake_run):
        fake_run.error = FileNotFoundError(2, "No such file or directory", "ssh")
        result = runner.invoke(app, ["go"])
        assert result.exit_code == 127
        assert "Failed to start" in result.output
        assert "PATH" in result.output

    def test_verbose_previews_command(self, active: BaseDirs, fake_run):
        result = runner.invoke(app, ["--verbose", "run", "uptime"])
        assert result.exit_code == 0
        assert "$ ssh" in result.output

    def test_settings_options_applied(self, active: BaseDirs, fake_run):
        (active.config_dir / "settings.yaml").write_text(
            'version: 1\nssh_options: ["-oConnectTimeout=5"]\n'
        )
        runner.invoke(app, ["go"])
        assert "-oConnectTimeout=5" in fake_run.last

    def test_broken_settings(self, active: BaseDirs, fake_run):
        (active.config_dir / "settings.yaml").write_text("version: 42\n")
        result = runner.invoke(app, ["go"])
        assert result.exit_code == 1
        assert fake_run.calls == []


# ---------------------------------------------------------------------------
# Tests — copies
# ---------------------------------------------------------------------------


class TestCopy:
    def test_upload_same_path(self, active: BaseDirs, fake_run):
        result = runner.invoke(app, ["upload", "notes.txt"])
        assert result.exit_code == 0
        assert fake_run.last[0] == "scp"
        assert fake_run.last[-2:] == ["notes.txt", "devbox:notes.txt"]

    def test_upload_to(self, active: BaseDirs, fake_run):
        runner.invoke(app, ["upload", "/a/b", "--to", "/c/d"])
        assert fake_run.last == ["scp", *base_connection_options("devbox", active), "/a/b", "devbox:/c/d"]

    def test_download(self, active: BaseDirs, fake_run):
        runner.invoke(app, ["download", "/c/d", "--to", "/a/b"])
        assert fake_run.last == ["scp", *base_connection_options("devbox", active), "devbox:/c/d", "/a/b"]

    def test_sync_up(self, active: BaseDirs, fake_run, tmp_path: Path):
        project = tmp_path / "proj"
        project.mkdir()
        result = runner.invoke(app, ["sync", "up", str(project)])
        assert result.exit_code == 0, result.output
        assert fake_run.last[-3:] == ["-r", str(project.resolve()), f"devbox:{project.resolve().parent}"]

    def test_sync_up_missing_directory(self, active: BaseDirs, fake_run, tmp_path: Path):
        result = runner.invoke(app, ["sync", "up", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert fake_run.calls == []

    def test_sync_down(self, active: BaseDirs, fake_run, tmp_path: Path):
        project = tmp_path / "proj"
        result = runner.invoke(app, ["sync", "down", str(project), "--remote", "/srv/proj"])
        assert result.exit_code == 0, result.output
        assert fake_run.last[-3:] == ["-r", "devbox:/srv/proj", str(project.resolve().parent)]

    def test_sync_down_into_named_directory(self, active: BaseDirs, fake_run, tmp_path: Path):
        work = tmp_path / "work"
        result = runner.invoke(app, ["sync", "down", str(work), "--remote", "/srv/work/"])
        assert result.exit_code == 0, result.output
        # scp -r recreates "work" inside the parent, landing on the named directory
        assert fake_run.last[-3:] == ["-r", "devbox:/srv/work/", str(work.resolve().parent)]

    def test_sync_down_rejects_mismatched_names(self, active: BaseDirs, fake_run, tmp_path: Path):
        result = runner.invoke(app, ["sync", "down", str(tmp_path / "work"), "--remote", "/srv/app"])
        assert result.exit_code == 2
        assert fake_run.calls == []


# ---------------------------------------------------------------------------
# Tests — forwarding
# ---------------------------------------------------------------------------


class TestForward:
    def test_high_ports(self, active: BaseDirs, fake_run):
        result = runner.invoke(app, ["forward", "8080", "9000"])
        assert result.exit_code == 0
        assert fake_run.last[0] == "ssh"
        assert "-L8080:127.0.0.1:8080" in fake_run.last
        assert "-L9000:127.0.0.1:9000" in fake_run.last
        assert fake_run.last[-1] == "devbox"

    def test_low_port_elevates(self, active: BaseDirs, fake_run):
        result = runner.invoke(app, ["forward", "80", "8080"])
        assert result.exit_code == 0
        assert fake_run.last[:2] == ["sudo", "ssh"]

    def test_invalid_port(self, active: BaseDirs, fake_run):
        result = runner.invoke(app, ["forward", "70000"])
        assert result.exit_code == 2
        assert fake_run.calls == []

    def test_non_numeric_port(self, active: BaseDirs, fake_run):
        result = runner.invoke(app, ["forward", "http"])
        assert result.exit_code == 2
        assert fake_run.calls == []
