"""Shared fixtures: isolated base directories and a recording subprocess.run."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from slink.config import BaseDirs


class FakeRun:
    """Stand-in for ``subprocess.run`` that records commands."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.returncode = 0
        self.error: OSError | None = None

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(cmd, self.returncode)

    @property
    def last(self) -> list[str]:
        return self.calls[-1]


@pytest.fixture()
def fake_run(monkeypatch: pytest.MonkeyPatch) -> FakeRun:
    fake = FakeRun()
    monkeypatch.setattr("slink.executor.subprocess.run", fake)
    return fake


@pytest.fixture()
def xdg_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> BaseDirs:
    """Point the process environment at temporary XDG directories."""
    monkeypatch.delenv("SLINK_CONFIG_DIR", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    return BaseDirs(config_dir=tmp_path / "config" / "slink", cache_dir=tmp_path / "cache" / "slink")
