"""Shared fixtures for the snapshot publisher test suite.

Environment variables that feed `Settings` are cleared for every test so a
developer's shell (or a CI job) cannot leak a real token or branch into
the assertions. Git subprocesses are faked with `FakeGit` unless a test
explicitly runs real git.
"""

import os
from pathlib import Path
from typing import Optional
from unittest.mock import MagicMock, patch

import pytest

from snapshots.core.config import Settings

_ENV_VARS = ("SNAPSHOT_BUILDS_GITHUB_TOKEN", "CIRCLE_BRANCH", "SENTRY_DSN")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.upper().startswith("SNAPSHOTS_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_settings(tmp_path):
    """Build Settings without reading any .env file."""

    def _make(**overrides) -> Settings:
        values = {"source_root": tmp_path, "command_timeout": 30}
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


class FakeGit:
    """Stand-in for subprocess.run that records every git command.

    Commands succeed with empty output unless a prefix registered through
    `fail()` or `output()` matches the start of the command.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.cwds: list[Optional[str]] = []
        self._failures: dict[tuple, tuple[int, str]] = {}
        self._outputs: dict[tuple, str] = {}

    def fail(self, *prefix: str, returncode: int = 1, stderr: str = "") -> None:
        self._failures[prefix] = (returncode, stderr)

    def output(self, *prefix: str, stdout: str) -> None:
        self._outputs[prefix] = stdout

    def __call__(self, cmd, **kwargs):
        cmd = list(cmd)
        self.calls.append(cmd)
        self.cwds.append(kwargs.get("cwd"))
        for prefix, (code, stderr) in self._failures.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                return MagicMock(returncode=code, stdout="", stderr=stderr)
        stdout = ""
        for prefix, out in self._outputs.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                stdout = out
        return MagicMock(returncode=0, stdout=stdout, stderr="")

    def subcommands(self) -> list[str]:
        return [c[1] for c in self.calls]


@pytest.fixture
def fake_git():
    git = FakeGit()
    with patch("snapshots.git.commands.subprocess.run", side_effect=git):
        yield git


@pytest.fixture
def dist_dir(tmp_path) -> Path:
    """A small build output tree with a nested directory and a README."""
    dist = tmp_path / "dist" / "core"
    (dist / "lib").mkdir(parents=True)
    (dist / "package.json").write_text('{"name": "core"}')
    (dist / "lib" / "index.js").write_text("module.exports = {};\n")
    (dist / "README.md").write_text("# core\n\nPackage readme.\n")
    return dist
