"""
Pytest configuration and shared fixtures for the command resolver tests.
"""

import json
from typing import Dict, Iterable, Optional

import pytest


class FakeWorktree:
    """In-memory worktree probe that records lookups."""

    def __init__(
        self,
        root_path: str = "/projects/app",
        files: Iterable[str] = (),
        binaries: Optional[Dict[str, str]] = None,
        shell_env: Optional[Dict[str, str]] = None,
    ):
        self.root_path = root_path
        self.files = set(files)
        self.binaries = binaries or {}
        self._shell_env = shell_env or {}
        self.which_calls = []
        self.read_calls = []

    def which(self, binary_name):
        self.which_calls.append(binary_name)
        return self.binaries.get(binary_name)

    def read_text_file(self, relative_path):
        self.read_calls.append(relative_path)
        if relative_path not in self.files:
            raise FileNotFoundError(relative_path)
        return ""

    def shell_env(self):
        return dict(self._shell_env)


@pytest.fixture
def worktree():
    """Worktree with deno on PATH and the default server layout present."""
    return FakeWorktree(
        files=["lsp/server/src/server.ts"],
        binaries={"deno": "/usr/local/bin/deno"},
        shell_env={"PATH": "/usr/local/bin:/usr/bin", "LANG": "en_US.UTF-8"},
    )


@pytest.fixture
def write_settings(tmp_path):
    """Write a settings file with a ``workman-lsp`` entry and return its path."""

    def _write(entry, name="workman-lsp"):
        path = tmp_path / ".zed" / "settings.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"lsp": {name: entry}}))
        return path

    return _write


@pytest.fixture
def workman_project(tmp_path):
    """Project directory containing the default server layout."""
    server_dir = tmp_path / "lsp" / "server"
    (server_dir / "src").mkdir(parents=True)
    (server_dir / "deno.json").write_text("{}")
    (server_dir / "src" / "server.ts").write_text("// server\n")
    return tmp_path
