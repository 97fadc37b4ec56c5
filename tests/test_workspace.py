"""
Tests for the worktree probe and platform detection.
"""

import os
import subprocess
from unittest.mock import Mock, patch

import pytest

from workmanlsp.utils.platform import Os, current_platform
from workmanlsp.utils.workspace import Worktree, parse_env_output


class TestWorktree:
    def test_rejects_non_directory(self, tmp_path):
        with pytest.raises(ValueError, match="not a directory"):
            Worktree(str(tmp_path / "missing"))

    def test_read_text_file(self, workman_project):
        worktree = Worktree(str(workman_project))

        assert worktree.read_text_file("lsp/server/src/server.ts") == "// server\n"

    def test_read_non_utf8_file(self, tmp_path):
        script = tmp_path / "server.ts"
        script.write_bytes(b"\xff\xfe\x00const caf\xe9 = 1;\n")
        worktree = Worktree(str(tmp_path))

        content = worktree.read_text_file("server.ts")

        assert "const caf" in content
        assert "\ufffd" in content

    def test_read_missing_file_raises(self, tmp_path):
        worktree = Worktree(str(tmp_path))

        with pytest.raises(OSError):
            worktree.read_text_file("lsp/server/src/server.ts")

    @pytest.mark.skipif(os.name == "nt", reason="POSIX executable bits")
    def test_which_uses_shell_path(self, tmp_path):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        deno = bin_dir / "deno"
        deno.write_text("#!/bin/sh\n")
        deno.chmod(0o755)

        worktree = Worktree(str(tmp_path))
        with patch.object(Worktree, "shell_env", return_value={"PATH": str(bin_dir)}):
            assert worktree.which("deno") == str(deno)
            assert worktree.which("node") is None

    @patch("workmanlsp.utils.workspace.subprocess.run")
    def test_shell_env_is_captured_in_root(self, mock_run, tmp_path, monkeypatch):
        monkeypatch.setenv("SHELL", "/bin/zsh")
        mock_run.return_value = Mock(stdout=b"PATH=/opt/bin\0HOME=/home/me\0")
        worktree = Worktree(str(tmp_path))

        assert worktree.shell_env() == {"PATH": "/opt/bin", "HOME": "/home/me"}

        mock_run.assert_called_once()
        args, kwargs = mock_run.call_args
        assert args[0] == ["/bin/zsh", "-l", "-c", "env -0"]
        assert kwargs["cwd"] == str(tmp_path)

    @patch("workmanlsp.utils.workspace.subprocess.run")
    def test_shell_env_is_recaptured_on_each_call(self, mock_run, tmp_path):
        mock_run.side_effect = [
            Mock(stdout=b"PATH=/old/bin\0"),
            Mock(stdout=b"PATH=/new/bin\0"),
        ]
        worktree = Worktree(str(tmp_path))

        assert worktree.shell_env() == {"PATH": "/old/bin"}
        assert worktree.shell_env() == {"PATH": "/new/bin"}
        assert mock_run.call_count == 2

    @patch("workmanlsp.utils.workspace.subprocess.run")
    def test_shell_env_falls_back_to_process_env(self, mock_run, tmp_path, monkeypatch):
        monkeypatch.setenv("WORKMAN_TEST_MARKER", "1")
        mock_run.side_effect = subprocess.CalledProcessError(1, ["sh"])
        worktree = Worktree(str(tmp_path))

        env = worktree.shell_env()

        assert env["WORKMAN_TEST_MARKER"] == "1"


def test_parse_env_output():
    output = "A=1\0B=x=y\0MULTI=line1\nline2\0\0junk\0=nokey\0"

    assert parse_env_output(output) == {"A": "1", "B": "x=y", "MULTI": "line1\nline2"}


@pytest.mark.parametrize(
    "sys_platform,expected",
    [
        ("darwin", Os.MAC),
        ("linux", Os.LINUX),
        ("win32", Os.WINDOWS),
        ("cygwin", Os.WINDOWS),
        ("freebsd14", Os.LINUX),
    ],
)
def test_current_platform(monkeypatch, sys_platform, expected):
    monkeypatch.setattr("workmanlsp.utils.platform.sys.platform", sys_platform)

    assert current_platform() == expected
