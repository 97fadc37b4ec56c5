"""
Tests for the argparse and click entry points.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from workmanlsp import cli, service
from workmanlsp.errors import BinaryNotFound
from workmanlsp.utils.workspace import Worktree


@pytest.fixture(autouse=True)
def quiet_shell_env(monkeypatch):
    """Avoid starting a login shell and leaking WORKMAN_ROOT into tests."""
    monkeypatch.setattr(Worktree, "shell_env", lambda self: {"PATH": "/usr/bin"})
    monkeypatch.delenv("WORKMAN_ROOT", raising=False)


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "lsp": {
            "workman-lsp": {
                "binary": {"path": "/opt/deno"},
                "settings": {"serverRoot": "/src/workman"},
                "initialization_options": {"trace": "off"},
            }
        }
    }))
    return path


class TestCli:
    def test_parse_args(self):
        args = cli.parse_args(["-w", "/p", "--debug", "command"])

        assert args.workspace == "/p"
        assert args.debug is True
        assert args.action == "command"
        assert args.server_id == "workman-lsp"

    def test_command(self, tmp_path, settings_file, capsys):
        code = cli.main(["-w", str(tmp_path), "--settings", str(settings_file), "command"])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["command"] == "/opt/deno"
        assert output["args"] == [
            "run",
            "--allow-all",
            "--config",
            "/src/workman/lsp/server/deno.json",
            "/src/workman/lsp/server/src/server.ts",
        ]

    def test_init_options(self, tmp_path, settings_file, capsys):
        code = cli.main(["-w", str(tmp_path), "--settings", str(settings_file), "init-options"])

        assert code == 0
        assert json.loads(capsys.readouterr().out) == {"trace": "off"}

    def test_workspace_config(self, tmp_path, settings_file, capsys):
        code = cli.main(
            ["-w", str(tmp_path), "--settings", str(settings_file), "workspace-config"]
        )

        assert code == 0
        assert json.loads(capsys.readouterr().out) == {"serverRoot": "/src/workman"}

    def test_workspace_config_without_settings(self, tmp_path, capsys):
        code = cli.main(["-w", str(tmp_path), "workspace-config"])

        assert code == 0
        assert capsys.readouterr().out.strip() == "null"

    def test_missing_server_fails(self, tmp_path):
        with patch.object(Worktree, "which", return_value="/usr/bin/deno"):
            code = cli.main(["-w", str(tmp_path), "command"])

        assert code == 1

    def test_missing_workspace_fails(self, tmp_path):
        assert cli.main(["-w", str(tmp_path / "nope"), "command"]) == 1

    def test_no_action(self, tmp_path, capsys):
        assert cli.main(["-w", str(tmp_path)]) == 1
        assert "specify an action" in capsys.readouterr().out

    @patch("workmanlsp.cli.WorkmanLanguageServerManager")
    def test_check(self, mock_manager_cls, tmp_path, capsys):
        manager = mock_manager_cls.return_value
        manager.server_capabilities = {"hoverProvider": True}

        code = cli.main(["-w", str(tmp_path), "check"])

        assert code == 0
        manager.start.assert_called_once()
        manager.stop.assert_called_once()
        assert json.loads(capsys.readouterr().out) == {"hoverProvider": True}


class TestService:
    @patch("workmanlsp.service.WorkmanLanguageServerManager")
    def test_runs_until_server_exits(self, mock_manager_cls, tmp_path):
        manager = mock_manager_cls.return_value
        manager.is_running.return_value = False

        result = CliRunner().invoke(service.main, ["--workspace", str(tmp_path)])

        assert result.exit_code == 0
        assert "Language server exited" in result.output
        assert "Service stopped" in result.output
        manager.start.assert_called_once()
        manager.stop.assert_called_once()

    @patch("workmanlsp.service.time.sleep", side_effect=KeyboardInterrupt)
    @patch("workmanlsp.service.WorkmanLanguageServerManager")
    def test_ctrl_c_stops_server(self, mock_manager_cls, _mock_sleep, tmp_path):
        manager = mock_manager_cls.return_value
        manager.is_running.return_value = True

        result = CliRunner().invoke(service.main, ["--workspace", str(tmp_path)])

        assert result.exit_code == 0
        assert "Stopping service..." in result.output
        manager.stop.assert_called_once()

    @patch("workmanlsp.service.WorkmanLanguageServerManager")
    def test_start_failure(self, mock_manager_cls, tmp_path):
        manager = MagicMock()
        manager.start.side_effect = BinaryNotFound("workman-lsp")
        mock_manager_cls.return_value = manager

        result = CliRunner().invoke(service.main, ["--workspace", str(tmp_path)])

        assert result.exit_code == 1
        assert "could not find deno on PATH" in result.output
        manager.stop.assert_not_called()
