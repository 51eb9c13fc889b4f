from unittest.mock import MagicMock, patch

import click.testing
import pytest

from wfmserver.cli import cli
from wfmserver.util import DEFAULT_HOST_ADDR, DEFAULT_LOGLEVEL, DEFAULT_PORT


@pytest.fixture
def cli_runner():
    return click.testing.CliRunner()


class TestServeCLI:
    @patch("wfmserver.cli.base.start_server")
    def test_default_values(self, mock_start_server, cli_runner):
        result = cli_runner.invoke(cli, ["serve"])
        assert result.exit_code == 0
        mock_start_server.assert_called_once_with(
            instrument_name="mock",
            host=DEFAULT_HOST_ADDR,
            port=DEFAULT_PORT,
            log_to_file=True,
            log_to_stdout=True,
            log_path="",
            clear_prev_log=True,
            log_level=DEFAULT_LOGLEVEL,
        )

    @patch("wfmserver.cli.base.start_server")
    def test_all_arguments(self, mock_start_server, cli_runner):
        result = cli_runner.invoke(
            cli,
            [
                "serve",
                "-n",
                "bench4",
                "-ha",
                "0.0.0.0",
                "-p",
                "5555",
                "--no-log-to-file",
                "--no-log-to-stdout",
                "-lp",
                "/tmp/test.log",
                "--no-clear-prev-log",
                "-ll",
                "TRACE",
            ],
        )
        assert result.exit_code == 0
        mock_start_server.assert_called_once_with(
            instrument_name="bench4",
            host="0.0.0.0",
            port=5555,
            log_to_file=False,
            log_to_stdout=False,
            log_path="/tmp/test.log",
            clear_prev_log=False,
            log_level="TRACE",
        )

    @patch(
        "wfmserver.cli.base.start_server",
        side_effect=ValueError("Instrument 'nope' not found"),
    )
    def test_unknown_instrument(self, mock_start_server, cli_runner):
        result = cli_runner.invoke(cli, ["serve", "-n", "nope"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_invalid_port(self, cli_runner):
        result = cli_runner.invoke(cli, ["serve", "-p", "abc"])
        assert result.exit_code != 0


def test_list_command_no_servers(cli_runner):
    with patch("wfmserver.cli.base.list_running_servers", return_value=[]):
        result = cli_runner.invoke(cli, ["list"])
    assert result.exit_code == 0
    assert "No servers found" in result.output


def test_list_command_with_servers(cli_runner):
    mock_servers = [
        {
            "pid": 12345,
            "timestamp": "2024-01-01_12:00:00",
            "host": "127.0.0.1",
            "port": 5025,
            "running": True,
        }
    ]
    with patch("wfmserver.cli.base.list_running_servers", return_value=mock_servers):
        result = cli_runner.invoke(cli, ["list"])

    assert result.exit_code == 0
    assert "Running wfmserver servers:" in result.output
    assert "PID: 12345 (RUNNING)" in result.output
    assert "Started: 2024-01-01_12:00:00" in result.output
    assert "Address: 127.0.0.1:5025" in result.output


def test_kill_command_no_servers(cli_runner):
    with patch("wfmserver.cli.base.kill_wfm_servers", return_value=0):
        result = cli_runner.invoke(cli, ["kill"])
    assert result.exit_code == 0
    assert "No running wfmserver servers found" in result.output


def test_kill_command_with_servers(cli_runner):
    with patch("wfmserver.cli.base.kill_wfm_servers", return_value=2):
        result = cli_runner.invoke(cli, ["kill"])
    assert result.exit_code == 0
    assert "Killed 2 wfmserver server(s)" in result.output


class TestQueryCLI:
    @patch("wfmserver.cli.base.ScpiClient")
    def test_query_prints_reply(self, mock_client_cls, cli_runner):
        client = mock_client_cls.return_value.__enter__.return_value
        client.query.return_value = "4"

        result = cli_runner.invoke(cli, ["query", "CHANS?", "-p", "5026"])

        assert result.exit_code == 0
        assert result.output.strip() == "4"
        mock_client_cls.assert_called_once_with(DEFAULT_HOST_ADDR, 5026, 5.0)
        client.query.assert_called_once_with("CHANS?")

    @patch("wfmserver.cli.base.ScpiClient")
    def test_command_is_only_sent(self, mock_client_cls, cli_runner):
        client = mock_client_cls.return_value.__enter__.return_value

        result = cli_runner.invoke(cli, ["query", "C1:ON"])

        assert result.exit_code == 0
        client.send.assert_called_once_with("C1:ON")
        client.query.assert_not_called()

    @patch("wfmserver.cli.base.ScpiClient")
    def test_connection_refused(self, mock_client_cls, cli_runner):
        mock_client_cls.return_value.__enter__.side_effect = ConnectionRefusedError()
        result = cli_runner.invoke(cli, ["query", "*IDN?"])
        assert result.exit_code == 1
        assert "Error" in result.output


def test_instruments_command(cli_runner, tmp_path):
    with patch(
        "wfmserver.system.sysconfig.list_available_instruments",
        return_value={"mock": tmp_path / "mock.ini"},
    ):
        result = cli_runner.invoke(cli, ["instruments"])
    assert result.exit_code == 0
    assert "- mock" in result.output


def test_tree_option(cli_runner):
    result = cli_runner.invoke(cli, ["--tree"])
    assert result.exit_code == 0
    for name in ("serve", "list", "kill", "query", "instruments"):
        assert f"└── {name}" in result.output
