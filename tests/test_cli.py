"""Tests for the traefik-aggregator CLI."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from traefik_aggregator.aggregator.engine import CycleReport, SourceReport
from traefik_aggregator.cli import main
from traefik_aggregator.core.exceptions import TransportError

CONFIG = """
poll_interval: 15s
downstream:
  - name: team-a
    api_url: http://traefik-a:8080
    api_key: secret
    tls:
      cert_resolver: letsencrypt
  - name: team-b
    api_url: http://traefik-b:9000/config
    passthrough: true
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(CONFIG)
    return str(path)


class TestCLIBasics:
    """Basic CLI tests."""

    def test_main_without_arguments_shows_banner(self):
        runner = CliRunner()
        result = runner.invoke(main)

        assert result.exit_code == 0
        assert "One Traefik configuration from many Traefik instances" in result.output
        assert "traefik-aggregator serve" in result.output

    def test_main_with_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "--config" in result.output
        assert "--log-level" in result.output

    def test_version_command(self):
        runner = CliRunner()
        result = runner.invoke(main, ["version"])

        assert result.exit_code == 0
        assert "Version:" in result.output
        assert "Python:" in result.output

    def test_all_subcommands_available(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])

        for command in ("serve", "once", "healthcheck", "version", "config"):
            assert command in result.output


class TestConfigCommands:
    """Tests for the config command group."""

    def test_show(self, config_file):
        runner = CliRunner()
        result = runner.invoke(main, ["-c", config_file, "config", "show"])

        assert result.exit_code == 0
        assert "team-a" in result.output
        assert "team-b" in result.output
        assert "secret" not in result.output

    def test_show_json_hides_api_key(self, config_file):
        runner = CliRunner()
        result = runner.invoke(main, ["-c", config_file, "config", "show", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["downstream"][0]["name"] == "team-a"
        assert "api_key" not in data["downstream"][0]
        assert data["downstream"][1]["passthrough"] is True

    def test_show_missing_file(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["-c", str(tmp_path / "nope.yml"), "config", "show"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_validate_ok(self, config_file):
        runner = CliRunner()
        result = runner.invoke(main, ["-c", config_file, "config", "validate"])

        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_validate_reports_errors(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("downstream:\n  - name: ''\n    api_url: traefik-a\n")

        runner = CliRunner()
        result = runner.invoke(main, ["-c", str(path), "config", "validate"])

        assert result.exit_code == 1
        assert "name must not be empty" in result.output
        assert "Configuration has errors" in result.output

    def test_validate_reports_warnings(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(
            "poll_interval: soon\n"
            "downstream:\n"
            "  - name: a\n    api_url: http://a\n    passthrough: true\n    middlewares: [auth]\n"
            "  - name: a\n    api_url: http://b\n"
        )

        runner = CliRunner()
        result = runner.invoke(main, ["-c", str(path), "config", "validate"])

        assert result.exit_code == 0
        assert "passthrough mode ignores middlewares" in result.output
        assert "duplicate name" in result.output
        assert "poll_interval" in result.output
        assert "with warnings" in result.output


class TestOnceCommand:
    """Tests for the once command."""

    def test_prints_document(self, config_file):
        document = {"http": {"routers": {"team-a-svc": {"rule": "Host(`a.com`)"}}, "services": {}}}
        runner = CliRunner()

        with (
            patch("traefik_aggregator.cli.configure_logging"),
            patch(
                "traefik_aggregator.cli._aggregate_once",
                new=AsyncMock(return_value=(document, CycleReport())),
            ),
        ):
            result = runner.invoke(main, ["-c", config_file, "once", "--compact"])

        assert result.exit_code == 0
        assert json.loads(result.output) == document

    def test_exit_code_on_failure(self, config_file):
        report = CycleReport(
            sources=[SourceReport(name="team-a", error=TransportError("connection refused", "team-a"))]
        )
        runner = CliRunner()

        with (
            patch("traefik_aggregator.cli.configure_logging"),
            patch(
                "traefik_aggregator.cli._aggregate_once",
                new=AsyncMock(return_value=({"http": {"routers": {}, "services": {}}}, report)),
            ),
        ):
            result = runner.invoke(main, ["-c", config_file, "once"])

        assert result.exit_code == 2
        assert "team-a: connection refused" in result.output


class TestHealthcheckCommand:
    """Tests for the healthcheck command."""

    def _mock_client(self, mock_client_class, response=None, error=None):
        mock_client = MagicMock()
        if error is not None:
            mock_client.get.side_effect = error
        else:
            mock_client.get.return_value = response
        mock_client.__enter__ = MagicMock(return_value=mock_client)
        mock_client.__exit__ = MagicMock(return_value=False)
        mock_client_class.return_value = mock_client
        return mock_client

    def test_healthy(self):
        import httpx

        runner = CliRunner()
        with patch.object(httpx, "Client") as mock_client_class:
            mock_client = self._mock_client(mock_client_class, response=MagicMock(status_code=200))
            result = runner.invoke(main, ["healthcheck", "--url", "http://localhost:8080/health"])

        assert result.exit_code == 0
        assert "healthy" in result.output
        mock_client.get.assert_called_once_with("http://localhost:8080/health")

    def test_bad_status(self):
        import httpx

        runner = CliRunner()
        with patch.object(httpx, "Client") as mock_client_class:
            self._mock_client(mock_client_class, response=MagicMock(status_code=503))
            result = runner.invoke(main, ["healthcheck"])

        assert result.exit_code == 1
        assert "unhealthy" in result.output

    def test_connection_error(self):
        import httpx

        runner = CliRunner()
        with patch.object(httpx, "Client") as mock_client_class:
            self._mock_client(mock_client_class, error=httpx.ConnectError("Connection refused"))
            result = runner.invoke(main, ["healthcheck"])

        assert result.exit_code == 1
        assert "unhealthy" in result.output


class TestServeCommand:
    """Tests for the serve command."""

    def test_serve_runs_server(self, config_file):
        runner = CliRunner()

        with (
            patch("traefik_aggregator.cli.configure_logging"),
            patch("traefik_aggregator.cli._run_with_signal_handling") as mock_run,
        ):
            result = runner.invoke(main, ["-c", config_file, "serve", "--listen", "127.0.0.1:9000"])

        assert result.exit_code == 0
        cfg, listen_addr = mock_run.call_args.args
        assert listen_addr == "127.0.0.1:9000"
        assert [ds.name for ds in cfg.downstream] == ["team-a", "team-b"]

    def test_serve_invalid_config(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("downstream: [unclosed\n")

        runner = CliRunner()
        with patch("traefik_aggregator.cli._run_with_signal_handling") as mock_run:
            result = runner.invoke(main, ["-c", str(path), "serve"])

        assert result.exit_code == 1
        mock_run.assert_not_called()
