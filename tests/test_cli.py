"""
Tests for the CLI interface.
"""
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from greenstake.cli.main import app, EXIT_CODE_OK, EXIT_CODE_ERROR
from greenstake.core.forecast import ForecastOutcome, ForecastSource

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of the tests."""
    for name in ("HF_TOKEN", "GREENSTAKE_PORT", "GREENSTAKE_MODEL", "GREENSTAKE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def no_log_handlers():
    """Keep handlers off the runner's captured stdout."""
    with patch('greenstake.cli.main.configure_logging'):
        yield


@pytest.fixture
def mock_uvicorn():
    """Stop serve from binding a socket."""
    with patch('greenstake.cli.main.uvicorn') as mock:
        yield mock


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self):
        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_CODE_OK
        assert "GreenStake" in result.output

    def test_health_without_token(self):
        """health shows the AI service as unavailable."""
        result = runner.invoke(app, ["health"])

        assert result.exit_code == EXIT_CODE_OK
        assert "storage" in result.output
        assert "Status: ok" in result.output

    def test_health_bad_config(self, tmp_path):
        """A missing settings file is an error exit."""
        result = runner.invoke(app, ["health", "--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == EXIT_CODE_ERROR
        assert "Invalid configuration" in result.output

    def test_forecast_fallback_without_token(self):
        """Without a token the forecast comes from the fallback average."""
        result = runner.invoke(app, ["forecast", "--data", "1000,1200,1100,1350,1250"])

        assert result.exit_code == EXIT_CODE_OK
        assert "Predicted consumption" in result.output
        assert "fallback average" in result.output

    def test_forecast_ai_source(self):
        """An AI outcome is labelled as such."""
        with patch('greenstake.cli.main.EnergyForecaster') as mock_forecaster:
            mock_forecaster.return_value.forecast.return_value = ForecastOutcome(1475, ForecastSource.AI)
            result = runner.invoke(app, ["forecast"])

        assert result.exit_code == EXIT_CODE_OK
        assert "1,475 kWh" in result.output
        assert "AI model" in result.output

    def test_forecast_bad_data(self):
        result = runner.invoke(app, ["forecast", "--data", "1000,lots"])

        assert result.exit_code == EXIT_CODE_ERROR
        assert "comma separated integers" in result.output

    def test_serve_runs_uvicorn(self, mock_uvicorn):
        """serve hands the app to uvicorn with the configured address."""
        result = runner.invoke(app, ["serve", "--port", "8123", "--seed-demo"])

        assert result.exit_code == EXIT_CODE_OK
        assert "Demo records seeded" in result.output
        mock_uvicorn.run.assert_called_once()
        kwargs = mock_uvicorn.run.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 8123

    def test_serve_seeded_store_is_served(self, mock_uvicorn):
        """The seeded store is the one the app reads from."""
        runner.invoke(app, ["serve", "--seed-demo"])

        api = mock_uvicorn.run.call_args.args[0]
        assert api.state.store.counts() == {"forecasts": 1, "stakes": 1, "trades": 1}
