"""
Tests for the CLI interface.
"""
import json
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from usage_meter.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from usage_meter.core.aggregator import UsageSummary

runner = CliRunner()

BUSY_SUMMARY = UsageSummary(
    daily_percentage=22.2,
    weekly_percentage=3.2,
    reset_time_label="00:00",
    daily_tokens=10_000_000,
    weekly_tokens=10_000_000
)
IDLE_SUMMARY = UsageSummary(
    daily_percentage=0.0,
    weekly_percentage=0.0,
    reset_time_label="00:00",
    idle=True
)


@pytest.fixture
def mock_calculate():
    """Mock the calculate_usage function."""
    with patch('usage_meter.cli.main.calculate_usage') as mock:
        mock.return_value = BUSY_SUMMARY
        yield mock


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's plan settings out of the tests."""
    for var in ("CLAUDE_STATUS_PLAN", "CLAUDE_PLAN", "CLAUDE_CODE_PLAN", "CLAUDE_STATUS_CONFIG"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("CLAUDE_STATUS_PLAN", "pro")


class TestCLI:
    """Test CLI commands."""

    def test_usage_prints_labels(self, mock_calculate):
        """Test the status line output."""
        result = runner.invoke(app, ["usage"])

        assert result.exit_code == EXIT_CODE_PASS
        assert result.output.strip() == "D:22.2% W:3.2% @00:00"

    def test_usage_json(self, mock_calculate):
        """Test JSON output."""
        result = runner.invoke(app, ["usage", "--json"])

        assert result.exit_code == EXIT_CODE_PASS
        assert json.loads(result.output) == {
            "daily": "D:22.2%",
            "weekly": "W:3.2%",
            "reset_time": "@00:00"
        }

    def test_usage_idle(self, mock_calculate):
        """Test the idle default output."""
        mock_calculate.return_value = IDLE_SUMMARY

        result = runner.invoke(app, ["usage"])

        assert result.output.strip() == "D:0% W:0% →00:00"

    def test_plan_option_resolves_quota(self, mock_calculate):
        """Test --plan selects the quota passed to the aggregator."""
        result = runner.invoke(app, ["usage", "--plan", "max20", "--projects-dir", "/tmp/logs"])

        assert result.exit_code == EXIT_CODE_PASS
        args, kwargs = mock_calculate.call_args
        assert args[0].plan == "max20"
        assert args[0].daily_token_limit == 900_000_000
        assert kwargs["projects_dir"] == "/tmp/logs"

    def test_env_plan_used_by_default(self, mock_calculate):
        """Test the environment plan is used without --plan."""
        runner.invoke(app, ["usage"])

        args, _ = mock_calculate.call_args
        assert args[0].plan == "pro"

    def test_unknown_plan_fails(self, mock_calculate):
        """Test an unknown plan exits with failure."""
        result = runner.invoke(app, ["usage", "--plan", "enterprise"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown plan" in result.output
        mock_calculate.assert_not_called()

    def test_missing_config_fails(self, mock_calculate):
        """Test a missing config file exits with failure."""
        result = runner.invoke(app, ["usage", "--config", "nonexistent.yaml"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "config file not found" in result.output

    def test_report_table(self, mock_calculate):
        """Test the report output contains both windows."""
        result = runner.invoke(app, ["report"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Last 24 hours" in result.output
        assert "Last 7 days" in result.output
        assert "10,000,000" in result.output
        assert "45,000,000" in result.output
        assert "22.2%" in result.output

    def test_report_idle(self, mock_calculate):
        """Test the report for an idle corpus."""
        mock_calculate.return_value = IDLE_SUMMARY

        result = runner.invoke(app, ["report"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "No usage found" in result.output

    def test_plans_lists_limits(self):
        """Test the plans table."""
        result = runner.invoke(app, ["plans"])

        assert result.exit_code == EXIT_CODE_PASS
        for name in ("pro", "max5", "max20", "custom"):
            assert name in result.output
        assert "900,000,000" in result.output


class TestCLIWithLogs:
    """Test the CLI end to end against a log directory."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_config_file_supplies_limit_and_dir(self):
        """Test a YAML config drives the quota and log location."""
        logs = Path(self.temp_dir) / "logs" / "proj"
        logs.mkdir(parents=True)
        timestamp = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
        record = {
            "type": "assistant",
            "timestamp": timestamp,
            "message": {"id": "m", "usage": {"input_tokens": 250, "output_tokens": 250}},
            "requestId": "r"
        }
        (logs / "session.jsonl").write_text(
            json.dumps(record) + "\n" + json.dumps(record) + "\n",
            encoding="utf-8"
        )
        config_path = Path(self.temp_dir) / "meter.yaml"
        config_path.write_text(yaml.dump({
            "plan": "custom",
            "daily_token_limit": 1000,
            "projects_dir": str(Path(self.temp_dir) / "logs")
        }), encoding="utf-8")

        result = runner.invoke(app, ["usage", "--config", str(config_path)])

        assert result.exit_code == EXIT_CODE_PASS
        assert result.output.strip() == "D:50.0% W:7.1% @00:00"
