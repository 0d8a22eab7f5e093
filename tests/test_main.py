"""
Test cases for the command line entry point.
"""

import json

import pytest

import main
from monitor.models import ChangeRecord, CycleResult
from utilities.errors import DeliveryError, FetchError


@pytest.fixture
def config_file(tmp_path, clean_env):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "modification": "labyfriends",
        "webhook_url": "https://discord.com/api/webhooks/1/token",
        "baseline_file": str(tmp_path / "latest.json"),
    }))
    return path


class TestParseArgs:
    """Test cases for argument parsing."""

    def test_defaults(self):
        args = main.parse_args([])

        assert args.config == "config.json"
        assert args.dry_run is False
        assert args.reset_baseline is False

    def test_flags(self):
        args = main.parse_args(["--config", "other.json", "--dry-run", "--reset-baseline"])

        assert args.config == "other.json"
        assert args.dry_run is True
        assert args.reset_baseline is True


class TestMain:
    """Test cases for main()."""

    def test_missing_config_exits_nonzero(self, tmp_path, clean_env, monkeypatch, capsys):
        """Test that bootstrap placeholders stop the run before any network activity."""
        monkeypatch.setattr(main, "run", lambda *args, **kwargs: pytest.fail("run() must not be reached"))

        status = main.main(["--config", str(tmp_path / "config.json")])

        assert status == 1
        assert "please enter a modification" in capsys.readouterr().err

    def test_success(self, config_file, monkeypatch):
        calls = []

        def fake_run(config, dry_run=False, reset_baseline=False):
            calls.append((config.modification, dry_run, reset_baseline))
            return CycleResult(
                subject=config.modification,
                baseline_found=True,
                changes=[ChangeRecord(field_name="Downloads", previous_value=1, current_value=2)],
                delivered=1,
                baseline_saved=True,
            )

        monkeypatch.setattr(main, "run", fake_run)

        assert main.main(["--config", str(config_file), "--dry-run"]) == 0
        assert calls == [("labyfriends", True, False)]

    @pytest.mark.parametrize("error", [
        FetchError("connection refused"),
        DeliveryError("Downloads", "500 Internal Server Error", 500),
    ])
    def test_fatal_errors_exit_nonzero(self, config_file, monkeypatch, error):
        def fake_run(config, dry_run=False, reset_baseline=False):
            raise error

        monkeypatch.setattr(main, "run", fake_run)

        assert main.main(["--config", str(config_file)]) == 1
