"""
tests/test_fading_runner.py

Test the command-line fading runner.

Validates:
- Time series generation over a pass
- Locking from the runner
- JSON export
- CLI argument handling and configuration errors
"""

import json
import pytest
import yaml
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fading_runner import FadingRunner, main, parse_args
from config import FadingSimConfig

DEFAULT_CONFIG_FILE = Path(__file__).parent.parent / "config" / "markov_fading.yaml"


class TestFadingRunner:
    """Test scenario execution."""

    def test_series_length_and_columns(self):
        runner = FadingRunner(FadingSimConfig(), seed=1)
        series = runner.run(duration_s=1.0)

        assert len(series) == 100
        assert series[-1]["time_s"] == pytest.approx(1.0)
        for column in ("FORWARD_USER", "RETURN_USER", "elevation_deg", "set", "state"):
            assert column in series[0]

    def test_states_in_range(self):
        runner = FadingRunner(FadingSimConfig(), seed=2)
        for row in runner.run(duration_s=2.0):
            assert 0 <= row["set"] < 4
            assert 0 <= row["state"] < 3

    def test_lock_set_and_state(self):
        runner = FadingRunner(FadingSimConfig(), seed=3)
        runner.lock(3, 2)
        series = runner.run(duration_s=0.5)

        assert all(row["set"] == 3 and row["state"] == 2 for row in series)

    def test_lock_set_only(self):
        runner = FadingRunner(FadingSimConfig(), seed=3)
        runner.lock(1)
        assert runner.controller.set_lock_enabled
        assert not runner.controller.state_lock_enabled

    def test_summary_counts(self):
        """Every tick recomputes with the default sub-tick cooldown."""
        runner = FadingRunner(FadingSimConfig(), seed=4)
        runner.run(duration_s=0.5)

        channels = runner.summary()["channels"]
        assert channels["FORWARD_USER"]["count"] == 50
        assert channels["RETURN_USER"]["count"] == 50

    def test_export_results(self, tmp_path):
        runner = FadingRunner(FadingSimConfig(), seed=5)
        series = runner.run(duration_s=0.2)
        output = tmp_path / "out" / "fading.json"
        runner.export_results(series, str(output))

        data = json.loads(output.read_text())
        assert len(data["series"]) == 20
        assert "FORWARD_USER" in data["summary"]["channels"]


class TestRunnerCli:
    """Test command-line entry point."""

    def test_parse_args(self):
        args = parse_args(["--duration", "5", "--lock-set", "1", "--lock-state", "0"])
        assert args.duration == 5.0
        assert args.lock_set == 1
        assert args.lock_state == 0

    def test_lock_state_requires_lock_set(self):
        with pytest.raises(SystemExit):
            parse_args(["--lock-state", "1"])

    def test_main_writes_output(self, tmp_path):
        output = tmp_path / "fading.json"
        main([
            "--config", str(DEFAULT_CONFIG_FILE),
            "--duration", "0.1",
            "--seed", "9",
            "--output", str(output),
            "--log-level", "WARNING",
        ])

        data = json.loads(output.read_text())
        assert len(data["series"]) == 10

    def test_main_missing_config(self, tmp_path):
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", str(tmp_path / "missing.yaml")])
        assert excinfo.value.code == 1

    @pytest.mark.parametrize("data", [
        {"markov": {"cooldown_period": 1.0}},
        {"markov": {"state_count": "3"}},
        {"simulation": {"time_step_s": 0.0}},
        {"link_geometry": {"pass_duration_s": -1.0}},
        {"logging": {"log_level": "LOUD"}},
    ])
    def test_main_invalid_config_exits(self, tmp_path, data):
        """Bad configuration is logged and ends the run with status 1."""
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump(data))
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", str(path)])
        assert excinfo.value.code == 1

    def test_main_invalid_step_exits(self):
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", str(DEFAULT_CONFIG_FILE), "--step", "0"])
        assert excinfo.value.code == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
