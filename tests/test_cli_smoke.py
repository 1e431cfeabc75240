"""
Minimal smoke tests for ladder-scheduler CLI.

Tests basic functionality:
- App runs without errors
- Instance files are created
- Results can be recorded, deleted and undone
- Schedule and stats render
"""

import json
import tempfile
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from ladder_scheduler.cli.main import app
from ladder_scheduler.core.programs import reload_registry


runner = CliRunner()

BASELINE = (
    "squat=100,bench=60,deadlift=120,ohp=40,"
    "squat_t2=65,bench_t2=40,deadlift_t2=80,ohp_t2=25,"
    "lat_pulldown=35,db_row=20"
)


@pytest.fixture
def temp_instance_dir():
    """Create a temporary directory for the instance files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "instance"


@pytest.fixture
def initialized(temp_instance_dir):
    """An instance of the bundled GZCLP preset."""
    result = runner.invoke(app, [
        "init",
        "--program", "gzclp",
        "--baseline", BASELINE,
        "-p", str(temp_instance_dir),
    ])
    assert result.exit_code == 0, result.output
    return temp_instance_dir


def _schedule_json(instance_dir: Path, *extra: str) -> dict:
    result = runner.invoke(app, ["schedule", "-p", str(instance_dir), "--json", *extra])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "ladder-scheduler" in result.output

    def test_programs_json(self):
        result = runner.invoke(app, ["programs", "--json"])
        assert result.exit_code == 0
        presets = json.loads(result.output)
        gzclp = next(p for p in presets if p["id"] == "gzclp")
        assert "bench_t2" in gzclp["baseline_keys"]

    def test_init_creates_instance(self, initialized):
        assert (initialized / "instance.json").exists()
        assert (initialized / "results.json").exists()
        assert (initialized / "undo.jsonl").exists()

    def test_named_instance_uses_data_root(self, isolated_home):
        result = runner.invoke(app, ["init", "--program", "gzclp", "--baseline", BASELINE, "-i", "main"])
        assert result.exit_code == 0, result.output
        assert (isolated_home / "instances" / "main" / "instance.json").exists()

    def test_init_refuses_existing(self, initialized):
        result = runner.invoke(app, [
            "init", "--program", "gzclp", "--baseline", BASELINE, "-p", str(initialized),
        ])
        assert result.exit_code == 1

    def test_init_unknown_program(self, temp_instance_dir):
        result = runner.invoke(app, [
            "init", "--program", "nope", "--baseline", BASELINE, "-p", str(temp_instance_dir),
        ])
        assert result.exit_code == 1
        assert not temp_instance_dir.exists()

    def test_schedule_without_instance(self, temp_instance_dir):
        result = runner.invoke(app, ["schedule", "-p", str(temp_instance_dir)])
        assert result.exit_code == 1

    def test_schedule_renders(self, initialized):
        result = runner.invoke(app, ["schedule", "-p", str(initialized), "--limit", "2"])
        assert result.exit_code == 0
        assert "d1-t1" in result.output

    def test_record_and_forecast(self, initialized):
        result = runner.invoke(app, [
            "record", "1", "d1-t1", "fail", "--reps", "2", "--effort", "9",
            "-p", str(initialized),
        ])
        assert result.exit_code == 0, result.output

        data = _schedule_json(initialized, "--all")
        first = data["rows"][0]["slots"][0]
        assert first["committed"]
        assert first["result"] == "fail"
        assert first["max_effort_reps"] == 2
        assert data["rows"][4]["slots"][0]["stage"] == 1

    def test_record_invalid_slot(self, initialized):
        result = runner.invoke(app, ["record", "1", "d2-t1", "success", "-p", str(initialized)])
        assert result.exit_code == 1
        assert json.loads((initialized / "results.json").read_text()) == {}

    def test_record_invalid_result(self, initialized):
        result = runner.invoke(app, ["record", "1", "d1-t1", "maybe", "-p", str(initialized)])
        assert result.exit_code == 1

    def test_undo(self, initialized):
        runner.invoke(app, ["record", "1", "d1-t1", "success", "-p", str(initialized)])
        assert _schedule_json(initialized)["first_pending_idx"] == 0

        result = runner.invoke(app, ["undo", "-p", str(initialized)])
        assert result.exit_code == 0
        assert json.loads((initialized / "results.json").read_text()) == {}

        result = runner.invoke(app, ["undo", "-p", str(initialized)])
        assert result.exit_code == 0
        assert "Nothing to undo" in result.output

    def test_delete(self, initialized):
        runner.invoke(app, ["record", "1", "d1-t1", "success", "-p", str(initialized)])
        result = runner.invoke(app, ["delete", "1", "d1-t1", "--yes", "-p", str(initialized)])
        assert result.exit_code == 0
        assert json.loads((initialized / "results.json").read_text()) == {}

    def test_effort_rejected_on_secondary(self, initialized):
        result = runner.invoke(app, ["effort", "1", "d1-t2", "8", "-p", str(initialized)])
        assert result.exit_code == 1

    def test_stats_json(self, initialized):
        runner.invoke(app, ["record", "1", "d1-t1", "success", "-p", str(initialized)])
        result = runner.invoke(app, ["stats", "-p", str(initialized), "--json"])
        assert result.exit_code == 0
        stats = json.loads(result.output)
        assert stats["squat"]["successes"] == 1
        assert stats["squat"]["start_weight"] == 100.0

    def test_percentage_program(self, isolated_home, temp_instance_dir):
        """A user preset with a percentage slot and a GPP slot renders both."""
        programs_dir = isolated_home / "programs"
        programs_dir.mkdir()
        (programs_dir / "percent.yaml").write_text(yaml.safe_dump({
            "id": "percent",
            "name": "Percentages",
            "total_workouts": 2,
            "exercises": {"bench": "Bench Press", "pecs": "Pec Deck"},
            "days": [{"name": "Day 1", "slots": [
                {
                    "id": "d1-bench", "exercise_id": "bench", "role": "primary",
                    "percent_of": "bench_1rm",
                    "prescriptions": [{"percent": 70, "reps": 4, "sets": 4}],
                },
                {"id": "d1-gpp", "exercise_id": "pecs", "is_gpp": True, "stages": [{"sets": 5, "reps": 8}]},
            ]}],
        }))
        reload_registry()
        try:
            result = runner.invoke(app, [
                "init", "--program", "percent", "--baseline", "bench_1rm=100",
                "-p", str(temp_instance_dir),
            ])
            assert result.exit_code == 0, result.output

            result = runner.invoke(app, ["schedule", "-p", str(temp_instance_dir)])
            assert result.exit_code == 0, result.output

            bench, gpp = _schedule_json(temp_instance_dir)["rows"][0]["slots"]
            assert bench["prescriptions"] == [{"percent": 70.0, "reps": 4, "sets": 4, "weight": 70.0}]
            assert gpp["is_gpp"]
            assert gpp["weight"] == 0.0
        finally:
            reload_registry()
