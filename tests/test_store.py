"""
Tests for file-based instance storage and JSON serialization.
"""

import json

import pytest

from ladder_scheduler.core.instance import ProgramInstance
from ladder_scheduler.core.models import ABSENT, ResultEntry, ResultLog, UndoEntry
from ladder_scheduler.core.programs.loader import program_from_dict
from ladder_scheduler.core.replay import compute_schedule
from ladder_scheduler.io.instance_store import InstanceStore, get_default_instance_dir
from ladder_scheduler.io.serializers import (
    ValidationError,
    dict_to_program,
    dict_to_result_log,
    dict_to_schedule,
    dict_to_undo_entry,
    parse_baseline_string,
    program_to_dict,
    result_log_to_dict,
    schedule_to_dict,
    undo_entry_to_dict,
    validate_index,
)


PERCENT_PROGRAM = {
    "id": "percent",
    "name": "Percentages",
    "total_workouts": 2,
    "exercises": {"bench": "Bench Press", "pecs": "Pec Deck"},
    "prescription_rounding": 0.5,
    "days": [{
        "name": "Day 1",
        "slots": [
            {
                "id": "d1-bench", "exercise_id": "bench", "role": "primary",
                "percent_of": "bench_1rm",
                "prescriptions": [{"percent": 50, "reps": 5, "sets": 1}, {"percent": 75, "reps": 3, "sets": 5}],
            },
            {"id": "d1-gpp", "exercise_id": "pecs", "is_gpp": True, "stages": [{"sets": 5, "reps": 8}]},
        ],
    }],
}


@pytest.fixture
def store(tmp_path, ladder_program, ladder_baseline):
    s = InstanceStore(tmp_path / "inst")
    s.init(ladder_program, ladder_baseline)
    return s


class TestInstanceStore:

    def test_init_creates_files(self, store):
        assert store.exists()
        assert store.results_path.exists()
        assert store.undo_path.exists()
        assert store.get_version() == 0

    def test_init_refuses_overwrite(self, store, ladder_program, ladder_baseline):
        with pytest.raises(FileExistsError):
            store.init(ladder_program, ladder_baseline)
        store.init(ladder_program, ladder_baseline, overwrite=True)

    def test_definition_snapshot_round_trips(self, store, ladder_program, ladder_baseline):
        assert store.load_definition() == ladder_program
        assert store.load_baseline() == ladder_baseline

    def test_missing_instance(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InstanceStore(tmp_path / "nowhere").load_instance()

    def test_save_and_reload(self, store):
        instance = store.load_instance()
        instance.record_result(0, "d1-t1", "fail")
        instance.set_max_effort_reps(0, "d1-t1", 2)
        instance.set_effort_rating(0, "d1-t1", 9.5)

        assert store.save_instance(instance) == 1

        reloaded = store.load_instance()
        assert reloaded.results == instance.results
        assert reloaded.undo_log.entries() == instance.undo_log.entries()
        assert reloaded.schedule() == instance.schedule()

    def test_undo_survives_reload(self, store):
        instance = store.load_instance()
        instance.record_result(0, "d1-t1", "success")
        store.save_instance(instance)

        reloaded = store.load_instance()
        assert reloaded.undo_log.peek().prior == {"result": ABSENT}
        assert reloaded.undo_last().applied
        store.save_instance(reloaded)
        assert store.load_results() == ResultLog()

    def test_absent_written_as_null(self, store):
        instance = store.load_instance()
        instance.record_result(0, "d1-t1", "success")
        store.save_instance(instance)

        line = store.undo_path.read_text().strip()
        assert json.loads(line) == {"index": 0, "slot_id": "d1-t1", "prior": {"result": None}}

    def test_corrupt_undo_line(self, store):
        store.undo_path.write_text("{not json\n")
        with pytest.raises(ValidationError, match="line 1"):
            store.load_undo_log()

    def test_corrupt_baseline(self, store):
        data = json.loads(store.instance_path.read_text())
        data["baseline"]["squat"] = "heavy"
        store.instance_path.write_text(json.dumps(data))
        with pytest.raises(ValidationError):
            store.load_instance()

    @pytest.mark.parametrize("exercises", [["squat"], "squat"])
    def test_exercises_must_be_a_mapping(self, store, exercises):
        data = json.loads(store.instance_path.read_text())
        data["program"]["exercises"] = exercises
        store.instance_path.write_text(json.dumps(data))
        with pytest.raises(ValidationError, match="exercises"):
            store.load_definition()

    def test_days_must_hold_mappings(self, store):
        data = json.loads(store.instance_path.read_text())
        data["program"]["days"] = ["Day 1"]
        store.instance_path.write_text(json.dumps(data))
        with pytest.raises(ValidationError, match="Day"):
            store.load_definition()

    def test_nan_test_weight_in_results_file(self, store):
        store.results_path.write_text('{"1": {"t": {"test_weight": NaN}}}')
        with pytest.raises(ValidationError):
            store.load_results()


class TestScheduleCache:

    def test_render_writes_cache(self, store):
        schedule = store.render_schedule()
        assert store.cache_path.exists()
        assert store.load_schedule_cache(0) == schedule

    def test_stale_version_ignored(self, store):
        store.render_schedule()
        assert store.load_schedule_cache(1) is None

    def test_save_invalidates(self, store):
        store.render_schedule()
        instance = store.load_instance()
        instance.record_result(0, "d1-t1", "fail")
        store.save_instance(instance)

        assert not store.cache_path.exists()
        assert store.render_schedule().rows[4].slot("d1-t1").stage == 1

    def test_corrupt_cache_is_ignored(self, store):
        expected = store.load_instance().schedule()
        store.cache_path.write_text("garbage")
        assert store.load_schedule_cache(0) is None
        assert store.render_schedule() == expected

    def test_malformed_cache_payload_is_ignored(self, store):
        store.cache_path.write_text(json.dumps({"version": 0, "schedule": {"rows": [{}]}}))
        assert store.load_schedule_cache(0) is None


class TestDefaultLocation:

    def test_env_var_sets_data_root(self, isolated_home):
        assert get_default_instance_dir("main") == isolated_home / "instances" / "main"


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------


class TestSerializers:

    def test_result_log_dict_uses_string_keys(self):
        log = ResultLog({3: {"a": ResultEntry(result="fail", effort_rating=8.0)}})
        data = result_log_to_dict(log)
        assert data == {"3": {"a": {"result": "fail", "effort_rating": 8.0}}}
        assert dict_to_result_log(json.loads(json.dumps(data))) == log

    def test_result_log_rejects_bad_index(self):
        with pytest.raises(ValidationError):
            dict_to_result_log({"-2": {"a": {"result": "fail"}}})
        with pytest.raises(ValidationError):
            dict_to_result_log({"x": {}})

    def test_result_log_rejects_bad_value(self):
        with pytest.raises(ValidationError):
            dict_to_result_log({"0": {"a": {"result": "maybe"}}})
        with pytest.raises(ValidationError):
            dict_to_result_log({"0": {"a": {"weight": 60}}})

    def test_undo_entry_null_is_absent(self):
        entry = UndoEntry(index=2, slot_id="a", prior={"result": "fail", "test_weight": ABSENT})
        data = undo_entry_to_dict(entry)
        assert data["prior"] == {"result": "fail", "test_weight": None}
        assert dict_to_undo_entry(data) == entry

    def test_undo_entry_missing_field(self):
        with pytest.raises(ValidationError):
            dict_to_undo_entry({"index": 0, "prior": {}})

    def test_schedule_payload(self, ladder_program, ladder_baseline):
        instance = ProgramInstance(ladder_program, ladder_baseline)
        instance.record_result(0, "d1-t1", "fail")
        schedule = instance.schedule()
        data = json.loads(json.dumps(schedule_to_dict(schedule)))
        assert dict_to_schedule(data) == schedule

    def test_percentage_and_gpp_slots_round_trip(self):
        program = program_from_dict(PERCENT_PROGRAM)
        assert dict_to_program(json.loads(json.dumps(program_to_dict(program)))) == program

        schedule = compute_schedule(program, {"bench_1rm": 100.0}, ResultLog())
        assert schedule.rows[0].slot("d1-bench").prescriptions[-1].weight == 75.0
        data = json.loads(json.dumps(schedule_to_dict(schedule)))
        assert dict_to_schedule(data) == schedule

    def test_validate_index(self):
        assert validate_index(4) == 4
        assert validate_index("12") == 12
        with pytest.raises(ValidationError):
            validate_index(True)
        with pytest.raises(ValidationError):
            validate_index(-1)


class TestParseBaseline:

    def test_parses_pairs(self):
        assert parse_baseline_string("squat=60, bench=40.5") == {"squat": 60.0, "bench": 40.5}

    @pytest.mark.parametrize("raw", ["", "squat", "squat=abc", "=60", "squat=-5"])
    def test_rejects_invalid(self, raw):
        with pytest.raises(ValidationError):
            parse_baseline_string(raw)
