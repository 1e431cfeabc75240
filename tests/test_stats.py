"""Tests for per-exercise statistics."""

from ladder_scheduler.core.models import Day, ResultEntry, ResultLog
from ladder_scheduler.core.replay import compute_schedule
from ladder_scheduler.core.stats import ChartPoint, calculate_stats, extract_chart_data

from conftest import make_program, make_t1_slot


class TestExtractChartData:

    def test_one_series_per_exercise(self, ladder_program, ladder_baseline):
        schedule = compute_schedule(ladder_program, ladder_baseline, ResultLog())
        data = extract_chart_data(ladder_program, schedule.rows)

        assert set(data) == {"squat", "bench", "deadlift", "ohp"}
        assert [p.workout for p in data["squat"]] == [1, 5, 9, 13]
        assert all(p.result is None for p in data["squat"])

    def test_exercise_across_slots_is_one_series(self, ladder_baseline):
        program = make_program(
            [
                Day("Heavy", (make_t1_slot("heavy", "squat"),)),
                Day("Light", (make_t1_slot("light", "squat", start_weight_multiplier=0.8),)),
            ],
            total_workouts=4,
        )
        schedule = compute_schedule(program, ladder_baseline, ResultLog())
        points = extract_chart_data(program, schedule.rows)["squat"]
        assert [(p.workout, p.weight) for p in points] == [(1, 60.0), (2, 48.0), (3, 65.0), (4, 53.0)]

    def test_test_slots_skipped(self, ladder_baseline):
        program = make_program(
            [Day("Test", (make_t1_slot("t", "squat", is_test_slot=True),))],
            total_workouts=2,
        )
        schedule = compute_schedule(program, ladder_baseline, ResultLog())
        assert extract_chart_data(program, schedule.rows)["squat"] == []


class TestCalculateStats:

    def test_recorded_results(self, ladder_program, ladder_baseline):
        """Success at #1 (60), fail at #5 (65): 50%, +5 kg, still stage 1."""
        results = ResultLog({
            0: {"d1-t1": ResultEntry(result="success")},
            4: {"d1-t1": ResultEntry(result="fail")},
        })
        schedule = compute_schedule(ladder_program, ladder_baseline, results)
        stats = calculate_stats(extract_chart_data(ladder_program, schedule.rows)["squat"])

        assert stats.total == 2
        assert stats.successes == 1
        assert stats.fails == 1
        assert stats.rate == 50
        assert stats.start_weight == 60.0
        assert stats.current_weight == 65.0
        assert stats.gained == 5.0
        assert stats.current_stage == 1

    def test_nothing_recorded(self):
        points = [ChartPoint(1, 40.0, 1, None), ChartPoint(5, 45.0, 1, None)]
        stats = calculate_stats(points)
        assert stats.total == 0
        assert stats.rate == 0
        assert stats.current_weight == 40.0
        assert stats.gained == 0.0

    def test_empty_series(self):
        stats = calculate_stats([])
        assert stats.total == 0
        assert stats.start_weight == 0.0

    def test_rate_rounds_half_up(self):
        """1 of 8 = 12.5% -> 13."""
        points = [ChartPoint(1, 60.0, 1, "success")]
        points += [ChartPoint(i, 60.0, 1, "fail") for i in range(2, 9)]
        assert calculate_stats(points).rate == 13

    def test_gained_rounds_half_up(self):
        """60 -> 60.25 shows +0.3, not +0.2."""
        points = [ChartPoint(1, 60.0, 1, "success"), ChartPoint(2, 60.25, 1, "success")]
        assert calculate_stats(points).gained == 0.3

    def test_negative_gained_rounds_away_from_zero(self):
        points = [ChartPoint(1, 60.25, 1, "fail"), ChartPoint(2, 60.0, 1, "fail")]
        assert calculate_stats(points).gained == -0.3
