"""
Shared fixtures for ladder-scheduler tests.

The "ladder" program is a four-day rotation with one T1-style slot per day,
so every slot recurs every 4 workouts:

  d1-t1 squat     stages 5x3+ / 6x2+ / 10x1+   baseline 60
  d2-t1 bench     same ladder                  baseline 40
  d3-t1 deadlift  same ladder                  baseline 80
  d4-t1 ohp       same ladder                  baseline 30

  on_success          = IncrementWeight(+5)
  on_mid_stage_fail   = AdvanceStage
  on_final_stage_fail = ResetStage(x0.9)
"""

import pytest

from ladder_scheduler.core.models import (
    AdvanceStage,
    Day,
    Deload,
    ExerciseSlot,
    IncrementWeight,
    ProgramDefinition,
    ResetStage,
    Stage,
)

T1_STAGES = (
    Stage(sets=5, reps=3, max_effort=True),
    Stage(sets=6, reps=2, max_effort=True),
    Stage(sets=10, reps=1, max_effort=True),
)


def make_t1_slot(slot_id: str, exercise_id: str, **overrides) -> ExerciseSlot:
    """Build a T1 slot with the standard ladder and rules."""
    fields = dict(
        id=slot_id,
        exercise_id=exercise_id,
        role="primary",
        stages=T1_STAGES,
        on_success=IncrementWeight(5.0),
        on_mid_stage_fail=AdvanceStage(),
        on_final_stage_fail=ResetStage(Deload("multiply", 0.9)),
        start_weight_key=exercise_id,
    )
    fields.update(overrides)
    return ExerciseSlot(**fields)


def make_program(days: list[Day], total_workouts: int, **overrides) -> ProgramDefinition:
    """Build a definition, declaring every exercise its slots use."""
    exercises = {}
    for day in days:
        for slot in day.slots:
            exercises[slot.exercise_id] = slot.exercise_id.replace("_", " ").title()
    fields = dict(
        id="test",
        name="Test Program",
        exercises=exercises,
        days=tuple(days),
        total_workouts=total_workouts,
    )
    fields.update(overrides)
    return ProgramDefinition(**fields)


@pytest.fixture
def ladder_program() -> ProgramDefinition:
    """Four-day T1 rotation, 16 workouts."""
    return make_program(
        [
            Day("Day 1", (make_t1_slot("d1-t1", "squat"),)),
            Day("Day 2", (make_t1_slot("d2-t1", "bench"),)),
            Day("Day 3", (make_t1_slot("d3-t1", "deadlift"),)),
            Day("Day 4", (make_t1_slot("d4-t1", "ohp"),)),
        ],
        total_workouts=16,
    )


@pytest.fixture
def ladder_baseline() -> dict[str, float]:
    return {"squat": 60.0, "bench": 40.0, "deadlift": 80.0, "ohp": 30.0}


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """Point the data root at an empty temp dir so user files never leak in."""
    home = tmp_path_factory.mktemp("ladder-home")
    monkeypatch.setenv("LADDER_SCHEDULER_HOME", str(home))
    return home
