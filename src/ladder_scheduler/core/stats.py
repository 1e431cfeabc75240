"""
Per-exercise statistics over a replayed schedule.

Series are grouped by exercise id rather than slot id, so an exercise that
appears through several slots (different blocks or days) yields one
continuous series.
"""

import math
from dataclasses import dataclass

from .models import ProgramDefinition, ResultValue, WorkoutRow


@dataclass(frozen=True)
class ChartPoint:
    """One occurrence of an exercise in the schedule."""

    workout: int  # 1-based workout number
    weight: float
    stage: int    # 1-based stage number
    result: ResultValue | None


@dataclass(frozen=True)
class ExerciseStats:
    """Summary of recorded results for one exercise."""

    total: int
    successes: int
    fails: int
    rate: int  # success percentage, halves rounded up
    current_weight: float
    start_weight: float
    gained: float
    current_stage: int


def _round_tenths(value: float) -> float:
    """
    Round to one decimal, halves away from zero (0.25 -> 0.3, -0.25 -> -0.3).

    Builtin round() rounds halves to even, which would show 0.25 kg as 0.2.
    """
    rounded = math.floor(abs(value) * 10 + 0.5) / 10
    return math.copysign(rounded, value) + 0.0


def extract_chart_data(
    definition: ProgramDefinition,
    rows: tuple[WorkoutRow, ...] | list[WorkoutRow],
) -> dict[str, list[ChartPoint]]:
    """
    Build one series per declared exercise.

    Test slots are skipped: their rows show the pre-test weight, which says
    nothing about the progression of the lift.
    """
    data: dict[str, list[ChartPoint]] = {exercise_id: [] for exercise_id in definition.exercises}
    for row in rows:
        for slot in row.slots:
            series = data.get(slot.exercise_id)
            if series is None or slot.is_test_slot:
                continue
            series.append(ChartPoint(
                workout=row.index + 1,
                weight=slot.weight,
                stage=slot.stage + 1,
                result=slot.result if slot.committed else None,
            ))
    return data


def calculate_stats(points: list[ChartPoint]) -> ExerciseStats:
    """
    Summarise a series.

    Current weight and stage come from the last *recorded* point, not the
    last forecast one.
    """
    marked = [p for p in points if p.result is not None]
    successes = sum(1 for p in marked if p.result == "success")
    fails = sum(1 for p in marked if p.result == "fail")
    first = points[0] if points else None
    last_marked = marked[-1] if marked else None

    start_weight = first.weight if first else 0.0
    if last_marked is not None:
        current_weight = last_marked.weight
    else:
        current_weight = start_weight

    return ExerciseStats(
        total=len(marked),
        successes=successes,
        fails=fails,
        rate=math.floor(successes / len(marked) * 100 + 0.5) if marked else 0,
        current_weight=current_weight,
        start_weight=start_weight,
        gained=_round_tenths(current_weight - start_weight) if last_marked and first else 0.0,
        current_stage=last_marked.stage if last_marked else 1,
    )
