"""
Replay engine.

Turns (definition, baseline, result log) into the full ordered schedule in a
single forward pass.  Recorded results advance a slot with the actual
outcome ("committed" rows); missing results advance it as if the session
succeeded ("forecast" rows), so the tail of the schedule is an optimistic
projection chained through every later occurrence of the slot.

The function is pure: callers recompute the whole schedule after every
mutation instead of patching rows.
"""

from dataclasses import replace

from .config import EFFORT_RATING_ROLES
from .definition import baseline_value, day_for_index, validate_definition
from .models import (
    Diagnostic,
    ExerciseSlot,
    ProgramDefinition,
    ResultEntry,
    ResolvedPrescription,
    ResultLog,
    Schedule,
    SlotRow,
    SlotState,
    WorkoutRow,
)
from .progression import apply_test_weight, next_state, round_to_nearest, seed_state
from .propagation import propagate


def _sanitize_entry(
    index: int,
    slot: ExerciseSlot,
    stage_max_effort: bool,
    entry: ResultEntry,
    diagnostics: list[Diagnostic],
) -> ResultEntry:
    """
    Drop fields the slot or its active stage does not permit.

    Only the offending field is ignored; the rest of the entry still counts.
    """
    cleaned = entry

    if entry.max_effort_reps is not None and not stage_max_effort:
        diagnostics.append(Diagnostic(
            "max_effort_not_permitted", index, slot.id,
            "Max-effort reps recorded on a stage without a max-effort set; ignored",
        ))
        cleaned = replace(cleaned, max_effort_reps=None)

    if entry.effort_rating is not None and slot.role not in EFFORT_RATING_ROLES:
        diagnostics.append(Diagnostic(
            "effort_rating_not_permitted", index, slot.id,
            f"Effort rating recorded on a {slot.role} slot; ignored",
        ))
        cleaned = replace(cleaned, effort_rating=None)

    if slot.is_test_slot:
        if entry.result is not None:
            diagnostics.append(Diagnostic(
                "result_on_test_slot", index, slot.id,
                "Test slots record a weight, not success/fail; result ignored",
            ))
            cleaned = replace(cleaned, result=None)
        if entry.test_weight is None:
            diagnostics.append(Diagnostic(
                "test_weight_missing", index, slot.id,
                "Test slot entry has no weight; treated as not recorded",
            ))
    elif entry.test_weight is not None:
        diagnostics.append(Diagnostic(
            "test_weight_on_standard_slot", index, slot.id,
            "Test weight recorded on a standard slot; ignored",
        ))
        cleaned = replace(cleaned, test_weight=None)

    return cleaned


def _fixed_slot_row(
    definition: ProgramDefinition,
    slot: ExerciseSlot,
    baseline: dict[str, float | str],
    entry: ResultEntry | None,
) -> SlotRow:
    """
    Render a slot that has no progression state.

    Prescription slots resolve each line against the 1RM in ``percent_of``
    and show the last line as the working set.  GPP slots are unloaded and
    take sets and reps from their first stage.  Neither kind takes part in
    deload detection.
    """
    resolved = None
    if slot.is_prescription:
        one_rm = baseline_value(baseline, slot.percent_of)
        resolved = tuple(
            ResolvedPrescription(
                percent=p.percent,
                reps=p.reps,
                sets=p.sets,
                weight=round_to_nearest(one_rm * p.percent / 100, definition.prescription_rounding),
            )
            for p in slot.prescriptions
        )
        weight, sets, reps = resolved[-1].weight, resolved[-1].sets, resolved[-1].reps
    else:
        first = slot.stages[0]
        weight, sets, reps = 0.0, first.sets, first.reps

    shown = entry if entry is not None else ResultEntry()
    return SlotRow(
        slot_id=slot.id,
        exercise_id=slot.exercise_id,
        exercise_name=definition.exercises.get(slot.exercise_id, slot.exercise_id),
        role=slot.role,
        weight=weight,
        stage=0,
        stages_count=1,
        sets=sets,
        reps=reps,
        reps_max=None,
        max_effort=False,
        committed=entry is not None,
        result=shown.result,
        effort_rating=shown.effort_rating,
        propagates_to=slot.propagates_to,
        notes=slot.notes,
        prescriptions=resolved,
        is_gpp=slot.is_gpp,
    )


def compute_schedule(
    definition: ProgramDefinition,
    baseline: dict[str, float | str],
    results: ResultLog,
) -> Schedule:
    """
    Replay every workout of a program.

    Args:
        definition: Program definition
        baseline: Start weights keyed by start_weight_key (not modified)
        results: Recorded results

    Returns:
        Schedule with one WorkoutRow per workout, the first pending index
        and any non-fatal diagnostics

    Raises:
        ConfigurationError: If the definition or baseline is unusable
    """
    validate_definition(definition, baseline)

    # Replay-local copy; only propagation writes to it
    working_baseline: dict[str, float | str] = dict(baseline)
    states: dict[str, SlotState] = {}
    prev_weight_by_exercise: dict[str, float] = {}
    diagnostics: list[Diagnostic] = []
    rows: list[WorkoutRow] = []
    first_pending_idx: int | None = None

    for index in range(definition.total_workouts):
        day = day_for_index(definition, index)
        recorded = results.workout(index)
        day_slot_ids = {slot.id for slot in day.slots}

        for slot_id in sorted(recorded):
            if slot_id not in day_slot_ids:
                diagnostics.append(Diagnostic(
                    "unknown_slot", index, slot_id,
                    f"Result recorded for slot '{slot_id}' which is not part of '{day.name}'",
                ))

        slot_rows: list[SlotRow] = []
        for slot in day.slots:
            if not slot.is_progressive:
                entry = recorded.get(slot.id)
                if entry is not None:
                    entry = _sanitize_entry(index, slot, False, entry, diagnostics)
                committed = entry is not None and entry.result is not None
                if not committed and first_pending_idx is None:
                    first_pending_idx = index
                slot_rows.append(_fixed_slot_row(
                    definition, slot, working_baseline, entry if committed else None,
                ))
                continue

            increment = definition.increment_for(slot.exercise_id)

            state = states.get(slot.id)
            if state is None:
                base = baseline_value(working_baseline, slot.start_weight_key)
                state = seed_state(slot, base, increment, definition.rounding)

            stage_index = min(state.stage_index, slot.last_stage_index)
            stage = slot.stages[stage_index]

            entry = recorded.get(slot.id)
            if entry is not None:
                entry = _sanitize_entry(index, slot, stage.max_effort, entry, diagnostics)

            if slot.is_test_slot:
                committed = entry is not None and entry.test_weight is not None
            else:
                committed = entry is not None and entry.result is not None

            if not committed and first_pending_idx is None:
                first_pending_idx = index

            weight = state.weight
            prev_weight = prev_weight_by_exercise.get(slot.exercise_id)
            is_deload = prev_weight is not None and 0 < weight < prev_weight
            if weight > 0:
                prev_weight_by_exercise[slot.exercise_id] = weight

            # Forecast rows show no result fields, even if a partial entry exists
            shown = entry if committed else ResultEntry()
            slot_rows.append(SlotRow(
                slot_id=slot.id,
                exercise_id=slot.exercise_id,
                exercise_name=definition.exercises.get(slot.exercise_id, slot.exercise_id),
                role=slot.role,
                weight=weight,
                stage=stage_index,
                stages_count=len(slot.stages),
                sets=stage.sets,
                reps=stage.reps,
                reps_max=stage.reps_max,
                max_effort=stage.max_effort,
                committed=committed,
                result=shown.result,
                max_effort_reps=shown.max_effort_reps,
                effort_rating=shown.effort_rating,
                test_weight=shown.test_weight,
                is_changed=state.ever_changed,
                is_deload=is_deload,
                is_test_slot=slot.is_test_slot,
                propagates_to=slot.propagates_to,
                notes=slot.notes,
            ))

            # Advance after rendering: the row shows what to lift in this session
            if slot.is_test_slot:
                if committed:
                    state = apply_test_weight(state, entry.test_weight)
                    propagate(working_baseline, slot, entry.test_weight)
            else:
                outcome = entry.result if committed else "success"
                transition = next_state(slot, state, outcome, increment, definition.rounding)
                if transition.clamped:
                    diagnostics.append(Diagnostic(
                        "stage_clamped", index, slot.id,
                        f"Stage index clamped to the last stage ({slot.last_stage_index})",
                    ))
                state = transition.state

            states[slot.id] = state

        rows.append(WorkoutRow(index=index, day_name=day.name, slots=tuple(slot_rows)))

    for index in results.indices():
        if index >= definition.total_workouts:
            for slot_id in sorted(results.workout(index)):
                diagnostics.append(Diagnostic(
                    "unknown_slot", index, slot_id,
                    f"Result recorded past the end of the program ({definition.total_workouts} workouts)",
                ))

    return Schedule(
        rows=tuple(rows),
        first_pending_idx=first_pending_idx,
        diagnostics=tuple(diagnostics),
    )
