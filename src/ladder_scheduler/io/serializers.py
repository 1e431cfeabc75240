"""
JSON serialization for program data.

Handles conversion between dataclasses and JSON-compatible dicts for
definitions, result logs, undo entries and rendered schedules.
"""

import json
import math
from typing import Any

from ..core.models import (
    ABSENT,
    RESULT_FIELDS,
    AdvanceStage,
    Diagnostic,
    ExerciseSlot,
    IncrementWeight,
    NoChange,
    ProgramDefinition,
    ResetStage,
    ResolvedPrescription,
    ResultEntry,
    ResultLog,
    Rule,
    Schedule,
    SlotRow,
    Stage,
    UndoEntry,
    WorkoutRow,
)
from ..core.programs.loader import program_from_dict


class ValidationError(Exception):
    """Raised when stored data fails validation."""

    pass


def validate_index(value: Any, name: str = "workout index") -> int:
    """
    Validate a workout index (int or numeric string, non-negative).

    Args:
        value: Raw index (JSON object keys arrive as strings)
        name: Name for error message

    Returns:
        The index as int

    Raises:
        ValidationError: If value is not a non-negative integer
    """
    if isinstance(value, int) and not isinstance(value, bool):
        index = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        index = int(value)
    else:
        raise ValidationError(f"Invalid {name}: {value!r}")
    if index < 0:
        raise ValidationError(f"{name} must be non-negative, got {index}")
    return index


def validate_weight(value: Any, name: str) -> float:
    """
    Validate a weight value.

    Raises:
        ValidationError: If value is not a finite non-negative number
    """
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    try:
        weight = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(weight) or weight < 0:
        raise ValidationError(f"{name} must be a finite non-negative number, got {value!r}")
    return weight


# =============================================================================
# RESULTS
# =============================================================================


def result_entry_to_dict(entry: ResultEntry) -> dict[str, Any]:
    """
    Convert ResultEntry to a compact dict (unset fields omitted).

    Args:
        entry: ResultEntry to convert

    Returns:
        Dict representation
    """
    d: dict[str, Any] = {}
    for name in RESULT_FIELDS:
        value = getattr(entry, name)
        if value is not None:
            d[name] = value
    return d


def dict_to_result_entry(data: dict[str, Any]) -> ResultEntry:
    """
    Convert dict to ResultEntry.

    Raises:
        ValidationError: If data is invalid
    """
    unknown = set(data) - set(RESULT_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown result fields: {sorted(unknown)}")
    reps = data.get("max_effort_reps")
    rating = data.get("effort_rating")
    weight = data.get("test_weight")
    try:
        return ResultEntry(
            result=data.get("result"),
            max_effort_reps=int(reps) if reps is not None else None,
            effort_rating=float(rating) if rating is not None else None,
            test_weight=validate_weight(weight, "test_weight") if weight is not None else None,
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def result_log_to_dict(results: ResultLog) -> dict[str, dict[str, dict[str, Any]]]:
    """
    Convert ResultLog to a JSON-compatible dict keyed by str(index).

    Args:
        results: ResultLog to convert

    Returns:
        {"0": {"d1-t1": {"result": "success"}}, ...}
    """
    return {
        str(index): {
            slot_id: result_entry_to_dict(entry)
            for slot_id, entry in sorted(results.workout(index).items())
        }
        for index in results.indices()
    }


def dict_to_result_log(data: dict[str, Any]) -> ResultLog:
    """
    Convert dict to ResultLog.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Result log must be an object, got {type(data).__name__}")
    entries: dict[int, dict[str, ResultEntry]] = {}
    for raw_index, cells in data.items():
        index = validate_index(raw_index)
        if not isinstance(cells, dict):
            raise ValidationError(f"Workout {index}: cells must be an object")
        entries[index] = {
            str(slot_id): dict_to_result_entry(cell) for slot_id, cell in cells.items()
        }
    return ResultLog(entries)


# =============================================================================
# UNDO
# =============================================================================


def undo_entry_to_dict(entry: UndoEntry) -> dict[str, Any]:
    """
    Convert UndoEntry to a JSON-compatible dict.

    ABSENT is written as null: no valid field value is ever null.
    """
    return {
        "index": entry.index,
        "slot_id": entry.slot_id,
        "prior": {
            name: (None if value is ABSENT else value) for name, value in entry.prior.items()
        },
    }


def dict_to_undo_entry(data: dict[str, Any]) -> UndoEntry:
    """
    Convert dict to UndoEntry (null -> ABSENT).

    Raises:
        ValidationError: If data is invalid
    """
    try:
        prior_raw = data["prior"]
        slot_id = str(data["slot_id"])
        index = validate_index(data["index"])
    except KeyError as e:
        raise ValidationError(f"Undo entry missing field: {e}") from e
    if not isinstance(prior_raw, dict):
        raise ValidationError("Undo entry 'prior' must be an object")
    try:
        return UndoEntry(
            index=index,
            slot_id=slot_id,
            prior={name: (ABSENT if value is None else value) for name, value in prior_raw.items()},
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def undo_entry_to_json_line(entry: UndoEntry) -> str:
    """Serialize an UndoEntry to a single JSONL line."""
    return json.dumps(undo_entry_to_dict(entry), separators=(",", ":"))


# =============================================================================
# PROGRAM DEFINITIONS
# =============================================================================


def rule_to_dict(rule: Rule) -> dict[str, Any]:
    """Convert a Rule to the dict form accepted by rule_from_dict()."""
    if isinstance(rule, NoChange):
        return {"type": "no_change"}
    if isinstance(rule, AdvanceStage):
        return {"type": "advance_stage"}
    if isinstance(rule, IncrementWeight):
        d: dict[str, Any] = {"type": "increment_weight"}
        if rule.amount is not None:
            d["amount"] = rule.amount
        return d
    if isinstance(rule, ResetStage):
        return {"type": "reset_stage", "deload": rule.deload.mode, "value": rule.deload.value}
    raise TypeError(f"Unknown progression rule: {rule!r}")


def _stage_to_dict(stage: Stage) -> dict[str, Any]:
    d: dict[str, Any] = {"sets": stage.sets, "reps": stage.reps}
    if stage.reps_max is not None:
        d["reps_max"] = stage.reps_max
    if stage.max_effort:
        d["max_effort"] = True
    return d


def slot_to_dict(slot: ExerciseSlot) -> dict[str, Any]:
    """Convert ExerciseSlot to dict; optional fields are omitted when unset."""
    d: dict[str, Any] = {
        "id": slot.id,
        "exercise_id": slot.exercise_id,
        "role": slot.role,
        "stages": [_stage_to_dict(s) for s in slot.stages],
        "on_success": rule_to_dict(slot.on_success),
        "on_mid_stage_fail": rule_to_dict(slot.on_mid_stage_fail),
        "on_final_stage_fail": rule_to_dict(slot.on_final_stage_fail),
        "start_weight_key": slot.start_weight_key,
    }
    if slot.on_final_stage_success is not None:
        d["on_final_stage_success"] = rule_to_dict(slot.on_final_stage_success)
    if slot.start_weight_multiplier is not None:
        d["start_weight_multiplier"] = slot.start_weight_multiplier
    if slot.start_weight_offset:
        d["start_weight_offset"] = slot.start_weight_offset
    if slot.propagates_to is not None:
        d["propagates_to"] = slot.propagates_to
    if slot.is_test_slot:
        d["is_test_slot"] = True
    if slot.notes is not None:
        d["notes"] = slot.notes
    if slot.prescriptions is not None:
        d["prescriptions"] = [
            {"percent": p.percent, "reps": p.reps, "sets": p.sets} for p in slot.prescriptions
        ]
        d["percent_of"] = slot.percent_of
    if slot.is_gpp:
        d["is_gpp"] = True
    return d


def program_to_dict(definition: ProgramDefinition) -> dict[str, Any]:
    """
    Convert ProgramDefinition to a JSON-compatible dict.

    The output round-trips through dict_to_program().
    """
    return {
        "id": definition.id,
        "name": definition.name,
        "description": definition.description,
        "exercises": dict(definition.exercises),
        "total_workouts": definition.total_workouts,
        "weight_increments": dict(definition.weight_increments),
        "rounding": definition.rounding,
        "prescription_rounding": definition.prescription_rounding,
        "days": [
            {"name": day.name, "slots": [slot_to_dict(s) for s in day.slots]}
            for day in definition.days
        ],
    }


def dict_to_program(data: dict[str, Any]) -> ProgramDefinition:
    """
    Convert dict to ProgramDefinition.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        return program_from_dict(data)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise ValidationError(f"Invalid program definition: {e}") from e


# =============================================================================
# SCHEDULE (cache payload)
# =============================================================================


def slot_row_to_dict(row: SlotRow) -> dict[str, Any]:
    """Convert SlotRow to dict (all fields, for cache fidelity)."""
    return {
        "slot_id": row.slot_id,
        "exercise_id": row.exercise_id,
        "exercise_name": row.exercise_name,
        "role": row.role,
        "weight": row.weight,
        "stage": row.stage,
        "stages_count": row.stages_count,
        "sets": row.sets,
        "reps": row.reps,
        "reps_max": row.reps_max,
        "max_effort": row.max_effort,
        "committed": row.committed,
        "result": row.result,
        "max_effort_reps": row.max_effort_reps,
        "effort_rating": row.effort_rating,
        "test_weight": row.test_weight,
        "is_changed": row.is_changed,
        "is_deload": row.is_deload,
        "is_test_slot": row.is_test_slot,
        "propagates_to": row.propagates_to,
        "notes": row.notes,
        "prescriptions": (
            [
                {"percent": p.percent, "reps": p.reps, "sets": p.sets, "weight": p.weight}
                for p in row.prescriptions
            ]
            if row.prescriptions is not None
            else None
        ),
        "is_gpp": row.is_gpp,
    }


def workout_row_to_dict(row: WorkoutRow) -> dict[str, Any]:
    """Convert WorkoutRow to dict."""
    return {
        "index": row.index,
        "day_name": row.day_name,
        "slots": [slot_row_to_dict(s) for s in row.slots],
    }


def diagnostic_to_dict(diagnostic: Diagnostic) -> dict[str, Any]:
    """Convert Diagnostic to dict."""
    return {
        "kind": diagnostic.kind,
        "index": diagnostic.index,
        "slot_id": diagnostic.slot_id,
        "message": diagnostic.message,
    }


def schedule_to_dict(schedule: Schedule) -> dict[str, Any]:
    """Convert Schedule to a JSON-compatible dict."""
    return {
        "first_pending_idx": schedule.first_pending_idx,
        "rows": [workout_row_to_dict(r) for r in schedule.rows],
        "diagnostics": [diagnostic_to_dict(d) for d in schedule.diagnostics],
    }


def _dict_to_slot_row(data: dict[str, Any]) -> SlotRow:
    fields = dict(data)
    if fields.get("prescriptions") is not None:
        fields["prescriptions"] = tuple(ResolvedPrescription(**p) for p in fields["prescriptions"])
    return SlotRow(**fields)


def dict_to_schedule(data: dict[str, Any]) -> Schedule:
    """
    Convert dict back to Schedule.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        return Schedule(
            rows=tuple(
                WorkoutRow(
                    index=int(r["index"]),
                    day_name=str(r["day_name"]),
                    slots=tuple(_dict_to_slot_row(s) for s in r["slots"]),
                )
                for r in data["rows"]
            ),
            first_pending_idx=data["first_pending_idx"],
            diagnostics=tuple(Diagnostic(**d) for d in data.get("diagnostics", [])),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid schedule payload: {e}") from e


# =============================================================================
# CLI PARSING
# =============================================================================


def parse_baseline_string(baseline_str: str) -> dict[str, float]:
    """
    Parse baseline weights from a compact string.

    Format: "key=weight,key=weight", e.g. "squat=60,bench=40.5"

    Args:
        baseline_str: Comma-separated key=weight pairs

    Returns:
        {key: weight}

    Raises:
        ValidationError: If format is invalid
    """
    baseline: dict[str, float] = {}
    for part in baseline_str.split(","):
        part = part.strip()
        if not part:
            continue
        if "=" not in part:
            raise ValidationError(f"Invalid baseline entry '{part}'. Expected key=weight")
        key, raw = part.split("=", 1)
        key = key.strip()
        if not key:
            raise ValidationError(f"Invalid baseline entry '{part}': empty key")
        baseline[key] = validate_weight(raw.strip(), key)
    if not baseline:
        raise ValidationError("No baseline weights given")
    return baseline
