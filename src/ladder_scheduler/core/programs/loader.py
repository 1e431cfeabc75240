"""
YAML -> ProgramDefinition loader.

Loads preset program definitions from individual YAML files in the bundled
``src/ladder_scheduler/programs/`` directory.  Each file (e.g. gzclp.yaml)
holds one program matching the ProgramDefinition schema.

User overrides: place matching files in ``~/.ladder-scheduler/programs/``.
A user file is deep-merged over the bundled definition, so only changed
keys need to be listed.  A user file whose stem does not match any bundled
file is treated as a new program and added to the registry.

Rule syntax inside a slot::

    on_success: {type: increment_weight, amount: 5}   # amount optional
    on_mid_stage_fail: advance_stage                  # bare string = no params
    on_final_stage_fail: {type: reset_stage, deload: multiply, value: 0.9}

Percentage-based slot::

    {id: d1-bench, exercise_id: bench, percent_of: bench_1rm,
     prescriptions: [{percent: 50, reps: 5, sets: 1}, {percent: 70, reps: 4, sets: 4}]}
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import DEFAULT_ROLE, DEFAULT_ROUNDING_STEP, PRESCRIPTION_ROUNDING_STEP
from ..engine.config_loader import deep_merge, get_data_root
from ..models import (
    AdvanceStage,
    Day,
    Deload,
    ExerciseSlot,
    IncrementWeight,
    NoChange,
    Prescription,
    ProgramDefinition,
    ResetStage,
    Rule,
    Stage,
)

_REQUIRED_PROGRAM_FIELDS: frozenset[str] = frozenset(
    {"id", "name", "exercises", "days", "total_workouts"}
)

_REQUIRED_SLOT_FIELDS: frozenset[str] = frozenset(
    {
        "id",
        "exercise_id",
        "stages",
        "on_success",
        "on_mid_stage_fail",
        "on_final_stage_fail",
        "start_weight_key",
    }
)

# Prescription and GPP slots carry no progression rules
_REQUIRED_FIXED_SLOT_FIELDS: frozenset[str] = frozenset({"id", "exercise_id"})


def rule_from_dict(raw: Any) -> Rule:
    """
    Convert a raw rule (string or mapping) to a Rule.

    Raises ValueError on an unknown type or missing parameters.
    """
    if isinstance(raw, str):
        raw = {"type": raw}
    if not isinstance(raw, dict) or "type" not in raw:
        raise ValueError(f"Rule must be a string or a mapping with 'type', got {raw!r}")

    rule_type = raw["type"]
    if rule_type == "no_change":
        return NoChange()
    if rule_type == "advance_stage":
        return AdvanceStage()
    if rule_type == "increment_weight":
        amount = raw.get("amount")
        return IncrementWeight(amount=float(amount) if amount is not None else None)
    if rule_type == "reset_stage":
        if "deload" not in raw or "value" not in raw:
            raise ValueError("reset_stage rule needs 'deload' (multiply | add) and 'value'")
        return ResetStage(deload=Deload(mode=str(raw["deload"]), value=float(raw["value"])))  # type: ignore[arg-type]
    raise ValueError(f"Unknown rule type: {rule_type!r}")


def _expect(value: Any, kind: type, what: str) -> Any:
    """Return ``value`` if it is a ``kind``, else raise ValueError naming ``what``."""
    if not isinstance(value, kind):
        raise ValueError(f"{what} must be a {kind.__name__}, got {type(value).__name__}")
    return value


def _stage_from_dict(d: dict) -> Stage:
    _expect(d, dict, "Stage")
    if "sets" not in d or "reps" not in d:
        raise ValueError(f"Stage missing sets/reps: {d!r}")
    reps_max = d.get("reps_max")
    return Stage(
        sets=int(d["sets"]),
        reps=int(d["reps"]),
        reps_max=int(reps_max) if reps_max is not None else None,
        max_effort=bool(d.get("max_effort", False)),
    )


def _prescription_from_dict(d: dict) -> Prescription:
    _expect(d, dict, "Prescription")
    missing = {"percent", "reps", "sets"} - set(d)
    if missing:
        raise ValueError(f"Prescription missing fields: {sorted(missing)}")
    return Prescription(percent=float(d["percent"]), reps=int(d["reps"]), sets=int(d["sets"]))


def slot_from_dict(d: dict) -> ExerciseSlot:
    """Convert a raw slot dict to an ExerciseSlot, raising ValueError on missing fields.

    Prescription slots (``prescriptions`` + ``percent_of``) and GPP slots
    (``is_gpp: true``) need no rules or ``start_weight_key``; rules default
    to no_change.
    """
    _expect(d, dict, "Slot")
    raw_prescriptions = d.get("prescriptions")
    fixed = raw_prescriptions is not None or bool(d.get("is_gpp", False))
    required = _REQUIRED_FIXED_SLOT_FIELDS if fixed else _REQUIRED_SLOT_FIELDS
    missing = required - set(d)
    if missing:
        raise ValueError(f"Slot {d.get('id', '?')!r} missing fields: {sorted(missing)}")

    prescriptions = None
    if raw_prescriptions is not None:
        prescriptions = tuple(
            _prescription_from_dict(p) for p in _expect(raw_prescriptions, list, "prescriptions")
        )
    percent_of = d.get("percent_of")

    final_success = d.get("on_final_stage_success")
    multiplier = d.get("start_weight_multiplier")
    return ExerciseSlot(
        id=str(d["id"]),
        exercise_id=str(d["exercise_id"]),
        role=str(d.get("role", DEFAULT_ROLE)),  # type: ignore[arg-type]
        stages=tuple(_stage_from_dict(s) for s in _expect(d.get("stages", []), list, "stages")),
        on_success=rule_from_dict(d.get("on_success", "no_change")),
        on_mid_stage_fail=rule_from_dict(d.get("on_mid_stage_fail", "no_change")),
        on_final_stage_fail=rule_from_dict(d.get("on_final_stage_fail", "no_change")),
        on_final_stage_success=rule_from_dict(final_success) if final_success is not None else None,
        start_weight_key=str(d.get("start_weight_key", percent_of or "")),
        start_weight_multiplier=float(multiplier) if multiplier is not None else None,
        start_weight_offset=float(d.get("start_weight_offset", 0.0)),
        propagates_to=d.get("propagates_to"),
        is_test_slot=bool(d.get("is_test_slot", False)),
        notes=d.get("notes"),
        prescriptions=prescriptions,
        percent_of=str(percent_of) if percent_of is not None else None,
        is_gpp=bool(d.get("is_gpp", False)),
    )


def program_from_dict(d: dict) -> ProgramDefinition:
    """Convert a raw dict (from YAML or storage) to a ProgramDefinition.

    Raises ValueError if any required field is absent or malformed.
    """
    _expect(d, dict, "Program")
    missing = _REQUIRED_PROGRAM_FIELDS - set(d)
    if missing:
        raise ValueError(f"ProgramDefinition missing fields: {sorted(missing)}")

    days = []
    for day in _expect(d["days"], list, "days"):
        _expect(day, dict, "Day")
        days.append(Day(
            name=str(day["name"]),
            slots=tuple(slot_from_dict(s) for s in _expect(day.get("slots", []), list, "slots")),
        ))

    exercises = _expect(d["exercises"], dict, "exercises")
    increments = _expect(d.get("weight_increments", {}), dict, "weight_increments")
    return ProgramDefinition(
        id=str(d["id"]),
        name=str(d["name"]),
        description=str(d.get("description", "")),
        exercises={str(k): str(v) for k, v in exercises.items()},
        days=tuple(days),
        total_workouts=int(d["total_workouts"]),
        weight_increments={str(k): float(v) for k, v in increments.items()},
        rounding=float(d.get("rounding", DEFAULT_ROUNDING_STEP)),
        prescription_rounding=float(d.get("prescription_rounding", PRESCRIPTION_ROUNDING_STEP)),
    )


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; warn and return {} if it cannot be read or parsed."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"ladder-scheduler: cannot read {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def get_bundled_programs_dir() -> Path | None:
    """Return path to the bundled programs/ data directory, or None if not found."""
    # loader.py lives at src/ladder_scheduler/core/programs/loader.py
    candidate = Path(__file__).parent.parent.parent / "programs"
    return candidate if candidate.is_dir() else None


def get_user_programs_dir() -> Path | None:
    """Return ~/.ladder-scheduler/programs/ if it exists, else None."""
    p = get_data_root() / "programs"
    return p if p.is_dir() else None


def load_programs_from_yaml(
    bundled_dir: Path | None = None,
    user_dir: Path | None = None,
) -> dict[str, ProgramDefinition]:
    """Return {program_id: ProgramDefinition} loaded from per-program YAML files.

    Loads each ``<program>.yaml`` from the bundled programs/ directory.  If a
    matching file exists in the user directory it is deep-merged over the
    bundled definition.  User-only files are loaded as new programs.
    Invalid files are skipped with a warning.
    """
    if bundled_dir is None:
        bundled_dir = get_bundled_programs_dir()
    if user_dir is None:
        user_dir = get_user_programs_dir()

    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: list[Path] = []
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only.append(p)

    result: dict[str, ProgramDefinition] = {}

    for stem, bundled_path in stems.items():
        raw = _load_yaml_file(bundled_path)
        if not raw:
            continue
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                user_raw = _load_yaml_file(user_path)
                if user_raw:
                    raw = deep_merge(raw, user_raw)
        try:
            program = program_from_dict(raw)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            warnings.warn(f"ladder-scheduler: skipping program '{stem}': {exc}", stacklevel=2)
            continue
        result[program.id] = program

    for p in user_only:
        raw = _load_yaml_file(p)
        if not raw:
            continue
        try:
            program = program_from_dict(raw)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            warnings.warn(f"ladder-scheduler: skipping user program '{p.stem}': {exc}", stacklevel=2)
            continue
        result[program.id] = program

    return result
